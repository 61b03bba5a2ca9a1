"""
Best Price Solver - Optimal Vendor Assignment for a Shopping Request

This module ties the engine together and produces the purchase plan.

Rules:
- Objective: minimum total price, then minimum number of distinct vendors
- Strategy: memoized branch-and-bound search ("optimized"); the plain DP
  ("dp") and exhaustive enumeration ("brute") are available for comparison
- Plan: rebuilt by replaying the request against the optimum ("replay") or
  taken from the assignment recorded during search ("recorded")
- Output: JSON with the selected vendor per item, total cost and vendors used

An infeasible request (an item nobody stocks) is a result status, not an error.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, model_validator

from bounds import BoundEstimator
from brute_force import solve_brute_force, solve_plain_dp
from catalog_index import CatalogIndex
from errors import InvalidRequestError, ReconstructionError
from reconstructor import reconstruct_plan
from search_engine import Assignment, SearchOptions, SearchSession, SearchStats

logger = logging.getLogger(__name__)

STATUS_OPTIMAL = "optimal"
STATUS_INFEASIBLE = "infeasible"

STRATEGIES = ("optimized", "dp", "brute")
RECONSTRUCTION_MODES = ("replay", "recorded")


# --------------------- Pydantic models ---------------------


class SelectedItem(BaseModel):
    """One requested item and the vendor it is bought from."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    vendor: str
    price: int


class Plan(BaseModel):
    """The purchase plan handed to presenters."""
    model_config = ConfigDict(populate_by_name=True)

    selected_items: List[SelectedItem] = Field(..., alias="selectedItems")
    total_cost: int = Field(..., alias="totalCost")
    vendor_count: int = Field(..., alias="vendorCount")
    vendors: List[str]

    @model_validator(mode="after")
    def check_consistency(self) -> "Plan":
        ids = [item.id for item in self.selected_items]
        if len(set(ids)) != len(ids):
            raise ValueError("Each item must appear exactly once in a plan")
        if self.total_cost != sum(item.price for item in self.selected_items):
            raise ValueError("totalCost must equal the sum of selected prices")
        distinct = {item.vendor for item in self.selected_items}
        if self.vendor_count != len(distinct) or set(self.vendors) != distinct:
            raise ValueError("vendorCount and vendors must match the selected vendors")
        return self

    def to_dict(self) -> Dict:
        return self.model_dump(by_alias=True)


# --------------------- Solver result ---------------------


@dataclass
class SolverResult:
    """Final result from the solver."""
    status: str
    requested_items: List[str]
    strategy: str
    plan: Optional[Plan] = None
    missing_items: List[str] = field(default_factory=list)
    stats: SearchStats = field(default_factory=SearchStats)

    @property
    def feasible(self) -> bool:
        return self.status == STATUS_OPTIMAL

    def to_dict(self, include_stats: bool = False) -> Dict:
        """Convert to dictionary for JSON serialization."""
        result = {
            "status": self.status,
            "requestedItems": list(self.requested_items),
            "strategy": self.strategy,
        }
        if self.plan is not None:
            result.update(self.plan.to_dict())
        if self.missing_items:
            result["missingItems"] = list(self.missing_items)
        if include_stats:
            result["stats"] = self.stats.to_dict()
        return result

    def to_json(self, indent: int = 2, include_stats: bool = False) -> str:
        """Convert to formatted JSON string."""
        return json.dumps(self.to_dict(include_stats=include_stats), indent=indent)


# --------------------- Request validation ---------------------


def validate_request_size(count, available: int) -> int:
    """
    Check a requested item count against the number of distinct items.

    Raises:
        InvalidRequestError: If count is not a positive integer or exceeds available
    """
    if isinstance(count, bool) or not isinstance(count, int) or count <= 0:
        raise InvalidRequestError(f"Invalid item count: {count!r}. Must be a positive integer.")
    if count > available:
        raise InvalidRequestError(
            f"Requested {count} items but only {available} distinct items exist."
        )
    return count


def validate_request(index: CatalogIndex, requested_ids: Sequence) -> List[str]:
    """Normalize requested ids to strings and reject bad requests."""
    if isinstance(requested_ids, (str, bytes)):
        raise InvalidRequestError("Requested items must be a list of item ids, not a string")

    items = [str(item_id) for item_id in requested_ids]
    validate_request_size(len(items), len(index.item_ids))

    duplicates = sorted({item_id for item_id in items if items.count(item_id) > 1})
    if duplicates:
        raise InvalidRequestError(f"Requested items must be distinct, duplicates: {duplicates}")
    return items


# --------------------- Public API ---------------------


def build_plan(index: CatalogIndex, items: Sequence[str], assignment: Assignment) -> Plan:
    """Turn (vendor_index, price) picks into a Plan."""
    mask = 0
    selected = []
    for item_id, (vendor_index, price) in zip(items, assignment):
        mask |= 1 << vendor_index
        selected.append(
            SelectedItem(id=item_id, vendor=index.vendor_name(vendor_index), price=price)
        )
    vendors = index.vendor_names_for_mask(mask)
    return Plan(
        selected_items=selected,
        total_cost=sum(item.price for item in selected),
        vendor_count=len(vendors),
        vendors=vendors,
    )


def solve_best_plan(
    index: CatalogIndex,
    requested_ids: Sequence[str],
    options: Optional[SearchOptions] = None,
    strategy: str = "optimized",
    reconstruction: str = "replay",
) -> SolverResult:
    """
    Find the cheapest way to buy every requested item.

    Args:
        index: CatalogIndex built from the vendor inventories
        requested_ids: Distinct item ids, N >= 1
        options: SearchOptions for the branch-and-bound strategy
        strategy: "optimized", "dp" or "brute"
        reconstruction: "replay" or "recorded"

    Returns:
        SolverResult with status "optimal" and a Plan, or status
        "infeasible" listing the items nobody stocks

    Raises:
        InvalidRequestError: If the request is empty, has duplicates or is too large
        ValueError: If strategy or reconstruction is unknown
        SearchTimeoutError: If options.time_limit_sec expires
    """
    if strategy not in STRATEGIES:
        raise ValueError(f"Unknown strategy '{strategy}', expected one of {STRATEGIES}")
    if reconstruction not in RECONSTRUCTION_MODES:
        raise ValueError(
            f"Unknown reconstruction '{reconstruction}', expected one of {RECONSTRUCTION_MODES}"
        )

    items = validate_request(index, requested_ids)
    logger.info(f"🛒 Solving for {len(items)} items with strategy '{strategy}'")

    missing = [item_id for item_id in items if not index.has_item(item_id)]
    if missing:
        logger.warning(f"✗ No vendor stocks: {missing}")
        return SolverResult(
            status=STATUS_INFEASIBLE,
            requested_items=items,
            strategy=strategy,
            missing_items=missing,
        )

    if strategy == "optimized":
        session = SearchSession(index, items, options)
        outcome = session.run()
        bounds = session.bounds
    elif strategy == "dp":
        outcome = solve_plain_dp(index, items)
        bounds = None
    else:
        outcome = solve_brute_force(index, items)
        bounds = None

    if not outcome.feasible:
        return SolverResult(
            status=STATUS_INFEASIBLE,
            requested_items=items,
            strategy=strategy,
            stats=outcome.stats,
        )

    if reconstruction == "replay":
        assignment = reconstruct_plan(
            index,
            items,
            outcome.total_cost,
            outcome.vendor_count,
            bounds=bounds or BoundEstimator(index, items),
        )
    else:
        assignment = outcome.assignment

    plan = build_plan(index, items, assignment)
    if (plan.total_cost, plan.vendor_count) != (outcome.total_cost, outcome.vendor_count):
        raise ReconstructionError(
            f"Plan ({plan.total_cost}, {plan.vendor_count}) does not match the optimum "
            f"({outcome.total_cost}, {outcome.vendor_count})"
        )

    return SolverResult(
        status=STATUS_OPTIMAL,
        requested_items=items,
        strategy=strategy,
        plan=plan,
        stats=outcome.stats,
    )


# ============================================================================
# UTILITY FUNCTION: Display results in a human-readable format
# ============================================================================

def print_solver_result(result: SolverResult, show_stats: bool = False) -> None:
    """Pretty-print the solver result."""
    print("\n" + "=" * 80)
    print("🏆 BEST PURCHASE PLAN")
    print("=" * 80)

    if not result.feasible:
        print("\n❌ No plan exists for this request.")
        if result.missing_items:
            print(f"   Not stocked by any vendor: {', '.join(result.missing_items)}")
        print("=" * 80)
        return

    plan = result.plan
    print(f"\n🛒 Items:")
    print("-" * 80)
    for item in plan.selected_items:
        print(f"  • {item.id:20} @ {item.vendor:15} = {item.price:>8}")

    print(f"{'─' * 80}")
    print(f"🎯 TOTAL COST: {plan.total_cost}")
    print(f"🏪 Vendors ({plan.vendor_count}): {', '.join(plan.vendors)}")

    if show_stats:
        stats = result.stats
        print(f"\n⚡ Performance Stats:")
        print(f"   Time: {stats.elapsed_ms:.3f}ms")
        print(f"   States explored: {stats.states_explored}")
        print(f"   States pruned: {stats.states_pruned}")
        print(f"   Memo cache hits: {stats.memo_hits}")
        print(f"   Pruning ratio: {stats.pruning_ratio * 100:.1f}%")

    print("=" * 80)
