"""
Solution Reconstructor - replay the request to emit one optimal assignment

Given the optimal (cost, vendor count) reported by the search, walk the items
in order and take, for each, the first option (cheapest first, preferring
vendors already visited) that can still reach the optimum:

    cost so far + price + lower_bound(rest) <= optimal cost
    vendors so far (with this option) <= optimal vendor count

The lower bound is not always tight, so a greedy choice can dead-end. The
replay backtracks in that case and caches failed (item, mask, cost) states.
Prices are integers, so comparisons are exact.
"""

import logging
from typing import List, Optional, Sequence, Set, Tuple

from bounds import BoundEstimator
from catalog_index import CatalogIndex, PriceOption
from errors import ReconstructionError
from search_engine import Assignment, popcount, recursion_headroom

logger = logging.getLogger(__name__)


def _replay_order(options: Sequence[PriceOption], mask: int) -> List[PriceOption]:
    """Cheapest first; among equal prices, vendors already in mask first."""
    return sorted(
        options,
        key=lambda o: (o.price, 0 if mask & (1 << o.vendor_index) else 1, o.vendor_index),
    )


def reconstruct_plan(
    index: CatalogIndex,
    items: Sequence[str],
    optimal_cost: int,
    optimal_vendor_count: int,
    bounds: Optional[BoundEstimator] = None,
) -> Assignment:
    """
    Rebuild an assignment with exactly the optimal cost and vendor count.

    Args:
        index: Catalog index used for the search
        items: Requested item ids, in search order
        optimal_cost: Total cost reported by the search
        optimal_vendor_count: Vendor count reported by the search
        bounds: BoundEstimator for the same request (built if omitted)

    Returns:
        Tuple of (vendor_index, price), one per requested item

    Raises:
        ReconstructionError: If no assignment reaches the given optimum
    """
    items = list(items)
    bounds = bounds or BoundEstimator(index, items)
    n = len(items)
    picks: List[Tuple[int, int]] = []
    dead_ends: Set[Tuple[int, int, int]] = set()

    def replay(i: int, mask: int, cost: int) -> bool:
        if i == n:
            return cost == optimal_cost and popcount(mask) == optimal_vendor_count

        if (i, mask, cost) in dead_ends:
            return False

        remaining_floor = bounds.lower_bound(i + 1)
        for option in _replay_order(index.sorted_options(items[i]), mask):
            option_cost = cost + option.price
            if option_cost + remaining_floor > optimal_cost:
                # sorted by price: every later option is at least as expensive
                break

            new_mask = mask | (1 << option.vendor_index)
            if popcount(new_mask) > optimal_vendor_count:
                continue

            picks.append((option.vendor_index, option.price))
            if replay(i + 1, new_mask, option_cost):
                return True
            picks.pop()

        dead_ends.add((i, mask, cost))
        return False

    with recursion_headroom(n):
        found = replay(0, 0, 0)

    if not found:
        raise ReconstructionError(
            f"No assignment of {n} items reaches cost {optimal_cost} "
            f"with {optimal_vendor_count} vendors"
        )

    logger.debug(f"Reconstructed plan after {len(dead_ends)} dead ends")
    return tuple(picks)
