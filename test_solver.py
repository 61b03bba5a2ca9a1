#!/usr/bin/env python3
"""
Test suite for the solver facade.

Covers:
- Purchase plans for the reference scenarios
- Infeasible and invalid requests
- Plan model validation and JSON layout
- Strategies and reconstruction modes agree
"""

import json

import pytest
from pydantic import ValidationError

from catalog_index import build_catalog_index
from conftest import make_random_catalog
from errors import InvalidRequestError, SearchTimeoutError
from search_engine import SearchOptions
from solver import (
    Plan,
    SelectedItem,
    STATUS_INFEASIBLE,
    STATUS_OPTIMAL,
    build_plan,
    print_solver_result,
    solve_best_plan,
    validate_request_size,
)


# ============================================================================
# TEST SECTION: Scenarios
# ============================================================================

def test_two_vendor_plan(two_vendor_index):
    result = solve_best_plan(two_vendor_index, ["A", "B"])

    assert result.status == STATUS_OPTIMAL
    assert result.plan.total_cost == 140
    assert result.plan.vendor_count == 2
    assert result.plan.vendors == ["V1", "V2"]
    assert [(s.id, s.vendor, s.price) for s in result.plan.selected_items] == [
        ("A", "V2", 90),
        ("B", "V1", 50),
    ]


@pytest.mark.parametrize("reconstruction", ["replay", "recorded"])
def test_tie_goes_to_fewer_vendors(tie_index, reconstruction):
    result = solve_best_plan(tie_index, ["A", "B"], reconstruction=reconstruction)

    assert result.plan.total_cost == 100
    assert result.plan.vendor_count == 1
    assert result.plan.vendors == ["V1"]


def test_unstocked_item_is_infeasible(two_vendor_index):
    result = solve_best_plan(two_vendor_index, ["C"])

    assert result.status == STATUS_INFEASIBLE
    assert not result.feasible
    assert result.plan is None
    assert result.missing_items == ["C"]
    assert result.to_dict() == {
        "status": "infeasible",
        "requestedItems": ["C"],
        "strategy": "optimized",
        "missingItems": ["C"],
    }


def test_generated_shops_catalog(shops_json_catalog):
    index = build_catalog_index(shops_json_catalog["shops"])
    result = solve_best_plan(index, ["101", "202", "303"])

    # shop_b 110 + shop_c 30 + shop_c 78
    assert result.plan.total_cost == 218
    assert result.plan.vendors == ["shop_b", "shop_c"]


def test_item_ids_are_matched_as_strings(shops_json_catalog):
    index = build_catalog_index(shops_json_catalog["shops"])
    result = solve_best_plan(index, [404])
    assert result.requested_items == ["404"]
    assert result.plan.selected_items[0].vendor == "shop_c"


# ============================================================================
# TEST SECTION: Request validation
# ============================================================================

def test_empty_request_is_rejected(two_vendor_index):
    with pytest.raises(InvalidRequestError):
        solve_best_plan(two_vendor_index, [])


def test_duplicate_items_are_rejected(two_vendor_index):
    with pytest.raises(InvalidRequestError, match="distinct"):
        solve_best_plan(two_vendor_index, ["A", "A"])


def test_request_larger_than_catalog_is_rejected(two_vendor_index):
    with pytest.raises(InvalidRequestError):
        solve_best_plan(two_vendor_index, ["A", "B", "C"])


def test_string_request_is_rejected(two_vendor_index):
    with pytest.raises(InvalidRequestError):
        solve_best_plan(two_vendor_index, "AB")


@pytest.mark.parametrize("count", [0, -1, 3, "2", 2.0, True, None])
def test_validate_request_size_rejects(count):
    with pytest.raises(InvalidRequestError):
        validate_request_size(count, 2)


def test_validate_request_size_accepts():
    assert validate_request_size(2, 2) == 2


def test_unknown_strategy_and_reconstruction(two_vendor_index):
    with pytest.raises(ValueError):
        solve_best_plan(two_vendor_index, ["A"], strategy="greedy")
    with pytest.raises(ValueError):
        solve_best_plan(two_vendor_index, ["A"], reconstruction="guess")


def test_timeout_propagates(two_vendor_index):
    with pytest.raises(SearchTimeoutError):
        solve_best_plan(two_vendor_index, ["A", "B"], options=SearchOptions(time_limit_sec=-1.0))


# ============================================================================
# TEST SECTION: Plan model and JSON
# ============================================================================

def test_plan_rejects_wrong_total():
    with pytest.raises(ValidationError):
        Plan(
            selected_items=[SelectedItem(id="A", vendor="V1", price=10)],
            total_cost=11,
            vendor_count=1,
            vendors=["V1"],
        )


def test_plan_rejects_wrong_vendor_count():
    with pytest.raises(ValueError):
        Plan(
            selected_items=[
                SelectedItem(id="A", vendor="V1", price=10),
                SelectedItem(id="B", vendor="V2", price=10),
            ],
            total_cost=20,
            vendor_count=1,
            vendors=["V1"],
        )


def test_plan_accepts_camel_case_aliases():
    plan = Plan.model_validate({
        "selectedItems": [{"id": "A", "vendor": "V1", "price": 10}],
        "totalCost": 10,
        "vendorCount": 1,
        "vendors": ["V1"],
    })
    assert plan.total_cost == 10


def test_result_json_layout(two_vendor_index):
    result = solve_best_plan(two_vendor_index, ["A", "B"])
    payload = json.loads(result.to_json(include_stats=True))

    assert payload["status"] == "optimal"
    assert payload["requestedItems"] == ["A", "B"]
    assert payload["selectedItems"] == [
        {"id": "A", "vendor": "V2", "price": 90},
        {"id": "B", "vendor": "V1", "price": 50},
    ]
    assert payload["totalCost"] == 140
    assert payload["vendorCount"] == 2
    assert payload["vendors"] == ["V1", "V2"]
    assert set(payload["stats"]) == {
        "states_explored", "states_pruned", "memo_hits", "elapsed_ms", "pruning_ratio",
    }
    assert "stats" not in result.to_dict()


def test_build_plan_orders_vendors_by_index(two_vendor_index):
    plan = build_plan(two_vendor_index, ["A", "B"], ((1, 90), (1, 60)))
    assert plan.vendors == ["V2"]
    assert plan.total_cost == 150


def test_print_solver_result(two_vendor_index, capsys):
    print_solver_result(solve_best_plan(two_vendor_index, ["A", "B"]), show_stats=True)
    out = capsys.readouterr().out
    assert "TOTAL COST: 140" in out
    assert "States explored" in out

    print_solver_result(solve_best_plan(two_vendor_index, ["C"]))
    assert "Not stocked by any vendor: C" in capsys.readouterr().out


# ============================================================================
# TEST SECTION: Strategies
# ============================================================================

@pytest.mark.parametrize("seed", range(12))
def test_strategies_and_modes_agree(seed):
    index = build_catalog_index(make_random_catalog(seed, vendors=4, items=7, max_price=5))
    items = index.item_ids

    answers = set()
    for strategy in ("optimized", "dp", "brute"):
        for reconstruction in ("replay", "recorded"):
            plan = solve_best_plan(index, items, strategy=strategy, reconstruction=reconstruction).plan
            answers.add((plan.total_cost, plan.vendor_count))
    assert len(answers) == 1
