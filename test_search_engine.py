#!/usr/bin/env python3
"""
Test suite for the branch-and-bound search engine.

Covers:
- Optimality against exhaustive enumeration on small random catalogs
- Vendor-count tie-break at equal cost
- Every pruning/memoization switch returns the same optimum
- Determinism, timeouts, deep requests and infeasible requests
"""

import itertools

import pytest

from brute_force import solve_brute_force, solve_plain_dp
from catalog_index import build_catalog_index
from conftest import make_random_catalog
from errors import SearchTimeoutError
from search_engine import (
    SearchOptions,
    SearchOutcome,
    SearchSession,
    SearchStats,
    popcount,
    solve_branch_and_bound,
)


def _answer(outcome: SearchOutcome):
    return outcome.feasible, outcome.total_cost, outcome.vendor_count


def _check_assignment(index, items, outcome):
    """The recorded assignment must be a real plan with the reported totals."""
    assert len(outcome.assignment) == len(items)
    mask = 0
    for item_id, (vendor_index, price) in zip(items, outcome.assignment):
        assert any(
            o.vendor_index == vendor_index and o.price == price
            for o in index.options_for(item_id)
        )
        mask |= 1 << vendor_index
    assert sum(price for _, price in outcome.assignment) == outcome.total_cost
    assert popcount(mask) == outcome.vendor_count
    assert mask == outcome.vendor_mask


# ============================================================================
# TEST SECTION: Optimality
# ============================================================================

@pytest.mark.parametrize("seed", range(40))
def test_matches_brute_force_on_random_catalogs(seed):
    vendors = 2 + seed % 4
    items = 3 + seed % 6
    # small prices make equal-cost plans common
    max_price = 4 if seed % 2 else 30
    index = build_catalog_index(make_random_catalog(seed, vendors=vendors, items=items, max_price=max_price))
    request = index.item_ids

    expected = solve_brute_force(index, request)
    outcome = solve_branch_and_bound(index, request)

    assert _answer(outcome) == _answer(expected)
    _check_assignment(index, request, outcome)


@pytest.mark.parametrize("seed", range(10))
def test_matches_plain_dp(seed):
    index = build_catalog_index(make_random_catalog(seed, vendors=6, items=12, max_price=6))
    request = index.item_ids

    assert _answer(solve_branch_and_bound(index, request)) == _answer(solve_plain_dp(index, request))


def test_two_vendor_example(two_vendor_index):
    outcome = solve_branch_and_bound(two_vendor_index, ["A", "B"])
    assert outcome.total_cost == 140
    assert outcome.vendor_count == 2
    assert outcome.assignment == ((1, 90), (0, 50))


def test_single_item_request(two_vendor_index):
    outcome = solve_branch_and_bound(two_vendor_index, ["B"])
    assert (outcome.total_cost, outcome.vendor_count) == (50, 1)
    assert outcome.assignment == ((0, 50),)


def test_request_order_does_not_change_the_optimum(two_vendor_index):
    forward = solve_branch_and_bound(two_vendor_index, ["A", "B"])
    backward = solve_branch_and_bound(two_vendor_index, ["B", "A"])
    assert _answer(forward) == _answer(backward)


# ============================================================================
# TEST SECTION: Vendor-count tie-break
# ============================================================================

def test_equal_cost_prefers_fewer_vendors(tie_index):
    outcome = solve_branch_and_bound(tie_index, ["A", "B"])
    assert outcome.total_cost == 100
    assert outcome.vendor_count == 1
    assert tie_index.vendor_names_for_mask(outcome.vendor_mask) == ["V1"]


def test_tie_break_found_without_greedy_seed(tie_index):
    outcome = solve_branch_and_bound(tie_index, ["A", "B"], SearchOptions(greedy_seed=False))
    assert (outcome.total_cost, outcome.vendor_count) == (100, 1)


def test_cheaper_plan_wins_over_fewer_vendors():
    index = build_catalog_index({
        "solo": [("A", 10), ("B", 10)],
        "a_only": [("A", 4)],
        "b_only": [("B", 5)],
    })
    outcome = solve_branch_and_bound(index, ["A", "B"])
    assert (outcome.total_cost, outcome.vendor_count) == (9, 2)


def test_equal_price_goes_to_an_already_visited_vendor():
    # Greedy buys C at y (lower index), visiting x, y and z for 14
    index = build_catalog_index({
        "x": [("A", 1)],
        "y": [("B", 5), ("C", 9)],
        "z": [("A", 2), ("B", 4), ("C", 9)],
    })
    outcome = solve_branch_and_bound(index, ["A", "B", "C"])
    assert outcome.total_cost == 14
    assert outcome.vendor_count == 2
    assert index.vendor_names_for_mask(outcome.vendor_mask) == ["x", "z"]


# ============================================================================
# TEST SECTION: Pruning and memoization switches
# ============================================================================

SWITCHES = list(itertools.product([True, False], repeat=5))


@pytest.mark.parametrize("cost_prune, lower_bound_prune, option_prune, memoize, greedy_seed", SWITCHES)
def test_every_switch_combination_agrees(cost_prune, lower_bound_prune, option_prune, memoize, greedy_seed):
    options = SearchOptions(
        cost_prune=cost_prune,
        lower_bound_prune=lower_bound_prune,
        option_prune=option_prune,
        memoize=memoize,
        greedy_seed=greedy_seed,
    )
    for seed in (3, 11, 27):
        index = build_catalog_index(make_random_catalog(seed, vendors=4, items=7, max_price=3))
        request = index.item_ids
        expected = solve_brute_force(index, request)

        outcome = solve_branch_and_bound(index, request, options)

        assert _answer(outcome) == _answer(expected)
        _check_assignment(index, request, outcome)


def test_pruning_counters():
    index = build_catalog_index(make_random_catalog(5, vendors=8, items=14, max_price=50))
    request = index.item_ids

    unpruned = solve_branch_and_bound(
        index,
        request,
        SearchOptions(cost_prune=False, lower_bound_prune=False, option_prune=False),
    )
    pruned = solve_branch_and_bound(index, request)

    assert _answer(pruned) == _answer(unpruned)
    assert unpruned.stats.states_pruned == 0
    assert pruned.stats.states_pruned > 0


def test_memo_hits_are_counted():
    # Two vendors with identical inventories: different paths meet in the same state
    index = build_catalog_index({
        "p": [(f"i{k}", 1) for k in range(6)],
        "q": [(f"i{k}", 1) for k in range(6)],
    })
    outcome = solve_branch_and_bound(
        index,
        index.item_ids,
        SearchOptions(cost_prune=False, lower_bound_prune=False, option_prune=False, greedy_seed=False),
    )
    assert (outcome.total_cost, outcome.vendor_count) == (6, 1)
    assert outcome.stats.memo_hits > 0


# ============================================================================
# TEST SECTION: Determinism and sessions
# ============================================================================

def test_same_input_same_plan():
    index = build_catalog_index(make_random_catalog(8, vendors=5, items=9, max_price=3))
    first = solve_branch_and_bound(index, index.item_ids)
    second = solve_branch_and_bound(index, index.item_ids)
    assert first.assignment == second.assignment


def test_sessions_do_not_share_state(two_vendor_index, tie_index):
    first = SearchSession(two_vendor_index, ["A", "B"])
    first.run()
    second = SearchSession(tie_index, ["A", "B"])
    assert second.memo == {}
    assert second.best_assignment is None
    assert (second.run().total_cost, first.best_cost) == (100, 140)


def test_stats_to_dict():
    stats = SearchStats(states_explored=3, states_pruned=1, memo_hits=2, elapsed_ms=1.23456)
    assert stats.pruning_ratio == 0.25
    assert stats.to_dict() == {
        "states_explored": 3,
        "states_pruned": 1,
        "memo_hits": 2,
        "elapsed_ms": 1.235,
        "pruning_ratio": 0.25,
    }
    assert SearchStats().pruning_ratio == 0.0


# ============================================================================
# TEST SECTION: Limits and infeasibility
# ============================================================================

def test_expired_time_limit_raises(two_vendor_index):
    with pytest.raises(SearchTimeoutError):
        solve_branch_and_bound(two_vendor_index, ["A", "B"], SearchOptions(time_limit_sec=-1.0))


def test_generous_time_limit_finishes(two_vendor_index):
    outcome = solve_branch_and_bound(two_vendor_index, ["A", "B"], SearchOptions(time_limit_sec=30))
    assert outcome.total_cost == 140


def test_deep_request_does_not_hit_recursion_limit():
    count = 1500
    index = build_catalog_index({
        "V1": [(f"i{k}", 1) for k in range(count)],
        "V2": [(f"i{k}", 1) for k in range(count)],
    })
    outcome = solve_branch_and_bound(index, index.item_ids, SearchOptions(greedy_seed=False))
    assert outcome.total_cost == count
    assert outcome.vendor_count == 1


def test_unstocked_item_is_infeasible(two_vendor_index):
    outcome = solve_branch_and_bound(two_vendor_index, ["A", "C"])
    assert not outcome.feasible
    assert outcome.total_cost is None
    assert outcome.assignment == ()
