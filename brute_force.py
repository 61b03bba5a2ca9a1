"""
Reference strategies without branch-and-bound

- solve_brute_force(): enumerates every combination of vendor choices
  (prod of option counts, fine for small requests). Used as the oracle.
- solve_plain_dp(): exact DP over (item index, vendor mask) with
  memoization only. Same state space as the search engine, no pruning.

Both use the same objective as the search engine: minimum total cost, then
minimum number of distinct vendors. They return SearchOutcome so every
strategy is interchangeable in the solver and the benchmark.
"""

import logging
import time
from typing import Dict, List, Optional, Sequence, Tuple

from catalog_index import CatalogIndex
from search_engine import (
    INF,
    Assignment,
    SearchOutcome,
    SearchStats,
    popcount,
    recursion_headroom,
)

logger = logging.getLogger(__name__)


def solve_brute_force(index: CatalogIndex, items: Sequence[str]) -> SearchOutcome:
    """Try every purchase combination; keep the lexicographically best."""
    start = time.perf_counter()
    items = list(items)
    stats = SearchStats()

    best_cost = INF
    best_count = INF
    best_selection: Optional[Assignment] = None
    current: List[Tuple[int, int]] = []

    def backtrack(i: int, cost: int, mask: int) -> None:
        nonlocal best_cost, best_count, best_selection

        if i == len(items):
            count = popcount(mask)
            if cost < best_cost or (cost == best_cost and count < best_count):
                best_cost = cost
                best_count = count
                best_selection = tuple(current)
            return

        stats.states_explored += 1
        for option in index.options_for(items[i]):
            current.append((option.vendor_index, option.price))
            backtrack(i + 1, cost + option.price, mask | (1 << option.vendor_index))
            current.pop()

    with recursion_headroom(len(items)):
        backtrack(0, 0, 0)
    stats.elapsed_ms = (time.perf_counter() - start) * 1000

    if best_selection is None:
        return SearchOutcome.infeasible(stats)
    return SearchOutcome.from_assignment(best_selection, stats)


def solve_plain_dp(index: CatalogIndex, items: Sequence[str]) -> SearchOutcome:
    """
    Dynamic programming with memoization on (item_index, vendor_mask).

    Time complexity: O(N x 2^V) states in the worst case.
    """
    start = time.perf_counter()
    items = list(items)
    n = len(items)
    stats = SearchStats()

    # (i, mask) -> (added cost, final vendor count, choice)
    memo: Dict[Tuple[int, int], Tuple[float, float, Optional[Tuple[int, int]]]] = {}

    def dp(i: int, mask: int) -> Tuple[float, float, Optional[Tuple[int, int]]]:
        if i == n:
            return 0, popcount(mask), None

        key = (i, mask)
        if key in memo:
            stats.memo_hits += 1
            return memo[key]

        stats.states_explored += 1
        best = (INF, INF, None)
        for option in index.options_for(items[i]):
            future_cost, final_count, _ = dp(i + 1, mask | (1 << option.vendor_index))
            if future_cost == INF:
                continue
            total = option.price + future_cost
            if (total, final_count) < best[:2]:
                best = (total, final_count, (option.vendor_index, option.price))

        memo[key] = best
        return best

    with recursion_headroom(n):
        total_cost, _, _ = dp(0, 0)
    stats.elapsed_ms = (time.perf_counter() - start) * 1000

    if total_cost == INF:
        return SearchOutcome.infeasible(stats)

    # Follow the recorded choices from the initial state
    picks = []
    mask = 0
    for i in range(n):
        choice = memo[(i, mask)][2]
        picks.append(choice)
        mask |= 1 << choice[0]

    logger.debug(f"Plain DP explored {stats.states_explored} states")
    return SearchOutcome.from_assignment(tuple(picks), stats)
