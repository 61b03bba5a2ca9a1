"""
Search Engine - memoized branch-and-bound over (item index, vendor mask)

This module implements the "Brain" that finds the cheapest way to buy every
requested item, breaking cost ties by the number of distinct vendors visited.

State machine:
- State: (i, mask) = purchases decided for items[0:i], touching the vendors in mask
- Initial: (0, 0); terminal: i == N
- Transition: for each option (v, p) of items[i]: (i, mask) -> (i + 1, mask | 1 << v), cost += p

Objective: lexicographic (total cost, vendor count).

Pruning, in order (each rule can be switched off; none changes the optimum):
1. Cost prune: (cost, vendors so far) is already no better than the incumbent
2. Lower-bound prune: (cost + cheapest completion, vendors so far) is no better
3. Option prune: options are tried cheapest first; stop once cost + price
   exceeds the incumbent cost, skip an option that ties it without saving a vendor

Memoization: each (i, mask) maps either to its exact optimal completion
(added cost, final vendor count, chosen option) or to a proven lower bound on
that completion. Exact entries are reused unconditionally. A lower bound only
prunes a revisit that cannot beat the incumbent; otherwise the state is
searched again from the new accumulated cost.

All mutable search state (incumbent, memo, stats) lives on a SearchSession,
so independent solves never share anything.
"""

import logging
import sys
import time
from contextlib import contextmanager
from dataclasses import dataclass, asdict, field
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple

from bounds import BoundEstimator
from catalog_index import CatalogIndex
from errors import SearchTimeoutError

logger = logging.getLogger(__name__)

INF = float('inf')

# Frames kept free on top of the search depth
_RECURSION_HEADROOM = 200

Assignment = Tuple[Tuple[int, int], ...]  # (vendor_index, price) per requested item


def popcount(mask: int) -> int:
    """Number of vendors set in a vendor mask."""
    return bin(mask).count("1")


@contextmanager
def recursion_headroom(depth: int):
    """Temporarily raise the interpreter recursion limit for a depth-first walk."""
    previous = sys.getrecursionlimit()
    needed = depth + _RECURSION_HEADROOM
    if needed > previous:
        sys.setrecursionlimit(needed)
    try:
        yield
    finally:
        if needed > previous:
            sys.setrecursionlimit(previous)


@dataclass
class SearchOptions:
    """Switches for the search. Every combination returns the same optimum."""
    cost_prune: bool = True
    lower_bound_prune: bool = True
    option_prune: bool = True
    memoize: bool = True
    greedy_seed: bool = True
    time_limit_sec: Optional[float] = None


@dataclass
class SearchStats:
    """Counters collected during one solve."""
    states_explored: int = 0
    states_pruned: int = 0
    memo_hits: int = 0
    elapsed_ms: float = 0.0

    @property
    def pruning_ratio(self) -> float:
        total = self.states_explored + self.states_pruned
        return self.states_pruned / total if total else 0.0

    def to_dict(self) -> Dict:
        result = asdict(self)
        result["elapsed_ms"] = round(self.elapsed_ms, 3)
        result["pruning_ratio"] = round(self.pruning_ratio, 4)
        return result


@dataclass
class SearchOutcome:
    """Result of a search strategy. total_cost is None when infeasible."""
    feasible: bool
    total_cost: Optional[int]
    vendor_count: Optional[int]
    vendor_mask: int
    assignment: Assignment
    stats: SearchStats = field(default_factory=SearchStats)

    @classmethod
    def infeasible(cls, stats: Optional[SearchStats] = None) -> "SearchOutcome":
        return cls(
            feasible=False,
            total_cost=None,
            vendor_count=None,
            vendor_mask=0,
            assignment=(),
            stats=stats or SearchStats(),
        )

    @classmethod
    def from_assignment(cls, assignment: Assignment, stats: SearchStats) -> "SearchOutcome":
        mask = 0
        for vendor_index, _ in assignment:
            mask |= 1 << vendor_index
        return cls(
            feasible=True,
            total_cost=sum(price for _, price in assignment),
            vendor_count=popcount(mask),
            vendor_mask=mask,
            assignment=tuple(assignment),
            stats=stats,
        )


class MemoEntry(NamedTuple):
    exact: bool
    cost: float  # added cost of the completion (or a lower bound on it)
    count: float  # final vendor count (or a lower bound on it)
    choice: Optional[Tuple[int, int]]  # option taken at this state, exact entries only


class SearchSession:
    """
    One branch-and-bound solve for a fixed catalog and request.

    Args:
        index: Catalog index (read-only)
        items: Requested item ids, in order
        options: SearchOptions (defaults: every optimization on)
    """

    def __init__(
        self,
        index: CatalogIndex,
        items: Sequence[str],
        options: Optional[SearchOptions] = None,
    ):
        self.index = index
        self.items = list(items)
        self.options = options or SearchOptions()
        self.bounds = BoundEstimator(index, self.items)
        self.item_options = [index.sorted_options(item_id) for item_id in self.items]

        # Incumbent: best complete plan seen so far
        self.best_cost: float = INF
        self.best_count: float = INF
        self.best_assignment: Optional[Assignment] = None

        self.memo: Dict[Tuple[int, int], MemoEntry] = {}
        self.stats = SearchStats()
        self._path: List[Tuple[int, int]] = []
        self._deadline: Optional[float] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(self) -> SearchOutcome:
        """Search for the optimal plan. Infeasibility is reported, not raised."""
        start = time.perf_counter()
        n = len(self.items)

        missing = [item_id for item_id, opts in zip(self.items, self.item_options) if not opts]
        if missing:
            logger.info(f"✗ Infeasible request: no vendor stocks {missing}")
            return SearchOutcome.infeasible(self.stats)

        if self.options.greedy_seed:
            greedy = self.bounds.greedy_upper_bound()
            self.best_cost = greedy.cost
            self.best_count = greedy.vendor_count
            self.best_assignment = greedy.picks
            logger.info(f"📊 Initial greedy upper bound: {greedy.cost} ({greedy.vendor_count} vendors)")

        if self.options.time_limit_sec is not None:
            self._deadline = time.monotonic() + self.options.time_limit_sec

        logger.info(f"🔍 Searching {n} items across {self.index.vendor_count} vendors")

        with recursion_headroom(n):
            self._search(0, 0, 0)

        self.stats.elapsed_ms = (time.perf_counter() - start) * 1000

        if self.best_assignment is None:
            logger.info("✗ Search finished without a feasible plan")
            return SearchOutcome.infeasible(self.stats)

        outcome = SearchOutcome.from_assignment(self.best_assignment, self.stats)
        logger.info(
            f"✓ Optimal cost {outcome.total_cost} with {outcome.vendor_count} vendors "
            f"(explored={self.stats.states_explored}, pruned={self.stats.states_pruned}, "
            f"memo hits={self.stats.memo_hits}, {self.stats.elapsed_ms:.3f}ms)"
        )
        return outcome

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def _search(self, i: int, mask: int, cost: int) -> Optional[Tuple[int, int]]:
        """
        Explore state (i, mask) reached with accumulated cost.

        Returns:
            (added cost, final vendor count) of the best completion if it beats
            the incumbent (which it then becomes), otherwise None
        """
        if self._deadline is not None and time.monotonic() > self._deadline:
            raise SearchTimeoutError(
                f"Search exceeded {self.options.time_limit_sec}s "
                f"after exploring {self.stats.states_explored} states"
            )

        count = popcount(mask)

        # PRUNING 1: nothing added from here can make this branch cheaper
        if self.options.cost_prune and (cost, count) >= (self.best_cost, self.best_count):
            self.stats.states_pruned += 1
            return None

        # Base case: all items purchased
        if i == len(self.items):
            if (cost, count) < (self.best_cost, self.best_count):
                self._set_incumbent(cost, count, tuple(self._path))
                return 0, count
            return None

        key = (i, mask)
        if self.options.memoize:
            entry = self.memo.get(key)
            if entry is not None:
                hit = self._reuse(entry, i, mask, cost)
                if hit is not False:
                    return hit

        options = self.item_options[i]
        if not options:
            self._remember_bound(key, INF, INF)
            return None

        # PRUNING 2: even the cheapest completion cannot beat the incumbent
        floor = self.bounds.lower_bound(i)
        if self.options.lower_bound_prune and (cost + floor, count) >= (self.best_cost, self.best_count):
            self.stats.states_pruned += 1
            self._remember_bound(key, self.best_cost - cost, self.best_count)
            return None

        self.stats.states_explored += 1

        found: Optional[MemoEntry] = None
        for option in options:
            option_cost = cost + option.price
            new_mask = mask | (1 << option.vendor_index)

            # PRUNING 3: options are sorted, so every later option costs at least as much
            if self.options.option_prune:
                if option_cost > self.best_cost:
                    self.stats.states_pruned += 1
                    break
                if (option_cost, popcount(new_mask)) >= (self.best_cost, self.best_count):
                    self.stats.states_pruned += 1
                    continue

            self._path.append((option.vendor_index, option.price))
            result = self._search(i + 1, new_mask, option_cost)
            self._path.pop()

            if result is None:
                continue

            # Each success tightened the incumbent, so the latest one is the best
            future_cost, final_count = result
            found = MemoEntry(
                exact=True,
                cost=option.price + future_cost,
                count=final_count,
                choice=(option.vendor_index, option.price),
            )

        if found is not None:
            if self.options.memoize:
                self.memo[key] = found
            return found.cost, found.count

        # No completion beats the incumbent, which did not move during this subtree
        self._remember_bound(key, self.best_cost - cost, self.best_count)
        return None

    def _reuse(self, entry: MemoEntry, i: int, mask: int, cost: int):
        """
        Apply a memo entry to a revisit.

        Returns the search result for the state, or False when the state must
        be searched again.
        """
        incumbent = (self.best_cost, self.best_count)

        if entry.exact:
            self.stats.memo_hits += 1
            total = (cost + entry.cost, entry.count)
            if total < incumbent:
                completion = self._follow_chain(i, mask)
                self._set_incumbent(total[0], total[1], tuple(self._path) + completion)
                return entry.cost, entry.count
            return None

        if (cost + entry.cost, entry.count) >= incumbent:
            self.stats.memo_hits += 1
            return None
        return False

    def _remember_bound(self, key: Tuple[int, int], cost: float, count: float) -> None:
        """Record that the completion of key is no better than (cost, count)."""
        if not self.options.memoize:
            return
        current = self.memo.get(key)
        if current is not None:
            if current.exact:
                return
            if (current.cost, current.count) >= (cost, count):
                return
        self.memo[key] = MemoEntry(exact=False, cost=cost, count=count, choice=None)

    def _follow_chain(self, i: int, mask: int) -> Assignment:
        """Rebuild the optimal completion of (i, mask) from exact memo entries."""
        picks = []
        while i < len(self.items):
            entry = self.memo[(i, mask)]
            picks.append(entry.choice)
            mask |= 1 << entry.choice[0]
            i += 1
        return tuple(picks)

    def _set_incumbent(self, cost: float, count: float, assignment: Assignment) -> None:
        logger.debug(f"New incumbent: cost={cost}, vendors={count}")
        self.best_cost = cost
        self.best_count = count
        self.best_assignment = assignment


def solve_branch_and_bound(
    index: CatalogIndex,
    items: Sequence[str],
    options: Optional[SearchOptions] = None,
) -> SearchOutcome:
    """Run a fresh SearchSession for the request."""
    return SearchSession(index, items, options).run()
