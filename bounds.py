"""
Bound Estimator - cost ceilings and floors for the branch-and-bound search

- Greedy upper bound: buy every item from its individually cheapest vendor,
  ignoring vendor reuse. The picks form a real plan, so the search can start
  from it as the incumbent.
- Lower bound: for a suffix of the request, the sum of each item's cheapest
  price. No purchase of an item costs less than its cheapest listing, so the
  floor holds no matter which vendors end up being reused.

Suffix sums are precomputed once per request (O(N)).
"""

import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from catalog_index import CatalogIndex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GreedyBound:
    """Cheapest-vendor-per-item plan used to seed the search."""
    cost: int
    vendor_count: int
    vendor_mask: int
    picks: Tuple[Tuple[int, int], ...]  # (vendor_index, price) per item
    feasible: bool


class BoundEstimator:
    """Bounds for one requested item sequence against one catalog index."""

    def __init__(self, index: CatalogIndex, items: Sequence[str]):
        self.index = index
        self.items = list(items)

        # suffix_floor[i] = sum of cheapest prices for items[i:]
        self.suffix_floor: List[int] = [0] * (len(self.items) + 1)
        for i in range(len(self.items) - 1, -1, -1):
            options = index.sorted_options(self.items[i])
            cheapest = options[0].price if options else 0
            self.suffix_floor[i] = self.suffix_floor[i + 1] + cheapest

    def lower_bound(self, from_index: int) -> int:
        """Minimum possible cost of items[from_index:]."""
        return self.suffix_floor[from_index]

    def greedy_upper_bound(self) -> GreedyBound:
        """Buy each item from its cheapest vendor (ties: lowest vendor index)."""
        total = 0
        mask = 0
        picks = []
        feasible = True

        for item_id in self.items:
            options = self.index.sorted_options(item_id)
            if not options:
                feasible = False
                continue
            cheapest = options[0]
            total += cheapest.price
            mask |= 1 << cheapest.vendor_index
            picks.append((cheapest.vendor_index, cheapest.price))

        bound = GreedyBound(
            cost=total,
            vendor_count=bin(mask).count("1"),
            vendor_mask=mask,
            picks=tuple(picks),
            feasible=feasible,
        )
        logger.debug(f"Greedy upper bound: {bound.cost} ({bound.vendor_count} vendors)")
        return bound


def greedy_upper_bound(index: CatalogIndex, items: Sequence[str]) -> GreedyBound:
    return BoundEstimator(index, items).greedy_upper_bound()


def lower_bound(index: CatalogIndex, items: Sequence[str], from_index: int) -> int:
    return BoundEstimator(index, items).lower_bound(from_index)
