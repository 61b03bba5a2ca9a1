"""
Performance benchmark: brute force vs plain DP vs branch-and-bound

For each request size, picks one random request and runs every strategy on
it, recording time, optimal cost, vendor count and search counters. A row is
flagged when strategies disagree on (cost, vendor count).

Usage:
    python benchmark.py --catalog shops.json --sizes 5 8 10 12 15
    python benchmark.py --generate --seed 7
"""

import argparse
import logging
import random
from typing import Callable, Dict, List, Optional, Sequence

import pandas as pd

from brute_force import solve_brute_force, solve_plain_dp
from catalog_generator import generate_catalog, load_catalog_file, pick_random_items
from catalog_index import CatalogIndex, build_catalog_index
from config import settings
from search_engine import SearchOutcome, SearchOptions, solve_branch_and_bound

logger = logging.getLogger(__name__)

DEFAULT_SIZES = [5, 8, 10, 12, 15]
BRUTE_FORCE_MAX_ITEMS = 10


def _strategies(options: Optional[SearchOptions]) -> Dict[str, Callable[[CatalogIndex, List[str]], SearchOutcome]]:
    return {
        "brute": solve_brute_force,
        "dp": solve_plain_dp,
        "optimized": lambda index, items: solve_branch_and_bound(index, items, options),
    }


def run_benchmark(
    index: CatalogIndex,
    sizes: Sequence[int] = DEFAULT_SIZES,
    seed: Optional[int] = None,
    brute_force_max_items: int = BRUTE_FORCE_MAX_ITEMS,
    options: Optional[SearchOptions] = None,
) -> pd.DataFrame:
    """
    Run every strategy for each request size.

    Returns:
        DataFrame with one row per (size, strategy): size, strategy, status,
        time_ms, total_cost, vendor_count, states_explored, states_pruned,
        memo_hits, match
    """
    rng = random.Random(seed)
    rows = []
    available = len(index.item_ids)

    for size in sizes:
        if size > available:
            logger.info(f"Skipping size {size}: only {available} distinct items")
            rows.append({"size": size, "strategy": "-", "status": "skipped"})
            continue

        items = pick_random_items(size, index.item_ids, rng)
        size_rows = []
        for name, strategy in _strategies(options).items():
            if name == "brute" and size > brute_force_max_items:
                size_rows.append({"size": size, "strategy": name, "status": "skipped"})
                continue

            outcome = strategy(index, items)
            size_rows.append({
                "size": size,
                "strategy": name,
                "status": "ok" if outcome.feasible else "infeasible",
                "time_ms": round(outcome.stats.elapsed_ms, 3),
                "total_cost": outcome.total_cost,
                "vendor_count": outcome.vendor_count,
                "states_explored": outcome.stats.states_explored,
                "states_pruned": outcome.stats.states_pruned,
                "memo_hits": outcome.stats.memo_hits,
            })

        answers = {
            (row["total_cost"], row["vendor_count"])
            for row in size_rows
            if row["status"] != "skipped"
        }
        for row in size_rows:
            row["match"] = len(answers) <= 1
        if len(answers) > 1:
            logger.warning(f"⚠ Results differ for size {size}: {answers}")
        rows.extend(size_rows)

    columns = [
        "size", "strategy", "status", "time_ms", "total_cost", "vendor_count",
        "states_explored", "states_pruned", "memo_hits", "match",
    ]
    return pd.DataFrame(rows, columns=columns)


def summarize(results: pd.DataFrame) -> pd.DataFrame:
    """Pivot timings to one row per size with a speedup column."""
    timed = results[results["status"] == "ok"]
    table = timed.pivot(index="size", columns="strategy", values="time_ms")
    if "dp" in table.columns and "optimized" in table.columns:
        table["speedup_vs_dp"] = (table["dp"] / table["optimized"]).round(1)
    return table


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Benchmark the purchase planning strategies")
    parser.add_argument("--catalog", default=settings.CATALOG_PATH, help="catalog JSON file")
    parser.add_argument("--generate", action="store_true", help="use a generated catalog")
    parser.add_argument("--sizes", type=int, nargs="+", default=DEFAULT_SIZES)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--brute-max", type=int, default=BRUTE_FORCE_MAX_ITEMS)
    args = parser.parse_args()

    logging.basicConfig(level=logging.WARNING)

    if args.generate:
        catalog = generate_catalog(seed=args.seed)["shops"]
    else:
        catalog = load_catalog_file(args.catalog)
    catalog_index = build_catalog_index(catalog, max_vendors=settings.max_vendors)

    print("🔬 Performance Benchmark: Brute-Force vs DP vs Branch-and-Bound\n")
    print(f"Dataset: {catalog_index.vendor_count} vendors, {len(catalog_index.item_ids)} items\n")
    print("═" * 70)

    benchmark_results = run_benchmark(
        catalog_index,
        sizes=args.sizes,
        seed=args.seed,
        brute_force_max_items=args.brute_max,
    )
    print(benchmark_results.to_string(index=False))
    print("\n" + "═" * 70)
    print(summarize(benchmark_results).to_string())

    if not benchmark_results["match"].fillna(True).all():
        print("\n⚠ Strategies disagree on at least one request!")
