#!/usr/bin/env python3
"""
Best purchase plan from the command line

Usage:
    python best_price.py [number_of_items] [--catalog shops.json] [--generate]
                         [--strategy optimized|dp|brute] [--reconstruction replay|recorded]
                         [--seed S] [--stats] [--items ID ...]

Picks random distinct items from the catalog (default 5) unless --items is
given, then prints the optimal plan as JSON.

Exit codes: 0 plan found, 1 invalid input, 2 infeasible request, 3 timeout.
"""

import argparse
import logging
import random
import sys

from catalog_generator import generate_catalog, load_catalog_file, pick_random_items
from catalog_index import build_catalog_index
from config import settings
from errors import BestPriceError, SearchTimeoutError
from search_engine import SearchOptions
from solver import RECONSTRUCTION_MODES, STRATEGIES, solve_best_plan

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Find the cheapest way to buy a set of items")
    parser.add_argument("count", nargs="?", default=str(settings.DEFAULT_ITEMS),
                        help="number of random items to buy")
    parser.add_argument("--items", nargs="+", default=None, help="explicit item ids to buy")
    parser.add_argument("--catalog", default=settings.CATALOG_PATH, help="catalog JSON file")
    parser.add_argument("--generate", action="store_true", help="use a freshly generated catalog")
    parser.add_argument("--strategy", choices=STRATEGIES, default="optimized")
    parser.add_argument("--reconstruction", choices=RECONSTRUCTION_MODES,
                        default=settings.RECONSTRUCTION)
    parser.add_argument("--seed", type=int, default=None, help="random seed")
    parser.add_argument("--time-limit", type=float, default=settings.TIME_LIMIT_SEC,
                        help="search time limit in seconds")
    parser.add_argument("--stats", action="store_true", help="include search statistics")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL, logging.INFO))

    try:
        if args.generate:
            catalog = generate_catalog(seed=args.seed)["shops"]
        else:
            catalog = load_catalog_file(args.catalog)
        index = build_catalog_index(catalog, max_vendors=settings.max_vendors)

        if args.items:
            requested = args.items
        else:
            try:
                count = int(args.count)
            except ValueError:
                count = args.count
            requested = pick_random_items(count, index.item_ids, random.Random(args.seed))
            print(f"Selected items (random): {requested}")

        result = solve_best_plan(
            index,
            requested,
            options=SearchOptions(time_limit_sec=args.time_limit),
            strategy=args.strategy,
            reconstruction=args.reconstruction,
        )
    except SearchTimeoutError as e:
        print(f"⏱️  {e}", file=sys.stderr)
        return 3
    except (BestPriceError, ValueError, OSError) as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    print("\n=== Best Purchase Plan ===")
    print(result.to_json(include_stats=args.stats))

    if not result.feasible:
        print(f"❌ Could not find a solution: {result.missing_items}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
