"""
Catalog generation and request sampling

Generates synthetic vendor catalogs in the shops.json layout:

    {
      "shopCount": 20,
      "shops": {
        "shop_a": [{"123": "250"}, {"456": "75"}, ...],
        ...
      }
    }

Prices are strings that deviate no more than 20% from a per-item base price.
Also loads/saves catalog files and picks random requests from a catalog.
"""

import argparse
import json
import logging
import random
import string
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from errors import MalformedCatalogError
from solver import validate_request_size

logger = logging.getLogger(__name__)

# Configuration
MIN_SHOP_COUNT = 20
ITEM_POOL_SIZE = 30
MIN_ITEMS_PER_SHOP = 5
MAX_ITEMS_PER_SHOP = 10
MAX_PRICE_DEVIATION = 0.2


def _shop_name(i: int) -> str:
    """shop_a .. shop_z, then shop_aa, shop_ab, ..."""
    letters = string.ascii_lowercase
    name = ""
    i += 1
    while i > 0:
        i, remainder = divmod(i - 1, len(letters))
        name = letters[remainder] + name
    return f"shop_{name}"


def price_with_deviation(base: int, rng: random.Random) -> str:
    """Return base +/- up to 20% as a string, never below 1."""
    max_dev = int(base * MAX_PRICE_DEVIATION)
    price = max(1, base + rng.randint(-max_dev, max_dev))
    return str(price)


def generate_catalog(
    shop_count: int = MIN_SHOP_COUNT,
    item_pool_size: int = ITEM_POOL_SIZE,
    min_items: int = MIN_ITEMS_PER_SHOP,
    max_items: int = MAX_ITEMS_PER_SHOP,
    seed: Optional[int] = None,
) -> Dict:
    """
    Generate shops with a random assortment of items and prices.

    Args:
        shop_count: Number of shops
        item_pool_size: Number of distinct item ids (3-digit, 100-999)
        min_items: Minimum items stocked per shop
        max_items: Maximum items stocked per shop (capped at the pool size)
        seed: Random seed for reproducible catalogs

    Returns:
        {"shopCount": n, "shops": {shop name: [{item id: price}, ...]}}
    """
    if not 1 <= item_pool_size <= 900:
        raise ValueError("item_pool_size must be between 1 and 900")
    if min_items < 1 or min_items > max_items:
        raise ValueError("Need 1 <= min_items <= max_items")

    rng = random.Random(seed)

    # Step 1: pool of item ids with base prices
    item_ids = rng.sample(range(100, 1000), item_pool_size)
    base_prices = {item_id: rng.randint(10, 500) for item_id in item_ids}

    # Step 2: shops
    shops = {}
    for i in range(shop_count):
        count = rng.randint(min(min_items, item_pool_size), min(max_items, item_pool_size))
        chosen = rng.sample(item_ids, count)
        shops[_shop_name(i)] = [
            {str(item_id): price_with_deviation(base_prices[item_id], rng)}
            for item_id in chosen
        ]

    logger.info(f"✓ Generated {shop_count} shops from a pool of {item_pool_size} items")
    return {"shopCount": shop_count, "shops": shops}


def unwrap_catalog(data: Dict) -> Dict:
    """Accept either the {"shops": {...}} layout or a bare vendor mapping."""
    if not isinstance(data, dict):
        raise MalformedCatalogError("Catalog file must contain a JSON object")
    if "shops" in data and isinstance(data["shops"], dict):
        return data["shops"]
    return data


def load_catalog_file(path: Union[str, Path]) -> Dict:
    """
    Load a catalog JSON file and return the vendor -> inventory mapping.

    Raises:
        FileNotFoundError: If the file does not exist
        MalformedCatalogError: If the file is not valid JSON
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise MalformedCatalogError(f"Failed to parse {path} as JSON: {e}") from e
    catalog = unwrap_catalog(data)
    logger.info(f"Loaded catalog with {len(catalog)} vendors from {path}")
    return catalog


def save_catalog_file(catalog: Dict, path: Union[str, Path]) -> Path:
    """Write a catalog (wrapped or bare) in the shops.json layout."""
    path = Path(path)
    shops = unwrap_catalog(catalog)
    payload = {"shopCount": len(shops), "shops": shops}
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return path


def pick_random_items(
    n: int,
    item_ids: Sequence[str],
    rng: Optional[random.Random] = None,
) -> List[str]:
    """
    Pick n distinct item ids at random.

    Raises:
        InvalidRequestError: If n is not positive or exceeds the number of items
    """
    validate_request_size(n, len(item_ids))
    rng = rng or random.Random()
    return rng.sample(list(item_ids), n)


if __name__ == "__main__":
    logging.basicConfig(level=logging.WARNING)

    parser = argparse.ArgumentParser(description="Generate a random shops catalog as JSON")
    parser.add_argument("--shops", type=int, default=MIN_SHOP_COUNT, help="number of shops")
    parser.add_argument("--items", type=int, default=ITEM_POOL_SIZE, help="size of the item pool")
    parser.add_argument("--min-items", type=int, default=MIN_ITEMS_PER_SHOP)
    parser.add_argument("--max-items", type=int, default=MAX_ITEMS_PER_SHOP)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--output", "-o", default=None, help="write to file instead of stdout")
    args = parser.parse_args()

    generated = generate_catalog(
        shop_count=args.shops,
        item_pool_size=args.items,
        min_items=args.min_items,
        max_items=args.max_items,
        seed=args.seed,
    )
    if args.output:
        print(f"✓ Wrote {save_catalog_file(generated, args.output)}")
    else:
        print(json.dumps(generated, indent=2))
