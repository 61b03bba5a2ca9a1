"""Shared pytest fixtures for all tests."""
from __future__ import annotations

import random
from typing import Callable, Dict, List, Tuple

import pytest

from catalog_index import CatalogIndex, build_catalog_index


Catalog = Dict[str, List[Tuple[str, int]]]


def make_random_catalog(
    seed: int,
    vendors: int = 4,
    items: int = 8,
    max_price: int = 20,
    stock_probability: float = 0.6,
) -> Catalog:
    """
    Random catalog where every item is stocked by at least one vendor.

    Small max_price values produce many cost ties.
    """
    rng = random.Random(seed)
    vendor_names = [f"vendor_{i}" for i in range(vendors)]
    catalog: Catalog = {name: [] for name in vendor_names}
    for i in range(items):
        item_id = f"item_{i}"
        stocked = [name for name in vendor_names if rng.random() < stock_probability]
        if not stocked:
            stocked = [rng.choice(vendor_names)]
        for name in stocked:
            catalog[name].append((item_id, rng.randint(1, max_price)))
    return catalog


@pytest.fixture
def random_catalog() -> Callable[..., Catalog]:
    """Factory for seeded random catalogs."""
    return make_random_catalog


@pytest.fixture
def two_vendor_catalog() -> Catalog:
    """V1 sells A=100, B=50; V2 sells A=90, B=60."""
    return {
        "V1": [("A", 100), ("B", 50)],
        "V2": [("A", 90), ("B", 60)],
    }


@pytest.fixture
def tie_catalog() -> Catalog:
    """
    Two plans cost 100: {V2, V3} and {V1}. Greedy picks the two-vendor plan
    because V2 and V3 get the lower vendor indexes.
    """
    return {
        "V2": [("A", 50)],
        "V3": [("B", 50)],
        "V1": [("A", 50), ("B", 50)],
    }


@pytest.fixture
def two_vendor_index(two_vendor_catalog: Catalog) -> CatalogIndex:
    return build_catalog_index(two_vendor_catalog)


@pytest.fixture
def tie_index(tie_catalog: Catalog) -> CatalogIndex:
    return build_catalog_index(tie_catalog)


@pytest.fixture
def shops_json_catalog() -> dict:
    """Catalog in the generated shops.json layout."""
    return {
        "shopCount": 3,
        "shops": {
            "shop_a": [{"101": "120"}, {"202": "35"}, {"303": "80"}],
            "shop_b": [{"101": "110"}, {"303": "95"}],
            "shop_c": [{"202": "30"}, {"303": "78"}, {"404": "15"}],
        },
    }
