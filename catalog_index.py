"""
Catalog Index - vendor inventories turned into searchable price options

This module defines:
1. PriceOption: one (vendor, price) choice for an item
2. CatalogIndex: item -> price options, plus the vendor name <-> index bijection
3. build_catalog_index(): parse a raw vendor -> inventory mapping
4. Price matrix export (pandas) for presenters

Vendor indexes are dense (0..V-1) and assigned in first-appearance order.
They are the bit positions of the vendor mask used by the search engine,
so the number of vendors is capped by the configured mask width.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterator, List, Optional, Tuple

import pandas as pd

from errors import MalformedCatalogError, VendorCapacityError

logger = logging.getLogger(__name__)

DEFAULT_MAX_VENDORS = 64

# vendor name -> [(item id, price), ...]
CatalogInput = Mapping


# ============================================================================
# STEP 1: DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True)
class PriceOption:
    """One vendor offering an item at a price (integer minor units)."""
    vendor_index: int
    price: int


@dataclass(frozen=True, eq=False)
class CatalogIndex:
    """
    Immutable lookup structures built once per catalog.

    Attributes:
        item_to_options: item id -> options in vendor-major first-seen order
        sorted_item_options: item id -> options ascending by price (ties by vendor index)
        vendor_names: vendor names ordered by vendor index
        vendor_index: vendor name -> vendor index
    """
    item_to_options: Dict[str, Tuple[PriceOption, ...]]
    sorted_item_options: Dict[str, Tuple[PriceOption, ...]]
    vendor_names: Tuple[str, ...]
    vendor_index: Dict[str, int]

    @property
    def item_ids(self) -> List[str]:
        """All distinct item ids, in first-seen order."""
        return list(self.item_to_options.keys())

    @property
    def vendor_count(self) -> int:
        return len(self.vendor_names)

    def has_item(self, item_id: str) -> bool:
        return bool(self.item_to_options.get(item_id))

    def options_for(self, item_id: str) -> Tuple[PriceOption, ...]:
        """Options for an item in catalog order (empty if nobody stocks it)."""
        return self.item_to_options.get(item_id, ())

    def sorted_options(self, item_id: str) -> Tuple[PriceOption, ...]:
        """Options for an item, cheapest first."""
        return self.sorted_item_options.get(item_id, ())

    def vendor_name(self, vendor_index: int) -> str:
        return self.vendor_names[vendor_index]

    def vendor_names_for_mask(self, mask: int) -> List[str]:
        """Names of the vendors whose bits are set in mask, by vendor index."""
        return [
            name for i, name in enumerate(self.vendor_names)
            if mask & (1 << i)
        ]

    def to_price_matrix(self, item_ids: Optional[List[str]] = None) -> pd.DataFrame:
        """
        Two-sided price matrix: rows are items, columns are vendors.

        If an item is not stocked by a vendor, the value is float('inf').
        """
        rows = item_ids if item_ids is not None else self.item_ids
        matrix = pd.DataFrame(
            data=float('inf'),
            index=rows,
            columns=list(self.vendor_names),
            dtype=float
        )
        for item_id in rows:
            for option in self.options_for(item_id):
                matrix.loc[item_id, self.vendor_names[option.vendor_index]] = option.price
        return matrix


# ============================================================================
# STEP 2: PARSING
# ============================================================================

def parse_price(value: Any) -> int:
    """
    Parse a catalog price into a non-negative integer.

    Accepts ints, floats, Decimals and decimal-formatted strings
    ("120", "120.00", "1e2") as long as the value is integral.

    Raises:
        MalformedCatalogError: If the value is not a finite, integral,
            non-negative number
    """
    if isinstance(value, bool):
        raise MalformedCatalogError(f"Price must be a number, got {value!r}")

    if isinstance(value, int):
        parsed = Decimal(value)
    elif isinstance(value, (float, Decimal)):
        parsed = Decimal(str(value))
    elif isinstance(value, str):
        try:
            parsed = Decimal(value.strip())
        except InvalidOperation:
            raise MalformedCatalogError(f"Price {value!r} is not a number") from None
    else:
        raise MalformedCatalogError(f"Price must be a number, got {type(value).__name__}")

    if not parsed.is_finite():
        raise MalformedCatalogError(f"Price {value!r} is not finite")
    if parsed != parsed.to_integral_value():
        raise MalformedCatalogError(f"Price {value!r} is not a whole number of minor units")
    if parsed < 0:
        raise MalformedCatalogError(f"Price {value!r} is negative")

    return int(parsed)


def iter_inventory(vendor_name: str, inventory: Any) -> Iterator[Tuple[str, Any]]:
    """Yield (item id, raw price) pairs from one vendor's inventory."""
    if isinstance(inventory, Mapping):
        for item_id, raw_price in inventory.items():
            yield str(item_id), raw_price
        return

    if isinstance(inventory, (str, bytes)) or not hasattr(inventory, "__iter__"):
        raise MalformedCatalogError(
            f"Inventory of vendor '{vendor_name}' must be a list of (item, price) entries"
        )

    for entry in inventory:
        if isinstance(entry, Mapping):
            # {"123": "250"} - the shape written by the catalog generator
            if len(entry) != 1:
                raise MalformedCatalogError(
                    f"Vendor '{vendor_name}': entry {entry!r} must hold exactly one item"
                )
            (item_id, raw_price), = entry.items()
        elif isinstance(entry, (list, tuple)) and len(entry) == 2:
            item_id, raw_price = entry
        else:
            raise MalformedCatalogError(
                f"Vendor '{vendor_name}': cannot read inventory entry {entry!r}"
            )
        yield str(item_id), raw_price


# ============================================================================
# STEP 3: INDEX CONSTRUCTION
# ============================================================================

def build_catalog_index(
    catalog: CatalogInput,
    max_vendors: Optional[int] = DEFAULT_MAX_VENDORS,
) -> CatalogIndex:
    """
    Build the catalog index from a vendor -> inventory mapping.

    Args:
        catalog: {vendor name: [(item id, price), ...]}; entries may also be
            single-key dicts {item id: price}, or the inventory a dict
        max_vendors: Vendor mask width; None for unbounded

    Returns:
        CatalogIndex (read-only for the whole solve)

    Raises:
        VendorCapacityError: If the catalog has more than max_vendors vendors
        MalformedCatalogError: If an entry or price cannot be parsed, or a
            vendor lists the same item twice
    """
    if not isinstance(catalog, Mapping):
        raise MalformedCatalogError(
            f"Catalog must map vendor names to inventories, got {type(catalog).__name__}"
        )

    if max_vendors is not None and len(catalog) > max_vendors:
        raise VendorCapacityError(len(catalog), max_vendors)

    vendor_names: List[str] = []
    vendor_index: Dict[str, int] = {}
    item_to_options: Dict[str, List[PriceOption]] = {}

    for raw_name, inventory in catalog.items():
        vendor_name = str(raw_name)
        if vendor_name in vendor_index:
            raise MalformedCatalogError(f"Vendor '{vendor_name}' appears twice")
        index = len(vendor_names)
        vendor_index[vendor_name] = index
        vendor_names.append(vendor_name)

        seen = set()
        for item_id, raw_price in iter_inventory(vendor_name, inventory):
            if item_id in seen:
                raise MalformedCatalogError(
                    f"Vendor '{vendor_name}' lists item '{item_id}' more than once"
                )
            seen.add(item_id)

            try:
                price = parse_price(raw_price)
            except MalformedCatalogError as e:
                raise MalformedCatalogError(f"Vendor '{vendor_name}', item '{item_id}': {e}") from e

            item_to_options.setdefault(item_id, []).append(PriceOption(index, price))

    frozen_options = {item_id: tuple(opts) for item_id, opts in item_to_options.items()}
    sorted_options = {
        item_id: tuple(sorted(opts, key=lambda o: (o.price, o.vendor_index)))
        for item_id, opts in frozen_options.items()
    }

    logger.info(
        f"✓ Catalog index built: {len(vendor_names)} vendors, {len(frozen_options)} items"
    )

    return CatalogIndex(
        item_to_options=frozen_options,
        sorted_item_options=sorted_options,
        vendor_names=tuple(vendor_names),
        vendor_index=vendor_index,
    )
