"""
Catalog storage in the database

Saves vendor inventories to the vendors/items/prices tables and loads them
back as the vendor -> [(item id, price), ...] mapping that
build_catalog_index() consumes. Vendors come back in insertion order, so
vendor indexes stay stable across save/load.
"""

import logging
from collections.abc import Mapping
from typing import Dict, List, Tuple

from sqlalchemy.orm import Session

from catalog_index import iter_inventory, parse_price
from errors import MalformedCatalogError
from models import Item, Price, Vendor

logger = logging.getLogger(__name__)


class CatalogStore:
    """Read and write catalogs through a SQLAlchemy session"""

    @staticmethod
    def save_catalog(session: Session, catalog: Mapping) -> int:
        """
        Save a catalog, updating prices that already exist.

        Args:
            session: SQLAlchemy session
            catalog: {vendor name: [(item id, price), ...]}

        Returns:
            Number of price rows written

        Raises:
            MalformedCatalogError: If a price cannot be parsed (nothing is saved)
        """
        written = 0
        try:
            items_by_code: Dict[str, Item] = {
                item.code: item for item in session.query(Item).all()
            }

            for vendor_name, inventory in catalog.items():
                vendor = session.query(Vendor).filter(Vendor.name == str(vendor_name)).first()
                if not vendor:
                    vendor = Vendor(name=str(vendor_name))
                    session.add(vendor)
                    session.flush()

                for code, raw_price in iter_inventory(str(vendor_name), inventory):
                    price_value = parse_price(raw_price)

                    item = items_by_code.get(code)
                    if not item:
                        item = Item(code=code)
                        session.add(item)
                        session.flush()
                        items_by_code[code] = item

                    price = session.query(Price).filter(
                        Price.item_id == item.id,
                        Price.vendor_id == vendor.id
                    ).first()
                    if not price:
                        session.add(Price(item_id=item.id, vendor_id=vendor.id, price=price_value))
                    else:
                        price.price = price_value
                    written += 1

            session.commit()
            logger.info(f"✓ Saved {written} prices for {len(catalog)} vendors")
            return written

        except MalformedCatalogError:
            session.rollback()
            raise
        except Exception as e:
            logger.error(f"Failed to save catalog to database: {e}")
            session.rollback()
            raise

    @staticmethod
    def load_catalog(session: Session) -> Dict[str, List[Tuple[str, int]]]:
        """
        Load every vendor inventory.

        Returns:
            {vendor name: [(item id, price), ...]} in insertion order
        """
        catalog: Dict[str, List[Tuple[str, int]]] = {}
        for vendor in session.query(Vendor).order_by(Vendor.id).all():
            rows = (
                session.query(Price)
                .filter(Price.vendor_id == vendor.id)
                .order_by(Price.id)
                .all()
            )
            catalog[vendor.name] = [(row.item.code, row.price) for row in rows]

        logger.info(f"Loaded catalog with {len(catalog)} vendors from database")
        return catalog
