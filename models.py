"""
SQLAlchemy ORM Models for catalog storage

Tables:
- vendors: vendors, in the order they were added (sets vendor index order)
- items: distinct item identifiers
- prices: price of an item at a vendor (one row per item/vendor pair)
"""

from datetime import datetime

from sqlalchemy import (
    Column, Integer, String, DateTime, ForeignKey, Index, UniqueConstraint
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class Vendor(Base):
    """A vendor whose inventory is part of the catalog"""
    __tablename__ = 'vendors'

    id = Column(Integer, primary_key=True)
    name = Column(String(255), unique=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    prices = relationship("Price", back_populates="vendor", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Vendor {self.name}>"


class Item(Base):
    """A purchasable item identifier"""
    __tablename__ = 'items'

    id = Column(Integer, primary_key=True)
    code = Column(String(255), unique=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    prices = relationship("Price", back_populates="item", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Item {self.code}>"


class Price(Base):
    """Price of an item at a vendor, in integer minor units"""
    __tablename__ = 'prices'
    __table_args__ = (
        UniqueConstraint('item_id', 'vendor_id', name='unique_item_vendor'),
        Index('idx_item_id', 'item_id'),
        Index('idx_vendor_id', 'vendor_id'),
    )

    id = Column(Integer, primary_key=True)
    item_id = Column(Integer, ForeignKey('items.id'), nullable=False)
    vendor_id = Column(Integer, ForeignKey('vendors.id'), nullable=False)
    price = Column(Integer, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    item = relationship("Item", back_populates="prices")
    vendor = relationship("Vendor", back_populates="prices")

    def __repr__(self):
        return f"<Price {self.item.code} @ {self.vendor.name}: {self.price}>"
