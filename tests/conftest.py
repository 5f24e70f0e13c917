"""
Pytest configuration and fixtures

Tests run on SQLite, which has no row locks: build_engine opens every
transaction with BEGIN IMMEDIATE, so all writers are serialized on one database
lock. Stock changes on different combinations only proceed in parallel on
PostgreSQL, where each SELECT ... FOR UPDATE locks a single row.
"""
import os

# the application engine must never reach for PostgreSQL during tests
os.environ["DATABASE_URL"] = "sqlite://"

from decimal import Decimal
from types import SimpleNamespace

import pytest
from sqlalchemy.orm import sessionmaker

from database import Base, build_engine
import models  # noqa: F401
from models import (
    Product,
    ProductStatus,
    ProductVariant,
    VariantCombination,
    VariantType,
    Vendor,
    VendorStatus,
)
from crud.variant_combination import create_combination
from services.catalog import ProductCatalog
from services.inventory_ledger import InventoryLedger


@pytest.fixture
def engine(tmp_path):
    """A file-backed SQLite database per test, so threads can share it."""
    engine = build_engine(f"sqlite:///{tmp_path / 'ledger.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


@pytest.fixture
def db(session_factory):
    """
    Session for the test body.

    SQLite takes its write lock when a transaction begins, so ledger calls made
    while this session has an open transaction must pass db=db.
    """
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def ledger(session_factory):
    return InventoryLedger(session_factory, ProductCatalog())


@pytest.fixture
def catalogue(session_factory):
    """
    Two active products from one approved vendor.

    The shirt has colour and size variants and two combinations registered;
    the tote bag is sold as a single unit and has a discounted price.
    """
    with session_factory() as db:
        vendor = Vendor(user_id="vendor-1", business_name="Adire House", status=VendorStatus.APPROVED)
        pending_vendor = Vendor(user_id="vendor-2", business_name="Late Supplies", status=VendorStatus.PENDING)
        db.add_all([vendor, pending_vendor])
        db.flush()

        shirt = Product(vendor_id=vendor.id, name="Ankara Shirt", sku="ANK-001", price=Decimal("100.00"), status=ProductStatus.ACTIVE)
        tote = Product(
            vendor_id=vendor.id,
            name="Tote Bag",
            sku="TOTE-001",
            price=Decimal("40.00"),
            discounted_price=Decimal("35.00"),
            status=ProductStatus.ACTIVE,
        )
        db.add_all([shirt, tote])
        db.flush()

        color = VariantType(name="color", display_name="Color", sort_order=0)
        size = VariantType(name="size", display_name="Size", sort_order=1)
        db.add_all([color, size])
        db.flush()

        black = ProductVariant(product_id=shirt.id, variant_type_id=color.id, name="Color", value="Black", additional_price=Decimal("0.00"))
        red = ProductVariant(product_id=shirt.id, variant_type_id=color.id, name="Color", value="Red", additional_price=Decimal("5.00"))
        large = ProductVariant(product_id=shirt.id, variant_type_id=size.id, name="Size", value="Large", additional_price=Decimal("2.50"))
        small = ProductVariant(product_id=shirt.id, variant_type_id=size.id, name="Size", value="Small", additional_price=Decimal("0.00"))
        db.add_all([black, red, large, small])
        db.commit()

        black_large = create_combination(db, shirt.id, "Black-Large", [large.id, black.id], sku_suffix="BLLA")
        red_small = create_combination(db, shirt.id, "Red-Small", [red.id, small.id], price_modifier=Decimal("1.50"), sku_suffix="RESM")
        tote_standard = create_combination(db, tote.id, "Standard", [])

        return SimpleNamespace(
            vendor_id=vendor.id,
            pending_vendor_id=pending_vendor.id,
            shirt_id=shirt.id,
            tote_id=tote.id,
            color_id=color.id,
            size_id=size.id,
            black_id=black.id,
            red_id=red.id,
            large_id=large.id,
            small_id=small.id,
            black_large_id=black_large.id,
            red_small_id=red_small.id,
            tote_standard_id=tote_standard.id,
        )


@pytest.fixture
def read_stock(session_factory):
    """Read a combination's stock through a short-lived session."""
    def _read(combination_id):
        with session_factory() as session:
            return session.get(VariantCombination, combination_id).stock
    return _read


@pytest.fixture
def stock(ledger, catalogue):
    """Supply a combination of the seeded catalogue through the ledger."""
    def _supply(combination_id, quantity, product_id=None):
        return ledger.record_supply(
            catalogue.vendor_id,
            product_id or catalogue.shirt_id,
            combination_id,
            quantity,
            None,
            "warehouse-1",
        )
    return _supply
