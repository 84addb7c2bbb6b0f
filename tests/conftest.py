"""
pytest configuration and shared fixtures for coupon system tests.
"""

from datetime import timedelta

import pytest

from coupon_system.core.cache import LRUCache
from coupon_system.db.session import build_engine, create_db_and_tables
from coupon_system.models.coupon import DiscountType
from coupon_system.schemas.coupon import CouponCreate
from coupon_system.services.coupon import CouponService
from coupon_system.storage.sql import SQLCouponStore

from helpers import NOW


@pytest.fixture
def now():
    return NOW

@pytest.fixture
def engine(tmp_path):
    """File-backed SQLite so concurrent threads use separate connections."""
    engine = build_engine(f"sqlite:///{tmp_path / 'coupons.db'}")
    create_db_and_tables(engine)
    yield engine
    engine.dispose()

@pytest.fixture
def store(engine):
    return SQLCouponStore(engine)

@pytest.fixture
def service(store):
    return CouponService(store, LRUCache(100, 600), LRUCache(100, 600))

@pytest.fixture
def make_coupon(service):
    """Create a coupon through the service; keyword arguments override the defaults."""

    def _make(**overrides):
        data = {
            "coupon_code": "TEST10",
            "expiry_date": NOW + timedelta(days=30),
            "discount_type": DiscountType.PERCENTAGE,
            "discount_value": 10.0,
        }
        data.update(overrides)
        return service.create_coupon(CouponCreate(**data))

    return _make

