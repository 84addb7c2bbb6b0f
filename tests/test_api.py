"""
Tests for the HTTP routes in front of CouponService.
"""

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from coupon_system.core.config import settings
from coupon_system.main import app
from helpers import NOW


@pytest.fixture
def client(service):
    previous = app.state.coupon_service
    app.state.coupon_service = service
    yield TestClient(app)
    app.state.coupon_service = previous


@pytest.fixture
def admin_headers():
    return {"x-api-key": settings.ADMIN_API_KEY}


def coupon_payload(**overrides):
    payload = {
        "coupon_code": "API10",
        "expiry_date": (NOW + timedelta(days=30)).isoformat(),
        "usage_type": "multi_use",
        "discount_type": "percentage",
        "discount_value": 10,
        "min_order_value": 50,
        "max_usage_per_user": 1,
    }
    payload.update(overrides)
    return payload


def cart_payload(**overrides):
    payload = {
        "cart_items": [{"id": "med1", "category": "Vitamins", "price": 100.0, "quantity": 1}],
        "order_total": 100.0,
        "timestamp": NOW.isoformat(),
    }
    payload.update(overrides)
    return payload


class TestCreateCouponRoute:
    def test_create(self, client, admin_headers):
        response = client.post("/admin/coupons", json=coupon_payload(), headers=admin_headers)
        assert response.status_code == 201
        assert response.json() == {"message": "Coupon API10 created successfully"}

    def test_requires_admin_key(self, client):
        response = client.post("/admin/coupons", json=coupon_payload(), headers={"x-api-key": "wrong"})
        assert response.status_code == 401

    def test_invalid_discount_value(self, client, admin_headers):
        response = client.post("/admin/coupons", json=coupon_payload(discount_value=0), headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "discount value must be greater than 0"

    def test_duplicate(self, client, admin_headers):
        client.post("/admin/coupons", json=coupon_payload(), headers=admin_headers)
        response = client.post("/admin/coupons", json=coupon_payload(), headers=admin_headers)
        assert response.status_code == 409

    def test_unknown_discount_type(self, client, admin_headers):
        response = client.post("/admin/coupons", json=coupon_payload(discount_type="bogo"), headers=admin_headers)
        assert response.status_code == 422


class TestCouponRoutes:
    def test_validate_and_revalidate(self, client, admin_headers):
        client.post("/admin/coupons", json=coupon_payload(), headers=admin_headers)
        headers = {"X-User-ID": "user-1"}

        response = client.post("/coupons/validate", json=cart_payload(coupon_code="API10"), headers=headers)
        assert response.status_code == 200
        body = response.json()
        assert body["is_valid"] is True
        assert body["discount"] == {"items_discount": 10.0, "total_discount": 10.0}

        response = client.post("/coupons/validate", json=cart_payload(coupon_code="API10"), headers=headers)
        assert response.json() == {
            "is_valid": False,
            "message": "maximum usage per user exceeded",
            "discount": None,
        }

    def test_validate_unknown_code(self, client):
        response = client.post("/coupons/validate", json=cart_payload(coupon_code="NOPE"),
                               headers={"X-User-ID": "user-1"})
        assert response.status_code == 200
        assert response.json()["message"] == "Coupon not found"

    def test_validate_requires_user(self, client):
        response = client.post("/coupons/validate", json=cart_payload(coupon_code="API10"))
        assert response.status_code == 422

    def test_applicable(self, client, admin_headers):
        client.post("/admin/coupons", json=coupon_payload(), headers=admin_headers)
        client.post("/admin/coupons", headers=admin_headers, json=coupon_payload(
            coupon_code="PAIN", applicable_categories=["Painkillers"], max_usage_per_user=0,
        ))

        response = client.post("/coupons/applicable", json=cart_payload(), headers={"X-User-ID": "user-1"})
        assert response.status_code == 200
        assert response.json() == {"applicable_coupons": [{
            "coupon_code": "API10",
            "discount_type": "percentage",
            "discount_value": 10.0,
            "discount": 10.0,
        }]}

    def test_timezone_aware_timestamp(self, client, admin_headers):
        client.post("/admin/coupons", json=coupon_payload(), headers=admin_headers)
        payload = cart_payload(coupon_code="API10", timestamp=NOW.isoformat() + "+05:30")
        response = client.post("/coupons/validate", json=payload, headers={"X-User-ID": "user-2"})
        assert response.json()["is_valid"] is True
