"""
Tests for discount calculation: targeting selection, kinds and clamping.
"""

from datetime import timedelta

import pytest

from coupon_system.models.coupon import Coupon, DiscountType
from coupon_system.services.discount import (
    CategoryDiscount,
    GeneralDiscount,
    MedicineDiscount,
    calculate_discount,
    calculate_discount_value,
)
from helpers import NOW, cart_item


def build_coupon(**overrides):
    data = {
        "coupon_code": "CALC",
        "expiry_date": NOW + timedelta(days=1),
        "discount_type": DiscountType.PERCENTAGE,
        "discount_value": 10.0,
        "applicable_medicine_ids": [],
        "applicable_categories": [],
    }
    data.update(overrides)
    return Coupon(**data)


class TestDiscountValue:
    def test_percentage_of_order_total(self):
        coupon = build_coupon(discount_value=10.0)
        assert calculate_discount_value(100.0, coupon) == 10.0

    def test_percentage_is_not_rounded(self):
        coupon = build_coupon(discount_value=15.0)
        assert calculate_discount_value(33.33, coupon) == 33.33 * 15 / 100

    def test_fixed_amount(self):
        coupon = build_coupon(discount_type=DiscountType.FIXED_AMOUNT, discount_value=20.0)
        assert calculate_discount_value(150.0, coupon) == 20.0

    def test_fixed_amount_capped_at_eligible_amount(self):
        coupon = build_coupon(discount_type=DiscountType.FIXED_AMOUNT, discount_value=20.0)
        assert calculate_discount_value(12.5, coupon) == 12.5

    def test_zero_eligible_amount(self):
        coupon = build_coupon(discount_type=DiscountType.FIXED_AMOUNT, discount_value=20.0)
        assert calculate_discount_value(0.0, coupon) == 0.0


class TestCalculators:
    def test_general_discount_uses_order_total(self):
        coupon = build_coupon(discount_value=10.0)
        assert GeneralDiscount(coupon, 250.0).calculate() == 25.0

    def test_medicine_discount_counts_quantity(self):
        coupon = build_coupon(applicable_medicine_ids=["med1"])
        items = [cart_item("med1", price=40.0, quantity=2), cart_item("med2", price=100.0)]
        assert MedicineDiscount(coupon, items).calculate() == 8.0

    def test_category_discount_excludes_other_categories(self):
        coupon = build_coupon(applicable_categories=["Vitamins"])
        items = [
            cart_item("med1", category="Vitamins", price=50.0),
            cart_item("med2", category="Painkillers", price=80.0),
        ]
        assert CategoryDiscount(coupon, items).calculate() == 5.0


class TestCalculateDiscount:
    def test_untargeted_coupon_discounts_whole_order(self):
        coupon = build_coupon(discount_value=10.0)
        details = calculate_discount(coupon, [cart_item(price=60.0)], 100.0)
        assert details.total_discount == 10.0
        assert details.items_discount == 10.0

    def test_targeted_coupon_discounts_matched_items_only(self):
        coupon = build_coupon(applicable_categories=["Vitamins"])
        items = [
            cart_item("med1", category="Vitamins", price=50.0),
            cart_item("med2", category="Painkillers", price=80.0),
        ]
        details = calculate_discount(coupon, items, 130.0)
        assert details.items_discount == 5.0
        assert details.total_discount == 5.0

    def test_both_targets_take_larger_discount(self):
        coupon = build_coupon(applicable_medicine_ids=["med1"], applicable_categories=["Painkillers"])
        items = [
            cart_item("med1", category="Vitamins", price=50.0),
            cart_item("med2", category="Painkillers", price=80.0),
        ]
        assert calculate_discount(coupon, items, 130.0).total_discount == 8.0

    def test_targeted_coupon_without_matches_gives_zero(self):
        coupon = build_coupon(applicable_medicine_ids=["med9"])
        assert calculate_discount(coupon, [cart_item("med1")], 100.0).total_discount == 0.0

    def test_fixed_amount_on_targeted_items_is_capped(self):
        coupon = build_coupon(
            discount_type=DiscountType.FIXED_AMOUNT,
            discount_value=30.0,
            applicable_medicine_ids=["med1"],
        )
        items = [cart_item("med1", price=10.0), cart_item("med2", price=200.0)]
        assert calculate_discount(coupon, items, 210.0).total_discount == 10.0

    @pytest.mark.parametrize("order_total,value,expected", [
        (100.0, 10.0, 10.0),
        (80.0, 25.0, 20.0),
        (0.0, 50.0, 0.0),
    ])
    def test_percentage_on_order_total(self, order_total, value, expected):
        coupon = build_coupon(discount_value=value)
        assert calculate_discount(coupon, [], order_total).total_discount == expected

    def test_deterministic(self):
        coupon = build_coupon(applicable_categories=["Vitamins"], discount_value=12.5)
        items = [cart_item("med1", category="Vitamins", price=37.0, quantity=3)]
        first = calculate_discount(coupon, items, 111.0)
        second = calculate_discount(coupon, items, 111.0)
        assert first == second
