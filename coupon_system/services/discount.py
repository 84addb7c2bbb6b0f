"""
Discount calculators.

Which calculator runs is decided by the coupon's targeting: medicine ids,
categories, or neither (the whole order). All calculators are pure.
"""
from typing import List, Sequence

from coupon_system.models.coupon import Coupon, DiscountType
from coupon_system.schemas.coupon import CartItem, DiscountDetails


def calculate_discount_value(eligible_amount: float, coupon: Coupon) -> float:
    """Apply the coupon's kind and value to an eligible amount, clamped to [0, eligible]."""
    if eligible_amount <= 0:
        return 0.0

    if coupon.discount_type == DiscountType.FIXED_AMOUNT:
        discount = coupon.discount_value
    elif coupon.discount_type == DiscountType.PERCENTAGE:
        discount = eligible_amount * coupon.discount_value / 100
    else:
        return 0.0

    return max(0.0, min(discount, eligible_amount))


class MedicineDiscount:
    def __init__(self, coupon: Coupon, cart_items: Sequence[CartItem]):
        self.coupon = coupon
        self.cart_items = cart_items

    def matched_items(self) -> List[CartItem]:
        targets = set(self.coupon.applicable_medicine_ids)
        return [item for item in self.cart_items if item.id in targets]

    def calculate(self) -> float:
        eligible = sum(item.line_total for item in self.matched_items())
        return calculate_discount_value(eligible, self.coupon)


class CategoryDiscount:
    def __init__(self, coupon: Coupon, cart_items: Sequence[CartItem]):
        self.coupon = coupon
        self.cart_items = cart_items

    def matched_items(self) -> List[CartItem]:
        targets = set(self.coupon.applicable_categories)
        return [item for item in self.cart_items if item.category in targets]

    def calculate(self) -> float:
        eligible = sum(item.line_total for item in self.matched_items())
        return calculate_discount_value(eligible, self.coupon)


class GeneralDiscount:
    def __init__(self, coupon: Coupon, order_total: float):
        self.coupon = coupon
        self.order_total = order_total

    def calculate(self) -> float:
        return calculate_discount_value(self.order_total, self.coupon)


def calculate_discount(coupon: Coupon, cart_items: Sequence[CartItem], order_total: float) -> DiscountDetails:
    """
    Compute the discount a coupon gives on a cart.

    Untargeted coupons discount the whole order total and report it as the
    items discount too. Targeted coupons discount only matching line items;
    when both a medicine and a category set match, the larger of the two
    discounts wins. A targeted coupon that matches nothing gives zero.
    """
    if not coupon.is_targeted:
        total = GeneralDiscount(coupon, order_total).calculate()
        return DiscountDetails(items_discount=total, total_discount=total)

    calculators = []
    medicine = MedicineDiscount(coupon, cart_items)
    if medicine.matched_items():
        calculators.append(medicine)
    category = CategoryDiscount(coupon, cart_items)
    if category.matched_items():
        calculators.append(category)

    best = max((calc.calculate() for calc in calculators), default=0.0)
    return DiscountDetails(items_discount=best, total_discount=best)
