"""Request builders shared by the tests."""

from datetime import datetime

from coupon_system.schemas.coupon import CartItem, ValidateCouponRequest, ApplicableCouponsRequest

NOW = datetime(2026, 6, 1, 12, 0, 0)


def cart_item(item_id="med1", category="Vitamins", price=100.0, quantity=1):
    return CartItem(id=item_id, category=category, price=price, quantity=quantity)


def validate_request(code, items=None, order_total=None, timestamp=NOW):
    items = items if items is not None else [cart_item()]
    if order_total is None:
        order_total = sum(item.price * item.quantity for item in items)
    return ValidateCouponRequest(
        coupon_code=code, cart_items=items, order_total=order_total, timestamp=timestamp
    )


def applicable_request(items=None, order_total=None, timestamp=NOW):
    items = items if items is not None else [cart_item()]
    if order_total is None:
        order_total = sum(item.price * item.quantity for item in items)
    return ApplicableCouponsRequest(cart_items=items, order_total=order_total, timestamp=timestamp)
