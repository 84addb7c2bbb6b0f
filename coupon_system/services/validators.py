"""
Coupon rule checks.

Each validator looks at one rule and returns ``None`` when the coupon passes
or a user-facing reason when it does not. Validators never mutate anything.
``default_validators`` gives the fixed chain order used for redemption and
for the applicable-coupons listing.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence

from coupon_system.core.exceptions import MAX_TOTAL_USAGE, MAX_USAGE_PER_USER
from coupon_system.models.coupon import Coupon
from coupon_system.schemas.coupon import CartItem
from coupon_system.storage.base import CouponStorage

EXPIRED = "coupon has expired"
NOT_YET_VALID = "coupon is not yet valid"
NO_LONGER_VALID = "coupon is no longer valid"
NOT_APPLICABLE = "coupon not applicable to any items in the cart"


@dataclass
class ValidationContext:
    user_id: str
    cart_items: Sequence[CartItem]
    order_total: float
    timestamp: datetime
    deadline: Optional[float] = None


class CouponValidator(ABC):
    @abstractmethod
    def validate(self, coupon: Coupon, context: ValidationContext) -> Optional[str]:
        ...


class ExpiryDateValidator(CouponValidator):
    def validate(self, coupon, context):
        if context.timestamp > coupon.expiry_date:
            return EXPIRED
        return None


class ValidTimeWindowValidator(CouponValidator):
    """Both window boundaries are inclusive."""

    def validate(self, coupon, context):
        start, end = coupon.valid_time_window_start, coupon.valid_time_window_end
        if start is not None and context.timestamp < start:
            return NOT_YET_VALID
        if end is not None and context.timestamp > end:
            return NO_LONGER_VALID
        return None


class MinOrderValueValidator(CouponValidator):
    def validate(self, coupon, context):
        if context.order_total < coupon.min_order_value:
            return f"minimum order value of {coupon.min_order_value:.2f} required"
        return None


class ApplicableItemsValidator(CouponValidator):
    """Passes when any cart line matches the medicine ids or the categories."""

    def validate(self, coupon, context):
        if not coupon.is_targeted:
            return None

        medicine_ids = set(coupon.applicable_medicine_ids)
        categories = set(coupon.applicable_categories)
        for item in context.cart_items:
            if item.id in medicine_ids or item.category in categories:
                return None
        return NOT_APPLICABLE


class MaxUsagePerUserValidator(CouponValidator):
    """
    Early rejection from the stored per-user count.

    Only this validator touches storage, and only for coupons with a cap.
    Storage errors propagate; an absent usage record counts as zero.
    """

    def __init__(self, storage: CouponStorage):
        self.storage = storage

    def validate(self, coupon, context):
        if coupon.max_usage_per_user <= 0:
            return None

        times_used = self.storage.get_user_usage(
            context.user_id, coupon.id, deadline=context.deadline
        )
        if times_used >= coupon.max_usage_per_user:
            return MAX_USAGE_PER_USER
        return None


class MaxTotalUsageValidator(CouponValidator):
    def validate(self, coupon, context):
        if coupon.max_total_usage > 0 and coupon.current_total_usage >= coupon.max_total_usage:
            return MAX_TOTAL_USAGE
        return None


def default_validators(storage: CouponStorage) -> List[CouponValidator]:
    return [
        ExpiryDateValidator(),
        ValidTimeWindowValidator(),
        MinOrderValueValidator(),
        ApplicableItemsValidator(),
        MaxUsagePerUserValidator(storage),
        MaxTotalUsageValidator(),
    ]


def first_failure(validators: Sequence[CouponValidator], coupon: Coupon,
                  context: ValidationContext) -> Optional[str]:
    """Run the chain in order and stop at the first failing rule."""
    for validator in validators:
        reason = validator.validate(coupon, context)
        if reason is not None:
            return reason
    return None
