# Import all models to register them with SQLModel
from coupon_system.models.coupon import Coupon, UserCouponUsage, DiscountType, UsageType

__all__ = [
    "Coupon",
    "UserCouponUsage",
    "DiscountType",
    "UsageType",
]
