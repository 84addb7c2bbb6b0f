from typing import List, Optional
from datetime import datetime, timezone
from pydantic import BaseModel, Field, field_validator
from coupon_system.models.coupon import DiscountType, UsageType

def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)

def _clean_ids(values: List[str]) -> List[str]:
    cleaned = []
    for value in values:
        value = value.strip()
        if value and value not in cleaned:
            cleaned.append(value)
    return cleaned


class CartItem(BaseModel):
    id: str
    category: str = ""
    price: float = Field(ge=0)
    quantity: int = Field(default=1, ge=1)

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


class CouponCreate(BaseModel):
    # Required fields are checked by CouponService.create_coupon so that
    # direct callers get the same CouponValidationError as HTTP callers.
    coupon_code: str = ""
    expiry_date: Optional[datetime] = None
    usage_type: UsageType = UsageType.MULTI_USE
    applicable_medicine_ids: List[str] = []
    applicable_categories: List[str] = []
    min_order_value: float = Field(default=0.0, ge=0)
    valid_time_window_start: Optional[datetime] = None
    valid_time_window_end: Optional[datetime] = None
    terms_and_conditions: str = ""
    discount_type: Optional[DiscountType] = None
    discount_value: float = 0.0
    max_usage_per_user: int = Field(default=0, ge=0)
    max_total_usage: int = Field(default=0, ge=0)

    @field_validator("coupon_code")
    @classmethod
    def strip_code(cls, v: str) -> str:
        return v.strip()

    @field_validator("applicable_medicine_ids", "applicable_categories")
    @classmethod
    def clean_targets(cls, v: List[str]) -> List[str]:
        return _clean_ids(v)

    @field_validator("expiry_date", "valid_time_window_start", "valid_time_window_end")
    @classmethod
    def normalize_datetimes(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)


class ApplicableCouponsRequest(BaseModel):
    cart_items: List[CartItem]
    order_total: float = Field(ge=0)
    timestamp: datetime

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        return to_naive_utc(v)


class ValidateCouponRequest(ApplicableCouponsRequest):
    coupon_code: str

    @field_validator("coupon_code")
    @classmethod
    def strip_code(cls, v: str) -> str:
        return v.strip()


class DiscountDetails(BaseModel):
    items_discount: float
    total_discount: float


class ValidateCouponResponse(BaseModel):
    is_valid: bool
    message: str
    discount: Optional[DiscountDetails] = None


class ApplicableCoupon(BaseModel):
    coupon_code: str
    discount_type: DiscountType
    discount_value: float
    discount: float


class ApplicableCouponsResponse(BaseModel):
    applicable_coupons: List[ApplicableCoupon] = []


class MessageResponse(BaseModel):
    message: str
