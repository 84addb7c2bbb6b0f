from typing import List, Optional
from datetime import datetime, timezone
from sqlmodel import Field, SQLModel, Column
from sqlalchemy import JSON
from enum import Enum
import uuid

def utcnow() -> datetime:
    """Naive UTC timestamp, the form every datetime column is stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)

class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"

class UsageType(str, Enum):
    # Informational only; limits are enforced through the max_* fields
    ONE_TIME = "one_time"
    MULTI_USE = "multi_use"
    TIME_BASED = "time_based"

class Coupon(SQLModel, table=True):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)

    # Coupon Details
    coupon_code: str = Field(unique=True, index=True)  # e.g., "WELCOME10"
    usage_type: UsageType = Field(default=UsageType.MULTI_USE)
    terms_and_conditions: str = ""

    # Discount
    discount_type: DiscountType
    discount_value: float  # Percentage (0-100) or fixed amount

    # Targeting (empty = applies to every item)
    applicable_medicine_ids: List[str] = Field(default=[], sa_column=Column(JSON))
    applicable_categories: List[str] = Field(default=[], sa_column=Column(JSON))

    # Validity
    expiry_date: datetime
    valid_time_window_start: Optional[datetime] = None
    valid_time_window_end: Optional[datetime] = None

    # Minimum Order
    min_order_value: float = Field(default=0.0)

    # Usage Limits (0 = unlimited)
    max_usage_per_user: int = Field(default=0)
    max_total_usage: int = Field(default=0)
    current_total_usage: int = Field(default=0)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_targeted(self) -> bool:
        return bool(self.applicable_medicine_ids or self.applicable_categories)


class UserCouponUsage(SQLModel, table=True):
    user_id: str = Field(primary_key=True)
    coupon_id: str = Field(primary_key=True, foreign_key="coupon.id")

    times_used: int = Field(default=0)
