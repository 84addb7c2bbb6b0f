"""
Storage port for coupons and per-user usage.

Every operation takes an optional ``deadline`` (an absolute
``time.monotonic()`` value). Implementations must abort with
``DeadlineExceeded`` without committing anything once it has passed.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional
from time import monotonic

from coupon_system.core.exceptions import DeadlineExceeded
from coupon_system.models.coupon import Coupon


@dataclass
class ApplicabilityFilter:
    timestamp: datetime
    order_total: float
    user_id: str
    medicine_ids: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)


def check_deadline(deadline: Optional[float], operation: str) -> None:
    if deadline is not None and monotonic() >= deadline:
        raise DeadlineExceeded(f"deadline exceeded during {operation}")


class CouponStorage(ABC):
    @abstractmethod
    def create_coupon(self, coupon: Coupon, deadline: Optional[float] = None) -> Coupon:
        """Persist a new coupon. Raises DuplicateCouponError if the code exists."""

    @abstractmethod
    def get_coupon_by_code(self, coupon_code: str, deadline: Optional[float] = None) -> Optional[Coupon]:
        """Return the coupon, or None when no coupon has this code."""

    @abstractmethod
    def increment_usage(self, coupon_id: str, user_id: str, max_usage_per_user: int,
                        max_total_usage: int, deadline: Optional[float] = None) -> None:
        """
        Add one use to the coupon and to the user's record in one transaction.

        The caps are re-checked inside the transaction (0 = unlimited);
        raises UsageLimitExceeded, with nothing applied, when either is reached.
        """

    @abstractmethod
    def get_user_usage(self, user_id: str, coupon_id: str, deadline: Optional[float] = None) -> int:
        """Times the user has redeemed the coupon; 0 when there is no record."""

    @abstractmethod
    def get_applicable_coupons(self, applicability: ApplicabilityFilter,
                               deadline: Optional[float] = None) -> List[Coupon]:
        """
        Candidate coupons for the soft applicability filter.

        May return a superset of the applicable coupons (for example without
        applying per-user caps); callers re-apply every rule in process.
        """

    @abstractmethod
    def list_coupons(self, deadline: Optional[float] = None) -> List[Coupon]:
        """Every coupon, oldest first."""
