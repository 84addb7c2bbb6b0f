class CouponError(Exception):
    """Base class for coupon system errors."""


class CouponValidationError(CouponError):
    """A create request is malformed: missing field or bad discount value."""


class DuplicateCouponError(CouponValidationError):
    def __init__(self, coupon_code: str):
        super().__init__(f"coupon code '{coupon_code}' already exists")
        self.coupon_code = coupon_code


class StorageError(CouponError):
    """The storage backend failed. Never reported as an invalid coupon."""


class DeadlineExceeded(StorageError):
    """The operation deadline passed before anything was committed."""


class UsageLimitExceeded(CouponError):
    """
    The atomic usage increment refused to go past a cap.

    ``reason`` is the user-facing message returned in the validation result.
    """

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


MAX_USAGE_PER_USER = "maximum usage per user exceeded"
MAX_TOTAL_USAGE = "maximum total usage exceeded"
