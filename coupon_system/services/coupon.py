from typing import List, Optional
import hashlib
import math

from coupon_system.core.cache import LRUCache
from coupon_system.core.exceptions import CouponValidationError, UsageLimitExceeded
from coupon_system.core.logging import get_logger
from coupon_system.models.coupon import Coupon, DiscountType
from coupon_system.schemas.coupon import (
    ApplicableCoupon,
    ApplicableCouponsRequest,
    ApplicableCouponsResponse,
    CouponCreate,
    ValidateCouponRequest,
    ValidateCouponResponse,
)
from coupon_system.services.discount import calculate_discount
from coupon_system.services.validators import (
    CouponValidator,
    ValidationContext,
    default_validators,
    first_failure,
)
from coupon_system.storage.base import ApplicabilityFilter, CouponStorage

logger = get_logger(__name__)

COUPON_NOT_FOUND = "Coupon not found"
COUPON_APPLIED = "Coupon applied successfully"


def applicable_coupons_cache_key(user_id: str, request: ApplicableCouponsRequest) -> str:
    """SHA-256 of the user id and the canonical JSON of the request."""
    data = user_id + request.model_dump_json()
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


class CouponService:
    def __init__(self, storage: CouponStorage, coupon_cache: LRUCache,
                 applicable_cache: LRUCache,
                 validators: Optional[List[CouponValidator]] = None):
        self.storage = storage
        self.coupon_cache = coupon_cache
        self.applicable_cache = applicable_cache
        self.validators = validators if validators is not None else default_validators(storage)

    def create_coupon(self, coupon_in: CouponCreate, deadline: Optional[float] = None) -> Coupon:
        """Check the required fields, assign an id and persist the coupon."""
        if not coupon_in.coupon_code:
            raise CouponValidationError("coupon code is required")
        if coupon_in.expiry_date is None:
            raise CouponValidationError("expiry date is required")
        if coupon_in.discount_type is None:
            raise CouponValidationError("discount type is required")
        if not math.isfinite(coupon_in.discount_value):
            raise CouponValidationError("discount value must be a finite number")
        if coupon_in.discount_value <= 0:
            raise CouponValidationError("discount value must be greater than 0")
        if coupon_in.discount_type == DiscountType.PERCENTAGE and coupon_in.discount_value > 100:
            raise CouponValidationError("percentage discount cannot exceed 100")

        start, end = coupon_in.valid_time_window_start, coupon_in.valid_time_window_end
        if start is not None and end is not None and start > end:
            raise CouponValidationError("valid time window start must not be after its end")

        coupon = Coupon(**coupon_in.model_dump())
        coupon = self.storage.create_coupon(coupon, deadline=deadline)

        # A new coupon can change any cart's listing
        self.applicable_cache.clear()
        logger.info("Created coupon %s (%s)", coupon.coupon_code, coupon.id)
        return coupon

    def validate_coupon(self, user_id: str, request: ValidateCouponRequest,
                        deadline: Optional[float] = None) -> ValidateCouponResponse:
        """
        Redeem a coupon for a cart.

        Rule failures and unknown codes come back as ``is_valid=False``.
        Storage failures raise. A valid result is only returned once the
        usage increment has been committed.
        """
        if not user_id:
            raise CouponValidationError("user id is required")

        coupon = self._resolve_coupon(request.coupon_code, deadline)
        if coupon is None:
            logger.info("Coupon %s not found", request.coupon_code)
            return ValidateCouponResponse(is_valid=False, message=COUPON_NOT_FOUND)

        context = ValidationContext(
            user_id=user_id,
            cart_items=request.cart_items,
            order_total=request.order_total,
            timestamp=request.timestamp,
            deadline=deadline,
        )
        reason = first_failure(self.validators, coupon, context)
        if reason is not None:
            logger.debug("Coupon %s rejected for user %s: %s", coupon.coupon_code, user_id, reason)
            return ValidateCouponResponse(is_valid=False, message=reason)

        discount = calculate_discount(coupon, request.cart_items, request.order_total)

        try:
            self.storage.increment_usage(
                coupon.id,
                user_id,
                max_usage_per_user=coupon.max_usage_per_user,
                max_total_usage=coupon.max_total_usage,
                deadline=deadline,
            )
        except UsageLimitExceeded as exc:
            # Lost the race at the cap; the cached snapshot is stale
            self.coupon_cache.delete(coupon.coupon_code)
            logger.info("Coupon %s cap reached for user %s: %s", coupon.coupon_code, user_id, exc.reason)
            return ValidateCouponResponse(is_valid=False, message=exc.reason)

        self.coupon_cache.delete(coupon.coupon_code)
        self.applicable_cache.clear()
        logger.info(
            "Coupon %s redeemed by user %s, discount %.2f",
            coupon.coupon_code, user_id, discount.total_discount,
        )
        return ValidateCouponResponse(is_valid=True, message=COUPON_APPLIED, discount=discount)

    def get_applicable_coupons(self, user_id: str, request: ApplicableCouponsRequest,
                               deadline: Optional[float] = None) -> ApplicableCouponsResponse:
        """List every coupon the cart could use right now, with its discount. No state changes."""
        cache_key = applicable_coupons_cache_key(user_id, request)
        cached = self.applicable_cache.get(cache_key)
        if cached is not None:
            logger.debug("Applicable coupons cache hit for user %s", user_id)
            return cached

        candidates = self.storage.get_applicable_coupons(
            ApplicabilityFilter(
                timestamp=request.timestamp,
                order_total=request.order_total,
                user_id=user_id,
                medicine_ids=[item.id for item in request.cart_items],
                categories=[item.category for item in request.cart_items],
            ),
            deadline=deadline,
        )

        context = ValidationContext(
            user_id=user_id,
            cart_items=request.cart_items,
            order_total=request.order_total,
            timestamp=request.timestamp,
            deadline=deadline,
        )
        applicable = []
        for coupon in candidates:
            if first_failure(self.validators, coupon, context) is not None:
                continue
            discount = calculate_discount(coupon, request.cart_items, request.order_total)
            applicable.append(ApplicableCoupon(
                coupon_code=coupon.coupon_code,
                discount_type=coupon.discount_type,
                discount_value=coupon.discount_value,
                discount=discount.total_discount,
            ))

        response = ApplicableCouponsResponse(applicable_coupons=applicable)
        self.applicable_cache.set(cache_key, response)
        return response

    def _resolve_coupon(self, coupon_code: str, deadline: Optional[float]) -> Optional[Coupon]:
        coupon = self.coupon_cache.get(coupon_code)
        if coupon is not None:
            logger.debug("Coupon cache hit for %s", coupon_code)
            return coupon

        logger.debug("Coupon cache miss for %s", coupon_code)
        coupon = self.storage.get_coupon_by_code(coupon_code, deadline=deadline)
        if coupon is not None:
            self.coupon_cache.set(coupon_code, coupon)
        return coupon
