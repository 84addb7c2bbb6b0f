from datetime import timedelta
from coupon_system.core.exceptions import DuplicateCouponError
from coupon_system.db.session import create_db_and_tables
from coupon_system.main import build_coupon_service
from coupon_system.models.coupon import DiscountType, UsageType, utcnow
from coupon_system.schemas.coupon import CouponCreate

def sample_coupons():
    now = utcnow()
    return [
        CouponCreate(
            coupon_code="WELCOME10",
            expiry_date=now + timedelta(days=180),
            usage_type=UsageType.ONE_TIME,
            min_order_value=50.0,
            terms_and_conditions="Valid for new users on their first order.",
            discount_type=DiscountType.PERCENTAGE,
            discount_value=10.0,
            max_usage_per_user=1,
            max_total_usage=1000,
        ),
        CouponCreate(
            coupon_code="FLAT20",
            expiry_date=now + timedelta(days=365),
            usage_type=UsageType.MULTI_USE,
            min_order_value=100.0,
            terms_and_conditions="Get a flat 20 INR discount on orders above 100 INR.",
            discount_type=DiscountType.FIXED_AMOUNT,
            discount_value=20.0,
        ),
        CouponCreate(
            coupon_code="CATEGORY50",
            expiry_date=now + timedelta(days=90),
            usage_type=UsageType.MULTI_USE,
            applicable_categories=["Painkillers", "Vitamins"],
            min_order_value=75.0,
            terms_and_conditions="Valid on Painkillers and Vitamins categories.",
            discount_type=DiscountType.PERCENTAGE,
            discount_value=15.0,
            max_usage_per_user=5,
            max_total_usage=500,
        ),
        CouponCreate(
            coupon_code="MEDBUY",
            expiry_date=now + timedelta(days=270),
            usage_type=UsageType.MULTI_USE,
            applicable_medicine_ids=["med1", "med3", "med5"],
            min_order_value=150.0,
            terms_and_conditions="Valid on specific medicines.",
            discount_type=DiscountType.FIXED_AMOUNT,
            discount_value=30.0,
            max_usage_per_user=2,
        ),
        CouponCreate(
            coupon_code="HAPPYHOUR",
            expiry_date=now + timedelta(days=30),
            usage_type=UsageType.TIME_BASED,
            valid_time_window_start=now,
            valid_time_window_end=now + timedelta(days=7),
            terms_and_conditions="Valid for one week only.",
            discount_type=DiscountType.PERCENTAGE,
            discount_value=5.0,
        ),
    ]

def seed_coupons():
    print("Creating database and tables...")
    create_db_and_tables()

    service = build_coupon_service()
    created = 0
    for coupon_in in sample_coupons():
        try:
            service.create_coupon(coupon_in)
            created += 1
        except DuplicateCouponError:
            print(f"Coupon {coupon_in.coupon_code} already exists. Skipping.")

    total = len(service.storage.list_coupons())
    print(f"Successfully seeded {created} coupons! {total} coupons in the database.")

if __name__ == "__main__":
    seed_coupons()
