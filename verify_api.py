import requests
import json
import os
from datetime import datetime, timedelta, timezone

BASE_URL = os.getenv("COUPON_API_URL", "http://localhost:8000")
ADMIN_API_KEY = os.getenv("ADMIN_API_KEY", "admin_key_change_me_in_production")
USER_ID = "verify_user_1"

def print_response(name, response):
    print(f"--- {name} ---")
    print(f"Status: {response.status_code}")
    try:
        print(json.dumps(response.json(), indent=2))
    except ValueError:
        print(response.text)
    print("\n")

def run_verification():
    now = datetime.now(timezone.utc)
    cart = {
        "cart_items": [
            {"id": "med1", "category": "Vitamins", "price": 80.0, "quantity": 1},
            {"id": "med2", "category": "Painkillers", "price": 40.0, "quantity": 1},
        ],
        "order_total": 120.0,
        "timestamp": now.isoformat(),
    }
    user_headers = {"X-User-ID": USER_ID}

    # 1. Create Coupon
    print("1. Creating Coupon...")
    resp = requests.post(f"{BASE_URL}/admin/coupons", headers={"x-api-key": ADMIN_API_KEY}, json={
        "coupon_code": "VERIFY10",
        "expiry_date": (now + timedelta(days=7)).isoformat(),
        "usage_type": "one_time",
        "discount_type": "percentage",
        "discount_value": 10,
        "min_order_value": 50,
        "max_usage_per_user": 1,
        "max_total_usage": 100
    })
    print_response("Create Coupon", resp)

    # 2. Applicable Coupons
    print("2. Listing Applicable Coupons...")
    resp = requests.post(f"{BASE_URL}/coupons/applicable", headers=user_headers, json=cart)
    print_response("Applicable Coupons", resp)

    # 3. Validate (should apply)
    print("3. Validating Coupon...")
    resp = requests.post(f"{BASE_URL}/coupons/validate", headers=user_headers,
                         json={**cart, "coupon_code": "VERIFY10"})
    print_response("Validate Coupon", resp)
    if resp.status_code != 200:
        print("Validation failed, aborting.")
        return

    # 4. Validate again (Expected per-user limit)
    print("4. Validating Coupon Again (Expected Rejection)...")
    resp = requests.post(f"{BASE_URL}/coupons/validate", headers=user_headers,
                         json={**cart, "coupon_code": "VERIFY10"})
    print_response("Validate Coupon Again", resp)

if __name__ == "__main__":
    run_verification()
