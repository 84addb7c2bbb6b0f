from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from coupon_system.core.config import settings
from coupon_system.core.exceptions import CouponValidationError, DuplicateCouponError, StorageError
from coupon_system.schemas.coupon import (
    ApplicableCouponsRequest,
    ApplicableCouponsResponse,
    CouponCreate,
    MessageResponse,
    ValidateCouponRequest,
    ValidateCouponResponse,
)
from coupon_system.services.coupon import CouponService

router = APIRouter()
admin_router = APIRouter()

def get_coupon_service(request: Request) -> CouponService:
    return request.app.state.coupon_service

def check_admin(api_key: str = Header(..., alias="x-api-key")):
    if api_key != settings.ADMIN_API_KEY:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")

def get_user_id(user_id: str = Header(..., alias="X-User-ID")) -> str:
    user_id = user_id.strip()
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing user id")
    return user_id

@admin_router.post("/coupons", response_model=MessageResponse, status_code=status.HTTP_201_CREATED,
                   dependencies=[Depends(check_admin)])
def create_coupon(coupon_in: CouponCreate, service: CouponService = Depends(get_coupon_service)):
    """Create a new coupon"""
    try:
        coupon = service.create_coupon(coupon_in)
    except DuplicateCouponError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except CouponValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except StorageError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create coupon")
    return {"message": f"Coupon {coupon.coupon_code} created successfully"}

@router.post("/applicable", response_model=ApplicableCouponsResponse)
def get_applicable_coupons(
    request: ApplicableCouponsRequest,
    user_id: str = Depends(get_user_id),
    service: CouponService = Depends(get_coupon_service)
):
    """List coupons applicable to the cart"""
    try:
        return service.get_applicable_coupons(user_id, request)
    except StorageError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to get applicable coupons")

@router.post("/validate", response_model=ValidateCouponResponse)
def validate_coupon(
    request: ValidateCouponRequest,
    user_id: str = Depends(get_user_id),
    service: CouponService = Depends(get_coupon_service)
):
    """Validate a coupon against the cart and redeem it"""
    try:
        return service.validate_coupon(user_id, request)
    except StorageError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to validate coupon")
