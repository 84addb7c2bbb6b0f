from fastapi import FastAPI
from contextlib import asynccontextmanager
from coupon_system.core.cache import LRUCache
from coupon_system.core.config import settings
from coupon_system.db.session import engine, create_db_and_tables
from coupon_system.routers import coupons
from coupon_system.services.coupon import CouponService
from coupon_system.storage.sql import SQLCouponStore

def build_coupon_service(target_engine=None) -> CouponService:
    return CouponService(
        storage=SQLCouponStore(target_engine or engine),
        coupon_cache=LRUCache(settings.CACHE_SIZE, settings.CACHE_TTL_SECONDS),
        applicable_cache=LRUCache(settings.APPLICABLE_CACHE_SIZE, settings.APPLICABLE_CACHE_TTL_SECONDS),
    )

@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    yield

app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    lifespan=lifespan,
    description="Coupon eligibility and validation API"
)

app.state.coupon_service = build_coupon_service()

@app.get("/")
def read_root():
    return {"message": "Welcome to the Coupon System API. Visit /docs for Swagger UI."}

app.include_router(coupons.admin_router, prefix="/admin", tags=["admin"])
app.include_router(coupons.router, prefix="/coupons", tags=["coupons"])

# Add CORS
from fastapi.middleware.cors import CORSMiddleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
