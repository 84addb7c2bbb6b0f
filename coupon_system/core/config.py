from pydantic_settings import BaseSettings
from pydantic import Field

class Settings(BaseSettings):
    PROJECT_NAME: str = "Coupon System API"
    DATABASE_URL: str = "sqlite:///./coupons.db"
    DB_BUSY_TIMEOUT_SECONDS: float = 15.0

    # Coupon lookup cache (keyed by coupon code)
    CACHE_SIZE: int = Field(100, ge=1)
    CACHE_TTL_SECONDS: int = Field(60 * 10, gt=0)

    # Applicable-coupons listing cache (keyed by request fingerprint)
    APPLICABLE_CACHE_SIZE: int = Field(100, ge=1)
    APPLICABLE_CACHE_TTL_SECONDS: int = Field(60 * 10, gt=0)

    LOG_LEVEL: str = "INFO"

    # Admin routes
    ADMIN_API_KEY: str = "admin_key_change_me_in_production"

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
