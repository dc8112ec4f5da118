import os
from functools import lru_cache

# Prefer loading environment variables from a .env file if python-dotenv is available
try:
    from dotenv import load_dotenv, find_dotenv
    _env_path = find_dotenv(usecwd=True)
    if _env_path:
        load_dotenv(_env_path, override=False)
except ImportError:
    pass


class Settings:
    DATABASE_URL: str = os.getenv("DATABASE_URL")
    SECRET_KEY: str = os.getenv("SECRET_KEY", "change_me_secret")
    ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
    # Sessions last 30 days
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(30 * 24 * 60)))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    # Comma separated list of allowed origins for the admin/storefront UI
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "*")

    # Product update transaction bounds (milliseconds)
    PRODUCT_TX_MAX_WAIT_MS: int = int(os.getenv("PRODUCT_TX_MAX_WAIT_MS", "10000"))
    PRODUCT_TX_TIMEOUT_MS: int = int(os.getenv("PRODUCT_TX_TIMEOUT_MS", "20000"))

    SLUG_MAX_ATTEMPTS: int = int(os.getenv("SLUG_MAX_ATTEMPTS", "5"))

    # Dashboard alerting vs. inventory listing use different thresholds
    DASHBOARD_LOW_STOCK_THRESHOLD: int = int(os.getenv("DASHBOARD_LOW_STOCK_THRESHOLD", "5"))
    INVENTORY_LOW_STOCK_THRESHOLD: int = int(os.getenv("INVENTORY_LOW_STOCK_THRESHOLD", "10"))

    VIP_ORDER_THRESHOLD: int = int(os.getenv("VIP_ORDER_THRESHOLD", "15"))
    VIP_SPEND_THRESHOLD: float = float(os.getenv("VIP_SPEND_THRESHOLD", "1000"))

    RENDER_CACHE_TTL_SECONDS: int = int(os.getenv("RENDER_CACHE_TTL_SECONDS", "300"))

    @property
    def cors_origins(self):
        return [o.strip() for o in (self.CORS_ORIGINS or "").split(",") if o.strip()]


@lru_cache
def get_settings():
    return Settings()
