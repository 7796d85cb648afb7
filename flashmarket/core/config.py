# flashmarket/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Every value has a default, so the cart engine runs without a .env file.

    Useful overrides (.env):
      - CATALOG_API_URL (product source, Fake Store API by default)
      - CATALOG_LOAD_ON_STARTUP (set false for offline runs / tests)
      - HISTORY_LIMIT (how many undo steps are kept)
      - TAX_RATE
    """

    PROJECT_NAME: str = "FlashMarket Cart API"
    API_V1_STR: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    # Pricing
    TAX_RATE: float = 0.13

    # Undo / redo depth kept by the cart
    HISTORY_LIMIT: int = 50

    # Stock assigned to catalog items that do not report one
    DEFAULT_STOCK: int = 100

    # Add-on defaults (flat fees in currency units, warranty in percent)
    EXPEDITED_COST: float = 5.0
    WARRANTY_PERCENT: float = 10.0
    GIFT_WRAP_COST: float = 2.0

    # Catalog source
    CATALOG_API_URL: str = "https://fakestoreapi.com"
    CATALOG_TIMEOUT_SECONDS: float = 5.0
    CATALOG_LIMIT: int | None = None
    CATALOG_LOAD_ON_STARTUP: bool = True

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
