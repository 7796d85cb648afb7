"""Fake Store API catalog client."""

import logging
import random
from typing import Any, Protocol

import httpx

from flashmarket.core.config import Settings, get_settings
from flashmarket.models.product import Product

logger = logging.getLogger(__name__)

# The source reports no stock; the storefront simulated 10..59 units per item.
SIMULATED_STOCK_MIN = 10
SIMULATED_STOCK_MAX = 59


class CatalogError(Exception):
    """Raised when the product source cannot be reached or answers badly."""


class CatalogSource(Protocol):
    def fetch_products(self, limit: int | None = None) -> list[Product]:
        ...


class CatalogClient:
    """Client for the remote product catalog."""

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Initialize the catalog client.

        Args:
            settings: Application settings (base URL, timeout)
            transport: Optional httpx transport, used by tests to stub the API
        """
        self.settings = settings or get_settings()
        self.client = httpx.Client(
            base_url=self.settings.CATALOG_API_URL,
            timeout=self.settings.CATALOG_TIMEOUT_SECONDS,
            follow_redirects=True,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    def close(self) -> None:
        self.client.close()

    def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        try:
            response = self.client.get(path, params=params)
            response.raise_for_status()
            if not response.content:
                return None
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Catalog request {path} failed: status={e.response.status_code}")
            raise CatalogError(f"Catalog request failed with status {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error(f"Catalog request {path} failed: {e}")
            raise CatalogError(f"Catalog unreachable: {e}") from e
        except ValueError as e:
            raise CatalogError(f"Catalog returned invalid JSON for {path}") from e

    @staticmethod
    def _to_product(raw: dict[str, Any]) -> Product:
        try:
            return Product(
                id=raw["id"],
                name=raw["title"],
                price=float(raw["price"]),
                image=raw.get("image"),
                description=raw.get("description"),
                category=raw.get("category"),
                stock=random.randint(SIMULATED_STOCK_MIN, SIMULATED_STOCK_MAX),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise CatalogError(f"Malformed catalog product: {raw!r}") from e

    def fetch_products(self, limit: int | None = None) -> list[Product]:
        """
        Get every product (or the first `limit` of them).

        Returns:
            Products with simulated stock
        """
        params = {"limit": limit} if limit else None
        data = self._get("/products", params=params) or []
        products = [self._to_product(item) for item in data]
        logger.info(f"Fetched {len(products)} products from catalog")
        return products

    def fetch_product(self, product_id: int | str) -> Product | None:
        """Single product, or None when the catalog does not know the id."""
        try:
            data = self._get(f"/products/{product_id}")
        except CatalogError as e:
            if isinstance(e.__cause__, httpx.HTTPStatusError) and e.__cause__.response.status_code == 404:
                return None
            raise
        # Fake Store answers an unknown id with 200 and an empty body
        if not data:
            return None
        return self._to_product(data)

    def fetch_by_category(self, category: str) -> list[Product]:
        data = self._get(f"/products/category/{category}") or []
        return [self._to_product(item) for item in data]

    def fetch_categories(self) -> list[str]:
        data = self._get("/products/categories") or []
        return [str(c) for c in data]
