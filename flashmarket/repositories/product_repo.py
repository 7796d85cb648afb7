# flashmarket/repositories/product_repo.py
import logging
from typing import Iterable

from flashmarket.models.product import Product, ProductId

logger = logging.getLogger(__name__)


class ProductRepository:
    """
    In-memory catalog.

    - Products are keyed by the string form of their id, so "3" from a
      URL path finds the product the source delivered as 3.
    - No pricing, no stock bookkeeping (see InventoryLedger).
    """

    def __init__(self) -> None:
        self._products: dict[str, Product] = {}

    @staticmethod
    def _key(product_id: ProductId) -> str:
        return str(product_id)

    def load(self, products: Iterable[Product]) -> int:
        """Replace the whole catalog. Returns the number of products loaded."""
        self._products = {self._key(p.id): p for p in products}
        logger.info("Catalog loaded with %d products", len(self._products))
        return len(self._products)

    def get_by_id(self, product_id: ProductId) -> Product | None:
        return self._products.get(self._key(product_id))

    def list_products(self, category: str | None = None) -> list[Product]:
        products = list(self._products.values())
        if category:
            products = [p for p in products if p.category == category]
        return products

    def categories(self) -> list[str]:
        """Distinct categories, in catalog order."""
        seen: dict[str, None] = {}
        for product in self._products.values():
            if product.category:
                seen.setdefault(product.category, None)
        return list(seen)

    def next_id(self) -> int:
        numeric = [int(k) for k in self._products if k.isdigit()]
        return max(numeric, default=0) + 1

    def add(self, product: Product) -> Product:
        self._products[self._key(product.id)] = product
        return product

    def delete(self, product_id: ProductId) -> Product | None:
        return self._products.pop(self._key(product_id), None)
