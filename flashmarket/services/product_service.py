# flashmarket/services/product_service.py
import logging

from fastapi import HTTPException, status

from flashmarket.models.product import Product, ProductId
from flashmarket.repositories.product_repo import ProductRepository
from flashmarket.schemas.cart import Availability
from flashmarket.schemas.product import ProductCreate
from flashmarket.services.cart_service import CartService
from flashmarket.services.catalog_client import CatalogSource

logger = logging.getLogger(__name__)


class ProductService:
    """
    Catalog operations and their effect on the cart's inventory.

    Responsibilities:
      - load the catalog from a CatalogSource and seed the inventory ledger
      - seller publishing / withdrawal (catalog + ledger kept in step)
      - availability lookups for product pages
    """

    def __init__(self, repo: ProductRepository, cart: CartService):
        self.repo = repo
        self.cart = cart

    # ----- Helpers -----

    def _get_or_404(self, product_id: ProductId) -> Product:
        product = self.repo.get_by_id(product_id)
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found",
            )
        return product

    # ----- Catalog loading -----

    def load_catalog(self, source: CatalogSource, limit: int | None = None) -> int:
        """
        Fetch products from the source, replace the catalog and seed
        inventory for every product not tracked yet.

        CatalogError from the source propagates to the caller.
        """
        products = source.fetch_products(limit=limit)
        self.repo.load(products)
        return self.cart.seed_inventory(products)

    # ----- Queries -----

    def list_products(self, category: str | None = None) -> list[Product]:
        return self.repo.list_products(category)

    def get_product(self, product_id: ProductId) -> Product:
        return self._get_or_404(product_id)

    def categories(self) -> list[str]:
        return self.repo.categories()

    def availability(self, product_id: ProductId, quantity: int = 1) -> Availability:
        product = self._get_or_404(product_id)
        return self.cart.availability(product.id, quantity)

    # ----- Seller operations -----

    def publish(self, payload: ProductCreate) -> Product:
        """
        Add a seller product to the catalog and start tracking its stock,
        so it can be added to the cart right away.
        """
        product = Product(id=self.repo.next_id(), **payload.model_dump())
        self.repo.add(product)
        self.cart.seed_inventory([product])
        logger.info("Product %s published: %s", product.id, product.name)
        return product

    def withdraw(self, product_id: ProductId) -> None:
        """
        Remove a product from the catalog and from inventory.
        Lines already in the cart stay; they can no longer grow.
        """
        product = self._get_or_404(product_id)
        self.repo.delete(product.id)
        self.cart.remove_from_inventory(product.id)

    def set_available(self, product_id: ProductId, available: bool) -> Availability:
        product = self._get_or_404(product_id)
        self.cart.set_product_available(product.id, available)
        return self.cart.availability(product.id)
