import pytest
from fastapi.testclient import TestClient

from flashmarket.core.config import Settings
from flashmarket.main import create_app
from flashmarket.models.product import Product
from flashmarket.repositories.inventory_repo import InventoryLedger
from flashmarket.services.cart_service import CartService


class FakeCatalog:
    """In-memory CatalogSource."""

    def __init__(self, products: list[Product]):
        self.products = products
        self.calls = 0

    def fetch_products(self, limit: int | None = None) -> list[Product]:
        self.calls += 1
        return self.products[:limit] if limit else list(self.products)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        CATALOG_LOAD_ON_STARTUP=False,
        TAX_RATE=0.13,
        HISTORY_LIMIT=50,
        DEFAULT_STOCK=100,
        EXPEDITED_COST=5.0,
        WARRANTY_PERCENT=10.0,
        GIFT_WRAP_COST=2.0,
    )


@pytest.fixture
def widget() -> Product:
    return Product(id=1, name="Widget", price=10, stock=5, category="tools")


@pytest.fixture
def speaker() -> Product:
    return Product(id=2, name="Speaker", price=100, stock=10, category="electronics")


@pytest.fixture
def ledger(widget, speaker) -> InventoryLedger:
    inventory = InventoryLedger(default_stock=100)
    inventory.initialize([widget, speaker])
    return inventory


@pytest.fixture
def cart(settings, widget, speaker) -> CartService:
    service = CartService(settings=settings)
    service.seed_inventory([widget, speaker])
    return service


@pytest.fixture
def catalog(widget, speaker) -> FakeCatalog:
    return FakeCatalog(
        [
            widget,
            speaker,
            Product(id=3, name="Backpack", price=40, stock=2, category="bags"),
        ]
    )


@pytest.fixture
def client(settings, catalog):
    app = create_app(settings=settings, catalog=catalog)
    with TestClient(app) as test_client:
        yield test_client
