import httpx
import pytest

from flashmarket.repositories.product_repo import ProductRepository
from flashmarket.services.catalog_client import (
    SIMULATED_STOCK_MAX,
    SIMULATED_STOCK_MIN,
    CatalogClient,
    CatalogError,
)

RAW_PRODUCTS = [
    {
        "id": 1,
        "title": "Fjallraven Backpack",
        "price": 109.95,
        "description": "Your perfect pack",
        "category": "men's clothing",
        "image": "https://example.test/1.jpg",
        "rating": {"rate": 3.9, "count": 120},
    },
    {
        "id": 2,
        "title": "Slim Fit T-Shirt",
        "price": "22.3",
        "description": "Slim-fitting style",
        "category": "men's clothing",
        "image": "https://example.test/2.jpg",
    },
]


def _handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path == "/products":
        limit = request.url.params.get("limit")
        data = RAW_PRODUCTS[: int(limit)] if limit else RAW_PRODUCTS
        return httpx.Response(200, json=data)
    if path == "/products/categories":
        return httpx.Response(200, json=["electronics", "men's clothing"])
    if path.startswith("/products/category/"):
        return httpx.Response(200, json=RAW_PRODUCTS)
    if path == "/products/1":
        return httpx.Response(200, json=RAW_PRODUCTS[0])
    if path == "/products/999":
        return httpx.Response(200, content=b"")
    return httpx.Response(404)


@pytest.fixture
def catalog_client(settings) -> CatalogClient:
    return CatalogClient(settings, transport=httpx.MockTransport(_handler))


def test_fetch_products_maps_fields(catalog_client):
    products = catalog_client.fetch_products()

    assert [p.id for p in products] == [1, 2]
    first = products[0]
    assert first.name == "Fjallraven Backpack"
    assert first.price == pytest.approx(109.95)
    assert first.category == "men's clothing"
    assert products[1].price == pytest.approx(22.3)


def test_simulated_stock_range(catalog_client):
    for product in catalog_client.fetch_products():
        assert SIMULATED_STOCK_MIN <= product.stock <= SIMULATED_STOCK_MAX


def test_fetch_products_with_limit(catalog_client):
    assert len(catalog_client.fetch_products(limit=1)) == 1


def test_fetch_single_product(catalog_client):
    assert catalog_client.fetch_product(1).name == "Fjallraven Backpack"


def test_unknown_product_is_none(catalog_client):
    assert catalog_client.fetch_product(999) is None
    assert catalog_client.fetch_product(12345) is None


def test_categories(catalog_client):
    assert catalog_client.fetch_categories() == ["electronics", "men's clothing"]
    assert len(catalog_client.fetch_by_category("men's clothing")) == 2


def test_server_error_raises_catalog_error(settings):
    failing = CatalogClient(
        settings,
        transport=httpx.MockTransport(lambda request: httpx.Response(500)),
    )

    with pytest.raises(CatalogError):
        failing.fetch_products()


def test_network_error_raises_catalog_error(settings):
    def unreachable(request):
        raise httpx.ConnectError("connection refused", request=request)

    offline = CatalogClient(settings, transport=httpx.MockTransport(unreachable))

    with pytest.raises(CatalogError):
        offline.fetch_products()


def test_malformed_product_raises_catalog_error(settings):
    broken = CatalogClient(
        settings,
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json=[{"id": 1}])),
    )

    with pytest.raises(CatalogError):
        broken.fetch_products()


class TestProductRepository:
    def test_load_and_lookup_by_string_id(self, catalog_client):
        repo = ProductRepository()
        repo.load(catalog_client.fetch_products())

        assert repo.get_by_id("1").name == "Fjallraven Backpack"
        assert repo.get_by_id(2).id == 2
        assert repo.get_by_id("nope") is None

    def test_filter_and_categories(self, widget, speaker):
        repo = ProductRepository()
        repo.load([widget, speaker])

        assert repo.list_products("tools") == [widget]
        assert len(repo.list_products()) == 2
        assert repo.categories() == ["tools", "electronics"]

    def test_add_delete_and_next_id(self, widget, speaker):
        repo = ProductRepository()
        repo.load([widget, speaker])

        assert repo.next_id() == 3
        assert repo.delete("1") is widget
        assert repo.delete("1") is None
