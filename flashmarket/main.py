# flashmarket/main.py
from contextlib import asynccontextmanager
import logging

from fastapi.middleware.cors import CORSMiddleware
from fastapi import FastAPI

from flashmarket.core.config import Settings, get_settings
from flashmarket.repositories.product_repo import ProductRepository
from flashmarket.services.cart_service import CartService
from flashmarket.services.catalog_client import CatalogClient, CatalogError, CatalogSource
from flashmarket.services.product_service import ProductService

# Routers
from flashmarket.routers.products import router as products_router
from flashmarket.routers.cart import router as cart_router
from flashmarket.routers.checkout import router as checkout_router

logger = logging.getLogger("uvicorn")


def create_app(
    settings: Settings | None = None,
    catalog: CatalogSource | None = None,
) -> FastAPI:
    """
    Build the API around one in-memory cart.

    Args:
        settings: overrides get_settings() (tests)
        catalog: product source; defaults to the Fake Store API client
    """
    settings = settings or get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan handler.

        Startup:
          - Load the catalog and seed inventory (if enabled).
          - A failing catalog is logged; the API starts with an empty catalog.

        Shutdown:
          - Close the HTTP client we created ourselves.
        """
        owned_client = None
        source = catalog
        if source is None and settings.CATALOG_LOAD_ON_STARTUP:
            owned_client = CatalogClient(settings)
            source = owned_client

        if source is not None:
            logger.info("🔄 Startup: Loading catalog...")
            try:
                seeded = app.state.product_service.load_catalog(source, settings.CATALOG_LIMIT)
                logger.info(f"✅ Startup: catalog loaded, {seeded} products tracked in inventory.")
            except CatalogError as e:
                logger.error(f"❌ Startup: catalog load FAILED, starting empty: {e}")
        yield

        if owned_client is not None:
            owned_client.close()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="0.1.0",
        lifespan=lifespan,
    )

    cart_service = CartService(settings=settings)
    product_repo = ProductRepository()

    app.state.settings = settings
    app.state.cart_service = cart_service
    app.state.product_repo = product_repo
    app.state.product_service = ProductService(product_repo, cart_service)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Versioned API prefix, e.g. /api/v1
    app.include_router(products_router, prefix=settings.API_V1_STR)
    app.include_router(cart_router, prefix=settings.API_V1_STR)
    app.include_router(checkout_router, prefix=settings.API_V1_STR)

    @app.get("/")
    def root():
        """Health check endpoint."""
        return {"status": "ok", "service": "flashmarket-cart"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("flashmarket.main:app", host="0.0.0.0", port=8000, reload=False)
