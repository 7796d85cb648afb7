# flashmarket/dependencies.py
from fastapi import Request

from flashmarket.repositories.product_repo import ProductRepository
from flashmarket.services.cart_service import CartService
from flashmarket.services.product_service import ProductService


def get_cart_service(request: Request) -> CartService:
    """
    FastAPI dependency: the application's single cart.

    Usage in routers:
        def endpoint(cart: CartService = Depends(get_cart_service)):
            ...
    """
    return request.app.state.cart_service


def get_product_repo(request: Request) -> ProductRepository:
    return request.app.state.product_repo


def get_product_service(request: Request) -> ProductService:
    return request.app.state.product_service
