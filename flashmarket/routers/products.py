# flashmarket/routers/products.py
from fastapi import APIRouter, Depends, Query, status

from flashmarket.dependencies import get_product_service
from flashmarket.models.product import Product
from flashmarket.schemas.cart import Availability
from flashmarket.schemas.product import AvailabilityUpdate, ProductCreate
from flashmarket.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["Products"])


# -------- Public endpoints --------


@router.get("", response_model=list[Product])
def list_products(
    category: str | None = None,
    service: ProductService = Depends(get_product_service),
):
    """
    List the catalog, optionally filtered by category.
    """
    return service.list_products(category)


@router.get("/categories", response_model=list[str])
def list_categories(service: ProductService = Depends(get_product_service)):
    return service.categories()


@router.get("/{product_id}", response_model=Product)
def get_product(
    product_id: str,
    service: ProductService = Depends(get_product_service),
):
    return service.get_product(product_id)


@router.get("/{product_id}/availability", response_model=Availability)
def get_availability(
    product_id: str,
    quantity: int = Query(default=1, gt=0),
    service: ProductService = Depends(get_product_service),
):
    """
    Can `quantity` more units be put in the cart right now?
    """
    return service.availability(product_id, quantity)


# -------- Seller endpoints --------


@router.post("", response_model=Product, status_code=status.HTTP_201_CREATED)
def publish_product(
    payload: ProductCreate,
    service: ProductService = Depends(get_product_service),
):
    """
    Publish a product. It is added to inventory immediately.
    """
    return service.publish(payload)


@router.put("/{product_id}/availability", response_model=Availability)
def set_availability(
    product_id: str,
    payload: AvailabilityUpdate,
    service: ProductService = Depends(get_product_service),
):
    return service.set_available(product_id, payload.available)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def withdraw_product(
    product_id: str,
    service: ProductService = Depends(get_product_service),
):
    """
    Withdraw a product from the catalog and inventory.
    """
    service.withdraw(product_id)
    return None
