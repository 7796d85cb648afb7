# flashmarket/routers/cart.py
from fastapi import APIRouter, Depends, HTTPException, status

from flashmarket.core.errors import ensure_success
from flashmarket.dependencies import get_cart_service, get_product_repo
from flashmarket.repositories.product_repo import ProductRepository
from flashmarket.schemas.cart import (
    AddOnsUpdate,
    CartItemCreate,
    CartItemUpdate,
    CartSummary,
    DiscountRedeem,
    HistoryRead,
)
from flashmarket.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["Cart"])


@router.get("", response_model=CartSummary)
def get_cart(cart: CartService = Depends(get_cart_service)):
    """
    Current cart: lines, quantity total, subtotal, discounts, tax, total.
    """
    return cart.snapshot_summary()


@router.delete("", response_model=CartSummary)
def clear_cart(cart: CartService = Depends(get_cart_service)):
    """
    Empty the cart and release every reservation.
    Can be undone.
    """
    ensure_success(cart.clear())
    return cart.snapshot_summary()


@router.post("/items", response_model=CartSummary, status_code=status.HTTP_201_CREATED)
def add_to_cart(
    payload: CartItemCreate,
    cart: CartService = Depends(get_cart_service),
    product_repo: ProductRepository = Depends(get_product_repo),
):
    """
    Add units of a catalog product.

    Errors:
      - 404 unknown product
      - 409 not enough free stock / product withdrawn from sale
    """
    product = product_repo.get_by_id(payload.product_id)
    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "not_found", "message": "Product not found"},
        )

    ensure_success(cart.add_product(product, payload.quantity))
    return cart.snapshot_summary()


@router.patch("/items/{identifier}", response_model=CartSummary)
def update_cart_item(
    identifier: str,
    payload: CartItemUpdate,
    cart: CartService = Depends(get_cart_service),
):
    """
    Overwrite a line's quantity. `identifier` is a line id or a product id.
    Quantity 0 removes the line.
    """
    ensure_success(cart.set_quantity(identifier, payload.quantity))
    return cart.snapshot_summary()


@router.delete("/items/{identifier}", response_model=CartSummary)
def remove_cart_item(
    identifier: str,
    cart: CartService = Depends(get_cart_service),
):
    ensure_success(cart.remove_product(identifier))
    return cart.snapshot_summary()


@router.put("/items/{identifier}/add-ons", response_model=CartSummary)
def set_add_ons(
    identifier: str,
    payload: AddOnsUpdate,
    cart: CartService = Depends(get_cart_service),
):
    """
    Replace the add-ons of a line. An empty list removes them all.
    """
    ensure_success(cart.apply_add_ons(identifier, payload.add_ons))
    return cart.snapshot_summary()


@router.delete("/items/{identifier}/add-ons/{add_on}", response_model=CartSummary)
def remove_add_on(
    identifier: str,
    add_on: str,
    cart: CartService = Depends(get_cart_service),
):
    ensure_success(cart.remove_add_on(identifier, add_on))
    return cart.snapshot_summary()


@router.post("/discounts", response_model=CartSummary)
def redeem_discount(
    payload: DiscountRedeem,
    cart: CartService = Depends(get_cart_service),
):
    """
    Redeem a discount code (case-insensitive).
    Unknown codes answer 400 with error "invalid_code".
    """
    ensure_success(cart.redeem_discount_code(payload.code))
    return cart.snapshot_summary()


@router.post("/undo", response_model=CartSummary)
def undo(cart: CartService = Depends(get_cart_service)):
    ensure_success(cart.undo())
    return cart.snapshot_summary()


@router.post("/redo", response_model=CartSummary)
def redo(cart: CartService = Depends(get_cart_service)):
    ensure_success(cart.redo())
    return cart.snapshot_summary()


@router.get("/history", response_model=HistoryRead)
def get_history(cart: CartService = Depends(get_cart_service)):
    return HistoryRead(stats=cart.history_stats(), entries=cart.history_entries())
