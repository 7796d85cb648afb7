# flashmarket/routers/checkout.py
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from flashmarket.core.errors import ensure_success
from flashmarket.dependencies import get_cart_service
from flashmarket.schemas.payment import CheckoutRequest, CheckoutResponse, PaymentMethodInfo
from flashmarket.services.cart_service import CartService
from flashmarket.services.payment_service import (
    PAYMENT_METHODS,
    PaymentProcessor,
    get_payment_method,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/checkout", tags=["Checkout"])


@router.get("/payment-methods", response_model=list[PaymentMethodInfo])
def list_payment_methods():
    return [method_cls().info() for method_cls in PAYMENT_METHODS.values()]


@router.post("", response_model=CheckoutResponse)
def checkout(
    payload: CheckoutRequest,
    cart: CartService = Depends(get_cart_service),
):
    """
    Pay for the cart and commit the sale.

    Flow:
      1. reject an empty cart (400 empty_cart)
      2. resolve the payment method (400 unknown_payment_method)
      3. validate + process the payment for the cart total;
         invalid payment data answers 400 with the validation errors
      4. commit: reservations become sold stock, cart and history reset
    """
    if cart.is_empty():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "empty_cart", "message": "Cart is empty"},
        )

    method = get_payment_method(payload.payment_method)
    if method is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "unknown_payment_method",
                "message": f"Unknown payment method: {payload.payment_method}",
            },
        )

    total = cart.snapshot_summary().total
    data = payload.data.model_dump(exclude_none=True)
    payment = PaymentProcessor(method).process(total, data)
    if not payment.success:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "payment_invalid",
                "message": payment.message,
                "errors": payment.errors,
            },
        )

    result = ensure_success(cart.checkout(payment.method))
    return CheckoutResponse(payment=payment, summary=result.summary)
