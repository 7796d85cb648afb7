# flashmarket/core/errors.py
from fastapi import HTTPException, status

from flashmarket.schemas.cart import CartError, CartResult

ERROR_STATUS: dict[CartError, int] = {
    CartError.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    CartError.INSUFFICIENT_STOCK: status.HTTP_409_CONFLICT,
    CartError.UNAVAILABLE: status.HTTP_409_CONFLICT,
}


def ensure_success(result: CartResult) -> CartResult:
    """
    Turn a failed CartResult into an HTTPException.

    - not_found -> 404
    - insufficient_stock / unavailable -> 409
    - anything else -> 400

    The detail carries the error code and message (and units_left when known)
    so clients can show the same text the cart produced.
    """
    if result.success:
        return result

    error = result.error.value if result.error is not None else None
    detail: dict = {"error": error, "message": result.message}
    if result.units_left is not None:
        detail["units_left"] = result.units_left

    raise HTTPException(
        status_code=ERROR_STATUS.get(result.error, status.HTTP_400_BAD_REQUEST),
        detail=detail,
    )
