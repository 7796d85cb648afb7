# flashmarket/schemas/cart.py
from datetime import datetime
from enum import Enum

from sqlmodel import SQLModel, Field

from flashmarket.models.cart import AddOnType, CartLine
from flashmarket.models.discount import Discount
from flashmarket.models.product import ProductId


class CartError(str, Enum):
    """
    Recoverable failure kinds reported by the cart.

    None of these are raised; they travel in CartResult.error.
    """

    NOT_FOUND = "not_found"
    INSUFFICIENT_STOCK = "insufficient_stock"
    UNAVAILABLE = "unavailable"
    INVALID_CODE = "invalid_code"
    EMPTY_CART = "empty_cart"
    NOTHING_TO_UNDO = "nothing_to_undo"
    NOTHING_TO_REDO = "nothing_to_redo"
    NO_ADD_ONS = "no_add_ons"
    INVALID_QUANTITY = "invalid_quantity"
    UNKNOWN_ADD_ON = "unknown_add_on"


class Availability(SQLModel):
    """
    Answer of the inventory ledger for "can I reserve N units?".
    """

    available: bool
    message: str
    reason: CartError | None = None
    units_left: int | None = None


class PricingTotals(SQLModel):
    subtotal: float
    discounts: float
    tax: float
    total: float


class CartSummary(PricingTotals):
    """
    Full cart state pushed to subscribers and returned by read endpoints.
    """

    lines: list[CartLine]
    quantity_total: int
    discounts_applied: list[Discount]


class CartResult(SQLModel):
    """
    Outcome of a cart operation.

    Failures always carry a human-readable message and an error kind.
    """

    success: bool
    message: str
    error: CartError | None = None
    units_left: int | None = None
    discount: Discount | None = None
    summary: CartSummary | None = None
    payment_method: str | None = None


class HistoryStats(SQLModel):
    history_size: int
    redo_size: int
    cap: int
    can_undo: bool
    can_redo: bool


class SnapshotInfo(SQLModel):
    taken_at: datetime
    line_count: int
    quantity_total: int


# ---- request payloads ----


class CartItemCreate(SQLModel):
    """
    Payload for adding a catalog product to the cart.
    """

    product_id: ProductId
    quantity: int = Field(default=1, gt=0)


class CartItemUpdate(SQLModel):
    """
    Payload for overwriting the quantity of a line.
    0 removes the line.
    """

    quantity: int = Field(ge=0)


class AddOnsUpdate(SQLModel):
    """
    Desired add-on set for a line; replaces whatever was applied before.
    """

    add_ons: list[AddOnType]


class DiscountRedeem(SQLModel):
    code: str = Field(min_length=1)


class HistoryRead(SQLModel):
    """Undo/redo counters plus the saved states, oldest first."""

    stats: HistoryStats
    entries: list[SnapshotInfo]
