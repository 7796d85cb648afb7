# flashmarket/models/cart.py
from enum import Enum

from sqlmodel import SQLModel, Field

from flashmarket.models.product import ProductId


class AddOnType(str, Enum):
    """Optional per-line extras, in the order they are applied."""

    EXPEDITED = "expedited"
    WARRANTY = "warranty"
    GIFT_WRAP = "giftwrap"


# Rebuilds always apply add-ons in this order
ADD_ON_ORDER: tuple[AddOnType, ...] = (
    AddOnType.EXPEDITED,
    AddOnType.WARRANTY,
    AddOnType.GIFT_WRAP,
)


class AddOn(SQLModel):
    """
    One applied add-on.

    value is a flat fee for expedited/giftwrap and a percentage for warranty.
    """

    type: AddOnType
    value: float = Field(ge=0)


class CartLine(SQLModel):
    """
    One row of the cart.

    There is never more than one line per base product:
    group_key is derived from base_id only.
    """

    cart_item_id: str = Field(description="Unique id of this line")

    base_id: ProductId = Field(description="Catalog id of the product")

    name: str | None = None
    image: str | None = None

    quantity: int = Field(ge=1)

    base_price: float | None = Field(
        default=None,
        description="Unit price captured on first add; anchor for add-on rebuilds",
    )

    price: float = Field(
        ge=0,
        description="Effective unit price including add-ons",
    )

    add_ons: list[AddOn] = Field(default_factory=list)

    group_key: str = ""

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


def make_group_key(base_id: ProductId) -> str:
    """One line per base product, regardless of add-ons."""
    return str(base_id)
