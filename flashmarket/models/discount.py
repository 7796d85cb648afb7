# flashmarket/models/discount.py
from enum import Enum

from sqlmodel import SQLModel, Field


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class Discount(SQLModel):
    """
    Cart-wide reduction obtained by redeeming a code.

    value is a percentage of the subtotal for PERCENTAGE
    and a flat amount for FIXED.
    """

    type: DiscountType
    value: float = Field(ge=0)
    description: str
    code: str | None = None
