# flashmarket/models/inventory.py
from sqlmodel import SQLModel, Field

from flashmarket.models.product import ProductId


class InventoryRecord(SQLModel):
    """
    Stock bookkeeping for one catalog product.

    Invariant kept by the ledger: 0 <= reserved <= stock.
    """

    product_id: ProductId

    stock: int = Field(
        default=0,
        ge=0,
        description="Total units available for sale",
    )

    reserved: int = Field(
        default=0,
        ge=0,
        description="Units currently held by the cart",
    )

    available: bool = Field(
        default=True,
        description="Whether the product can be sold at all",
    )

    @property
    def free_units(self) -> int:
        return self.stock - self.reserved

    @property
    def is_available(self) -> bool:
        """Sellable at all: flag on and the ledger never over-reserved."""
        return self.available and self.free_units >= 0
