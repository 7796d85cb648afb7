# flashmarket/services/pricing_service.py
from typing import Iterable

from flashmarket.models.cart import CartLine
from flashmarket.models.discount import Discount, DiscountType
from flashmarket.schemas.cart import PricingTotals

# Default tax rate (13% VAT)
TAX_RATE = 0.13

# Redeemable codes; lookup is case-insensitive
DISCOUNT_CODES: dict[str, Discount] = {
    "FLASH10": Discount(
        type=DiscountType.PERCENTAGE,
        value=10,
        description="10% off",
        code="FLASH10",
    ),
    "FLASH20": Discount(
        type=DiscountType.PERCENTAGE,
        value=20,
        description="20% off",
        code="FLASH20",
    ),
    "ENVIOGRATIS": Discount(
        type=DiscountType.FIXED,
        value=5,
        description="Free shipping",
        code="ENVIOGRATIS",
    ),
}


def resolve_discount_code(code: str) -> Discount | None:
    """
    Look up a discount code (case-insensitive, surrounding spaces ignored).

    Returns a fresh Discount, or None for unknown codes.
    """
    discount = DISCOUNT_CODES.get(code.strip().upper())
    return discount.model_copy() if discount is not None else None


class PricingService:
    """
    Cart arithmetic plus the set of active discounts.

    Responsibilities:
      - subtotal / discount / tax / total from a list of lines
      - keep the discounts redeemed for the current cart

    The discount total is capped at the subtotal, so a large fixed
    discount never makes the total negative.
    """

    def __init__(self, tax_rate: float = TAX_RATE):
        self.tax_rate = tax_rate
        self._discounts: list[Discount] = []

    # ---- arithmetic ----

    @staticmethod
    def subtotal(lines: Iterable[CartLine]) -> float:
        return sum((line.line_total for line in lines), 0.0)

    @staticmethod
    def apply_discounts(subtotal: float, discounts: Iterable[Discount]) -> float:
        """
        Total amount taken off the subtotal.

          - percentage: subtotal * value / 100
          - fixed: value
        """
        amount = 0.0
        for discount in discounts:
            if discount.type == DiscountType.PERCENTAGE:
                amount += subtotal * (discount.value / 100)
            elif discount.type == DiscountType.FIXED:
                amount += discount.value
        return min(amount, max(subtotal, 0.0))

    def tax(self, subtotal: float, discount_amount: float = 0.0) -> float:
        return (subtotal - discount_amount) * self.tax_rate

    def compute_totals(
        self,
        lines: Iterable[CartLine],
        discounts: Iterable[Discount] | None = None,
    ) -> PricingTotals:
        subtotal = self.subtotal(lines)
        discount_amount = self.apply_discounts(
            subtotal, self._discounts if discounts is None else discounts
        )
        tax = self.tax(subtotal, discount_amount)

        return PricingTotals(
            subtotal=subtotal,
            discounts=discount_amount,
            tax=tax,
            total=subtotal - discount_amount + tax,
        )

    # ---- active discounts ----

    def add_discount(self, discount: Discount) -> None:
        self._discounts.append(discount.model_copy())

    def list_discounts(self) -> list[Discount]:
        return [d.model_copy() for d in self._discounts]

    def clear_discounts(self) -> None:
        self._discounts = []

    def set_discounts(self, discounts: Iterable[Discount]) -> None:
        """Bulk overwrite (snapshot restore)."""
        self._discounts = [d.model_copy() for d in discounts]
