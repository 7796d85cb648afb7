# flashmarket/repositories/inventory_repo.py
import logging
from typing import Iterable

from flashmarket.models.cart import CartLine
from flashmarket.models.inventory import InventoryRecord
from flashmarket.models.product import Product, ProductId
from flashmarket.schemas.cart import Availability, CartError

logger = logging.getLogger(__name__)


def _key(product_id: ProductId) -> str:
    # same normalisation as the cart and product repositories
    return str(product_id)


class InventoryLedger:
    """
    In-memory source of truth for how many units of each product
    are free to reserve.

    - Pure bookkeeping, no pricing and no cart knowledge.
    - Reservation protocol is check-then-reserve: callers run
      check_availability() first, then reserve(). Safe only because
      the cart runs single-threaded.
    - Records are keyed by the string form of the product id, so
      1 and "1" address the same product.
    """

    def __init__(self, default_stock: int = 100):
        self.default_stock = default_stock
        self._records: dict[str, InventoryRecord] = {}

    # ----- seeding -----

    def _record_for(self, product: Product) -> InventoryRecord:
        stock = product.stock if product.stock is not None else self.default_stock
        return InventoryRecord(product_id=product.id, stock=stock, reserved=0, available=True)

    def initialize(self, products: Iterable[Product]) -> None:
        """
        Reset the ledger and seed one record per product.
        """
        self._records = {}
        for product in products:
            self._records[_key(product.id)] = self._record_for(product)
        logger.info("Inventory initialized with %d products", len(self._records))

    def seed(self, products: Iterable[Product]) -> int:
        """
        Add records for products not tracked yet.

        Existing records (and their reservations) are left alone,
        so seeding the same catalog twice is a no-op.

        Returns:
            Number of newly tracked products.
        """
        added = 0
        for product in products:
            key = _key(product.id)
            if key in self._records:
                continue
            self._records[key] = self._record_for(product)
            added += 1
        if added:
            logger.info("Inventory seeded with %d new products", added)
        return added

    def remove(self, product_id: ProductId) -> bool:
        """Stop tracking a product (catalog withdrawal)."""
        return self._records.pop(_key(product_id), None) is not None

    def set_available(self, product_id: ProductId, available: bool) -> bool:
        record = self._records.get(_key(product_id))
        if record is None:
            return False
        record.available = available
        return True

    # ----- queries -----

    def get(self, product_id: ProductId) -> InventoryRecord | None:
        record = self._records.get(_key(product_id))
        return record.model_copy() if record is not None else None

    def free_units(self, product_id: ProductId) -> int:
        record = self._records.get(_key(product_id))
        return record.free_units if record is not None else 0

    def records(self) -> list[InventoryRecord]:
        return [r.model_copy() for r in self._records.values()]

    def check_availability(self, product_id: ProductId, quantity: int) -> Availability:
        record = self._records.get(_key(product_id))

        if record is None:
            return Availability(
                available=False,
                reason=CartError.NOT_FOUND,
                message="Product not found",
            )

        if not record.is_available:
            return Availability(
                available=False,
                reason=CartError.UNAVAILABLE,
                message="Product is not available",
            )

        if record.free_units < quantity:
            return Availability(
                available=False,
                reason=CartError.INSUFFICIENT_STOCK,
                message=f"Only {record.free_units} units available",
                units_left=record.free_units,
            )

        return Availability(available=True, message="Product available", units_left=record.free_units)

    # ----- reservations -----

    def reserve(self, product_id: ProductId, quantity: int) -> bool:
        """
        Hold units for the cart.

        Does not look at the availability flag (check_availability does),
        but never lets reserved exceed stock.
        """
        record = self._records.get(_key(product_id))
        if record is None:
            return False

        if record.reserved + quantity > record.stock:
            logger.warning(
                "Refusing reservation of %d units for product %s (stock=%d, reserved=%d)",
                quantity, product_id, record.stock, record.reserved,
            )
            return False

        record.reserved += quantity
        return True

    def release(self, product_id: ProductId, quantity: int) -> bool:
        record = self._records.get(_key(product_id))
        if record is None:
            return False
        # clamp: a double release must not go negative
        record.reserved = max(0, record.reserved - quantity)
        return True

    def confirm_purchase(self, lines: Iterable[CartLine]) -> None:
        """
        Turn the reservations of the given lines into sold units.
        """
        for line in lines:
            record = self._records.get(_key(line.base_id))
            if record is None:
                logger.warning("Purchased product %s is no longer tracked", line.base_id)
                continue
            record.stock = max(0, record.stock - line.quantity)
            record.reserved = max(0, record.reserved - line.quantity)
            record.reserved = min(record.reserved, record.stock)

    # ----- memento support -----

    def export_state(self) -> list[InventoryRecord]:
        return self.records()

    def restore_reservations(self, records: Iterable[InventoryRecord]) -> None:
        """
        Roll cart reservations back to a saved state.

        Only `reserved` is restored. Stock, the availability flag and the
        set of tracked products belong to the seller and stay as they are
        now: a product published since the snapshot stays tracked with
        nothing reserved, a withdrawn one is not brought back.
        """
        saved = {_key(r.product_id): r.reserved for r in records}
        for key, record in self._records.items():
            record.reserved = min(saved.get(key, 0), record.stock)
