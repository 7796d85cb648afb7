# flashmarket/services/cart_service.py
import logging
from typing import Any, Callable, Iterable

from flashmarket.core.config import Settings, get_settings
from flashmarket.models.cart import AddOn, AddOnType
from flashmarket.models.product import Product, ProductId
from flashmarket.repositories.cart_repo import CartRepository
from flashmarket.repositories.inventory_repo import InventoryLedger
from flashmarket.schemas.cart import (
    Availability,
    CartError,
    CartResult,
    CartSummary,
    HistoryStats,
    SnapshotInfo,
)
from flashmarket.services.add_ons import default_add_on, rebuild_add_ons
from flashmarket.services.history_service import CartSnapshot, HistoryManager
from flashmarket.services.pricing_service import PricingService, resolve_discount_code

logger = logging.getLogger(__name__)

CartListener = Callable[[CartSummary], None]


class CartService:
    """
    Single entry point to the cart.

    Responsibilities:
      - check inventory before anything changes
      - snapshot the full state before every successful mutation (undo/redo)
      - keep line quantities and inventory reservations in step
      - publish the recomputed summary to subscribers

    Domain failures are never raised: every command returns a CartResult.
    A failed command leaves lines, discounts, inventory and history as
    they were.
    """

    def __init__(
        self,
        inventory: InventoryLedger | None = None,
        cart_repo: CartRepository | None = None,
        pricing: PricingService | None = None,
        history: HistoryManager | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.inventory = (
            inventory if inventory is not None
            else InventoryLedger(default_stock=self.settings.DEFAULT_STOCK)
        )
        self.cart_repo = cart_repo if cart_repo is not None else CartRepository()
        self.pricing = (
            pricing if pricing is not None
            else PricingService(tax_rate=self.settings.TAX_RATE)
        )
        self.history = (
            history if history is not None
            else HistoryManager(cap=self.settings.HISTORY_LIMIT)
        )
        self._subscribers: list[CartListener] = []

    # ---- internal helpers ----

    @staticmethod
    def _ok(message: str, **extra: Any) -> CartResult:
        return CartResult(success=True, message=message, **extra)

    @staticmethod
    def _fail(error: CartError, message: str, **extra: Any) -> CartResult:
        return CartResult(success=False, error=error, message=message, **extra)

    def _unavailable(self, availability: Availability) -> CartResult:
        return self._fail(
            availability.reason or CartError.NOT_FOUND,
            availability.message,
            units_left=availability.units_left,
        )

    def _capture(self) -> CartSnapshot:
        return CartSnapshot.capture(
            self.cart_repo.list_lines(),
            self.pricing.list_discounts(),
            self.inventory.export_state(),
        )

    def _save_snapshot(self) -> None:
        self.history.save(self._capture())

    def _restore(self, snapshot: CartSnapshot) -> None:
        self.cart_repo.replace_all(snapshot.restore_lines())
        self.pricing.set_discounts(snapshot.restore_discounts())
        self.inventory.restore_reservations(snapshot.restore_inventory())

    def _publish(self) -> None:
        """
        Deliver the current summary to every subscriber, in order.
        A failing subscriber does not stop delivery to the others.
        """
        summary = self.snapshot_summary()
        for callback in list(self._subscribers):
            try:
                callback(summary)
            except Exception:
                logger.exception("Cart subscriber %r failed", callback)

    @staticmethod
    def _parse_add_on(raw: AddOnType | str) -> AddOnType | None:
        try:
            return AddOnType(raw)
        except ValueError:
            return None

    # ---- subscriptions ----

    def subscribe(self, callback: CartListener) -> Callable[[], None]:
        """
        Register a listener for summaries published after each change.

        Returns:
            A function that removes the listener again.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # ---- queries ----

    def snapshot_summary(self) -> CartSummary:
        """
        Current lines plus totals. Pure read: no snapshot, no publish.
        """
        lines = self.cart_repo.list_lines()
        discounts = self.pricing.list_discounts()
        totals = self.pricing.compute_totals(lines, discounts)

        return CartSummary(
            lines=lines,
            quantity_total=sum(line.quantity for line in lines),
            subtotal=totals.subtotal,
            discounts=totals.discounts,
            tax=totals.tax,
            total=totals.total,
            discounts_applied=discounts,
        )

    def is_empty(self) -> bool:
        return self.cart_repo.total_quantity() == 0

    def total_quantity(self) -> int:
        return self.cart_repo.total_quantity()

    def availability(self, product_id: ProductId, quantity: int = 1) -> Availability:
        return self.inventory.check_availability(product_id, quantity)

    def history_stats(self) -> HistoryStats:
        return self.history.stats()

    def history_entries(self) -> list[SnapshotInfo]:
        return self.history.entries()

    # ---- catalog bridge ----

    def seed_inventory(self, products: Iterable[Product]) -> int:
        """
        Track catalog products in the inventory ledger.
        Products already tracked keep their stock and reservations.
        """
        return self.inventory.seed(products)

    def remove_from_inventory(self, product_id: ProductId) -> bool:
        removed = self.inventory.remove(product_id)
        if removed:
            logger.info("Product %s withdrawn from inventory", product_id)
        return removed

    def set_product_available(self, product_id: ProductId, available: bool) -> bool:
        return self.inventory.set_available(product_id, available)

    # ---- commands ----

    def add_product(self, product: Product, quantity: int = 1) -> CartResult:
        """
        Add units of a catalog product, merging into its existing line.

        Steps:
          1. Reject quantity < 1.
          2. Check free stock for the requested units.
          3. Snapshot, add/merge the line, reserve, publish.
        """
        if quantity < 1:
            return self._fail(CartError.INVALID_QUANTITY, "Quantity must be at least 1")

        availability = self.inventory.check_availability(product.id, quantity)
        if not availability.available:
            return self._unavailable(availability)

        self._save_snapshot()
        self.cart_repo.add_line(product, quantity)
        self.inventory.reserve(product.id, quantity)
        self._publish()

        logger.info("Added %d x product %s to cart", quantity, product.id)
        return self._ok("Product added to cart")

    def remove_product(self, identifier: Any) -> CartResult:
        """
        Remove a line (by line id) or every line of a product (by base id)
        and release their reservations. Removing something absent is a no-op.
        """
        matched = self.cart_repo.find_all(identifier)
        if not matched:
            # nothing changes, so no undo step and the redo branch survives
            return self._ok("Product removed from cart")

        self._save_snapshot()
        for line in matched:
            self.inventory.release(line.base_id, line.quantity)
        self.cart_repo.remove_line(identifier)
        self._publish()

        logger.info("Removed %d line(s) matching %s", len(matched), identifier)
        return self._ok("Product removed from cart")

    def set_quantity(self, identifier: Any, quantity: int) -> CartResult:
        """
        Overwrite a line's quantity; 0 or less removes the line.

        Growing re-checks free stock for the difference only.
        """
        line = self.cart_repo.find(identifier)
        if line is None:
            return self._fail(CartError.NOT_FOUND, "Product not found in cart")

        new_quantity = max(quantity, 0)
        delta = new_quantity - line.quantity

        if delta > 0:
            availability = self.inventory.check_availability(line.base_id, delta)
            if not availability.available:
                return self._unavailable(availability)

        self._save_snapshot()
        if delta > 0:
            self.inventory.reserve(line.base_id, delta)
        elif delta < 0:
            self.inventory.release(line.base_id, -delta)
        self.cart_repo.set_quantity(line.cart_item_id, new_quantity)
        self._publish()

        return self._ok("Quantity updated")

    def redeem_discount_code(self, code: str) -> CartResult:
        discount = resolve_discount_code(code)
        if discount is None:
            return self._fail(CartError.INVALID_CODE, "Invalid discount code")

        self._save_snapshot()
        self.pricing.add_discount(discount)
        self._publish()

        logger.info("Discount code %s redeemed", discount.code)
        return self._ok(f"Discount applied: {discount.description}", discount=discount)

    def apply_add_ons(self, identifier: Any, add_on_types: Iterable[AddOnType | str]) -> CartResult:
        """
        Replace a line's add-on set.

        The price is rebuilt from base_price with the requested extras in
        fixed order, so calling this twice never compounds.
        """
        line = self.cart_repo.find(identifier)
        if line is None:
            return self._fail(CartError.NOT_FOUND, "Product not found in cart")

        wanted: list[AddOn] = []
        for raw in add_on_types:
            add_on_type = self._parse_add_on(raw)
            if add_on_type is None:
                return self._fail(CartError.UNKNOWN_ADD_ON, f"Unknown add-on: {raw}")
            wanted.append(default_add_on(add_on_type, self.settings))

        rebuilt = rebuild_add_ons(line, wanted)

        self._save_snapshot()
        self.cart_repo.update_line(
            line.cart_item_id,
            base_price=rebuilt.base_price,
            price=rebuilt.price,
            add_ons=rebuilt.add_ons,
        )
        self._publish()

        return self._ok("Add-ons applied")

    def remove_add_on(self, identifier: Any, add_on_type: AddOnType | str) -> CartResult:
        """
        Drop one add-on type from a line and rebuild the price from the rest.
        """
        line = self.cart_repo.find(identifier)
        if line is None:
            return self._fail(CartError.NOT_FOUND, "Product not found in cart")

        if not line.add_ons:
            return self._fail(CartError.NO_ADD_ONS, "No add-ons applied to this line")

        parsed = self._parse_add_on(add_on_type)
        if parsed is None:
            return self._fail(CartError.UNKNOWN_ADD_ON, f"Unknown add-on: {add_on_type}")

        remaining = [a for a in line.add_ons if a.type != parsed]
        rebuilt = rebuild_add_ons(line, remaining)

        self._save_snapshot()
        self.cart_repo.update_line(
            line.cart_item_id,
            base_price=rebuilt.base_price,
            price=rebuilt.price,
            add_ons=rebuilt.add_ons,
        )
        self._publish()

        return self._ok("Add-on removed")

    def clear(self) -> CartResult:
        """
        Empty the cart: release every reservation, drop lines and discounts.
        """
        self._save_snapshot()
        for line in self.cart_repo.list_lines():
            self.inventory.release(line.base_id, line.quantity)
        self.cart_repo.clear()
        self.pricing.clear_discounts()
        self._publish()

        return self._ok("Cart cleared")

    def checkout(self, payment_method: str) -> CartResult:
        """
        Commit the cart as a sale.

        Steps:
          1. Fail on an empty cart.
          2. Turn reservations into sold stock.
          3. Capture the final summary.
          4. Empty lines and discounts and reset undo history
             (a committed sale cannot be undone).

        Payment itself is handled by the caller.
        """
        lines = self.cart_repo.list_lines()
        if not lines:
            return self._fail(CartError.EMPTY_CART, "Cart is empty")

        self.inventory.confirm_purchase(lines)
        summary = self.snapshot_summary()

        self.cart_repo.clear()
        self.pricing.clear_discounts()
        self.history.clear()
        self._publish()

        logger.info(
            "Checkout completed: %d units, total %.2f, method %s",
            summary.quantity_total, summary.total, payment_method,
        )
        return self._ok(
            "Purchase completed",
            summary=summary,
            payment_method=payment_method,
        )

    # ---- history ----

    def undo(self) -> CartResult:
        previous = self.history.undo(self._capture())
        if previous is None:
            return self._fail(CartError.NOTHING_TO_UNDO, "Nothing to undo")

        self._restore(previous)
        self._publish()
        return self._ok("Action undone")

    def redo(self) -> CartResult:
        following = self.history.redo(self._capture())
        if following is None:
            return self._fail(CartError.NOTHING_TO_REDO, "Nothing to redo")

        self._restore(following)
        self._publish()
        return self._ok("Action redone")
