# flashmarket/repositories/cart_repo.py
import uuid
from typing import Any, Iterable

from flashmarket.models.cart import CartLine, make_group_key
from flashmarket.models.product import Product, ProductId


class CartRepository:
    """
    Ordered, in-memory collection of cart lines.

    - One line per base product (merge on add, merge on update).
    - Lookups accept a line id or a base product id; line ids win.
    - No inventory, no pricing.
    """

    def __init__(self) -> None:
        self._lines: list[CartLine] = []

    # ----- helpers -----

    @staticmethod
    def _new_line_id(base_id: ProductId) -> str:
        return f"{base_id}-{uuid.uuid4().hex[:8]}"

    @staticmethod
    def _matches_base(line: CartLine, identifier: Any) -> bool:
        # base ids compare by string form so "3" finds product 3
        return str(line.base_id) == str(identifier)

    def _index_of(self, cart_item_id: str) -> int:
        for idx, line in enumerate(self._lines):
            if line.cart_item_id == cart_item_id:
                return idx
        return -1

    def _by_group_key(self, group_key: str) -> CartLine | None:
        for line in self._lines:
            if line.group_key == group_key:
                return line
        return None

    # ----- queries -----

    def find(self, identifier: Any) -> CartLine | None:
        """
        First line matching the identifier: exact line id, else base id.
        Returns a copy.
        """
        for line in self._lines:
            if line.cart_item_id == identifier:
                return line.model_copy(deep=True)
        for line in self._lines:
            if self._matches_base(line, identifier):
                return line.model_copy(deep=True)
        return None

    def find_all(self, identifier: Any) -> list[CartLine]:
        """
        Lines remove_line() would drop for this identifier.
        """
        exact = [line for line in self._lines if line.cart_item_id == identifier]
        if exact:
            return [line.model_copy(deep=True) for line in exact]
        return [line.model_copy(deep=True) for line in self._lines if self._matches_base(line, identifier)]

    def list_lines(self) -> list[CartLine]:
        return [line.model_copy(deep=True) for line in self._lines]

    def total_quantity(self) -> int:
        return sum(line.quantity for line in self._lines)

    def is_empty(self) -> bool:
        return not self._lines

    # ----- mutations -----

    def add_line(
        self,
        product: Product,
        quantity: int,
        merge_if_matching: bool = True,
    ) -> CartLine:
        """
        Add quantity units of a product.

        If a line for the same product exists and merging is requested,
        its quantity grows; otherwise a new line is created with base_price
        captured from the product's current price.
        """
        group_key = make_group_key(product.id)

        if merge_if_matching:
            existing = self._by_group_key(group_key)
            if existing is not None:
                existing.quantity += quantity
                return existing.model_copy(deep=True)

        line = CartLine(
            cart_item_id=self._new_line_id(product.id),
            base_id=product.id,
            name=product.name,
            image=product.image,
            quantity=quantity,
            base_price=product.price,
            price=product.price,
            add_ons=[],
            group_key=group_key,
        )
        self._lines.append(line)
        return line.model_copy(deep=True)

    def remove_line(self, identifier: Any) -> list[CartLine]:
        """
        Remove by exact line id; if none matches, remove every line of
        that base product. Returns the removed lines.
        """
        idx = self._index_of(identifier) if isinstance(identifier, str) else -1
        if idx != -1:
            return [self._lines.pop(idx)]

        removed = [line for line in self._lines if self._matches_base(line, identifier)]
        self._lines = [line for line in self._lines if not self._matches_base(line, identifier)]
        return removed

    def set_quantity(self, identifier: Any, quantity: int) -> CartLine | None:
        """
        Overwrite the quantity of the matched line.
        quantity <= 0 removes it (returns None).
        """
        target = self.find(identifier)
        if target is None:
            return None

        if quantity <= 0:
            self.remove_line(target.cart_item_id)
            return None

        line = self._lines[self._index_of(target.cart_item_id)]
        line.quantity = quantity
        return line.model_copy(deep=True)

    def update_line(self, cart_item_id: str, **fields: Any) -> CartLine | None:
        """
        Apply field updates to one line.

        If the updated line ends up sharing its group_key with another
        line, the quantities are merged into that other line and the
        updated one is dropped.

        Returns:
            The surviving line (copy), or None if cart_item_id is unknown.
        """
        idx = self._index_of(cart_item_id)
        if idx == -1:
            return None

        updated = self._lines[idx].model_copy(update=fields, deep=True)
        updated.group_key = make_group_key(updated.base_id)

        for other_idx, other in enumerate(self._lines):
            if other_idx != idx and other.group_key == updated.group_key:
                other.quantity += updated.quantity
                self._lines.pop(idx)
                return other.model_copy(deep=True)

        self._lines[idx] = updated
        return updated.model_copy(deep=True)

    def clear(self) -> None:
        self._lines = []

    def replace_all(self, lines: Iterable[CartLine]) -> None:
        """Bulk overwrite (snapshot restore)."""
        self._lines = [line.model_copy(deep=True) for line in lines]
