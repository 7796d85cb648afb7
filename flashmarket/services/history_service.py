# flashmarket/services/history_service.py
import logging
from collections import deque
from datetime import datetime, timezone
from typing import Iterable

from pydantic import BaseModel, ConfigDict, Field

from flashmarket.models.cart import CartLine
from flashmarket.models.discount import Discount
from flashmarket.models.inventory import InventoryRecord
from flashmarket.schemas.cart import HistoryStats, SnapshotInfo

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_CAP = 20


class CartSnapshot(BaseModel):
    """
    Immutable copy of the whole cart state at one point in time.

    Built with capture(), which deep-copies its inputs; the restore_*
    accessors hand out fresh deep copies again, so a snapshot never
    shares mutable objects with live state.
    """

    model_config = ConfigDict(frozen=True)

    lines: tuple[CartLine, ...] = ()
    discounts: tuple[Discount, ...] = ()
    inventory: tuple[InventoryRecord, ...] = ()
    taken_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def capture(
        cls,
        lines: Iterable[CartLine],
        discounts: Iterable[Discount],
        inventory: Iterable[InventoryRecord],
    ) -> "CartSnapshot":
        return cls(
            lines=tuple(line.model_copy(deep=True) for line in lines),
            discounts=tuple(d.model_copy(deep=True) for d in discounts),
            inventory=tuple(r.model_copy(deep=True) for r in inventory),
        )

    def restore_lines(self) -> list[CartLine]:
        return [line.model_copy(deep=True) for line in self.lines]

    def restore_discounts(self) -> list[Discount]:
        return [d.model_copy(deep=True) for d in self.discounts]

    def restore_inventory(self) -> list[InventoryRecord]:
        return [r.model_copy(deep=True) for r in self.inventory]

    def info(self) -> SnapshotInfo:
        return SnapshotInfo(
            taken_at=self.taken_at,
            line_count=len(self.lines),
            quantity_total=sum(line.quantity for line in self.lines),
        )


class HistoryManager:
    """
    Bounded, linear undo/redo over CartSnapshot objects.

    - save() records the state *before* a mutation and drops the redo branch.
    - undo(current) parks the live state on the redo stack and returns
      the state to go back to.
    - redo(current) parks the live state on the history stack and returns
      the state to go forward to.
    - Once more than `cap` states are saved, the oldest is evicted.
    """

    def __init__(self, cap: int = DEFAULT_HISTORY_CAP):
        if cap < 1:
            raise ValueError("History cap must be at least 1")
        self.cap = cap
        self._history: deque[CartSnapshot] = deque(maxlen=cap)
        self._redo: list[CartSnapshot] = []

    def save(self, snapshot: CartSnapshot) -> None:
        self._history.append(snapshot)
        self._redo.clear()
        logger.debug("Snapshot saved, history size %d", len(self._history))

    def undo(self, current: CartSnapshot) -> CartSnapshot | None:
        if not self._history:
            return None
        previous = self._history.pop()
        self._redo.append(current)
        return previous

    def redo(self, current: CartSnapshot) -> CartSnapshot | None:
        if not self._redo:
            return None
        following = self._redo.pop()
        self._history.append(current)
        return following

    def can_undo(self) -> bool:
        return bool(self._history)

    def can_redo(self) -> bool:
        return bool(self._redo)

    def clear(self) -> None:
        self._history.clear()
        self._redo.clear()

    def stats(self) -> HistoryStats:
        return HistoryStats(
            history_size=len(self._history),
            redo_size=len(self._redo),
            cap=self.cap,
            can_undo=self.can_undo(),
            can_redo=self.can_redo(),
        )

    def entries(self) -> list[SnapshotInfo]:
        """Saved states, oldest first."""
        return [s.info() for s in self._history]
