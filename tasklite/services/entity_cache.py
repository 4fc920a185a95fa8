"""In-memory ordered cache of entities backing the rendered lists."""

from dataclasses import dataclass
from typing import Callable, Generic, Iterable, Optional, Protocol, TypeVar
from datetime import datetime


class CachedEntity(Protocol):
    id: str
    created_at: datetime


E = TypeVar("E", bound=CachedEntity)


@dataclass(frozen=True)
class PendingMutation(Generic[E]):
    """Handle for an optimistic change: the pre-image plus a label for logs."""
    label: str
    prior: tuple[E, ...]


class EntityCache(Generic[E]):
    """
    Entities ordered by creation time, newest first.

    Entities are immutable models, so a snapshot is just the tuple of
    current items and stays valid whatever happens to the cache later.
    Every write is a single synchronous step.
    """

    def __init__(self) -> None:
        self._items: tuple[E, ...] = ()
        self.version = 0

    @property
    def items(self) -> tuple[E, ...]:
        return self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(self._items)

    def get(self, entity_id: str) -> Optional[E]:
        for item in self._items:
            if item.id == entity_id:
                return item
        return None

    def snapshot(self) -> tuple[E, ...]:
        return self._items

    def _set(self, items: Iterable[E]) -> None:
        self._items = tuple(items)
        self.version += 1

    def replace_all(self, items: Iterable[E]) -> None:
        """Install server truth, re-establishing created_at descending order."""
        self._set(sorted(items, key=lambda item: item.created_at, reverse=True))

    def clear(self) -> None:
        self._set(())

    def prepend(self, item: E) -> None:
        self._set((item,) + self._items)

    def restore(self, snapshot: tuple[E, ...]) -> None:
        self._set(snapshot)

    # Two-phase optimistic command
    def apply(self, mutation: Callable[[tuple[E, ...]], Iterable[E]], label: str) -> PendingMutation[E]:
        """Apply a tentative change now and return the handle needed to undo it."""
        pending = PendingMutation(label=label, prior=self._items)
        self._set(mutation(self._items))
        return pending

    def commit(self, pending: PendingMutation[E]) -> None:
        """Remote side confirmed; the cache already holds the final state."""

    def rollback(self, pending: PendingMutation[E]) -> None:
        """Restore exactly what the cache held before ``apply``."""
        self.restore(pending.prior)
