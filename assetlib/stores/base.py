"""Contract shared by the record stores behind the library controllers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Protocol

from assetlib.errors import StoreError

logger = logging.getLogger(__name__)

TABLES = ("projects", "folders", "assets")

Row = dict[str, Any]


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    event: str  # INSERT | UPDATE | DELETE
    row_id: Any = None


ChangeCallback = Callable[[ChangeEvent], None]


class Store(Protocol):
    def list(
        self,
        table: str,
        *,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
        columns: Iterable[str] | None = None,
    ) -> list[Row]: ...

    def insert(self, table: str, values: Row) -> Row: ...

    def insert_replacing(self, table: str, values: Row, match_on: Iterable[str]) -> Row: ...

    def update(self, table: str, row_id: Any, values: Row) -> Row: ...

    def delete(self, table: str, row_id: Any) -> None: ...

    def delete_with(
        self,
        table: str,
        row_id: Any,
        *,
        also_delete: dict[str, Iterable[Any]] | None = None,
        also_update: dict[str, tuple[Iterable[Any], Row]] | None = None,
    ) -> int: ...

    def delete_in(self, table: str, ids: Iterable[Any]) -> int: ...

    def count(self, table: str, filters: dict[str, Any] | None = None) -> int: ...

    def subscribe(self, table: str, callback: ChangeCallback) -> Callable[[], None]: ...


class ChangeBus:
    """Delivers change notifications to per-table subscribers.

    Callbacks run synchronously after the write committed. A failing
    subscriber is logged and never propagates back into the writer.
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, list[ChangeCallback]] = {t: [] for t in TABLES}

    def subscribe(self, table: str, callback: ChangeCallback) -> Callable[[], None]:
        if table not in self._subscribers:
            raise StoreError(f"Cannot subscribe to unknown table '{table}'")
        self._subscribers[table].append(callback)

        def _unsubscribe() -> None:
            try:
                self._subscribers[table].remove(callback)
            except ValueError:
                pass

        return _unsubscribe

    def publish(self, event: ChangeEvent) -> None:
        for callback in list(self._subscribers.get(event.table, ())):
            try:
                callback(event)
            except Exception:
                logger.exception("Change subscriber failed for %s", event.table)


def check_table(table: str) -> None:
    if table not in TABLES:
        raise StoreError(f"Unknown table '{table}'")
