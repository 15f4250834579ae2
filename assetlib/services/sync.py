"""Reconciliation of the in-memory mirror with the store.

Every change notification triggers a full re-fetch of the affected
collection; nothing is patched row by row. Each collection runs a small
state machine (idle -> fetching -> idle | error) so retries and races can be
observed from tests.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable

from assetlib.errors import StoreError
from assetlib.stores.base import ChangeEvent

logger = logging.getLogger(__name__)

IDLE = "idle"
FETCHING = "fetching"
ERROR = "error"

APPLIED = "applied"
STALE = "stale"
FAILED = "failed"


class CollectionSync:
    """Fetch-and-replace cycle for one collection.

    ``fetch(context)`` returns the rows, ``apply(context, rows)`` installs them.
    ``context`` is read before the fetch and again once it completes; when it
    changed in between (another project was opened, a newer refresh started)
    the result is discarded instead of applied.
    """

    def __init__(
        self,
        name: str,
        fetch: Callable[[Any], Any],
        apply: Callable[[Any, Any], None],
        context: Callable[[], Any] = lambda: None,
    ) -> None:
        self.name = name
        self._fetch = fetch
        self._apply = apply
        self._context = context
        self.state = IDLE
        self.error: StoreError | None = None
        self.generation = 0
        self.failures = 0

    def refresh(self) -> str:
        self.generation += 1
        generation = self.generation
        context = self._context()
        self.state = FETCHING
        try:
            rows = self._fetch(context)
        except StoreError as exc:
            if generation == self.generation:
                self.state = ERROR
                self.error = exc
                self.failures += 1
            logger.error("Sync of %s failed: %s", self.name, exc.message)
            return FAILED
        if generation != self.generation or self._context() != context:
            logger.debug("Discarding stale %s fetch (context %r)", self.name, context)
            if generation == self.generation:
                self.state = IDLE
            return STALE
        self._apply(context, rows)
        self.state = IDLE
        self.error = None
        return APPLIED

    def retry(self) -> str | None:
        """Vuelve a intentar sólo si el último ciclo terminó en error."""
        if self.state != ERROR:
            return None
        return self.refresh()


class Reconciler:
    """on(table_changed) -> refetch -> recompute derived -> notify view."""

    def __init__(
        self,
        routes: dict[str, Iterable[CollectionSync]],
        recompute: Callable[[], None] = lambda: None,
        notify: Callable[[], None] = lambda: None,
        on_error: Callable[[CollectionSync], None] = lambda sync: None,
    ) -> None:
        self.routes = {table: list(syncs) for table, syncs in routes.items()}
        self._recompute = recompute
        self._notify = notify
        self._on_error = on_error

    def on_change(self, event: ChangeEvent | str) -> list[str]:
        table = event.table if isinstance(event, ChangeEvent) else event
        outcomes = []
        for sync in self.routes.get(table, ()):
            outcome = sync.refresh()
            outcomes.append(outcome)
            if outcome == FAILED:
                self._on_error(sync)
        if APPLIED in outcomes:
            self._recompute()
            self._notify()
        return outcomes
