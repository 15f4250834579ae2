"""Bulk selection mode: a set of asset ids plus the on/off flag."""

from __future__ import annotations

from typing import Any, Iterable


class Selection:
    def __init__(self) -> None:
        self.active = False
        self.ids: set[Any] = set()

    def enter(self) -> None:
        self.active = True

    def exit(self) -> None:
        # Leaving selection mode always empties the set.
        self.active = False
        self.ids.clear()

    def toggle_mode(self) -> bool:
        if self.active:
            self.exit()
        else:
            self.enter()
        return self.active

    def toggle(self, asset_id: Any) -> bool:
        """Alterna un id; devuelve True si quedó seleccionado."""
        if asset_id in self.ids:
            self.ids.discard(asset_id)
            return False
        self.ids.add(asset_id)
        return True

    def select_all(self, visible_ids: Iterable[Any]) -> None:
        # adds what the current view shows; earlier picks stay selected
        self.ids.update(visible_ids)

    def deselect_all(self) -> None:
        self.ids.clear()

    def prune(self, existing_ids: Iterable[Any]) -> None:
        self.ids &= set(existing_ids)

    def discard_many(self, ids: Iterable[Any]) -> None:
        self.ids.difference_update(ids)

    def __len__(self) -> int:
        return len(self.ids)

    def __contains__(self, asset_id: Any) -> bool:
        return asset_id in self.ids

    def count_label(self) -> str:
        return f"{len(self.ids)} selected"
