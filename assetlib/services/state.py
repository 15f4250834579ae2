"""Client state cache and the reducers that change the current view.

The library controllers own one :class:`AppState`. Navigation goes through
:meth:`AppState.dispatch` with one of the reducer functions below, so every
change ends with the registered listeners being notified (the render layer
subscribes instead of reading globals).
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from assetlib.services import filtering
from assetlib.services.filtering import ALL
from assetlib.services.selection import Selection

logger = logging.getLogger(__name__)

Listener = Callable[["AppState"], None]


class AppState:
    def __init__(self) -> None:
        # mirrors of the store
        self.projects: list[dict[str, Any]] = []
        self.folders: list[dict[str, Any]] = []
        self.assets: list[dict[str, Any]] = []
        # derived, recomputed after every fetch
        self.asset_counts: dict[Any, int] = {}
        self.storage_bytes = 0
        # view
        self.current_project_id: Any = None
        self.selected_folder: Any = ALL
        self.parent_folder: Any = None
        self.search_query = ""
        self.selection = Selection()
        self.pending_files: list[Any] = []
        self._listeners: list[Listener] = []

    # -- listeners ---------------------------------------------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("State listener failed")

    def dispatch(self, reducer: Callable[..., Any], *args: Any) -> Any:
        result = reducer(self, *args)
        self.notify()
        return result

    # -- lookups -----------------------------------------------------------
    @property
    def current_project(self) -> dict[str, Any] | None:
        return self.find_project(self.current_project_id)

    def find_project(self, project_id: Any) -> dict[str, Any] | None:
        return next((p for p in self.projects if p["id"] == project_id), None)

    def find_folder(self, folder_id: Any) -> dict[str, Any] | None:
        return next((f for f in self.folders if f["id"] == folder_id), None)

    def find_asset(self, asset_id: Any) -> dict[str, Any] | None:
        return next((a for a in self.assets if a["id"] == asset_id), None)

    def project_folders(self, project_id: Any = None) -> list[dict[str, Any]]:
        pid = self.current_project_id if project_id is None else project_id
        return [f for f in self.folders if f.get("project_id") == pid]

    def level_folders(self) -> list[dict[str, Any]]:
        """Carpetas del nivel actual (hijas de ``parent_folder``)."""
        return [f for f in self.project_folders() if f.get("parent_id") == self.parent_folder]

    def visible_assets(self) -> list[dict[str, Any]]:
        return filtering.visible_assets(
            self.assets,
            self.project_folders() if self.current_project_id is not None else self.folders,
            project_id=self.current_project_id,
            selected_folder=self.selected_folder,
            parent_folder=self.parent_folder,
            query=self.search_query,
        )

    def replace_project_assets(self, project_id: Any, rows: list[dict[str, Any]]) -> None:
        self.assets = [a for a in self.assets if a.get("project_id") != project_id] + list(rows)
        self.asset_counts[project_id] = len(rows)


# -- reducers ---------------------------------------------------------------
def _reset_view(state: AppState) -> None:
    state.selected_folder = ALL
    state.parent_folder = None
    state.search_query = ""
    state.selection.exit()


def show_dashboard(state: AppState) -> None:
    state.current_project_id = None
    _reset_view(state)


def open_project(state: AppState, project_id: Any) -> bool:
    if state.find_project(project_id) is None:
        return False
    state.current_project_id = project_id
    _reset_view(state)
    return True


def select_folder(state: AppState, folder_id: Any) -> None:
    state.selected_folder = ALL if folder_id in (None, ALL) else folder_id


def drill_into(state: AppState, folder_id: Any) -> None:
    state.parent_folder = folder_id
    state.selected_folder = ALL


def go_back(state: AppState) -> None:
    parent = state.find_folder(state.parent_folder)
    state.parent_folder = parent.get("parent_id") if parent else None
    state.selected_folder = ALL


def set_search(state: AppState, query: str | None) -> None:
    state.search_query = filtering.normalize_query(query)


def clear_search(state: AppState) -> None:
    state.search_query = ""
