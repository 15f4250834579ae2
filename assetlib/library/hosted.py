"""Hosted (multi-table) variant of the asset library.

``HostedCatalog`` holds the store operations and raises domain errors; the
JSON API calls it directly. ``HostedLibrary`` is the interactive controller:
it keeps the :class:`AppState` mirror in sync, asks for confirmation before
destructive calls and turns every failure into a toast.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable

from assetlib.errors import AssetLibraryError, NotFoundError, StoreError, ValidationError
from assetlib.metrics import (
    assets_deleted_total,
    assets_registered,
    projects_registered,
    uploads_total,
)
from assetlib.models.project import DEFAULT_PROJECT_COLOR
from assetlib.notify import Confirmer, Notifier, always_confirm
from assetlib.services import state as reducers
from assetlib.services import validation
from assetlib.services.downloads import BulkDownloadResult, Download, prepare_download, run_bulk_download
from assetlib.services.filtering import ALL
from assetlib.services.state import AppState
from assetlib.services.sync import CollectionSync, Reconciler
from assetlib.services.upload import UploadCandidate, UploadResult, build_asset, partition
from assetlib.stores.base import Store

logger = logging.getLogger(__name__)

ASSET_FETCH_LIMIT = 200
CASCADE = "cascade"
DETACH = "detach"
REPLACE_KEYS = ("project_id", "folder_id", "name")


class HostedCatalog:
    def __init__(self, store: Store, folder_delete_policy: str = CASCADE) -> None:
        if folder_delete_policy not in (CASCADE, DETACH):
            raise ValueError(f"Unknown folder delete policy: {folder_delete_policy}")
        self.store = store
        self.folder_delete_policy = folder_delete_policy

    # -- reads -------------------------------------------------------------
    def projects(self) -> list[dict[str, Any]]:
        return self.store.list("projects", order_by="created_at", descending=True)

    def folders(self, project_id: Any = None) -> list[dict[str, Any]]:
        filters = {"project_id": project_id} if project_id is not None else None
        return self.store.list("folders", filters=filters, order_by="created_at")

    def assets(self, project_id: Any) -> list[dict[str, Any]]:
        return self.store.list(
            "assets",
            filters={"project_id": project_id},
            order_by="upload_date",
            descending=True,
            limit=ASSET_FETCH_LIMIT,
        )

    def asset(self, asset_id: Any) -> dict[str, Any]:
        rows = self.store.list("assets", filters={"id": asset_id}, limit=1)
        if not rows:
            raise NotFoundError("Asset not found")
        return rows[0]

    def assets_by_ids(self, asset_ids: Iterable[Any]) -> list[dict[str, Any]]:
        ids = list(asset_ids)
        if not ids:
            return []
        return self.store.list("assets", filters={"id": ids}, order_by="upload_date", descending=True)

    def project(self, project_id: Any) -> dict[str, Any]:
        rows = self.store.list("projects", filters={"id": project_id}, limit=1)
        if not rows:
            raise NotFoundError("Project not found")
        return rows[0]

    def asset_counts(self, project_ids: Iterable[Any]) -> dict[Any, int]:
        # una consulta de conteo por proyecto, sin traer filas
        return {pid: self.store.count("assets", {"project_id": pid}) for pid in project_ids}

    def storage_total(self) -> int:
        return sum(row.get("size") or 0 for row in self.store.list("assets", columns=["size"]))

    def refresh_gauges(self) -> None:
        projects_registered.set(self.store.count("projects"))
        assets_registered.set(self.store.count("assets"))

    # -- projects ----------------------------------------------------------
    def create_project(self, name: Any, description: Any = None, color: Any = None) -> dict[str, Any]:
        clean = validation.project_name(name)
        desc = description.strip() if isinstance(description, str) else None
        return self.store.insert(
            "projects",
            {"name": clean, "description": desc or None, "color": color or DEFAULT_PROJECT_COLOR},
        )

    def delete_project(self, project_id: Any) -> None:
        self.project(project_id)
        self.store.delete("projects", project_id)
        logger.info("Project deleted", extra={"event": "project_deleted", "project_id": project_id})

    # -- folders -----------------------------------------------------------
    def create_folder(self, project_id: Any, name: Any, parent_id: Any = None) -> dict[str, Any]:
        if project_id is None or not self.store.count("projects", {"id": project_id}):
            raise ValidationError("Please select a project first")
        clean = validation.folder_name(name)
        validation.check_parent(self.folders(project_id), project_id, parent_id)
        return self.store.insert("folders", {"project_id": project_id, "name": clean, "parent_id": parent_id})

    def move_folder(self, folder_id: Any, parent_id: Any) -> dict[str, Any]:
        rows = self.store.list("folders", filters={"id": folder_id}, limit=1)
        if not rows:
            raise NotFoundError("Folder not found")
        validation.check_move(self.folders(rows[0]["project_id"]), folder_id, parent_id)
        return self.store.update("folders", folder_id, {"parent_id": parent_id})

    def delete_folder(self, folder_id: Any) -> int:
        """Delete a folder. Returns how many assets went with it."""
        rows = self.store.list("folders", filters={"id": folder_id}, limit=1)
        if not rows:
            raise NotFoundError("Folder not found")
        ids = validation.subtree_ids(self.folders(rows[0]["project_id"]), folder_id)
        asset_ids = [r["id"] for r in self.store.list("assets", filters={"folder_id": ids}, columns=["id"])]
        # one transaction: subfolders go through the ORM cascade
        if self.folder_delete_policy == CASCADE:
            removed = self.store.delete_with("folders", folder_id, also_delete={"assets": asset_ids})
            assets_deleted_total.inc(removed)
            return removed
        # detached assets stay in the project, outside any folder
        self.store.delete_with("folders", folder_id, also_update={"assets": (asset_ids, {"folder_id": None})})
        return 0

    # -- assets ------------------------------------------------------------
    def upload(
        self, candidates: Iterable[UploadCandidate], project_id: Any, folder_id: Any = None
    ) -> UploadResult:
        files = list(candidates)
        if project_id is None or not files:
            raise ValidationError("Please select a project and files")
        validation.check_asset_target(
            self.store.list("projects", filters={"id": project_id}, columns=["id"]),
            self.folders(project_id) if folder_id is not None else [],
            project_id,
            folder_id,
        )
        result = UploadResult()
        valid = partition(files, result)
        uploads_total.labels("rejected").inc(result.failed)
        for candidate in valid:
            values = build_asset(candidate, project_id=project_id, folder_id=folder_id)
            values.pop("upload_date")  # database clock
            try:
                # same name in the same project/folder: the newer upload replaces
                stored = self.store.insert_replacing("assets", values, REPLACE_KEYS)
            except StoreError as exc:
                logger.error("Error uploading file %s: %s", candidate.name, exc.details or exc.message)
                result.reject(f'Failed to upload "{candidate.name}"')
                uploads_total.labels("failed").inc()
                continue
            result.succeeded += 1
            result.assets.append(stored)
            uploads_total.labels("stored").inc()
        return result

    def delete_asset(self, asset_id: Any) -> None:
        self.asset(asset_id)
        self.store.delete("assets", asset_id)
        assets_deleted_total.inc()

    def bulk_delete(self, asset_ids: Iterable[Any]) -> int:
        ids = list(asset_ids)
        if not ids:
            raise ValidationError("No assets selected")
        removed = self.store.delete_in("assets", ids)
        assets_deleted_total.inc(removed)
        return removed


class HostedLibrary:
    """Interactive controller over :class:`HostedCatalog`."""

    def __init__(
        self,
        store: Store,
        *,
        notifier: Notifier | None = None,
        confirm: Confirmer = always_confirm,
        folder_delete_policy: str = CASCADE,
        state: AppState | None = None,
    ) -> None:
        self.catalog = HostedCatalog(store, folder_delete_policy)
        self.store = store
        self.notifier = notifier or Notifier()
        self.confirm = confirm
        self.state = state or AppState()
        self._unsubscribers: list[Callable[[], None]] = []

        self.projects_sync = CollectionSync("projects", lambda _ctx: self.catalog.projects(), self._apply_projects)
        self.folders_sync = CollectionSync("folders", lambda _ctx: self.catalog.folders(), self._apply_folders)
        self.assets_sync = CollectionSync(
            "assets", self._fetch_assets, self._apply_assets, context=lambda: self.state.current_project_id
        )
        self.counts_sync = CollectionSync("counts", self._fetch_counts, self._apply_counts)
        self.reconciler = Reconciler(
            {
                "projects": [self.projects_sync, self.counts_sync],
                "folders": [self.folders_sync],
                "assets": [self.assets_sync, self.counts_sync],
            },
            notify=self.state.notify,
            on_error=self._sync_failed,
        )

    # -- fetch / apply -----------------------------------------------------
    def _apply_projects(self, _ctx: Any, rows: list[dict[str, Any]]) -> None:
        self.state.projects = rows
        if self.state.current_project_id is not None and self.state.current_project is None:
            reducers.show_dashboard(self.state)

    def _apply_folders(self, _ctx: Any, rows: list[dict[str, Any]]) -> None:
        self.state.folders = rows
        if self.state.selected_folder != ALL and self.state.find_folder(self.state.selected_folder) is None:
            self.state.selected_folder = ALL
        if self.state.parent_folder is not None and self.state.find_folder(self.state.parent_folder) is None:
            self.state.parent_folder = None

    def _fetch_assets(self, project_id: Any) -> list[dict[str, Any]] | None:
        if project_id is None:
            return None
        return self.catalog.assets(project_id)

    def _apply_assets(self, project_id: Any, rows: list[dict[str, Any]] | None) -> None:
        if project_id is None or rows is None:
            return
        self.state.replace_project_assets(project_id, rows)
        self.state.selection.prune(a["id"] for a in self.state.assets)

    def _fetch_counts(self, _ctx: Any) -> tuple[dict[Any, int], int]:
        counts = self.catalog.asset_counts(p["id"] for p in self.state.projects)
        return counts, self.catalog.storage_total()

    def _apply_counts(self, _ctx: Any, result: tuple[dict[Any, int], int]) -> None:
        counts, total = result
        self.state.asset_counts = counts
        self.state.storage_bytes = total

    def _sync_failed(self, sync: CollectionSync) -> None:
        if sync.name == "counts":
            return
        self.notifier.error(f"Error loading {sync.name} from database")

    # -- plumbing ----------------------------------------------------------
    def _guard(self, message: str, fn: Callable[..., Any], *args: Any) -> tuple[bool, Any]:
        try:
            return True, fn(*args)
        except ValidationError as exc:
            self.notifier.error(exc.message)
        except AssetLibraryError:
            logger.exception(message)
            self.notifier.error(message)
        return False, None

    @property
    def subscribed(self) -> bool:
        return bool(self._unsubscribers)

    def _reconcile(self, *tables: str) -> None:
        # With live subscriptions the store already pushed the change.
        if self.subscribed:
            return
        for table in tables:
            self.reconciler.on_change(table)

    def refresh(self, *tables: str) -> None:
        for table in tables or ("projects", "folders", "assets"):
            self.reconciler.on_change(table)

    def load(self, subscribe: bool = True) -> None:
        self.refresh("projects", "folders")
        if subscribe:
            self.subscribe()

    def subscribe(self) -> None:
        if self.subscribed:
            return
        try:
            for table in ("projects", "folders", "assets"):
                self._unsubscribers.append(self.store.subscribe(table, self.reconciler.on_change))
        except StoreError:
            logger.exception("Subscription failed")
            self.notifier.error("Error subscribing to changes")
            self.close()

    def close(self) -> None:
        while self._unsubscribers:
            self._unsubscribers.pop()()

    # -- navigation --------------------------------------------------------
    def show_dashboard(self) -> None:
        self.state.dispatch(reducers.show_dashboard)

    def open_project(self, project_id: Any) -> bool:
        if not self.state.dispatch(reducers.open_project, project_id):
            return False
        self.reconciler.on_change("assets")
        return True

    def select_folder(self, folder_id: Any) -> None:
        self.state.dispatch(reducers.select_folder, folder_id)

    def drill_into(self, folder_id: Any) -> None:
        self.state.dispatch(reducers.drill_into, folder_id)

    def go_back(self) -> None:
        self.state.dispatch(reducers.go_back)

    def search(self, query: str) -> None:
        self.state.dispatch(reducers.set_search, query)

    def clear_search(self) -> None:
        self.state.dispatch(reducers.clear_search)

    def visible_assets(self) -> list[dict[str, Any]]:
        return self.state.visible_assets()

    # -- projects / folders ------------------------------------------------
    def create_project(self, name: Any, description: Any = None, color: Any = None) -> dict[str, Any] | None:
        ok, row = self._guard("Error creating project", self.catalog.create_project, name, description, color)
        if not ok:
            return None
        self.notifier.success(f'Project "{row["name"]}" created')
        self._reconcile("projects")
        return row

    def delete_project(self, project_id: Any) -> bool:
        project = self.state.find_project(project_id)
        if project is None:
            return False
        n = self.state.asset_counts.get(project_id, 0)
        message = (
            f'Delete project "{project["name"]}" and all {n} asset(s) inside it?'
            if n
            else f'Delete project "{project["name"]}"?'
        )
        if not self.confirm(message):
            return False
        ok, _ = self._guard("Error deleting project", self.catalog.delete_project, project_id)
        if not ok:
            return False
        self.notifier.success("Project deleted")
        self.state.assets = [a for a in self.state.assets if a.get("project_id") != project_id]
        self.state.asset_counts.pop(project_id, None)
        if self.state.current_project_id == project_id:
            reducers.show_dashboard(self.state)
        self._reconcile("projects", "folders")
        self.state.notify()
        return True

    def create_folder(self, name: Any) -> dict[str, Any] | None:
        if self.state.current_project_id is None:
            self.notifier.error("Please select a project first")
            return None
        ok, row = self._guard(
            "Error creating folder",
            self.catalog.create_folder,
            self.state.current_project_id,
            name,
            self.state.parent_folder,
        )
        if not ok:
            return None
        self.notifier.success(f'Folder "{row["name"]}" created')
        self._reconcile("folders")
        return row

    def move_folder(self, folder_id: Any, parent_id: Any) -> bool:
        ok, _ = self._guard("Error moving folder", self.catalog.move_folder, folder_id, parent_id)
        if ok:
            self.notifier.success("Folder moved")
            self._reconcile("folders")
        return ok

    def delete_folder(self, folder_id: Any) -> bool:
        folder = self.state.find_folder(folder_id)
        if folder is None:
            return False
        subtree = set(validation.subtree_ids(self.state.folders, folder_id))
        n = sum(1 for a in self.state.assets if a.get("folder_id") in subtree)
        if not n:
            message = f'Delete folder "{folder["name"]}"?'
        elif self.catalog.folder_delete_policy == CASCADE:
            message = f'Delete folder "{folder["name"]}", its subfolders and {n} asset(s) inside them?'
        else:
            message = f'Delete folder "{folder["name"]}"? Its {n} asset(s) will be kept outside any folder.'
        if not self.confirm(message):
            return False
        ok, _ = self._guard("Error deleting folder", self.catalog.delete_folder, folder_id)
        if not ok:
            return False
        self.notifier.success("Folder deleted")
        self.state.selected_folder = ALL
        self._reconcile("folders", "assets")
        self.state.notify()
        return True

    # -- assets ------------------------------------------------------------
    def upload(
        self, candidates: Iterable[UploadCandidate], project_id: Any = None, folder_id: Any = None
    ) -> UploadResult | None:
        target = project_id if project_id is not None else self.state.current_project_id
        ok, result = self._guard("Error uploading files", self.catalog.upload, candidates, target, folder_id)
        if not ok:
            return None
        for message in result.errors:
            self.notifier.error(message)
        if result.succeeded:
            self.notifier.success(result.summary)
            self.state.pending_files = []
            if target == self.state.current_project_id:
                self._reconcile("assets")
        return result

    def delete_asset(self, asset_id: Any) -> bool:
        asset = self.state.find_asset(asset_id)
        if asset is None:
            return False
        if not self.confirm(f'Delete "{asset["name"]}"?'):
            return False
        ok, _ = self._guard("Error deleting asset", self.catalog.delete_asset, asset_id)
        if not ok:
            return False
        self.state.selection.discard_many([asset_id])
        self.notifier.success("Asset deleted")
        self._reconcile("assets")
        return True

    def download_asset(self, asset_id: Any, deliver: Callable[[Download], None]) -> bool:
        asset = self.state.find_asset(asset_id)
        if asset is None:
            return False
        try:
            deliver(prepare_download(asset))
        except (AssetLibraryError, OSError):
            logger.exception("Error downloading asset")
            self.notifier.error("Error downloading asset")
            return False
        self.notifier.success(f'Downloaded "{asset["name"]}"')
        return True

    # -- selection ---------------------------------------------------------
    def toggle_selection_mode(self) -> bool:
        active = self.state.selection.toggle_mode()
        self.state.notify()
        return active

    def exit_selection_mode(self) -> None:
        self.state.selection.exit()
        self.state.notify()

    def toggle_asset(self, asset_id: Any) -> bool:
        selected = self.state.selection.toggle(asset_id)
        self.state.notify()
        return selected

    def select_all(self) -> None:
        if self.state.current_project_id is None:
            return
        self.state.selection.select_all(a["id"] for a in self.visible_assets())
        self.state.notify()

    def deselect_all(self) -> None:
        self.state.selection.deselect_all()
        self.state.notify()

    def bulk_delete(self) -> int:
        selection = self.state.selection
        if not len(selection):
            self.notifier.error("No assets selected")
            return 0
        if not self.confirm(f"Delete {len(selection)} selected asset(s)? This cannot be undone."):
            return 0
        ids = sorted(selection.ids, key=str)
        ok, removed = self._guard("Error deleting assets", self.catalog.bulk_delete, ids)
        if not ok:
            return 0
        self.notifier.success(f"{len(ids)} asset(s) deleted successfully")
        selection.deselect_all()
        self._reconcile("assets")
        self.state.notify()
        return removed

    def bulk_download(
        self, deliver: Callable[[Download], None], sleep: Callable[[float], None] | None = None
    ) -> BulkDownloadResult | None:
        if not len(self.state.selection):
            self.notifier.error("No assets selected")
            return None
        chosen = [a for a in self.state.assets if a["id"] in self.state.selection]
        self.notifier.info(f"Downloading {len(chosen)} asset(s)...")
        kwargs = {"sleep": sleep} if sleep is not None else {}
        result = run_bulk_download(chosen, deliver, **kwargs)
        self.notifier.success(result.summary)
        return result
