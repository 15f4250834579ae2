"""Local variant: the whole collection lives in one serialized blob."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Iterable

from assetlib.errors import AssetLibraryError, QuotaExceededError, StoreError
from assetlib.metrics import assets_deleted_total, uploads_total
from assetlib.notify import Confirmer, Notifier, always_confirm
from assetlib.services import filtering
from assetlib.services.downloads import Download, prepare_download
from assetlib.services.upload import (
    LOCAL_QUOTA,
    QUOTA_MESSAGE,
    UploadCandidate,
    UploadResult,
    build_asset,
    format_file_size,
    has_room,
    partition,
    storage_usage,
    storage_warning,
)
from assetlib.stores.local import STORAGE_KEY, BlobStore

logger = logging.getLogger(__name__)


def _serialize(asset: dict[str, Any]) -> dict[str, Any]:
    row = dict(asset)
    if isinstance(row.get("upload_date"), datetime):
        row["upload_date"] = row["upload_date"].isoformat()
    return row


class LocalLibrary:
    """Single-collection library; asset names are unique across it."""

    def __init__(
        self,
        blob: BlobStore,
        *,
        notifier: Notifier | None = None,
        confirm: Confirmer = always_confirm,
        quota: int = LOCAL_QUOTA,
    ) -> None:
        self.blob = blob
        self.notifier = notifier or Notifier()
        self.confirm = confirm
        self.quota = quota
        self.assets: list[dict[str, Any]] = []
        self.search_query = ""

    # -- persistence -------------------------------------------------------
    def load(self) -> list[dict[str, Any]]:
        try:
            raw = self.blob.get(STORAGE_KEY)
            parsed = json.loads(raw) if raw else []
            self.assets = parsed if isinstance(parsed, list) else []
        except (StoreError, ValueError):
            logger.exception("Error loading assets")
            self.assets = []
            self.notifier.error("Error loading assets from storage")
        return self.assets

    def _save(self, assets: list[dict[str, Any]]) -> bool:
        try:
            self.blob.set(STORAGE_KEY, json.dumps([_serialize(a) for a in assets]))
        except QuotaExceededError:
            logger.exception("Error saving assets")
            self.notifier.error("Storage quota exceeded. Please delete some assets.")
            return False
        except StoreError:
            logger.exception("Error saving assets")
            self.notifier.error("Error saving assets to storage")
            return False
        self.assets = assets
        return True

    # -- reads -------------------------------------------------------------
    def visible_assets(self) -> list[dict[str, Any]]:
        return filtering.filter_by_query(self.assets, self.search_query)

    def count_label(self) -> str:
        return filtering.count_label(self.visible_assets(), self.search_query)

    def search(self, query: str | None) -> None:
        self.search_query = filtering.normalize_query(query)

    def clear_search(self) -> None:
        self.search_query = ""

    @property
    def storage_used(self) -> int:
        return storage_usage(self.assets)

    def storage_info(self) -> dict[str, Any]:
        used = self.storage_used
        return {
            "used": used,
            "label": format_file_size(used),
            "quota": self.quota,
            "warning": storage_warning(used, self.quota),
        }

    # -- writes ------------------------------------------------------------
    def process_files(self, candidates: Iterable[UploadCandidate], now: datetime | None = None) -> UploadResult:
        """Validate, encode and store a batch.

        Rejected files are reported one by one. When usage is already at the
        quota headroom the whole batch stops before any file is encoded.
        """
        result = UploadResult()
        valid = partition(candidates, result)
        for message in result.errors:
            self.notifier.error(message)
        uploads_total.labels("rejected").inc(result.failed)
        if not valid:
            return result
        if not has_room(self.storage_used, self.quota):
            self.notifier.error(QUOTA_MESSAGE)
            result.aborted = True
            return result

        assets = list(self.assets)
        stamp = now or datetime.now(timezone.utc)
        for candidate in valid:
            asset = build_asset(candidate, now=stamp, with_id=True)
            existing = next((i for i, a in enumerate(assets) if a["name"] == asset["name"]), None)
            if existing is None:
                assets.append(asset)
            else:
                assets[existing] = asset
            result.succeeded += 1
            result.assets.append(asset)

        if result.succeeded and self._save(assets):
            uploads_total.labels("stored").inc(result.succeeded)
            self.notifier.success(result.summary)
        elif result.succeeded:
            uploads_total.labels("failed").inc(result.succeeded)
            result.failed += result.succeeded
            result.succeeded = 0
            result.assets = []
        return result

    def delete_asset(self, asset_id: Any) -> bool:
        asset = next((a for a in self.assets if a["id"] == asset_id), None)
        if asset is None:
            return False
        if not self.confirm(f'Delete "{asset["name"]}"?'):
            return False
        if not self._save([a for a in self.assets if a["id"] != asset_id]):
            return False
        assets_deleted_total.inc()
        self.notifier.success("Asset deleted")
        return True

    def clear_all(self) -> bool:
        if not self.assets:
            return False
        n = len(self.assets)
        if not self.confirm(f"Are you sure you want to delete all {n} assets? This cannot be undone."):
            return False
        if not self._save([]):
            return False
        assets_deleted_total.inc(n)
        self.notifier.success("All assets cleared")
        return True

    def download_asset(self, asset_id: Any, deliver: Callable[[Download], None]) -> bool:
        asset = next((a for a in self.assets if a["id"] == asset_id), None)
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
