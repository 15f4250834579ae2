"""Single and bulk download path: data URL back to the original bytes."""

from __future__ import annotations

import io
import logging
import time
import zipfile
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping

from assetlib.errors import AssetLibraryError
from assetlib.services.upload import decode_data_url

logger = logging.getLogger(__name__)

BULK_DOWNLOAD_DELAY = 0.3  # seconds between items
SUMMARY_DELAY = 0.5


@dataclass(frozen=True)
class Download:
    name: str
    mime: str
    content: bytes


@dataclass
class BulkDownloadResult:
    delivered: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def summary(self) -> str:
        return f"{len(self.delivered)} asset(s) downloaded"


def prepare_download(asset: Mapping[str, Any]) -> Download:
    mime, content = decode_data_url(asset.get("data") or "")
    return Download(name=asset["name"], mime=mime or asset.get("type") or "application/octet-stream", content=content)


def bulk_schedule(count: int, delay: float = BULK_DOWNLOAD_DELAY) -> tuple[list[float], float]:
    """Offsets (seconds) for each item and for the final summary."""
    offsets = [i * delay for i in range(count)]
    return offsets, count * delay + SUMMARY_DELAY


def run_bulk_download(
    assets: Iterable[Mapping[str, Any]],
    deliver: Callable[[Download], None],
    *,
    delay: float = BULK_DOWNLOAD_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> BulkDownloadResult:
    """Entrega cada asset con una pausa fija entre ellos.

    No es transaccional: un fallo se registra y se sigue con el siguiente.
    """
    items = list(assets)
    offsets, summary_at = bulk_schedule(len(items), delay)
    result = BulkDownloadResult()
    elapsed = 0.0
    for offset, asset in zip(offsets, items):
        if offset > elapsed:
            sleep(offset - elapsed)
            elapsed = offset
        try:
            deliver(prepare_download(asset))
        except (AssetLibraryError, OSError) as exc:
            logger.error("Error downloading asset %s: %s", asset.get("name"), exc)
            result.failed.append(asset.get("name") or "")
            continue
        result.delivered.append(asset["name"])
    if summary_at > elapsed:
        sleep(summary_at - elapsed)
    return result


def zip_downloads(assets: Iterable[Mapping[str, Any]]) -> tuple[bytes, BulkDownloadResult]:
    """Pack several assets into one archive (HTTP bulk download)."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        used: set[str] = set()

        def _write(item: Download) -> None:
            name = item.name
            stem, dot, ext = name.rpartition(".")
            n = 1
            while name in used:
                name = f"{stem} ({n}){dot}{ext}" if dot else f"{item.name} ({n})"
                n += 1
            used.add(name)
            archive.writestr(name, item.content)

        result = run_bulk_download(assets, _write, delay=0, sleep=lambda _s: None)
    return buffer.getvalue(), result
