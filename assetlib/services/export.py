"""Turns design-tool frame exports into library upload candidates.

The design tool is reached through :class:`ExportableNode`; any object with
``id``, ``name``, ``width``, ``height`` and ``export(settings) -> bytes``
qualifies.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Protocol

from assetlib.services.upload import UploadCandidate

logger = logging.getLogger(__name__)

PNG = "PNG"
SVG = "SVG"
THUMBNAIL_WIDTH = 100

NO_SELECTION = "No frames selected"
NO_SELECTION_PREVIEW = "No frames selected. Please select frames in Figma."
NOT_EXPORTABLE = "Selected items cannot be exported."


class ExportableNode(Protocol):
    id: str
    name: str
    width: float
    height: float

    def export(self, settings: dict[str, Any]) -> bytes: ...


@dataclass
class FramePreview:
    id: str
    name: str
    width: int
    height: int
    thumbnail: bytes


@dataclass
class ExportedFrame:
    id: str
    name: str
    type: str
    size: int
    data: str
    width: int
    height: int


@dataclass
class ExportBatch:
    frames: list[Any] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _exportable(nodes: Iterable[Any]) -> list[Any]:
    return [n for n in nodes if callable(getattr(n, "export", None))]


def export_settings(fmt: str, scale: float = 1) -> dict[str, Any]:
    if fmt == SVG:
        return {
            "format": SVG,
            "svgOutlineText": True,
            "svgIdAttribute": False,
            "svgSimplifyStroke": True,
        }
    return {"format": PNG, "constraint": {"type": "SCALE", "value": scale}}


def preview_selection(nodes: Iterable[Any]) -> ExportBatch:
    selection = list(nodes)
    if not selection:
        return ExportBatch(error=NO_SELECTION_PREVIEW)
    batch = ExportBatch()
    for node in _exportable(selection):
        try:
            thumb = node.export({"format": PNG, "constraint": {"type": "WIDTH", "value": THUMBNAIL_WIDTH}})
        except Exception as exc:  # the design tool raises its own error types
            logger.error("Error creating thumbnail for %s: %s", node.name, exc)
            batch.errors.append(f"Error creating thumbnail for {node.name}")
            continue
        batch.frames.append(
            FramePreview(node.id, node.name, round(node.width), round(node.height), bytes(thumb))
        )
    if not batch.frames:
        batch.error = NOT_EXPORTABLE
    return batch


def export_frames(nodes: Iterable[Any], fmt: str = PNG, scale: float = 1) -> ExportBatch:
    """Exporta cada nodo; un fallo se anota y no corta el lote."""
    selection = list(nodes)
    if not selection:
        return ExportBatch(error=NO_SELECTION)
    fmt = SVG if str(fmt).upper() == SVG else PNG
    factor = 1 if fmt == SVG else scale
    mime = "image/svg+xml" if fmt == SVG else "image/png"
    suffix = ".svg" if fmt == SVG else ".png"
    batch = ExportBatch()
    for node in _exportable(selection):
        try:
            content = bytes(node.export(export_settings(fmt, scale)))
        except Exception as exc:  # the design tool raises its own error types
            logger.error("Error exporting %s: %s", node.name, exc)
            batch.errors.append(f"Error exporting {node.name}")
            continue
        batch.frames.append(
            ExportedFrame(
                id=node.id,
                name=node.name + suffix,
                type=mime,
                size=len(content),
                data=f"data:{mime};base64,{base64.b64encode(content).decode('ascii')}",
                width=round(node.width * factor),
                height=round(node.height * factor),
            )
        )
    return batch


def frames_to_uploads(frames: Iterable[ExportedFrame]) -> list[UploadCandidate]:
    uploads = []
    for frame in frames:
        encoded = frame.data.partition(",")[2]
        uploads.append(UploadCandidate(frame.name, frame.type, base64.b64decode(encoded)))
    return uploads
