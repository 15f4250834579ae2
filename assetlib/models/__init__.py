from __future__ import annotations

from assetlib.models.project import DEFAULT_PROJECT_COLOR, Project
from assetlib.models.folder import Folder  # noqa: E402
from assetlib.models.asset import Asset  # noqa: E402


__all__ = [
    "DEFAULT_PROJECT_COLOR",
    "Project",
    "Folder",
    "Asset",
]
