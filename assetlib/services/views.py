"""View projection: plain dicts describing what the render layer shows."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from assetlib.services import filtering
from assetlib.services.filtering import ALL
from assetlib.services.state import AppState
from assetlib.services.upload import format_file_size


def _as_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value:
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def format_date(value: Any, now: datetime | None = None) -> str:
    dt = _as_datetime(value)
    if dt is None:
        return ""
    now = now or datetime.now(timezone.utc)
    minutes = int((now - dt).total_seconds() // 60)
    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if minutes < 60 * 24:
        return f"{minutes // 60}h ago"
    if minutes < 60 * 24 * 7:
        return f"{minutes // (60 * 24)}d ago"
    return f"{dt.strftime('%b')} {dt.day}"


def asset_card(asset: dict[str, Any], selected: bool = False, now: datetime | None = None) -> dict[str, Any]:
    return {
        "id": asset["id"],
        "name": asset["name"],
        "type": asset.get("type"),
        "size": format_file_size(asset.get("size") or 0),
        "uploaded": format_date(asset.get("upload_date"), now),
        "thumbnail": asset.get("data"),
        "selected": selected,
    }


def dashboard_view(state: AppState) -> dict[str, Any]:
    return {
        "title": "Asset Library",
        "projects": [
            {
                "id": p["id"],
                "name": p["name"],
                "description": p.get("description") or "",
                "color": p.get("color"),
                "asset_count": state.asset_counts.get(p["id"], 0),
                "folder_count": len(state.project_folders(p["id"])),
            }
            for p in state.projects
        ],
        "storage": format_file_size(state.storage_bytes),
    }


def folder_chips(state: AppState) -> dict[str, Any]:
    """Chips of the current level, plus back/breadcrumb when drilled in."""
    project_folders = state.project_folders()
    current = state.find_folder(state.parent_folder) if state.parent_folder is not None else None
    return {
        "back": state.parent_folder is not None,
        "breadcrumb": current["name"] if current else None,
        "all_active": state.parent_folder is None and state.selected_folder == ALL,
        "chips": [
            {
                "id": f["id"],
                "name": f["name"],
                "active": state.selected_folder == f["id"],
                "has_subfolders": any(c.get("parent_id") == f["id"] for c in project_folders),
            }
            for f in state.level_folders()
        ],
    }


def project_view(state: AppState, now: datetime | None = None) -> dict[str, Any] | None:
    project = state.current_project
    if project is None:
        return None
    visible = state.visible_assets()
    return {
        "title": project["name"],
        "folders": folder_chips(state),
        "assets": [asset_card(a, a["id"] in state.selection, now) for a in visible],
        "count_label": filtering.count_label(visible, state.search_query),
        "empty_state": filtering.empty_state(visible, state.search_query),
        "selection": {
            "active": state.selection.active,
            "label": state.selection.count_label(),
        },
        "storage": format_file_size(state.storage_bytes),
    }
