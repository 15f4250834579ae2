"""Decision layer: checks run before any store call is issued.

Every function raises :class:`ValidationError` with the message shown to the
user and never touches the store itself.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from assetlib.errors import ValidationError

Row = Mapping[str, Any]


def clean_name(value: Any, message: str) -> str:
    name = (value or "").strip() if isinstance(value, str) else ""
    if not name:
        raise ValidationError(message)
    return name


def project_name(value: Any) -> str:
    return clean_name(value, "Please enter a project name")


def folder_name(value: Any) -> str:
    return clean_name(value, "Please enter a folder name")


def _by_id(rows: Iterable[Row]) -> dict[Any, Row]:
    return {row["id"]: row for row in rows}


def check_parent(folders: Iterable[Row], project_id: Any, parent_id: Any) -> None:
    """El padre debe existir y pertenecer al mismo proyecto."""
    if parent_id is None:
        return
    parent = _by_id(folders).get(parent_id)
    if parent is None:
        raise ValidationError("Parent folder not found")
    if parent.get("project_id") != project_id:
        raise ValidationError("Folders cannot be nested across projects")


def check_move(folders: Iterable[Row], folder_id: Any, new_parent_id: Any) -> None:
    """Reject moves that would put a folder inside itself or its descendants."""
    index = _by_id(folders)
    folder = index.get(folder_id)
    if folder is None:
        raise ValidationError("Folder not found")
    check_parent(index.values(), folder.get("project_id"), new_parent_id)
    if new_parent_id == folder_id:
        raise ValidationError("A folder cannot be moved into itself")
    current = index.get(new_parent_id) if new_parent_id is not None else None
    seen: set[Any] = set()
    while current is not None:
        if current["id"] == folder_id:
            raise ValidationError("A folder cannot be moved into one of its subfolders")
        if current["id"] in seen:
            raise ValidationError("Folder tree contains a cycle")
        seen.add(current["id"])
        parent_id = current.get("parent_id")
        current = index.get(parent_id) if parent_id is not None else None


def check_asset_target(
    projects: Iterable[Row], folders: Iterable[Row], project_id: Any, folder_id: Any
) -> None:
    if project_id is not None and project_id not in _by_id(projects):
        raise ValidationError("Project not found")
    if folder_id is None:
        return
    folder = _by_id(folders).get(folder_id)
    if folder is None:
        raise ValidationError("Folder not found")
    if folder.get("project_id") != project_id:
        raise ValidationError("Folder belongs to another project")


def subtree_ids(folders: Iterable[Row], root_id: Any) -> list[Any]:
    """Ids of ``root_id`` and every folder below it, parents first."""
    children: dict[Any, list[Any]] = {}
    for row in folders:
        children.setdefault(row.get("parent_id"), []).append(row["id"])
    ordered = [root_id]
    i = 0
    while i < len(ordered):
        for child in children.get(ordered[i], ()):
            if child not in ordered:
                ordered.append(child)
        i += 1
    return ordered
