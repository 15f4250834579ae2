"""Pure functions computing which assets are visible for the current view."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence

ALL = "all"

Row = Mapping[str, Any]


def normalize_query(query: str | None) -> str:
    return (query or "").strip().lower()


def filter_by_query(assets: Iterable[Row], query: str | None) -> list[Row]:
    """Case-insensitive substring match on the asset name.

    A blank query keeps everything. Applying the same query twice returns
    the same list.
    """

    needle = normalize_query(query)
    if not needle:
        return list(assets)
    return [a for a in assets if needle in str(a.get("name") or "").lower()]


def root_folder_ids(folders: Iterable[Row], project_id: Any = None) -> set[Any]:
    return {
        f["id"]
        for f in folders
        if not f.get("parent_id") and (project_id is None or f.get("project_id") == project_id)
    }


def scope_to_folder(
    assets: Iterable[Row],
    folders: Iterable[Row],
    selected_folder: Any = ALL,
    parent_folder: Any = None,
) -> list[Row]:
    if selected_folder not in (ALL, None):
        return [a for a in assets if a.get("folder_id") == selected_folder]
    if parent_folder is not None:
        return [a for a in assets if a.get("folder_id") == parent_folder]
    roots = root_folder_ids(folders)
    return [a for a in assets if not a.get("folder_id") or a.get("folder_id") in roots]


def visible_assets(
    assets: Sequence[Row],
    folders: Sequence[Row],
    project_id: Any = None,
    selected_folder: Any = ALL,
    parent_folder: Any = None,
    query: str | None = "",
) -> list[Row]:
    """Return the ordered subset of ``assets`` shown for the given view.

    1. keep the active project's assets (when a project is active);
    2. scope to the selected folder, else to the folder drilled into, else
       to the root level (no folder, or a root folder);
    3. apply the text filter.

    The input order (store order, most recent upload first) is preserved.
    """

    scoped: Iterable[Row] = assets
    if project_id is not None:
        scoped = [a for a in scoped if a.get("project_id") == project_id]
    scoped = scope_to_folder(scoped, folders, selected_folder, parent_folder)
    return filter_by_query(scoped, query)


def empty_state(visible: Sequence[Row], query: str | None) -> str | None:
    """``"no_match"`` when a search hides everything, ``"empty"`` when there is
    nothing to show at all, ``None`` otherwise."""

    if visible:
        return None
    return "no_match" if normalize_query(query) else "empty"


def count_label(visible: Sequence[Row], query: str | None) -> str:
    state = empty_state(visible, query)
    if state == "no_match":
        return "No matching assets"
    if state == "empty":
        return "0 assets"
    n = len(visible)
    return f"{n} asset{'' if n == 1 else 's'}"
