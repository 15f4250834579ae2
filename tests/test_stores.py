import pytest
from sqlalchemy.exc import OperationalError

from assetlib.errors import StoreError
from assetlib.extensions import db
from assetlib.models import Asset, Folder
from assetlib.stores.base import ChangeBus, ChangeEvent


def _project(store, name="Marketing"):
    return store.insert("projects", {"name": name})


def test_insert_returns_row_with_defaults(store):
    row = _project(store)
    assert row["id"] is not None
    assert row["color"] == "#667eea"
    assert row["created_at"]


def test_list_orders_with_id_tie_break(store):
    p = _project(store)
    for name in ("a.png", "b.png", "c.png"):
        store.insert(
            "assets",
            {"project_id": p["id"], "name": name, "type": "image/png", "size": 1, "data": "data:image/png;base64,AA=="},
        )
    rows = store.list("assets", filters={"project_id": p["id"]}, order_by="upload_date", descending=True)
    # newest first
    assert [r["id"] for r in rows] == sorted((r["id"] for r in rows), reverse=True)


def test_column_subset_and_filters(store):
    p = _project(store)
    store.insert("assets", {"project_id": p["id"], "name": "a", "type": "image/png", "size": 3, "data": "d"})
    store.insert("assets", {"project_id": p["id"], "name": "b", "type": "image/png", "size": 4, "data": "d"})
    rows = store.list("assets", columns=["size"])
    assert sorted(r["size"] for r in rows) == [3, 4]
    assert set(rows[0]) == {"size"}
    assert len(store.list("assets", filters={"folder_id": None})) == 2
    assert len(store.list("assets", filters={"name": ["a", "zzz"]})) == 1
    assert store.count("assets", {"project_id": p["id"]}) == 2


def test_limit(store):
    p = _project(store)
    for i in range(5):
        store.insert("folders", {"project_id": p["id"], "name": f"f{i}"})
    assert len(store.list("folders", limit=3)) == 3


def test_unknown_table_and_column(store):
    with pytest.raises(StoreError):
        store.list("users")
    with pytest.raises(StoreError):
        store.list("projects", filters={"owner": 1})
    with pytest.raises(StoreError):
        store.subscribe("users", lambda e: None)


def test_update_missing_row(store):
    with pytest.raises(StoreError):
        store.update("folders", 999, {"name": "x"})


def test_delete_project_cascades(store):
    p = _project(store)
    root = store.insert("folders", {"project_id": p["id"], "name": "Logos"})
    store.insert("folders", {"project_id": p["id"], "name": "2024", "parent_id": root["id"]})
    store.insert(
        "assets", {"project_id": p["id"], "folder_id": root["id"], "name": "a", "type": "image/png", "size": 1, "data": "d"}
    )
    store.delete("projects", p["id"])
    assert store.count("folders", {"project_id": p["id"]}) == 0
    assert store.count("assets", {"project_id": p["id"]}) == 0
    assert store.count("assets") == 0


def test_changes_are_published_after_commit(store):
    events = []
    unsubscribe = store.subscribe("projects", events.append)
    p = _project(store)
    store.update("projects", p["id"], {"name": "Renamed"})
    unsubscribe()
    store.delete("projects", p["id"])
    assert [e.event for e in events] == ["INSERT", "UPDATE"]
    assert events[0].row_id == p["id"]


def test_delete_in_counts_rows(store):
    p = _project(store)
    ids = [
        store.insert("assets", {"project_id": p["id"], "name": n, "type": "image/png", "size": 1, "data": "d"})["id"]
        for n in ("a", "b", "c")
    ]
    assert store.delete_in("assets", ids[:2]) == 2
    assert store.delete_in("assets", []) == 0
    assert [r["id"] for r in store.list("assets")] == [ids[2]]


def test_bus_isolates_failing_subscriber():
    bus = ChangeBus()
    seen = []

    def broken(_event):
        raise RuntimeError("boom")

    bus.subscribe("assets", broken)
    bus.subscribe("assets", seen.append)
    bus.publish(ChangeEvent("assets", "DELETE"))
    assert len(seen) == 1


def _asset(project_id, name, folder_id=None):
    return {
        "project_id": project_id,
        "folder_id": folder_id,
        "name": name,
        "type": "image/png",
        "size": 1,
        "data": "data:image/png;base64,AA==",
    }


def _failing_delete(monkeypatch, model):
    real_delete = db.session.delete

    def flaky(obj):
        if isinstance(obj, model):
            raise OperationalError("DELETE", {}, Exception("database is locked"))
        real_delete(obj)

    monkeypatch.setattr(db.session, "delete", flaky)


def test_insert_replacing_drops_same_key(store):
    p = _project(store)
    old = store.insert("assets", _asset(p["id"], "logo.png"))
    store.insert("assets", _asset(p["id"], "other.png"))
    new = store.insert_replacing("assets", _asset(p["id"], "logo.png"), ("project_id", "folder_id", "name"))
    names = {(r["id"], r["name"]) for r in store.list("assets")}
    assert (old["id"], "logo.png") not in names
    assert (new["id"], "logo.png") in names
    assert len(names) == 2


def test_insert_replacing_writes_nothing_on_failure(store, monkeypatch):
    p = _project(store)
    old = store.insert("assets", _asset(p["id"], "logo.png"))
    _failing_delete(monkeypatch, Asset)
    with pytest.raises(StoreError):
        store.insert_replacing("assets", _asset(p["id"], "logo.png"), ("project_id", "folder_id", "name"))
    assert [r["id"] for r in store.list("assets")] == [old["id"]]


def test_delete_with_is_one_transaction(store, monkeypatch):
    p = _project(store)
    folder = store.insert("folders", {"project_id": p["id"], "name": "Logos"})
    a = store.insert("assets", _asset(p["id"], "a.png", folder["id"]))
    _failing_delete(monkeypatch, Folder)
    with pytest.raises(StoreError):
        store.delete_with("folders", folder["id"], also_delete={"assets": [a["id"]]})
    assert store.count("folders") == 1
    assert store.count("assets", {"folder_id": folder["id"]}) == 1


def test_delete_with_detaches_and_publishes(store):
    p = _project(store)
    folder = store.insert("folders", {"project_id": p["id"], "name": "Logos"})
    a = store.insert("assets", _asset(p["id"], "a.png", folder["id"]))
    seen = []
    store.subscribe("assets", lambda e: seen.append(e.table))
    store.subscribe("folders", lambda e: seen.append(e.table))
    removed = store.delete_with(
        "folders", folder["id"], also_update={"assets": ([a["id"]], {"folder_id": None})}
    )
    assert removed == 0
    assert store.count("folders") == 0
    assert store.list("assets")[0]["folder_id"] is None
    assert seen == ["folders", "assets"]
