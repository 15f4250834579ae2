import io
import zipfile

from assetlib.commands import DEMO_PNG as PNG_BYTES


def _project(client, name="Marketing"):
    res = client.post("/api/projects", json={"name": name})
    assert res.status_code == 201
    return res.get_json()


def _upload(client, project_id, files, folder_id=None):
    data = {"project_id": str(project_id), "files[]": files}
    if folder_id is not None:
        data["folder_id"] = str(folder_id)
    return client.post("/api/assets", data=data, content_type="multipart/form-data")


def test_project_crud(client):
    created = _project(client, "  Marketing  ")
    assert created["name"] == "Marketing"
    assert created["color"]

    listed = client.get("/api/projects").get_json()
    assert [(p["name"], p["asset_count"], p["folder_count"]) for p in listed] == [("Marketing", 0, 0)]

    res = client.delete(f"/api/projects/{created['id']}")
    assert res.status_code == 200
    assert client.get("/api/projects").get_json() == []


def test_blank_project_name_is_rejected(client):
    res = client.post("/api/projects", json={"name": "   "})
    assert res.status_code == 400
    assert res.get_json()["error"]["message"] == "Please enter a project name"


def test_missing_project_is_404(client):
    res = client.delete("/api/projects/999")
    assert res.status_code == 404
    assert res.is_json


def test_folders_nest_and_refuse_cycles(client):
    pid = _project(client)["id"]
    logos = client.post("/api/folders", json={"project_id": pid, "name": "Logos"}).get_json()
    year = client.post("/api/folders", json={"project_id": pid, "name": "2024", "parent_id": logos["id"]}).get_json()
    assert year["parent_id"] == logos["id"]

    res = client.post(f"/api/folders/{logos['id']}/move", json={"parent_id": year["id"]})
    assert res.status_code == 400
    assert "subfolders" in res.get_json()["error"]["message"]

    res = client.post(f"/api/folders/{year['id']}/move", json={"parent_id": None})
    assert res.status_code == 200
    assert res.get_json()["parent_id"] is None

    names = [f["name"] for f in client.get(f"/api/folders?project_id={pid}").get_json()]
    assert names == ["Logos", "2024"]


def test_folder_needs_existing_project(client):
    res = client.post("/api/folders", json={"project_id": 42, "name": "Logos"})
    assert res.status_code == 400
    assert res.get_json()["error"]["message"] == "Please select a project first"


def test_upload_list_and_download(client):
    pid = _project(client)["id"]
    res = _upload(
        client,
        pid,
        [(io.BytesIO(PNG_BYTES), "logo.png", "image/png"), (io.BytesIO(b"%PDF"), "doc.pdf", "application/pdf")],
    )
    assert res.status_code == 201
    body = res.get_json()
    assert (body["succeeded"], body["failed"]) == (1, 1)
    assert "doc.pdf" in body["errors"][0]
    assert "data" not in body["assets"][0]

    listing = client.get(f"/api/assets?project_id={pid}").get_json()
    assert listing["label"] == "1 asset"
    assert listing["empty_state"] is None
    asset = listing["assets"][0]
    assert asset["data"].startswith("data:image/png;base64,")

    res = client.get(f"/api/assets/{asset['id']}/download")
    assert res.status_code == 200
    assert res.data == PNG_BYTES
    assert res.mimetype == "image/png"
    assert "logo.png" in res.headers["Content-Disposition"]


def test_upload_without_valid_files_is_400(client):
    pid = _project(client)["id"]
    res = _upload(client, pid, [(io.BytesIO(b"x"), "notes.txt", "text/plain")])
    assert res.status_code == 400
    assert res.get_json()["succeeded"] == 0


def test_upload_requires_project(client):
    res = client.post(
        "/api/assets",
        data={"files[]": [(io.BytesIO(PNG_BYTES), "logo.png", "image/png")]},
        content_type="multipart/form-data",
    )
    assert res.status_code == 400
    assert res.get_json()["error"]["message"] == "Please select a project and files"


def test_search_and_folder_filters(client):
    pid = _project(client)["id"]
    logos = client.post("/api/folders", json={"project_id": pid, "name": "Logos"}).get_json()
    _upload(client, pid, [(io.BytesIO(PNG_BYTES), "root.png", "image/png")])
    _upload(client, pid, [(io.BytesIO(PNG_BYTES), "brand-mark.png", "image/png")], folder_id=logos["id"])

    scoped = client.get(f"/api/assets?project_id={pid}&folder={logos['id']}").get_json()
    assert [a["name"] for a in scoped["assets"]] == ["brand-mark.png"]

    found = client.get(f"/api/assets?project_id={pid}&q=BRAND&data=0").get_json()
    assert [a["name"] for a in found["assets"]] == ["brand-mark.png"]
    assert "data" not in found["assets"][0]

    none = client.get(f"/api/assets?project_id={pid}&q=zzz").get_json()
    assert (none["label"], none["empty_state"]) == ("No matching assets", "no_match")


def test_asset_listing_requires_project(client):
    res = client.get("/api/assets")
    assert res.status_code == 400


def test_bulk_download_and_delete(client):
    pid = _project(client)["id"]
    _upload(
        client,
        pid,
        [(io.BytesIO(PNG_BYTES), "a.png", "image/png"), (io.BytesIO(b"<svg/>"), "b.svg", "image/svg+xml")],
    )
    ids = [a["id"] for a in client.get(f"/api/assets?project_id={pid}").get_json()["assets"]]

    res = client.post("/api/assets/bulk-download", json={"ids": ids})
    assert res.status_code == 200
    assert res.mimetype == "application/zip"
    assert sorted(zipfile.ZipFile(io.BytesIO(res.data)).namelist()) == ["a.png", "b.svg"]

    assert client.post("/api/assets/bulk-delete", json={"ids": []}).status_code == 400
    res = client.post("/api/assets/bulk-delete", json={"ids": ids})
    assert res.get_json() == {"deleted": 2}
    assert client.get(f"/api/assets?project_id={pid}").get_json()["empty_state"] == "empty"


def test_delete_single_asset(client):
    pid = _project(client)["id"]
    asset = _upload(client, pid, [(io.BytesIO(PNG_BYTES), "a.png", "image/png")]).get_json()["assets"][0]
    assert client.delete(f"/api/assets/{asset['id']}").status_code == 200
    assert client.delete(f"/api/assets/{asset['id']}").status_code == 404


def test_storage_total(client):
    pid = _project(client)["id"]
    _upload(client, pid, [(io.BytesIO(PNG_BYTES), "a.png", "image/png")])
    body = client.get("/api/storage").get_json()
    assert body["bytes"] == len(PNG_BYTES)
    assert body["label"].endswith(" B")


def test_delete_folder_cascades_assets(client):
    pid = _project(client)["id"]
    logos = client.post("/api/folders", json={"project_id": pid, "name": "Logos"}).get_json()
    _upload(client, pid, [(io.BytesIO(PNG_BYTES), "a.png", "image/png")], folder_id=logos["id"])
    res = client.delete(f"/api/folders/{logos['id']}")
    assert res.get_json() == {"deleted": logos["id"], "assets_deleted": 1}
    assert client.get(f"/api/assets?project_id={pid}").get_json()["assets"] == []


def test_bad_folder_filter_is_400(client):
    pid = _project(client)["id"]
    res = client.get(f"/api/assets?project_id={pid}&folder=abc")
    assert res.status_code == 400
    assert "Invalid folder" in res.get_json()["error"]["message"]
