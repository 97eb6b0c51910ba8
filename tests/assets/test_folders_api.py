"""文件夹接口集成测试（LOCAL 存储卷）。"""

from __future__ import annotations

from fastapi.testclient import TestClient


def test_folder_api_flow(client: TestClient, local_volume):
    volume_id = local_volume.id

    ensure_resp = client.post(
        "/api/v1/folders/ensure-path",
        json={"volumeId": volume_id, "path": "projects/alpha", "createPhysical": True},
    )
    assert ensure_resp.status_code == 200
    alpha = ensure_resp.json()["data"]
    assert alpha["path"] == "projects/alpha/"

    tree_resp = client.get("/api/v1/folders/tree", params={"volumeIds": str(volume_id)})
    assert tree_resp.status_code == 200
    roots = tree_resp.json()["data"]
    assert len(roots) == 1
    assert roots[0]["children"][0]["path"] == "projects/"

    create_resp = client.post("/api/v1/folders", json={"parentId": alpha["parentId"], "name": "beta"})
    assert create_resp.status_code == 200
    beta = create_resp.json()["data"]
    assert beta["path"] == "projects/beta/"

    conflict_resp = client.post("/api/v1/folders", json={"parentId": alpha["parentId"], "name": "beta"})
    assert conflict_resp.status_code == 409
    assert conflict_resp.json()["code"] == 409

    rename_resp = client.patch(f"/api/v1/folders/{alpha['parentId']}", json={"name": "work"})
    assert rename_resp.status_code == 200
    assert rename_resp.json()["data"]["path"] == "work/"

    detail_resp = client.get(f"/api/v1/folders/{alpha['id']}")
    assert detail_resp.json()["data"]["path"] == "work/alpha/"
    uid_resp = client.get(f"/api/v1/folders/by-uid/{alpha['uid']}")
    assert uid_resp.json()["data"]["id"] == alpha["id"]

    move_resp = client.post(f"/api/v1/folders/{alpha['id']}/move", json={"parentId": beta["id"]})
    assert move_resp.status_code == 200
    assert move_resp.json()["data"]["path"] == "work/beta/alpha/"

    subtree_resp = client.get(f"/api/v1/folders/{beta['id']}/tree")
    assert subtree_resp.json()["data"][0]["children"][0]["id"] == alpha["id"]

    filename_resp = client.post("/api/v1/folders/filename", json={"folderId": beta["id"], "filename": "a.txt"})
    assert filename_resp.json()["data"]["filename"] == "a.txt"

    delete_resp = client.request("DELETE", "/api/v1/folders", json={"ids": [beta["id"]], "deletePhysical": True})
    assert delete_resp.status_code == 200
    assert set(delete_resp.json()["data"]["deleted"]) == {beta["id"], alpha["id"]}

    missing_resp = client.get(f"/api/v1/folders/{alpha['id']}")
    assert missing_resp.status_code == 404


def test_rename_root_is_rejected(client: TestClient, local_volume):
    tree = client.get("/api/v1/folders/tree", params={"volumeIds": str(local_volume.id)}).json()["data"]
    resp = client.patch(f"/api/v1/folders/{tree[0]['id']}", json={"name": "nope"})
    assert resp.status_code == 400


def test_temp_folder_by_session_header(client: TestClient):
    resp = client.get("/api/v1/folders/temp", headers={"X-Session-Id": "browser-session"})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["name"].startswith("user_")
    assert data["volumeId"] is None

    again = client.get("/api/v1/folders/temp", headers={"X-Session-Id": "browser-session"})
    assert again.json()["data"]["id"] == data["id"]

    anonymous = client.get("/api/v1/folders/temp")
    assert anonymous.status_code == 400
