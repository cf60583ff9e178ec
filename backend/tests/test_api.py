from urllib.parse import unquote

import pytest
from sqlalchemy.exc import OperationalError, TimeoutError as PoolTimeoutError

from conftest import auth_headers
from dashboard.services import materials as material_service


def _create(client, headers, path, **body):
    response = client.post(f"/api/{path}", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}


def test_login_and_me(client, user_factory):
    user_factory("reader", password="pa55word")

    bad = client.post("/api/auth/login", json={"username": "reader", "password": "nope"})
    assert bad.status_code == 401

    token = client.post("/api/auth/login", json={"username": "reader", "password": "pa55word"}).json()
    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token['access_token']}"})
    assert me.status_code == 200
    assert me.json()["username"] == "reader"
    assert me.json()["is_admin"] is False


def test_requests_without_token_are_rejected(client):
    assert client.get("/api/materials").status_code == 401
    assert client.get("/api/materials", headers={"Authorization": "Bearer junk"}).status_code == 401


def test_example_scenario(client, admin_headers):
    a = _create(client, admin_headers, "categories", name="A")
    b = _create(client, admin_headers, "categories", name="B", parent_id=a["id"])
    c = _create(client, admin_headers, "categories", name="C", parent_id=b["id"])
    material = _create(client, admin_headers, "materials", title="Book M", author="Author")
    segment = _create(
        client, admin_headers, "segments",
        material_id=material["id"], content="Paragraph", page_number=5, category_id=c["id"],
    )
    assert segment["order_index"] == 0
    assert segment["category"] == {"id": c["id"], "name": "C"}

    data = client.get(f"/api/materials/{material['id']}/segments", headers=admin_headers).json()
    (row,) = data["segments"]
    assert row["category_path"] == ["A", "B", "C", "", "", ""]
    assert row["page_number"] == 5
    assert row["category_name"] == "C"

    path = client.get(f"/api/categories/{c['id']}/path", headers=admin_headers).json()
    assert [node["name"] for node in path] == ["A", "B", "C"]

    detail = client.get(f"/api/categories/{c['id']}", headers=admin_headers).json()
    assert [node["id"] for node in detail["path"]] == [a["id"], b["id"], c["id"]]

    export = client.get(f"/api/materials/{material['id']}/export", headers=admin_headers)
    assert export.status_code == 200
    assert export.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    assert unquote(export.headers["content-disposition"].split("''", 1)[1]) == "Book_M.xlsx"


def test_blocked_delete_reports_count(client, admin_headers):
    a = _create(client, admin_headers, "categories", name="A")
    b = _create(client, admin_headers, "categories", name="B", parent_id=a["id"])
    c = _create(client, admin_headers, "categories", name="C", parent_id=b["id"])

    refused = client.delete(f"/api/categories/{b['id']}", headers=admin_headers)
    assert refused.status_code == 409
    assert refused.json()["kind"] == "integrity"
    assert refused.json()["count"] == 1

    assert client.delete(f"/api/categories/{c['id']}", headers=admin_headers).status_code == 200
    assert client.delete(f"/api/categories/{b['id']}", headers=admin_headers).status_code == 200


def test_category_tree_and_reparent(client, admin_headers):
    a = _create(client, admin_headers, "categories", name="A")
    b = _create(client, admin_headers, "categories", name="B", parent_id=a["id"])

    cycle = client.put(f"/api/categories/{a['id']}", json={"parent_id": b["id"]}, headers=admin_headers)
    assert cycle.status_code == 409

    self_parent = client.put(f"/api/categories/{a['id']}", json={"parent_id": a["id"]}, headers=admin_headers)
    assert self_parent.status_code == 409

    renamed = client.put(f"/api/categories/{b['id']}", json={"name": "B1"}, headers=admin_headers).json()
    assert renamed["parent_id"] == a["id"]

    moved = client.put(f"/api/categories/{b['id']}", json={"parent_id": None}, headers=admin_headers).json()
    assert moved["parent_id"] is None

    tree = client.get("/api/categories?format=tree", headers=admin_headers).json()
    assert [(node["name"], node["children"]) for node in tree] == [("A", []), ("B1", [])]

    flat = client.get("/api/categories", headers=admin_headers).json()
    assert [node["name"] for node in flat] == ["A", "B1"]


def test_depth_exceeded_over_http(client, admin_headers):
    parent_id = None
    for level in range(1, 7):
        parent_id = _create(client, admin_headers, "categories", name=f"L{level}", parent_id=parent_id)["id"]

    response = client.post("/api/categories", json={"name": "L7", "parent_id": parent_id}, headers=admin_headers)

    assert response.status_code == 409
    assert response.json()["max_depth"] == 6


def test_validation_error_names_field(client, admin_headers):
    response = client.post("/api/categories", json={"name": "  "}, headers=admin_headers)
    assert response.status_code == 422
    assert response.json()["field"] == "name"


def test_category_editing_requires_permission(client, user_factory):
    reader = auth_headers(user_factory("reader"))
    editor = auth_headers(user_factory("editor", can_edit_categories=True))

    assert client.post("/api/categories", json={"name": "X"}, headers=reader).status_code == 403
    assert client.post("/api/categories", json={"name": "X"}, headers=editor).status_code == 201
    assert client.get("/api/categories", headers=reader).status_code == 200


def test_reorder_endpoint(client, admin_headers):
    material = _create(client, admin_headers, "materials", title="M", author="A")
    ids = [
        _create(client, admin_headers, "segments", material_id=material["id"], content=f"s{n}", page_number=1)["id"]
        for n in range(3)
    ]
    url = f"/api/materials/{material['id']}/reorder"

    result = client.patch(url, json={"ordered_ids": ids[::-1]}, headers=admin_headers).json()
    assert result == {"matched_count": 3, "modified_count": 2, "requested_count": 3}

    data = client.get(f"/api/materials/{material['id']}/segments", headers=admin_headers).json()
    assert [s["content"] for s in data["segments"]] == ["s2", "s1", "s0"]

    by_page = client.get(f"/api/materials/{material['id']}/segments?sort=page", headers=admin_headers).json()
    assert [s["content"] for s in by_page["segments"]] == ["s0", "s1", "s2"]

    empty = client.patch(url, json={"ordered_ids": []}, headers=admin_headers)
    assert empty.status_code == 422

    invalid = client.patch(url, json={"ordered_ids": [ids[0], 9999]}, headers=admin_headers)
    assert invalid.status_code == 409
    assert invalid.json()["ids"] == [9999]


def test_material_access_is_restricted(client, admin_headers, user_factory):
    visible = _create(client, admin_headers, "materials", title="Visible", author="A")
    hidden = _create(client, admin_headers, "materials", title="Hidden", author="A")
    _create(client, admin_headers, "segments", material_id=hidden["id"], content="secret", page_number=1)
    reader = auth_headers(user_factory("reader", materials=[visible["id"]]))

    listed = client.get("/api/materials", headers=reader).json()
    assert [m["title"] for m in listed] == ["Visible"]
    assert client.get(f"/api/materials/{hidden['id']}", headers=reader).status_code == 403
    assert client.get(f"/api/materials/{hidden['id']}/export", headers=reader).status_code == 403
    assert client.post(
        "/api/segments", json={"material_id": hidden["id"], "content": "x", "page_number": 1}, headers=reader
    ).status_code == 403
    assert client.get("/api/segments", headers=reader).json()["total"] == 0
    assert client.post("/api/materials", json={"title": "T", "author": "A"}, headers=reader).status_code == 403


def test_delete_material_cascades(client, admin_headers):
    material = _create(client, admin_headers, "materials", title="M", author="A")
    for n in range(3):
        _create(client, admin_headers, "segments", material_id=material["id"], content=f"s{n}", page_number=1)

    response = client.delete(f"/api/materials/{material['id']}", headers=admin_headers)

    assert response.json() == {"id": material["id"], "deleted_segments": 3}
    assert client.get(f"/api/segments?material_id={material['id']}", headers=admin_headers).status_code == 404


def test_segment_update_and_delete(client, admin_headers):
    material = _create(client, admin_headers, "materials", title="M", author="A")
    topic = _create(client, admin_headers, "categories", name="Topic")
    segment = _create(
        client, admin_headers, "segments",
        material_id=material["id"], content="text", page_number=1, category_id=topic["id"],
    )
    url = f"/api/segments/{segment['id']}"

    updated = client.put(url, json={"page_number": 4}, headers=admin_headers).json()
    assert updated["page_number"] == 4
    assert updated["category_id"] == topic["id"]

    cleared = client.put(url, json={"category_id": None}, headers=admin_headers).json()
    assert cleared["category_id"] is None

    assert client.delete(url, headers=admin_headers).status_code == 200
    missing = client.get(url, headers=admin_headers)
    assert missing.status_code == 404
    assert missing.json()["kind"] == "not_found"


def test_admin_user_management(client, admin_headers):
    material = _create(client, admin_headers, "materials", title="M", author="A")

    created = _create(client, admin_headers, "admin/users", username="newbie", password="pw12345")
    assert created["assigned_material_ids"] == []

    duplicate = client.post("/api/admin/users", json={"username": "newbie", "password": "x"}, headers=admin_headers)
    assert duplicate.status_code == 400
    short = client.post("/api/admin/users", json={"username": "ab", "password": "x"}, headers=admin_headers)
    assert short.status_code == 400

    updated = client.patch(
        f"/api/admin/users/{created['id']}",
        json={"can_edit_categories": True, "assigned_material_ids": [material["id"]]},
        headers=admin_headers,
    ).json()
    assert updated["can_edit_categories"] is True
    assert updated["assigned_material_ids"] == [material["id"]]

    newbie = client.post("/api/auth/login", json={"username": "newbie", "password": "pw12345"}).json()
    newbie_headers = {"Authorization": f"Bearer {newbie['access_token']}"}
    assert client.get("/api/admin/users", headers=newbie_headers).status_code == 403
    assert [m["id"] for m in client.get("/api/materials", headers=newbie_headers).json()] == [material["id"]]

    assert client.delete(f"/api/admin/users/{created['id']}", headers=admin_headers).status_code == 200


@pytest.mark.parametrize("failure", [
    OperationalError("SELECT 1", {}, Exception("database is locked")),
    PoolTimeoutError("QueuePool limit reached"),
])
def test_store_failures_are_reported_as_infrastructure(client, admin_headers, monkeypatch, failure):
    def unavailable(*args, **kwargs):
        raise failure

    monkeypatch.setattr(material_service, "list_materials", unavailable)

    response = client.get("/api/materials", headers=admin_headers)

    assert response.status_code == 503
    assert response.json()["kind"] == "infrastructure"
