def test_list_views_starts_with_quick_views(client):
    response = client.get("/views")

    assert response.status_code == 200
    payload = response.json()
    assert [v["id"] for v in payload["views"]] == ["all", "hk", "tw", "jp", "kr", "sg", "my"]
    assert payload["views"][1]["filters"]["market"] == "HK"
    assert all(v["is_quick"] for v in payload["views"])


def test_create_and_fetch_saved_view(client):
    created = client.post(
        "/views",
        json={"name": "Active HK", "filters": {"market": "HK", "coupon_status": "active"}},
    )

    assert created.status_code == 201
    view_id = created.json()["id"]

    fetched = client.get(f"/views/{view_id}")
    assert fetched.status_code == 200
    assert fetched.json()["filters"]["coupon_status"] == "active"
    assert fetched.json()["is_quick"] is False

    listed = client.get("/views").json()
    assert listed["total"] == 8
    assert listed["views"][-1]["name"] == "Active HK"


def test_duplicate_view_name_conflicts(client):
    client.post("/views", json={"name": "Mine", "filters": {}})

    response = client.post("/views", json={"name": "Mine", "filters": {"market": "TW"}})

    assert response.status_code == 409


def test_update_view_renames_and_replaces_filters(client):
    view_id = client.post("/views", json={"name": "Draft", "filters": {"market": "JP"}}).json()["id"]

    response = client.put(f"/views/{view_id}", json={"name": "Japan", "filters": {"site": "web"}})

    assert response.status_code == 200
    payload = response.json()
    assert payload["name"] == "Japan"
    assert payload["filters"]["site"] == "web"
    assert payload["filters"]["market"] is None


def test_rename_onto_existing_name_conflicts(client):
    client.post("/views", json={"name": "First", "filters": {}})
    second = client.post("/views", json={"name": "Second", "filters": {}}).json()["id"]

    response = client.put(f"/views/{second}", json={"name": "First"})

    assert response.status_code == 409


def test_delete_view_then_404(client):
    view_id = client.post("/views", json={"name": "Temp", "filters": {}}).json()["id"]

    assert client.delete(f"/views/{view_id}").status_code == 204
    assert client.get(f"/views/{view_id}").status_code == 404
    assert client.delete(f"/views/{view_id}").status_code == 404
