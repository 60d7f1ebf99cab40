from extensions import db
from modules.stock.models import StockItem


def test_items_require_login(client):
    resp = client.get("/stock/items")
    assert resp.status_code == 401
    assert resp.get_json() == {"ok": False, "error": "Authentication required."}


def test_sku_is_generated_when_missing(client, login):
    login("user")
    resp = client.post("/stock/items", json={"name": "Drill"})
    assert resp.status_code == 201
    item = resp.get_json()["item"]
    assert item["sku"].startswith("SKU-")
    assert item["status"] == "active"
    assert item["quantity"] == 1
    assert resp.get_json()["maintenance_record"] is None


def test_duplicate_sku_is_rejected(client, login):
    login("user")
    assert client.post("/stock/items", json={"name": "Drill", "sku": "D-1"}).status_code == 201
    resp = client.post("/stock/items", json={"name": "Other drill", "sku": "D-1"})
    assert resp.status_code == 400
    assert "D-1" in resp.get_json()["error"]


def test_discontinued_item_opens_maintenance(client, login):
    login("user")
    resp = client.post("/stock/items", json={
        "name": "Hammer drill",
        "park_number": "OUT-1",
        "status": "discontinued",
        "problem_description": "Chuck does not lock",
    })
    assert resp.status_code == 201
    record = resp.get_json()["maintenance_record"]
    assert record["equipment_name"] == "Hammer drill"
    assert record["park_number"] == "OUT-1"
    assert record["maintenance_type"] == "corrective"
    assert record["status"] == "scheduled"
    assert record["priority"] == "medium"
    assert record["description"] == "Chuck does not lock"

    records = client.get("/maintenance/").get_json()
    assert records["count"] == 1


def test_discontinued_item_without_problem_has_no_record(client, login):
    login("user")
    resp = client.post("/stock/items", json={"name": "Saw", "status": "discontinued"})
    assert resp.status_code == 201
    assert resp.get_json()["maintenance_record"] is None
    assert client.get("/maintenance/").get_json()["count"] == 0


def test_invalid_status_is_rejected(client, login):
    login("user")
    resp = client.post("/stock/items", json={"name": "Saw", "status": "lost"})
    assert resp.status_code == 400


def test_search_matches_identifiers(client, login):
    login("user")
    client.post("/stock/items", json={"name": "Laptop", "park_number": "PC-77", "category": "IT"})
    client.post("/stock/items", json={"name": "Ladder", "serial_number": "LD-1", "category": "Tools"})

    found = client.get("/stock/items?q=pc-77").get_json()
    assert [i["name"] for i in found["items"]] == ["Laptop"]

    by_category = client.get("/stock/items?category=Tools").get_json()
    assert [i["name"] for i in by_category["items"]] == ["Ladder"]


def test_delete_item_needs_admin(app, client, login):
    login("user")
    item_id = client.post("/stock/items", json={"name": "Saw"}).get_json()["item"]["id"]
    assert client.delete(f"/stock/items/{item_id}").status_code == 403

    login("admin")
    assert client.delete(f"/stock/items/{item_id}").status_code == 200
    assert client.get(f"/stock/items/{item_id}").status_code == 404

    with app.app_context():
        assert db.session.get(StockItem, item_id) is None


def test_category_rename_moves_items(client, login):
    login("admin")
    category = client.post("/stock/categories", json={"name": "Phones"}).get_json()["item"]
    item_id = client.post("/stock/items", json={"name": "Pixel", "category": "Phones"}).get_json()["item"]["id"]

    resp = client.put(f"/stock/categories/{category['id']}", json={"name": "Mobiles"})
    assert resp.status_code == 200
    assert resp.get_json()["item"]["total_count"] == 1
    assert client.get(f"/stock/items/{item_id}").get_json()["item"]["category"] == "Mobiles"


def test_category_in_use_cannot_be_deleted(client, login):
    login("admin")
    category = client.post("/stock/categories", json={"name": "Phones"}).get_json()["item"]
    client.post("/stock/items", json={"name": "Pixel", "category": "Phones"})

    resp = client.delete(f"/stock/categories/{category['id']}")
    assert resp.status_code == 409
    assert resp.get_json()["ok"] is False

    empty = client.post("/stock/categories", json={"name": "Empty"}).get_json()["item"]
    assert client.delete(f"/stock/categories/{empty['id']}").status_code == 200
