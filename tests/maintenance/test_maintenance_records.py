from datetime import date

import pytest
import requests

import notifications


@pytest.fixture()
def sent_emails(monkeypatch, fake_response):
    calls = []

    def fake_post(url, headers=None, json=None, timeout=None):
        calls.append({"url": url, "headers": headers, "json": json})
        return fake_response(200, {"id": "email-1"})

    monkeypatch.setattr(notifications.requests, "post", fake_post)
    return calls


@pytest.fixture()
def failing_email(monkeypatch):
    def fake_post(*args, **kwargs):
        raise requests.exceptions.ConnectionError("provider down")

    monkeypatch.setattr(notifications.requests, "post", fake_post)


def _technician(client, email="tech@example.com"):
    resp = client.post("/employees/", json={"first_name": "Alex", "last_name": "Martin", "email": email})
    return resp.get_json()["item"]["id"]


def _record(client, **data):
    payload = {"equipment_name": "Compressor", "description": "Oil change", **data}
    return client.post("/maintenance/", json=payload)


def test_new_record_emails_technician(client, login, sent_emails):
    login("user")
    tech_id = _technician(client)

    resp = _record(client, technician_id=tech_id, priority="high", scheduled_date="2024-06-01")
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["notification_sent"] is True
    assert body["item"]["technician_name"] == "Alex Martin"

    assert len(sent_emails) == 1
    email = sent_emails[0]["json"]
    assert email["to"] == ["tech@example.com"]
    assert email["subject"] == "New maintenance assigned - Compressor"
    assert "01/06/2024" in email["html"]
    assert "HIGH" in email["html"]
    assert sent_emails[0]["headers"]["Authorization"] == "Bearer re_test"


def test_email_failure_does_not_block_the_record(client, login, failing_email):
    login("user")
    tech_id = _technician(client)

    resp = _record(client, technician_id=tech_id)
    assert resp.status_code == 201
    assert resp.get_json()["notification_sent"] is False
    assert client.get("/maintenance/").get_json()["count"] == 1


def test_record_without_technician_sends_nothing(client, login, sent_emails):
    login("user")
    resp = _record(client)
    assert resp.status_code == 201
    assert resp.get_json()["notification_sent"] is False
    assert sent_emails == []


def test_unknown_technician_is_rejected(client, login):
    login("user")
    resp = _record(client, technician_id=999)
    assert resp.status_code == 400
    assert client.get("/maintenance/").get_json()["count"] == 0


def test_defaults_and_validation(client, login):
    login("user")
    record = _record(client).get_json()["item"]
    assert record["status"] == "scheduled"
    assert record["priority"] == "medium"
    assert record["maintenance_type"] == "corrective"
    assert record["scheduled_date"] == date.today().isoformat()

    assert _record(client, priority="urgent").status_code == 400
    assert _record(client, description="").status_code == 400


def test_completing_fills_completed_date(client, login):
    login("user")
    record_id = _record(client).get_json()["item"]["id"]

    resp = client.patch(f"/maintenance/{record_id}", json={"status": "in_progress"})
    assert resp.get_json()["item"]["previous_status"] == "scheduled"

    resp = client.patch(f"/maintenance/{record_id}", json={"status": "completed", "cost": "120,5"})
    item = resp.get_json()["item"]
    assert item["status"] == "completed"
    assert item["previous_status"] == "in_progress"
    assert item["completed_date"] == date.today().isoformat()
    assert item["cost"] == 120.5

    open_records = client.get("/maintenance/?status=scheduled").get_json()
    assert open_records["count"] == 0


def test_delete_leaves_stock_alone(client, login):
    login("user")
    item_id = client.post("/stock/items", json={
        "name": "Compressor", "status": "discontinued", "problem_description": "Leaks",
    }).get_json()["item"]["id"]
    record_id = client.get("/maintenance/").get_json()["items"][0]["id"]

    assert client.delete(f"/maintenance/{record_id}").status_code == 403

    login("admin")
    assert client.delete(f"/maintenance/{record_id}").status_code == 200
    assert client.get("/maintenance/").get_json()["count"] == 0
    item = client.get(f"/stock/items/{item_id}").get_json()["item"]
    assert item["status"] == "discontinued"


def test_delete_leaves_other_records_alone(client, login):
    login("user")
    doomed = _record(client, equipment_name="Forklift").get_json()["item"]
    kept = _record(client, equipment_name="Generator", description="Filter swap",
                   priority="high", scheduled_date="2024-09-01").get_json()["item"]

    login("admin")
    assert client.delete(f"/maintenance/{doomed['id']}").status_code == 200

    listed = client.get("/maintenance/").get_json()["items"]
    assert listed == [kept]
    assert client.get(f"/maintenance/{doomed['id']}").status_code == 404


def test_notify_endpoint(client, login, sent_emails):
    login("user")
    resp = client.post("/maintenance/notify", json={
        "technician_email": "tech@example.com",
        "technician_name": "Alex",
        "equipment_name": "Forklift",
        "description": "Brakes",
        "priority": "critical",
        "scheduled_date": "2024-07-15",
    })
    assert resp.status_code == 200
    assert "15/07/2024" in sent_emails[0]["json"]["html"]

    missing = client.post("/maintenance/notify", json={"equipment_name": "Forklift"})
    assert missing.status_code == 400


def test_notify_endpoint_reports_provider_failure(client, login, failing_email):
    login("user")
    resp = client.post("/maintenance/notify", json={
        "technician_email": "tech@example.com",
        "equipment_name": "Forklift",
    })
    assert resp.status_code == 502
    assert resp.get_json()["ok"] is False


def test_disabled_mail_is_an_error(app, client, login, sent_emails):
    app.config["MAIL_ENABLED"] = False
    login("user")
    resp = client.post("/maintenance/notify", json={
        "technician_email": "tech@example.com",
        "equipment_name": "Forklift",
    })
    assert resp.status_code == 502
    assert sent_emails == []
