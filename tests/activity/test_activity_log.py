from datetime import datetime

from extensions import db
from modules.activity.models import ActivityRecord, chat_stats, log_activity


def test_mutations_are_logged(client, login):
    admin_id = login("admin")
    client.post("/stock/categories", json={"name": "Phones", "critical_threshold": 2})

    items = client.get("/activity/").get_json()["items"]
    assert len(items) == 1
    assert items[0]["action"] == "create"
    assert items[0]["page"] == "Stock"
    assert items[0]["user_id"] == str(admin_id)
    assert "Phones" in items[0]["description"]


def test_rejected_requests_leave_no_trace(client, login):
    login("admin")
    client.post("/stock/categories", json={"name": ""})
    assert client.get("/activity/").get_json()["items"] == []


def test_feed_is_newest_first_and_limited(client, login):
    login("user")
    for n in range(3):
        client.post("/stock/items", json={"name": f"Item {n}"})

    items = client.get("/activity/?limit=2").get_json()["items"]
    assert [i["description"] for i in items] == ["Item Item 2 added to stock", "Item Item 1 added to stock"]

    assert len(client.get("/activity/?limit=0").get_json()["items"]) == 1
    assert len(client.get("/activity/?limit=abc").get_json()["items"]) == 3


def test_system_is_the_default_author(app):
    with app.app_context():
        record = log_activity("import", "Nightly import", "Stock")
        db.session.commit()
        assert record.user_id == "system"


def test_chat_stats(app):
    now = datetime(2024, 5, 10, 16, 30)
    with app.app_context():
        assert chat_stats(now)["most_active_hour"] == "12h"
        assert chat_stats(now)["total_messages"] == 0

        for ts in (datetime(2024, 5, 10, 9, 0), datetime(2024, 5, 10, 9, 45), datetime(2024, 5, 9, 14, 0)):
            db.session.add(ActivityRecord(action="chat", description="msg", page="Chat", created_at=ts))
        db.session.add(ActivityRecord(action="create", description="other", page="Stock", created_at=now))
        db.session.commit()

        stats = chat_stats(now)
        assert stats["total_messages"] == 3
        assert stats["messages_today"] == 2
        assert stats["most_active_hour"] == "9h"
        assert stats["popular_topics"]


def test_chat_stats_route(client, login):
    login("user")
    stats = client.get("/activity/chat-stats").get_json()["stats"]
    assert stats["total_messages"] == 0
