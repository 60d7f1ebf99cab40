"""Activity history: append-only audit trail of user actions."""

from collections import Counter
from datetime import datetime

from flask_login import current_user

from extensions import db

CHAT_ACTION = "chat"
CHAT_TOPICS = ["Stock management", "Maintenance", "Equipment", "Analytics"]


class ActivityRecord(db.Model):
    __tablename__ = "activity_history"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False, default="system")
    action = db.Column(db.String(64), nullable=False)
    description = db.Column(db.Text, nullable=False)
    page = db.Column(db.String(64), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "action": self.action,
            "description": self.description,
            "page": self.page,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


# ---------- Domain operations ----------

def _current_user_id() -> str:
    if getattr(current_user, "is_authenticated", False):
        return str(current_user.get_id())
    return "system"


def log_activity(action: str, description: str, page: str, user_id: str | None = None) -> ActivityRecord:
    """
    Append an activity record to the current session.
    The caller commits; the record lands with the change it describes.
    """
    record = ActivityRecord(
        user_id=user_id or _current_user_id(),
        action=action,
        description=description,
        page=page,
        created_at=datetime.utcnow(),
    )
    db.session.add(record)
    return record


def recent_activity(limit: int = 10) -> list[ActivityRecord]:
    return (ActivityRecord.query
            .order_by(ActivityRecord.created_at.desc(), ActivityRecord.id.desc())
            .limit(limit)
            .all())


def chat_stats(now: datetime | None = None) -> dict:
    """Usage figures for the assistant, derived from ``chat`` activity records."""
    now = now or datetime.utcnow()
    records = ActivityRecord.query.filter_by(action=CHAT_ACTION).all()

    today = now.date()
    hours = Counter(r.created_at.hour for r in records if r.created_at)
    most_active = hours.most_common(1)[0][0] if hours else 12

    return {
        "total_messages": len(records),
        "messages_today": sum(1 for r in records if r.created_at and r.created_at.date() == today),
        "most_active_hour": f"{most_active}h",
        "popular_topics": list(CHAT_TOPICS),
    }
