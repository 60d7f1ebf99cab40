"""Per-user chat history cache."""

from datetime import datetime

from extensions import db


class ChatMessage(db.Model):
    __tablename__ = "chat_messages"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = db.Column(db.String(16), nullable=False)  # user | assistant
    content = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "role": self.role,
            "content": self.content,
            "timestamp": self.created_at.isoformat() if self.created_at else None,
        }

    def as_turn(self) -> dict:
        return {"role": self.role, "content": self.content}


# ---------- Domain operations ----------

def history(user_id: int) -> list[ChatMessage]:
    return (ChatMessage.query
            .filter_by(user_id=user_id)
            .order_by(ChatMessage.created_at.asc(), ChatMessage.id.asc())
            .all())


def add_message(user_id: int, role: str, content: str) -> ChatMessage:
    message = ChatMessage(user_id=user_id, role=role, content=content, created_at=datetime.utcnow())
    db.session.add(message)
    return message


def trim_history(user_id: int, limit: int) -> int:
    """Keep only the newest ``limit`` messages. Returns how many were dropped."""
    keep = [m.id for m in (ChatMessage.query
                           .filter_by(user_id=user_id)
                           .order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc())
                           .limit(limit)
                           .all())]
    if not keep:
        return 0
    return (ChatMessage.query
            .filter(ChatMessage.user_id == user_id, ChatMessage.id.notin_(keep))
            .delete(synchronize_session=False))


def clear_history(user_id: int) -> int:
    return ChatMessage.query.filter_by(user_id=user_id).delete(synchronize_session=False)
