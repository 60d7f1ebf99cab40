"""Shared SQLAlchemy models."""

from datetime import datetime

from flask_login import UserMixin
from werkzeug.security import check_password_hash, generate_password_hash

from extensions import db
from permissions import ROLES


class User(UserMixin, db.Model):
    """Represents an authenticated application user (profile)."""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    full_name = db.Column(db.String(150))
    password = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(50), nullable=False, default="user")  # user, admin, super_admin
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<User {self.email}>"


# ---------- Domain operations ----------

def create_account(email: str | None, password: str | None, full_name: str | None = None,
                   role: str = "user") -> User:
    """Create a user with a hashed password; the caller commits."""
    email = (email or "").strip().lower()
    if not email or "@" not in email:
        raise ValueError("A valid email is required.")
    if not password or len(password) < 6:
        raise ValueError("Password must be at least 6 characters.")
    if role not in ROLES:
        raise ValueError(f"role must be one of: {', '.join(ROLES)}")
    if User.query.filter_by(email=email).first():
        raise ValueError(f"User {email} already exists.")

    user = User(
        email=email,
        full_name=(full_name or "").strip() or None,
        password=generate_password_hash(password),
        role=role,
    )
    db.session.add(user)
    return user


def authenticate(email: str | None, password: str | None) -> User | None:
    user = User.query.filter_by(email=(email or "").strip().lower()).first()
    if user and password and check_password_hash(user.password, password):
        return user
    return None
