# tests/conftest.py
import os
import sys
import pytest

# so that `from app import create_app` works when running from the root
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from app import create_app
from extensions import db
from models import create_account


@pytest.fixture()
def app():
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "SECRET_KEY": "test-secret",
        "OPENAI_API_KEY": None,
        "RESEND_API_KEY": "re_test",
        "MAIL_ENABLED": True,
        "MAIL_FROM": "Secure Stock <stock@example.com>",
    })
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def users(app):
    """One account per role, as ``{role: user_id}``."""
    ids = {}
    with app.app_context():
        for role in ("user", "admin", "super_admin"):
            user = create_account(f"{role}@example.com", "secret123", role.title(), role)
            db.session.flush()
            ids[role] = user.id
        db.session.commit()
    return ids


@pytest.fixture()
def login(client, users):
    """``login("admin")`` puts that account in the test client's session."""
    def _login(role: str) -> int:
        user_id = users[role]
        with client.session_transaction() as session:
            session["_user_id"] = str(user_id)
            session["_fresh"] = True
        return user_id
    return _login


class FakeResponse:
    """Stand-in for ``requests.Response``."""

    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload if payload is not None else {}
        self.text = str(self._payload)
        self.content = self.text.encode()

    def json(self):
        return self._payload

    def raise_for_status(self):
        import requests

        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} error", response=self)


@pytest.fixture()
def fake_response():
    return FakeResponse
