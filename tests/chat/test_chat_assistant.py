from types import SimpleNamespace

import openai
import pytest

from modules.chat import client as chat_client
from modules.chat import routes as chat_routes
from modules.chat.client import FALLBACK_REPLY, ChatServiceError, complete, validate_messages


@pytest.fixture()
def assistant(monkeypatch):
    """Replace the completion call; records what the routes sent."""
    calls = []

    def fake_complete(messages, system_prompt, api_key=None):
        calls.append({"messages": messages, "system_prompt": system_prompt, "api_key": api_key})
        return f"echo: {messages[-1]['content']}"

    monkeypatch.setattr(chat_routes, "complete", fake_complete)
    return calls


@pytest.fixture()
def broken_assistant(monkeypatch):
    def fake_complete(messages, system_prompt, api_key=None):
        raise ChatServiceError("timeout")

    monkeypatch.setattr(chat_routes, "complete", fake_complete)


def test_chat_requires_a_key(client, login):
    login("user")
    resp = client.post("/chat/messages", json={"content": "Hello"})
    assert resp.status_code == 400
    assert client.get("/chat/messages").get_json()["items"] == []


def test_session_key_roundtrip(client, login):
    login("user")
    assert client.get("/chat/api-key").get_json()["has_session_key"] is False
    assert client.put("/chat/api-key", json={"api_key": ""}).status_code == 400
    assert client.put("/chat/api-key", json={"api_key": "sk-session"}).status_code == 200
    assert client.get("/chat/api-key").get_json()["has_session_key"] is True
    client.delete("/chat/api-key")
    assert client.get("/chat/api-key").get_json()["has_session_key"] is False


def test_exchange_is_stored_and_logged(client, login, assistant):
    login("user")
    client.put("/chat/api-key", json={"api_key": "sk-session"})

    resp = client.post("/chat/messages", json={"content": "How many laptops?"})
    assert resp.status_code == 200
    assert resp.get_json()["reply"]["content"] == "echo: How many laptops?"
    assert assistant[0]["api_key"] == "sk-session"
    assert assistant[0]["messages"] == [{"role": "user", "content": "How many laptops?"}]

    history = client.get("/chat/messages").get_json()["items"]
    assert [m["role"] for m in history] == ["user", "assistant"]

    activity = client.get("/activity/").get_json()["items"]
    assert activity[0]["action"] == "chat"
    assert client.get("/activity/chat-stats").get_json()["stats"]["total_messages"] == 1


def test_history_is_sent_back_and_trimmed(app, client, login, assistant):
    app.config["OPENAI_API_KEY"] = "sk-server"
    app.config["CHAT_HISTORY_LIMIT"] = 2
    login("user")

    client.post("/chat/messages", json={"content": "first"})
    client.post("/chat/messages", json={"content": "second"})

    # the second call saw the first exchange
    assert [m["content"] for m in assistant[1]["messages"]] == ["first", "echo: first", "second"]

    history = client.get("/chat/messages").get_json()["items"]
    assert [m["content"] for m in history] == ["second", "echo: second"]


def test_failure_rolls_back_the_user_turn(client, login, broken_assistant):
    login("user")
    client.put("/chat/api-key", json={"api_key": "sk-session"})

    resp = client.post("/chat/messages", json={"content": "Hello"})
    assert resp.status_code == 502
    assert client.get("/chat/messages").get_json()["items"] == []
    assert client.get("/activity/").get_json()["items"] == []


def test_context_variant_uses_server_key_and_data(app, client, login, assistant):
    login("admin")
    client.post("/stock/categories", json={"name": "Laptops", "critical_threshold": 3})
    client.put("/chat/api-key", json={"api_key": "sk-session"})

    # the enhanced prompt never runs on a session key
    assert client.post("/chat/messages?context=1", json={"content": "Status?"}).status_code == 400

    app.config["OPENAI_API_KEY"] = "sk-server"
    resp = client.post("/chat/messages?context=1", json={"content": "Status?"})
    assert resp.status_code == 200
    prompt = assistant[0]["system_prompt"]
    assert assistant[0]["api_key"] == "sk-server"
    assert "CURRENT DATA" in prompt
    assert "Laptops: 0 available of 0" in prompt


def test_clear_history(client, login, assistant):
    login("user")
    client.put("/chat/api-key", json={"api_key": "sk-session"})
    client.post("/chat/messages", json={"content": "Hello"})

    resp = client.delete("/chat/messages")
    assert resp.get_json()["removed"] == 2
    assert client.get("/chat/messages").get_json()["items"] == []


def test_stateless_completions(app, client, login, assistant):
    app.config["OPENAI_API_KEY"] = "sk-server"
    login("user")

    bad = client.post("/chat/completions", json={"messages": [{"role": "system", "content": "x"}]})
    assert bad.status_code == 400

    resp = client.post("/chat/completions", json={"messages": [{"role": "user", "content": "Hi"}]})
    assert resp.status_code == 200
    assert resp.get_json()["content"] == "echo: Hi"
    assert client.get("/chat/messages").get_json()["items"] == []


def test_stateless_completions_require_a_key(client, login, assistant):
    login("user")
    resp = client.post("/chat/completions", json={"messages": [{"role": "user", "content": "Hi"}]})
    assert resp.status_code == 400
    assert resp.get_json() == {"ok": False, "error": "No OpenAI API key configured."}
    assert assistant == []


def test_validate_messages():
    assert validate_messages([{"role": "user", "content": "Hi", "extra": 1}]) == [{"role": "user", "content": "Hi"}]
    for bad in (None, [], ["text"], [{"role": "user", "content": "  "}]):
        with pytest.raises(ValueError):
            validate_messages(bad)


def test_complete_without_key(app):
    with app.app_context():
        with pytest.raises(ChatServiceError):
            complete([{"role": "user", "content": "Hi"}])


class FakeOpenAI:
    """Stand-in for ``openai.OpenAI``; replies with ``reply`` or raises ``error``."""

    reply = None
    error = None
    created = []

    def __init__(self, **options):
        self.options = options
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))
        FakeOpenAI.created.append(self)

    def _create(self, **request):
        self.request = request
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture()
def fake_openai(monkeypatch):
    FakeOpenAI.reply = None
    FakeOpenAI.error = None
    FakeOpenAI.created = []
    monkeypatch.setattr(chat_client, "OpenAI", FakeOpenAI)
    return FakeOpenAI


def _reply(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def test_complete_parses_reply(app, fake_openai):
    fake_openai.reply = _reply("Four laptops.")
    with app.app_context():
        reply = complete([{"role": "user", "content": "How many?"}], "SYSTEM", api_key="sk-x")

    assert reply == "Four laptops."
    sdk = fake_openai.created[0]
    assert sdk.options["api_key"] == "sk-x"
    assert sdk.options["base_url"] == app.config["OPENAI_BASE_URL"]
    assert sdk.options["max_retries"] == 0
    assert sdk.request["messages"][0] == {"role": "system", "content": "SYSTEM"}
    assert sdk.request["messages"][1] == {"role": "user", "content": "How many?"}
    assert sdk.request["model"] == app.config["OPENAI_MODEL"]
    assert sdk.request["max_tokens"] == 2000


@pytest.mark.parametrize("reply", [SimpleNamespace(choices=[]), _reply(None)])
def test_complete_falls_back_on_empty_reply(app, fake_openai, reply):
    fake_openai.reply = reply
    with app.app_context():
        assert complete([{"role": "user", "content": "Hi"}], api_key="sk-x") == FALLBACK_REPLY


def test_complete_wraps_sdk_errors(app, fake_openai):
    fake_openai.error = openai.OpenAIError("connection refused")
    with app.app_context():
        with pytest.raises(ChatServiceError, match="connection refused"):
            complete([{"role": "user", "content": "Hi"}], api_key="sk-x")
