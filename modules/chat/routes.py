"""HTTP routes for the chat assistant."""

import logging

from flask import current_app, jsonify, request, session
from flask_login import current_user, login_required

from extensions import db
from modules.activity.models import CHAT_ACTION, log_activity
from modules.chat.client import (
    ENHANCED_SYSTEM_PROMPT,
    SYSTEM_PROMPT,
    ChatServiceError,
    complete,
    validate_messages,
)
from modules.chat.context import format_snapshot, inventory_snapshot
from modules.chat.models import add_message, clear_history, history, trim_history
from utils import clean_str, get_payload

from . import bp

logger = logging.getLogger(__name__)

PAGE = "Chat"
SESSION_KEY = "openai_api_key"


def _truthy(value) -> bool:
    return str(value).lower() in ("1", "true", "yes", "on")


def _wants_context(data: dict) -> bool:
    return _truthy(request.args.get("context", "")) or _truthy(data.get("context", ""))


def _system_prompt(with_context: bool) -> str:
    if not with_context:
        return SYSTEM_PROMPT
    return ENHANCED_SYSTEM_PROMPT.format(context=format_snapshot(inventory_snapshot()))


def _api_key(with_context: bool) -> str | None:
    """The enhanced variant runs on the server key only; the plain one may use a session key."""
    server_key = current_app.config.get("OPENAI_API_KEY")
    if with_context:
        return server_key
    return session.get(SESSION_KEY) or server_key


# ---------- Conversation (cached history) ----------
@bp.route("/messages")
@login_required
def get_messages():
    return jsonify(ok=True, items=[m.to_dict() for m in history(current_user.id)])


@bp.route("/messages", methods=["POST"])
@login_required
def send_message():
    data = get_payload()
    content = clean_str(data.get("content"))
    if not content:
        return jsonify(ok=False, error="Message content is required."), 400

    with_context = _wants_context(data)
    api_key = _api_key(with_context)
    if not api_key:
        return jsonify(ok=False, error="No OpenAI API key configured."), 400

    # optimistic: the user turn is stored before the assistant answers
    user_message = add_message(current_user.id, "user", content)
    db.session.commit()

    turns = [m.as_turn() for m in history(current_user.id)]
    try:
        reply = complete(turns, _system_prompt(with_context), api_key=api_key)
    except ChatServiceError as e:
        logger.error(f"Chat failed for user {current_user.id}: {str(e)}")
        db.session.delete(user_message)
        db.session.commit()
        return jsonify(ok=False, error="Could not reach the AI assistant.", details=str(e)), 502

    assistant_message = add_message(current_user.id, "assistant", reply)
    log_activity(CHAT_ACTION, "Message sent to the AI assistant", PAGE)
    db.session.flush()
    trim_history(current_user.id, current_app.config["CHAT_HISTORY_LIMIT"])
    db.session.commit()
    return jsonify(ok=True, message=user_message.to_dict(), reply=assistant_message.to_dict())


@bp.route("/messages", methods=["DELETE"])
@login_required
def clear_messages():
    removed = clear_history(current_user.id)
    db.session.commit()
    return jsonify(ok=True, removed=removed)


# ---------- Stateless forwarding ----------
@bp.route("/completions", methods=["POST"])
@login_required
def completions():
    """Forward an explicit list of turns and return the generated text."""
    data = get_payload()
    try:
        turns = validate_messages(data.get("messages"))
    except ValueError as e:
        return jsonify(ok=False, error=str(e)), 400

    with_context = _truthy(data.get("context", ""))
    api_key = _api_key(with_context)
    if not api_key:
        return jsonify(ok=False, error="No OpenAI API key configured."), 400

    try:
        reply = complete(turns, _system_prompt(with_context), api_key=api_key)
    except ChatServiceError as e:
        return jsonify(ok=False, error="Could not reach the AI assistant.", details=str(e)), 502

    log_activity(CHAT_ACTION, "Message sent to the AI assistant", PAGE)
    db.session.commit()
    return jsonify(ok=True, content=reply)


# ---------- Session API key ----------
@bp.route("/api-key")
@login_required
def api_key_status():
    return jsonify(ok=True, has_session_key=bool(session.get(SESSION_KEY)),
                   has_server_key=bool(current_app.config.get("OPENAI_API_KEY")))


@bp.route("/api-key", methods=["PUT", "POST"])
@login_required
def save_api_key():
    key = clean_str(get_payload().get("api_key"))
    if not key:
        return jsonify(ok=False, error="api_key is required."), 400
    session[SESSION_KEY] = key
    return jsonify(ok=True, has_session_key=True)


@bp.route("/api-key", methods=["DELETE"])
@login_required
def remove_api_key():
    session.pop(SESSION_KEY, None)
    return jsonify(ok=True, has_session_key=False)
