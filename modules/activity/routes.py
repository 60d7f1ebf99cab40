"""HTTP routes for the activity history."""

from flask import jsonify, request
from flask_login import login_required

from modules.activity.models import chat_stats, recent_activity

from . import bp

MAX_LIMIT = 100


@bp.route("/")
@login_required
def list_activity():
    try:
        limit = int(request.args.get("limit", 10))
    except ValueError:
        limit = 10
    limit = max(1, min(limit, MAX_LIMIT))
    return jsonify(ok=True, items=[a.to_dict() for a in recent_activity(limit)])


@bp.route("/chat-stats")
@login_required
def get_chat_stats():
    return jsonify(ok=True, stats=chat_stats())
