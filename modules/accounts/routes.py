"""HTTP routes for login sessions and user management."""

import logging

from flask import abort, jsonify
from flask_login import current_user, login_required, login_user, logout_user

from extensions import db, login_manager
from models import User, authenticate, create_account
from modules.activity.models import log_activity
from modules.chat.models import clear_history
from permissions import ROLES, has_permission, permission_flags, role_required
from utils import get_payload

from . import bp

logger = logging.getLogger(__name__)

PAGE = "Settings"


@login_manager.user_loader
def load_user(user_id: str | None) -> User | None:
    """Resolve a ``User`` instance for Flask-Login sessions."""

    if not user_id:
        return None
    return db.session.get(User, int(user_id))


def _check_role_grant(role: str | None) -> None:
    """Only a super_admin may hand out (or take away) super_admin."""
    if role == "super_admin" and not has_permission(current_user.role, "super_admin"):
        abort(403, description="Only a super_admin can grant the super_admin role.")


# ---------- Session ----------
@bp.route("/login", methods=["POST"])
def login():
    data = get_payload()
    user = authenticate(data.get("email"), data.get("password"))
    if user is None:
        logger.warning("Failed login for %s", data.get("email"))
        return jsonify(ok=False, error="Invalid email or password."), 401
    login_user(user)
    return jsonify(ok=True, user=user.to_dict(), permissions=permission_flags())


@bp.route("/logout", methods=["POST"])
@login_required
def logout():
    logout_user()
    return jsonify(ok=True)


@bp.route("/me")
@login_required
def me():
    return jsonify(ok=True, user=current_user.to_dict(), permissions=permission_flags())


# ---------- Users ----------
@bp.route("/users")
@role_required("admin")
def list_users():
    users = User.query.order_by(User.created_at.desc(), User.id.desc()).all()
    return jsonify(ok=True, items=[u.to_dict() for u in users])


@bp.route("/users", methods=["POST"])
@role_required("admin")
def add_user():
    data = get_payload()
    role = data.get("role") or "user"
    _check_role_grant(role)
    try:
        user = create_account(data.get("email"), data.get("password"), data.get("full_name"), role)
        log_activity("create", f"User {user.email} created ({user.role})", PAGE)
        db.session.commit()
    except ValueError as e:
        db.session.rollback()
        return jsonify(ok=False, error=str(e)), 400
    return jsonify(ok=True, item=user.to_dict()), 201


@bp.route("/users/<int:user_id>", methods=["PUT", "PATCH"])
@role_required("admin")
def edit_user(user_id: int):
    user = User.query.get_or_404(user_id)
    data = get_payload()

    if "role" in data:
        role = data.get("role")
        if role not in ROLES:
            return jsonify(ok=False, error=f"role must be one of: {', '.join(ROLES)}"), 400
        _check_role_grant(role)
        _check_role_grant(user.role)
        user.role = role
    if "full_name" in data:
        user.full_name = (data.get("full_name") or "").strip() or None

    log_activity("update", f"User {user.email} updated", PAGE)
    db.session.commit()
    return jsonify(ok=True, item=user.to_dict())


@bp.route("/users/<int:user_id>", methods=["DELETE"])
@role_required("admin")
def delete_user(user_id: int):
    user = User.query.get_or_404(user_id)
    if user.id == current_user.id:
        return jsonify(ok=False, error="You cannot delete your own account."), 400
    _check_role_grant(user.role)
    clear_history(user.id)
    db.session.delete(user)
    log_activity("delete", f"User {user.email} deleted", PAGE)
    db.session.commit()
    return jsonify(ok=True)
