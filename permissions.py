# permissions.py
# -*- coding: utf-8 -*-
"""
Role hierarchy for the application.
- role_required(min_role): main route decorator (higher roles always pass).
- has_permission(role, required): pure hierarchy check, usable outside requests.
- can_* helpers: feature flags for the current user, reported by /accounts/me.

Roles (ordered):
- user         basic operations: view everything, manage employees,
               stock items and maintenance records, use the assistant
- admin        everything a user can + categories/thresholds, deletions,
               user management
- super_admin  everything; the only role allowed to grant super_admin
"""

from functools import wraps

from flask import abort
from flask_login import current_user, login_required

ROLE_LEVELS = {
    "user": 1,
    "admin": 2,
    "super_admin": 3,
}
ROLES = tuple(ROLE_LEVELS)


def role_level(role: str | None) -> int:
    """Level of a role; unknown or missing roles rank below ``user``."""
    return ROLE_LEVELS.get(role or "", 0)


def has_permission(role: str | None, required: str) -> bool:
    """True when ``role`` sits at or above ``required`` in the hierarchy."""
    return role_level(role) >= role_level(required) > 0


# ----------------------------- ROUTE DECORATOR ----------------------------- #
def role_required(min_role: str):
    """
    Restrict a view to ``min_role`` and above.
    Example:
        @bp.route("/categories", methods=["POST"])
        @role_required("admin")
        def create_category(): ...

    Rules:
    - unauthenticated -> 401 (via login_manager.unauthorized)
    - role below min_role -> 403
    """
    if min_role not in ROLE_LEVELS:
        raise ValueError(f"Unknown role: {min_role}")

    def decorator(view_func):
        @wraps(view_func)
        @login_required
        def wrapped(*args, **kwargs):
            if not has_permission(getattr(current_user, "role", None), min_role):
                abort(403, description="Insufficient permissions for this action.")
            return view_func(*args, **kwargs)

        return wrapped
    return decorator


# --------------------------- CURRENT-USER HELPERS --------------------------- #
def _is(required: str) -> bool:
    return bool(current_user.is_authenticated and has_permission(getattr(current_user, "role", None), required))


# ---- Stock ----
def can_category_manage(): return _is("admin")
def can_item_edit():       return _is("user")
def can_item_delete():     return _is("admin")

# ---- Employees ----
def can_employee_edit():   return _is("user")

# ---- Maintenance ----
def can_maintenance_edit():   return _is("user")
def can_maintenance_delete(): return _is("admin")

# ---- Accounts ----
def can_users_manage():    return _is("admin")
def can_grant_super_admin(): return _is("super_admin")


def permission_flags() -> dict:
    return {
        "category_manage": can_category_manage(),
        "item_edit": can_item_edit(),
        "item_delete": can_item_delete(),
        "employee_edit": can_employee_edit(),
        "maintenance_edit": can_maintenance_edit(),
        "maintenance_delete": can_maintenance_delete(),
        "users_manage": can_users_manage(),
        "grant_super_admin": can_grant_super_admin(),
    }
