"""HTTP routes for employees and their equipment."""

import logging

from flask import jsonify, request
from flask_login import login_required

from extensions import db
from modules.activity.models import log_activity
from modules.employees.models import (
    ASSIGNMENT_STATUSES,
    Employee,
    EquipmentAssignment,
    delete_employee,
    return_assignment,
    save_employee,
    search_employees,
)
from permissions import role_required
from utils import get_payload, parse_date

from . import bp

logger = logging.getLogger(__name__)

PAGE = "Employees"


def _bad_request(exc: ValueError):
    db.session.rollback()
    logger.info("Employee request rejected: %s", exc)
    return jsonify(ok=False, error=str(exc)), 400


@bp.route("/")
@login_required
def list_employees():
    employees = search_employees(request.args.get("q"))
    return jsonify(ok=True, count=len(employees),
                   items=[e.to_dict(with_assignments=True) for e in employees])


@bp.route("/<int:employee_id>")
@login_required
def view_employee(employee_id: int):
    employee = Employee.query.get_or_404(employee_id)
    return jsonify(ok=True, item=employee.to_dict(with_assignments=True))


@bp.route("/", methods=["POST"])
@role_required("user")
def add_employee():
    try:
        employee, assignments = save_employee(get_payload())
        log_activity("create", f"Employee {employee.full_name} added"
                               f" with {len(assignments)} equipment item(s)", PAGE)
        db.session.commit()
    except ValueError as e:
        return _bad_request(e)
    return jsonify(ok=True, item=employee.to_dict(with_assignments=True)), 201


@bp.route("/<int:employee_id>", methods=["PUT", "PATCH"])
@role_required("user")
def edit_employee(employee_id: int):
    employee = Employee.query.get_or_404(employee_id)
    try:
        employee, assignments = save_employee(get_payload(), employee)
        log_activity("update", f"Employee {employee.full_name} updated", PAGE)
        db.session.commit()
    except ValueError as e:
        return _bad_request(e)
    return jsonify(ok=True, item=employee.to_dict(with_assignments=True))


@bp.route("/<int:employee_id>", methods=["DELETE"])
@role_required("user")
def remove_employee(employee_id: int):
    employee = Employee.query.get_or_404(employee_id)
    name = employee.full_name
    returned = delete_employee(employee)
    log_activity("delete", f"Employee {name} deleted, {returned} equipment item(s) returned to stock", PAGE)
    db.session.commit()
    return jsonify(ok=True, returned=returned)


# ---------- Assignments ----------
@bp.route("/assignments")
@login_required
def list_assignments():
    query = EquipmentAssignment.query
    status = request.args.get("status")
    if status in ASSIGNMENT_STATUSES:
        query = query.filter_by(status=status)
    rows = query.order_by(EquipmentAssignment.created_at.desc(), EquipmentAssignment.id.desc()).all()
    return jsonify(ok=True, items=[a.to_dict() for a in rows])


@bp.route("/assignments/<int:assignment_id>/return", methods=["POST"])
@role_required("user")
def return_equipment(assignment_id: int):
    assignment = EquipmentAssignment.query.get_or_404(assignment_id)
    data = get_payload()
    try:
        return_assignment(assignment, parse_date(data.get("returned_date"), "returned_date"))
        log_activity("update", f"{assignment.equipment_name} returned to stock", PAGE)
        db.session.commit()
    except ValueError as e:
        return _bad_request(e)
    return jsonify(ok=True, item=assignment.to_dict())
