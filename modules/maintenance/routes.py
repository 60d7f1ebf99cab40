"""HTTP routes for maintenance records."""

import logging

from flask import jsonify, request
from flask_login import login_required

from extensions import db
from modules.activity.models import log_activity
from modules.maintenance.models import (
    MaintenanceRecord,
    create_maintenance_record,
    notify_technician,
    update_maintenance_record,
)
from notifications import NotificationError, send_maintenance_email
from permissions import role_required
from utils import clean_str, get_payload

from . import bp

logger = logging.getLogger(__name__)

PAGE = "Maintenance"


def _bad_request(exc: ValueError):
    db.session.rollback()
    logger.info("Maintenance request rejected: %s", exc)
    return jsonify(ok=False, error=str(exc)), 400


def _check_technician(record: MaintenanceRecord) -> None:
    from modules.employees.models import Employee

    with db.session.no_autoflush:
        missing = record.technician_id is not None and db.session.get(Employee, record.technician_id) is None
    if missing:
        raise ValueError(f"Technician {record.technician_id} does not exist.")


@bp.route("/")
@login_required
def list_records():
    query = MaintenanceRecord.query
    status = request.args.get("status")
    if status:
        query = query.filter_by(status=status)
    priority = request.args.get("priority")
    if priority:
        query = query.filter_by(priority=priority)
    rows = query.order_by(MaintenanceRecord.scheduled_date.desc(), MaintenanceRecord.id.desc()).all()
    return jsonify(ok=True, count=len(rows), items=[r.to_dict() for r in rows])


@bp.route("/<int:record_id>")
@login_required
def view_record(record_id: int):
    record = MaintenanceRecord.query.get_or_404(record_id)
    return jsonify(ok=True, item=record.to_dict())


@bp.route("/", methods=["POST"])
@role_required("user")
def add_record():
    try:
        record = create_maintenance_record(get_payload())
        _check_technician(record)
        log_activity("create", f"Maintenance scheduled for {record.equipment_name}", PAGE)
        db.session.commit()
    except ValueError as e:
        return _bad_request(e)

    # best effort, after the record is safely stored
    sent = notify_technician(record)
    return jsonify(ok=True, item=record.to_dict(), notification_sent=sent), 201


@bp.route("/<int:record_id>", methods=["PUT", "PATCH"])
@role_required("user")
def edit_record(record_id: int):
    record = MaintenanceRecord.query.get_or_404(record_id)
    try:
        update_maintenance_record(record, get_payload())
        _check_technician(record)
        log_activity("update", f"Maintenance {record.equipment_name} is now {record.status}", PAGE)
        db.session.commit()
    except ValueError as e:
        return _bad_request(e)
    return jsonify(ok=True, item=record.to_dict())


@bp.route("/<int:record_id>", methods=["DELETE"])
@role_required("admin")
def delete_record(record_id: int):
    record = MaintenanceRecord.query.get_or_404(record_id)
    db.session.delete(record)
    log_activity("delete", f"Maintenance {record.equipment_name} deleted", PAGE)
    db.session.commit()
    return jsonify(ok=True)


@bp.route("/notify", methods=["POST"])
@role_required("user")
def notify():
    """Send the assignment email for explicit technician and job details."""
    data = get_payload()
    email = clean_str(data.get("technician_email"))
    equipment = clean_str(data.get("equipment_name"))
    if not email or not equipment:
        return jsonify(ok=False, error="technician_email and equipment_name are required."), 400
    try:
        send_maintenance_email(
            technician_email=email,
            technician_name=clean_str(data.get("technician_name")),
            equipment_name=equipment,
            park_number=clean_str(data.get("park_number")),
            serial_number=clean_str(data.get("serial_number")),
            description=clean_str(data.get("description")) or "",
            priority=data.get("priority") or "medium",
            scheduled_date=clean_str(data.get("scheduled_date")),
        )
    except ValueError as e:
        return jsonify(ok=False, error=str(e)), 400
    except NotificationError as e:
        logger.error(f"Maintenance notification to {email} failed: {str(e)}")
        return jsonify(ok=False, error=str(e)), 502
    return jsonify(ok=True)
