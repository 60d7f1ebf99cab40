"""SQLAlchemy models and lifecycle for maintenance records."""

import logging
from datetime import date, datetime

from extensions import db
from notifications import NotificationError, send_maintenance_email
from utils import check_choice, clean_str, iso, parse_date, parse_int, parse_num

logger = logging.getLogger(__name__)

TEXT_FIELDS = ["equipment_name", "park_number", "serial_number", "description", "notes"]


class MaintenanceRecord(db.Model):
    """
    One maintenance intervention on a piece of equipment.

    Lifecycle: scheduled -> in_progress -> completed | cancelled.
    Transitions are direct field updates; nothing prevents leaving a
    terminal state again.
    """

    __tablename__ = "maintenance_records"

    TYPES = ["preventive", "corrective", "emergency"]
    STATUSES = ["scheduled", "in_progress", "completed", "cancelled"]
    OPEN_STATUSES = ["scheduled", "in_progress"]
    PRIORITIES = ["low", "medium", "high", "critical"]

    id = db.Column(db.Integer, primary_key=True)
    equipment_name = db.Column(db.String(200), nullable=False)
    park_number = db.Column(db.String(64))
    serial_number = db.Column(db.String(128))
    maintenance_type = db.Column(db.String(32), nullable=False, default="corrective")
    description = db.Column(db.Text, nullable=False)
    scheduled_date = db.Column(db.Date, nullable=False, default=date.today)
    completed_date = db.Column(db.Date)
    technician_id = db.Column(db.Integer, db.ForeignKey("employees.id", ondelete="SET NULL"))
    status = db.Column(db.String(32), nullable=False, default="scheduled")
    priority = db.Column(db.String(32), nullable=False, default="medium")
    previous_status = db.Column(db.String(32))
    cost = db.Column(db.Numeric(12, 2))
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    technician = db.relationship("Employee", foreign_keys=[technician_id])

    def set_status(self, status: str) -> None:
        check_choice(status, self.STATUSES, "status")
        if status != self.status:
            self.previous_status = self.status
            self.status = status
        if status == "completed" and self.completed_date is None:
            self.completed_date = date.today()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "equipment_name": self.equipment_name,
            "park_number": self.park_number,
            "serial_number": self.serial_number,
            "maintenance_type": self.maintenance_type,
            "description": self.description,
            "scheduled_date": iso(self.scheduled_date),
            "completed_date": iso(self.completed_date),
            "technician_id": self.technician_id,
            "technician_name": self.technician.full_name if self.technician else None,
            "status": self.status,
            "priority": self.priority,
            "previous_status": self.previous_status,
            "cost": float(self.cost) if self.cost is not None else None,
            "notes": self.notes,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<MaintenanceRecord {self.id} {self.equipment_name} [{self.status}]>"


# ---------- Domain operations ----------

def _apply_fields(record: MaintenanceRecord, data: dict) -> None:
    for field in TEXT_FIELDS:
        if field in data:
            setattr(record, field, clean_str(data.get(field)))
    if "maintenance_type" in data:
        record.maintenance_type = check_choice(data.get("maintenance_type"), MaintenanceRecord.TYPES,
                                               "maintenance_type")
    if "priority" in data:
        record.priority = check_choice(data.get("priority"), MaintenanceRecord.PRIORITIES, "priority")
    if "scheduled_date" in data:
        record.scheduled_date = parse_date(data.get("scheduled_date"), "scheduled_date") or date.today()
    if "completed_date" in data:
        record.completed_date = parse_date(data.get("completed_date"), "completed_date")
    if "technician_id" in data:
        record.technician_id = parse_int(data.get("technician_id"), "technician_id")
    if "cost" in data:
        record.cost = parse_num(data.get("cost"), "cost")

    if not record.equipment_name:
        raise ValueError("Equipment name is required.")
    if not record.description:
        raise ValueError("Description is required.")


def create_maintenance_record(data: dict) -> MaintenanceRecord:
    record = MaintenanceRecord(scheduled_date=date.today(), status="scheduled",
                               priority="medium", maintenance_type="corrective")
    _apply_fields(record, data)
    record.status = check_choice(data.get("status") or "scheduled", MaintenanceRecord.STATUSES, "status")
    db.session.add(record)
    return record


def update_maintenance_record(record: MaintenanceRecord, data: dict) -> MaintenanceRecord:
    _apply_fields(record, data)
    if data.get("status"):
        record.set_status(data["status"])
    return record


def notify_technician(record: MaintenanceRecord) -> bool:
    """
    Best-effort email to the assigned technician.
    Failures are logged and swallowed; nothing is retried.
    """
    technician = record.technician
    if technician is None or not technician.email:
        return False
    try:
        send_maintenance_email(
            technician_email=technician.email,
            technician_name=technician.full_name,
            equipment_name=record.equipment_name,
            park_number=record.park_number,
            serial_number=record.serial_number,
            description=record.description,
            priority=record.priority,
            scheduled_date=record.scheduled_date,
        )
    except NotificationError as exc:
        logger.error("Maintenance %s: notification to %s failed: %s", record.id, technician.email, exc)
        return False
    return True


def status_counts() -> dict:
    counts = dict.fromkeys(MaintenanceRecord.STATUSES, 0)
    rows = (db.session.query(MaintenanceRecord.status, db.func.count(MaintenanceRecord.id))
            .group_by(MaintenanceRecord.status).all())
    for status, count in rows:
        counts[status] = count
    return counts
