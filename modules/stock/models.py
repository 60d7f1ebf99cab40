# -*- coding: utf-8 -*-
"""
STOCK MODELS: categories with a critical threshold, and individual items.

Item status is a plain field driven by users:
- active        available in stock
- inactive      allocated to an employee (assigned_to is set)
- discontinued  in maintenance

The critical-stock signal is derived at read time, never stored:
available = number of ``active`` items in the category;
critical when available <= critical_threshold,
warning while available stays within 1.5x the threshold.
"""
import math
import time
from datetime import date, datetime

from extensions import db
from modules.maintenance.models import MaintenanceRecord
from utils import check_choice, clean_str, iso, parse_int

ITEM_STATUSES = ["active", "inactive", "discontinued"]
STATUS_LABELS = {"active": "available", "inactive": "allocated", "discontinued": "maintenance"}

THRESHOLD_NORMAL = "normal"
THRESHOLD_WARNING = "warning"
THRESHOLD_CRITICAL = "critical"
WARNING_RATIO = 1.5

ITEM_FIELDS = ["name", "description", "sku", "category", "park_number", "serial_number", "location"]


class StockCategory(db.Model):
    __tablename__ = "stock_categories"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), unique=True, nullable=False)
    critical_threshold = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def items_query(self):
        return StockItem.query.filter_by(category=self.name)

    def available_count(self) -> int:
        return self.items_query().filter_by(status="active").count()

    def summary(self) -> dict:
        """Category row with its derived availability figures."""
        available = self.available_count()
        return {
            "id": self.id,
            "name": self.name,
            "critical_threshold": self.critical_threshold,
            "total_count": self.items_query().count(),
            "available_count": available,
            "is_critical": is_critical(available, self.critical_threshold),
            "threshold_status": threshold_status(available, self.critical_threshold),
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }


class StockItem(db.Model):
    __tablename__ = "stock_items"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    sku = db.Column(db.String(64), unique=True, nullable=False)
    category = db.Column(db.String(120), index=True)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    park_number = db.Column(db.String(64), index=True)
    serial_number = db.Column(db.String(128), index=True)
    location = db.Column(db.String(120))
    status = db.Column(db.String(32), nullable=False, default="active")
    previous_status = db.Column(db.String(32))
    assigned_to = db.Column(db.Integer, db.ForeignKey("employees.id", ondelete="SET NULL"))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    assignee = db.relationship("Employee", foreign_keys=[assigned_to])

    def set_status(self, status: str) -> None:
        check_choice(status, ITEM_STATUSES, "status")
        if status != self.status:
            self.previous_status = self.status
            self.status = status

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "sku": self.sku,
            "category": self.category,
            "quantity": self.quantity,
            "park_number": self.park_number,
            "serial_number": self.serial_number,
            "location": self.location,
            "status": self.status,
            "status_label": STATUS_LABELS.get(self.status, self.status),
            "previous_status": self.previous_status,
            "assigned_to": self.assigned_to,
            "assignee_name": self.assignee.full_name if self.assignee else None,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<StockItem {self.sku}: {self.name}>"


# ---------- Critical-stock signal ----------

def is_critical(available: int, threshold: int) -> bool:
    return available <= threshold


def threshold_status(available: int, threshold: int) -> str:
    if is_critical(available, threshold):
        return THRESHOLD_CRITICAL
    if threshold > 0 and available <= math.ceil(threshold * WARNING_RATIO):
        return THRESHOLD_WARNING
    return THRESHOLD_NORMAL


def category_summaries() -> list[dict]:
    return [c.summary() for c in StockCategory.query.order_by(StockCategory.name.asc()).all()]


# ---------- Domain operations ----------

def generate_sku() -> str:
    base = f"SKU-{int(time.time() * 1000)}"
    sku, n = base, 1
    while StockItem.query.filter_by(sku=sku).first():
        sku = f"{base}-{n}"
        n += 1
    return sku


def create_category(name: str | None, critical_threshold=None) -> StockCategory:
    name = clean_str(name)
    if not name:
        raise ValueError("Category name is required.")
    if StockCategory.query.filter_by(name=name).first():
        raise ValueError(f"Category {name!r} already exists.")
    category = StockCategory(
        name=name,
        critical_threshold=parse_int(critical_threshold, "critical_threshold", minimum=0) or 0,
    )
    db.session.add(category)
    return category


def update_category(category: StockCategory, data: dict) -> StockCategory:
    """Rename and/or change the threshold; items follow a rename."""
    if "name" in data:
        new_name = clean_str(data.get("name"))
        if not new_name:
            raise ValueError("Category name is required.")
        if new_name != category.name:
            if StockCategory.query.filter_by(name=new_name).first():
                raise ValueError(f"Category {new_name!r} already exists.")
            StockItem.query.filter_by(category=category.name).update({"category": new_name})
            category.name = new_name
    if "critical_threshold" in data:
        threshold = parse_int(data.get("critical_threshold"), "critical_threshold", minimum=0)
        if threshold is None:
            raise ValueError("critical_threshold is required.")
        category.critical_threshold = threshold
    return category


def _apply_item_fields(item: StockItem, data: dict) -> None:
    for field in ITEM_FIELDS:
        if field in data:
            setattr(item, field, clean_str(data.get(field)))
    if "quantity" in data:
        item.quantity = parse_int(data.get("quantity"), "quantity", minimum=0) or 0


def create_stock_item(data: dict) -> tuple[StockItem, MaintenanceRecord | None]:
    """
    Create an item. An item created directly in maintenance
    (``discontinued``) with a problem description also opens a
    maintenance record for it.
    """
    item = StockItem(status="active", quantity=1)
    _apply_item_fields(item, data)
    if not item.name:
        raise ValueError("Item name is required.")
    if item.sku and StockItem.query.filter_by(sku=item.sku).first():
        raise ValueError(f"SKU {item.sku!r} already exists.")
    item.sku = item.sku or generate_sku()
    item.status = check_choice(data.get("status") or "active", ITEM_STATUSES, "status")

    db.session.add(item)

    record = None
    problem = clean_str(data.get("problem_description"))
    if item.status == "discontinued" and problem:
        record = MaintenanceRecord(
            equipment_name=item.name,
            park_number=item.park_number,
            serial_number=item.serial_number,
            maintenance_type="corrective",
            description=problem,
            scheduled_date=date.today(),
            status="scheduled",
            priority=check_choice(data.get("priority") or "medium",
                                  MaintenanceRecord.PRIORITIES, "priority"),
        )
        db.session.add(record)
    return item, record


def update_stock_item(item: StockItem, data: dict) -> StockItem:
    _apply_item_fields(item, data)
    if not item.name:
        raise ValueError("Item name is required.")
    if not item.sku:
        raise ValueError("SKU cannot be empty.")
    clash = StockItem.query.filter(StockItem.sku == item.sku, StockItem.id != item.id).first()
    if clash:
        raise ValueError(f"SKU {item.sku!r} already exists.")
    if data.get("status"):
        item.set_status(data["status"])
    if "assigned_to" in data:
        item.assigned_to = parse_int(data.get("assigned_to"), "assigned_to")
    return item


def search_items(q: str | None = None, category: str | None = None) -> list[StockItem]:
    query = StockItem.query
    if category:
        query = query.filter(StockItem.category == category)
    q = (q or "").strip()
    if q:
        like = f"%{q}%"
        query = query.filter(
            StockItem.name.ilike(like) |
            StockItem.park_number.ilike(like) |
            StockItem.serial_number.ilike(like) |
            StockItem.status.ilike(like)
        )
    return query.order_by(StockItem.created_at.desc(), StockItem.id.desc()).all()
