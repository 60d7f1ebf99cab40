# ui_routes.py: dashboard with the headline figures of every module
from flask import Blueprint, jsonify
from flask_login import login_required

from extensions import db
from modules.activity.models import recent_activity
from modules.employees.models import Employee
from modules.maintenance.models import MaintenanceRecord, status_counts
from modules.stock.models import StockItem, category_summaries

ui = Blueprint("ui", __name__)

RECENT_ACTIVITY = 5


@ui.route("/")
@login_required
def home():
    active_employees = Employee.query.filter_by(status="active").count()
    departments = (db.session.query(db.func.count(db.distinct(Employee.department)))
                   .filter(Employee.department.isnot(None))
                   .scalar()) or 0

    categories = category_summaries()
    items_per_category = (db.session.query(StockItem.category, db.func.count(StockItem.id))
                          .group_by(StockItem.category)
                          .all())

    active_maintenance = (MaintenanceRecord.query
                          .filter(MaintenanceRecord.status.in_(MaintenanceRecord.OPEN_STATUSES))
                          .count())

    return jsonify(
        ok=True,
        kpis={
            "active_employees": active_employees,
            "departments": departments,
            "total_items": StockItem.query.count(),
            "critical_categories": sum(1 for c in categories if c["is_critical"]),
            "active_maintenance": active_maintenance,
        },
        items_per_category={(name or "Uncategorised"): count for name, count in items_per_category},
        maintenance_per_status=status_counts(),
        recent_activity=[a.to_dict() for a in recent_activity(RECENT_ACTIVITY)],
    )
