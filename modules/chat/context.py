"""Snapshot of current data, given to the assistant as prompt context."""

from extensions import db
from modules.employees.models import Employee
from modules.maintenance.models import MaintenanceRecord
from modules.stock.models import ITEM_STATUSES, STATUS_LABELS, StockItem, category_summaries

MAX_OPEN_RECORDS = 20


def inventory_snapshot() -> dict:
    status_counts = dict.fromkeys(ITEM_STATUSES, 0)
    for status, count in (db.session.query(StockItem.status, db.func.count(StockItem.id))
                          .group_by(StockItem.status).all()):
        status_counts[status] = count

    open_records = (MaintenanceRecord.query
                    .filter(MaintenanceRecord.status.in_(MaintenanceRecord.OPEN_STATUSES))
                    .order_by(MaintenanceRecord.scheduled_date.asc())
                    .limit(MAX_OPEN_RECORDS)
                    .all())

    return {
        "categories": category_summaries(),
        "items_by_status": status_counts,
        "active_employees": Employee.query.filter_by(status="active").count(),
        "open_maintenance": [
            {
                "equipment": r.equipment_name,
                "status": r.status,
                "priority": r.priority,
                "scheduled_date": r.scheduled_date.isoformat() if r.scheduled_date else None,
            }
            for r in open_records
        ],
    }


def format_snapshot(snapshot: dict) -> str:
    lines = ["Stock categories:"]
    for c in snapshot["categories"]:
        lines.append(
            f"- {c['name']}: {c['available_count']} available of {c['total_count']}, "
            f"critical threshold {c['critical_threshold']} ({c['threshold_status']})"
        )
    if not snapshot["categories"]:
        lines.append("- none")

    lines.append("Items by status:")
    for status, count in snapshot["items_by_status"].items():
        lines.append(f"- {STATUS_LABELS.get(status, status)}: {count}")

    lines.append(f"Active employees: {snapshot['active_employees']}")

    lines.append("Open maintenance:")
    for r in snapshot["open_maintenance"]:
        lines.append(f"- {r['equipment']} [{r['status']}, priority {r['priority']}] scheduled {r['scheduled_date']}")
    if not snapshot["open_maintenance"]:
        lines.append("- none")
    return "\n".join(lines)
