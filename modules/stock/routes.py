"""HTTP routes for stock categories and items."""

import logging

from flask import abort, jsonify, request
from flask_login import login_required

from extensions import db
from modules.activity.models import log_activity
from modules.stock.models import (
    THRESHOLD_NORMAL,
    StockCategory,
    StockItem,
    category_summaries,
    create_category,
    create_stock_item,
    search_items,
    update_category,
    update_stock_item,
)
from permissions import role_required
from utils import get_payload

from . import bp

logger = logging.getLogger(__name__)

PAGE = "Stock"


def _bad_request(exc: ValueError):
    db.session.rollback()
    logger.info("Stock request rejected: %s", exc)
    return jsonify(ok=False, error=str(exc)), 400


# ---------- Categories ----------
@bp.route("/categories")
@login_required
def list_categories():
    return jsonify(ok=True, items=category_summaries())


@bp.route("/categories", methods=["POST"])
@role_required("admin")
def add_category():
    data = get_payload()
    try:
        category = create_category(data.get("name"), data.get("critical_threshold"))
        log_activity("create", f"Category {category.name} created", PAGE)
        db.session.commit()
    except ValueError as e:
        return _bad_request(e)
    return jsonify(ok=True, item=category.summary()), 201


@bp.route("/categories/<int:category_id>", methods=["PUT", "PATCH"])
@role_required("admin")
def edit_category(category_id: int):
    category = StockCategory.query.get_or_404(category_id)
    try:
        update_category(category, get_payload())
        log_activity("update", f"Category {category.name} updated "
                               f"(threshold {category.critical_threshold})", PAGE)
        db.session.commit()
    except ValueError as e:
        return _bad_request(e)
    return jsonify(ok=True, item=category.summary())


@bp.route("/categories/<int:category_id>", methods=["DELETE"])
@role_required("admin")
def delete_category(category_id: int):
    category = StockCategory.query.get_or_404(category_id)
    in_use = category.items_query().count()
    if in_use:
        abort(409, description=f"Category {category.name} still holds {in_use} item(s).")
    db.session.delete(category)
    log_activity("delete", f"Category {category.name} deleted", PAGE)
    db.session.commit()
    return jsonify(ok=True)


@bp.route("/alerts")
@login_required
def stock_alerts():
    rows = [c for c in category_summaries() if c["threshold_status"] != THRESHOLD_NORMAL]
    return jsonify(ok=True, items=rows)


# ---------- Items ----------
@bp.route("/items")
@login_required
def list_items():
    items = search_items(request.args.get("q"), request.args.get("category"))
    return jsonify(ok=True, count=len(items), items=[i.to_dict() for i in items])


@bp.route("/items/<int:item_id>")
@login_required
def view_item(item_id: int):
    item = StockItem.query.get_or_404(item_id)
    return jsonify(ok=True, item=item.to_dict())


@bp.route("/items", methods=["POST"])
@role_required("user")
def add_item():
    try:
        item, record = create_stock_item(get_payload())
        log_activity("create", f"Item {item.name} added to stock", PAGE)
        if record is not None:
            log_activity("create", f"Maintenance opened for {item.name}", "Maintenance")
        db.session.commit()
    except ValueError as e:
        return _bad_request(e)
    return jsonify(
        ok=True,
        item=item.to_dict(),
        maintenance_record=record.to_dict() if record is not None else None,
    ), 201


@bp.route("/items/<int:item_id>", methods=["PUT", "PATCH"])
@role_required("user")
def edit_item(item_id: int):
    item = StockItem.query.get_or_404(item_id)
    try:
        update_stock_item(item, get_payload())
        log_activity("update", f"Item {item.name} updated", PAGE)
        db.session.commit()
    except ValueError as e:
        return _bad_request(e)
    return jsonify(ok=True, item=item.to_dict())


@bp.route("/items/<int:item_id>", methods=["DELETE"])
@role_required("admin")
def delete_item(item_id: int):
    from modules.employees.models import EquipmentAssignment

    item = StockItem.query.get_or_404(item_id)
    EquipmentAssignment.query.filter_by(stock_item_id=item.id).update({"stock_item_id": None})
    db.session.delete(item)
    log_activity("delete", f"Item {item.name} removed from stock", PAGE)
    db.session.commit()
    return jsonify(ok=True)
