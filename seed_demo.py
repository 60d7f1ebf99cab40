# -*- coding: utf-8 -*-
"""
seed_demo.py: initialise the database and load a small demo data set.

Modes:
- python seed_demo.py --create    create MISSING tables, then seed an empty database
- python seed_demo.py --reset     drop every table and start from scratch (ALL data is lost)

Seeding only happens when there are no stock categories yet.
"""

import argparse
from datetime import date, timedelta

from app import create_app
from extensions import db
from modules.employees.models import save_employee
from modules.maintenance.models import create_maintenance_record
from modules.stock.models import StockCategory, create_category, create_stock_item

CATEGORIES = [
    ("Laptops", 2),
    ("Phones", 3),
    ("Power tools", 1),
]

ITEMS = [
    {"name": "ThinkPad T14", "category": "Laptops", "park_number": "PC-001", "serial_number": "LT14-0001"},
    {"name": "ThinkPad T14", "category": "Laptops", "park_number": "PC-002", "serial_number": "LT14-0002"},
    {"name": "ThinkPad T14", "category": "Laptops", "park_number": "PC-003", "serial_number": "LT14-0003"},
    {"name": "Pixel 8", "category": "Phones", "park_number": "TEL-001", "serial_number": "PX8-0001"},
    {"name": "Pixel 8", "category": "Phones", "park_number": "TEL-002", "serial_number": "PX8-0002"},
    {"name": "Hammer drill", "category": "Power tools", "park_number": "OUT-001", "location": "Workshop",
     "status": "discontinued", "problem_description": "Chuck does not lock anymore"},
]

EMPLOYEES = [
    {
        "employee_number": "EMP-001", "first_name": "Alex", "last_name": "Martin",
        "email": "alex.martin@example.com", "position": "Technician", "department": "Maintenance",
        "equipment": [{"equipment_name": "Pixel 8", "park_number": "TEL-001"}],
    },
    {
        "employee_number": "EMP-002", "first_name": "Sam", "last_name": "Durand",
        "position": "Accountant", "department": "Finance",
        "equipment": [{"equipment_name": "ThinkPad T14", "serial_number": "LT14-0001"}],
    },
]


def seed():
    for name, threshold in CATEGORIES:
        create_category(name, threshold)
    for data in ITEMS:
        create_stock_item(data)
    db.session.flush()

    technician = None
    for data in EMPLOYEES:
        employee, _ = save_employee(data)
        technician = technician or employee

    db.session.flush()
    create_maintenance_record({
        "equipment_name": "ThinkPad T14",
        "park_number": "PC-002",
        "maintenance_type": "preventive",
        "description": "Yearly cleaning and battery check",
        "scheduled_date": (date.today() + timedelta(days=7)).isoformat(),
        "priority": "low",
        "technician_id": technician.id,
    })
    db.session.commit()


def main():
    parser = argparse.ArgumentParser(description="Init Secure Stock DB with demo data")
    grp = parser.add_mutually_exclusive_group(required=True)
    grp.add_argument("--create", action="store_true", help="create missing tables (nothing is dropped)")
    grp.add_argument("--reset", action="store_true", help="drop all tables and recreate them (data is lost)")

    args = parser.parse_args()

    app = create_app()
    with app.app_context():
        if args.reset:
            print("-> Dropping tables ...")
            db.drop_all()
        print("-> Creating missing tables ...")
        db.create_all()

        if StockCategory.query.count():
            print("Database already holds data, demo set not loaded.")
            return
        seed()
        print("Done: demo data loaded.")


if __name__ == "__main__":
    main()
