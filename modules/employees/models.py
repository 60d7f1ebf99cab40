# -*- coding: utf-8 -*-
"""
EMPLOYEE MODELS: employees and the equipment assigned to them.

An assignment row keeps the equipment identity as text (name, park and
serial numbers) and, when a stock item matches, a link to it:
- assign -> the item becomes ``inactive`` (allocated) with assigned_to set
- return -> the item goes back to ``active`` and assigned_to is cleared
Deleting an employee returns all of their equipment first.
"""
from datetime import date, datetime

from sqlalchemy import or_

from extensions import db
from modules.maintenance.models import MaintenanceRecord
from modules.stock.models import StockItem
from utils import check_choice, clean_str, iso, parse_date, parse_num

EMPLOYEE_STATUSES = ["active", "inactive", "terminated"]
ASSIGNMENT_STATUSES = ["assigned", "returned"]

EMPLOYEE_FIELDS = ["employee_number", "first_name", "last_name", "email", "phone", "position", "department"]


class Employee(db.Model):
    __tablename__ = "employees"

    id = db.Column(db.Integer, primary_key=True)
    employee_number = db.Column(db.String(64), unique=True)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255))
    phone = db.Column(db.String(64))
    position = db.Column(db.String(120))
    department = db.Column(db.String(120))
    hire_date = db.Column(db.Date)
    salary = db.Column(db.Numeric(12, 2))
    status = db.Column(db.String(32), nullable=False, default="active")
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    assignments = db.relationship("EquipmentAssignment", back_populates="employee",
                                  cascade="all, delete-orphan",
                                  order_by="EquipmentAssignment.assigned_date.desc()")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def current_assignments(self) -> list["EquipmentAssignment"]:
        return [a for a in self.assignments if a.status == "assigned"]

    def to_dict(self, with_assignments: bool = False) -> dict:
        data = {
            "id": self.id,
            "employee_number": self.employee_number,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "full_name": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "position": self.position,
            "department": self.department,
            "hire_date": iso(self.hire_date),
            "salary": float(self.salary) if self.salary is not None else None,
            "status": self.status,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }
        if with_assignments:
            data["assignments"] = [a.to_dict() for a in self.current_assignments()]
        return data

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Employee {self.employee_number}: {self.full_name}>"


class EquipmentAssignment(db.Model):
    __tablename__ = "equipment_assignments"

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False)
    stock_item_id = db.Column(db.Integer, db.ForeignKey("stock_items.id", ondelete="SET NULL"))
    equipment_name = db.Column(db.String(200), nullable=False)
    park_number = db.Column(db.String(64))
    serial_number = db.Column(db.String(128))
    assigned_date = db.Column(db.Date, nullable=False, default=date.today)
    returned_date = db.Column(db.Date)
    status = db.Column(db.String(32), nullable=False, default="assigned")
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    employee = db.relationship("Employee", back_populates="assignments")
    stock_item = db.relationship("StockItem")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "employee_id": self.employee_id,
            "stock_item_id": self.stock_item_id,
            "equipment_name": self.equipment_name,
            "park_number": self.park_number,
            "serial_number": self.serial_number,
            "assigned_date": iso(self.assigned_date),
            "returned_date": iso(self.returned_date),
            "status": self.status,
            "notes": self.notes,
        }


# ---------- Domain operations ----------

def find_stock_item(equipment_name: str, park_number: str | None, serial_number: str | None) -> StockItem | None:
    """
    Stock item for an assignment: same name and the same park number or
    serial number. Without either identifier there is no match.
    """
    idents = []
    if park_number:
        idents.append(StockItem.park_number == park_number)
    if serial_number:
        idents.append(StockItem.serial_number == serial_number)
    if not idents:
        return None
    return (StockItem.query
            .filter(StockItem.name == equipment_name, or_(*idents))
            .order_by(StockItem.id.asc())
            .first())


def assign_equipment(employee: Employee, entry: dict) -> EquipmentAssignment | None:
    """Create an ``assigned`` row and allocate the matching stock item, if any."""
    name = clean_str(entry.get("equipment_name"))
    if not name:
        return None
    park = clean_str(entry.get("park_number"))
    serial = clean_str(entry.get("serial_number"))

    assignment = EquipmentAssignment(
        employee=employee,
        equipment_name=name,
        park_number=park,
        serial_number=serial,
        assigned_date=parse_date(entry.get("assigned_date"), "assigned_date") or date.today(),
        status="assigned",
        notes=clean_str(entry.get("notes")),
    )

    db.session.add(assignment)

    # an item allocated to someone else stays with them
    item = find_stock_item(name, park, serial)
    if item is not None and (item.status == "active" or item.assigned_to == employee.id):
        item.set_status("inactive")
        item.assignee = employee
        assignment.stock_item = item
    return assignment


def _release_item(assignment: EquipmentAssignment) -> None:
    item = assignment.stock_item
    if item is None:
        item = find_stock_item(assignment.equipment_name, assignment.park_number, assignment.serial_number)
    if item is not None and item.status == "inactive" and item.assigned_to == assignment.employee_id:
        item.set_status("active")
        item.assigned_to = None


def return_assignment(assignment: EquipmentAssignment, returned_date: date | None = None) -> EquipmentAssignment:
    if assignment.status == "returned":
        raise ValueError("Equipment has already been returned.")
    _release_item(assignment)
    assignment.status = "returned"
    assignment.returned_date = returned_date or date.today()
    return assignment


def _apply_fields(employee: Employee, data: dict) -> None:
    for field in EMPLOYEE_FIELDS:
        if field in data:
            setattr(employee, field, clean_str(data.get(field)))
    if "hire_date" in data:
        employee.hire_date = parse_date(data.get("hire_date"), "hire_date")
    if "salary" in data:
        employee.salary = parse_num(data.get("salary"), "salary")
    if data.get("status"):
        employee.status = check_choice(data["status"], EMPLOYEE_STATUSES, "status")

    if not employee.first_name or not employee.last_name:
        raise ValueError("First and last name are required.")
    if employee.employee_number:
        clash = Employee.query.filter(Employee.employee_number == employee.employee_number,
                                      Employee.id != employee.id).first()
        if clash:
            raise ValueError(f"Employee number {employee.employee_number!r} already exists.")


def save_employee(data: dict, employee: Employee | None = None) -> tuple[Employee, list[EquipmentAssignment]]:
    """Create (or update) an employee and assign the listed equipment."""
    if employee is None:
        employee = Employee(status="active")
        db.session.add(employee)
    with db.session.no_autoflush:
        _apply_fields(employee, data)
    db.session.flush()

    assignments = []
    for entry in data.get("equipment") or []:
        if isinstance(entry, dict):
            assignment = assign_equipment(employee, entry)
            if assignment is not None:
                assignments.append(assignment)
    return employee, assignments


def delete_employee(employee: Employee) -> int:
    """Return the employee's equipment to stock, then delete them. Returns items returned."""
    returned = 0
    for assignment in employee.current_assignments():
        return_assignment(assignment)
        returned += 1
    StockItem.query.filter_by(assigned_to=employee.id).update({"assigned_to": None})
    MaintenanceRecord.query.filter_by(technician_id=employee.id).update({"technician_id": None})
    db.session.delete(employee)
    return returned


def search_employees(q: str | None = None) -> list[Employee]:
    query = Employee.query
    q = (q or "").strip()
    if q:
        like = f"%{q}%"
        query = query.filter(
            Employee.first_name.ilike(like) |
            Employee.last_name.ilike(like) |
            (Employee.first_name + " " + Employee.last_name).ilike(like)
        )
    return query.order_by(Employee.created_at.desc(), Employee.id.desc()).all()
