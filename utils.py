from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from flask import request


def get_payload() -> dict:
    """Request body as a dict: JSON when sent, form fields otherwise."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def clean_str(value) -> str | None:
    """Strip strings; blank becomes None."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def parse_date(value, field: str = "date") -> date | None:
    """ISO date (``YYYY-MM-DD``, a datetime prefix is accepted) or None."""
    if value in (None, ""):
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValueError(f"Invalid {field}: {value!r}") from None


def parse_int(value, field: str, minimum: int | None = None) -> int | None:
    if value in (None, ""):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{field} must be an integer") from None
    if minimum is not None and number < minimum:
        raise ValueError(f"{field} must be >= {minimum}")
    return number


def parse_num(value, field: str) -> Decimal | None:
    """Decimal from user input; a comma is accepted as decimal separator."""
    if value in (None, ""):
        return None
    try:
        return Decimal(str(value).replace(",", "."))
    except InvalidOperation:
        raise ValueError(f"{field} must be a number") from None


def iso(value) -> str | None:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def check_choice(value: str, choices, field: str) -> str:
    if value not in choices:
        raise ValueError(f"{field} must be one of: {', '.join(choices)}")
    return value
