"""Transactional email through the Resend HTTP API."""

import logging
from datetime import date

import requests
from flask import current_app, render_template

logger = logging.getLogger(__name__)

PRIORITY_BADGES = {
    "critical": ("#b91c1c", "CRITICAL"),
    "high": ("#ef4444", "HIGH"),
    "medium": ("#f59e0b", "MEDIUM"),
    "low": ("#10b981", "LOW"),
}


class NotificationError(Exception):
    """Email could not be handed over to the provider."""


def send_email(to: list[str], subject: str, html: str) -> dict:
    """POST one email to Resend and return the provider response."""
    cfg = current_app.config
    if not cfg.get("MAIL_ENABLED"):
        raise NotificationError("Email sending is disabled (MAIL_ENABLED).")
    api_key = cfg.get("RESEND_API_KEY")
    if not api_key:
        raise NotificationError("RESEND_API_KEY is not configured.")

    try:
        response = requests.post(
            cfg["RESEND_API_URL"],
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            json={"from": cfg["MAIL_FROM"], "to": to, "subject": subject, "html": html},
            timeout=cfg["HTTP_TIMEOUT"],
        )
        response.raise_for_status()
    except requests.exceptions.HTTPError as e:
        logger.error(f"Resend rejected email to {to}: {response.status_code} {response.text}")
        raise NotificationError(f"Email provider error: {response.status_code}") from e
    except requests.exceptions.RequestException as e:
        logger.error(f"Email request to {to} failed: {str(e)}")
        raise NotificationError(str(e)) from e

    data = response.json() if response.content else {}
    logger.info(f"Email sent to {to} (id={data.get('id')})")
    return data


def render_maintenance_email(*, technician_name: str | None, equipment_name: str, park_number: str | None,
                             serial_number: str | None, description: str, priority: str,
                             scheduled_date: date | str | None) -> str:
    color, label = PRIORITY_BADGES.get(priority, PRIORITY_BADGES["low"])
    if isinstance(scheduled_date, str):
        scheduled_date = date.fromisoformat(scheduled_date[:10])
    return render_template(
        "emails/maintenance_assigned.html",
        technician_name=technician_name or "",
        equipment_name=equipment_name,
        park_number=park_number,
        serial_number=serial_number,
        description=description,
        priority_color=color,
        priority_label=label,
        scheduled_date=scheduled_date.strftime("%d/%m/%Y") if scheduled_date else None,
    )


def send_maintenance_email(*, technician_email: str, technician_name: str | None, equipment_name: str,
                           park_number: str | None, serial_number: str | None, description: str,
                           priority: str, scheduled_date: date | str | None) -> dict:
    """Tell a technician that a maintenance job was assigned to them."""
    html = render_maintenance_email(
        technician_name=technician_name,
        equipment_name=equipment_name,
        park_number=park_number,
        serial_number=serial_number,
        description=description,
        priority=priority,
        scheduled_date=scheduled_date,
    )
    return send_email([technician_email], f"New maintenance assigned - {equipment_name}", html)
