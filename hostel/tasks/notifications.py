"""Celery tasks for booking emails."""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage

from hostel.celery_app import celery_app
from hostel.core.config import settings

logger = logging.getLogger(__name__)

CONFIRMATION_SUBJECT = "Booking Confirmed - Your Hostel Room is Reserved!"
CANCELLATION_SUBJECT = "Booking Cancelled - Your Reservation has been Cancelled"


def smtp_configured() -> bool:
    return bool(settings.SMTP_USER and settings.SMTP_PASSWORD)


def render_booking_email(kind: str, booking: dict) -> tuple[str, str]:
    """Return (subject, plain-text body) for a booking email."""
    if kind == "confirmation":
        subject = CONFIRMATION_SUBJECT
        intro = "your bed has been reserved."
        date_line = f"Booking date: {booking['booking_date']}"
    elif kind == "cancellation":
        subject = CANCELLATION_SUBJECT
        intro = "your booking has been cancelled and the bed released."
        date_line = f"Cancelled at: {booking['updated_at']}"
    else:
        raise ValueError(f"Unknown booking email kind: {kind}")

    body = "\n".join(
        [
            f"Hi {booking['user_name']}, {intro}",
            "",
            f"Building: {booking['building_name']}",
            f"Room: {booking['room_number']}",
            f"Bed: {booking['bed_number']}",
            date_line,
            f"Booking ID: {booking['id']}",
            "",
            settings.FROM_NAME,
        ]
    )
    return subject, body


def _send_email(to_email: str, subject: str, body: str) -> None:
    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = f"{settings.FROM_NAME} <{settings.FROM_EMAIL}>"
    message["To"] = to_email
    message.set_content(body)

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10) as server:
        server.starttls()
        server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
        server.send_message(message)


def _deliver(task, kind: str, to_email: str | None, booking: dict) -> dict:
    if not to_email:
        logger.info(f"No email address for booking {booking['id']}; skipping {kind} email")
        return {"success": False, "skipped": "no_recipient"}
    if not smtp_configured():
        logger.info("Email notifications disabled: SMTP credentials not configured")
        return {"success": False, "skipped": "smtp_not_configured"}

    subject, body = render_booking_email(kind, booking)
    try:
        _send_email(to_email, subject, body)
    except (smtplib.SMTPException, OSError) as exc:
        logger.error(f"Error sending {kind} email for booking {booking['id']}: {exc}", exc_info=True)
        raise task.retry(exc=exc)

    logger.info(f"Sent {kind} email for booking {booking['id']} to {to_email}")
    return {"success": True, "booking_id": booking["id"]}


@celery_app.task(bind=True, max_retries=3, default_retry_delay=60)
def send_booking_confirmation_task(self, to_email: str | None, booking: dict) -> dict:
    """Email the student that their bed is reserved."""
    return _deliver(self, "confirmation", to_email, booking)


@celery_app.task(bind=True, max_retries=3, default_retry_delay=60)
def send_booking_cancellation_task(self, to_email: str | None, booking: dict) -> dict:
    """Email the student that their booking was cancelled."""
    return _deliver(self, "cancellation", to_email, booking)
