from __future__ import annotations

import logging

from hostel.core.celery_utils import safe_celery_delay
from hostel.core.config import settings
from hostel.models import Booking
from hostel.schemas import BookingRead

logger = logging.getLogger(__name__)


def _payload(booking: Booking) -> dict:
    return BookingRead.model_validate(booking).model_dump(mode="json")


def notify_booking_confirmed(booking: Booking, email: str | None) -> None:
    """Queue the confirmation email for a new booking."""
    if not settings.NOTIFICATIONS_ENABLED:
        return
    from hostel.tasks.notifications import send_booking_confirmation_task

    safe_celery_delay(send_booking_confirmation_task, email, _payload(booking))


def notify_booking_cancelled(booking: Booking, email: str | None) -> None:
    """Queue the cancellation email for a cancelled booking."""
    if not settings.NOTIFICATIONS_ENABLED:
        return
    from hostel.tasks.notifications import send_booking_cancellation_task

    safe_celery_delay(send_booking_cancellation_task, email, _payload(booking))
