"""Decides when an appointment's live-session features (chat) are open.

The window is the clock hour of the appointment's start on its date, in clinic
time: a 10:00 appointment is live from 10:00 through 10:59. The frontend applies
the same hour rule, so keep the two in step.
"""

from datetime import datetime

from clinic_backend.models.appointment import CONFIRMED, Appointment
from clinic_backend.scheduling.time_window import resolve_now


def is_live(appointment: Appointment, now: datetime | None = None) -> bool:
    """True while ``now`` is in the same clinic-local date and hour as the appointment start."""
    if appointment.date is None or appointment.time is None:
        return False

    local_now = resolve_now(now)
    return local_now.date() == appointment.date and local_now.hour == appointment.time.hour


def can_chat(appointment: Appointment, now: datetime | None = None) -> bool:
    return (
        appointment.status == CONFIRMED
        and bool(appointment.chat_enabled)
        and is_live(appointment, now)
    )
