from datetime import date, time

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clinic_backend.core import config
from clinic_backend.models.appointment import CANCELLED, Appointment

ACTIVE_SLOT_INDEX = 'uq_appointments_active_slot'
# SQLite names the columns, not the index, when a unique index rejects a row.
_SQLITE_SLOT_VIOLATION = 'UNIQUE constraint failed: appointments.doctor_id, appointments.date, appointments.time'


def has_conflict(
    db: Session,
    doctor_id: int,
    slot_date: date,
    slot_time: time,
    include_cancelled: bool | None = None,
    exclude_appointment_id: int | None = None,
) -> bool:
    """Whether the doctor already has an appointment at this exact slot.

    The patient is not part of the key: one doctor, one booking per slot.
    """
    if include_cancelled is None:
        include_cancelled = config.INCLUDE_CANCELLED_IN_CONFLICT_CHECK

    query = db.query(Appointment.id).filter(
        Appointment.doctor_id == doctor_id,
        Appointment.date == slot_date,
        Appointment.time == slot_time,
    )
    if not include_cancelled:
        query = query.filter(Appointment.status != CANCELLED)
    if exclude_appointment_id is not None:
        query = query.filter(Appointment.id != exclude_appointment_id)

    return query.first() is not None


def is_slot_conflict(exc: IntegrityError) -> bool:
    """Whether an IntegrityError came from the active-slot unique index."""
    diag = getattr(exc.orig, 'diag', None)
    constraint_name = getattr(diag, 'constraint_name', None)
    if constraint_name:
        return constraint_name == ACTIVE_SLOT_INDEX

    message = str(exc.orig)
    return ACTIVE_SLOT_INDEX in message or _SQLITE_SLOT_VIOLATION in message
