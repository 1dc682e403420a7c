"""Appointment status lifecycle.

    pending -> confirmed -> completed
    pending | confirmed -> cancelled

completed and cancelled are terminal, and nothing moves back to pending.
"""

import logging
from datetime import date, datetime, time, timedelta

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_backend.core import config
from clinic_backend.core.errors import (
    AppointmentError,
    InvalidTransition,
    PersistenceFailure,
    SlotAlreadyBooked,
    TransitionNotAllowed,
)
from clinic_backend.models.appointment import CANCELLED, COMPLETED, CONFIRMED, PENDING, Appointment
from clinic_backend.models.user import User
from clinic_backend.scheduling.conflicts import has_conflict, is_slot_conflict
from clinic_backend.scheduling.slot_locks import slot_lock
from clinic_backend.scheduling.time_window import (
    compute_window,
    format_date,
    format_time,
    parse_slot,
    resolve_now,
    to_storage,
)

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    PENDING: {CONFIRMED, CANCELLED},
    CONFIRMED: {COMPLETED, CANCELLED},
    COMPLETED: set(),
    CANCELLED: set(),
}
TERMINAL_STATUSES = {COMPLETED, CANCELLED}


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, set())


def _is_staff(appointment: Appointment, actor: User) -> bool:
    return actor.is_admin or (actor.is_doctor and actor.id == appointment.doctor_id)


def _is_participant(appointment: Appointment, actor: User) -> bool:
    return _is_staff(appointment, actor) or actor.id == appointment.user_id


def _utc(now: datetime | None) -> datetime:
    return to_storage(resolve_now(now))


def _commit(db: Session, appointment: Appointment, action: str) -> Appointment:
    try:
        db.commit()
        db.refresh(appointment)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to %s appointment %s', action, appointment.id)
        raise PersistenceFailure() from exc
    return appointment


def transition(db: Session, appointment: Appointment, target: str) -> Appointment:
    """Move ``appointment`` to ``target`` if the lifecycle graph allows it."""
    current = appointment.status or PENDING
    if not can_transition(current, target):
        raise InvalidTransition(current, target)

    appointment.status = target
    _commit(db, appointment, f'mark {target}')
    logger.info('Appointment %s moved from %s to %s', appointment.id, current, target)
    return appointment


def confirm(db: Session, appointment: Appointment, actor: User) -> Appointment:
    if not _is_staff(appointment, actor):
        raise TransitionNotAllowed('Only the appointment doctor or an admin can confirm it.')
    return transition(db, appointment, CONFIRMED)


def complete(db: Session, appointment: Appointment, actor: User | None = None, now: datetime | None = None) -> Appointment:
    """Mark a confirmed appointment completed once its hour is over.

    ``actor`` is None when the system completes it.
    """
    if actor is not None and not _is_staff(appointment, actor):
        raise TransitionNotAllowed('Only the appointment doctor or an admin can complete it.')
    if appointment.status == COMPLETED:
        return appointment
    if appointment.end_time and _utc(now) < appointment.end_time:
        raise AppointmentError('Appointments can only be completed after they end.')
    return transition(db, appointment, COMPLETED)


def cancel(db: Session, appointment: Appointment, actor: User) -> Appointment:
    if not _is_participant(appointment, actor):
        raise TransitionNotAllowed('Only the patient, the doctor or an admin can cancel this appointment.')
    if appointment.status == CANCELLED:
        return appointment
    return transition(db, appointment, CANCELLED)


def has_elapsed(appointment: Appointment, now: datetime | None = None) -> bool:
    """Whether the appointment ended more than the completion grace period ago."""
    if appointment.end_time is None:
        return False
    grace = timedelta(minutes=config.COMPLETION_GRACE_MINUTES)
    return _utc(now) > appointment.end_time + grace


def complete_if_elapsed(db: Session, appointment: Appointment, now: datetime | None = None) -> Appointment:
    """Complete a confirmed appointment whose end has passed by more than the grace period."""
    if appointment.status != CONFIRMED or not has_elapsed(appointment, now):
        return appointment

    return transition(db, appointment, COMPLETED)


def complete_elapsed_appointments(db: Session, now: datetime | None = None) -> int:
    cutoff = _utc(now) - timedelta(minutes=config.COMPLETION_GRACE_MINUTES)

    try:
        elapsed = db.query(Appointment).filter(
            Appointment.status == CONFIRMED,
            Appointment.end_time.is_not(None),
            Appointment.end_time < cutoff,
        ).all()
        for appointment in elapsed:
            appointment.status = COMPLETED
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to complete elapsed appointments')
        raise PersistenceFailure() from exc

    if elapsed:
        logger.info('Completed %d elapsed appointments', len(elapsed))
    return len(elapsed)


def reschedule(
    db: Session,
    appointment: Appointment,
    slot_date: date | str,
    slot_time: time | str,
    actor: User,
    now: datetime | None = None,
) -> Appointment:
    """Move an open appointment to another slot with the same doctor.

    The new slot is validated and the window recomputed before anything
    changes; on any failure the appointment keeps its old slot.
    """
    if not _is_participant(appointment, actor):
        raise TransitionNotAllowed('Only the patient, the doctor or an admin can reschedule this appointment.')
    if appointment.status in TERMINAL_STATUSES:
        raise AppointmentError(f'A {appointment.status} appointment cannot be rescheduled.')
    if appointment.status == CONFIRMED and has_elapsed(appointment, now):
        raise AppointmentError('This appointment has already ended and cannot be rescheduled.')

    local_date, local_time = parse_slot(slot_date, slot_time)
    display_date, display_time = format_date(local_date), format_time(local_time)

    with slot_lock(appointment.doctor_id, local_date, local_time):
        try:
            if has_conflict(db, appointment.doctor_id, local_date, local_time, exclude_appointment_id=appointment.id):
                raise SlotAlreadyBooked(display_date, display_time)

            window = compute_window(local_date, local_time)
            appointment.date = local_date
            appointment.time = local_time
            appointment.start_time = to_storage(window.start)
            appointment.end_time = to_storage(window.end)
            db.commit()
            db.refresh(appointment)
        except IntegrityError as exc:
            db.rollback()
            if not is_slot_conflict(exc):
                logger.exception('Integrity error rescheduling appointment %s', appointment.id)
                raise PersistenceFailure() from exc
            raise SlotAlreadyBooked(display_date, display_time) from exc
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception('Failed to reschedule appointment %s', appointment.id)
            raise PersistenceFailure() from exc

    logger.info('Appointment %s rescheduled to %s %s', appointment.id, display_date, display_time)
    return appointment
