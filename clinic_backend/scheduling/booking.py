"""Booking engine: the only place new appointments are created."""

import logging
from datetime import date, time

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_backend.core.errors import DoctorNotFound, PersistenceFailure, SlotAlreadyBooked, UserNotFound
from clinic_backend.models.appointment import Appointment
from clinic_backend.models.user import DOCTOR_ROLE, User
from clinic_backend.scheduling.conflicts import has_conflict, is_slot_conflict
from clinic_backend.scheduling.slot_locks import slot_lock
from clinic_backend.scheduling.time_window import compute_window, format_date, format_time, parse_slot, to_storage

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise UserNotFound()
    return user


def get_doctor(db: Session, doctor_id: int) -> User:
    doctor = db.query(User).filter(User.id == doctor_id, User.role == DOCTOR_ROLE).first()
    if doctor is None:
        raise DoctorNotFound()
    return doctor


def book(db: Session, user_id: int, doctor_id: int, slot_date: date | str, slot_time: time | str) -> Appointment:
    """Create a pending appointment for ``user_id`` with ``doctor_id`` at a clinic-local slot.

    Raises UserNotFound, DoctorNotFound, InvalidTimeFormat or SlotAlreadyBooked
    before touching the database, and PersistenceFailure if the write fails.
    Nothing is written unless the whole booking succeeds.
    """
    try:
        get_user(db, user_id)
        get_doctor(db, doctor_id)
    except SQLAlchemyError as exc:
        logger.exception('Failed to resolve user %s or doctor %s', user_id, doctor_id)
        raise PersistenceFailure() from exc

    local_date, local_time = parse_slot(slot_date, slot_time)
    display_date, display_time = format_date(local_date), format_time(local_time)

    with slot_lock(doctor_id, local_date, local_time):
        try:
            if has_conflict(db, doctor_id, local_date, local_time):
                logger.warning('Slot %s %s for doctor %s is already booked', display_date, display_time, doctor_id)
                raise SlotAlreadyBooked(display_date, display_time)

            window = compute_window(local_date, local_time)
            appointment = Appointment(
                user_id=user_id,
                doctor_id=doctor_id,
                date=local_date,
                time=local_time,
                start_time=to_storage(window.start),
                end_time=to_storage(window.end),
                chat_enabled=True,
            )
            db.add(appointment)
            db.commit()
            db.refresh(appointment)
        except IntegrityError as exc:
            db.rollback()
            if not is_slot_conflict(exc):
                logger.exception('Integrity error booking user %s with doctor %s', user_id, doctor_id)
                raise PersistenceFailure() from exc
            logger.warning('Unique slot index rejected booking for doctor %s at %s %s', doctor_id, display_date, display_time)
            raise SlotAlreadyBooked(display_date, display_time) from exc
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception('Failed to persist appointment for user %s with doctor %s', user_id, doctor_id)
            raise PersistenceFailure() from exc

    logger.info('Booked appointment %s for user %s with doctor %s at %s %s',
                appointment.id, user_id, doctor_id, display_date, display_time)
    return appointment
