from datetime import date, datetime

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_backend.core.errors import AppointmentNotFound, PersistenceFailure, UserNotFound
from clinic_backend.database import ensure_appointment_schema, get_db
from clinic_backend.models.appointment import Appointment
from clinic_backend.models.user import User
from clinic_backend.scheduling import booking, lifecycle
from clinic_backend.scheduling.session_gate import can_chat, is_live
from clinic_backend.scheduling.time_window import clinic_now, format_time, to_clinic_time

router = APIRouter(tags=['appointments'])


class BookAppointmentRequest(BaseModel):
    user_id: int = Field(alias='userId')
    doctor_id: int = Field(alias='doctorId')
    date: str
    time: str

    class Config:
        populate_by_name = True

    @field_validator('date', 'time')
    @classmethod
    def strip_value(cls, value: str) -> str:
        return value.strip()


class ActorRequest(BaseModel):
    actor_id: int = Field(alias='actorId')

    class Config:
        populate_by_name = True


class RescheduleRequest(ActorRequest):
    date: str
    time: str

    @field_validator('date', 'time')
    @classmethod
    def strip_value(cls, value: str) -> str:
        return value.strip()


class AppointmentResponse(BaseModel):
    id: int
    user_id: int = Field(alias='userId')
    doctor_id: int = Field(alias='doctorId')
    date: date
    time: str
    start_time: datetime | None = Field(default=None, alias='startTime')
    end_time: datetime | None = Field(default=None, alias='endTime')
    status: str
    chat_enabled: bool = Field(alias='chatEnabled')
    is_live: bool = Field(alias='isLive')
    can_chat: bool = Field(alias='canChat')

    class Config:
        populate_by_name = True


class AppointmentEnvelope(BaseModel):
    success: bool = True
    message: str
    appointment: AppointmentResponse


class AppointmentListResponse(BaseModel):
    success: bool = True
    appointments: list[AppointmentResponse]


def ensure_database_ready() -> None:
    try:
        ensure_appointment_schema()
    except SQLAlchemyError as exc:
        raise PersistenceFailure() from exc


def to_response(appointment: Appointment, now: datetime | None = None) -> AppointmentResponse:
    now = now or clinic_now()
    return AppointmentResponse(
        id=appointment.id,
        user_id=appointment.user_id,
        doctor_id=appointment.doctor_id,
        date=appointment.date,
        time=format_time(appointment.time),
        start_time=to_clinic_time(appointment.start_time) if appointment.start_time else None,
        end_time=to_clinic_time(appointment.end_time) if appointment.end_time else None,
        status=appointment.status,
        chat_enabled=bool(appointment.chat_enabled),
        is_live=is_live(appointment, now),
        can_chat=can_chat(appointment, now),
    )


def get_appointment(db: Session, appointment_id: int) -> Appointment:
    try:
        appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
    except SQLAlchemyError as exc:
        raise PersistenceFailure() from exc

    if appointment is None:
        raise AppointmentNotFound()
    return appointment


def get_actor(db: Session, actor_id: int) -> User:
    try:
        actor = db.query(User).filter(User.id == actor_id).first()
    except SQLAlchemyError as exc:
        raise PersistenceFailure() from exc

    if actor is None:
        raise UserNotFound()
    return actor


def load_current_appointment(db: Session, appointment_id: int, now: datetime) -> Appointment:
    return lifecycle.complete_if_elapsed(db, get_appointment(db, appointment_id), now)


def list_with_lazy_completion(db: Session, query) -> list[AppointmentResponse]:
    now = clinic_now()
    try:
        appointments = query.order_by(Appointment.date.asc(), Appointment.time.asc()).all()
    except SQLAlchemyError as exc:
        raise PersistenceFailure() from exc

    return [to_response(lifecycle.complete_if_elapsed(db, appointment, now), now) for appointment in appointments]


@router.post('', response_model=AppointmentEnvelope, status_code=status.HTTP_201_CREATED)
def book_appointment(data: BookAppointmentRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    appointment = booking.book(db, data.user_id, data.doctor_id, data.date, data.time)

    return AppointmentEnvelope(
        message='Appointment booked successfully.',
        appointment=to_response(appointment),
    )


@router.get('/user/{user_id}', response_model=AppointmentListResponse)
def list_user_appointments(user_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()
    get_actor(db, user_id)

    appointments = list_with_lazy_completion(db, db.query(Appointment).filter(Appointment.user_id == user_id))
    return AppointmentListResponse(appointments=appointments)


@router.get('/doctor/{doctor_id}', response_model=AppointmentListResponse)
def list_doctor_appointments(doctor_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()
    booking.get_doctor(db, doctor_id)

    appointments = list_with_lazy_completion(db, db.query(Appointment).filter(Appointment.doctor_id == doctor_id))
    return AppointmentListResponse(appointments=appointments)


@router.get('/{appointment_id}', response_model=AppointmentEnvelope)
def read_appointment(appointment_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    now = clinic_now()
    appointment = load_current_appointment(db, appointment_id, now)
    return AppointmentEnvelope(message='Appointment found.', appointment=to_response(appointment, now))


@router.post('/{appointment_id}/confirm', response_model=AppointmentEnvelope)
def confirm_appointment(appointment_id: int, data: ActorRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    now = clinic_now()
    appointment = lifecycle.confirm(db, load_current_appointment(db, appointment_id, now), get_actor(db, data.actor_id))
    appointment = lifecycle.complete_if_elapsed(db, appointment, now)
    return AppointmentEnvelope(message='Appointment confirmed.', appointment=to_response(appointment, now))


@router.post('/{appointment_id}/complete', response_model=AppointmentEnvelope)
def complete_appointment(appointment_id: int, data: ActorRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    now = clinic_now()
    appointment = lifecycle.complete(
        db,
        load_current_appointment(db, appointment_id, now),
        get_actor(db, data.actor_id),
        now=now,
    )
    return AppointmentEnvelope(message='Appointment completed.', appointment=to_response(appointment, now))


@router.post('/{appointment_id}/cancel', response_model=AppointmentEnvelope)
def cancel_appointment(appointment_id: int, data: ActorRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    now = clinic_now()
    appointment = lifecycle.cancel(db, load_current_appointment(db, appointment_id, now), get_actor(db, data.actor_id))
    return AppointmentEnvelope(message='Appointment cancelled.', appointment=to_response(appointment, now))


@router.put('/{appointment_id}/reschedule', response_model=AppointmentEnvelope)
def reschedule_appointment(appointment_id: int, data: RescheduleRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    now = clinic_now()
    appointment = lifecycle.reschedule(
        db,
        load_current_appointment(db, appointment_id, now),
        data.date,
        data.time,
        get_actor(db, data.actor_id),
        now=now,
    )
    return AppointmentEnvelope(message='Appointment rescheduled.', appointment=to_response(appointment, now))
