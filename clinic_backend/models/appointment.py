"""Appointment model definitions."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Index, Integer, String, Time, text
from clinic_backend.database import Base

PENDING = 'pending'
CONFIRMED = 'confirmed'
COMPLETED = 'completed'
CANCELLED = 'cancelled'

STATUSES = (PENDING, CONFIRMED, COMPLETED, CANCELLED)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Appointment(Base):
    """A patient's booked hour with a doctor.

    ``date`` and ``time`` are clinic-local wall-clock values; ``start_time`` and
    ``end_time`` are the derived instants stored as naive UTC.
    """
    __tablename__ = "appointments"
    __table_args__ = (
        Index(
            'uq_appointments_active_slot',
            'doctor_id',
            'date',
            'time',
            unique=True,
            sqlite_where=text("status <> 'cancelled'"),
            postgresql_where=text("status <> 'cancelled'"),
        ),
        Index('idx_appointments_user_date', 'user_id', 'date'),
        Index('idx_appointments_status_end', 'status', 'end_time'),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    doctor_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    date = Column(Date, nullable=False)
    time = Column(Time, nullable=False)
    start_time = Column(DateTime)
    end_time = Column(DateTime)
    status = Column(String, nullable=False, default=PENDING)
    chat_enabled = Column(Boolean, default=True)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)
