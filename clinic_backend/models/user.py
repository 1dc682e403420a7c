"""User model definitions."""

from sqlalchemy import Column, Integer, String
from clinic_backend.database import Base

PATIENT_ROLE = 'patient'
DOCTOR_ROLE = 'doctor'
ADMIN_ROLE = 'admin'


class User(Base):
    """Represents a patient, doctor or clinic admin."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String)
    last_name = Column(String)
    email = Column(String, unique=True, index=True)
    role = Column(String, default=PATIENT_ROLE)  # patient/doctor/admin
    specialization = Column(String, nullable=True)

    @property
    def is_doctor(self) -> bool:
        return self.role == DOCTOR_ROLE

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE
