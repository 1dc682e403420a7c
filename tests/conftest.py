import os

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from clinic_backend.database import Base  # noqa: E402
from clinic_backend.models.appointment import Appointment  # noqa: E402
from clinic_backend.models.user import User  # noqa: E402


@pytest.fixture
def appointment_db():
    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine, tables=[User.__table__, Appointment.__table__])

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine, tables=[Appointment.__table__, User.__table__])


@pytest.fixture
def people(appointment_db):
    patient = User(first_name='Asha', last_name='Rao', email='asha@example.com', role='patient')
    other_patient = User(first_name='Vikram', last_name='Das', email='vikram@example.com', role='patient')
    doctor = User(
        first_name='Meera',
        last_name='Iyer',
        email='meera@clinic.example.com',
        role='doctor',
        specialization='Cardiology',
    )
    other_doctor = User(
        first_name='Karan',
        last_name='Shah',
        email='karan@clinic.example.com',
        role='doctor',
        specialization='Dermatology',
    )
    admin = User(first_name='Front', last_name='Desk', email='desk@clinic.example.com', role='admin')
    appointment_db.add_all([patient, other_patient, doctor, other_doctor, admin])
    appointment_db.commit()

    return {
        'patient': patient,
        'other_patient': other_patient,
        'doctor': doctor,
        'other_doctor': other_doctor,
        'admin': admin,
    }
