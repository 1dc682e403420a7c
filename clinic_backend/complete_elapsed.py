"""Complete confirmed appointments whose hour has passed.

Usage:
    python -m clinic_backend.complete_elapsed
"""
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from clinic_backend.core import config
from clinic_backend.core.errors import PersistenceFailure
from clinic_backend.database import SessionLocal, ensure_appointment_schema
from clinic_backend.scheduling.lifecycle import complete_elapsed_appointments


def main() -> None:
    logging.basicConfig(level=config.LOG_LEVEL)
    try:
        ensure_appointment_schema()
    except SQLAlchemyError as exc:
        print(f"Database unavailable: {exc}", file=sys.stderr)
        sys.exit(1)

    db = SessionLocal()
    try:
        completed = complete_elapsed_appointments(db)
    except PersistenceFailure:
        sys.exit(1)
    finally:
        db.close()

    print(f"Completed {completed} appointment(s).")


if __name__ == "__main__":
    main()
