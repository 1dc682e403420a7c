"""Errors raised by the scheduling core.

Every error carries the HTTP status it maps to and a client-safe message; the
app turns them into ``{"success": false, "message": ...}`` responses.
"""

from fastapi import status


class AppointmentError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UserNotFound(AppointmentError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = 'User not found.'):
        super().__init__(message)


class DoctorNotFound(AppointmentError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = 'Doctor not found.'):
        super().__init__(message)


class AppointmentNotFound(AppointmentError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = 'Appointment not found.'):
        super().__init__(message)


class SlotAlreadyBooked(AppointmentError):
    def __init__(self, slot_date: str, slot_time: str):
        super().__init__(f'Appointment already booked for {slot_date} and {slot_time}')
        self.slot_date = slot_date
        self.slot_time = slot_time


class InvalidTimeFormat(AppointmentError):
    def __init__(self, message: str = 'Date must be YYYY-MM-DD and time must be HH:MM.'):
        super().__init__(message)


class InvalidTransition(AppointmentError):
    def __init__(self, current: str, target: str):
        super().__init__(f'Cannot change appointment status from {current} to {target}.')
        self.current = current
        self.target = target


class TransitionNotAllowed(AppointmentError):
    status_code = status.HTTP_403_FORBIDDEN


class PersistenceFailure(AppointmentError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = 'Server error. Please try again later.'):
        super().__init__(message)
