from datetime import date, datetime, time, timezone

import pytest

from clinic_backend.models.appointment import Appointment
from clinic_backend.scheduling.session_gate import can_chat, is_live


def _appointment(status: str = 'confirmed') -> Appointment:
    return Appointment(date=date(2024, 6, 10), time=time(10, 0), status=status, chat_enabled=True)


@pytest.mark.parametrize('minute', [0, 30, 59])
def test_is_live_through_the_start_hour(minute: int) -> None:
    assert is_live(_appointment(), datetime(2024, 6, 10, 10, minute))


@pytest.mark.parametrize(
    'now',
    [
        datetime(2024, 6, 10, 9, 59),
        datetime(2024, 6, 10, 11, 0),
        datetime(2024, 6, 11, 10, 15),
        datetime(2024, 6, 9, 10, 15),
    ],
)
def test_is_not_live_outside_the_start_hour(now: datetime) -> None:
    assert not is_live(_appointment(), now)


def test_is_live_uses_hour_bucket_for_off_hour_starts() -> None:
    appointment = Appointment(date=date(2024, 6, 10), time=time(10, 45), status='confirmed', chat_enabled=True)

    assert is_live(appointment, datetime(2024, 6, 10, 10, 5))
    assert not is_live(appointment, datetime(2024, 6, 10, 11, 15))


def test_is_live_converts_aware_now_to_clinic_time() -> None:
    assert is_live(_appointment(), datetime(2024, 6, 10, 4, 45, tzinfo=timezone.utc))
    assert not is_live(_appointment(), datetime(2024, 6, 10, 10, 15, tzinfo=timezone.utc))


@pytest.mark.parametrize('status', ['pending', 'completed', 'cancelled'])
def test_can_chat_requires_confirmed_status(status: str) -> None:
    assert not can_chat(_appointment(status), datetime(2024, 6, 10, 10, 30))


def test_can_chat_while_live_and_confirmed() -> None:
    assert can_chat(_appointment(), datetime(2024, 6, 10, 10, 30))
    assert not can_chat(_appointment(), datetime(2024, 6, 10, 11, 0))


def test_can_chat_respects_disabled_flag() -> None:
    appointment = _appointment()
    appointment.chat_enabled = False

    assert not can_chat(appointment, datetime(2024, 6, 10, 10, 30))
