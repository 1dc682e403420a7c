from datetime import date, datetime, time, timedelta, timezone

import pytest

from clinic_backend.core.errors import InvalidTimeFormat
from clinic_backend.scheduling.time_window import (
    CLINIC_TZ,
    compute_window,
    parse_slot,
    resolve_now,
    to_clinic_time,
    to_storage,
)


def test_compute_window_start_reads_back_as_clinic_local_time() -> None:
    window = compute_window('2024-05-01', '14:00')

    local_start = window.start.astimezone(CLINIC_TZ)
    local_end = window.end.astimezone(CLINIC_TZ)
    assert (local_start.date(), local_start.time()) == (date(2024, 5, 1), time(14, 0))
    assert (local_end.date(), local_end.time()) == (date(2024, 5, 1), time(15, 0))
    assert window.end - window.start == timedelta(hours=1)


def test_compute_window_applies_fixed_clinic_offset() -> None:
    window = compute_window('2024-06-10', '09:00')

    assert window.start.astimezone(timezone.utc) == datetime(2024, 6, 10, 3, 30, tzinfo=timezone.utc)
    assert window.end.astimezone(timezone.utc) == datetime(2024, 6, 10, 4, 30, tzinfo=timezone.utc)


def test_compute_window_crosses_midnight() -> None:
    window = compute_window(date(2024, 12, 31), time(23, 30))

    assert to_clinic_time(window.end) == datetime(2025, 1, 1, 0, 30, tzinfo=CLINIC_TZ)


def test_compute_window_accepts_parsed_values() -> None:
    assert compute_window(date(2024, 5, 1), time(14, 0)) == compute_window('2024-05-01', '14:00')


@pytest.mark.parametrize(
    ('slot_date', 'slot_time'),
    [
        ('2024-02-30', '10:00'),
        ('01/05/2024', '10:00'),
        ('2024-05-01', '25:00'),
        ('2024-05-01', '10am'),
        ('2024-05-01', '10:00:00'),
        ('', '10:00'),
    ],
)
def test_compute_window_rejects_malformed_input(slot_date: str, slot_time: str) -> None:
    with pytest.raises(InvalidTimeFormat):
        compute_window(slot_date, slot_time)


def test_parse_slot_drops_seconds_from_time_values() -> None:
    assert parse_slot(date(2024, 5, 1), time(9, 15, 42)) == (date(2024, 5, 1), time(9, 15))


def test_to_storage_is_naive_utc() -> None:
    window = compute_window('2024-05-01', '14:00')

    assert to_storage(window.start) == datetime(2024, 5, 1, 8, 30)
    assert to_clinic_time(to_storage(window.start)) == window.start


def test_resolve_now_reads_naive_values_as_clinic_time() -> None:
    assert resolve_now(datetime(2024, 5, 1, 14, 0)) == datetime(2024, 5, 1, 14, 0, tzinfo=CLINIC_TZ)
    assert resolve_now(datetime(2024, 5, 1, 8, 30, tzinfo=timezone.utc)) == datetime(2024, 5, 1, 14, 0, tzinfo=CLINIC_TZ)
    assert resolve_now().tzinfo is not None
