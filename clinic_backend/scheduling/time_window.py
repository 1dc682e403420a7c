"""Clinic time handling.

Appointments are booked in clinic wall-clock time. The clinic runs on a fixed
UTC+05:30 offset with no daylight saving, so converting a local date and time
to an absolute instant is a constant shift.

Every scheduling function that takes a `now` argument resolves it with
`resolve_now`: None means the current time, a naive value is clinic wall-clock
time and an aware value is converted. Naive values read back from the
database are UTC and go through `to_clinic_time` instead.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone

from clinic_backend.core.errors import InvalidTimeFormat

CLINIC_UTC_OFFSET = timedelta(hours=5, minutes=30)
CLINIC_TZ = timezone(CLINIC_UTC_OFFSET, 'IST')
SESSION_LENGTH = timedelta(hours=1)

DATE_FORMAT = '%Y-%m-%d'
TIME_FORMAT = '%H:%M'


@dataclass(frozen=True)
class TimeWindow:
    start: datetime
    end: datetime


def parse_date(value: date | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).date()
    except (AttributeError, ValueError) as exc:
        raise InvalidTimeFormat(f'Invalid date {value!r}; expected YYYY-MM-DD.') from exc


def parse_time(value: time | str) -> time:
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0, tzinfo=None)
    try:
        return datetime.strptime(value.strip(), TIME_FORMAT).time()
    except (AttributeError, ValueError) as exc:
        raise InvalidTimeFormat(f'Invalid time {value!r}; expected HH:MM.') from exc


def parse_slot(slot_date: date | str, slot_time: time | str) -> tuple[date, time]:
    return parse_date(slot_date), parse_time(slot_time)


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def format_time(value: time) -> str:
    return value.strftime(TIME_FORMAT)


def compute_window(slot_date: date | str, slot_time: time | str) -> TimeWindow:
    """Return the absolute start and end of the session booked at a clinic-local slot."""
    local_date, local_time = parse_slot(slot_date, slot_time)
    start = datetime.combine(local_date, local_time, tzinfo=CLINIC_TZ)
    return TimeWindow(start=start, end=start + SESSION_LENGTH)


def to_clinic_time(value: datetime) -> datetime:
    """Express an instant in clinic time. Naive values are read as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(CLINIC_TZ)


def to_storage(value: datetime) -> datetime:
    """Naive UTC, the form the database columns hold."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def clinic_now() -> datetime:
    return datetime.now(CLINIC_TZ)


def resolve_now(now: datetime | None = None) -> datetime:
    """The caller's notion of "now" as an aware clinic-time datetime."""
    if now is None:
        return clinic_now()
    if now.tzinfo is None:
        return now.replace(tzinfo=CLINIC_TZ)
    return now.astimezone(CLINIC_TZ)
