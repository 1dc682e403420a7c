"""Per-slot mutual exclusion for check-then-write sequences.

A booking checks for a conflicting appointment and then inserts; holding the
slot's lock across both steps keeps two requests in this process from booking
the same doctor, date and time. The partial unique index on ``appointments``
covers writers in other processes.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, time
from threading import Lock

SlotKey = tuple[int, date, time]

_registry_lock = Lock()
_slot_locks: dict[SlotKey, Lock] = {}
_slot_waiters: dict[SlotKey, int] = {}


@contextmanager
def slot_lock(doctor_id: int, slot_date: date, slot_time: time) -> Iterator[None]:
    key = (doctor_id, slot_date, slot_time)

    with _registry_lock:
        lock = _slot_locks.setdefault(key, Lock())
        _slot_waiters[key] = _slot_waiters.get(key, 0) + 1

    lock.acquire()
    try:
        yield
    finally:
        lock.release()
        with _registry_lock:
            _slot_waiters[key] -= 1
            if _slot_waiters[key] == 0:
                del _slot_waiters[key]
                del _slot_locks[key]


def active_slot_count() -> int:
    with _registry_lock:
        return len(_slot_locks)
