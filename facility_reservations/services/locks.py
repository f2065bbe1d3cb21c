"""
Per-facility write locks.

Booking writes for one facility run one at a time inside this process so
the conflict check and the insert cannot interleave. Across processes the
same guarantee comes from the facility row lock (SELECT ... FOR UPDATE)
and the no_booking_overlap exclusion constraint on PostgreSQL.

Facilities share a fixed pool of locks, so the memory held here does not
depend on which facility ids clients send. Two facilities that map to the
same slot only serialize against each other.
"""

import threading
from contextlib import contextmanager
from typing import Iterator

LOCK_POOL_SIZE = 64

_facility_locks: tuple[threading.Lock, ...] = tuple(threading.Lock() for _ in range(LOCK_POOL_SIZE))


def lock_for(facility_id: int) -> threading.Lock:
    """The pooled lock guarding a facility's bookings."""
    return _facility_locks[facility_id % LOCK_POOL_SIZE]


@contextmanager
def facility_write_lock(facility_id: int) -> Iterator[None]:
    """Hold the booking write lock for a facility."""
    with lock_for(facility_id):
        yield
