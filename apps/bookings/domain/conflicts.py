"""
Conflict Detector

Decides whether a candidate reservation fits among the active bookings of
a resource on a day. The functions here never read storage: callers pass
the active bookings in, in a stable (creation) order so the reported
conflict is deterministic.
"""

from dataclasses import dataclass
from typing import Callable, Iterable, Optional
from uuid import UUID

from apps.bookings.domain.entities import ACTIVE_STATUSES
from shared.domain.exceptions import SlotUnavailable
from shared.domain.value_objects import TimeInterval


@dataclass(frozen=True)
class ReservationCandidate:
    owner_id: str
    resource_id: str
    interval: TimeInterval


@dataclass(frozen=True)
class Conflict:
    with_booking_id: UUID
    interval: TimeInterval


def find_conflict(
    candidate: ReservationCandidate,
    active_bookings: Iterable,
    exclude_booking_id: Optional[UUID] = None,
) -> Optional[Conflict]:
    """Return the first overlapping active booking, in the order supplied"""
    for booking in active_bookings:
        if booking.status not in ACTIVE_STATUSES:
            continue
        if booking.resource_id != candidate.resource_id:
            continue
        if booking.interval.day != candidate.interval.day:
            continue
        if exclude_booking_id is not None and booking.id == exclude_booking_id:
            continue
        if booking.interval.overlaps_with(candidate.interval):
            return Conflict(with_booking_id=booking.id, interval=booking.interval)
    return None


def check_conflict(
    candidate: ReservationCandidate,
    active_bookings: Iterable,
    exclude_booking_id: Optional[UUID] = None,
) -> None:
    """
    Raise SlotUnavailable on the first conflict

    The error carries the conflicting booking and its interval so the
    caller can offer an alternative slot.
    """
    conflict = find_conflict(candidate, active_bookings, exclude_booking_id)
    if conflict is not None:
        raise SlotUnavailable(conflict.with_booking_id, conflict.interval)


def validate_and_reserve(
    candidate: ReservationCandidate,
    read_active_bookings: Callable,
    persist_booking: Callable,
    *,
    exclude_booking_id: Optional[UUID] = None,
):
    """
    Check-then-write entry point for reservations

    Must run inside the persistence layer's transaction so that reading the
    active bookings serializes concurrent writers for (resource, day).

    Args:
        candidate: Requested resource and interval
        read_active_bookings: (owner_id, resource_id, day) -> bookings
        persist_booking: Called only when the slot is free; its result is returned
        exclude_booking_id: Booking being edited or confirmed

    Raises:
        SlotUnavailable: If the interval overlaps an active booking
    """
    active = read_active_bookings(
        candidate.owner_id,
        candidate.resource_id,
        candidate.interval.day,
    )
    check_conflict(candidate, active, exclude_booking_id)
    return persist_booking()
