from __future__ import annotations

from datetime import datetime
from typing import Iterable

from .models import ReservationRecord


def has_time_overlap(new_start: datetime, new_end: datetime, exist_start: datetime, exist_end: datetime) -> bool:
    """Return True when two time intervals share at least one instant.

    Intervals are treated as half-open ranges: [start, end)
    so touching boundaries (e.g. 10:00-11:00 and 11:00-12:00) do not overlap.
    """
    return new_start < exist_end and new_end > exist_start


def find_conflicts(
    start: datetime,
    end: datetime,
    room: str,
    existing_reservations: Iterable[ReservationRecord],
    exclude_id: str | None = None,
) -> list[ReservationRecord]:
    """Return the reservations in ``room`` that overlap ``[start, end)``.

    ``exclude_id`` drops the record being edited so it never conflicts with
    its own previous window.
    """
    return [
        reservation
        for reservation in existing_reservations
        if reservation.room == room
        and (exclude_id is None or reservation.reservation_id != exclude_id)
        and has_time_overlap(start, end, reservation.start, reservation.end)
    ]


def conflicts(
    start: datetime,
    end: datetime,
    room: str,
    existing_reservations: Iterable[ReservationRecord],
    exclude_id: str | None = None,
) -> bool:
    return bool(find_conflicts(start, end, room, existing_reservations, exclude_id))


def can_reserve(new_start: datetime, new_end: datetime, existing_reservations: Iterable[ReservationRecord]) -> bool:
    """Return True if the requested interval does not overlap any existing reservation."""
    if new_start >= new_end:
        raise ValueError("new_start must be earlier than new_end.")

    for reservation in existing_reservations:
        if has_time_overlap(new_start, new_end, reservation.start, reservation.end):
            return False
    return True
