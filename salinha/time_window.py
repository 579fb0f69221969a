from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, time, tzinfo
from typing import Any, Iterable

from .models import ReservationRecord

END_OF_DAY = time(23, 59, 59)


@dataclass(frozen=True)
class DayWindow:
    start: datetime
    end: datetime

    def contains(self, value: datetime) -> bool:
        return self.start <= value <= self.end


@dataclass
class RoomView:
    current: ReservationRecord | None = None
    upcoming: list[ReservationRecord] = field(default_factory=list)
    past: list[ReservationRecord] = field(default_factory=list)
    today_count: int = 0

    @property
    def is_occupied(self) -> bool:
        return self.current is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "current": self.current.to_dict() if self.current else None,
            "upcoming": [record.to_dict() for record in self.upcoming],
            "past": [record.to_dict() for record in self.past],
            "today_count": self.today_count,
            "is_occupied": self.is_occupied,
        }


def day_window(now: datetime, tz: tzinfo | None = None) -> DayWindow:
    """Return the calendar day containing ``now`` as ``[00:00:00, 23:59:59]``.

    The day is read from ``now``'s calendar fields after converting it to
    ``tz``. Without ``tz`` an aware ``now`` keeps its own offset and a naive
    one is taken as-is, so the same instant can fall on different days for
    callers in different zones.
    """
    if tz is not None:
        local_now = now.astimezone(tz) if now.tzinfo is not None else now.replace(tzinfo=tz)
    else:
        local_now = now

    local_date = local_now.date()
    zone = local_now.tzinfo
    start = datetime.combine(local_date, time.min, tzinfo=zone)
    end = datetime.combine(local_date, END_OF_DAY, tzinfo=zone)
    return DayWindow(start=start, end=end)


def classify_room(now: datetime, reservations: Iterable[ReservationRecord], window: DayWindow) -> RoomView:
    """Split one room's reservations into current, upcoming and today's past.

    When several reservations are active at once the earliest start wins
    (then the lowest id); the others are left out of every list.
    """
    rows = list(reservations)

    active = [row for row in rows if row.start <= now <= row.end]
    current = min(active, key=lambda row: (row.start, row.reservation_id)) if active else None

    upcoming = sorted((row for row in rows if row.start > now), key=lambda row: row.start)
    past = sorted(
        (row for row in rows if window.contains(row.start) and row.end < now),
        key=lambda row: row.start,
        reverse=True,
    )
    today_count = sum(1 for row in rows if window.contains(row.start))

    return RoomView(current=current, upcoming=upcoming, past=past, today_count=today_count)
