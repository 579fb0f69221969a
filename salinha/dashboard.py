from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Any, Iterable

from .models import ROOMS, ReservationRecord
from .time_window import RoomView, classify_room, day_window


@dataclass(frozen=True)
class DashboardSnapshot:
    rooms: dict[str, RoomView]
    today_total: int
    total_count: int | None
    generated_at: datetime
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "generated_at": self.generated_at.isoformat(timespec="seconds"),
            "rooms": {room: view.to_dict() for room, view in self.rooms.items()},
            "today_total": self.today_total,
            "total_count": self.total_count,
            "error": self.error,
        }


def build_dashboard(
    now: datetime,
    reservations_for_today: Iterable[ReservationRecord],
    tz: tzinfo | None = None,
) -> dict[str, RoomView]:
    window = day_window(now, tz)
    grouped: dict[str, list[ReservationRecord]] = {room: [] for room in ROOMS}
    for record in reservations_for_today:
        if record.room in grouped:
            grouped[record.room].append(record)

    return {room: classify_room(now, grouped[room], window) for room in ROOMS}


def build_snapshot(
    now: datetime,
    reservations_for_today: Iterable[ReservationRecord],
    total_count: int | None,
    tz: tzinfo | None = None,
    error: str | None = None,
) -> DashboardSnapshot:
    rooms = build_dashboard(now, reservations_for_today, tz)
    return DashboardSnapshot(
        rooms=rooms,
        today_total=sum(view.today_count for view in rooms.values()),
        total_count=total_count,
        generated_at=now,
        error=error,
    )
