from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

ROOM_SALINHA = "salinha"
ROOM_SEDE = "sede"
ROOMS = (ROOM_SALINHA, ROOM_SEDE)

ROOM_LABELS = {
    ROOM_SALINHA: "Salinha",
    ROOM_SEDE: "Sede",
}


@dataclass(frozen=True)
class ReservationRecord:
    reservation_id: str
    title: str
    start: datetime
    end: datetime
    reserved_by: str
    room: str
    created_at: datetime
    updated_at: datetime
    description: str | None = None

    def to_dict(self) -> dict[str, str]:
        payload = {
            "reservation_id": self.reservation_id,
            "title": self.title,
            "room": self.room,
            "reserved_by": self.reserved_by,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "created_at": self.created_at.isoformat(timespec="seconds"),
            "updated_at": self.updated_at.isoformat(timespec="seconds"),
        }
        if self.description is not None:
            payload["description"] = self.description
        return payload

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "ReservationRecord":
        return ReservationRecord(
            reservation_id=str(data["reservation_id"]),
            title=str(data["title"]),
            room=str(data["room"]),
            reserved_by=str(data["reserved_by"]),
            start=datetime.fromisoformat(str(data["start"])),
            end=datetime.fromisoformat(str(data["end"])),
            created_at=datetime.fromisoformat(str(data["created_at"])),
            updated_at=datetime.fromisoformat(str(data["updated_at"])),
            description=(str(data.get("description")) if data.get("description") is not None else None),
        )


@dataclass(frozen=True)
class NewReservation:
    """Validated input for a reservation that does not exist yet."""

    title: str
    start: datetime
    end: datetime
    reserved_by: str
    room: str
    description: str | None = None


@dataclass(frozen=True)
class ReservationChanges:
    """Validated partial update. ``None`` means "leave the field alone".

    ``description`` uses ``clear_description`` to distinguish "unset it" from
    "not supplied", since ``None`` already means the latter.
    """

    title: str | None = None
    description: str | None = None
    clear_description: bool = False
    start: datetime | None = None
    end: datetime | None = None
    reserved_by: str | None = None
    room: str | None = None

    def has_time_change(self) -> bool:
        return self.start is not None or self.end is not None

    def is_empty(self) -> bool:
        return (
            self.title is None
            and self.description is None
            and not self.clear_description
            and self.start is None
            and self.end is None
            and self.reserved_by is None
            and self.room is None
        )

    def apply_to(self, record: ReservationRecord, updated_at: datetime) -> ReservationRecord:
        if self.clear_description:
            description = None
        elif self.description is not None:
            description = self.description
        else:
            description = record.description

        return ReservationRecord(
            reservation_id=record.reservation_id,
            title=self.title if self.title is not None else record.title,
            start=self.start or record.start,
            end=self.end or record.end,
            reserved_by=self.reserved_by if self.reserved_by is not None else record.reserved_by,
            room=self.room if self.room is not None else record.room,
            created_at=record.created_at,
            updated_at=updated_at,
            description=description,
        )
