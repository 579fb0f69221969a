from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import uuid4

from .errors import KIND_NOT_FOUND, RepositoryError
from .models import NewReservation, ReservationChanges, ReservationRecord


class ReservationRepository(Protocol):
    """Storage seam the service talks to. Implementations own id and timestamps."""

    def insert(self, data: NewReservation, now: datetime) -> str: ...

    def get(self, reservation_id: str) -> ReservationRecord | None: ...

    def list_all(self) -> list[ReservationRecord]: ...

    def list_by_date_range(self, start: datetime, end: datetime) -> list[ReservationRecord]: ...

    def count(self) -> int: ...

    def update(self, reservation_id: str, changes: ReservationChanges, now: datetime) -> ReservationRecord: ...

    def delete_by_id(self, reservation_id: str) -> None: ...


def build_record(reservation_id: str, data: NewReservation, now: datetime) -> ReservationRecord:
    return ReservationRecord(
        reservation_id=reservation_id,
        title=data.title,
        start=data.start,
        end=data.end,
        reserved_by=data.reserved_by,
        room=data.room,
        created_at=now,
        updated_at=now,
        description=data.description,
    )


def sort_by_start(records: list[ReservationRecord]) -> list[ReservationRecord]:
    return sorted(records, key=lambda record: (record.start, record.reservation_id))


class InMemoryReservationRepository:
    """Dict-backed store keyed by reservation id."""

    def __init__(self, records: list[ReservationRecord] | None = None) -> None:
        self._store: dict[str, ReservationRecord] = {}
        for record in records or []:
            self._store[record.reservation_id] = record

    def insert(self, data: NewReservation, now: datetime) -> str:
        reservation_id = str(uuid4())
        self._store[reservation_id] = build_record(reservation_id, data, now)
        return reservation_id

    def get(self, reservation_id: str) -> ReservationRecord | None:
        return self._store.get(reservation_id)

    def list_all(self) -> list[ReservationRecord]:
        return sort_by_start(list(self._store.values()))

    def list_by_date_range(self, start: datetime, end: datetime) -> list[ReservationRecord]:
        return sort_by_start([record for record in self._store.values() if start <= record.start <= end])

    def count(self) -> int:
        return len(self._store)

    def update(self, reservation_id: str, changes: ReservationChanges, now: datetime) -> ReservationRecord:
        current = self._store.get(reservation_id)
        if current is None:
            raise RepositoryError(KIND_NOT_FOUND, f"reservation_id not found: {reservation_id}")
        updated = changes.apply_to(current, now)
        self._store[reservation_id] = updated
        return updated

    def delete_by_id(self, reservation_id: str) -> None:
        self._store.pop(reservation_id, None)
