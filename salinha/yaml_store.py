from __future__ import annotations

from datetime import date, datetime, time, timedelta, tzinfo
from pathlib import Path
from typing import Any
import random
import shutil
from uuid import uuid4

import yaml

from .booking import can_reserve
from .errors import KIND_NOT_FOUND, RepositoryError, classify_repository_error
from .models import ROOMS, NewReservation, ReservationChanges, ReservationRecord
from .repository import build_record, sort_by_start

DEMO_START_HOUR = 8
DEMO_END_HOUR = 19
DEMO_TITLES = ["Daily", "1:1", "Planejamento", "Entrevista", "Retro", "Call com cliente", "Workshop"]
DEMO_NAMES = ["Ana", "Bruno", "Carla", "Diego", "Elisa", "Felipe", "Gabi"]


class ReservationYamlRepository:
    def __init__(self, base_dir: str | Path = "data") -> None:
        self.base_dir = Path(base_dir)
        self.data_file = self.base_dir / "reservations.yaml"
        self.log_file = self.base_dir / "reservation_events.yaml"
        self._ensure_files()

    def _ensure_files(self) -> None:
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            for path in (self.data_file, self.log_file):
                if not path.exists():
                    path.write_text("[]\n", encoding="utf-8")
        except OSError as error:
            raise classify_repository_error(error) from error

    def _read_yaml_list(self, path: Path) -> list[dict[str, Any]]:
        try:
            payload = yaml.safe_load(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            path.write_text("[]\n", encoding="utf-8")
            return []
        except PermissionError as error:
            raise classify_repository_error(error) from error
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as error:
            self._recover_corrupted_yaml(path, error)
            return []

        if payload is None:
            return []
        if not isinstance(payload, list):
            self._recover_corrupted_yaml(path, ValueError("top-level YAML is not a list"))
            return []

        sanitized: list[dict[str, Any]] = []
        for index, row in enumerate(payload):
            if isinstance(row, dict):
                sanitized.append(row)
            else:
                self._log_event(
                    "YAML_ROW_SKIPPED",
                    {
                        "file": str(path.name),
                        "index": index,
                        "reason": "row is not a mapping",
                    },
                )
        return sanitized

    def _write_yaml_list(self, path: Path, rows: list[dict[str, Any]]) -> None:
        temp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            temp_path.write_text(yaml.safe_dump(rows, allow_unicode=True, sort_keys=False), encoding="utf-8")
            temp_path.replace(path)
        except OSError as error:
            raise classify_repository_error(error) from error
        finally:
            if temp_path.exists():
                temp_path.unlink(missing_ok=True)

    def _recover_corrupted_yaml(self, path: Path, error: Exception) -> None:
        timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
        backup_path = path.with_name(f"{path.stem}.corrupt.{timestamp}{path.suffix}")
        try:
            if path.exists():
                shutil.copy2(path, backup_path)
        except OSError:
            pass

        path.write_text("[]\n", encoding="utf-8")
        if path != self.log_file:
            self._log_event(
                "YAML_RECOVERED",
                {
                    "file": str(path.name),
                    "backup": str(backup_path.name),
                    "reason": str(error),
                },
            )

    def _log_event(self, event_type: str, payload: dict[str, Any], event_time: datetime | None = None) -> None:
        timestamp = (event_time or datetime.now()).isoformat(timespec="seconds")
        events = self._read_yaml_list(self.log_file)
        events.append({"event_time": timestamp, "event_type": event_type, "payload": payload})
        self._write_yaml_list(self.log_file, events)

    def _load_records(self) -> list[ReservationRecord]:
        records: list[ReservationRecord] = []
        for index, row in enumerate(self._read_yaml_list(self.data_file)):
            try:
                records.append(ReservationRecord.from_dict(row))
            except (KeyError, TypeError, ValueError) as error:
                self._log_event(
                    "YAML_ROW_SKIPPED",
                    {
                        "file": str(self.data_file.name),
                        "index": index,
                        "reason": f"invalid reservation row: {error}",
                    },
                )
        return records

    def read_events(self) -> list[dict[str, Any]]:
        return self._read_yaml_list(self.log_file)

    def insert(self, data: NewReservation, now: datetime) -> str:
        record = build_record(str(uuid4()), data, now)
        rows = self._read_yaml_list(self.data_file)
        rows.append(record.to_dict())
        self._write_yaml_list(self.data_file, rows)

        self._log_event(
            "RESERVATION_CREATED",
            {
                "reservation_id": record.reservation_id,
                "room": record.room,
                "start": record.start.isoformat(),
                "end": record.end.isoformat(),
                "reserved_by": record.reserved_by,
            },
            now,
        )
        return record.reservation_id

    def get(self, reservation_id: str) -> ReservationRecord | None:
        for record in self._load_records():
            if record.reservation_id == reservation_id:
                return record
        return None

    def list_all(self) -> list[ReservationRecord]:
        return sort_by_start(self._load_records())

    def list_by_date_range(self, start: datetime, end: datetime) -> list[ReservationRecord]:
        return sort_by_start([record for record in self._load_records() if start <= record.start <= end])

    def count(self) -> int:
        return len(self._load_records())

    def update(self, reservation_id: str, changes: ReservationChanges, now: datetime) -> ReservationRecord:
        rows = self._read_yaml_list(self.data_file)
        found_index = -1
        for index, row in enumerate(rows):
            if str(row.get("reservation_id")) == reservation_id:
                found_index = index
                break

        if found_index < 0:
            raise RepositoryError(KIND_NOT_FOUND, f"reservation_id not found: {reservation_id}")

        current = ReservationRecord.from_dict(rows[found_index])
        updated = changes.apply_to(current, now)
        rows[found_index] = updated.to_dict()
        self._write_yaml_list(self.data_file, rows)

        self._log_event(
            "RESERVATION_UPDATED",
            {
                "reservation_id": reservation_id,
                "room": updated.room,
                "start": updated.start.isoformat(),
                "end": updated.end.isoformat(),
            },
            now,
        )
        return updated

    def delete_by_id(self, reservation_id: str) -> None:
        rows = self._read_yaml_list(self.data_file)
        remaining = [row for row in rows if str(row.get("reservation_id")) != reservation_id]
        if len(remaining) == len(rows):
            return

        self._write_yaml_list(self.data_file, remaining)
        self._log_event("RESERVATION_DELETED", {"reservation_id": reservation_id})

    def seed_demo_data(self, now: datetime, overwrite: bool = True) -> list[ReservationRecord]:
        generated = generate_demo_reservations(now.date(), tz=now.tzinfo, created_at=now)

        rows = [] if overwrite else self._read_yaml_list(self.data_file)
        if not overwrite:
            existing = [ReservationRecord.from_dict(row) for row in rows]
            generated = [
                record
                for record in generated
                if can_reserve(record.start, record.end, [row for row in existing if row.room == record.room])
            ]

        rows.extend([record.to_dict() for record in generated])
        self._write_yaml_list(self.data_file, rows)

        self._log_event(
            "DEMO_DATA_GENERATED",
            {
                "count": len(generated),
                "day": now.date().isoformat(),
                "rooms": list(ROOMS),
                "hours": f"{DEMO_START_HOUR:02d}:00-{DEMO_END_HOUR:02d}:00",
                "overwrite": overwrite,
            },
            now,
        )
        return generated


def generate_demo_reservations(
    day: date,
    tz: tzinfo | None = None,
    per_room: int = 4,
    created_at: datetime | None = None,
) -> list[ReservationRecord]:
    """Build a deterministic, conflict-free set of reservations for ``day``.

    Each room gets ``per_room`` non-overlapping slots between 08:00
    and 19:00 on half-hour boundaries.
    """
    if per_room <= 0:
        raise ValueError("per_room must be greater than zero")

    half_hours = (DEMO_END_HOUR - DEMO_START_HOUR) * 2
    if per_room * 2 > half_hours:
        raise ValueError("per_room is too large for the demo day")

    rng = random.Random(f"demo:{day.isoformat()}:{per_room}")
    stamp = created_at or datetime.now(tz)
    day_start = datetime.combine(day, time(DEMO_START_HOUR, 0), tzinfo=tz)

    records: list[ReservationRecord] = []
    for room in ROOMS:
        used: list[ReservationRecord] = []
        attempts = 0
        while len(used) < per_room and attempts < per_room * 20:
            attempts += 1
            offset = rng.randrange(0, half_hours - 1)
            duration = rng.choice([1, 2, 3])
            if offset + duration > half_hours:
                continue

            start = day_start + timedelta(minutes=30 * offset)
            end = start + timedelta(minutes=30 * duration)
            if not can_reserve(start, end, used):
                continue

            record = ReservationRecord(
                reservation_id=str(uuid4()),
                title=rng.choice(DEMO_TITLES),
                start=start,
                end=end,
                reserved_by=rng.choice(DEMO_NAMES),
                room=room,
                created_at=stamp,
                updated_at=stamp,
            )
            used.append(record)
        records.extend(used)

    return sort_by_start(records)
