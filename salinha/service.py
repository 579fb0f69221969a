from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Callable, Mapping, TypeVar

from .booking import find_conflicts
from .config import Settings
from .dashboard import DashboardSnapshot, build_snapshot
from .errors import (
    KIND_NOT_FOUND,
    KIND_UNAVAILABLE,
    ConflictError,
    RepositoryError,
    classify_repository_error,
)
from .models import ReservationRecord
from .repository import ReservationRepository
from .time_window import DayWindow, day_window
from .validation import ensure_time_order, validate_new_reservation, validate_reservation_changes

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class FetchResult:
    reservations: list[ReservationRecord] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ReservationService:
    """Validation, conflict gate and read paths over an injected repository.

    The conflict check reads a snapshot and then writes, with nothing held in
    between, so two concurrent creates for the same slot can both succeed.
    """

    def __init__(
        self,
        repository: ReservationRepository,
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.repository = repository
        self.settings = settings or Settings()
        self._clock = clock or self.settings.now
        self._executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="salinha-repo")

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> "ReservationService":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def now(self) -> datetime:
        return self._clock()

    def create_reservation(self, payload: Mapping[str, Any], now: datetime | None = None) -> ReservationRecord:
        data = validate_new_reservation(payload, tz=self.settings.tzinfo)
        effective_now = self._localize(now or self.now())

        existing = self._with_timeout(self.repository.list_all, "list reservations")
        conflicting = find_conflicts(data.start, data.end, data.room, existing)
        if conflicting:
            logger.info(
                "Rejected reservation in %s %s-%s: overlaps %s",
                data.room,
                data.start.isoformat(timespec="minutes"),
                data.end.isoformat(timespec="minutes"),
                [record.reservation_id for record in conflicting],
            )
            raise ConflictError(conflicting)

        reservation_id = self._call(lambda: self.repository.insert(data, effective_now), "create reservation")
        created = self._with_timeout(lambda: self.repository.get(reservation_id), "load reservation")
        if created is None:
            raise RepositoryError(KIND_NOT_FOUND, f"reservation_id not found after insert: {reservation_id}")
        logger.info("Created reservation %s in %s", reservation_id, data.room)
        return created

    def update_reservation(
        self,
        reservation_id: str,
        payload: Mapping[str, Any],
        now: datetime | None = None,
    ) -> ReservationRecord:
        changes = validate_reservation_changes(payload, tz=self.settings.tzinfo)
        effective_now = self._localize(now or self.now())

        current = self.get_reservation(reservation_id)
        merged = changes.apply_to(current, effective_now)
        ensure_time_order(merged.start, merged.end)

        existing = self._with_timeout(self.repository.list_all, "list reservations")
        conflicting = find_conflicts(merged.start, merged.end, merged.room, existing, exclude_id=reservation_id)
        if conflicting:
            logger.info(
                "Rejected update of %s in %s: overlaps %s",
                reservation_id,
                merged.room,
                [record.reservation_id for record in conflicting],
            )
            raise ConflictError(conflicting)

        updated = self._call(
            lambda: self.repository.update(reservation_id, changes, effective_now),
            "update reservation",
        )
        logger.info("Updated reservation %s", reservation_id)
        return updated

    def delete_reservation(self, reservation_id: str) -> None:
        self._call(lambda: self.repository.delete_by_id(reservation_id), "delete reservation")
        logger.info("Deleted reservation %s", reservation_id)

    def get_reservation(self, reservation_id: str) -> ReservationRecord:
        record = self._with_timeout(lambda: self.repository.get(reservation_id), "load reservation")
        if record is None:
            raise RepositoryError(KIND_NOT_FOUND, f"reservation_id not found: {reservation_id}")
        return record

    def check_time_conflict(
        self,
        start: datetime,
        end: datetime,
        room: str,
        exclude_id: str | None = None,
    ) -> bool:
        existing = self._with_timeout(self.repository.list_all, "list reservations")
        return bool(find_conflicts(start, end, room, existing, exclude_id=exclude_id))

    def list_reservations(self) -> list[ReservationRecord]:
        return self._with_timeout(self.repository.list_all, "list reservations")

    def list_reservations_for_day(self, day: date | datetime) -> list[ReservationRecord]:
        window = self._window_for(day)
        return self._with_timeout(
            lambda: self.repository.list_by_date_range(window.start, window.end),
            "list reservations for day",
        )

    def count_reservations(self) -> int:
        return self._with_timeout(self.repository.count, "count reservations")

    def fetch_reservations(self) -> FetchResult:
        try:
            return FetchResult(self.list_reservations())
        except RepositoryError as error:
            return FetchResult([], error.user_message)

    def fetch_today_reservations(self, now: datetime | None = None) -> FetchResult:
        try:
            return FetchResult(self.list_reservations_for_day(now or self.now()))
        except RepositoryError as error:
            return FetchResult([], error.user_message)

    def load_dashboard(self, now: datetime | None = None) -> DashboardSnapshot:
        """Fetch today's reservations and the total count in parallel.

        A failed fetch degrades to an empty list or an unknown total; the
        first failure message is carried on the snapshot.
        """
        effective_now = self._localize(now or self.now())
        window = self._window_for(effective_now)

        today_future = self._executor.submit(self.repository.list_by_date_range, window.start, window.end)
        count_future = self._executor.submit(self.repository.count)

        errors: list[str] = []
        try:
            today = self._wait(today_future, "list reservations for day")
        except RepositoryError as error:
            today = []
            errors.append(error.user_message)

        total: int | None
        try:
            total = self._wait(count_future, "count reservations")
        except RepositoryError as error:
            total = None
            errors.append(error.user_message)

        return build_snapshot(
            effective_now,
            today,
            total,
            tz=self.settings.tzinfo,
            error=errors[0] if errors else None,
        )

    def _localize(self, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=self.settings.tzinfo)
        return value

    def _window_for(self, day: date | datetime) -> DayWindow:
        if not isinstance(day, datetime):
            day = datetime.combine(day, time(12, 0), tzinfo=self.settings.tzinfo)
        return day_window(day, self.settings.tzinfo)

    def _with_timeout(self, operation: Callable[[], T], action: str) -> T:
        return self._wait(self._executor.submit(operation), action)

    def _wait(self, future: Future, action: str) -> Any:
        try:
            return future.result(timeout=self.settings.fetch_timeout)
        except FutureTimeoutError as error:
            logger.warning("Timed out after %.1fs: %s", self.settings.fetch_timeout, action)
            raise RepositoryError(KIND_UNAVAILABLE, "Request timed out") from error
        except Exception as error:
            mapped = classify_repository_error(error)
            logger.error("Failed to %s: %s", action, mapped)
            if mapped is error:
                raise
            raise mapped from error

    def _call(self, operation: Callable[[], T], action: str) -> T:
        try:
            return operation()
        except RepositoryError as error:
            logger.error("Failed to %s: %s", action, error)
            raise
        except Exception as error:
            mapped = classify_repository_error(error)
            logger.error("Failed to %s: %s", action, mapped)
            raise mapped from error
