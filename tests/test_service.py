import threading
import unittest
from datetime import datetime
from zoneinfo import ZoneInfo

from salinha import (
    ConflictError,
    InMemoryReservationRepository,
    RepositoryError,
    ReservationService,
    Settings,
    ValidationError,
)

ZONE = ZoneInfo("America/Sao_Paulo")
NOW = datetime(2026, 2, 24, 12, 0, tzinfo=ZONE)


def _at(hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 2, 24, hour, minute, tzinfo=ZONE)


def _payload(start: datetime, end: datetime, room: str = "salinha", **extra):
    payload = {"title": "Reunião", "reserved_by": "Ana", "room": room, "start": start, "end": end}
    payload.update(extra)
    return payload


class FailingRepository(InMemoryReservationRepository):
    def __init__(self, error: Exception) -> None:
        super().__init__()
        self.error = error

    def list_all(self):
        raise self.error

    def list_by_date_range(self, start, end):
        raise self.error

    def count(self):
        raise self.error


class SlowCountRepository(InMemoryReservationRepository):
    def __init__(self) -> None:
        super().__init__()
        self.release = threading.Event()

    def count(self):
        self.release.wait(5)
        return super().count()


class ServiceTestCase(unittest.TestCase):
    def make_service(self, repository=None, timeout: float = 10.0) -> ReservationService:
        service = ReservationService(
            repository or InMemoryReservationRepository(),
            Settings(timezone="America/Sao_Paulo", fetch_timeout=timeout),
            clock=lambda: NOW,
        )
        self.addCleanup(service.close)
        return service


class TestConflictGate(ServiceTestCase):
    def test_create_assigns_id_and_timestamps(self) -> None:
        service = self.make_service()
        created = service.create_reservation(_payload(_at(10), _at(11)))

        self.assertTrue(created.reservation_id)
        self.assertEqual(created.created_at, NOW)
        self.assertEqual(created.updated_at, NOW)
        self.assertEqual(service.count_reservations(), 1)

    def test_end_to_end_overlap_scenario(self) -> None:
        service = self.make_service()
        existing = service.create_reservation(_payload(_at(10), _at(11)))

        with self.assertRaises(ConflictError) as ctx:
            service.create_reservation(_payload(_at(10, 30), _at(11, 30)))
        self.assertEqual([row.reservation_id for row in ctx.exception.conflicting], [existing.reservation_id])
        self.assertEqual(service.count_reservations(), 1)

        service.create_reservation(_payload(_at(11), _at(12)))
        self.assertFalse(service.check_time_conflict(_at(9), _at(9, 30), "salinha", exclude_id=existing.reservation_id))
        self.assertTrue(service.check_time_conflict(_at(10, 30), _at(10, 45), "salinha"))

    def test_same_slot_in_other_room_is_allowed(self) -> None:
        service = self.make_service()
        service.create_reservation(_payload(_at(10), _at(11), room="salinha"))
        created = service.create_reservation(_payload(_at(10), _at(11), room="sede"))
        self.assertEqual(created.room, "sede")

    def test_validation_runs_before_any_write(self) -> None:
        service = self.make_service()
        with self.assertRaises(ValidationError):
            service.create_reservation(_payload(_at(11), _at(10)))
        self.assertEqual(service.count_reservations(), 0)

    def test_edit_to_own_window_does_not_conflict(self) -> None:
        service = self.make_service()
        created = service.create_reservation(_payload(_at(10), _at(11)))

        updated = service.update_reservation(
            created.reservation_id,
            {"title": "Daily", "start": _at(10), "end": _at(11)},
            now=_at(12, 30),
        )

        self.assertEqual(updated.title, "Daily")
        self.assertEqual(updated.created_at, NOW)
        self.assertEqual(updated.updated_at, _at(12, 30))

    def test_edit_into_other_reservation_conflicts(self) -> None:
        service = self.make_service()
        first = service.create_reservation(_payload(_at(10), _at(11)))
        service.create_reservation(_payload(_at(11), _at(12)))

        with self.assertRaises(ConflictError):
            service.update_reservation(first.reservation_id, {"end": _at(11, 30)})
        self.assertEqual(service.get_reservation(first.reservation_id).end, _at(11))

    def test_partial_edit_is_checked_against_merged_window(self) -> None:
        service = self.make_service()
        created = service.create_reservation(_payload(_at(10), _at(11)))

        with self.assertRaises(ValidationError):
            service.update_reservation(created.reservation_id, {"start": _at(11, 30)})

    def test_moving_room_checks_target_room(self) -> None:
        service = self.make_service()
        created = service.create_reservation(_payload(_at(10), _at(11), room="salinha"))
        service.create_reservation(_payload(_at(10, 30), _at(11, 30), room="sede"))

        with self.assertRaises(ConflictError):
            service.update_reservation(created.reservation_id, {"room": "sede"})

    def test_update_unknown_id_is_not_found(self) -> None:
        service = self.make_service()
        with self.assertRaises(RepositoryError) as ctx:
            service.update_reservation("missing", {"title": "x"})
        self.assertEqual(ctx.exception.kind, "not-found")

    def test_delete_removes_permanently(self) -> None:
        service = self.make_service()
        created = service.create_reservation(_payload(_at(10), _at(11)))
        service.delete_reservation(created.reservation_id)

        self.assertEqual(service.count_reservations(), 0)
        service.create_reservation(_payload(_at(10), _at(11)))


class TestReadPaths(ServiceTestCase):
    def test_load_dashboard_scenario(self) -> None:
        service = self.make_service()
        service.create_reservation(_payload(_at(9), _at(10)))
        service.create_reservation(_payload(_at(11, 30), _at(12, 30)))
        service.create_reservation(_payload(_at(14), _at(15)))
        service.create_reservation(_payload(datetime(2026, 2, 25, 9, 0, tzinfo=ZONE), datetime(2026, 2, 25, 10, 0, tzinfo=ZONE)))

        snapshot = service.load_dashboard()
        salinha = snapshot.rooms["salinha"]

        self.assertEqual(salinha.current.start, _at(11, 30))
        self.assertEqual([row.start for row in salinha.upcoming], [_at(14)])
        self.assertEqual([row.start for row in salinha.past], [_at(9)])
        self.assertEqual(salinha.today_count, 3)
        self.assertEqual(snapshot.today_total, 3)
        self.assertEqual(snapshot.total_count, 4)
        self.assertIsNone(snapshot.error)

    def test_failed_fetch_degrades_to_empty(self) -> None:
        service = self.make_service(FailingRepository(PermissionError("denied")))

        result = service.fetch_reservations()

        self.assertEqual(result.reservations, [])
        self.assertFalse(result.ok)
        self.assertIn("access denied", result.error)

        with self.assertRaises(RepositoryError) as ctx:
            service.list_reservations()
        self.assertEqual(ctx.exception.kind, "permission-denied")

    def test_failed_dashboard_still_renders(self) -> None:
        service = self.make_service(FailingRepository(RuntimeError("network request failed")))

        snapshot = service.load_dashboard()

        self.assertIsNone(snapshot.total_count)
        self.assertEqual(snapshot.today_total, 0)
        self.assertIn("Erro de rede", snapshot.error)

    def test_conflict_check_surfaces_repository_errors(self) -> None:
        service = self.make_service(FailingRepository(RuntimeError("service unavailable")))
        with self.assertRaises(RepositoryError) as ctx:
            service.create_reservation(_payload(_at(10), _at(11)))
        self.assertEqual(ctx.exception.kind, "unavailable")

    def test_slow_count_times_out_as_unavailable(self) -> None:
        repository = SlowCountRepository()
        service = self.make_service(repository, timeout=0.05)
        self.addCleanup(repository.release.set)

        with self.assertRaises(RepositoryError) as ctx:
            service.count_reservations()
        self.assertEqual(ctx.exception.kind, "unavailable")

        snapshot = service.load_dashboard()
        self.assertIsNone(snapshot.total_count)
        self.assertIsNotNone(snapshot.error)
        self.assertEqual(snapshot.rooms["salinha"].today_count, 0)


if __name__ == "__main__":
    unittest.main()
