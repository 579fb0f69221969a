import tempfile
import unittest
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

from salinha import ReservationYamlRepository, Settings
from salinha.web_app import create_app

ZONE = ZoneInfo("America/Sao_Paulo")
SETTINGS = Settings(timezone="America/Sao_Paulo")


def _body(start: str, end: str, room: str = "salinha", **extra):
    payload = {"title": "Daily", "reserved_by": "Ana", "room": room, "start": start, "end": end}
    payload.update(extra)
    return payload


class TestWebApp(unittest.TestCase):
    def setUp(self) -> None:
        self._temp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self._temp_dir.cleanup)
        self.data_dir = Path(self._temp_dir.name) / "data"
        self.now = datetime(2026, 2, 24, 12, 0, tzinfo=ZONE)
        app = create_app(self.data_dir, now_provider=lambda: self.now, settings=SETTINGS)
        self.addCleanup(app.extensions["reservation_service"].close)
        self.client = app.test_client()

    def test_create_then_conflict_then_adjacent(self) -> None:
        created = self.client.post("/api/reservations", json=_body("2026-02-24T10:00", "2026-02-24T11:00"))
        self.assertEqual(created.status_code, 201)
        payload = created.get_json()
        self.assertTrue(payload["ok"])
        self.assertEqual(payload["reservation"]["start"], "2026-02-24T10:00:00-03:00")

        conflict = self.client.post("/api/reservations", json=_body("2026-02-24T10:30", "2026-02-24T11:30"))
        self.assertEqual(conflict.status_code, 409)
        conflict_payload = conflict.get_json()
        self.assertFalse(conflict_payload["ok"])
        self.assertIn("Conflito de horário", conflict_payload["message"])
        self.assertEqual(len(conflict_payload["conflicts"]), 1)

        adjacent = self.client.post("/api/reservations", json=_body("2026-02-24T11:00", "2026-02-24T12:00"))
        self.assertEqual(adjacent.status_code, 201)

    def test_validation_errors_are_field_level(self) -> None:
        response = self.client.post(
            "/api/reservations",
            json=_body("2026-02-24T11:00", "2026-02-24T10:00", room="auditorio", title=""),
        )
        self.assertEqual(response.status_code, 400)
        errors = response.get_json()["errors"]
        self.assertEqual(set(errors), {"title", "room", "end"})

    def test_update_and_delete_flow(self) -> None:
        created = self.client.post("/api/reservations", json=_body("2026-02-24T10:00", "2026-02-24T11:00"))
        reservation_id = created.get_json()["reservation"]["reservation_id"]

        same_window = self.client.post(
            "/api/reservations/update",
            json={
                "reservation_id": reservation_id,
                "title": "Retro",
                "start": "2026-02-24T10:00",
                "end": "2026-02-24T11:00",
            },
        )
        self.assertEqual(same_window.status_code, 200)
        self.assertEqual(same_window.get_json()["reservation"]["title"], "Retro")

        missing = self.client.post("/api/reservations/update", json={"reservation_id": "nope", "title": "x"})
        self.assertEqual(missing.status_code, 404)

        no_id = self.client.post("/api/reservations/update", json={"title": "x"})
        self.assertEqual(no_id.status_code, 400)

        deleted = self.client.post("/api/reservations/delete", json={"reservation_id": reservation_id})
        self.assertEqual(deleted.status_code, 200)
        self.assertEqual(deleted.get_json()["reservation"]["reservation_id"], reservation_id)

        deleted_again = self.client.post("/api/reservations/delete", json={"reservation_id": reservation_id})
        self.assertEqual(deleted_again.status_code, 404)

    def test_dashboard_reports_rooms_and_totals(self) -> None:
        for start, end in [("09:00", "10:00"), ("11:30", "12:30"), ("14:00", "15:00")]:
            response = self.client.post(
                "/api/reservations",
                json=_body(f"2026-02-24T{start}", f"2026-02-24T{end}"),
            )
            self.assertEqual(response.status_code, 201)
        self.client.post("/api/reservations", json=_body("2026-02-25T09:00", "2026-02-25T10:00", room="sede"))

        response = self.client.get("/api/dashboard")
        self.assertEqual(response.status_code, 200)
        payload = response.get_json()

        salinha = payload["rooms"]["salinha"]
        self.assertTrue(payload["ok"])
        self.assertEqual(salinha["current"]["start"], "2026-02-24T11:30:00-03:00")
        self.assertEqual([row["start"] for row in salinha["upcoming"]], ["2026-02-24T14:00:00-03:00"])
        self.assertEqual([row["start"] for row in salinha["past"]], ["2026-02-24T09:00:00-03:00"])
        self.assertEqual(salinha["today_count"], 3)
        self.assertFalse(payload["rooms"]["sede"]["is_occupied"])
        self.assertEqual(payload["today_total"], 3)
        self.assertEqual(payload["total_count"], 4)

    def test_list_reservations_by_date(self) -> None:
        repo = ReservationYamlRepository(self.data_dir)
        self.assertEqual(repo.count(), 0)
        self.client.post("/api/reservations", json=_body("2026-02-24T10:00", "2026-02-24T11:00"))
        self.client.post("/api/reservations", json=_body("2026-02-25T10:00", "2026-02-25T11:00"))

        everything = self.client.get("/api/reservations").get_json()
        one_day = self.client.get("/api/reservations?date=2026-02-25").get_json()
        bad_date = self.client.get("/api/reservations?date=25/02/2026")

        self.assertEqual(len(everything["reservations"]), 2)
        self.assertEqual(len(one_day["reservations"]), 1)
        self.assertEqual(one_day["reservations"][0]["start"], "2026-02-25T10:00:00-03:00")
        self.assertEqual(bad_date.status_code, 400)

    def test_rooms_endpoint(self) -> None:
        payload = self.client.get("/api/rooms").get_json()
        self.assertEqual([row["room"] for row in payload["rooms"]], ["salinha", "sede"])


if __name__ == "__main__":
    unittest.main()
