from __future__ import annotations

import logging
from pathlib import Path
import traceback

from salinha import ConflictError, ReservationService, ReservationYamlRepository, load_settings
from salinha.models import ROOM_LABELS


def main() -> int:
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
    print("[INFO] Salinha Reservations Quick Check")

    settings = load_settings()
    repo = ReservationYamlRepository(settings.data_dir)
    service = ReservationService(repo, settings)
    now = settings.now()

    generated = repo.seed_demo_data(now=now, overwrite=True)
    print(f"[OK] Demo data generated for {now.date().isoformat()}: {len(generated)} records")

    first = generated[0]
    try:
        service.create_reservation(
            {
                "title": "Quick check",
                "room": first.room,
                "reserved_by": "quickcheck",
                "start": first.start,
                "end": first.end,
            },
            now=now,
        )
        print("[FAIL] Overlapping reservation was accepted")
        return 1
    except ConflictError as error:
        print(f"[OK] Overlap rejected: {error.user_message}")

    snapshot = service.load_dashboard(now)
    for room, view in snapshot.rooms.items():
        status = "Ocupada" if view.is_occupied else "Disponível"
        print(
            f"[OK] {ROOM_LABELS[room]}: {status}, "
            f"{view.today_count} hoje, {len(view.upcoming)} próximas, {len(view.past)} encerradas"
        )
    print(f"[OK] Total geral: {snapshot.total_count}")
    print(f"[OK] Reservations YAML: {Path(repo.data_file).resolve()}")
    print(f"[OK] Event Log YAML: {Path(repo.log_file).resolve()}")

    service.close()
    print("[DONE] Quick check completed successfully.")
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except Exception:
        print("[ERROR] Quick check failed.")
        traceback.print_exc()
        raise SystemExit(1)
