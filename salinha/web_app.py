from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable

from flask import Flask, jsonify, request

from .config import Settings, load_settings
from .errors import (
    KIND_NOT_FOUND,
    KIND_PERMISSION_DENIED,
    ConflictError,
    RepositoryError,
    ValidationError,
)
from .models import ROOM_LABELS
from .repository import ReservationRepository
from .service import ReservationService
from .yaml_store import ReservationYamlRepository

REPOSITORY_STATUS = {
    KIND_NOT_FOUND: 404,
    KIND_PERMISSION_DENIED: 403,
}
EDITABLE_FIELDS = ("title", "description", "reserved_by", "room", "start", "end")


def create_app(
    data_dir: str | Path | None = None,
    now_provider: Callable[[], datetime] | None = None,
    settings: Settings | None = None,
    repository: ReservationRepository | None = None,
) -> Flask:
    app = Flask(__name__)
    settings = settings or load_settings()
    if repository is None:
        repository = ReservationYamlRepository(data_dir or settings.data_dir)
    service = ReservationService(repository, settings, clock=now_provider)
    app.extensions["reservation_service"] = service

    def _repository_error_response(error: RepositoryError) -> Any:
        status = REPOSITORY_STATUS.get(error.kind, 503)
        return jsonify({"ok": False, "kind": error.kind, "message": error.user_message}), status

    @app.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError) -> Any:
        return jsonify({"ok": False, "message": error.user_message, "errors": error.errors}), 400

    @app.errorhandler(ConflictError)
    def handle_conflict_error(error: ConflictError) -> Any:
        return (
            jsonify(
                {
                    "ok": False,
                    "message": error.user_message,
                    "conflicts": [record.to_dict() for record in error.conflicting],
                }
            ),
            409,
        )

    @app.errorhandler(RepositoryError)
    def handle_repository_error(error: RepositoryError) -> Any:
        return _repository_error_response(error)

    @app.after_request
    def add_cors_headers(response: Any) -> Any:
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = "GET,POST,OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response

    @app.get("/api/rooms")
    def list_rooms() -> Any:
        return jsonify({"ok": True, "rooms": [{"room": room, "label": label} for room, label in ROOM_LABELS.items()]})

    @app.get("/api/dashboard")
    def get_dashboard() -> Any:
        snapshot = service.load_dashboard()
        return jsonify({"ok": snapshot.error is None, **snapshot.to_dict()})

    @app.get("/api/reservations")
    def list_reservations() -> Any:
        day_text = str(request.args.get("date", "")).strip()
        if day_text:
            try:
                day = date.fromisoformat(day_text)
            except ValueError:
                return jsonify({"ok": False, "message": "Data inválida. Use o formato AAAA-MM-DD."}), 400
            result = service.fetch_today_reservations(
                datetime.combine(day, datetime.min.time(), tzinfo=settings.tzinfo)
            )
        else:
            result = service.fetch_reservations()

        payload: dict[str, Any] = {
            "ok": result.ok,
            "reservations": [record.to_dict() for record in result.reservations],
        }
        if result.error:
            payload["message"] = result.error
        return jsonify(payload)

    @app.post("/api/reservations")
    def create_reservation() -> Any:
        payload = request.get_json(silent=True) or {}
        created = service.create_reservation(payload)
        return jsonify({"ok": True, "message": "Reserva criada com sucesso!", "reservation": created.to_dict()}), 201

    @app.post("/api/reservations/update")
    def update_reservation() -> Any:
        payload = request.get_json(silent=True) or {}
        reservation_id = str(payload.get("reservation_id", "")).strip()
        if not reservation_id:
            return jsonify({"ok": False, "message": "reservation_id é obrigatório."}), 400

        changes = {key: payload[key] for key in EDITABLE_FIELDS if key in payload}
        updated = service.update_reservation(reservation_id, changes)
        return jsonify({"ok": True, "message": "Reserva atualizada com sucesso!", "reservation": updated.to_dict()})

    @app.post("/api/reservations/delete")
    def delete_reservation() -> Any:
        payload = request.get_json(silent=True) or {}
        reservation_id = str(payload.get("reservation_id", "")).strip()
        if not reservation_id:
            return jsonify({"ok": False, "message": "reservation_id é obrigatório."}), 400

        record = service.get_reservation(reservation_id)
        service.delete_reservation(reservation_id)
        return jsonify({"ok": True, "message": "Reserva excluída com sucesso!", "reservation": record.to_dict()})

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app = create_app()
    app.run(host="127.0.0.1", port=5000, debug=False)
