from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Any, Mapping

from .errors import ValidationError
from .models import ROOMS, NewReservation, ReservationChanges

TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500
RESERVED_BY_MAX_LENGTH = 50

MESSAGES = {
    "title_required": "Título é obrigatório",
    "title_too_long": f"Título deve ter menos de {TITLE_MAX_LENGTH} caracteres",
    "description_too_long": f"Descrição deve ter menos de {DESCRIPTION_MAX_LENGTH} caracteres",
    "reserved_by_required": "Nome é obrigatório",
    "reserved_by_too_long": f"Nome deve ter menos de {RESERVED_BY_MAX_LENGTH} caracteres",
    "room_required": "Sala é obrigatória",
    "start_required": "Hora de início é obrigatória",
    "end_required": "Hora de fim é obrigatória",
    "end_before_start": "Hora de fim deve ser após a hora de início",
    "mixed_timezones": "Início e fim devem usar o mesmo tipo de fuso horário",
}


def validate_new_reservation(payload: Mapping[str, Any], tz: tzinfo | None = None) -> NewReservation:
    errors: dict[str, str] = {}

    title = _check_text(payload.get("title"), "title", TITLE_MAX_LENGTH, errors)
    description = _check_description(payload.get("description"), errors)
    reserved_by = _check_text(payload.get("reserved_by"), "reserved_by", RESERVED_BY_MAX_LENGTH, errors)
    room = _check_room(payload.get("room"), errors)
    start = _check_datetime(payload.get("start"), "start", tz, errors)
    end = _check_datetime(payload.get("end"), "end", tz, errors)

    if start is not None and end is not None:
        _check_order(start, end, errors)

    if errors:
        raise ValidationError(errors)

    return NewReservation(
        title=title,
        start=start,
        end=end,
        reserved_by=reserved_by,
        room=room,
        description=description,
    )


def validate_reservation_changes(payload: Mapping[str, Any], tz: tzinfo | None = None) -> ReservationChanges:
    """Validate a partial update; only keys present in ``payload`` are checked.

    ``end > start`` is checked here only when both are supplied. The caller
    re-checks it once the changes are merged onto the stored record.
    """
    errors: dict[str, str] = {}

    title = reserved_by = room = description = None
    start = end = None
    clear_description = False

    if "title" in payload:
        title = _check_text(payload.get("title"), "title", TITLE_MAX_LENGTH, errors)
    if "description" in payload:
        description = _check_description(payload.get("description"), errors)
        clear_description = description is None and "description" not in errors
    if "reserved_by" in payload:
        reserved_by = _check_text(payload.get("reserved_by"), "reserved_by", RESERVED_BY_MAX_LENGTH, errors)
    if "room" in payload:
        room = _check_room(payload.get("room"), errors)
    if "start" in payload:
        start = _check_datetime(payload.get("start"), "start", tz, errors)
    if "end" in payload:
        end = _check_datetime(payload.get("end"), "end", tz, errors)

    if start is not None and end is not None:
        _check_order(start, end, errors)

    if errors:
        raise ValidationError(errors)

    return ReservationChanges(
        title=title,
        description=description,
        clear_description=clear_description,
        start=start,
        end=end,
        reserved_by=reserved_by,
        room=room,
    )


def ensure_time_order(start: datetime, end: datetime) -> None:
    errors: dict[str, str] = {}
    _check_order(start, end, errors)
    if errors:
        raise ValidationError(errors)


def _check_text(value: Any, field: str, max_length: int, errors: dict[str, str]) -> str:
    text = str(value).strip() if value is not None else ""
    if not text:
        errors[field] = MESSAGES[f"{field}_required"]
    elif len(text) > max_length:
        errors[field] = MESSAGES[f"{field}_too_long"]
    return text


def _check_description(value: Any, errors: dict[str, str]) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    if len(text) > DESCRIPTION_MAX_LENGTH:
        errors["description"] = MESSAGES["description_too_long"]
    return text or None


def _check_room(value: Any, errors: dict[str, str]) -> str:
    room = value if isinstance(value, str) else ""
    if room not in ROOMS:
        errors["room"] = MESSAGES["room_required"]
    return room


def _check_datetime(value: Any, field: str, tz: tzinfo | None, errors: dict[str, str]) -> datetime | None:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            errors[field] = MESSAGES[f"{field}_required"]
            return None
    else:
        errors[field] = MESSAGES[f"{field}_required"]
        return None

    if tz is not None:
        parsed = parsed.astimezone(tz) if parsed.tzinfo is not None else parsed.replace(tzinfo=tz)
    return parsed


def _check_order(start: datetime, end: datetime, errors: dict[str, str]) -> None:
    if (start.tzinfo is None) != (end.tzinfo is None):
        errors["end"] = MESSAGES["mixed_timezones"]
    elif end <= start:
        errors["end"] = MESSAGES["end_before_start"]
