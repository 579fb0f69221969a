from .booking import can_reserve, conflicts, find_conflicts, has_time_overlap
from .config import Settings, load_settings
from .dashboard import DashboardSnapshot, build_dashboard, build_snapshot
from .errors import (
    ConflictError,
    RepositoryError,
    ReservationError,
    ValidationError,
    classify_repository_error,
)
from .models import ROOMS, NewReservation, ReservationChanges, ReservationRecord
from .repository import InMemoryReservationRepository, ReservationRepository
from .service import FetchResult, ReservationService
from .time_window import DayWindow, RoomView, classify_room, day_window
from .validation import validate_new_reservation, validate_reservation_changes
from .yaml_store import ReservationYamlRepository, generate_demo_reservations

__all__ = [
	"can_reserve",
	"conflicts",
	"find_conflicts",
	"has_time_overlap",
	"Settings",
	"load_settings",
	"DashboardSnapshot",
	"build_dashboard",
	"build_snapshot",
	"ConflictError",
	"RepositoryError",
	"ReservationError",
	"ValidationError",
	"classify_repository_error",
	"ROOMS",
	"NewReservation",
	"ReservationChanges",
	"ReservationRecord",
	"InMemoryReservationRepository",
	"ReservationRepository",
	"FetchResult",
	"ReservationService",
	"DayWindow",
	"RoomView",
	"classify_room",
	"day_window",
	"validate_new_reservation",
	"validate_reservation_changes",
	"ReservationYamlRepository",
	"generate_demo_reservations",
]
