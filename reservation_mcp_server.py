from __future__ import annotations

from pathlib import Path
from typing import Any

from mcp.server.fastmcp import FastMCP

from salinha import ReservationService, ReservationYamlRepository, load_settings
from salinha.models import ROOM_LABELS

mcp = FastMCP(
    "Salinha Reservation MCP Server",
    instructions="Expose room occupancy and reservation operations for the salinha and sede rooms.",
    json_response=True,
)

SETTINGS = load_settings()
DATA_DIR = Path(__file__).parent / SETTINGS.data_dir
SERVICE = ReservationService(ReservationYamlRepository(DATA_DIR), SETTINGS)


@mcp.resource("reservation://rooms")
async def list_rooms() -> list[str]:
    """List the rooms that can be reserved."""
    return list(ROOM_LABELS)


@mcp.tool()
def room_dashboard() -> dict[str, Any]:
    """Return today's occupancy for every room: current, upcoming and past reservations."""
    return SERVICE.load_dashboard().to_dict()


@mcp.tool()
def list_reservations(room: str | None = None) -> list[dict[str, str]]:
    """Return all reservations, optionally filtered by room."""
    records = SERVICE.list_reservations()
    return [record.to_dict() for record in records if room is None or record.room == room]


@mcp.tool()
def add_reservation(
    title: str,
    room: str,
    reserved_by: str,
    start_iso: str,
    end_iso: str,
    description: str | None = None,
) -> dict[str, str]:
    """Create a reservation using ISO timestamps; naive times use the configured timezone."""
    created = SERVICE.create_reservation(
        {
            "title": title,
            "room": room,
            "reserved_by": reserved_by,
            "start": start_iso,
            "end": end_iso,
            "description": description,
        }
    )
    return created.to_dict()


@mcp.tool()
def delete_reservation(reservation_id: str) -> dict[str, str]:
    """Delete a reservation by id and return the removed record."""
    record = SERVICE.get_reservation(reservation_id)
    SERVICE.delete_reservation(reservation_id)
    return record.to_dict()


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()
