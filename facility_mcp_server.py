from __future__ import annotations

from datetime import datetime
from typing import Any

from mcp.server.fastmcp import FastMCP

from facility_reservations import (
    Rejection,
    ReservationKind,
    ReservationLifecycle,
    ReservationRequest,
    ReservationYamlRepository,
    SchedulingEngine,
    StaticCatalog,
    TimeInterval,
    load_catalog,
)
from facility_reservations.config import get_settings
from facility_reservations.logger import configure_logging

mcp = FastMCP(
    "Facility Reservation MCP Server",
    instructions="Reserve sports facilities, cancel reservations and inspect facility schedules.",
    json_response=True,
)

SETTINGS = get_settings()
REPOSITORY = ReservationYamlRepository(SETTINGS.data_dir)
CATALOG = load_catalog(SETTINGS.catalog_file) if SETTINGS.catalog_file.exists() else StaticCatalog()
ENGINE = SchedulingEngine(REPOSITORY, CATALOG)
LIFECYCLE = ReservationLifecycle(REPOSITORY, publisher=ENGINE.publisher)


@mcp.resource("reservation://facilities")
async def list_facilities() -> list[dict[str, Any]]:
    """List facilities with their hourly rate and bookability."""
    return [resource.to_dict() for resource in CATALOG.list_resources()]


@mcp.tool()
def reserve_facility(
    resource_id: str,
    holder_id: str,
    start_iso: str,
    end_iso: str,
    kind: str = ReservationKind.FACILITY.value,
    assistant_id: str | None = None,
) -> dict[str, Any]:
    """Reserve a facility for a member; kind is FACILITY or TRAINING. Times are local, without a UTC offset."""
    outcome = ENGINE.reserve(
        ReservationRequest(
            resource_id=resource_id,
            holder_id=holder_id,
            start=datetime.fromisoformat(start_iso),
            end=datetime.fromisoformat(end_iso),
            kind=ReservationKind(kind.strip().upper()),
            assistant_id=assistant_id,
        )
    )
    if isinstance(outcome, Rejection):
        return {"ok": False, **outcome.to_dict()}
    return {"ok": True, "reservation": outcome.to_dict()}


@mcp.tool()
def cancel_reservation(reservation_id: str) -> dict[str, Any]:
    """Cancel a confirmed reservation. Fees are not refunded here."""
    outcome = LIFECYCLE.cancel(reservation_id)
    if isinstance(outcome, Rejection):
        return {"ok": False, **outcome.to_dict()}
    return {"ok": True, "reservation": outcome.to_dict()}


@mcp.tool()
def list_facility_reservations(resource_id: str, start_iso: str, end_iso: str) -> list[dict[str, Any]]:
    """Return reservations of any status on a facility that meet the given window."""
    window = TimeInterval(datetime.fromisoformat(start_iso), datetime.fromisoformat(end_iso))
    return [record.to_dict() for record in LIFECYCLE.find_overlapping(resource_id, window)]


def main() -> None:
    configure_logging(SETTINGS.log_level)
    mcp.run()


if __name__ == "__main__":
    main()
