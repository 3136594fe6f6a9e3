from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Callable

from flask import Flask, jsonify, request

from .catalog import StaticCatalog, load_catalog
from .config import DEFAULT_CATALOG_FILE, get_settings
from .errors import Rejection, RejectionKind, ReservationStorageError
from .events import EventPublisher
from .interval import TimeInterval
from .lifecycle import ReservationLifecycle
from .logger import configure_logging, get_logger
from .models import ReservationKind, ReservationRequest
from .scheduling import SchedulingEngine
from .yaml_store import ReservationYamlRepository

logger = get_logger(__name__)

REJECTION_STATUS_CODES = {
    RejectionKind.INVALID_INTERVAL: 400,
    RejectionKind.RESOURCE_UNAVAILABLE: 409,
    RejectionKind.SCHEDULING_CONFLICT: 409,
    RejectionKind.ALREADY_CANCELLED: 409,
    RejectionKind.NOT_FOUND: 404,
}


def create_app(
    data_dir: str | Path = "data",
    catalog: StaticCatalog | str | Path | None = None,
    now_provider: Callable[[], datetime] | None = None,
    publisher: EventPublisher | None = None,
) -> Flask:
    app = Flask(__name__)
    clock: Callable[[], datetime] = now_provider or datetime.now
    repository = ReservationYamlRepository(data_dir, now_provider=clock)
    resolved_catalog = _resolve_catalog(Path(data_dir), catalog)
    events = publisher or EventPublisher()
    engine = SchedulingEngine(repository, resolved_catalog, publisher=events, now_provider=clock)
    lifecycle = ReservationLifecycle(repository, publisher=events, now_provider=clock)

    app.extensions["facility_reservations"] = {"engine": engine, "lifecycle": lifecycle}

    @app.after_request
    def add_cors_headers(response: Any) -> Any:
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = "GET,POST,OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response

    @app.errorhandler(ReservationStorageError)
    def handle_storage_error(error: ReservationStorageError) -> Any:
        logger.error("Storage failure: %s", error)
        return jsonify({"ok": False, "message": "예약 저장소에 접근할 수 없습니다."}), 500

    @app.get("/api/facilities")
    def list_facilities() -> Any:
        return jsonify({"ok": True, "facilities": [resource.to_dict() for resource in resolved_catalog.list_resources()]})

    @app.get("/api/facilities/<resource_id>/reservations")
    def facility_reservations(resource_id: str) -> Any:
        try:
            window = TimeInterval(
                datetime.fromisoformat(str(request.args.get("start", ""))),
                datetime.fromisoformat(str(request.args.get("end", ""))),
            )
        except ValueError:
            return jsonify({"ok": False, "message": "start와 end는 올바른 ISO 시각이어야 하며 end가 start보다 늦어야 합니다."}), 400

        records = lifecycle.find_overlapping(resource_id, window)
        return jsonify(
            {
                "ok": True,
                "resource_id": resource_id,
                "window": window.to_dict(),
                "reservations": [record.to_dict() for record in records],
            }
        )

    @app.get("/api/reservations")
    def list_reservations() -> Any:
        holder_id = _optional_text(request.args.get("holder_id"))
        assistant_id = _optional_text(request.args.get("assistant_id"))
        records = lifecycle.reservations_for(holder_id=holder_id, assistant_id=assistant_id)
        return jsonify({"ok": True, "reservations": [record.to_dict() for record in records]})

    @app.get("/api/reservations/<reservation_id>")
    def get_reservation(reservation_id: str) -> Any:
        record = lifecycle.get(reservation_id)
        if record is None:
            return jsonify({"ok": False, "message": "예약을 찾지 못했습니다."}), 404
        return jsonify({"ok": True, "reservation": record.to_dict()})

    @app.post("/api/reservations")
    def create_reservation() -> Any:
        payload = request.get_json(silent=True) or {}
        try:
            reservation_request = _parse_request(payload)
        except ValueError as error:
            return jsonify({"ok": False, "message": str(error)}), 400

        outcome = engine.reserve(reservation_request)
        if isinstance(outcome, Rejection):
            return _rejection_response(outcome)
        return jsonify({"ok": True, "reservation": outcome.to_dict()}), 201

    @app.post("/api/reservations/quote")
    def quote_reservation() -> Any:
        payload = request.get_json(silent=True) or {}
        try:
            reservation_request = _parse_request(payload)
        except ValueError as error:
            return jsonify({"ok": False, "message": str(error)}), 400

        outcome = engine.quote(reservation_request)
        if isinstance(outcome, Rejection):
            return _rejection_response(outcome)
        return jsonify({"ok": True, "fees": outcome.to_dict()})

    @app.post("/api/reservations/<reservation_id>/cancel")
    def cancel_reservation(reservation_id: str) -> Any:
        outcome = lifecycle.cancel(reservation_id)
        if isinstance(outcome, Rejection):
            return _rejection_response(outcome)
        return jsonify({"ok": True, "reservation": outcome.to_dict()})

    return app


def _resolve_catalog(data_dir: Path, catalog: StaticCatalog | str | Path | None) -> StaticCatalog:
    if isinstance(catalog, StaticCatalog):
        return catalog
    if catalog is not None:
        return load_catalog(catalog)

    default_path = data_dir / DEFAULT_CATALOG_FILE
    if default_path.exists():
        return load_catalog(default_path)
    logger.warning("No catalog file at %s; no facilities are bookable.", default_path)
    return StaticCatalog()


def _parse_request(payload: dict[str, Any]) -> ReservationRequest:
    resource_id = _optional_text(payload.get("resource_id"))
    holder_id = _optional_text(payload.get("holder_id"))
    if not resource_id or not holder_id:
        raise ValueError("resource_id와 holder_id가 필요합니다.")

    kind_value = str(payload.get("kind", ReservationKind.FACILITY.value)).strip().upper()
    try:
        kind = ReservationKind(kind_value)
    except ValueError as error:
        raise ValueError(f"지원하지 않는 예약 종류입니다: {kind_value}") from error

    try:
        start = _optional_datetime(payload.get("start"))
        end = _optional_datetime(payload.get("end"))
    except ValueError as error:
        raise ValueError("start와 end는 ISO 형식의 시각이어야 합니다.") from error

    return ReservationRequest(
        resource_id=resource_id,
        holder_id=holder_id,
        start=start,
        end=end,
        kind=kind,
        assistant_id=_optional_text(payload.get("assistant_id")),
    )


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _optional_datetime(value: Any) -> datetime | None:
    if value is None or str(value).strip() == "":
        return None
    return datetime.fromisoformat(str(value))


def _rejection_response(rejection: Rejection) -> Any:
    return jsonify({"ok": False, **rejection.to_dict()}), REJECTION_STATUS_CODES[rejection.kind]


if __name__ == "__main__":
    settings = get_settings()
    configure_logging(settings.log_level)
    app = create_app(settings.data_dir, settings.catalog_file if settings.catalog_file.exists() else None)
    app.run(host="127.0.0.1", port=5000, debug=False)
