from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from typing import Any, Iterable, Protocol

import yaml

from .errors import CatalogError
from .models import FacilityStatus, Resource, to_money


class ResourceCatalog(Protocol):
    def get_resource(self, resource_id: str) -> Resource | None: ...

    def get_assistant_rate(self, assistant_id: str) -> Decimal | None: ...


class StaticCatalog:
    """Read-only facility and coach-rate lookup held in memory."""

    def __init__(
        self,
        resources: Iterable[Resource] = (),
        assistant_rates: dict[str, Decimal | None] | None = None,
    ) -> None:
        self._resources = {resource.resource_id: resource for resource in resources}
        self._assistant_rates = dict(assistant_rates or {})

    def get_resource(self, resource_id: str) -> Resource | None:
        return self._resources.get(resource_id)

    def get_assistant_rate(self, assistant_id: str) -> Decimal | None:
        return self._assistant_rates.get(assistant_id)

    def list_resources(self) -> list[Resource]:
        return sorted(self._resources.values(), key=lambda resource: resource.resource_id)

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "StaticCatalog":
        facilities = data.get("facilities") or []
        coaches = data.get("coaches") or []
        if not isinstance(facilities, list) or not isinstance(coaches, list):
            raise CatalogError("catalog 'facilities' and 'coaches' must be lists")

        resources: list[Resource] = []
        for index, row in enumerate(facilities):
            if not isinstance(row, dict) or row.get("id") is None:
                raise CatalogError(f"facility entry #{index} must be a mapping with an 'id'")
            status_value = str(row.get("status", FacilityStatus.AVAILABLE.value)).strip().upper()
            try:
                status = FacilityStatus(status_value)
                resources.append(
                    Resource(
                        resource_id=str(row["id"]),
                        name=(str(row["name"]) if row.get("name") is not None else None),
                        hourly_rate=to_money(str(row.get("hourly_rate", "0"))),
                        is_bookable=status is FacilityStatus.AVAILABLE,
                    )
                )
            except ValueError as error:
                raise CatalogError(f"facility entry #{index} is invalid: {error}") from error

        assistant_rates: dict[str, Decimal | None] = {}
        for index, row in enumerate(coaches):
            if not isinstance(row, dict) or row.get("id") is None:
                raise CatalogError(f"coach entry #{index} must be a mapping with an 'id'")
            rate = row.get("hourly_rate")
            try:
                assistant_rates[str(row["id"])] = to_money(str(rate)) if rate is not None else None
            except ValueError as error:
                raise CatalogError(f"coach entry #{index} is invalid: {error}") from error

        return StaticCatalog(resources, assistant_rates)


def load_catalog(path: str | Path) -> StaticCatalog:
    catalog_path = Path(path)
    try:
        payload = yaml.safe_load(catalog_path.read_text(encoding="utf-8"))
    except FileNotFoundError as error:
        raise CatalogError(f"Catalog file not found: {catalog_path}") from error
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as error:
        raise CatalogError(f"Failed to read catalog file: {catalog_path}") from error

    if payload is None:
        return StaticCatalog()
    if not isinstance(payload, dict):
        raise CatalogError("top-level catalog YAML must be a mapping")
    return StaticCatalog.from_dict(payload)
