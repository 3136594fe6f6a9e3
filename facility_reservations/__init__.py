from .interval import TimeInterval
from .models import (
	FacilityStatus,
	Reservation,
	ReservationKind,
	ReservationRequest,
	ReservationStatus,
	Resource,
	to_money,
)
from .fees import DEFAULT_FEE_SCHEDULE, FeeBreakdown, FeeSchedule, facility_fee, training_fee
from .errors import CatalogError, Rejection, RejectionKind, ReservationConflictError, ReservationStorageError
from .events import EventPublisher, ReservationCancelled, ReservationCreated
from .catalog import ResourceCatalog, StaticCatalog, load_catalog
from .repository import ReservationRepository
from .yaml_store import ReservationYamlRepository
from .scheduling import SchedulingEngine
from .lifecycle import ReservationLifecycle

__all__ = [
	"TimeInterval",
	"FacilityStatus",
	"Reservation",
	"ReservationKind",
	"ReservationRequest",
	"ReservationStatus",
	"Resource",
	"to_money",
	"DEFAULT_FEE_SCHEDULE",
	"FeeBreakdown",
	"FeeSchedule",
	"facility_fee",
	"training_fee",
	"CatalogError",
	"Rejection",
	"RejectionKind",
	"ReservationConflictError",
	"ReservationStorageError",
	"EventPublisher",
	"ReservationCancelled",
	"ReservationCreated",
	"ResourceCatalog",
	"StaticCatalog",
	"load_catalog",
	"ReservationRepository",
	"ReservationYamlRepository",
	"SchedulingEngine",
	"ReservationLifecycle",
]
