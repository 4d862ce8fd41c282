"""
Domain Entities - Rich business objects with identity and lifecycle.

Entities differ from value objects in that they have:
- Identity (tracked by ID, not by value)
- Mutable state (can change over time)
- Business logic (methods that enforce invariants)

The Application entity is an aggregate root - it owns its DetailedInfo.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from .value_objects import ApplicationId, ApplicationStatus, GeoPoint, TableTier


MAX_SUNDAY_LUNCH_COUNT = 6  # Meal trays per booth


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class DetailedInfo:
    """
    Logistics and payment declaration - part of Application aggregate.

    Submitted by the vendor once the application has been accepted.
    A re-submission replaces the previous declaration as a whole.
    """

    id_document_url: str  # Reference to the uploaded identity document image
    insurance_company: str
    insurance_policy_number: str
    agreed_to_image_rights: bool
    agreed_to_terms: bool
    needs_electricity: bool = False
    needs_grid: bool = False  # Display grid
    sunday_lunch_count: int = 0
    tombola_lot: bool = False
    tombola_lot_description: Optional[str] = None
    siret: Optional[str] = None  # Tax id, only for registered businesses
    additional_comments: Optional[str] = None
    submitted_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self):
        """Validate business rules"""
        if isinstance(self.sunday_lunch_count, bool) or not isinstance(self.sunday_lunch_count, int):
            raise ValueError(
                f"sunday_lunch_count must be an integer, got {self.sunday_lunch_count!r}"
            )
        if not 0 <= self.sunday_lunch_count <= MAX_SUNDAY_LUNCH_COUNT:
            raise ValueError(
                f"Invalid sunday_lunch_count: {self.sunday_lunch_count}. "
                f"Must be between 0 and {MAX_SUNDAY_LUNCH_COUNT}."
            )

        if not self.id_document_url:
            raise ValueError("An identity document is required")

        if len((self.insurance_company or "").strip()) < 2:
            raise ValueError("Insurance company name is required")
        if len((self.insurance_policy_number or "").strip()) < 5:
            raise ValueError("Insurance policy number is required (min 5 characters)")

        # Both consents are mandatory
        if self.agreed_to_image_rights is not True or self.agreed_to_terms is not True:
            raise ValueError("Image rights and terms must both be accepted")

        if not self.tombola_lot:
            self.tombola_lot_description = None


@dataclass
class PriceConfig:
    """
    Per-edition market configuration (one per market year).

    Prices are whole euros.
    """

    market_year: int
    edition_number: str = ""  # Display label, e.g. "6ème"
    price_table1: int = 40
    price_table2: int = 60
    price_meal: int = 8
    price_electricity: int = 1
    current_market: bool = False
    notification_email: Optional[str] = None
    poster_image_url: Optional[str] = None
    id: Optional[str] = None  # None for the built-in default (not persisted)
    created_at: Optional[datetime] = None

    def __post_init__(self):
        for name in ("price_table1", "price_table2", "price_meal", "price_electricity"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"{name} must be a non-negative integer, got {value!r}")

    @staticmethod
    def id_for_year(market_year: int) -> str:
        """Conventional ID of the configuration of a given edition"""
        return f"config-{market_year}"

    def __repr__(self) -> str:
        current = ", current" if self.current_market else ""
        return f"PriceConfig(id={self.id}, year={self.market_year}{current})"


@dataclass
class Application:
    """
    Vendor application aggregate root.

    Invariants (business rules enforced by domain model):
    1. status is one of ApplicationStatus
    2. detailed_info is present iff status is submitted_form2 or validated
    3. rejection_justification is present iff status is rejected

    Status only changes through marcheconnect.domain.lifecycle.
    """

    # Identity
    id: ApplicationId

    # Contact
    first_name: str
    last_name: str
    email: str
    phone: str

    # Booth
    company_name: str
    product_description: str
    requested_tables: TableTier

    # Address (used for the admin map)
    address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None

    website_url: Optional[str] = None
    is_registered: bool = False  # Registered business or association

    # Lifecycle
    status: ApplicationStatus = ApplicationStatus.PENDING
    rejection_justification: Optional[str] = None
    detailed_info: Optional[DetailedInfo] = None

    # Edition this application belongs to
    market_configuration_id: Optional[str] = None

    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self):
        """Validate business rules"""
        self.status = ApplicationStatus(self.status)
        self.requested_tables = TableTier(self.requested_tables)

        if self.status.has_details and self.detailed_info is None:
            raise ValueError(
                f"Application {self.id} in status {self.status.value} "
                f"must carry detailed_info"
            )
        if not self.status.has_details and self.detailed_info is not None:
            raise ValueError(
                f"Application {self.id} in status {self.status.value} "
                f"cannot carry detailed_info"
            )

        if self.status == ApplicationStatus.REJECTED and not self.rejection_justification:
            raise ValueError(f"Rejected application {self.id} must carry a justification")
        if self.status != ApplicationStatus.REJECTED and self.rejection_justification:
            raise ValueError(
                f"Only rejected applications carry a justification "
                f"(application {self.id} is {self.status.value})"
            )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_billable(self) -> bool:
        """True once the details form has been received"""
        return self.status.has_details

    @property
    def sunday_lunch_count(self) -> int:
        return self.detailed_info.sunday_lunch_count if self.detailed_info else 0

    @property
    def needs_electricity(self) -> bool:
        return self.detailed_info.needs_electricity if self.detailed_info else False

    @property
    def has_city(self) -> bool:
        return bool(self.city and self.city.strip())

    def __repr__(self) -> str:
        return (
            f"Application(id={self.id}, company={self.company_name!r}, "
            f"status={self.status.value})"
        )


@dataclass(frozen=True)
class GeocodeResult:
    """An application paired with its resolved coordinates (map marker)"""

    application: Application
    point: GeoPoint

    @property
    def latitude(self) -> float:
        return self.point.latitude

    @property
    def longitude(self) -> float:
        return self.point.longitude


# Domain exceptions

class DomainError(Exception):
    """Base exception for domain layer errors"""
    pass


class InvalidTransition(DomainError):
    """Raised when an event is not legal from the application's current status"""

    def __init__(self, application_id: ApplicationId, status: ApplicationStatus, event: str):
        self.application_id = application_id
        self.status = status
        self.event = event
        super().__init__(
            f"Cannot {event} application {application_id}: "
            f"status is {status.value}"
        )


class InvalidInput(DomainError):
    """Raised when the input required by a transition is missing or malformed"""

    def __init__(self, message: str, field_name: Optional[str] = None):
        self.field_name = field_name
        super().__init__(message)


class ApplicationNotFoundError(DomainError):
    """Raised when application doesn't exist"""

    def __init__(self, application_id: ApplicationId):
        self.application_id = application_id
        super().__init__(f"Application {application_id} not found")
