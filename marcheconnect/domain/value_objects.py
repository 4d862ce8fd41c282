"""
Value Objects for the vendor application domain.

Value objects are immutable, self-validating, and enforce business rules.
They keep the small closed vocabularies of the market explicit:
- Application IDs (app_xxx)
- Application status (lifecycle state)
- Requested table tier ("1" or "2")
- Geographic coordinates
"""

import enum
import uuid
from dataclasses import dataclass


class ApplicationStatus(str, enum.Enum):
    """Lifecycle states of a vendor application"""
    PENDING = "pending"  # Submitted, waiting for committee review
    ACCEPTED_FORM1 = "accepted_form1"  # Accepted, waiting for the details form
    REJECTED = "rejected"  # Terminal
    SUBMITTED_FORM2 = "submitted_form2"  # Details form received
    VALIDATED = "validated"  # Terminal - confirmed exhibitor

    @property
    def has_details(self) -> bool:
        """Statuses in which the details form has been received"""
        return self in (ApplicationStatus.SUBMITTED_FORM2, ApplicationStatus.VALIDATED)

    @property
    def is_terminal(self) -> bool:
        return self in (ApplicationStatus.REJECTED, ApplicationStatus.VALIDATED)


class TableTier(str, enum.Enum):
    """Capacity requested by the vendor: one or two tables"""
    ONE = "1"
    TWO = "2"


@dataclass(frozen=True)
class ApplicationId:
    """
    Application ID value object.

    Format: app_{random_id}
    Example: app_89baed550ed9
    """

    value: str

    def __post_init__(self):
        if not self.value:
            raise ValueError("ApplicationId cannot be empty")
        if not self.value.startswith("app_"):
            raise ValueError(
                f"Invalid ApplicationId format: {self.value}. "
                f"Must start with 'app_' prefix."
            )
        if len(self.value) < 5:  # app_ + at least 1 char
            raise ValueError(f"ApplicationId too short: {self.value}")

    @classmethod
    def generate(cls) -> "ApplicationId":
        return cls(f"app_{uuid.uuid4().hex[:12]}")

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"ApplicationId('{self.value}')"


@dataclass(frozen=True)
class GeoPoint:
    """WGS84 coordinates"""

    latitude: float
    longitude: float

    def __post_init__(self):
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"Latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"Longitude out of range: {self.longitude}")

    def __str__(self) -> str:
        return f"({self.latitude:.5f}, {self.longitude:.5f})"
