"""
Core interfaces for the market application service.

The lifecycle engine, pricing and geocoding pipeline only talk to the
outside world through these narrow contracts:
- persistence (applications, price configurations)
- notifications (vendor / organizer emails)
- justification text generation
- geocoding
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from marcheconnect.domain.entities import Application, DetailedInfo, PriceConfig
    from marcheconnect.domain.value_objects import ApplicationId, ApplicationStatus


@dataclass(frozen=True)
class NotificationResult:
    """Outcome of a notification attempt - failures are reported, never raised"""
    success: bool
    error: Optional[str] = None

    @classmethod
    def ok(cls) -> "NotificationResult":
        return cls(success=True)

    @classmethod
    def failed(cls, error: str) -> "NotificationResult":
        return cls(success=False, error=error)


@dataclass(frozen=True)
class GeoMatch:
    """One candidate returned by the geocoding service"""
    latitude: float
    longitude: float
    display_name: Optional[str] = None


@dataclass(frozen=True)
class ApplicationFilter:
    """Criteria for listing applications"""
    market_configuration_id: Optional[str] = None
    status: Optional['ApplicationStatus'] = None
    search: Optional[str] = None  # Matches company name or contact name


class IApplicationRepository(ABC):
    """
    Interface for application storage and retrieval.

    Implementations must handle:
    - Application persistence with its details form
    - Overwriting the details form on re-submission
    """

    @abstractmethod
    async def add(self, application: 'Application') -> 'Application':
        """
        Save a new application.

        Raises:
            ValueError: If an application with the same ID already exists
        """
        pass

    @abstractmethod
    async def get_by_id(self, application_id: 'ApplicationId') -> Optional['Application']:
        """
        Get application by ID with its details form.

        Returns:
            Application if found, None otherwise
        """
        pass

    @abstractmethod
    async def update(self, application: 'Application') -> 'Application':
        """
        Persist the lifecycle fields of an existing application
        (status, justification, details form).

        Raises:
            ApplicationNotFoundError: If the application doesn't exist
        """
        pass

    @abstractmethod
    async def list(self, criteria: Optional[ApplicationFilter] = None) -> List['Application']:
        """List applications matching the criteria, newest first"""
        pass


class IPriceConfigRepository(ABC):
    """Interface for market configuration storage"""

    @abstractmethod
    async def list_all(self) -> List['PriceConfig']:
        """All configurations, highest market year first"""
        pass

    @abstractmethod
    async def get_by_id(self, config_id: str) -> Optional['PriceConfig']:
        """Get configuration by ID"""
        pass

    @abstractmethod
    async def save(self, config: 'PriceConfig') -> 'PriceConfig':
        """Insert or update a configuration"""
        pass


class INotifier(ABC):
    """
    Interface for vendor and organizer notifications.

    Every method reports failure through NotificationResult instead of raising.
    """

    @abstractmethod
    async def send_acceptance(
        self,
        application: 'Application',
        message: Optional[str],
        config: 'PriceConfig'
    ) -> NotificationResult:
        pass

    @abstractmethod
    async def send_rejection(
        self,
        application: 'Application',
        justification: str,
        config: 'PriceConfig'
    ) -> NotificationResult:
        pass

    @abstractmethod
    async def send_final_confirmation(
        self,
        application: 'Application',
        detailed_info: 'DetailedInfo',
        config: 'PriceConfig'
    ) -> NotificationResult:
        pass

    @abstractmethod
    async def send_new_application(
        self,
        application: 'Application',
        config: 'PriceConfig'
    ) -> NotificationResult:
        """Alert the organizer that a new application was submitted"""
        pass


class IJustificationGenerator(ABC):
    """Drafts rejection text from structured reasons"""

    @abstractmethod
    async def generate(self, applicant_name: str, summary: str, reasons: List[str]) -> str:
        """
        Raises:
            ValueError: If no reason is given
        """
        pass


class IGeocoder(ABC):
    """Resolves a free-text address to coordinates"""

    @abstractmethod
    async def lookup(self, query: str) -> List[GeoMatch]:
        """
        Returns:
            Zero or more matches, best first

        Raises:
            GeocodingAPIError: On network, HTTP or payload errors
        """
        pass
