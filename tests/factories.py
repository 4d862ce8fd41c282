"""Builders and fakes shared by the test modules."""
from datetime import datetime, timezone
from typing import List, Optional

from marcheconnect.core.interfaces import INotifier, NotificationResult
from marcheconnect.domain.entities import Application, DetailedInfo, PriceConfig
from marcheconnect.domain.value_objects import ApplicationId, ApplicationStatus, TableTier


def make_details(**overrides) -> DetailedInfo:
    values = dict(
        id_document_url="uploads/id/marie-dupont.jpg",
        insurance_company="MAIF",
        insurance_policy_number="POL-123456",
        agreed_to_image_rights=True,
        agreed_to_terms=True,
        needs_electricity=False,
        sunday_lunch_count=0,
    )
    values.update(overrides)
    return DetailedInfo(**values)


def make_application(**overrides) -> Application:
    """
    Pending application by default.

    Passing a status with details (submitted_form2, validated) without
    detailed_info attaches a default details form; rejected gets a justification.
    """
    values = dict(
        id=ApplicationId.generate(),
        first_name="Marie",
        last_name="Dupont",
        email="marie.dupont@example.com",
        phone="0601020304",
        company_name="Les Bougies de Marie",
        product_description="Bougies artisanales parfumées",
        requested_tables=TableTier.ONE,
        address="12 rue des Lilas",
        city="Lyon",
        postal_code="69003",
    )
    values.update(overrides)

    status = ApplicationStatus(values.get("status", ApplicationStatus.PENDING))
    if status.has_details and "detailed_info" not in values:
        values["detailed_info"] = make_details()
    if status == ApplicationStatus.REJECTED and "rejection_justification" not in values:
        values["rejection_justification"] = "Manque de place"
    return Application(**values)


def make_config(market_year: int = 2026, **overrides) -> PriceConfig:
    values = dict(
        market_year=market_year,
        id=PriceConfig.id_for_year(market_year),
        created_at=datetime(market_year, 1, 1, tzinfo=timezone.utc),
    )
    values.update(overrides)
    return PriceConfig(**values)


class FakeNotifier(INotifier):
    """Records every send; fails every call when fail=True"""

    def __init__(self, fail: bool = False, raises: Optional[Exception] = None):
        self.fail = fail
        self.raises = raises
        self.sent: List[tuple] = []

    async def _record(self, kind: str, application: Application, payload=None) -> NotificationResult:
        self.sent.append((kind, application.id.value, payload))
        if self.raises is not None:
            raise self.raises
        if self.fail:
            return NotificationResult.failed("SMTP unavailable")
        return NotificationResult.ok()

    async def send_acceptance(self, application, message, config):
        return await self._record("acceptance", application, message)

    async def send_rejection(self, application, justification, config):
        return await self._record("rejection", application, justification)

    async def send_final_confirmation(self, application, detailed_info, config):
        return await self._record("final_confirmation", application, detailed_info)

    async def send_new_application(self, application, config):
        return await self._record("new_application", application)

    def kinds(self) -> List[str]:
        return [kind for kind, _, _ in self.sent]
