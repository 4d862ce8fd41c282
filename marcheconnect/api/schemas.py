"""
Pydantic models shared by the public and admin routers.

Input bounds (meal count, tier, required fields) are enforced here, before
anything reaches the domain layer.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from marcheconnect.application.workflow_service import TransitionOutcome
from marcheconnect.domain.entities import MAX_SUNDAY_LUNCH_COUNT, Application, DetailedInfo, PriceConfig
from marcheconnect.domain.pricing import compute_total
from marcheconnect.domain.value_objects import ApplicationStatus, TableTier


class DetailedInfoPayload(BaseModel):
    """Details form (logistics and payment)"""
    siret: Optional[str] = Field(None, max_length=20, description="Tax id, registered businesses only")
    id_document_url: str = Field(..., min_length=1, description="Uploaded identity document image")
    needs_electricity: bool = False
    needs_grid: bool = False
    sunday_lunch_count: int = Field(0, ge=0, le=MAX_SUNDAY_LUNCH_COUNT)
    tombola_lot: bool = False
    tombola_lot_description: Optional[str] = None
    insurance_company: str = Field(..., min_length=2)
    insurance_policy_number: str = Field(..., min_length=5)
    agreed_to_image_rights: bool
    agreed_to_terms: bool
    additional_comments: Optional[str] = None

    def to_domain(self) -> DetailedInfo:
        """
        Raises:
            ValueError: If a business rule is violated (e.g. consent missing)
        """
        return DetailedInfo(**self.model_dump())


class DetailedInfoResponse(DetailedInfoPayload):
    submitted_at: datetime

    @classmethod
    def from_domain(cls, details: DetailedInfo) -> "DetailedInfoResponse":
        return cls(
            siret=details.siret,
            id_document_url=details.id_document_url,
            needs_electricity=details.needs_electricity,
            needs_grid=details.needs_grid,
            sunday_lunch_count=details.sunday_lunch_count,
            tombola_lot=details.tombola_lot,
            tombola_lot_description=details.tombola_lot_description,
            insurance_company=details.insurance_company,
            insurance_policy_number=details.insurance_policy_number,
            agreed_to_image_rights=details.agreed_to_image_rights,
            agreed_to_terms=details.agreed_to_terms,
            additional_comments=details.additional_comments,
            submitted_at=details.submitted_at,
        )


class ApplicationResponse(BaseModel):
    """Application as shown to admins"""
    id: str
    status: ApplicationStatus
    first_name: str
    last_name: str
    email: str
    phone: str
    company_name: str
    product_description: str
    requested_tables: TableTier
    address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    website_url: Optional[str] = None
    is_registered: bool
    rejection_justification: Optional[str] = None
    market_configuration_id: Optional[str] = None
    created_at: datetime
    detailed_info: Optional[DetailedInfoResponse] = None
    total_due: int = Field(0, description="Whole euros, 0 until the details form is received")

    @classmethod
    def from_domain(cls, application: Application, config: PriceConfig) -> "ApplicationResponse":
        details = application.detailed_info
        return cls(
            id=application.id.value,
            status=application.status,
            first_name=application.first_name,
            last_name=application.last_name,
            email=application.email,
            phone=application.phone,
            company_name=application.company_name,
            product_description=application.product_description,
            requested_tables=application.requested_tables,
            address=application.address,
            city=application.city,
            postal_code=application.postal_code,
            website_url=application.website_url,
            is_registered=application.is_registered,
            rejection_justification=application.rejection_justification,
            market_configuration_id=application.market_configuration_id,
            created_at=application.created_at,
            detailed_info=DetailedInfoResponse.from_domain(details) if details else None,
            total_due=compute_total(application, config),
        )


class TransitionResponse(BaseModel):
    """
    Result of a lifecycle action.

    status_changed and notification_sent are independent: a failed
    notification can be re-sent without repeating the action.
    """
    application: ApplicationResponse
    from_status: ApplicationStatus
    to_status: ApplicationStatus
    status_changed: bool
    notification_sent: Optional[bool] = Field(None, description="null when the action sends nothing")
    notification_error: Optional[str] = None

    @classmethod
    def from_outcome(cls, outcome: TransitionOutcome) -> "TransitionResponse":
        return cls(
            application=ApplicationResponse.from_domain(outcome.application, outcome.config),
            from_status=outcome.from_status,
            to_status=outcome.to_status,
            status_changed=outcome.status_changed,
            notification_sent=outcome.notification_sent,
            notification_error=outcome.notification.error if outcome.notification else None,
        )


class PriceConfigPayload(BaseModel):
    """Edition configuration, as edited in the admin settings"""
    market_year: int = Field(..., ge=2000, le=2100)
    edition_number: str = Field("", max_length=50)
    price_table1: int = Field(40, ge=0)
    price_table2: int = Field(60, ge=0)
    price_meal: int = Field(8, ge=0)
    price_electricity: int = Field(1, ge=0)
    notification_email: Optional[str] = None
    poster_image_url: Optional[str] = None

    def to_domain(self, config_id: Optional[str] = None) -> PriceConfig:
        # Saving from the admin settings makes the edition current
        return PriceConfig(id=config_id, current_market=True, **self.model_dump())


class PriceConfigResponse(PriceConfigPayload):
    id: Optional[str] = Field(None, description="null for the built-in default")
    current_market: bool
    created_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, config: PriceConfig) -> "PriceConfigResponse":
        return cls(
            id=config.id,
            market_year=config.market_year,
            edition_number=config.edition_number,
            price_table1=config.price_table1,
            price_table2=config.price_table2,
            price_meal=config.price_meal,
            price_electricity=config.price_electricity,
            notification_email=config.notification_email,
            poster_image_url=config.poster_image_url,
            current_market=config.current_market,
            created_at=config.created_at,
        )
