"""
Public API - Vendor Application Endpoints

Used by the public registration form and by the details form link sent in
the acceptance email.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import BaseModel, EmailStr, Field
from typing import Optional
import logging

from marcheconnect.api.dependencies import get_workflow_service
from marcheconnect.api.errors import raise_for_domain_error, parse_application_id
from marcheconnect.api.schemas import DetailedInfoPayload, DetailedInfoResponse, TransitionResponse
from marcheconnect.application.workflow_service import ApplicationWorkflowService
from marcheconnect.db.connection import get_db_session
from marcheconnect.domain.entities import Application, DomainError, InvalidInput
from marcheconnect.domain.unit_of_work import get_unit_of_work
from marcheconnect.domain.value_objects import ApplicationId, ApplicationStatus, TableTier

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================
# Pydantic Models
# ============================================

class SubmitApplicationRequest(BaseModel):
    """Public registration form"""
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: str = Field(..., min_length=10, max_length=50)
    company_name: str = Field(..., min_length=2, max_length=200)
    product_description: str = Field(..., min_length=10)
    requested_tables: TableTier
    address: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)
    website_url: Optional[str] = Field(None, max_length=500)
    is_registered: bool = False
    market_configuration_id: Optional[str] = Field(
        None, description="Edition applied to (defaults to the current edition)"
    )


class SubmitApplicationResponse(BaseModel):
    application_id: str
    status: ApplicationStatus


class DetailsFormResponse(BaseModel):
    """What the vendor sees when opening the details form link"""
    application_id: str
    company_name: str
    status: ApplicationStatus
    requested_tables: TableTier
    detailed_info: Optional[DetailedInfoResponse] = None  # Prefill on re-submission


# Details form is only reachable once accepted
DETAILS_FORM_STATUSES = {ApplicationStatus.ACCEPTED_FORM1, ApplicationStatus.SUBMITTED_FORM2}


# ============================================
# Endpoints
# ============================================

@router.post("/applications", response_model=SubmitApplicationResponse, status_code=status.HTTP_201_CREATED)
async def submit_application(
    request: SubmitApplicationRequest,
    db: AsyncSession = Depends(get_db_session),
    service: ApplicationWorkflowService = Depends(get_workflow_service)
):
    """
    Submit a new vendor application.

    The application starts in pending status; the organizer is alerted by email.
    """
    logger.info(f"New application request from {request.company_name}")

    application = Application(
        id=ApplicationId.generate(),
        first_name=request.first_name.strip(),
        last_name=request.last_name.strip(),
        email=str(request.email),
        phone=request.phone.strip(),
        company_name=request.company_name.strip(),
        product_description=request.product_description.strip(),
        requested_tables=request.requested_tables,
        address=request.address,
        city=request.city,
        postal_code=request.postal_code,
        website_url=request.website_url,
        is_registered=request.is_registered,
        market_configuration_id=request.market_configuration_id,
    )

    uow = get_unit_of_work(db)
    try:
        saved = await service.submit_application(uow, application)
    except DomainError as e:
        raise_for_domain_error(e)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return SubmitApplicationResponse(application_id=saved.id.value, status=saved.status)


@router.get("/applications/{application_id}/details", response_model=DetailsFormResponse)
async def get_details_form(
    application_id: str,
    db: AsyncSession = Depends(get_db_session)
):
    """
    Open the details form.

    Only accepted applications (or already submitted ones, for corrections)
    have a details form; anything else is reported as not found.
    """
    uow = get_unit_of_work(db)
    application = await uow.applications.get_by_id(parse_application_id(application_id))

    if application is None or application.status not in DETAILS_FORM_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No details form available for this application"
        )

    details = application.detailed_info
    return DetailsFormResponse(
        application_id=application.id.value,
        company_name=application.company_name,
        status=application.status,
        requested_tables=application.requested_tables,
        detailed_info=DetailedInfoResponse.from_domain(details) if details else None,
    )


@router.post("/applications/{application_id}/details", response_model=TransitionResponse)
async def submit_details_form(
    application_id: str,
    payload: DetailedInfoPayload,
    db: AsyncSession = Depends(get_db_session),
    service: ApplicationWorkflowService = Depends(get_workflow_service)
):
    """
    Submit (or re-submit) the details form.

    Moves the application to submitted_form2 and sends the confirmation email.
    """
    uow = get_unit_of_work(db)
    try:
        try:
            details = payload.to_domain()
        except ValueError as e:
            raise InvalidInput(str(e), field_name="detailed_info") from e

        outcome = await service.submit_details(uow, parse_application_id(application_id), details)
    except DomainError as e:
        raise_for_domain_error(e)

    return TransitionResponse.from_outcome(outcome)
