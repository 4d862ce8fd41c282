"""
Admin API - Committee review, edition settings, dashboard and map.

Every lifecycle action reports separately whether the status changed and
whether the notification went out, so a failed email can be re-sent with
POST /admin/applications/{id}/notifications/resend.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import BaseModel, Field
from typing import List, Optional
import asyncio
import json
import logging

from marcheconnect.api.dependencies import (
    GeocodingProcessorFactory,
    get_geocoding_processor_factory,
    get_justification_generator,
    get_workflow_service,
)
from marcheconnect.api.errors import parse_application_id, raise_for_domain_error
from marcheconnect.api.schemas import (
    ApplicationResponse,
    PriceConfigPayload,
    PriceConfigResponse,
    TransitionResponse,
)
from marcheconnect.application.workflow_service import ApplicationWorkflowService
from marcheconnect.core.interfaces import IJustificationGenerator
from marcheconnect.db.connection import get_db_session
from marcheconnect.domain.entities import ApplicationNotFoundError, DomainError, PriceConfig
from marcheconnect.domain.unit_of_work import get_unit_of_work
from marcheconnect.domain.value_objects import ApplicationStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin")


# ============================================
# Pydantic Models
# ============================================

class AcceptRequest(BaseModel):
    message: Optional[str] = Field(None, max_length=5000, description="Personal message added to the email")


class RejectRequest(BaseModel):
    justification: str = Field(..., max_length=10000, description="Sent to the vendor and stored")


class JustificationRequest(BaseModel):
    application_id: str
    reasons: List[str] = Field(..., min_length=1, description="e.g. 'Manque de place'")


class JustificationResponse(BaseModel):
    justification_message: str


class StatsResponse(BaseModel):
    config_id: Optional[str]
    market_year: int
    total: int
    pending: int
    accepted: int
    rejected: int
    submitted: int
    validated: int
    revenue: int = Field(..., description="Whole euros, submitted and validated applications")


# ============================================
# Helpers
# ============================================

def _sse(event: str, data: dict) -> str:
    return f"data: {json.dumps({'event': event, 'data': data})}\n\n"


# ============================================
# Applications
# ============================================

@router.get("/applications", response_model=List[ApplicationResponse])
async def list_applications(
    config_id: Optional[str] = Query(None, description="Edition (defaults to the current one)"),
    status_filter: Optional[ApplicationStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None, description="Company or contact name"),
    db: AsyncSession = Depends(get_db_session),
    service: ApplicationWorkflowService = Depends(get_workflow_service)
):
    """List the applications of an edition, newest first"""
    uow = get_unit_of_work(db)
    config = await service.resolve_config(uow, config_id)
    applications = await service.list_applications(uow, config, status=status_filter, search=search)
    return [ApplicationResponse.from_domain(application, config) for application in applications]


@router.get("/applications/{application_id}", response_model=ApplicationResponse)
async def get_application(
    application_id: str,
    db: AsyncSession = Depends(get_db_session),
    service: ApplicationWorkflowService = Depends(get_workflow_service)
):
    uow = get_unit_of_work(db)
    app_id = parse_application_id(application_id)
    application = await uow.applications.get_by_id(app_id)
    if application is None:
        raise_for_domain_error(ApplicationNotFoundError(app_id))

    config = await service.resolve_config(uow, application.market_configuration_id)
    return ApplicationResponse.from_domain(application, config)


@router.post("/applications/{application_id}/accept", response_model=TransitionResponse)
async def accept_application(
    application_id: str,
    request: AcceptRequest,
    db: AsyncSession = Depends(get_db_session),
    service: ApplicationWorkflowService = Depends(get_workflow_service)
):
    """pending → accepted_form1, sends the acceptance email with the details form link"""
    uow = get_unit_of_work(db)
    try:
        outcome = await service.accept(uow, parse_application_id(application_id), request.message)
    except DomainError as e:
        raise_for_domain_error(e)
    return TransitionResponse.from_outcome(outcome)


@router.post("/applications/{application_id}/reject", response_model=TransitionResponse)
async def reject_application(
    application_id: str,
    request: RejectRequest,
    db: AsyncSession = Depends(get_db_session),
    service: ApplicationWorkflowService = Depends(get_workflow_service)
):
    """pending → rejected, stores the justification and emails it"""
    uow = get_unit_of_work(db)
    try:
        outcome = await service.reject(uow, parse_application_id(application_id), request.justification)
    except DomainError as e:
        raise_for_domain_error(e)
    return TransitionResponse.from_outcome(outcome)


@router.post("/applications/{application_id}/validate", response_model=TransitionResponse)
async def validate_application(
    application_id: str,
    db: AsyncSession = Depends(get_db_session),
    service: ApplicationWorkflowService = Depends(get_workflow_service)
):
    """submitted_form2 → validated (no email)"""
    uow = get_unit_of_work(db)
    try:
        outcome = await service.validate(uow, parse_application_id(application_id))
    except DomainError as e:
        raise_for_domain_error(e)
    return TransitionResponse.from_outcome(outcome)


@router.post("/applications/{application_id}/notifications/resend", response_model=TransitionResponse)
async def resend_notification(
    application_id: str,
    db: AsyncSession = Depends(get_db_session),
    service: ApplicationWorkflowService = Depends(get_workflow_service)
):
    """Re-send the email matching the current status, status unchanged"""
    uow = get_unit_of_work(db)
    try:
        outcome = await service.resend_notification(uow, parse_application_id(application_id))
    except DomainError as e:
        raise_for_domain_error(e)
    return TransitionResponse.from_outcome(outcome)


@router.post("/rejection-justification", response_model=JustificationResponse)
async def draft_rejection_justification(
    request: JustificationRequest,
    db: AsyncSession = Depends(get_db_session),
    generator: IJustificationGenerator = Depends(get_justification_generator)
):
    """Draft a rejection text from reason tags, to pre-fill the reject dialog"""
    uow = get_unit_of_work(db)
    app_id = parse_application_id(request.application_id)
    application = await uow.applications.get_by_id(app_id)
    if application is None:
        raise_for_domain_error(ApplicationNotFoundError(app_id))

    try:
        text = await generator.generate(
            application.full_name,
            application.product_description,
            request.reasons,
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return JustificationResponse(justification_message=text)


# ============================================
# Dashboard
# ============================================

@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    config_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db_session),
    service: ApplicationWorkflowService = Depends(get_workflow_service)
):
    """Counts per status and expected revenue of an edition"""
    uow = get_unit_of_work(db)
    config = await service.resolve_config(uow, config_id)
    stats = await service.dashboard_stats(uow, config.id)
    return StatsResponse(config_id=config.id, market_year=config.market_year, **stats.to_dict())


@router.get("/map/stream")
async def stream_map_markers(
    config_id: Optional[str] = Query(None),
    status_filter: Optional[ApplicationStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db_session),
    service: ApplicationWorkflowService = Depends(get_workflow_service),
    processor_factory: GeocodingProcessorFactory = Depends(get_geocoding_processor_factory)
):
    """
    Server-Sent Events stream of map markers.

    Events:
    - marker: one geocoded application, as soon as it is resolved
    - done: end of batch with the number of markers sent

    Lookups are paced at one per second; closing the connection stops the batch.
    """
    uow = get_unit_of_work(db)
    config = await service.resolve_config(uow, config_id)
    applications = await service.list_applications(uow, config, status=status_filter)
    logger.info(f"🗺️  Map stream requested for {len(applications)} application(s)")

    async def event_generator():
        sent = 0
        try:
            async with processor_factory() as processor:
                async for result in processor.geocode_all(applications):
                    sent += 1
                    application = result.application
                    yield _sse("marker", {
                        "application_id": application.id.value,
                        "company_name": application.company_name,
                        "contact": application.full_name,
                        "city": application.city,
                        "postal_code": application.postal_code,
                        "status": application.status.value,
                        "lat": result.latitude,
                        "lon": result.longitude,
                    })
            yield _sse("done", {"markers": sent})
        except asyncio.CancelledError:
            logger.info(f"Map stream cancelled after {sent} marker(s)")
            raise

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        }
    )


# ============================================
# Edition settings
# ============================================

@router.get("/configs", response_model=List[PriceConfigResponse])
async def list_configs(db: AsyncSession = Depends(get_db_session)):
    """All editions, most recent first"""
    uow = get_unit_of_work(db)
    configs = await uow.price_configs.list_all()
    return [PriceConfigResponse.from_domain(config) for config in configs]


@router.get("/configs/current", response_model=PriceConfigResponse)
async def get_current_config(
    config_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db_session),
    service: ApplicationWorkflowService = Depends(get_workflow_service)
):
    """Edition used by the dashboard (built-in default when none is configured)"""
    uow = get_unit_of_work(db)
    return PriceConfigResponse.from_domain(await service.resolve_config(uow, config_id))


@router.put("/configs", response_model=PriceConfigResponse)
async def save_config(
    request: PriceConfigPayload,
    config_id: Optional[str] = Query(None, description="Existing edition to update"),
    db: AsyncSession = Depends(get_db_session)
):
    """
    Create or update an edition and make it the current one.

    The ID defaults to "config-{market_year}".
    """
    uow = get_unit_of_work(db)
    try:
        config: PriceConfig = request.to_domain(config_id)
        saved = await uow.price_configs.save(config)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return PriceConfigResponse.from_domain(saved)
