"""
FastAPI dependencies for collaborators.

Every external collaborator is provided through a dependency so tests can
swap it with app.dependency_overrides.
"""
from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncIterator, Callable

import httpx
from fastapi import Depends

from marcheconnect.application.workflow_service import ApplicationWorkflowService
from marcheconnect.clients.nominatim_client import NominatimClient
from marcheconnect.config import settings
from marcheconnect.core.interfaces import IJustificationGenerator, INotifier
from marcheconnect.services.email_notifier import SmtpNotifier
from marcheconnect.services.geocoding_service import GeocodingBatchProcessor
from marcheconnect.services.justification_generator import TemplateJustificationGenerator


GeocodingProcessorFactory = Callable[[], AsyncContextManager[GeocodingBatchProcessor]]


def get_notifier() -> INotifier:
    return SmtpNotifier(settings)


def get_workflow_service(notifier: INotifier = Depends(get_notifier)) -> ApplicationWorkflowService:
    return ApplicationWorkflowService(notifier)


def get_justification_generator() -> IJustificationGenerator:
    return TemplateJustificationGenerator()


@asynccontextmanager
async def nominatim_processor() -> AsyncIterator[GeocodingBatchProcessor]:
    """Processor bound to an HTTP client that lives as long as the batch"""
    async with httpx.AsyncClient() as http_client:
        yield GeocodingBatchProcessor(
            NominatimClient(http_client, settings),
            delay_seconds=settings.geocode_delay_seconds,
            country=settings.geocoder_country,
        )


def get_geocoding_processor_factory() -> GeocodingProcessorFactory:
    """
    Returns a factory rather than a processor: the map stream outlives the
    request handler, so the HTTP client must be opened inside the stream.
    """
    return nominatim_processor
