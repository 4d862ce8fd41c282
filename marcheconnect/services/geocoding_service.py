"""
Geocoding batch processor for the admin map.

Resolves the address of each application to coordinates, one lookup at a
time, with a fixed pause between consecutive lookups (Nominatim allows one
request per second). Results are yielded as soon as they are resolved so a
caller can render a partial map; a failed lookup only drops that marker.
"""
import asyncio
import logging
from typing import AsyncIterator, Awaitable, Callable, Iterable, Optional

from marcheconnect.core.interfaces import IGeocoder
from marcheconnect.domain.entities import Application, GeocodeResult
from marcheconnect.domain.value_objects import GeoPoint

logger = logging.getLogger(__name__)


def build_geocode_query(application: Application, country: Optional[str] = None) -> str:
    """
    Build the free-text query for an application's address.

    Format: "{address}, {city}, {postal_code}, {country}" - empty parts are left out.
    """
    parts = [application.address, application.city, application.postal_code, country]
    return ", ".join(part.strip() for part in parts if part and part.strip())


class GeocodingBatchProcessor:
    """
    Serialized, throttled geocoding of a batch of applications.

    Usage:
        processor = GeocodingBatchProcessor(geocoder, delay_seconds=1.0)
        async for result in processor.geocode_all(applications):
            render_marker(result)

    The consumer can stop early: breaking out of the loop, closing the
    generator or cancelling the task abandons the remaining lookups.
    """

    def __init__(
        self,
        geocoder: IGeocoder,
        delay_seconds: float = 1.0,
        country: Optional[str] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        """
        Args:
            geocoder: Lookup collaborator
            delay_seconds: Pause between two consecutive lookups
            country: Appended to every query (e.g. "France")
            sleep: Suspension function, injectable for tests
        """
        if delay_seconds < 0:
            raise ValueError("delay_seconds cannot be negative")
        self._geocoder = geocoder
        self._delay_seconds = delay_seconds
        self._country = country
        self._sleep = sleep

    async def geocode_all(self, applications: Iterable[Application]) -> AsyncIterator[GeocodeResult]:
        """
        Yield one GeocodeResult per application that could be located.

        - Applications without a city are skipped without a lookup (and without delay)
        - Lookups never overlap; every lookup after the first waits delay_seconds,
          whatever happened to the previous one
        - Lookup failures and empty answers are logged and skipped
        """
        attempts = 0
        located = 0

        for application in applications:
            if not application.has_city:
                logger.debug(f"Skipping {application.id}: no city")
                continue

            if attempts > 0:
                await self._sleep(self._delay_seconds)
            attempts += 1

            result = await self._geocode_one(application)
            if result is not None:
                located += 1
                yield result

        logger.info(f"🗺️  Geocoding batch done: {located}/{attempts} located")

    async def _geocode_one(self, application: Application) -> Optional[GeocodeResult]:
        query = build_geocode_query(application, self._country)

        try:
            matches = await self._geocoder.lookup(query)
        except Exception as e:
            logger.warning(
                f"⚠️ Geocoding failed for {application.company_name} "
                f"({application.id}): {e}"
            )
            return None

        if not matches:
            logger.warning(f"⚠️ No geocoding match for {application.company_name} ({application.id})")
            return None

        best = matches[0]
        try:
            point = GeoPoint(latitude=best.latitude, longitude=best.longitude)
        except ValueError as e:
            logger.warning(f"⚠️ Invalid coordinates for {application.id}: {e}")
            return None

        return GeocodeResult(application=application, point=point)
