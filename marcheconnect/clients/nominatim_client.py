"""
Nominatim (OpenStreetMap) geocoding client.

Nominatim's usage policy allows at most one request per second and requires
an identifying User-Agent. This client issues single lookups only; pacing
is the caller's job (see GeocodingBatchProcessor).
"""
import httpx
import logging
from typing import Any, List, Optional

from marcheconnect.config import Settings
from marcheconnect.core.interfaces import GeoMatch, IGeocoder

logger = logging.getLogger(__name__)


class GeocodingAPIError(Exception):
    """Exception raised when a geocoding lookup fails"""
    def __init__(self, message: str, status_code: Optional[int] = None, query: Optional[str] = None):
        self.message = message
        self.status_code = status_code
        self.query = query
        super().__init__(self.message)


class NominatimClient(IGeocoder):
    """
    Client for the Nominatim search API.

    Usage:
        async with httpx.AsyncClient() as http_client:
            geocoder = NominatimClient(http_client, settings)
            matches = await geocoder.lookup("Place de la Mairie, Chazay-d'Azergues, 69380, France")
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        settings: Settings,
        logger_instance: logging.Logger = logger
    ):
        """
        Initialize Nominatim client.

        Args:
            http_client: httpx AsyncClient for making HTTP requests
            settings: Application settings (base URL, user agent, timeout)
            logger_instance: Logger for tracking API calls
        """
        self._http_client = http_client
        self._settings = settings
        self._logger = logger_instance
        self._api_base_url = settings.geocoder_base_url.rstrip("/")

    async def lookup(self, query: str, limit: int = 1) -> List[GeoMatch]:
        """
        Geocode a free-text address.

        Args:
            query: Address, e.g. "12 rue des Lilas, Lyon, 69003, France"
            limit: Maximum number of candidates requested

        Returns:
            Matches, best first (empty when nothing matched)

        Raises:
            GeocodingAPIError: On network errors, non-200 responses or malformed payloads
        """
        try:
            response = await self._http_client.get(
                f"{self._api_base_url}/search",
                params={"format": "json", "q": query, "limit": limit},
                headers={"User-Agent": self._settings.geocoder_user_agent},
                timeout=self._settings.geocoder_timeout,
            )
        except httpx.TimeoutException as e:
            raise GeocodingAPIError(f"Geocoder timeout: {e}", query=query) from e
        except httpx.RequestError as e:
            raise GeocodingAPIError(f"Geocoder request failed: {e}", query=query) from e

        if response.status_code != 200:
            raise GeocodingAPIError(
                f"Geocoder returned HTTP {response.status_code}",
                status_code=response.status_code,
                query=query,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise GeocodingAPIError("Geocoder returned invalid JSON", query=query) from e

        matches = self._parse_matches(payload, query)
        self._logger.debug(f"📍 Geocoder returned {len(matches)} match(es) for {query!r}")
        return matches

    def _parse_matches(self, payload: Any, query: str) -> List[GeoMatch]:
        """
        Parse Nominatim's JSON array.

        Expected format:
            [{"lat": "45.875", "lon": "4.708", "display_name": "..."}, ...]
        Coordinates come back as strings.
        """
        if not isinstance(payload, list):
            raise GeocodingAPIError("Unexpected geocoder payload (expected a list)", query=query)

        matches = []
        for item in payload:
            try:
                matches.append(GeoMatch(
                    latitude=float(item["lat"]),
                    longitude=float(item["lon"]),
                    display_name=item.get("display_name"),
                ))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                raise GeocodingAPIError(f"Malformed geocoder match: {item!r}", query=query) from e
        return matches
