"""External API clients"""
from marcheconnect.clients.nominatim_client import NominatimClient, GeocodingAPIError

__all__ = ["NominatimClient", "GeocodingAPIError"]
