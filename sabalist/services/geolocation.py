import logging
from typing import Any, Callable

import requests

from sabalist.config import settings
from sabalist.exceptions import GeocodingError
from sabalist.schemas.request import UserLocation

logger = logging.getLogger(__name__)

# A platform resolver returns a list of address dicts, nearest first
PrimaryResolver = Callable[[float, float], list[dict[str, Any]] | None]


class ReverseGeocoder:
    """HTTP fallback for turning coordinates into city/state/country."""

    def __init__(self, url: str | None = None, timeout: float | None = None):
        self.url = url or settings.REVERSE_GEOCODE_URL
        self.timeout = float(timeout if timeout is not None else settings.GEOCODE_TIMEOUT_SECONDS)
        self.session = requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    def lookup(self, latitude: float, longitude: float) -> UserLocation:
        params = {"latitude": latitude, "longitude": longitude, "localityLanguage": "en"}
        try:
            response = self.session.get(self.url, params=params, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.Timeout as exc:
            raise GeocodingError("Reverse geocoding timed out") from exc
        except (requests.RequestException, ValueError) as exc:
            raise GeocodingError(f"Reverse geocoding failed: {exc}") from exc

        city = payload.get("city") or payload.get("locality") or ""
        state = payload.get("principalSubdivision") or ""
        country = payload.get("countryName") or ""
        if not (city or state or country):
            raise GeocodingError("No address found")
        return UserLocation(
            city=city, state=state, country=country, latitude=latitude, longitude=longitude
        )


def _from_address(address: dict[str, Any], latitude: float, longitude: float) -> UserLocation | None:
    city = address.get("city") or address.get("subregion") or address.get("region") or ""
    state = address.get("region") or ""
    country = address.get("country") or ""
    if not (city or state or country):
        return None
    return UserLocation(
        city=city, state=state, country=country, latitude=latitude, longitude=longitude
    )


def reverse_geocode(
    latitude: float,
    longitude: float,
    primary: PrimaryResolver | None = None,
    geocoder: ReverseGeocoder | None = None,
) -> UserLocation:
    """Resolve coordinates, trying the platform resolver before the HTTP service."""
    if primary is not None:
        try:
            addresses = primary(latitude, longitude) or []
            if addresses:
                location = _from_address(addresses[0], latitude, longitude)
                if location:
                    return location
            logger.info("Primary resolver returned no address, using HTTP fallback")
        except Exception as e:
            logger.warning(f"Primary resolver failed, using HTTP fallback: {e}")

    return (geocoder or ReverseGeocoder()).lookup(latitude, longitude)


def format_address(location: UserLocation) -> str:
    return ", ".join(part for part in (location.city, location.state, location.country) if part)


def detect_user_location(
    latitude: float,
    longitude: float,
    primary: PrimaryResolver | None = None,
    geocoder: ReverseGeocoder | None = None,
) -> dict[str, Any]:
    """Never raises; failures come back as empty fields plus ``error``."""
    try:
        location = reverse_geocode(latitude, longitude, primary=primary, geocoder=geocoder)
    except GeocodingError as e:
        logger.error(f"Location detection failed: {e}")
        return {"country": "", "city": "", "state": "", "fullAddress": "", "error": str(e)}

    logger.info(f"Location detected: {location.city}, {location.country}")
    return {
        "country": location.country,
        "city": location.city,
        "state": location.state,
        "fullAddress": format_address(location),
        "latitude": latitude,
        "longitude": longitude,
    }
