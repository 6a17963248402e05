"""
Reverse geocoding (coordinate -> human-readable place).

Reverse lookups are advisory: the locator falls back to a placeholder label whenever
a geocoder raises or returns nothing, so adapters here are free to raise.

Adapters:
- `NullReverseGeocoder`: offline default, always returns no placemarks
- `NominatimReverseGeocoder`: OpenStreetMap Nominatim `/reverse` endpoint
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from pindistance.config.settings import Settings
from pindistance.core.http import get_json
from pindistance.domain.models import GeoPoint, Placemark

logger = logging.getLogger(__name__)


class ReverseGeocoder(Protocol):
    def reverse(self, point: GeoPoint) -> list[Placemark]: ...


class NullReverseGeocoder:
    def reverse(self, point: GeoPoint) -> list[Placemark]:
        return []


# Nominatim reports the locality under different keys depending on settlement size.
_LOCALITY_KEYS = ("city", "town", "village", "municipality", "hamlet", "suburb")
_AREA_KEYS = ("state", "province", "region", "county")


def _first(address: dict[str, Any], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = address.get(key)
        if value:
            return str(value)
    return None


def placemark_from_nominatim(payload: dict[str, Any]) -> Placemark | None:
    """Map a Nominatim jsonv2 reverse payload to a `Placemark` (None on error payloads)."""
    if not isinstance(payload, dict) or payload.get("error"):
        return None
    address = payload.get("address") or {}
    if not isinstance(address, dict):
        address = {}

    road = address.get("road") or address.get("pedestrian")
    house_number = address.get("house_number")
    thoroughfare = f"{road} {house_number}" if road and house_number else road

    return Placemark(
        thoroughfare=thoroughfare,
        locality=_first(address, _LOCALITY_KEYS),
        administrative_area=_first(address, _AREA_KEYS),
        country=address.get("country"),
        display_name=payload.get("display_name"),
    )


class NominatimReverseGeocoder:
    """Reverse geocoding against a Nominatim instance.

    The public instance requires an identifying User-Agent (see its usage policy).
    """

    def __init__(
        self,
        *,
        base_url: str,
        user_agent: str,
        language: str = "en",
        zoom: int = 18,
        timeout_seconds: float = 10,
    ) -> None:
        self._base_url = base_url
        self._user_agent = user_agent
        self._language = language
        self._zoom = zoom
        self._timeout_seconds = timeout_seconds

    def reverse(self, point: GeoPoint) -> list[Placemark]:
        params = {
            "lat": point.lat,
            "lon": point.lon,
            "format": "jsonv2",
            "addressdetails": 1,
            "zoom": self._zoom,
        }
        headers = {"User-Agent": self._user_agent, "Accept-Language": self._language}
        logger.debug("Reverse geocoding %s via %s", point, self._base_url)
        payload = get_json(self._base_url, params=params, headers=headers, timeout_seconds=self._timeout_seconds)
        placemark = placemark_from_nominatim(payload)
        return [placemark] if placemark is not None else []


def build_reverse_geocoder(settings: Settings) -> ReverseGeocoder:
    """Create the geocoder selected by `geocoding.provider`."""
    cfg = settings.geocoding
    if cfg.provider == "nominatim":
        return NominatimReverseGeocoder(
            base_url=cfg.base_url,
            user_agent=cfg.user_agent,
            language=cfg.language,
            zoom=cfg.zoom,
            timeout_seconds=settings.app.http_timeout_seconds,
        )
    return NullReverseGeocoder()
