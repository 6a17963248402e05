"""
Domain models.

These types are the contract between the map screen, the locator and its collaborators:
- `GeoPoint`: a validated coordinate (tap targets, device fixes)
- `AuthorizationStatus`: the platform permission level, mirrored read-only by the locator
- `Placemark`: one reverse-geocoding hit
- `DistanceReport`: what a successful distance check produced
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class GeoPoint(BaseModel):
    """A geographic point in decimal degrees."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)

    def __str__(self) -> str:
        return f"{self.lat:.6f}, {self.lon:.6f}"


class AuthorizationStatus(str, Enum):
    """Location permission level as reported by the positioning service."""

    UNKNOWN = "unknown"
    NOT_DETERMINED = "not_determined"
    DENIED = "denied"
    RESTRICTED = "restricted"
    AUTHORIZED_WHEN_IN_USE = "authorized_when_in_use"
    AUTHORIZED_ALWAYS = "authorized_always"

    @property
    def is_authorized(self) -> bool:
        return self in (AuthorizationStatus.AUTHORIZED_WHEN_IN_USE, AuthorizationStatus.AUTHORIZED_ALWAYS)

    @property
    def is_refused(self) -> bool:
        return self in (AuthorizationStatus.DENIED, AuthorizationStatus.RESTRICTED)

    @classmethod
    def parse(cls, value: str) -> "AuthorizationStatus":
        """Parse a config/CLI spelling (`denied`, `authorized-when-in-use`, ...).

        Unrecognised spellings map to `UNKNOWN` rather than raising.
        """
        key = str(value).strip().lower().replace("-", "_")
        try:
            return cls(key)
        except ValueError:
            return cls.UNKNOWN


class Placemark(BaseModel):
    """A reverse-geocoding result; every component is optional."""

    thoroughfare: str | None = None
    locality: str | None = None
    administrative_area: str | None = None
    country: str | None = None
    display_name: str | None = None

    def describe(self) -> str:
        """Join the address components with ", ", skipping missing ones."""
        parts = [self.thoroughfare, self.locality, self.administrative_area, self.country]
        text = ", ".join(p.strip() for p in parts if p and p.strip())
        return text or (self.display_name or "").strip()


class DistanceReport(BaseModel):
    """Outcome of a successful distance check."""

    request_id: int
    origin: GeoPoint
    target: GeoPoint
    distance_m: float = Field(..., ge=0)
    rounded_m: int = Field(..., ge=0)
    place_description: str
