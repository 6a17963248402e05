"""
Map screen presenter.

`MapScreen` is the thin presentation layer: it owns no location logic. A tap drops a
pin immediately (whether or not the distance check later succeeds) and is forwarded
verbatim to the locator, with the screen itself acting as the UI context for dialogs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from pindistance.config.settings import MapSettings
from pindistance.domain.errors import LocatorError
from pindistance.domain.models import GeoPoint
from pindistance.location.locator import PermissionGatedLocator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MapRegion:
    center: GeoPoint
    span_m: float


@dataclass(frozen=True)
class PointAnnotation:
    coordinate: GeoPoint
    title: str


class MapDisplay(Protocol):
    def set_region(self, region: MapRegion) -> None: ...

    def add_annotation(self, annotation: PointAnnotation) -> None: ...

    def remove_annotations(self) -> None: ...

    @property
    def annotations(self) -> list[PointAnnotation]: ...


class InMemoryMapDisplay:
    """A map surface that only remembers what it was asked to show."""

    def __init__(self) -> None:
        self.region: MapRegion | None = None
        self._annotations: list[PointAnnotation] = []

    @property
    def annotations(self) -> list[PointAnnotation]:
        return list(self._annotations)

    def set_region(self, region: MapRegion) -> None:
        self.region = region

    def add_annotation(self, annotation: PointAnnotation) -> None:
        self._annotations.append(annotation)

    def remove_annotations(self) -> None:
        self._annotations.clear()


class MapScreen:
    def __init__(self, display: MapDisplay, locator: PermissionGatedLocator, settings: MapSettings) -> None:
        self.display = display
        self.locator = locator
        self._settings = settings
        self.last_outcome: tuple[bool, LocatorError | None] | None = None

    def load(self) -> None:
        """Center the map on the configured initial region."""
        center = GeoPoint(lat=self._settings.initial_center.lat, lon=self._settings.initial_center.lon)
        self.display.set_region(MapRegion(center=center, span_m=self._settings.initial_span_m))

    def handle_tap(self, coordinate: GeoPoint) -> int:
        """Drop a pin at `coordinate` and start a distance check; returns the request id."""
        logger.info("Tapped coordinate: %s", coordinate)
        self.display.remove_annotations()
        self.display.add_annotation(PointAnnotation(coordinate=coordinate, title=self._settings.pin_title))
        return self.locator.request_distance_check(coordinate, self, self._on_distance_checked)

    def _on_distance_checked(self, success: bool, error: LocatorError | None) -> None:
        self.last_outcome = (success, error)
        if error is not None:
            logger.warning("Distance check failed: %s", error)
        elif success:
            logger.info("Distance calculation completed")
