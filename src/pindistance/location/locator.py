"""
Permission-gated distance checks.

`PermissionGatedLocator` owns the positioning service conversation:
- it mirrors the platform authorization status (read-only),
- it holds at most one pending distance check,
- it resolves that check exactly once, when a fix arrives or something fails.

Every request gets an increasing id. Dialog actions and service notifications resolve
a request only if it is still the one in the slot, so a late continuation from an older
request can never resolve a newer one. What happens to a request that is still pending
when a new one arrives is decided by the busy policy (`locator.busy_policy`):

- `supersede`: the older request fails with `RequestSuperseded`, the new one takes the slot
- `reject`: the new request fails with `LocatorBusy`, the pending one is untouched
- `replace`: the older request is dropped silently and its callback never fires
"""

from __future__ import annotations

import itertools
import logging
import weakref
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Callable

from pindistance.config.settings import BusyPolicy, Settings
from pindistance.core.geo import geodesic_m
from pindistance.domain.errors import (
    CurrentLocationUnavailable,
    LocatorBusy,
    LocatorError,
    PermissionDenied,
    PermissionRequestCancelled,
    PositioningServiceError,
    RequestSuperseded,
    UnknownAuthorizationStatus,
)
from pindistance.domain.models import AuthorizationStatus, DistanceReport, GeoPoint
from pindistance.geocoding.reverse import NullReverseGeocoder, ReverseGeocoder
from pindistance.location.dialogs import (
    Dialog,
    DialogPresenter,
    error_dialog,
    permission_denied_dialog,
    permission_request_dialog,
    result_dialog,
)
from pindistance.location.positioning import PositioningService

logger = logging.getLogger(__name__)

DistanceCallback = Callable[[bool, LocatorError | None], None]

LOCATION_UNAVAILABLE_MESSAGE = "Unable to get your current location. Please try again shortly."


def _weak_handle(ui_context: Any) -> Callable[[], Any]:
    if ui_context is None:
        return lambda: None
    try:
        return weakref.ref(ui_context)
    except TypeError as exc:
        raise TypeError(f"ui_context must support weak references, got {type(ui_context).__name__}") from exc


@dataclass
class PendingRequest:
    """The single in-flight distance check."""

    request_id: int
    target: GeoPoint
    callback: DistanceCallback
    ui_handle: Callable[[], Any]

    @property
    def ui_context(self) -> Any:
        """The UI context, or None once it has been released."""
        return self.ui_handle()


class PermissionGatedLocator:
    """Distance checks from the device position to a tapped coordinate."""

    def __init__(
        self,
        service: PositioningService,
        presenter: DialogPresenter,
        geocoder: ReverseGeocoder | None = None,
        *,
        busy_policy: BusyPolicy = "supersede",
        placeholder_label: str = "selected location",
        present_positioning_errors: bool = True,
    ) -> None:
        if busy_policy not in ("supersede", "reject", "replace"):
            raise ValueError(f"Unknown busy policy: {busy_policy!r}")
        self._service = service
        self._presenter = presenter
        self._geocoder: ReverseGeocoder = geocoder or NullReverseGeocoder()
        self._busy_policy = busy_policy
        self._placeholder_label = placeholder_label
        self._present_positioning_errors = present_positioning_errors
        self._ids = itertools.count(1)
        self._pending: PendingRequest | None = None
        self.current_position: GeoPoint | None = None
        self.last_report: DistanceReport | None = None
        service.delegate = self

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        service: PositioningService,
        presenter: DialogPresenter,
        geocoder: ReverseGeocoder | None = None,
    ) -> "PermissionGatedLocator":
        return cls(
            service,
            presenter,
            geocoder,
            busy_policy=settings.locator.busy_policy,
            placeholder_label=settings.locator.placeholder_label,
            present_positioning_errors=settings.locator.present_positioning_errors,
        )

    @property
    def pending(self) -> PendingRequest | None:
        return self._pending

    @property
    def authorization_status(self) -> AuthorizationStatus:
        return self._service.authorization_status

    # -- public API -------------------------------------------------------------------

    def request_distance_check(self, coordinate: GeoPoint, ui_context: Any, callback: DistanceCallback) -> int:
        """Measure the distance from the device to `coordinate`; returns the request id.

        `callback(success, error)` fires exactly once for the request, except under the
        `replace` busy policy when a newer request drops it.
        """
        request = PendingRequest(
            request_id=next(self._ids),
            target=coordinate,
            callback=callback,
            ui_handle=_weak_handle(ui_context),
        )

        previous = self._pending
        if previous is not None:
            if self._busy_policy == "reject":
                logger.info(
                    "Rejecting distance check #%d: #%d is still pending", request.request_id, previous.request_id
                )
                callback(False, LocatorBusy())
                return request.request_id
            # The new request owns the slot before the old caller hears about it.
            self._pending = request
            if self._busy_policy == "supersede":
                logger.info("Distance check #%d supersedes #%d", request.request_id, previous.request_id)
                previous.callback(False, RequestSuperseded())
                if not self._is_pending(request.request_id):
                    # The old caller issued another request, which superseded this one.
                    return request.request_id
            else:
                logger.warning(
                    "Distance check #%d replaces #%d; its callback will never be invoked",
                    request.request_id,
                    previous.request_id,
                )

        self._pending = request
        status = self._service.authorization_status
        logger.debug("Distance check #%d to %s with status %s", request.request_id, coordinate, status)

        if not isinstance(status, AuthorizationStatus) or status is AuthorizationStatus.UNKNOWN:
            self._fail(request.request_id, UnknownAuthorizationStatus())
        elif status is AuthorizationStatus.NOT_DETERMINED:
            self._ask_permission(request)
        elif status.is_refused:
            self._fail(request.request_id, PermissionDenied(), dialog=permission_denied_dialog())
        else:
            self._service.start_updating_location()
        return request.request_id

    def request_distance_future(self, coordinate: GeoPoint, ui_context: Any) -> "Future[DistanceReport]":
        """Future-returning variant: resolves to the `DistanceReport` or the `LocatorError`."""
        future: Future[DistanceReport] = Future()

        def done(success: bool, error: LocatorError | None) -> None:
            if success and self.last_report is not None:
                future.set_result(self.last_report)
            else:
                future.set_exception(error or LocatorError())

        future.set_running_or_notify_cancel()
        self.request_distance_check(coordinate, ui_context, done)
        return future

    # -- positioning delegate ---------------------------------------------------------

    def on_authorization_changed(self, status: AuthorizationStatus) -> None:
        logger.info("Authorization status changed: %s", getattr(status, "value", status))
        pending = self._pending
        if pending is None:
            return
        if isinstance(status, AuthorizationStatus) and status.is_authorized:
            self._service.start_updating_location()
        elif isinstance(status, AuthorizationStatus) and status.is_refused:
            self._fail(pending.request_id, PermissionDenied())

    def on_locations_updated(self, points: list[GeoPoint]) -> None:
        if not points:
            return
        self.current_position = points[-1]
        logger.info("Updated current location: %s", self.current_position)
        if self._pending is not None:
            self._complete(self._pending.request_id)

    def on_error(self, error: Exception) -> None:
        logger.error("Location error: %s", error)
        pending = self._pending
        if pending is None:
            self._service.stop_updating_location()
            return
        dialog = None
        if self._present_positioning_errors:
            dialog = error_dialog(f"Unable to determine your location: {error}")
        self._fail(pending.request_id, PositioningServiceError(error), dialog=dialog)

    # -- internals --------------------------------------------------------------------

    def _ask_permission(self, request: PendingRequest) -> None:
        request_id = request.request_id

        def allow() -> None:
            if not self._is_pending(request_id):
                logger.debug("Ignoring permission grant for stale request #%d", request_id)
                return
            self._service.request_when_in_use_authorization()

        def cancel() -> None:
            self._fail(request_id, PermissionRequestCancelled())

        if not self._present(request, permission_request_dialog(allow, cancel)):
            # Nobody left to answer the prompt.
            self._fail(request_id, PermissionRequestCancelled("Permission prompt could not be shown"))

    def _complete(self, request_id: int) -> None:
        request = self._take(request_id)
        if request is None:
            return
        self._service.stop_updating_location()

        label = self._describe(request.target)
        origin = self.current_position
        if origin is None:
            self._present(request, error_dialog(LOCATION_UNAVAILABLE_MESSAGE))
            request.callback(False, CurrentLocationUnavailable())
            return

        distance = geodesic_m(origin, request.target)
        report = DistanceReport(
            request_id=request.request_id,
            origin=origin,
            target=request.target,
            distance_m=distance,
            rounded_m=int(round(distance)),
            place_description=label,
        )
        self.last_report = report
        logger.info("Distance check #%d: %d m to %s", request.request_id, report.rounded_m, label)
        self._present(request, result_dialog(report))
        request.callback(True, None)

    def _describe(self, target: GeoPoint) -> str:
        try:
            placemarks = self._geocoder.reverse(target)
        except Exception as exc:
            logger.warning("Reverse geocoding failed for %s: %s", target, exc)
            return self._placeholder_label
        if placemarks:
            description = placemarks[0].describe()
            if description:
                return description
        return self._placeholder_label

    def _fail(self, request_id: int, error: LocatorError, *, dialog: Dialog | None = None) -> None:
        request = self._take(request_id)
        if request is None:
            return
        self._service.stop_updating_location()
        logger.info("Distance check #%d failed: %s", request.request_id, error)
        if dialog is not None:
            self._present(request, dialog)
        request.callback(False, error)

    def _is_pending(self, request_id: int) -> bool:
        return self._pending is not None and self._pending.request_id == request_id

    def _take(self, request_id: int) -> PendingRequest | None:
        """Clear the slot if it still holds `request_id`; return the request."""
        if not self._is_pending(request_id):
            logger.debug("Request #%d is no longer pending", request_id)
            return None
        request = self._pending
        self._pending = None
        return request

    def _present(self, request: PendingRequest, dialog: Dialog) -> bool:
        ui_context = request.ui_context
        if ui_context is None:
            logger.debug("UI context for request #%d is gone; skipping %r", request.request_id, dialog.title)
            return False
        self._presenter.present(ui_context, dialog)
        return True
