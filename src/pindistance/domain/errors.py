"""
Distance-check failure types.

Every failure is terminal for the request it belongs to; the locator never retries.
`code` is a stable identifier for logs and JSON output.
"""

from __future__ import annotations


class LocatorError(Exception):
    """Base class for distance-check failures."""

    code = "locator_error"
    default_message = "Distance check failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class PermissionDenied(LocatorError):
    code = "permission_denied"
    default_message = "Location permission denied"


class PermissionRequestCancelled(LocatorError):
    code = "permission_request_cancelled"
    default_message = "User cancelled permission request"


class UnknownAuthorizationStatus(LocatorError):
    code = "unknown_authorization_status"
    default_message = "Unknown authorization status"


class CurrentLocationUnavailable(LocatorError):
    code = "current_location_unavailable"
    default_message = "Current location unavailable"


class PositioningServiceError(LocatorError):
    """Wraps a device-level failure (signal loss, hardware off, ...)."""

    code = "positioning_service_error"
    default_message = "Positioning service error"

    def __init__(self, underlying: BaseException, message: str | None = None) -> None:
        super().__init__(message or f"{self.default_message}: {underlying}")
        self.underlying = underlying


class RequestSuperseded(LocatorError):
    code = "request_superseded"
    default_message = "Request superseded by a newer distance check"


class LocatorBusy(LocatorError):
    code = "locator_busy"
    default_message = "Another distance check is already in progress"
