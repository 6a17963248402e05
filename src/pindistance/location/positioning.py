"""
Positioning service seam.

`PositioningService` is the platform side (permission state + location fixes), and
`PositioningDelegate` is what it notifies. `SimulatedPositioningService` is an in-process
implementation used by the CLI demo and the tests: it queues notifications and delivers
them from `run_pending()`, the way a main event loop would, so the locator is never
re-entered from inside one of its own calls.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Callable, Protocol

from pindistance.domain.models import AuthorizationStatus, GeoPoint

logger = logging.getLogger(__name__)


class PositioningDelegate(Protocol):
    def on_locations_updated(self, points: list[GeoPoint]) -> None: ...

    def on_authorization_changed(self, status: AuthorizationStatus) -> None: ...

    def on_error(self, error: Exception) -> None: ...


class PositioningService(Protocol):
    delegate: PositioningDelegate | None

    @property
    def authorization_status(self) -> AuthorizationStatus: ...

    def request_when_in_use_authorization(self) -> None: ...

    def start_updating_location(self) -> None: ...

    def stop_updating_location(self) -> None: ...


class PositioningUnavailable(RuntimeError):
    """Device-level failure raised by the simulator (e.g. signal loss)."""


class SimulatedPositioningService:
    """A scripted positioning service.

    - `request_when_in_use_authorization()` answers the OS prompt with `prompt_grants`
      (only while the status is still `NOT_DETERMINED`, like a real platform).
    - `start_updating_location()` queues one fix at the configured position, if any.
    - `set_authorization_status()`, `emit_location()` and `fail()` script further events.
    """

    def __init__(
        self,
        *,
        status: AuthorizationStatus = AuthorizationStatus.NOT_DETERMINED,
        position: GeoPoint | None = None,
        prompt_grants: bool = True,
    ) -> None:
        self.delegate: PositioningDelegate | None = None
        self._status = status
        self._position = position
        self._prompt_grants = prompt_grants
        self._queue: deque[Callable[[], None]] = deque()
        self._fix_queued = False
        self.updating = False
        self.authorization_requests = 0
        self.start_calls = 0
        self.stop_calls = 0

    @property
    def authorization_status(self) -> AuthorizationStatus:
        return self._status

    @property
    def pending_events(self) -> int:
        return len(self._queue)

    def request_when_in_use_authorization(self) -> None:
        self.authorization_requests += 1
        if self._status is not AuthorizationStatus.NOT_DETERMINED:
            return
        granted = (
            AuthorizationStatus.AUTHORIZED_WHEN_IN_USE if self._prompt_grants else AuthorizationStatus.DENIED
        )
        self.set_authorization_status(granted)

    def start_updating_location(self) -> None:
        self.start_calls += 1
        self.updating = True
        if self._position is not None and not self._fix_queued:
            self._fix_queued = True
            self._queue.append(self._deliver_fix)

    def stop_updating_location(self) -> None:
        self.stop_calls += 1
        self.updating = False

    def set_authorization_status(self, status: AuthorizationStatus) -> None:
        """Change the permission level and queue the change notification."""
        self._status = status

        def deliver() -> None:
            if self.delegate is not None:
                self.delegate.on_authorization_changed(status)

        self._queue.append(deliver)

    def emit_location(self, point: GeoPoint) -> None:
        """Move the simulated device and queue a fix for it (dropped unless updating)."""
        self._position = point
        if not self._fix_queued:
            self._fix_queued = True
            self._queue.append(self._deliver_fix)

    def fail(self, error: Exception | None = None) -> None:
        """Queue a device-level error notification."""
        exc = error if error is not None else PositioningUnavailable("location signal lost")

        def deliver() -> None:
            if self.delegate is not None:
                self.delegate.on_error(exc)

        self._queue.append(deliver)

    def _deliver_fix(self) -> None:
        self._fix_queued = False
        if not self.updating or self._position is None:
            logger.debug("Dropping simulated fix (updating=%s)", self.updating)
            return
        if self.delegate is not None:
            self.delegate.on_locations_updated([self._position])

    def run_pending(self, max_events: int = 100) -> int:
        """Deliver queued notifications (including ones queued while delivering)."""
        delivered = 0
        while self._queue and delivered < max_events:
            event = self._queue.popleft()
            event()
            delivered += 1
        return delivered
