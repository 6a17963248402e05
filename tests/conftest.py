import pytest

from pindistance.domain.models import AuthorizationStatus, GeoPoint
from pindistance.location.locator import PermissionGatedLocator
from pindistance.location.positioning import SimulatedPositioningService


class FakeScreen:
    """Stands in for the view that owns the dialogs (must be weak-referenceable)."""


class RecordingPresenter:
    """Records dialogs; optionally presses the action labelled `answer`."""

    def __init__(self, answer: str | None = None):
        self.answer = answer
        self.dialogs = []
        self.contexts = []

    def present(self, ui_context, dialog):
        self.contexts.append(ui_context)
        self.dialogs.append(dialog)
        if self.answer and any(a.label == self.answer for a in dialog.actions):
            dialog.action(self.answer).trigger()


class CallbackRecorder:
    def __init__(self):
        self.calls = []

    def __call__(self, success, error):
        self.calls.append((success, error))


@pytest.fixture
def screen():
    return FakeScreen()


@pytest.fixture
def make_locator():
    def factory(
        status=AuthorizationStatus.AUTHORIZED_WHEN_IN_USE,
        position=GeoPoint(lat=37.5665, lon=126.9780),
        *,
        prompt_grants=True,
        answer=None,
        geocoder=None,
        **kwargs,
    ):
        service = SimulatedPositioningService(status=status, position=position, prompt_grants=prompt_grants)
        presenter = RecordingPresenter(answer)
        locator = PermissionGatedLocator(service, presenter, geocoder, **kwargs)
        return locator, service, presenter

    return factory


@pytest.fixture
def recorder():
    return CallbackRecorder()


@pytest.fixture
def make_recorder():
    return CallbackRecorder
