import pytest

from pindistance.domain.errors import PositioningServiceError
from pindistance.domain.models import GeoPoint
from pindistance.location.positioning import PositioningUnavailable

CITY_HALL = GeoPoint(lat=37.5665, lon=126.9780)
TARGET = GeoPoint(lat=37.5651, lon=126.9895)


def test_positioning_error_resolves_pending_request(make_locator, screen, recorder):
    locator, service, presenter = make_locator(position=None)

    locator.request_distance_check(TARGET, screen, recorder)
    service.fail(PositioningUnavailable("no signal"))
    service.run_pending()

    assert len(recorder.calls) == 1
    success, error = recorder.calls[0]
    assert success is False
    assert isinstance(error, PositioningServiceError)
    assert isinstance(error.underlying, PositioningUnavailable)
    assert "no signal" in str(error)
    assert locator.pending is None
    assert service.updating is False
    assert [d.kind for d in presenter.dialogs] == ["error"]


def test_positioning_error_dialog_can_be_disabled(make_locator, screen, recorder):
    locator, service, presenter = make_locator(position=None, present_positioning_errors=False)

    locator.request_distance_check(TARGET, screen, recorder)
    service.fail()
    service.run_pending()

    assert isinstance(recorder.calls[0][1], PositioningServiceError)
    assert presenter.dialogs == []


def test_no_lockout_after_positioning_error(make_locator, make_recorder, screen):
    locator, service, _ = make_locator(position=None)
    first, second = make_recorder(), make_recorder()

    locator.request_distance_check(TARGET, screen, first)
    service.fail()
    service.run_pending()

    service.emit_location(CITY_HALL)
    locator.request_distance_check(TARGET, screen, second)
    service.run_pending()

    assert isinstance(first.calls[0][1], PositioningServiceError)
    assert second.calls == [(True, None)]


def test_positioning_error_without_pending_request_is_only_logged(make_locator, caplog):
    locator, service, presenter = make_locator()

    with caplog.at_level("ERROR", logger="pindistance.location.locator"):
        locator.on_error(PositioningUnavailable("hardware off"))

    assert "hardware off" in caplog.text
    assert presenter.dialogs == []
    assert service.stop_calls == 1


def test_callback_exception_propagates_after_slot_is_cleared(make_locator, screen):
    locator, service, _ = make_locator()

    def explode(success, error):
        raise RuntimeError("caller bug")

    locator.request_distance_check(TARGET, screen, explode)

    with pytest.raises(RuntimeError, match="caller bug"):
        service.run_pending()
    assert locator.pending is None
