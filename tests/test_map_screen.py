from pindistance.config.settings import get_settings
from pindistance.domain.errors import PermissionDenied
from pindistance.domain.models import AuthorizationStatus, GeoPoint
from pindistance.ui.map_screen import InMemoryMapDisplay, MapScreen

TARGET = GeoPoint(lat=37.5651, lon=126.9895)
OTHER = GeoPoint(lat=37.5796, lon=126.9770)


def _screen(locator):
    return MapScreen(InMemoryMapDisplay(), locator, get_settings().map)


def test_load_centers_on_configured_region(make_locator):
    locator, _, _ = make_locator()
    screen = _screen(locator)

    screen.load()

    region = screen.display.region
    assert region.center == GeoPoint(lat=37.5665, lon=126.9780)
    assert region.span_m == 5000


def test_tap_drops_single_pin_and_forwards_to_locator(make_locator):
    locator, service, presenter = make_locator()
    screen = _screen(locator)

    screen.handle_tap(TARGET)
    service.run_pending()
    screen.handle_tap(OTHER)
    service.run_pending()

    pins = screen.display.annotations
    assert len(pins) == 1
    assert pins[0].coordinate == OTHER
    assert pins[0].title == "Selected location"
    assert screen.last_outcome == (True, None)
    assert locator.last_report.target == OTHER
    # The screen itself is the context dialogs are presented on.
    assert presenter.contexts[-1] is screen


def test_pin_stays_when_distance_check_fails(make_locator):
    locator, _, _ = make_locator(status=AuthorizationStatus.DENIED)
    screen = _screen(locator)

    screen.handle_tap(TARGET)

    assert [p.coordinate for p in screen.display.annotations] == [TARGET]
    success, error = screen.last_outcome
    assert success is False
    assert isinstance(error, PermissionDenied)
