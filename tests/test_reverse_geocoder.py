import httpx
import pytest

from pindistance.config.settings import get_settings
from pindistance.domain.models import GeoPoint
from pindistance.geocoding.reverse import (
    NominatimReverseGeocoder,
    NullReverseGeocoder,
    build_reverse_geocoder,
    placemark_from_nominatim,
)

POINT = GeoPoint(lat=37.5665, lon=126.9780)

CITY_HALL_PAYLOAD = {
    "display_name": "Seoul City Hall, 110, Sejong-daero, Jung-gu, Seoul, 04524, South Korea",
    "address": {
        "road": "Sejong-daero",
        "house_number": "110",
        "city": "Seoul",
        "borough": "Jung-gu",
        "country": "South Korea",
    },
}


def _geocoder():
    return NominatimReverseGeocoder(
        base_url="https://nominatim.example.test/reverse",
        user_agent="pindistance-tests (dev@example.test)",
        language="ko",
    )


def test_nominatim_reverse_maps_address_components(monkeypatch):
    seen = {}

    def fake_get_json(url, *, params=None, headers=None, timeout_seconds=10):
        seen.update(url=url, params=params, headers=headers)
        return CITY_HALL_PAYLOAD

    monkeypatch.setattr("pindistance.geocoding.reverse.get_json", fake_get_json)

    placemarks = _geocoder().reverse(POINT)

    assert seen["url"] == "https://nominatim.example.test/reverse"
    assert seen["params"]["lat"] == 37.5665
    assert seen["params"]["format"] == "jsonv2"
    assert seen["headers"]["User-Agent"] == "pindistance-tests (dev@example.test)"
    assert seen["headers"]["Accept-Language"] == "ko"
    assert len(placemarks) == 1
    assert placemarks[0].describe() == "Sejong-daero 110, Seoul, South Korea"


def test_nominatim_error_payload_yields_no_placemarks(monkeypatch):
    monkeypatch.setattr(
        "pindistance.geocoding.reverse.get_json",
        lambda *_args, **_kwargs: {"error": "Unable to geocode"},
    )
    assert _geocoder().reverse(POINT) == []


def test_nominatim_transport_errors_propagate(monkeypatch):
    def fake_get_json(url, **_kwargs):
        request = httpx.Request("GET", url)
        response = httpx.Response(503, request=request)
        raise httpx.HTTPStatusError("503", request=request, response=response)

    monkeypatch.setattr("pindistance.geocoding.reverse.get_json", fake_get_json)

    with pytest.raises(httpx.HTTPStatusError):
        _geocoder().reverse(POINT)


def test_locator_degrades_to_placeholder_when_nominatim_fails(monkeypatch, make_locator, screen, recorder):
    def fake_get_json(url, **_kwargs):
        raise httpx.ConnectError("offline", request=httpx.Request("GET", url))

    monkeypatch.setattr("pindistance.geocoding.reverse.get_json", fake_get_json)
    locator, service, _ = make_locator(geocoder=_geocoder())

    locator.request_distance_check(GeoPoint(lat=37.5651, lon=126.9895), screen, recorder)
    service.run_pending()

    assert recorder.calls == [(True, None)]
    assert locator.last_report.place_description == "selected location"


def test_placemark_from_nominatim_uses_town_and_state():
    pm = placemark_from_nominatim({"address": {"town": "Gapyeong", "province": "Gyeonggi-do", "country": "KR"}})
    assert pm.describe() == "Gapyeong, Gyeonggi-do, KR"


def test_build_reverse_geocoder_follows_provider_setting():
    settings = get_settings()
    assert isinstance(build_reverse_geocoder(settings), NullReverseGeocoder)

    nominatim = settings.model_copy(
        update={"geocoding": settings.geocoding.model_copy(update={"provider": "nominatim"})}
    )
    assert isinstance(build_reverse_geocoder(nominatim), NominatimReverseGeocoder)
