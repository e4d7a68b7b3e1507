import json
import random

import pytest
import requests

from compsearch.exceptions import TransportError
from compsearch.services.geocoding import GOOGLE_GEOCODE_URL, CityCenterGeocoder, GoogleGeocoder


class FakeHttp:
    def __init__(self, answer):
        self.answer = answer
        self.calls = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params))
        if isinstance(self.answer, Exception):
            raise self.answer
        return self.answer


def _json_response(payload, status=200):
    resp = requests.Response()
    resp.status_code = status
    resp._content = json.dumps(payload).encode("utf-8")
    resp.encoding = "utf-8"
    return resp


def test_google_geocoder_returns_first_location():
    http = FakeHttp(_json_response({"status": "OK", "results": [{"geometry": {"location": {"lat": 39.15, "lng": -74.69}}}]}))
    coords = GoogleGeocoder("key", session_factory=lambda: http).geocode("45 88th St", "Sea Isle City", "NJ", "08243")

    assert (coords.lat, coords.lng) == (39.15, -74.69)
    url, params = http.calls[0]
    assert url == GOOGLE_GEOCODE_URL
    assert params == {"address": "45 88th St, Sea Isle City, NJ 08243", "key": "key"}


def test_google_geocoder_zero_results_is_none():
    http = FakeHttp(_json_response({"status": "ZERO_RESULTS", "results": []}))
    assert GoogleGeocoder("key", session_factory=lambda: http).geocode("x", "y", "NJ", "") is None


def test_google_geocoder_transport_failure():
    http = FakeHttp(requests.ConnectionError("no route"))
    with pytest.raises(TransportError):
        GoogleGeocoder("key", session_factory=lambda: http).geocode("x", "y", "NJ", "")


def test_city_center_geocoder():
    geocoder = CityCenterGeocoder()
    coords = geocoder.geocode("", "CAPE MAY", "NJ", "")
    assert (coords.lat, coords.lng) == (38.9351, -74.9060)
    assert geocoder.geocode("", "Atlantis", "NJ", "") is None


def test_city_center_geocoder_jitter_stays_near_center():
    coords = CityCenterGeocoder(rng=random.Random(1), jitter=0.1).geocode("", "Avalon", "NJ", "")
    assert abs(coords.lat - 39.1012) <= 0.05
    assert abs(coords.lng - -74.7177) <= 0.05
