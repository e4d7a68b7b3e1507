"""Address geocoding backends."""

from __future__ import annotations

import random
from typing import Callable, Optional

import requests

from ..db.field_mapping import CAPE_MAY_MAPPING, FieldMapping
from ..exceptions import TransportError
from ..models.property import Coordinates
from ..utils.logging import get_logger

LOGGER = get_logger("services.geocoding")

GOOGLE_GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"


class GoogleGeocoder:
    def __init__(
        self,
        api_key: str,
        session_factory: Callable[[], requests.Session] = requests.Session,
        timeout: float = 15.0,
    ) -> None:
        self.api_key = api_key
        self.session_factory = session_factory
        self.timeout = timeout

    def geocode(self, address: str, city: str, state: str, zip_code: str) -> Optional[Coordinates]:
        full_address = f"{address}, {city}, {state} {zip_code}".strip()
        with self.session_factory() as http:
            try:
                resp = http.get(
                    GOOGLE_GEOCODE_URL,
                    params={"address": full_address, "key": self.api_key},
                    timeout=self.timeout,
                )
                resp.raise_for_status()
                data = resp.json()
            except (requests.RequestException, ValueError) as exc:
                raise TransportError(f"Geocoding failed: {exc}") from exc
        if data.get("status") != "OK" or not data.get("results"):
            LOGGER.info("geocode_miss status=%s", data.get("status"))
            return None
        location = data["results"][0]["geometry"]["location"]
        return Coordinates(lat=float(location["lat"]), lng=float(location["lng"]))


class CityCenterGeocoder:
    """Resolves an address to its city's center, optionally jittered."""

    def __init__(self, mapping: FieldMapping = CAPE_MAY_MAPPING, rng: Optional[random.Random] = None, jitter: float = 0.0) -> None:
        self.mapping = mapping
        self.rng = rng or random.Random(0)
        self.jitter = jitter

    def geocode(self, address: str, city: str, state: str, zip_code: str) -> Optional[Coordinates]:
        center = self.mapping.city_center(city)
        if center is None:
            return None
        lat, lng = center
        if self.jitter:
            lat += (self.rng.random() - 0.5) * self.jitter
            lng += (self.rng.random() - 0.5) * self.jitter
        return Coordinates(lat=lat, lng=lng)


__all__ = ["CityCenterGeocoder", "GoogleGeocoder"]
