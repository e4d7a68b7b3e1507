"""Property service boundary and its data-source variants."""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Callable, List, Optional

from ..config import Settings
from ..db.field_mapping import CAPE_MAY_MAPPING, FieldMapping
from ..db.local_repo import LocalRepository
from ..db.mappers import ListingMapper
from ..db.query import active_listings_query, build_query, listing_query
from ..db.rets_client import PhotoObject, RetsClient
from ..exceptions import CompSearchError, ConfigurationError
from ..models.property import CompResult, Coordinates, Property, SearchCriteria, SearchMode, SubjectProperty
from ..utils.logging import get_logger
from .comps_service import MAX_LOCAL, CompsService, filter_comps, match_local, rank
from .geocoding import CityCenterGeocoder, GoogleGeocoder
from .scoring import LOCAL_PROFILE, similarity_score

LOGGER = get_logger("services.property")

SOLD_LIMIT = 25
ACTIVE_LIMIT = 50
BROWSE_LIMIT = 50


class PropertyService(ABC):
    """Operations the HTTP layer needs, independent of the data source."""

    @abstractmethod
    def search_comps(
        self,
        subject: SubjectProperty,
        mode: SearchMode = SearchMode.SOLD,
        criteria: Optional[SearchCriteria] = None,
    ) -> List[CompResult]:
        """Ranked comparables; an empty list when nothing qualifies."""

    @abstractmethod
    def get_property(self, property_id: str) -> Optional[Property]:
        ...

    @abstractmethod
    def geocode_address(self, address: str, city: str, state: str, zip_code: str) -> Optional[Coordinates]:
        ...

    @abstractmethod
    def list_active(self, limit: int = BROWSE_LIMIT) -> List[Property]:
        ...

    def get_property_photos(self, property_id: str) -> List[str]:
        prop = self.get_property(property_id)
        return list(prop.photos) if prop else []

    def fetch_photo(self, property_id: str, index: int = 0) -> Optional[PhotoObject]:
        return None


class RetsPropertyService(PropertyService):
    """Comparable search against the MLS over RETS."""

    def __init__(
        self,
        client: RetsClient,
        mapping: FieldMapping = CAPE_MAY_MAPPING,
        comps_service: Optional[CompsService] = None,
        geocoder: Optional[GoogleGeocoder] = None,
        jitter_seed: int = 0,
        photo_url_template: Optional[str] = None,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self.client = client
        self.mapping = mapping
        self.comps_service = comps_service or CompsService()
        self.geocoder = geocoder
        self.fallback_geocoder = CityCenterGeocoder(mapping)
        self.jitter_seed = jitter_seed
        self.photo_url_template = photo_url_template
        self.clock = clock

    def _mapper(self) -> ListingMapper:
        # Fresh generator per call: the same response always maps to the same coordinates.
        kwargs = {"photo_url_template": self.photo_url_template} if self.photo_url_template else {}
        return ListingMapper(self.mapping, rng=random.Random(self.jitter_seed), **kwargs)

    def search_comps(
        self,
        subject: SubjectProperty,
        mode: SearchMode = SearchMode.SOLD,
        criteria: Optional[SearchCriteria] = None,
    ) -> List[CompResult]:
        today = self.clock()
        query = build_query(subject, mode, criteria, self.mapping, today)
        LOGGER.info("comp_search mode=%s city=%s query=%s", mode.value, subject.city, query)
        rows = self._fetch(query, mode)
        listings = self._mapper().map_rows(rows, mode)
        return self.comps_service.match(listings, subject, mode, today)

    def _fetch(self, query: str, mode: SearchMode) -> List[dict]:
        select = self.mapping.select_fields
        resource = self.mapping.resource
        if mode != SearchMode.ACTIVE:
            return self.client.search(resource, self.mapping.residential_class, query, select, SOLD_LIMIT)

        primary, secondary = self.mapping.classes_for(mode)
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="rets-search") as pool:
            first = pool.submit(self.client.search, resource, primary, query, select, ACTIVE_LIMIT)
            second = pool.submit(self.client.search, resource, secondary, query, select, ACTIVE_LIMIT)
            rows = first.result()
            try:
                extra = second.result()
            except Exception as exc:  # secondary class degrades to no rows
                LOGGER.warning("comp_search_class_failed class=%s error=%s", secondary, exc)
                extra = []
        return rows + extra

    def get_property(self, property_id: str) -> Optional[Property]:
        try:
            rows = self.client.search(
                self.mapping.resource,
                self.mapping.residential_class,
                listing_query(property_id, self.mapping),
                self.mapping.select_fields,
                1,
            )
        except CompSearchError as exc:
            LOGGER.warning("get_property_failed listing=%s error=%s", property_id, exc)
            return None
        if not rows:
            return None
        return self._mapper().map_row(rows[0])

    def list_active(self, limit: int = BROWSE_LIMIT) -> List[Property]:
        rows = self.client.search(
            self.mapping.resource,
            self.mapping.residential_class,
            active_listings_query(self.mapping),
            self.mapping.select_fields,
            limit,
        )
        return self._mapper().map_rows(rows, SearchMode.ACTIVE)

    def geocode_address(self, address: str, city: str, state: str, zip_code: str) -> Optional[Coordinates]:
        if self.geocoder is not None:
            return self.geocoder.geocode(address, city, state, zip_code)
        return self.fallback_geocoder.geocode(address, city, state, zip_code)

    def fetch_photo(self, property_id: str, index: int = 0) -> Optional[PhotoObject]:
        return self.client.get_photo(property_id, index)


class LocalPropertyService(PropertyService):
    """Demo data source backed by a local JSON/CSV file."""

    def __init__(
        self,
        repository: LocalRepository,
        geocoder: Optional[CityCenterGeocoder] = None,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self.repository = repository
        self.geocoder = geocoder or CityCenterGeocoder()
        self.clock = clock

    def search_comps(
        self,
        subject: SubjectProperty,
        mode: SearchMode = SearchMode.SOLD,
        criteria: Optional[SearchCriteria] = None,
    ) -> List[CompResult]:
        # Local data only holds closed sales, so the mode does not change the search.
        today = self.clock()
        properties = self.repository.properties
        if criteria is None:
            return match_local(properties, subject, today)
        comps = filter_comps(properties, subject, criteria, today)
        for comp in comps:
            comp.similarity_score = similarity_score(comp, subject, comp.distance_miles, LOCAL_PROFILE, today)
        return rank(comps, MAX_LOCAL)

    def get_property(self, property_id: str) -> Optional[Property]:
        return self.repository.get_property(property_id)

    def list_active(self, limit: int = BROWSE_LIMIT) -> List[Property]:
        return self.repository.list_properties(limit=limit)

    def geocode_address(self, address: str, city: str, state: str, zip_code: str) -> Optional[Coordinates]:
        return self.geocoder.geocode(address, city, state, zip_code)


def build_property_service(settings: Settings) -> PropertyService:
    """Resolve the configured data source once, at startup."""

    source = settings.data_source
    if source in ("rets", "mls"):
        client = RetsClient(settings.rets_config())
        geocoder = None
        if settings.google_maps_api_key:
            geocoder = GoogleGeocoder(settings.google_maps_api_key, timeout=settings.rets_timeout)
        LOGGER.info("property_service source=rets login_url=%s", settings.rets_url)
        return RetsPropertyService(
            client,
            geocoder=geocoder,
            jitter_seed=settings.coord_jitter_seed,
            photo_url_template=settings.photo_url_template,
        )
    if source in ("local", "mock"):
        LOGGER.info("property_service source=local file=%s", settings.local_data_file)
        repository = LocalRepository(settings.local_data_file, settings.data_dir)
        geocoder = CityCenterGeocoder(rng=random.Random(settings.coord_jitter_seed), jitter=0.1)
        return LocalPropertyService(repository, geocoder=geocoder)
    raise ConfigurationError(f"Unknown DATA_SOURCE: {source!r}")


__all__ = [
    "LocalPropertyService",
    "PropertyService",
    "RetsPropertyService",
    "build_property_service",
]
