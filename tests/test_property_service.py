import json
from datetime import date

import pytest

from compsearch.config import Settings
from compsearch.db.local_repo import LocalRepository
from compsearch.db.rets_client import PhotoObject
from compsearch.exceptions import ConfigurationError, TransportError
from compsearch.models.property import SearchCriteria, SearchMode, SubjectProperty
from compsearch.services.property_service import (
    LocalPropertyService,
    RetsPropertyService,
    build_property_service,
)

TODAY = date(2026, 10, 19)


class FakeClient:
    """Answers searches per class; a class mapped to an exception raises it."""

    def __init__(self, by_class=None, photo=None):
        self.by_class = by_class or {}
        self.photo = photo
        self.searches = []

    def search(self, resource, class_name, query, select=None, limit=25):
        self.searches.append({"resource": resource, "class": class_name, "query": query, "limit": limit})
        answer = self.by_class.get(class_name, [])
        if isinstance(answer, Exception):
            raise answer
        return list(answer)

    def get_photo(self, listing_id, index=0):
        return self.photo


def _row(listing_id, **overrides):
    row = {
        "L_ListingID": listing_id,
        "L_Address": f"{listing_id} Landis Ave",
        "L_City": "Sea Isle City",
        "L_Zip": "08243",
        "L_Keyword1": "3",
        "L_Keyword2": "2",
        "L_SquareFeet": "1600",
        "L_Type_": "Single Family",
        "L_AskingPrice": "1000000",
        "L_SoldPrice": "960000",
        "L_StatusDate": "2026-09-01",
        "LMD_MP_Latitude": "39.1534",
        "LMD_MP_Longitude": "-74.6929",
        "L_PictureCount": "2",
    }
    row.update(overrides)
    return row


def _subject(**overrides) -> SubjectProperty:
    values = {"city": "Sea Isle City", "bedrooms": 3, "bathrooms": 2.0, "sqft": 1600, "lat": 39.1534, "lng": -74.6929}
    values.update(overrides)
    return SubjectProperty(**values)


def _rets(client) -> RetsPropertyService:
    return RetsPropertyService(client, clock=lambda: TODAY)


def test_sold_search_uses_residential_class_only():
    client = FakeClient({"RE_1": [_row("1"), _row("2")]})
    results = _rets(client).search_comps(_subject(), SearchMode.SOLD)

    assert [comp.id for comp in results] == ["1", "2"]
    assert [s["class"] for s in client.searches] == ["RE_1"]
    assert client.searches[0]["limit"] == 25
    assert "(L_StatusDate=2026-07-21+)" in client.searches[0]["query"]


def test_active_search_concatenates_both_classes():
    client = FakeClient({"RE_1": [_row("house")], "CT_5": [_row("condo")]})
    results = _rets(client).search_comps(_subject(), SearchMode.ACTIVE)

    assert [comp.id for comp in results] == ["house", "condo"]
    assert sorted(s["class"] for s in client.searches) == ["CT_5", "RE_1"]
    assert all(s["limit"] == 50 for s in client.searches)
    assert results[0].sale_price == 1000000


def test_active_search_tolerates_secondary_class_failure():
    client = FakeClient({"RE_1": [_row("house")], "CT_5": TransportError("condo class down", 500)})
    results = _rets(client).search_comps(_subject(), SearchMode.ACTIVE)
    assert [comp.id for comp in results] == ["house"]


def test_active_search_primary_failure_propagates():
    client = FakeClient({"RE_1": TransportError("down", 503), "CT_5": [_row("condo")]})
    with pytest.raises(TransportError):
        _rets(client).search_comps(_subject(), SearchMode.ACTIVE)


def test_no_rows_means_no_comps():
    assert _rets(FakeClient()).search_comps(_subject(), SearchMode.SOLD) == []


def test_get_property_and_photos():
    client = FakeClient({"RE_1": [_row("240117")]})
    service = _rets(client)

    prop = service.get_property("240117")
    assert prop.id == "240117"
    assert client.searches[0]["query"] == "(L_ListingID=240117)"
    assert client.searches[0]["limit"] == 1
    assert service.get_property_photos("240117") == ["/api/photos/240117?idx=0", "/api/photos/240117?idx=1"]


def test_get_property_missing_or_failing_is_none():
    assert _rets(FakeClient()).get_property("nope") is None
    assert _rets(FakeClient({"RE_1": TransportError("down")})).get_property("x") is None
    assert _rets(FakeClient()).get_property_photos("nope") == []


def test_list_active_maps_asking_price():
    client = FakeClient({"RE_1": [_row("1"), _row("2")]})
    listings = _rets(client).list_active(limit=5)
    assert [p.sale_price for p in listings] == [1000000, 1000000]
    assert client.searches[0]["limit"] == 5
    assert client.searches[0]["query"].endswith("(L_StatusCatID=|1)")


def test_fetch_photo_passes_through():
    photo = PhotoObject(data=b"x" * 200, content_type="image/jpeg")
    assert _rets(FakeClient(photo=photo)).fetch_photo("1", 0) == photo


def test_geocode_without_api_key_uses_city_center():
    coords = _rets(FakeClient()).geocode_address("45 88th St", "sea isle city", "NJ", "08243")
    assert (coords.lat, coords.lng) == (39.1534, -74.6929)
    assert _rets(FakeClient()).geocode_address("1 Main St", "Atlantis", "NJ", "") is None


def test_jitter_is_stable_between_calls():
    row = _row("1", LMD_MP_Latitude="", LMD_MP_Longitude="")
    service = _rets(FakeClient({"RE_1": [row]}))
    first = service.get_property("1")
    second = service.get_property("1")
    assert (first.lat, first.lng) == (second.lat, second.lng)


def _local_service(tmp_path, records) -> LocalPropertyService:
    (tmp_path / "props.json").write_text(json.dumps(records))
    return LocalPropertyService(LocalRepository("props.json", str(tmp_path)), clock=lambda: TODAY)


def _record(listing_id, **overrides):
    record = {
        "id": listing_id,
        "address": f"{listing_id} Dune Dr",
        "city": "Sea Isle City",
        "state": "NJ",
        "zip": "08243",
        "bedrooms": 3,
        "bathrooms": 2.0,
        "sqft": 1600,
        "year_built": 2001,
        "property_type": "Single Family",
        "sale_date": "2026-09-01",
        "sale_price": 960000,
        "days_on_market": 12,
        "lat": 39.1534,
        "lng": -74.6929,
        "photos": ["https://img.example.com/a.jpg"],
    }
    record.update(overrides)
    return record


def test_local_service_strict_matching(tmp_path):
    service = _local_service(tmp_path, [_record("a"), _record("b", bedrooms=6), _record("c", sqft=1700)])
    results = service.search_comps(_subject())
    assert [comp.id for comp in results] == ["a", "c"]
    assert results[0].similarity_score >= results[1].similarity_score


def test_local_service_criteria_rescores(tmp_path):
    service = _local_service(tmp_path, [_record("c", sqft=1900), _record("a"), _record("b", bedrooms=5)])
    results = service.search_comps(_subject(), criteria=SearchCriteria(bed_variance=2))
    assert [comp.id for comp in results] == ["a", "b", "c"]
    assert all(comp.similarity_score > 0 for comp in results)


def test_local_service_lookup_and_listing(tmp_path):
    service = _local_service(tmp_path, [_record("a"), _record("b", photos="x.jpg|y.jpg")])
    assert service.get_property("b").photos == ["x.jpg", "y.jpg"]
    assert service.get_property("zzz") is None
    assert [p.id for p in service.list_active(limit=1)] == ["a"]
    assert service.fetch_photo("a") is None


def test_build_local_service():
    assert isinstance(build_property_service(Settings(data_source="mock")), LocalPropertyService)


def test_build_rets_service_requires_credentials():
    with pytest.raises(ConfigurationError):
        build_property_service(Settings(data_source="rets"))


def test_build_rets_service():
    settings = Settings(data_source="mls", rets_url="https://rets.example.com/login", username="u", password="p")
    service = build_property_service(settings)
    assert isinstance(service, RetsPropertyService)
    assert service.geocoder is None


def test_build_unknown_source():
    with pytest.raises(ConfigurationError):
        build_property_service(Settings(data_source="ftp"))


def test_active_search_tolerates_any_secondary_class_error():
    client = FakeClient({"RE_1": [_row("house")], "CT_5": ValueError("bad delimiter")})
    results = _rets(client).search_comps(_subject(), SearchMode.ACTIVE)
    assert [comp.id for comp in results] == ["house"]


def test_active_search_primary_unexpected_error_propagates():
    client = FakeClient({"RE_1": ValueError("broken"), "CT_5": [_row("condo")]})
    with pytest.raises(ValueError):
        _rets(client).search_comps(_subject(), SearchMode.ACTIVE)
