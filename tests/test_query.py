from datetime import date

from compsearch.db.field_mapping import CAPE_MAY_MAPPING
from compsearch.db.query import active_listings_query, build_query, city_condition, listing_query
from compsearch.models.property import PropertyType, SearchCriteria, SearchMode, SubjectProperty

TODAY = date(2026, 10, 19)


def _subject(**overrides) -> SubjectProperty:
    values = {
        "address": "45 88th St",
        "city": "Sea Isle City",
        "state": "NJ",
        "zip": "08243",
        "bedrooms": 3,
        "bathrooms": 2.0,
        "sqft": 1600,
    }
    values.update(overrides)
    return SubjectProperty(**values)


def test_sold_query_conditions_in_order():
    query = build_query(_subject(), SearchMode.SOLD, today=TODAY)
    assert query == (
        "(L_City=|SeaIsleC),"
        "(L_StatusCatID=|2),"
        "(L_Keyword1=2-4),"
        "(L_Keyword2=1-3),"
        "(L_SquareFeet=1200-2000),"
        "(L_StatusDate=2026-07-21+)"
    )


def test_city_lookup_is_case_insensitive():
    assert build_query(_subject(city="sea isle city"), today=TODAY).startswith("(L_City=|SeaIsleC)")
    assert city_condition(_subject(city="  AVALON ")) == "(L_City=|Avalon)"


def test_unknown_city_falls_back_to_every_code():
    condition = city_condition(_subject(city="Atlantis"))
    codes = condition[len("(L_City=|") : -1].split(",")
    assert sorted(codes) == sorted(CAPE_MAY_MAPPING.city_codes.values())


def test_sold_ranges_floor_at_one():
    query = build_query(_subject(bedrooms=1, bathrooms=1.0), today=TODAY)
    assert "(L_Keyword1=1-2)" in query
    assert "(L_Keyword2=1-2)" in query


def test_fractional_baths_keep_decimal():
    query = build_query(_subject(bathrooms=2.5), today=TODAY)
    assert "(L_Keyword2=1.5-3.5)" in query


def test_active_query_is_wider_and_undated():
    query = build_query(_subject(), SearchMode.ACTIVE, today=TODAY)
    assert "(L_StatusCatID=|1)" in query
    assert "(L_Keyword1=1-5)" in query
    assert "(L_Keyword2=1-4)" in query
    assert "(L_SquareFeet=800-2400)" in query
    assert "L_StatusDate" not in query


def test_active_query_skips_zero_valued_ranges():
    query = build_query(_subject(bedrooms=0, bathrooms=0.0, sqft=0), SearchMode.ACTIVE, today=TODAY)
    assert query == "(L_City=|SeaIsleC),(L_StatusCatID=|1)"


def test_sold_type_pinned_only_with_criteria():
    plain = build_query(_subject(), SearchMode.SOLD, today=TODAY)
    pinned = build_query(_subject(), SearchMode.SOLD, SearchCriteria(), today=TODAY)
    assert "L_Type_" not in plain
    assert "(L_Type_=|4)" in pinned
    assert pinned.endswith("(L_StatusDate=2026-07-21+)")


def test_condo_has_no_type_code():
    query = build_query(_subject(property_type=PropertyType.CONDO), SearchMode.SOLD, SearchCriteria(), today=TODAY)
    assert "L_Type_" not in query


def test_criteria_without_type_match():
    criteria = SearchCriteria(property_type_match=False)
    assert "L_Type_" not in build_query(_subject(), SearchMode.SOLD, criteria, today=TODAY)


def test_listing_and_browse_queries():
    assert listing_query("123456") == "(L_ListingID=123456)"
    browse = active_listings_query()
    assert browse.startswith("(L_City=|")
    assert browse.endswith(",(L_StatusCatID=|1)")
