"""DMQL2 query construction for comparable searches."""

from __future__ import annotations

from datetime import date, timedelta
from typing import List, Optional

from ..models.property import SearchCriteria, SearchMode, SubjectProperty
from .field_mapping import CAPE_MAY_MAPPING, FieldMapping

SOLD_WINDOW_DAYS = 90

# (bed/bath spread, sqft lower factor, sqft upper factor)
SOLD_RANGES = (1, 0.75, 1.25)
ACTIVE_RANGES = (2, 0.50, 1.50)


def _num(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _range(field: str, low: float, high: float) -> str:
    return f"({field}={_num(low)}-{_num(high)})"


def _lookup(field: str, *codes: str) -> str:
    return f"({field}=|{','.join(codes)})"


def city_condition(subject: SubjectProperty, mapping: FieldMapping = CAPE_MAY_MAPPING) -> str:
    """Exact lookup for a known city, otherwise every known city."""

    field = mapping.name_of("city")
    code = mapping.lookup_city(subject.city)
    if code:
        return _lookup(field, code)
    return _lookup(field, *mapping.city_codes.values())


def build_query(
    subject: SubjectProperty,
    mode: SearchMode = SearchMode.SOLD,
    criteria: Optional[SearchCriteria] = None,
    mapping: FieldMapping = CAPE_MAY_MAPPING,
    today: Optional[date] = None,
) -> str:
    """Translate a subject property into a comma-joined DMQL2 conjunction.

    Sold searches are narrow (beds/baths +/-1, sqft 75-125%, last 90 days);
    active searches are wider (+/-2, 50-150%) with no date bound. When a
    criteria object asks for a property-type match, sold searches also pin
    the listing type; active searches rely on the residential/condo class
    split instead.
    """

    spread, sqft_low, sqft_high = ACTIVE_RANGES if mode == SearchMode.ACTIVE else SOLD_RANGES
    conditions: List[str] = [
        city_condition(subject, mapping),
        _lookup(mapping.name_of("status_category"), mapping.status_codes[mode]),
    ]

    if mode == SearchMode.SOLD or subject.bedrooms > 0:
        conditions.append(_range(mapping.name_of("bedrooms"), max(1, subject.bedrooms - spread), subject.bedrooms + spread))
    if mode == SearchMode.SOLD or subject.bathrooms > 0:
        conditions.append(_range(mapping.name_of("baths_full"), max(1, subject.bathrooms - spread), subject.bathrooms + spread))
    if subject.sqft > 0:
        conditions.append(_range(mapping.name_of("sqft"), round(subject.sqft * sqft_low), round(subject.sqft * sqft_high)))

    if mode == SearchMode.SOLD:
        if criteria is not None and criteria.property_type_match:
            type_code = mapping.lookup_type(subject.property_type)
            if type_code:
                conditions.append(_lookup(mapping.name_of("type"), type_code))
        start = (today or date.today()) - timedelta(days=SOLD_WINDOW_DAYS)
        conditions.append(f"({mapping.name_of('status_date')}={start.isoformat()}+)")

    return ",".join(conditions)


def listing_query(listing_id: str, mapping: FieldMapping = CAPE_MAY_MAPPING) -> str:
    return f"({mapping.name_of('listing_id')}={listing_id})"


def active_listings_query(mapping: FieldMapping = CAPE_MAY_MAPPING) -> str:
    """Every active listing across the known cities."""
    return ",".join(
        [
            _lookup(mapping.name_of("city"), *mapping.city_codes.values()),
            _lookup(mapping.name_of("status_category"), mapping.status_codes[SearchMode.ACTIVE]),
        ]
    )


__all__ = ["SOLD_WINDOW_DAYS", "active_listings_query", "build_query", "city_condition", "listing_query"]
