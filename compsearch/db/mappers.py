import random
from typing import Any, Dict, List, Optional

from ..models.property import Property, PropertyType, SearchMode
from ..utils.coerce import to_date, to_float, to_half, to_int, to_str
from .field_mapping import CAPE_MAY_MAPPING, FieldMapping

# +/-0.003 degrees (~300m) keeps fallback markers from stacking on the city center.
JITTER_DEGREES = 0.006
PHOTO_URL_TEMPLATE = "/api/photos/{listing_id}?idx={index}"


def map_property_type(value: str) -> PropertyType:
    text = (value or "").lower()
    if "condo" in text:
        return PropertyType.CONDO
    if "town" in text:
        return PropertyType.TOWNHOUSE
    return PropertyType.SINGLE_FAMILY


class ListingMapper:
    """Turns decoded RETS rows into Property records.

    When the MLS omits coordinates the listing is placed on its city center
    plus a random offset. The offset comes from ``rng`` so callers control
    the seed; pass ``jitter=0`` to pin listings exactly on the center.
    """

    def __init__(
        self,
        mapping: FieldMapping = CAPE_MAY_MAPPING,
        rng: Optional[random.Random] = None,
        jitter: float = JITTER_DEGREES,
        photo_url_template: str = PHOTO_URL_TEMPLATE,
    ) -> None:
        self.mapping = mapping
        self.rng = rng or random.Random(0)
        self.jitter = jitter
        self.photo_url_template = photo_url_template

    def _get(self, row: Dict[str, Any], name: str) -> Any:
        return row.get(self.mapping.name_of(name))

    def map_row(self, row: Dict[str, Any], mode: SearchMode = SearchMode.SOLD) -> Property:
        baths_full = to_float(self._get(row, "baths_full")) or 0.0
        baths_total = to_float(self._get(row, "baths_total")) or baths_full

        asking = to_float(self._get(row, "asking_price")) or 0.0
        if mode == SearchMode.ACTIVE:
            price = asking
        else:
            price = to_float(self._get(row, "sold_price")) or asking

        listing_id = to_str(self._get(row, "listing_id"))
        city = to_str(self._get(row, "city"))
        lat, lng = self._coordinates(row, city)

        return Property(
            id=listing_id,
            address=to_str(self._get(row, "address")),
            city=city,
            state=self.mapping.default_state,
            zip=to_str(self._get(row, "zip")),
            bedrooms=to_int(self._get(row, "bedrooms")) or 0,
            bathrooms=to_half(baths_total),
            sqft=to_int(self._get(row, "sqft")) or 0,
            year_built=to_int(self._get(row, "year_built")) or 0,
            property_type=map_property_type(to_str(self._get(row, "type"))),
            sale_date=to_date(self._get(row, "status_date")),
            sale_price=price,
            days_on_market=0,  # not exposed by this MLS
            lat=lat,
            lng=lng,
            photos=self._photos(listing_id, to_int(self._get(row, "photo_count")) or 0),
        )

    def map_rows(self, rows: List[Dict[str, Any]], mode: SearchMode = SearchMode.SOLD) -> List[Property]:
        return [self.map_row(row, mode) for row in rows]

    def _coordinates(self, row: Dict[str, Any], city: str):
        lat = to_float(self._get(row, "lat")) or 0.0
        lng = to_float(self._get(row, "lng")) or 0.0
        if lat or lng:
            return lat, lng
        center = self.mapping.city_center(city)
        if center is None:
            return 0.0, 0.0
        c_lat, c_lng = center
        return (
            c_lat + (self.rng.random() - 0.5) * self.jitter,
            c_lng + (self.rng.random() - 0.5) * self.jitter,
        )

    def _photos(self, listing_id: str, count: int) -> List[str]:
        if not listing_id:
            return []
        count = max(0, min(count, self.mapping.max_photos))
        return [self.photo_url_template.format(listing_id=listing_id, index=i) for i in range(count)]
