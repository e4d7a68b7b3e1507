"""Provider-specific field names and lookup tables.

The only provider wired up today is the Cape May County MLS (Paragon RETS).
It uses system names rather than standard names, so every query and every
decoded row goes through one of these tables.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from ..models.property import PropertyType, SearchMode


def _frozen(values: Dict) -> Mapping:
    return MappingProxyType(dict(values))


@dataclass(frozen=True)
class FieldMapping:
    fields: Mapping[str, str]
    city_codes: Mapping[str, str]
    type_codes: Mapping[PropertyType, str]
    status_codes: Mapping[SearchMode, str]
    city_centers: Mapping[str, Tuple[float, float]]
    residential_class: str = "RE_1"
    condo_class: str = "CT_5"
    resource: str = "Property"
    default_state: str = ""
    max_photos: int = 10
    _lower_cities: Mapping[str, str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_lower_cities", _frozen({name.lower(): code for name, code in self.city_codes.items()}))

    def name_of(self, name: str) -> str:
        return self.fields[name]

    @property
    def select_fields(self) -> List[str]:
        return list(dict.fromkeys(self.fields.values()))

    def lookup_city(self, city: Optional[str]) -> Optional[str]:
        """Case-insensitive city name -> lookup code."""
        if not city:
            return None
        if city in self.city_codes:
            return self.city_codes[city]
        return self._lower_cities.get(city.strip().lower())

    def lookup_type(self, property_type: PropertyType) -> Optional[str]:
        return self.type_codes.get(property_type)

    def city_center(self, city: Optional[str]) -> Optional[Tuple[float, float]]:
        if not city:
            return None
        if city in self.city_centers:
            return self.city_centers[city]
        key = city.strip().lower()
        for name, center in self.city_centers.items():
            if name.lower() == key:
                return center
        return None

    def classes_for(self, mode: SearchMode) -> List[str]:
        if mode == SearchMode.ACTIVE:
            return [self.residential_class, self.condo_class]
        return [self.residential_class]


CAPE_MAY_MAPPING = FieldMapping(
    fields=_frozen(
        {
            "listing_id": "L_ListingID",
            "address": "L_Address",
            "city": "L_City",
            "zip": "L_Zip",
            "bedrooms": "L_Keyword1",
            "baths_full": "L_Keyword2",
            "baths_total": "LM_Dec_13",
            "sqft": "L_SquareFeet",
            "year_built": "LM_Char10_1",
            "type": "L_Type_",
            "asking_price": "L_AskingPrice",
            "sold_price": "L_SoldPrice",
            "status_date": "L_StatusDate",
            "status_category": "L_StatusCatID",
            "status": "L_Status",
            "lat": "LMD_MP_Latitude",
            "lng": "LMD_MP_Longitude",
            "photo_count": "L_PictureCount",
        }
    ),
    city_codes=_frozen(
        {
            "Sea Isle City": "SeaIsleC",
            "Avalon": "Avalon",
            "Stone Harbor": "StoneHar",
            "Cape May": "CapeMay",
            "Cape May Court House": "CMCrtHse",
            "Cape May Point": "CapeMyPt",
            "Wildwood": "Wildwood",
            "Wildwood Crest": "WildwCrs",
            "North Wildwood": "NWildwood",
            "Ocean City": "OceanCty",
            "Upper Township": "UpperTwp",
            "Middle Township": "MiddleTp",
            "Lower Township": "LowerTwp",
            "Dennis Township": "DennisTp",
            "Woodbine": "Woodbine",
            "West Cape May": "WCapeMay",
            "West Wildwood": "WWldwood",
        }
    ),
    type_codes=_frozen(
        {
            PropertyType.SINGLE_FAMILY: "4",
            PropertyType.TOWNHOUSE: "67",
        }
    ),
    status_codes=_frozen(
        {
            SearchMode.ACTIVE: "1",
            SearchMode.SOLD: "2",
        }
    ),
    # Keyed by decoded city name; COMPACT-DECODED returns full names, not codes.
    city_centers=_frozen(
        {
            "Sea Isle City": (39.1534, -74.6929),
            "Avalon": (39.1012, -74.7177),
            "Stone Harbor": (39.0526, -74.7608),
            "Cape May": (38.9351, -74.9060),
            "Cape May Court House": (39.0826, -74.8238),
            "Cape May Point": (38.9376, -74.9658),
            "Wildwood": (38.9918, -74.8148),
            "Wildwood Crest": (38.9748, -74.8238),
            "North Wildwood": (39.0026, -74.7988),
            "Ocean City": (39.2776, -74.5746),
            "Upper Township": (39.2048, -74.7238),
            "Middle Township": (39.0426, -74.8438),
            "Lower Township": (38.9626, -74.8838),
            "Dennis Township": (39.1926, -74.8238),
            "Woodbine": (39.2416, -74.8128),
            "West Cape May": (38.9398, -74.9380),
            "West Wildwood": (38.9928, -74.8268),
        }
    ),
    default_state="NJ",
)


__all__ = ["CAPE_MAY_MAPPING", "FieldMapping"]
