"""Pydantic models representing listings, subjects and comparable results."""

from __future__ import annotations

import math
from datetime import date
from enum import Enum
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field


class PropertyType(str, Enum):
    SINGLE_FAMILY = "Single Family"
    CONDO = "Condo"
    TOWNHOUSE = "Townhouse"


class SearchMode(str, Enum):
    ACTIVE = "active"
    SOLD = "sold"


def _check_bathrooms(value: float) -> float:
    if not math.isfinite(value):
        raise ValueError("bathrooms must be a finite number")
    if value < 0:
        raise ValueError("bathrooms must be >= 0")
    if (value * 2) != int(value * 2):
        raise ValueError("bathrooms must be a multiple of 0.5")
    return value


Bathrooms = Annotated[float, AfterValidator(_check_bathrooms)]


class Property(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    address: str
    city: str
    state: str
    zip: str
    bedrooms: int = 0
    bathrooms: Bathrooms = 0.0
    sqft: int = 0
    year_built: int = 0
    property_type: PropertyType = PropertyType.SINGLE_FAMILY
    sale_date: Optional[date] = None
    sale_price: float = 0.0
    days_on_market: int = 0
    lat: float = 0.0
    lng: float = 0.0
    photos: List[str] = Field(default_factory=list)


class SubjectProperty(BaseModel):
    address: str = ""
    city: str
    state: str = ""
    zip: str = ""
    bedrooms: int = Field(0, ge=0)
    bathrooms: Bathrooms = 0.0
    sqft: int = Field(0, ge=0)
    year_built: int = 0
    property_type: PropertyType = PropertyType.SINGLE_FAMILY
    lat: Optional[float] = None
    lng: Optional[float] = None
    photos: Optional[List[str]] = None
    listing_id: Optional[str] = None


class SearchCriteria(BaseModel):
    radius_miles: float = Field(5.0, gt=0)
    date_range_months: int = Field(12, ge=1)
    bed_variance: int = Field(1, ge=0)
    bath_variance: float = Field(1.0, ge=0)
    sqft_variance_percent: float = Field(20.0, ge=0)
    property_type_match: bool = True


class CompResult(Property):
    model_config = ConfigDict(frozen=False)

    distance_miles: float = Field(0.0, ge=0)
    price_per_sqft: int = 0
    similarity_score: int = Field(0, ge=0, le=100)
    selected: bool = False


class Coordinates(BaseModel):
    lat: float
    lng: float


class CompSearchRequest(BaseModel):
    subject: SubjectProperty
    mode: SearchMode = SearchMode.SOLD
    criteria: Optional[SearchCriteria] = None


class CompSearchResponse(BaseModel):
    results: List[CompResult]
    mode: SearchMode
