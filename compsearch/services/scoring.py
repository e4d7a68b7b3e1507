"""Deterministic similarity scoring between a subject and a candidate listing."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Dict, Optional

from ..models.property import Property, SubjectProperty

ComponentKey = str


@dataclass(frozen=True)
class ScoringProfile:
    """Falloff bounds for one matching engine.

    ``missing_distance_credit`` is the flat distance credit awarded when no
    distance could be computed. ``None`` treats the listing as 0 miles away.
    """

    name: str
    sqft_variance: float
    distance_miles: float
    recency_days: int
    missing_distance_credit: Optional[float] = None


@dataclass(frozen=True)
class SimilarityBreakdown:
    sqft: float
    distance: float
    bedrooms: float
    bathrooms: float
    recency: float

    @property
    def total(self) -> int:
        raw = self.sqft + self.distance + self.bedrooms + self.bathrooms + self.recency
        return max(0, min(100, int(round(raw))))

    def to_dict(self) -> Dict[ComponentKey, float]:
        return {
            "sqft": self.sqft,
            "distance": self.distance,
            "bedrooms": self.bedrooms,
            "bathrooms": self.bathrooms,
            "recency": self.recency,
        }


# ---------------------------------------------------------------------------
# Scoring configuration
# ---------------------------------------------------------------------------

COMPONENT_WEIGHTS: Dict[ComponentKey, float] = {
    "sqft": 35.0,
    "distance": 25.0,
    "bedrooms": 20.0,
    "bathrooms": 15.0,
    "recency": 5.0,
}

LOCAL_PROFILE = ScoringProfile(name="local", sqft_variance=0.20, distance_miles=2.0, recency_days=365)
PROVIDER_PROFILE = ScoringProfile(
    name="provider",
    sqft_variance=0.25,
    distance_miles=5.0,
    recency_days=730,
    missing_distance_credit=15.0,
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def score_breakdown(
    listing: Property,
    subject: SubjectProperty,
    distance_miles: Optional[float],
    profile: ScoringProfile = PROVIDER_PROFILE,
    today: Optional[date] = None,
) -> SimilarityBreakdown:
    today = today or date.today()
    return SimilarityBreakdown(
        sqft=_sqft_points(listing.sqft, subject.sqft, profile),
        distance=_distance_points(distance_miles, profile),
        bedrooms=bedroom_points(listing.bedrooms, subject.bedrooms),
        bathrooms=bathroom_points(listing.bathrooms, subject.bathrooms),
        recency=_recency_points(listing.sale_date, today, profile),
    )


def similarity_score(
    listing: Property,
    subject: SubjectProperty,
    distance_miles: Optional[float],
    profile: ScoringProfile = PROVIDER_PROFILE,
    today: Optional[date] = None,
) -> int:
    """0-100 similarity; each component is clamped at zero before summing."""

    return score_breakdown(listing, subject, distance_miles, profile, today).total


def bedroom_points(listing_beds: int, subject_beds: int) -> float:
    diff = abs(listing_beds - subject_beds)
    if diff == 0:
        return COMPONENT_WEIGHTS["bedrooms"]
    if diff == 1:
        return 10.0
    return 0.0


def bathroom_points(listing_baths: float, subject_baths: float) -> float:
    diff = abs(listing_baths - subject_baths)
    if diff == 0:
        return COMPONENT_WEIGHTS["bathrooms"]
    if diff <= 1:
        return 7.0
    return 0.0


def price_per_sqft(price: float, sqft: int) -> int:
    if not sqft or sqft <= 0:
        return 0
    return int(round(price / sqft))


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _falloff(weight: float, value: float, bound: float) -> float:
    if bound <= 0:
        return 0.0
    return max(0.0, weight * (1 - value / bound))


def _sqft_points(listing_sqft: int, subject_sqft: int, profile: ScoringProfile) -> float:
    if subject_sqft <= 0 or listing_sqft <= 0:
        return 0.0
    diff = abs(listing_sqft - subject_sqft) / subject_sqft
    return _falloff(COMPONENT_WEIGHTS["sqft"], diff, profile.sqft_variance)


def _distance_points(distance_miles: Optional[float], profile: ScoringProfile) -> float:
    if distance_miles is None:
        if profile.missing_distance_credit is not None:
            return profile.missing_distance_credit
        distance_miles = 0.0
    return _falloff(COMPONENT_WEIGHTS["distance"], max(0.0, distance_miles), profile.distance_miles)


def _recency_points(sale_date: Optional[date], today: date, profile: ScoringProfile) -> float:
    if sale_date is None:
        return 0.0
    days = max(0, (today - sale_date).days)
    return _falloff(COMPONENT_WEIGHTS["recency"], days, profile.recency_days)


__all__ = [
    "COMPONENT_WEIGHTS",
    "LOCAL_PROFILE",
    "PROVIDER_PROFILE",
    "ScoringProfile",
    "SimilarityBreakdown",
    "bathroom_points",
    "bedroom_points",
    "price_per_sqft",
    "score_breakdown",
    "similarity_score",
]
