"""Comparable sales selection logic."""

from __future__ import annotations

from datetime import date
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from ..models.property import CompResult, Property, SearchCriteria, SearchMode, SubjectProperty
from ..utils.geo import distance_between, has_coordinates, haversine_miles
from ..utils.logging import get_logger
from .scoring import LOCAL_PROFILE, PROVIDER_PROFILE, ScoringProfile, price_per_sqft, similarity_score

LOGGER = get_logger("services.comps")

MIN_SIMILARITY = 15
MAX_ACTIVE = 15
MAX_SOLD = 10
MAX_LOCAL = 10


def build_comp(
    listing: Property,
    subject: SubjectProperty,
    distance_miles: Optional[float],
    profile: ScoringProfile,
    today: Optional[date] = None,
    scored: bool = True,
) -> CompResult:
    return CompResult(
        **listing.model_dump(),
        distance_miles=distance_miles or 0.0,
        price_per_sqft=price_per_sqft(listing.sale_price, listing.sqft),
        similarity_score=similarity_score(listing, subject, distance_miles, profile, today) if scored else 0,
        selected=False,
    )


def rank(comps: Sequence[CompResult], limit: int) -> List[CompResult]:
    # sorted() is stable, so equal scores keep the MLS response order.
    return sorted(comps, key=lambda comp: comp.similarity_score, reverse=True)[:limit]


class CompsService:
    """Scores provider listings against a subject and keeps the best matches.

    Distance and recency only influence the score here; the provider query
    already narrowed city, status, size and room counts.
    """

    def __init__(
        self,
        min_similarity: int = MIN_SIMILARITY,
        max_active: int = MAX_ACTIVE,
        max_sold: int = MAX_SOLD,
        profile: ScoringProfile = PROVIDER_PROFILE,
    ) -> None:
        self.min_similarity = min_similarity
        self.max_active = max_active
        self.max_sold = max_sold
        self.profile = profile

    def match(
        self,
        listings: Sequence[Property],
        subject: SubjectProperty,
        mode: SearchMode = SearchMode.SOLD,
        today: Optional[date] = None,
    ) -> List[CompResult]:
        comps = []
        for listing in listings:
            distance = distance_between(subject.lat, subject.lng, listing.lat, listing.lng)
            comps.append(build_comp(listing, subject, distance, self.profile, today))
        kept = [comp for comp in comps if comp.similarity_score >= self.min_similarity]
        limit = self.max_active if mode == SearchMode.ACTIVE else self.max_sold
        ranked = rank(kept, limit)
        LOGGER.info(
            "comps_ranked mode=%s candidates=%s kept=%s returned=%s",
            mode.value,
            len(comps),
            len(kept),
            len(ranked),
        )
        return ranked


# ---------------------------------------------------------------------------
# Local data path
# ---------------------------------------------------------------------------


def _frame(properties: Sequence[Property], subject: SubjectProperty) -> pd.DataFrame:
    df = pd.DataFrame(
        {
            "position": range(len(properties)),
            "property_type": [p.property_type.value for p in properties],
            "bedrooms": [p.bedrooms for p in properties],
            "bathrooms": [p.bathrooms for p in properties],
            "sqft": [p.sqft for p in properties],
            "sale_date": pd.to_datetime([p.sale_date for p in properties], errors="coerce"),
            "lat": [p.lat for p in properties],
            "lng": [p.lng for p in properties],
        }
    )
    if subject.sqft > 0:
        df["sqft_diff"] = (df["sqft"] - subject.sqft).abs() / subject.sqft
    else:
        df["sqft_diff"] = np.nan
    if has_coordinates(subject.lat, subject.lng):
        has_geo = (df["lat"] != 0) & (df["lng"] != 0)
        distances = haversine_miles(subject.lat, subject.lng, df["lat"].to_numpy(), df["lng"].to_numpy())
        df["distance"] = np.where(has_geo, distances, np.nan)
    else:
        df["distance"] = np.nan
    return df


def _cutoff(today: date, months: int) -> pd.Timestamp:
    return pd.Timestamp(today) - pd.DateOffset(months=months)


def _scored(
    properties: Sequence[Property],
    df: pd.DataFrame,
    subject: SubjectProperty,
    today: date,
    scored: bool = True,
) -> List[CompResult]:
    comps = []
    for position, distance in zip(df["position"], df["distance"]):
        comps.append(
            build_comp(
                properties[int(position)],
                subject,
                None if pd.isna(distance) else float(distance),
                LOCAL_PROFILE,
                today,
                scored=scored,
            )
        )
    return comps


def match_local(
    properties: Sequence[Property],
    subject: SubjectProperty,
    today: Optional[date] = None,
    limit: int = MAX_LOCAL,
) -> List[CompResult]:
    """Strict matching for local/demo data.

    Must match: property type, beds +/-1, baths +/-1. Filters: sold within
    12 months, sqft within 20%, within 2 miles when the subject has
    coordinates; listings without coordinates are then excluded. No minimum
    score; top ``limit`` by similarity.
    """

    today = today or date.today()
    if not properties:
        return []
    df = _frame(properties, subject)
    mask = (
        (df["property_type"] == subject.property_type.value)
        & ((df["bedrooms"] - subject.bedrooms).abs() <= 1)
        & ((df["bathrooms"] - subject.bathrooms).abs() <= 1)
        & (df["sale_date"] >= _cutoff(today, 12))
        & (df["sqft_diff"].isna() | (df["sqft_diff"] <= LOCAL_PROFILE.sqft_variance))
    )
    if has_coordinates(subject.lat, subject.lng):
        mask &= df["distance"].notna() & (df["distance"] <= LOCAL_PROFILE.distance_miles)
    return rank(_scored(properties, df[mask], subject, today), limit)


def filter_comps(
    properties: Sequence[Property],
    subject: SubjectProperty,
    criteria: SearchCriteria,
    today: Optional[date] = None,
) -> List[CompResult]:
    """Apply caller-supplied criteria as hard filters.

    Results keep input order and carry a similarity score of 0; scoring is
    left to the caller.
    """

    today = today or date.today()
    if not properties:
        return []
    df = _frame(properties, subject)
    mask = (
        (df["sale_date"] >= _cutoff(today, criteria.date_range_months))
        & ((df["bedrooms"] - subject.bedrooms).abs() <= criteria.bed_variance)
        & ((df["bathrooms"] - subject.bathrooms).abs() <= criteria.bath_variance)
        & (df["sqft_diff"].isna() | (df["sqft_diff"] <= criteria.sqft_variance_percent / 100))
        & (df["distance"].isna() | (df["distance"] <= criteria.radius_miles))
    )
    if criteria.property_type_match:
        mask &= df["property_type"] == subject.property_type.value
    return _scored(properties, df[mask], subject, today, scored=False)


__all__ = ["CompsService", "MAX_ACTIVE", "MAX_LOCAL", "MAX_SOLD", "MIN_SIMILARITY", "build_comp", "filter_comps", "match_local", "rank"]
