"""File-backed listing repository used by the local demo data source."""

from __future__ import annotations

import os
from typing import Dict, List, Optional

import pandas as pd

from ..models.property import Property
from ..utils.coerce import to_date, to_float, to_half, to_int, to_str
from ..utils.io import DATA_DIR, load_table, resolve_path
from ..utils.logging import get_logger
from .mappers import map_property_type

LOGGER = get_logger("db.local_repo")

P_DEFAULT = "properties.json"


class LocalRepository:
    def __init__(self, filename: str = P_DEFAULT, data_dir: str = DATA_DIR) -> None:
        self.path = resolve_path(filename, data_dir)
        self._properties: Optional[List[Property]] = None

    @property
    def properties(self) -> List[Property]:
        if self._properties is None:
            self._properties = self._load()
            LOGGER.info("local_repo_loaded path=%s rows=%s", os.path.basename(self.path), len(self._properties))
        return self._properties

    def list_properties(self, limit: Optional[int] = None) -> List[Property]:
        items = self.properties
        return list(items if limit is None else items[:limit])

    def get_property(self, property_id: str) -> Optional[Property]:
        for prop in self.properties:
            if prop.id == property_id:
                return prop
        return None

    def _load(self) -> List[Property]:
        df = load_table(self.path)
        if df.empty:
            return []
        df = df.where(pd.notnull(df), None)
        return [self._to_property(record) for record in df.to_dict("records")]

    def _to_property(self, r: Dict) -> Property:
        photos = r.get("photos") or []
        if isinstance(photos, str):
            photos = [p for p in photos.split("|") if p]
        return Property(
            id=to_str(r.get("id")),
            address=to_str(r.get("address")),
            city=to_str(r.get("city")),
            state=to_str(r.get("state")),
            zip=to_str(r.get("zip")),
            bedrooms=to_int(r.get("bedrooms")) or 0,
            bathrooms=to_half(r.get("bathrooms")),
            sqft=to_int(r.get("sqft")) or 0,
            year_built=to_int(r.get("year_built")) or 0,
            property_type=map_property_type(to_str(r.get("property_type"))),
            sale_date=to_date(r.get("sale_date")),
            sale_price=to_float(r.get("sale_price")) or 0.0,
            days_on_market=to_int(r.get("days_on_market")) or 0,
            lat=to_float(r.get("lat")) or 0.0,
            lng=to_float(r.get("lng")) or 0.0,
            photos=list(photos),
        )


__all__ = ["LocalRepository"]
