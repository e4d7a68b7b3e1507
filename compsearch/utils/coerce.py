from datetime import date, datetime
from typing import Optional

import pandas as pd


def to_int(v) -> Optional[int]:
    try:
        if v is None or v == "" or str(v).lower() == "null":
            return None
        return int(float(v))
    except (TypeError, ValueError):
        return None

def to_float(v) -> Optional[float]:
    try:
        if v is None or v == "" or str(v).lower() == "null":
            return None
        return float(v)
    except (TypeError, ValueError):
        return None

def to_str(v) -> str:
    return "" if v is None else str(v).strip()

def to_date(v) -> Optional[date]:
    if v is None:
        return None
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, date):
        return v
    text = str(v).strip()
    if not text:
        return None
    stamp = pd.to_datetime(text, errors="coerce")
    if pd.isna(stamp):
        return None
    return stamp.date()

def to_half(v) -> float:
    """Snap a bathroom count to the nearest half, never below zero."""
    value = to_float(v) or 0.0
    return max(0.0, round(value * 2) / 2)
