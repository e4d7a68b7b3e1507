"""IO helpers for loading local listing data into pandas DataFrames."""

from __future__ import annotations

import os
from functools import lru_cache

import pandas as pd

from .logging import get_logger

LOGGER = get_logger("utils.io")

DATA_DIR = os.getenv("DATA_DIR", os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "data"))


def resolve_path(name: str, data_dir: str = DATA_DIR) -> str:
    return name if os.path.isabs(name) else os.path.join(data_dir, name)


@lru_cache(maxsize=16)
def load_table(path: str) -> pd.DataFrame:
    """Load a JSON (records) or CSV file into a DataFrame.

    Files are read once per process; the returned frame must be treated as
    read-only by callers.
    """

    if not os.path.exists(path):
        raise FileNotFoundError(f"Data file not found: {path}")
    LOGGER.debug("loading_table path=%s", path)
    if path.endswith(".json"):
        return pd.read_json(path, orient="records", dtype=False, convert_dates=False)
    return pd.read_csv(path, dtype=str, keep_default_na=False)


__all__ = ["load_table", "resolve_path", "DATA_DIR"]
