"""Environment-driven settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from .exceptions import ConfigurationError
from .utils.io import DATA_DIR

DEFAULT_USER_AGENT = "CompSearch/1.0"
DEFAULT_PHOTO_URL_TEMPLATE = "/api/photos/{listing_id}?idx={index}"


@dataclass(frozen=True)
class RetsConfig:
    login_url: str
    username: str
    password: str
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = 15.0

    def __repr__(self) -> str:
        return f"RetsConfig(login_url={self.login_url!r}, username={self.username!r}, user_agent={self.user_agent!r})"


@dataclass(frozen=True)
class Settings:
    data_source: str = "local"
    rets_url: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    user_agent: str = DEFAULT_USER_AGENT
    rets_timeout: float = 15.0
    google_maps_api_key: Optional[str] = None
    data_dir: str = DATA_DIR
    local_data_file: str = "properties.json"
    coord_jitter_seed: int = 0
    photo_url_template: str = DEFAULT_PHOTO_URL_TEMPLATE

    @classmethod
    def from_env(cls) -> "Settings":
        timeout = os.getenv("RETS_TIMEOUT", "15")
        seed = os.getenv("COORD_JITTER_SEED", "0")
        try:
            rets_timeout = float(timeout)
            jitter_seed = int(seed)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid numeric setting: {exc}") from exc
        return cls(
            data_source=os.getenv("DATA_SOURCE", "local").strip().lower(),
            rets_url=os.getenv("MLS_RETS_URL") or None,
            username=os.getenv("MLS_USERNAME") or None,
            password=os.getenv("MLS_PASSWORD") or None,
            user_agent=os.getenv("MLS_USER_AGENT") or DEFAULT_USER_AGENT,
            rets_timeout=rets_timeout,
            google_maps_api_key=os.getenv("GOOGLE_MAPS_API_KEY") or None,
            data_dir=os.getenv("DATA_DIR", DATA_DIR),
            local_data_file=os.getenv("LOCAL_DATA_FILE", "properties.json"),
            coord_jitter_seed=jitter_seed,
            photo_url_template=os.getenv("PHOTO_URL_TEMPLATE", DEFAULT_PHOTO_URL_TEMPLATE),
        )

    def has_rets_credentials(self) -> bool:
        return bool(self.rets_url and self.username and self.password)

    def rets_config(self) -> RetsConfig:
        if not self.has_rets_credentials():
            raise ConfigurationError("MLS credentials are not configured (MLS_RETS_URL, MLS_USERNAME, MLS_PASSWORD)")
        return RetsConfig(
            login_url=self.rets_url,
            username=self.username,
            password=self.password,
            user_agent=self.user_agent,
            timeout=self.rets_timeout,
        )

    def __repr__(self) -> str:
        return (
            f"Settings(data_source={self.data_source!r}, rets_url={self.rets_url!r}, "
            f"username={self.username!r}, data_dir={self.data_dir!r})"
        )
