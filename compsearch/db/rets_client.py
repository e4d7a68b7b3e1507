"""Stateless RETS 1.8 client built on requests.

Every public operation runs its own login -> action -> logout cycle on a
fresh HTTP session, so no RETS session outlives the call that opened it.
"""

from __future__ import annotations

import base64
import re
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, NamedTuple, Optional, Sequence
from urllib.parse import urljoin, urlsplit

import requests

from ..config import RetsConfig
from ..exceptions import AuthError, TransportError
from ..utils.logging import get_logger
from .compact import NO_RECORDS_FOUND, Row, decode_compact, has_columns, parse_reply, record_count

LOGGER = get_logger("db.rets")

RETS_VERSION = "RETS/1.8"
LOGIN_OK_STATUSES = (200, 302)
MIN_IMAGE_BYTES = 100
DEFAULT_LIMIT = 25

SessionFactory = Callable[[], requests.Session]


@dataclass(frozen=True)
class Session:
    search_url: str
    get_object_url: str
    logout_url: str
    cookie: str = ""

    def __repr__(self) -> str:
        return f"Session(search_url={self.search_url!r}, get_object_url={self.get_object_url!r}, logout_url={self.logout_url!r})"


class PhotoObject(NamedTuple):
    data: bytes
    content_type: str


def _capability(body: str, key: str, origin: str) -> str:
    match = re.search(rf"^\s*{key}\s*=\s*(\S+)", body, re.IGNORECASE | re.MULTILINE)
    if not match:
        return ""
    value = match.group(1).strip()
    if urlsplit(value).scheme:
        return value
    return urljoin(origin + "/", value)


def parse_login_response(body: str, login_url: str, cookie: str = "") -> Session:
    """Extract capability URLs, resolving relative paths against the login origin."""

    parts = urlsplit(login_url)
    origin = f"{parts.scheme}://{parts.netloc}"
    return Session(
        search_url=_capability(body, "Search", origin),
        get_object_url=_capability(body, "GetObject", origin),
        logout_url=_capability(body, "Logout", origin),
        cookie=cookie,
    )


def session_cookie(response: requests.Response) -> str:
    """Join the name=value pairs of every Set-Cookie header, attributes dropped."""

    return "; ".join(f"{cookie.name}={cookie.value}" for cookie in response.cookies)


class RetsClient:
    def __init__(
        self,
        config: RetsConfig,
        session_factory: SessionFactory = requests.Session,
        background_logout: bool = True,
    ) -> None:
        self.config = config
        self.session_factory = session_factory
        self.background_logout = background_logout
        token = base64.b64encode(f"{config.username}:{config.password}".encode("utf-8")).decode("ascii")
        self._headers = {
            "Authorization": f"Basic {token}",
            "User-Agent": config.user_agent,
            "RETS-Version": RETS_VERSION,
            "Accept": "*/*",
        }

    # ------------------------------------------------------------------
    # Session negotiation
    def headers(self, session: Optional[Session] = None) -> Dict[str, str]:
        headers = dict(self._headers)
        if session is not None and session.cookie:
            headers["Cookie"] = session.cookie
        return headers

    def login(self, http: requests.Session) -> Session:
        url = self.config.login_url
        try:
            response = http.get(url, headers=self.headers(), timeout=self.config.timeout, allow_redirects=False)
        except requests.RequestException as exc:
            raise TransportError(f"RETS login failed: {exc}") from exc
        if response.status_code not in LOGIN_OK_STATUSES:
            raise TransportError(f"RETS login failed: {response.status_code} {response.reason}", response.status_code)

        body = response.text
        code, text = parse_reply(body)
        if code is not None and code != "0":
            raise AuthError(code, text, action="login")

        session = parse_login_response(body, url, session_cookie(response))
        LOGGER.debug("rets_login status=%s search=%s", response.status_code, bool(session.search_url))
        return session

    def logout(self, http: requests.Session, session: Session) -> None:
        """Fire-and-forget logout; never raises."""

        def _run() -> None:
            try:
                if session.logout_url:
                    http.get(session.logout_url, headers=self.headers(session), timeout=self.config.timeout)
            except Exception as exc:  # best effort
                LOGGER.debug("rets_logout_failed error=%s", exc)
            finally:
                http.close()

        if self.background_logout:
            threading.Thread(target=_run, name="rets-logout", daemon=True).start()
        else:
            _run()

    @contextmanager
    def session_scope(self) -> Iterator[tuple]:
        """Login, yield ``(http, session)``, then always log out."""

        http = self.session_factory()
        try:
            session = self.login(http)
        except BaseException:
            http.close()
            raise
        try:
            yield http, session
        finally:
            self.logout(http, session)

    # ------------------------------------------------------------------
    # Actions
    def search(
        self,
        resource: str,
        class_name: str,
        query: str,
        select: Optional[Sequence[str]] = None,
        limit: int = DEFAULT_LIMIT,
    ) -> List[Row]:
        params = {
            "SearchType": resource,
            "Class": class_name,
            "Query": query,
            "QueryType": "DMQL2",
            "Format": "COMPACT-DECODED",
            "Limit": str(limit),
            "Count": "1",
            "StandardNames": "0",
        }
        if select:
            params["Select"] = ",".join(select)

        with self.session_scope() as (http, session):
            if not session.search_url:
                raise TransportError("RETS login succeeded but no Search capability URL found")
            try:
                response = http.get(session.search_url, params=params, headers=self.headers(session), timeout=self.config.timeout)
            except requests.RequestException as exc:
                raise TransportError(f"RETS search failed: {exc}") from exc
            if response.status_code != 200:
                raise TransportError(f"RETS search failed: {response.status_code} {response.reason}", response.status_code)

            body = response.text
            code, text = parse_reply(body)
            if code == NO_RECORDS_FOUND:
                LOGGER.info("rets_search class=%s rows=0 reply=%s", class_name, code)
                return []
            if code is not None and code != "0":
                raise AuthError(code, text, action="search")

            rows = decode_compact(body)
            if not rows and "<DATA>" in body.upper() and not has_columns(body):
                LOGGER.warning("rets_search_malformed class=%s reason=missing_columns", class_name)
            LOGGER.info("rets_search class=%s rows=%s count=%s", class_name, len(rows), record_count(body))
            return rows

    def get_photo(self, listing_id: str, index: int = 0) -> Optional[PhotoObject]:
        """Fetch one listing photo; ``None`` whenever the MLS has no usable image."""

        try:
            with self.session_scope() as (http, session):
                return self._get_object(http, session, listing_id, index)
        except AuthError as exc:
            LOGGER.warning("rets_photo_login_rejected listing=%s code=%s", listing_id, exc.code)
            return None

    def _get_object(self, http: requests.Session, session: Session, listing_id: str, index: int) -> Optional[PhotoObject]:
        if not session.get_object_url:
            return None
        params = {"Type": "Photo", "Resource": "Property", "ID": f"{listing_id}:{index}"}
        try:
            response = http.get(session.get_object_url, params=params, headers=self.headers(session), timeout=self.config.timeout)
        except requests.RequestException as exc:
            raise TransportError(f"RETS getobject failed: {exc}") from exc
        if not response.ok:
            LOGGER.info("rets_photo_missing listing=%s idx=%s status=%s", listing_id, index, response.status_code)
            return None

        content_type = response.headers.get("Content-Type") or "image/jpeg"
        # Errors come back as XML even with a 200 status.
        if "text/xml" in content_type or "text/html" in content_type:
            return None
        data = response.content
        if len(data) < MIN_IMAGE_BYTES:
            return None
        return PhotoObject(data=data, content_type=content_type)


__all__ = ["PhotoObject", "RetsClient", "Session", "parse_login_response", "session_cookie"]
