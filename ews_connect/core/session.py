"""
ews_connect.core.session - Session state (credentials and cookies)
===================================================================

Holds the mutable, process-local state owned by one Connection:

- Credentials scoped to the endpoint
- The cookie jar shared with the HTTP transport

The jar is the same ``RequestsCookieJar`` object the transport's
``requests.Session`` reads and writes, so ``Set-Cookie`` headers accumulate
here naturally. Jar mutation is serialized with a re-entrant lock.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Iterable, Mapping, Optional
from urllib.parse import urlparse

from requests.cookies import RequestsCookieJar, create_cookie

from ews_connect.core.config import ConnectionAuth


class SessionState:
    """
    Credentials and cookie jar for a single endpoint.

    Parameters
    ----------
    endpoint : str
        Service URL; cookies supplied by callers are scoped to its host
    jar : RequestsCookieJar, optional
        Existing jar to adopt (a fresh one is created otherwise)

    Examples
    --------
    >>> state = SessionState("https://mail.example.com/EWS/Exchange.asmx")
    >>> state.prepare_cookies([{"name": "exchangecookie", "value": "abc"}])
    >>> state.cookies_dict()
    {'exchangecookie': 'abc'}
    """

    def __init__(self, endpoint: str, jar: Optional[RequestsCookieJar] = None) -> None:
        self.endpoint = endpoint
        self.jar = jar if jar is not None else RequestsCookieJar()
        self.lock = threading.RLock()
        self.logger = logging.getLogger("ews_connect.session")
        self._credentials: Optional[ConnectionAuth] = None

    # ---------------- credentials ----------------

    @property
    def credentials(self) -> Optional[ConnectionAuth]:
        """Credentials set via ``set_credentials`` (None until then)."""
        return self._credentials

    def set_credentials(self, user: str, password: str, kind: str = "ntlm") -> ConnectionAuth:
        kind = (kind or "").lower()
        if kind not in ("basic", "digest", "ntlm"):
            raise ValueError("auth kind must be 'basic', 'digest' or 'ntlm'")
        with self.lock:
            self._credentials = ConnectionAuth(kind, user, password)
        return self._credentials

    # ---------------- cookies ----------------

    @property
    def domain(self) -> str:
        return urlparse(self.endpoint).hostname or ""

    def prepare_cookies(self, cookies: Iterable[Mapping[str, str]]) -> None:
        """
        Replace the whole jar with caller-supplied cookies.

        Every cookie accumulated from earlier exchanges is discarded. Each
        entry must provide ``name`` and ``value`` keys and is stored as
        ``name=value`` scoped to the endpoint host.

        Parameters
        ----------
        cookies : iterable of mapping
            e.g. ``[{"name": "exchangecookie", "value": "abc"}]``
        """
        entries = [(str(c["name"]), str(c["value"])) for c in cookies]
        with self.lock:
            self.jar.clear()
            for name, value in entries:
                self.jar.set_cookie(create_cookie(name, value, domain=self.domain, path="/"))
        self.logger.debug("Replaced cookie jar with %d cookie(s) for %s", len(entries), self.domain)

    def clear_cookies(self) -> None:
        with self.lock:
            self.jar.clear()

    def cookies_dict(self) -> Dict[str, str]:
        """Snapshot of the current jar as name -> value (later entries win)."""
        with self.lock:
            return {c.name: c.value for c in self.jar}
