"""
ews_connect.core.transport - HTTP transport bound to one endpoint
=================================================================

Thin layer over ``requests`` that:

- Applies TLS settings (verify mode, pinned protocol version, custom trust store)
- Keeps connections alive between requests
- Scopes credentials (Basic, Digest or NTLM) to the endpoint authority
- Never follows redirects itself (302 handling belongs to the classifier)
- Offers a non-blocking POST backed by a small thread pool
"""

from __future__ import annotations

import logging
import os
import ssl
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol, Union
from urllib.parse import urlparse

import requests
from requests import Response, Session
from requests.adapters import HTTPAdapter
from requests.auth import AuthBase, HTTPBasicAuth, HTTPDigestAuth
from requests.structures import CaseInsensitiveDict
from requests.utils import get_encoding_from_headers
from requests_ntlm import HttpNtlmAuth
from urllib3.util.retry import Retry

from ews_connect.core.config import ConnectionAuth, ConnectionConfig
from ews_connect.core.session import SessionState


@dataclass(frozen=True)
class RawResponse:
    """
    A completed HTTP exchange, detached from the transport.

    Attributes
    ----------
    status : int
        HTTP status code
    headers : CaseInsensitiveDict
        Response headers
    body : bytes
        Response body
    url : str
        URL the response came from
    """
    status: int
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    body: bytes = b""
    url: str = ""

    @classmethod
    def from_requests(cls, r: Response) -> "RawResponse":
        return cls(
            status=r.status_code,
            headers=CaseInsensitiveDict(r.headers),
            body=r.content or b"",
            url=r.url or "",
        )

    @property
    def encoding(self) -> str:
        """Charset declared in ``Content-Type``, or "utf-8" when none is given."""
        if "charset=" not in self.content_type.lower():
            return "utf-8"
        return get_encoding_from_headers(self.headers) or "utf-8"

    @property
    def text(self) -> str:
        """Body decoded with the declared charset (unknown charsets fall back to UTF-8)."""
        try:
            return self.body.decode(self.encoding, errors="replace")
        except LookupError:
            return self.body.decode("utf-8", errors="replace")

    @property
    def content_type(self) -> str:
        return self.headers.get("Content-Type") or ""


class HttpTransport(Protocol):
    """HTTP operations a Connection needs from its transport."""

    def get(self, url: str) -> RawResponse: ...

    def post(self, url: str, body: Union[str, bytes], headers: Dict[str, str]) -> RawResponse: ...

    def post_async(
        self, url: str, body: Union[str, bytes], headers: Dict[str, str]
    ) -> "Future[RawResponse]": ...

    def set_auth(self, auth: ConnectionAuth) -> None: ...

    def close(self) -> None: ...


def build_ssl_context(cfg: ConnectionConfig) -> Optional[ssl.SSLContext]:
    """
    Build an SSL context for ``cfg``, or None when the defaults apply.

    A custom ``trust_ca`` list replaces the default trust store entirely:
    the context starts empty and only the given files/directories are loaded.
    """
    verify_mode = cfg.verify_mode()
    version = cfg.tls_version()
    trust_ca = cfg.trust_ca_paths()
    if verify_mode is None and version is None and not trust_ca:
        return None

    ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    if trust_ca:
        for ca in trust_ca:
            if os.path.isdir(ca):
                ctx.load_verify_locations(capath=ca)
            else:
                ctx.load_verify_locations(cafile=ca)
    else:
        ctx.load_default_certs()

    if version is not None:
        ctx.minimum_version = version
        ctx.maximum_version = version

    if verify_mode is not None:
        if verify_mode != ssl.CERT_REQUIRED:
            ctx.check_hostname = False
        ctx.verify_mode = verify_mode
    return ctx


class _TLSAdapter(HTTPAdapter):
    """HTTPAdapter that hands a prepared SSL context to urllib3."""

    def __init__(self, ssl_context: Optional[ssl.SSLContext] = None, **kwargs: Any) -> None:
        self.ssl_context = ssl_context
        super().__init__(**kwargs)

    def init_poolmanager(self, *args: Any, **kwargs: Any) -> None:
        if self.ssl_context is not None:
            kwargs["ssl_context"] = self.ssl_context
        super().init_poolmanager(*args, **kwargs)

    def proxy_manager_for(self, *args: Any, **kwargs: Any):
        if self.ssl_context is not None:
            kwargs["ssl_context"] = self.ssl_context
        return super().proxy_manager_for(*args, **kwargs)


def _make_auth(auth: ConnectionAuth) -> AuthBase:
    if auth.kind == "basic":
        return HTTPBasicAuth(auth.user, auth.password)
    if auth.kind == "digest":
        return HTTPDigestAuth(auth.user, auth.password)
    if auth.kind == "ntlm":
        return HttpNtlmAuth(auth.user, auth.password)
    raise ValueError("auth.kind must be 'basic', 'digest' or 'ntlm'")


class RequestsTransport:
    """
    ``requests``-backed HttpTransport for one endpoint.

    Parameters
    ----------
    endpoint : str
        Service URL
    cfg : ConnectionConfig
        TLS, timeout and keep-alive settings
    state : SessionState
        Owner of the cookie jar; the underlying ``requests.Session`` uses it
        directly so ``Set-Cookie`` responses accumulate there
    logger : logging.Logger, optional
        Logger for request timing
    """

    def __init__(
        self,
        endpoint: str,
        cfg: ConnectionConfig,
        state: SessionState,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.endpoint = endpoint
        self.cfg = cfg
        self.state = state
        self.timeout = float(cfg.receive_timeout)
        self.logger = logger or logging.getLogger("ews_connect.transport")

        self._authority = urlparse(endpoint).netloc.lower()
        self._auth: Optional[AuthBase] = None
        self._executor: Optional[ThreadPoolExecutor] = None

        self.session = self._build_session()

    def close(self) -> None:
        """
        Stop the async worker pool, then close the HTTP session.

        Queued async POSTs are cancelled; POSTs already running finish
        before the session is closed.
        """
        if self._executor is not None:
            self._executor.shutdown(wait=True, cancel_futures=True)
            self._executor = None
        self.session.close()

    # ---------------- session ----------------

    def _verify(self) -> Union[bool, str]:
        trust_ca = self.cfg.trust_ca_paths()
        if self.cfg.verify_mode() == ssl.CERT_NONE:
            return False
        if trust_ca:
            return trust_ca[0]
        return True

    def _build_session(self) -> Session:
        sess = requests.Session()
        sess.cookies = self.state.jar
        sess.verify = self._verify()
        sess.headers.update({
            "Connection": "keep-alive",
            "Keep-Alive": f"timeout={self.cfg.keep_alive_timeout}",
            "User-Agent": self.cfg.user_agent,
        })

        retry = Retry(total=0, read=False, redirect=False, raise_on_status=False)
        adapter = _TLSAdapter(
            ssl_context=build_ssl_context(self.cfg),
            max_retries=retry,
            pool_connections=1,
            pool_maxsize=10,
        )
        sess.mount("https://", adapter)
        sess.mount("http://", adapter)
        return sess

    def set_auth(self, auth: ConnectionAuth) -> None:
        self._auth = _make_auth(auth)

    def _auth_for(self, url: str) -> Optional[AuthBase]:
        if urlparse(url).netloc.lower() == self._authority:
            return self._auth
        return None

    # ---------------- requests ----------------

    def _request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        data: Optional[Union[str, bytes]] = None,
    ) -> RawResponse:
        t0 = time.perf_counter()
        r = self.session.request(
            method=method,
            url=url,
            headers=headers,
            data=data,
            auth=self._auth_for(url),
            timeout=self.timeout,
            allow_redirects=False,
        )
        dt = (time.perf_counter() - t0) * 1000.0
        self.logger.debug("%s %s %s %sms", method.upper(), url, r.status_code, round(dt, 1))
        return RawResponse.from_requests(r)

    def get(self, url: str) -> RawResponse:
        return self._request("GET", url)

    def post(self, url: str, body: Union[str, bytes], headers: Dict[str, str]) -> RawResponse:
        if isinstance(body, str):
            body = body.encode("utf-8")
        return self._request("POST", url, headers=headers, data=body)

    def post_async(
        self, url: str, body: Union[str, bytes], headers: Dict[str, str]
    ) -> "Future[RawResponse]":
        """
        Submit a POST without waiting for it.

        Returns a ``concurrent.futures.Future`` resolving to the raw,
        unclassified response. ``Future.cancel()`` works while the request
        is still queued.
        """
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="ews-async")
        return self._executor.submit(self.post, url, body, dict(headers))
