"""
ews_connect.core.connection - Connection to a SOAP endpoint
===========================================================

``Connection`` composes the transport, the session state and the response
classifier into a single request/response cycle (``dispatch``).
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from defusedxml import minidom
from requests.structures import CaseInsensitiveDict

from ews_connect.core.classifier import ResponseClassifier
from ews_connect.core.config import ConnectionConfig, auth_from_env, config_from_env, load_env
from ews_connect.core.session import SessionState
from ews_connect.core.transport import HttpTransport, RawResponse, RequestsTransport
from ews_connect.soap.fault import FaultParser
from ews_connect.soap.response import SoapResponseParser

DEFAULT_HEADERS = {"Content-Type": "text/xml"}


@dataclass
class DispatchOptions:
    """
    Options of one ``dispatch`` call, also handed to the response parser.

    ``extra`` holds any keyword options the caller passed that the
    connection itself does not interpret.
    """
    cookies: Optional[List[Mapping[str, str]]] = None
    headers: Dict[str, str] = field(default_factory=dict)
    raw_response: bool = False
    return_headers: bool = False
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass
class DispatchResult:
    """Content plus response headers and the cookie jar snapshot."""
    headers: Dict[str, str]
    cookies: Dict[str, str]
    content: Any


class Connection:
    """
    Client connection to a single SOAP endpoint.

    One Connection is created per endpoint and reused. Calls that carry
    cookie overrides hold the session lock from the jar replacement until
    the response is classified, so concurrent dispatches serialize with
    respect to cookie state.

    Parameters
    ----------
    endpoint : str
        Service URL, e.g. "https://mail.example.com/EWS/Exchange.asmx"
    cfg : ConnectionConfig, optional
        TLS/timeout configuration (defaults apply when omitted)
    transport : HttpTransport, optional
        Replaces the default ``requests`` transport
    session_state : SessionState, optional
        Replaces the default cookie/credential holder
    fault_parser : callable, optional
        Replaces the default SOAP fault extractor
    logger : logging.Logger, optional
        Logger for this connection (default: "ews_connect.connection")

    Examples
    --------
    >>> with Connection("https://mail.example.com/EWS/Exchange.asmx") as conn:
    ...     conn.set_auth("DOMAIN\\\\user", "secret")
    ...     body = conn.dispatch(EnvelopeBodyParser(), envelope_xml)
    """

    def __init__(
        self,
        endpoint: str,
        cfg: Optional[ConnectionConfig] = None,
        *,
        transport: Optional[HttpTransport] = None,
        session_state: Optional[SessionState] = None,
        fault_parser: Optional[FaultParser] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if not endpoint:
            raise ValueError("Missing endpoint URL.")
        self._endpoint = endpoint
        self.cfg = cfg or ConnectionConfig()
        self.logger = logger or logging.getLogger("ews_connect.connection")
        self.state = session_state or SessionState(endpoint)
        self.transport: HttpTransport = transport or RequestsTransport(
            endpoint, self.cfg, self.state, logger=self.logger
        )
        self.classifier = ResponseClassifier(
            self.transport,
            endpoint,
            fault_parser=fault_parser,
            max_redirects=self.cfg.max_redirects,
            logger=self.logger,
        )

    @classmethod
    def from_env(
        cls,
        endpoint: Optional[str] = None,
        cfg: Optional[ConnectionConfig] = None,
        **kwargs: Any,
    ) -> "Connection":
        """
        Build a Connection from ``EWS_*`` environment variables.

        A ``.env`` file in the working directory is loaded first. Explicit
        arguments win over the environment. Credentials are applied when
        EWS_USER and EWS_PASS are both set.
        """
        load_env()
        endpoint = endpoint or os.environ.get("EWS_ENDPOINT", "")
        if not endpoint:
            raise ValueError(
                "Missing endpoint. Set EWS_ENDPOINT environment variable "
                "or pass endpoint parameter."
            )
        conn = cls(endpoint, cfg or config_from_env(), **kwargs)
        auth = auth_from_env()
        if auth is not None:
            conn.set_auth(auth.user, auth.password, auth.kind)
        return conn

    @property
    def endpoint(self) -> str:
        """The service URL (fixed at construction)."""
        return self._endpoint

    def close(self) -> None:
        self.transport.close()

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ---------------- auth ----------------

    def set_auth(self, user: str, password: str, kind: str = "ntlm") -> None:
        """
        Store credentials for the endpoint.

        They are applied by the transport to every later request to the
        endpoint's host. No request is sent.
        """
        auth = self.state.set_credentials(user, password, kind)
        self.transport.set_auth(auth)

    def authenticate(self) -> bool:
        """
        GET the endpoint so the authentication handshake happens now.

        Returns True on success; failures raise the usual ResponseError
        subclasses (UnauthorizedError for bad credentials).
        """
        self.get()
        return True

    # ---------------- requests ----------------

    @staticmethod
    def _merge_headers(headers: Optional[Mapping[str, str]]) -> Dict[str, str]:
        merged = CaseInsensitiveDict(DEFAULT_HEADERS)
        if headers:
            merged.update(headers)
        return dict(merged)

    def get(self) -> RawResponse:
        """GET the endpoint and return the classified (successful) response."""
        return self.classifier.check_response(self.transport.get(self._endpoint))

    def post(self, body: Union[str, bytes], *, headers: Optional[Mapping[str, str]] = None) -> RawResponse:
        """
        POST ``body`` to the endpoint.

        Caller headers are merged over ``Content-Type: text/xml``.

        Raises
        ------
        ResponseError
            One of its subclasses for any non-success classification
        """
        resp = self.transport.post(self._endpoint, body, self._merge_headers(headers))
        return self.classifier.check_response(resp)

    def post_async(
        self,
        body: Union[str, bytes],
        *,
        headers: Optional[Mapping[str, str]] = None,
        cookies: Optional[Iterable[Mapping[str, str]]] = None,
    ) -> "Future[RawResponse]":
        """
        Send a POST without waiting for the response.

        Authenticates synchronously first, since the background request
        cannot complete an NTLM handshake on its own. The returned future
        resolves to the raw, unclassified response; pass it through
        ``classifier.check_response`` to classify it.
        """
        self.authenticate()
        merged = self._merge_headers(headers)
        if cookies:
            self.state.prepare_cookies(cookies)
        return self.transport.post_async(self._endpoint, body, merged)

    def dispatch(
        self,
        parser: SoapResponseParser,
        soap_body: Union[str, bytes],
        *,
        cookies: Optional[Iterable[Mapping[str, str]]] = None,
        headers: Optional[Mapping[str, str]] = None,
        raw_response: bool = False,
        return_headers: bool = False,
        **parser_options: Any,
    ) -> Union[Any, DispatchResult]:
        """
        Send a SOAP request and shape the result.

        Parameters
        ----------
        parser : SoapResponseParser
            Turns a successful body into content (skipped with raw_response)
        soap_body : str or bytes
            Complete SOAP envelope
        cookies : list of dict, optional
            ``{"name": ..., "value": ...}`` entries that replace the whole
            cookie jar before sending
        headers : dict, optional
            Extra HTTP headers, merged over ``Content-Type: text/xml``
        raw_response : bool
            Return the response body bytes instead of parsed content
        return_headers : bool
            Return a DispatchResult with headers and cookies alongside content
        **parser_options
            Passed to the parser via ``DispatchOptions.extra``

        Returns
        -------
        Any or DispatchResult
        """
        options = DispatchOptions(
            cookies=list(cookies) if cookies else None,
            headers=dict(headers or {}),
            raw_response=raw_response,
            return_headers=return_headers,
            extra=parser_options,
        )

        with self.state.lock:
            if options.cookies:
                self.state.prepare_cookies(options.cookies)
            resp = self.post(soap_body, headers=options.headers)
            jar = self.state.cookies_dict()

        self._log_response(resp, jar)

        content = resp.body if options.raw_response else parser.parse_soap_response(resp.body, options)
        if options.return_headers:
            return DispatchResult(headers=dict(resp.headers), cookies=jar, content=content)
        return content

    def _log_response(self, resp: RawResponse, jar: Dict[str, str]) -> None:
        if not self.logger.isEnabledFor(logging.DEBUG):
            return
        try:
            body = minidom.parseString(resp.body).toprettyxml(indent="  ")
        except Exception:
            body = resp.text
        self.logger.debug(
            "Received SOAP Response:\n----------------\n%s\n----------------\n%s\n----------------\n%s",
            "\n".join(f"{k}: {v}" for k, v in resp.headers.items()),
            "\n".join(f"{k}={v}" for k, v in jar.items()),
            body,
        )
