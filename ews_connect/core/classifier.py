"""
ews_connect.core.classifier - HTTP response classification
===========================================================

Maps a completed HTTP response onto exactly one outcome:

=======  ==============================================================
Status   Outcome
=======  ==============================================================
200      success, response passed through untouched
302      follow ``Location`` with a GET and classify the result again
401      ``UnauthorizedError``
500      ``SoapFaultError`` for XML bodies, ``ServerError`` otherwise
other    ``HttpError``
=======  ==============================================================
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional
from urllib.parse import urljoin, urlparse

from requests.utils import requote_uri

from ews_connect.core.errors import (
    HttpError,
    ResponseError,
    ServerError,
    SoapFaultError,
    TooManyRedirectsError,
    UnauthorizedError,
    UnhandledRedirectError,
)
from ews_connect.core.transport import HttpTransport, RawResponse
from ews_connect.soap.fault import SoapFault, parse_soap_fault


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    REDIRECT_FOLLOWED = "redirect_followed"
    UNHANDLED_REDIRECT = "unhandled_redirect"
    TOO_MANY_REDIRECTS = "too_many_redirects"
    UNAUTHORIZED = "unauthorized"
    SOAP_FAULT = "soap_fault"
    SERVER_ERROR = "server_error"
    HTTP_ERROR = "http_error"


@dataclass(frozen=True)
class Outcome:
    """
    Tagged classification result.

    Attributes
    ----------
    kind : OutcomeKind
        Which branch the response fell into
    response : RawResponse
        Final response (the last one in a redirect chain)
    error : ResponseError, optional
        Set for every kind except SUCCESS and REDIRECT_FOLLOWED
    hops : int
        Number of redirects followed
    """
    kind: OutcomeKind
    response: RawResponse
    error: Optional[ResponseError] = None
    hops: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> RawResponse:
        """Return the response, or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.response


class ResponseClassifier:
    """
    Classify responses from one endpoint, following 302 redirects.

    Parameters
    ----------
    transport : HttpTransport
        Used to GET redirect targets
    endpoint : str
        Base URL for resolving relative ``Location`` headers
    fault_parser : callable, optional
        Extracts a SoapFault from a 500 XML body (default: parse_soap_fault)
    max_redirects : int
        Hops followed before giving up with TooManyRedirectsError
    logger : logging.Logger, optional
    """

    def __init__(
        self,
        transport: HttpTransport,
        endpoint: str,
        *,
        fault_parser: Optional[Callable[[bytes], SoapFault]] = None,
        max_redirects: int = 10,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.transport = transport
        self.endpoint = endpoint
        self.fault_parser = fault_parser or parse_soap_fault
        self.max_redirects = max_redirects
        self.logger = logger or logging.getLogger("ews_connect.classifier")

    def redirect_target(self, response: RawResponse) -> Optional[str]:
        """
        Absolute redirect URL for a 302, or None if there is none.

        Relative locations resolve against the response URL (or the
        endpoint). A redirect from HTTPS down to HTTP is refused.
        """
        location = response.headers.get("Location")
        if not location or not location.strip():
            return None
        base = response.url or self.endpoint
        target = requote_uri(urljoin(base, location.strip()))
        parsed = urlparse(target)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            return None
        if urlparse(base).scheme == "https" and parsed.scheme == "http":
            self.logger.warning("Refusing redirect from HTTPS to HTTP: %s", target)
            return None
        return target

    def classify(self, response: RawResponse) -> Outcome:
        """
        Classify ``response`` without raising.

        Redirect targets are fetched as part of classification, so transport
        errors (``requests.RequestException``) can still propagate.
        """
        hops = 0
        while response.status == 302:
            target = self.redirect_target(response)
            if target is None:
                err = UnhandledRedirectError("Unhandled HTTP Redirect", response)
                return Outcome(OutcomeKind.UNHANDLED_REDIRECT, response, err, hops)
            if hops >= self.max_redirects:
                err = TooManyRedirectsError(
                    f"Exceeded {self.max_redirects} redirects, last target: {target}", response
                )
                return Outcome(OutcomeKind.TOO_MANY_REDIRECTS, response, err, hops)
            self.logger.debug("Following redirect %d to %s", hops + 1, target)
            response = self.transport.get(target)
            hops += 1

        outcome = self._classify_final(response)
        if hops and outcome.kind is OutcomeKind.SUCCESS:
            return Outcome(OutcomeKind.REDIRECT_FOLLOWED, response, None, hops)
        return Outcome(outcome.kind, outcome.response, outcome.error, hops)

    def _classify_final(self, response: RawResponse) -> Outcome:
        status = response.status
        if status == 200:
            return Outcome(OutcomeKind.SUCCESS, response)

        if status == 401:
            return Outcome(
                OutcomeKind.UNAUTHORIZED,
                response,
                UnauthorizedError("Unauthorized request", response),
            )

        if status == 500:
            if "xml" in response.content_type.lower():
                fault = self.fault_parser(response.body)
                err = SoapFaultError(
                    f"SOAP Error: Message: {fault.message}  Code: {fault.code}",
                    response,
                    fault.message,
                    fault.code,
                )
                return Outcome(OutcomeKind.SOAP_FAULT, response, err)
            return Outcome(
                OutcomeKind.SERVER_ERROR,
                response,
                ServerError(f"Internal Server Error. Message: {response.text}", response),
            )

        return Outcome(
            OutcomeKind.HTTP_ERROR,
            response,
            HttpError(f"HTTP Error Code: {status}, Msg: {response.text}", response),
        )

    def check_response(self, response: RawResponse) -> RawResponse:
        """
        Classify ``response`` and return the final successful response.

        Raises
        ------
        UnhandledRedirectError, TooManyRedirectsError, UnauthorizedError,
        SoapFaultError, ServerError, HttpError
        """
        outcome = self.classify(response)
        if outcome.error is not None:
            self.logger.debug("Response classified as %s (status %s)", outcome.kind.value, outcome.response.status)
        return outcome.unwrap()
