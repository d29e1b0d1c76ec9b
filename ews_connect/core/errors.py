"""
ews_connect.core.errors - Response error taxonomy
=================================================

Every non-success classification of an HTTP response surfaces as one of the
exceptions below. All of them derive from ``ResponseError`` so callers can
catch the whole family at once or pick out a single kind.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Optional

if TYPE_CHECKING:
    from ews_connect.core.transport import RawResponse


class ResponseError(RuntimeError):
    """
    Base class for errors raised while classifying a service response.

    Attributes
    ----------
    status : int
        HTTP status code of the offending response
    body : str
        Response body decoded with its Content-Type charset (untruncated);
        the exact bytes are on ``response.body``
    url : str
        The URL that produced the response
    headers : dict
        Response headers
    response : RawResponse or None
        The raw response, when one is available
    """

    def __init__(
        self,
        message: str,
        response: Optional["RawResponse"] = None,
        *,
        status: Optional[int] = None,
        body: Optional[str] = None,
        url: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        snippet = (message or "")[:1200]
        super().__init__(snippet)
        self.response = response
        self.status = status if status is not None else (response.status if response else 0)
        self.body = body if body is not None else (response.text if response else "")
        self.url = url or (response.url if response else "")
        self.headers = headers if headers is not None else (dict(response.headers) if response else {})


class UnhandledRedirectError(ResponseError):
    """A 302 response carried no usable redirect target."""


class TooManyRedirectsError(ResponseError):
    """A redirect chain exceeded the configured hop limit."""


class UnauthorizedError(ResponseError):
    """The service rejected the request credentials (HTTP 401)."""


class SoapFaultError(ResponseError):
    """
    HTTP 500 carrying an XML body, interpreted as a SOAP fault.

    Attributes
    ----------
    fault_message : str
        Text of the ``faultstring`` element, or "" if absent
    fault_code : str
        Text of the ``faultcode`` element, or "" if absent
    """

    def __init__(self, message: str, response: "RawResponse", fault_message: str, fault_code: str):
        super().__init__(message, response)
        self.fault_message = fault_message
        self.fault_code = fault_code


class ServerError(ResponseError):
    """HTTP 500 with a non-XML body."""


class HttpError(ResponseError):
    """Any HTTP status the classifier has no dedicated branch for."""
