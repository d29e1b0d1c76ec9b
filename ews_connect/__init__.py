"""
ews_connect
===========

Client-side transport for SOAP web services such as Exchange Web Services:
HTTP dispatch, response classification, SOAP fault extraction and cookie
session handling.

Usage
-----
>>> from ews_connect import Connection, EnvelopeBodyParser
>>>
>>> with Connection.from_env() as conn:   # EWS_ENDPOINT, EWS_USER, EWS_PASS
...     result = conn.dispatch(EnvelopeBodyParser(), envelope, return_headers=True)
...     print(result.cookies)

Subpackages
-----------
- ews_connect.core: configuration, session state, transport, classifier, connection
- ews_connect.soap: SOAP fault parsing and response parser interface
"""

__version__ = "0.1.0"

from ews_connect.core.config import ConnectionAuth, ConnectionConfig
from ews_connect.core.errors import (
    HttpError,
    ResponseError,
    ServerError,
    SoapFaultError,
    TooManyRedirectsError,
    UnauthorizedError,
    UnhandledRedirectError,
)
from ews_connect.core.session import SessionState
from ews_connect.core.transport import RawResponse
from ews_connect.core.classifier import Outcome, OutcomeKind, ResponseClassifier
from ews_connect.core.connection import Connection, DispatchOptions, DispatchResult

from ews_connect.soap import EnvelopeBodyParser, SoapFault, parse_soap_fault

__all__ = [
    # Version
    "__version__",
    # Core
    "Connection",
    "ConnectionAuth",
    "ConnectionConfig",
    "DispatchOptions",
    "DispatchResult",
    "SessionState",
    "RawResponse",
    "Outcome",
    "OutcomeKind",
    "ResponseClassifier",
    # Errors
    "ResponseError",
    "UnhandledRedirectError",
    "TooManyRedirectsError",
    "UnauthorizedError",
    "SoapFaultError",
    "ServerError",
    "HttpError",
    # SOAP
    "EnvelopeBodyParser",
    "SoapFault",
    "parse_soap_fault",
]
