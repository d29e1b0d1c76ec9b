"""
ews_connect.core - Transport, session and response classification
=================================================================

- ConnectionConfig / ConnectionAuth: construction-time settings
- SessionState: credentials and cookie jar
- RequestsTransport: HTTP transport bound to one endpoint
- ResponseClassifier: status code to outcome mapping, redirect following
- Connection: get / post / post_async / authenticate / dispatch
"""

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
from ews_connect.core.transport import RawResponse, RequestsTransport
from ews_connect.core.classifier import Outcome, OutcomeKind, ResponseClassifier
from ews_connect.core.connection import Connection, DispatchOptions, DispatchResult

__all__ = [
    "ConnectionAuth",
    "ConnectionConfig",
    "SessionState",
    "RawResponse",
    "RequestsTransport",
    "Outcome",
    "OutcomeKind",
    "ResponseClassifier",
    "Connection",
    "DispatchOptions",
    "DispatchResult",
    "ResponseError",
    "UnhandledRedirectError",
    "TooManyRedirectsError",
    "UnauthorizedError",
    "SoapFaultError",
    "ServerError",
    "HttpError",
]
