"""
ews_connect.soap.response - Response parser interface
=====================================================

``Connection.dispatch`` hands successful response bodies to a caller-supplied
parser. Anything with a ``parse_soap_response(body, options)`` method works;
``EnvelopeBodyParser`` is a minimal implementation that returns the payload
element of the SOAP Body.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, Union
from xml.etree.ElementTree import Element

import defusedxml.ElementTree as ET

if TYPE_CHECKING:
    from ews_connect.core.connection import DispatchOptions


class SoapResponseParser(Protocol):
    def parse_soap_response(self, body: bytes, options: "DispatchOptions") -> Any: ...


def _strip_ns(tag: str) -> str:
    return tag.split("}", 1)[-1] if "}" in tag else tag


class EnvelopeBodyParser:
    """
    Return the first element inside ``Envelope/Body``.

    Documents that are not SOAP envelopes are returned as their root element.
    Malformed XML raises ``xml.etree.ElementTree.ParseError``.
    """

    def parse_soap_response(self, body: Union[str, bytes], options: "DispatchOptions") -> Element:
        root = ET.fromstring(body)
        if _strip_ns(root.tag) != "Envelope":
            return root
        for child in root:
            if _strip_ns(child.tag) == "Body":
                payload = list(child)
                return payload[0] if payload else child
        return root
