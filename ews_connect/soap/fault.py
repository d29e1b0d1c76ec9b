"""
ews_connect.soap.fault - SOAP fault extraction
==============================================

Pulls ``faultstring`` / ``faultcode`` out of an error body. Response bodies
come from a remote server, so parsing goes through defusedxml.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol, Union
from xml.etree.ElementTree import ParseError as _XMLParseError

import defusedxml.ElementTree as ET
from defusedxml import DefusedXmlException

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SoapFault:
    """
    Fault fields extracted from a response body.

    Attributes
    ----------
    message : str
        ``faultstring`` text ("" if absent)
    code : str
        ``faultcode`` text ("" if absent)
    """
    message: str = ""
    code: str = ""

    @property
    def found(self) -> bool:
        """True when at least one fault field was present."""
        return bool(self.message or self.code)


class FaultParser(Protocol):
    def __call__(self, xml: Union[str, bytes]) -> SoapFault: ...


def _strip_ns(tag: object) -> str:
    """Strip XML namespace from a tag name (comments/PIs yield "")."""
    if not isinstance(tag, str):
        return ""
    return tag.split("}", 1)[-1] if "}" in tag else tag


def parse_soap_fault(xml: Union[str, bytes], logger: Optional[logging.Logger] = None) -> SoapFault:
    """
    Extract the first ``faultstring`` and ``faultcode`` found anywhere in ``xml``.

    Elements are matched by local name in any namespace. Never raises:
    a malformed, hostile or fault-less document yields empty fields, so
    callers should check ``SoapFault.found``.

    Examples
    --------
    >>> parse_soap_fault("<Fault><faultcode>a:X</faultcode><faultstring>bad</faultstring></Fault>")
    SoapFault(message='bad', code='a:X')
    """
    log = logger or _logger
    try:
        root = ET.fromstring(xml)
    except (_XMLParseError, DefusedXmlException, ValueError, TypeError) as e:
        log.debug("Could not parse SOAP fault body: %s", e)
        return SoapFault()

    message: Optional[str] = None
    code: Optional[str] = None
    for elem in root.iter():
        tag = _strip_ns(elem.tag)
        if tag == "faultstring" and message is None:
            message = "".join(elem.itertext())
        elif tag == "faultcode" and code is None:
            code = "".join(elem.itertext())
        if message is not None and code is not None:
            break

    fault = SoapFault(message=message or "", code=code or "")
    log.debug("Internal SOAP error. Message: %s, Code: %s", fault.message, fault.code)
    return fault
