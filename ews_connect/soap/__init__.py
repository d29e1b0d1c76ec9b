"""SOAP fault extraction and response parser interface."""

from ews_connect.soap.fault import SoapFault, parse_soap_fault
from ews_connect.soap.response import EnvelopeBodyParser, SoapResponseParser

__all__ = ["SoapFault", "parse_soap_fault", "EnvelopeBodyParser", "SoapResponseParser"]
