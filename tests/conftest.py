"""
Pytest configuration and shared fixtures.
"""

import pytest
from unittest.mock import Mock

from requests.structures import CaseInsensitiveDict

from ews_connect.core.transport import RawResponse


ENDPOINT = "https://mail.example.com/EWS/Exchange.asmx"


def make_response(status, body=b"", headers=None, url=ENDPOINT):
    """Build a RawResponse for classifier/connection tests."""
    if isinstance(body, str):
        body = body.encode("utf-8")
    return RawResponse(
        status=status,
        headers=CaseInsensitiveDict(headers or {}),
        body=body,
        url=url,
    )


@pytest.fixture
def endpoint():
    return ENDPOINT


@pytest.fixture
def mock_transport():
    """Create a mock HttpTransport."""
    transport = Mock()
    transport.get = Mock()
    transport.post = Mock()
    transport.post_async = Mock()
    return transport


@pytest.fixture
def soap_fault_xml():
    """SOAP 1.1 fault as returned by Exchange on schema errors."""
    return """<?xml version="1.0" encoding="utf-8"?>
<s:Envelope xmlns:s="http://schemas.xmlsoap.org/soap/envelope/">
  <s:Body>
    <s:Fault>
      <faultcode xmlns:a="http://schemas.microsoft.com/exchange/services/2006/types">a:ErrorSchemaValidation</faultcode>
      <faultstring xml:lang="en-US">The request failed schema validation.</faultstring>
      <detail>
        <e:ResponseCode xmlns:e="http://schemas.microsoft.com/exchange/services/2006/errors">ErrorSchemaValidation</e:ResponseCode>
      </detail>
    </s:Fault>
  </s:Body>
</s:Envelope>"""


@pytest.fixture
def soap_success_xml():
    """Successful SOAP response envelope."""
    return """<?xml version="1.0" encoding="utf-8"?>
<s:Envelope xmlns:s="http://schemas.xmlsoap.org/soap/envelope/">
  <s:Header>
    <h:ServerVersionInfo xmlns:h="http://schemas.microsoft.com/exchange/services/2006/types" MajorVersion="15"/>
  </s:Header>
  <s:Body>
    <m:GetFolderResponse xmlns:m="http://schemas.microsoft.com/exchange/services/2006/messages">
      <m:ResponseMessages/>
    </m:GetFolderResponse>
  </s:Body>
</s:Envelope>"""
