"""
Example: Basic usage of ews_connect
===================================

Sends a GetFolder request to an Exchange Web Services endpoint and shows the
different ways a response can be returned.
"""

import logging

from ews_connect import (
    Connection,
    ConnectionConfig,
    EnvelopeBodyParser,
    SoapFaultError,
    UnauthorizedError,
)


GET_INBOX = """<?xml version="1.0" encoding="utf-8"?>
<soap:Envelope xmlns:soap="http://schemas.xmlsoap.org/soap/envelope/"
               xmlns:t="http://schemas.microsoft.com/exchange/services/2006/types"
               xmlns:m="http://schemas.microsoft.com/exchange/services/2006/messages">
  <soap:Body>
    <m:GetFolder>
      <m:FolderShape><t:BaseShape>Default</t:BaseShape></m:FolderShape>
      <m:FolderIds><t:DistinguishedFolderId Id="inbox"/></m:FolderIds>
    </m:GetFolder>
  </soap:Body>
</soap:Envelope>"""


def example_basic_dispatch():
    """Explicit endpoint and credentials."""

    cfg = ConnectionConfig(
        trust_ca=["/etc/pki/tls/certs/exchange-ca.pem"],
        receive_timeout=120,
    )

    with Connection("https://mail.example.com/EWS/Exchange.asmx", cfg) as conn:
        conn.set_auth("CORP\\jdoe", "PASSWORD")

        try:
            payload = conn.dispatch(EnvelopeBodyParser(), GET_INBOX)
            print("Payload element:", payload.tag)
        except UnauthorizedError:
            print("Bad credentials")
        except SoapFaultError as e:
            print(f"SOAP fault {e.fault_code}: {e.fault_message}")


def example_session_cookies():
    """Reuse a backend cookie across dispatches."""

    # Reads EWS_ENDPOINT, EWS_USER, EWS_PASS (and .env if present)
    with Connection.from_env() as conn:
        first = conn.dispatch(EnvelopeBodyParser(), GET_INBOX, return_headers=True)
        print("Cookies:", first.cookies)

        # Pin the follow-up request to the same backend
        cookies = [{"name": k, "value": v} for k, v in first.cookies.items()]
        raw = conn.dispatch(EnvelopeBodyParser(), GET_INBOX, cookies=cookies, raw_response=True)
        print(f"Raw body: {len(raw)} bytes")


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG)
    example_basic_dispatch()
