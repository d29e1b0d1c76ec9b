"""
Tests for ews_connect.core configuration, errors and session state.
"""

import ssl

import pytest
from unittest.mock import patch

from ews_connect.core.config import (
    ConnectionAuth,
    ConnectionConfig,
    auth_from_env,
    config_from_env,
)
from ews_connect.core.errors import ResponseError, SoapFaultError
from ews_connect.core.session import SessionState

from conftest import ENDPOINT, make_response


class TestConnectionAuth:
    """Tests for ConnectionAuth dataclass."""

    def test_fields(self):
        auth = ConnectionAuth("ntlm", "CORP\\user", "pass")
        assert auth.kind == "ntlm"
        assert auth.user == "CORP\\user"
        assert auth.password == "pass"


class TestConnectionConfig:
    """Tests for ConnectionConfig dataclass."""

    def test_default_values(self):
        cfg = ConnectionConfig()
        assert cfg.receive_timeout == 60.0
        assert cfg.keep_alive_timeout == 60
        assert cfg.max_redirects == 10
        assert cfg.verify_mode() is None
        assert cfg.tls_version() is None
        assert cfg.trust_ca_paths() == []

    def test_immutable(self):
        cfg = ConnectionConfig()
        with pytest.raises(Exception):
            cfg.receive_timeout = 5  # type: ignore[misc]

    @pytest.mark.parametrize("value,expected", [
        ("none", ssl.CERT_NONE),
        ("NONE", ssl.CERT_NONE),
        ("peer", ssl.CERT_REQUIRED),
        ("optional", ssl.CERT_OPTIONAL),
        (ssl.CERT_REQUIRED, ssl.CERT_REQUIRED),
    ])
    def test_verify_mode(self, value, expected):
        assert ConnectionConfig(ssl_verify_mode=value).verify_mode() == expected

    def test_unknown_verify_mode(self):
        with pytest.raises(ValueError, match="Unknown ssl_verify_mode"):
            ConnectionConfig(ssl_verify_mode="sometimes").verify_mode()

    @pytest.mark.parametrize("value", ["TLSv1_2", "tlsv1_2", "TLSv1.2", ssl.TLSVersion.TLSv1_2])
    def test_tls_version(self, value):
        assert ConnectionConfig(ssl_version=value).tls_version() == ssl.TLSVersion.TLSv1_2

    def test_unknown_tls_version(self):
        with pytest.raises(ValueError, match="Unknown ssl_version"):
            ConnectionConfig(ssl_version="TLSv9").tls_version()

    def test_trust_ca_single_path(self):
        assert ConnectionConfig(trust_ca="/etc/ca.pem").trust_ca_paths() == ["/etc/ca.pem"]
        assert ConnectionConfig(trust_ca=["/a", "/b"]).trust_ca_paths() == ["/a", "/b"]


class TestEnvironment:
    """Tests for config_from_env / auth_from_env."""

    @patch.dict("os.environ", {
        "EWS_VERIFY_TLS": "false",
        "EWS_SSL_VERSION": "TLSv1_2",
        "EWS_TRUST_CA": "",
        "EWS_RECEIVE_TIMEOUT": "15",
    })
    def test_config_from_env(self):
        cfg = config_from_env()
        assert cfg.verify_mode() == ssl.CERT_NONE
        assert cfg.tls_version() == ssl.TLSVersion.TLSv1_2
        assert cfg.trust_ca is None
        assert cfg.receive_timeout == 15.0

    @patch.dict("os.environ", {"EWS_USER": "u", "EWS_PASS": "p", "EWS_AUTH_KIND": "Basic"})
    def test_auth_from_env(self):
        assert auth_from_env() == ConnectionAuth("basic", "u", "p")

    @patch.dict("os.environ", {"EWS_USER": "", "EWS_PASS": ""})
    def test_auth_from_env_missing(self):
        assert auth_from_env() is None


class TestResponseError:
    """Tests for the error taxonomy."""

    def test_attributes_from_response(self):
        resp = make_response(404, b"Not found", {"X-Request-Id": "1"})
        err = ResponseError("nope", resp)
        assert err.status == 404
        assert err.body == "Not found"
        assert err.url == ENDPOINT
        assert err.headers == {"X-Request-Id": "1"}
        assert err.response is resp

    def test_explicit_attributes(self):
        err = ResponseError("boom", status=502, body="bad gateway", url="https://x")
        assert err.status == 502
        assert err.body == "bad gateway"
        assert err.headers == {}
        assert err.response is None

    def test_message_truncation(self):
        err = ResponseError("x" * 2000, make_response(500, b"x" * 2000))
        assert len(str(err)) <= 1200
        assert len(err.body) == 2000

    def test_soap_fault_fields(self):
        err = SoapFaultError("SOAP Error", make_response(500), "msg", "code")
        assert err.fault_message == "msg"
        assert err.fault_code == "code"
        assert isinstance(err, ResponseError)


class TestSessionState:
    """Tests for SessionState."""

    def test_prepare_cookies_replaces_jar(self):
        state = SessionState(ENDPOINT)
        state.jar.set("stale", "old", domain="mail.example.com", path="/")
        state.jar.set("other", "x", domain="elsewhere.example.com", path="/")

        state.prepare_cookies([{"name": "a", "value": "1"}])

        assert state.cookies_dict() == {"a": "1"}
        cookie = next(iter(state.jar))
        assert cookie.domain == "mail.example.com"
        assert cookie.path == "/"

    def test_prepare_cookies_keeps_order(self):
        state = SessionState(ENDPOINT)
        state.prepare_cookies([{"name": "b", "value": "2"}, {"name": "a", "value": "1"}])
        assert list(state.cookies_dict().items()) == [("b", "2"), ("a", "1")]

    def test_prepare_cookies_requires_name_and_value(self):
        state = SessionState(ENDPOINT)
        state.jar.set("keep", "me", domain="mail.example.com", path="/")
        with pytest.raises(KeyError):
            state.prepare_cookies([{"name": "a"}])
        assert state.cookies_dict() == {"keep": "me"}

    def test_clear_cookies(self):
        state = SessionState(ENDPOINT)
        state.prepare_cookies([{"name": "a", "value": "1"}])
        state.clear_cookies()
        assert state.cookies_dict() == {}

    def test_set_credentials(self):
        state = SessionState(ENDPOINT)
        assert state.credentials is None
        auth = state.set_credentials("user", "pw", "BASIC")
        assert auth == ConnectionAuth("basic", "user", "pw")
        assert state.credentials == auth

    def test_set_credentials_rejects_unknown_kind(self):
        with pytest.raises(ValueError):
            SessionState(ENDPOINT).set_credentials("user", "pw", "kerberos")

    def test_domain(self):
        assert SessionState(ENDPOINT).domain == "mail.example.com"
