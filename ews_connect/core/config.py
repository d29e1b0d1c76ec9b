"""
ews_connect.core.config - Connection configuration
==================================================

Immutable settings captured when a Connection is built, plus helpers for
reading them from the environment.
"""

from __future__ import annotations

import os
import ssl
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from dotenv import load_dotenv


KEEP_ALIVE_TIMEOUT = 60

_VERIFY_MODES: Dict[str, ssl.VerifyMode] = {
    "none": ssl.CERT_NONE,
    "optional": ssl.CERT_OPTIONAL,
    "peer": ssl.CERT_REQUIRED,
    "required": ssl.CERT_REQUIRED,
}


@dataclass(frozen=True)
class ConnectionAuth:
    """
    Credentials for the service endpoint.

    Parameters
    ----------
    kind : str
        One of "basic", "digest" or "ntlm"
    user : str
        Username (for NTLM usually ``DOMAIN\\user``)
    password : str
        Password
    """
    kind: str  # "basic" | "digest" | "ntlm"
    user: str
    password: str


@dataclass(frozen=True)
class ConnectionConfig:
    """
    Transport configuration for a single endpoint.

    Parameters
    ----------
    ssl_verify_mode : str or ssl.VerifyMode, optional
        "peer"/"required", "optional" or "none". None keeps the default
        (verify peer).
    ssl_version : str or ssl.TLSVersion, optional
        Pin the TLS protocol version, e.g. "TLSv1_2".
    trust_ca : str or list of str, optional
        CA bundle files or hashed certificate directories. When given, the
        default trust store is discarded and only these are trusted.
    receive_timeout : float
        Read timeout in seconds (default: 60.0)
    keep_alive_timeout : int
        Keep-alive period advertised to the server in a ``Keep-Alive:
        timeout=60`` request header (fixed at 60). It is not enforced on the
        client side: idle pooled connections are not closed after it elapses.
    max_redirects : int
        Maximum number of 302 hops followed by one request (default: 10)
    user_agent : str
        User-Agent header value

    Examples
    --------
    >>> cfg = ConnectionConfig(trust_ca=["/etc/pki/exchange-ca.pem"], receive_timeout=120)
    """
    ssl_verify_mode: Optional[Union[str, ssl.VerifyMode]] = None
    ssl_version: Optional[Union[str, ssl.TLSVersion]] = None
    trust_ca: Optional[Union[str, Tuple[str, ...], List[str]]] = None
    receive_timeout: float = 60.0
    keep_alive_timeout: int = KEEP_ALIVE_TIMEOUT
    max_redirects: int = 10
    user_agent: str = "ews-connect/0.1"

    def verify_mode(self) -> Optional[ssl.VerifyMode]:
        """Resolve ``ssl_verify_mode`` to an ``ssl.VerifyMode`` (or None)."""
        mode = self.ssl_verify_mode
        if mode is None or isinstance(mode, ssl.VerifyMode):
            return mode
        try:
            return _VERIFY_MODES[str(mode).strip().lower()]
        except KeyError:
            raise ValueError(
                f"Unknown ssl_verify_mode {mode!r}; expected one of {sorted(_VERIFY_MODES)}"
            ) from None

    def tls_version(self) -> Optional[ssl.TLSVersion]:
        """Resolve ``ssl_version`` to an ``ssl.TLSVersion`` (or None)."""
        version = self.ssl_version
        if version is None or isinstance(version, ssl.TLSVersion):
            return version
        name = str(version).strip().upper().replace(".", "_").replace("TLSV", "TLSv").replace("SSLV", "SSLv")
        try:
            return ssl.TLSVersion[name]
        except KeyError:
            raise ValueError(f"Unknown ssl_version {version!r}") from None

    def trust_ca_paths(self) -> List[str]:
        """Return ``trust_ca`` as a list (a single path becomes a one-item list)."""
        if not self.trust_ca:
            return []
        if isinstance(self.trust_ca, str):
            return [self.trust_ca]
        return list(self.trust_ca)


def _env_flag(name: str, default: str = "true") -> bool:
    return os.environ.get(name, default).strip().lower() not in ("false", "0", "no", "off")


def load_env(dotenv_path: Optional[Union[str, Path]] = None) -> None:
    """
    Load a ``.env`` file into the process environment.

    Existing variables win over file entries. Looks in the current working
    directory when no path is given.
    """
    path = Path(dotenv_path) if dotenv_path else Path.cwd() / ".env"
    if path.exists():
        load_dotenv(path, override=False)


def config_from_env() -> ConnectionConfig:
    """
    Build a ConnectionConfig from ``EWS_*`` environment variables.

    Reads EWS_VERIFY_TLS, EWS_SSL_VERSION, EWS_TRUST_CA (``os.pathsep``
    separated) and EWS_RECEIVE_TIMEOUT.
    """
    trust_ca = [p for p in os.environ.get("EWS_TRUST_CA", "").split(os.pathsep) if p.strip()]
    timeout = os.environ.get("EWS_RECEIVE_TIMEOUT")
    return ConnectionConfig(
        ssl_verify_mode=None if _env_flag("EWS_VERIFY_TLS") else "none",
        ssl_version=os.environ.get("EWS_SSL_VERSION") or None,
        trust_ca=tuple(trust_ca) or None,
        receive_timeout=float(timeout) if timeout else 60.0,
    )


def auth_from_env() -> Optional[ConnectionAuth]:
    """Credentials from EWS_USER / EWS_PASS / EWS_AUTH_KIND, or None if unset."""
    user = os.environ.get("EWS_USER", "")
    password = os.environ.get("EWS_PASS", "")
    if not (user and password):
        return None
    return ConnectionAuth(os.environ.get("EWS_AUTH_KIND", "ntlm").lower(), user, password)
