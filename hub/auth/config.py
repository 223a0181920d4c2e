from __future__ import annotations

import os
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple

DEFAULT_SCOPES: Tuple[str, ...] = ("User.Read", "Files.Read.All", "offline_access")


@dataclass(frozen=True)
class AuthConfig:
    # Application
    app_uri: Optional[str]  # Base URI of the SPA; redirect URI base and post-login destination
    api_prefix: str  # Path prefix the auth routes are mounted under (e.g. "/api")
    production: bool

    # OIDC provider (confidential client)
    oidc_discovery_url: Optional[str]
    oidc_client_id: Optional[str]
    oidc_client_secret: Optional[str]
    scopes: Tuple[str, ...]

    # Session configuration
    session_secret: Optional[str]  # Required for session signing
    session_ttl_seconds: int
    cookie_secure: bool

    @property
    def oidc_enabled(self) -> bool:
        """OIDC is enabled if discovery URL and credentials are configured."""
        return bool(self.oidc_discovery_url and self.oidc_client_id and self.oidc_client_secret)

    @property
    def callback_path(self) -> str:
        return f"{self.api_prefix}/auth/callback"

    @property
    def redirect_uri(self) -> str:
        return f"{self.base_uri}{self.callback_path}"

    @property
    def base_uri(self) -> str:
        return (self.app_uri or "").strip().rstrip("/")


def _parse_scopes(value: str) -> Tuple[str, ...]:
    items = [x.strip() for x in re.split(r"[,\s]+", value or "")]
    return tuple(x for x in items if x)


def _parse_prefix(value: str) -> str:
    p = (value or "").strip().strip("/")
    return f"/{p}" if p else ""


def _discovery_url() -> Optional[str]:
    explicit = (os.getenv("OIDC_DISCOVERY_URL", "") or "").strip()
    if explicit:
        return explicit
    authority = (os.getenv("OIDC_AUTHORITY", "") or "").strip().rstrip("/")
    if authority:
        return f"{authority}/v2.0/.well-known/openid-configuration"
    return None


@lru_cache(maxsize=1)
def load_auth_config() -> AuthConfig:
    """
    Load authentication configuration from environment variables.

    OIDC is enabled if a discovery URL (or authority), OIDC_CLIENT_ID and
    OIDC_CLIENT_SECRET are set.
    """
    env = (os.getenv("HUB_ENV", "") or os.getenv("NODE_ENV", "") or "").strip().lower()
    production = env == "production"

    cookie_secure_env = (os.getenv("AUTH_COOKIE_SECURE", "") or "").strip().lower()
    if cookie_secure_env in ("1", "true", "yes", "on"):
        cookie_secure = True
    elif cookie_secure_env in ("0", "false", "no", "off"):
        cookie_secure = False
    else:
        cookie_secure = production

    ttl = int(float((os.getenv("AUTH_SESSION_TTL_SECONDS", "") or "43200").strip() or "43200"))  # 12h default
    if ttl <= 60:
        ttl = 60

    prefix_env = os.getenv("HUB_API_PREFIX")
    api_prefix = "/api" if prefix_env is None else _parse_prefix(prefix_env)

    return AuthConfig(
        app_uri=(os.getenv("HUB_APP_URI", "") or "").strip().rstrip("/") or None,
        api_prefix=api_prefix,
        production=production,
        oidc_discovery_url=_discovery_url(),
        oidc_client_id=(os.getenv("OIDC_CLIENT_ID", "") or "").strip() or None,
        oidc_client_secret=(os.getenv("OIDC_CLIENT_SECRET", "") or "").strip() or None,
        scopes=_parse_scopes(os.getenv("OIDC_SCOPES", "")) or DEFAULT_SCOPES,
        session_secret=(os.getenv("AUTH_SESSION_SECRET", "") or "").strip() or None,
        session_ttl_seconds=ttl,
        cookie_secure=cookie_secure,
    )
