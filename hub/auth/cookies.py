"""
Cookie attributes for the auth flow.

Every helper returns keyword arguments for `Response.set_cookie`. Attributes are
fixed here; only value, path and lifetime vary.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Mapping, Optional

from hub.auth.config import AuthConfig

PKCE_COOKIE_NAME = "HUB_PKCE_VERIFIER"
SESSION_COOKIE_NAME = "HUB_SESSION"
PKCE_TTL_SECONDS = 10 * 60

# Browsers delete a cookie whose expiry is in the past.
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _cookie_kwargs(cfg: AuthConfig, *, key: str, value: str, path: str) -> dict:
    return {
        "key": key,
        "value": value,
        "httponly": True,
        "secure": cfg.cookie_secure,
        "samesite": "lax",
        "path": path,
    }


def pkce_cookie_kwargs(cfg: AuthConfig, verifier: str) -> dict:
    # Only sent to the callback URL.
    kwargs = _cookie_kwargs(cfg, key=PKCE_COOKIE_NAME, value=verifier, path=cfg.callback_path)
    kwargs["max_age"] = PKCE_TTL_SECONDS
    return kwargs


def clear_pkce_cookie_kwargs(cfg: AuthConfig) -> dict:
    kwargs = _cookie_kwargs(cfg, key=PKCE_COOKIE_NAME, value="", path=cfg.callback_path)
    kwargs["expires"] = _EPOCH
    return kwargs


def session_cookie_kwargs(cfg: AuthConfig, value: str) -> dict:
    kwargs = _cookie_kwargs(cfg, key=SESSION_COOKIE_NAME, value=value, path="/")
    kwargs["max_age"] = cfg.session_ttl_seconds
    return kwargs


def clear_session_cookie_kwargs(cfg: AuthConfig) -> dict:
    kwargs = _cookie_kwargs(cfg, key=SESSION_COOKIE_NAME, value="", path="/")
    kwargs["expires"] = _EPOCH
    return kwargs


def read_cookie(cookies: Mapping[str, str], name: str) -> Optional[str]:
    return (cookies.get(name) or "").strip() or None
