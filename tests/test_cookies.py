from __future__ import annotations

from dataclasses import replace

from fastapi.responses import Response

from hub.auth.cookies import (
    PKCE_COOKIE_NAME,
    SESSION_COOKIE_NAME,
    clear_pkce_cookie_kwargs,
    clear_session_cookie_kwargs,
    pkce_cookie_kwargs,
    read_cookie,
    session_cookie_kwargs,
)


def _set_cookie_header(kwargs: dict) -> str:
    resp = Response()
    resp.set_cookie(**kwargs)
    return resp.headers["set-cookie"]


def test_pkce_cookie_is_scoped_to_callback(auth_env) -> None:
    header = _set_cookie_header(pkce_cookie_kwargs(auth_env, "verifierABC"))
    lower = header.lower()
    assert header.startswith(f"{PKCE_COOKIE_NAME}=verifierABC")
    assert "path=/api/auth/callback" in lower
    assert "max-age=600" in lower
    assert "httponly" in lower
    assert "samesite=lax" in lower
    assert "secure" not in lower


def test_clear_pkce_cookie_expires_at_epoch(auth_env) -> None:
    header = _set_cookie_header(clear_pkce_cookie_kwargs(auth_env))
    assert header.startswith(f'{PKCE_COOKIE_NAME}=""') or header.startswith(f"{PKCE_COOKIE_NAME}=;")
    assert "01 Jan 1970 00:00:00 GMT" in header
    assert "path=/api/auth/callback" in header.lower()


def test_session_cookie_is_app_wide(auth_env) -> None:
    header = _set_cookie_header(session_cookie_kwargs(auth_env, "tok"))
    lower = header.lower()
    assert header.startswith(f"{SESSION_COOKIE_NAME}=tok")
    assert "path=/;" in lower or lower.endswith("path=/")
    assert f"max-age={auth_env.session_ttl_seconds}" in lower
    assert "httponly" in lower


def test_clear_session_cookie(auth_env) -> None:
    header = _set_cookie_header(clear_session_cookie_kwargs(auth_env))
    assert header.startswith(SESSION_COOKIE_NAME)
    assert "01 Jan 1970" in header


def test_secure_follows_config(auth_env) -> None:
    cfg = replace(auth_env, cookie_secure=True)
    assert "secure" in _set_cookie_header(pkce_cookie_kwargs(cfg, "v")).lower()
    assert "secure" in _set_cookie_header(session_cookie_kwargs(cfg, "v")).lower()


def test_read_cookie() -> None:
    assert read_cookie({PKCE_COOKIE_NAME: " abc "}, PKCE_COOKIE_NAME) == "abc"
    assert read_cookie({PKCE_COOKIE_NAME: ""}, PKCE_COOKIE_NAME) is None
    assert read_cookie({}, PKCE_COOKIE_NAME) is None
