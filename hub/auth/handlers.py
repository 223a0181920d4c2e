"""
Login and callback handlers for the authorization code flow with PKCE.

Handlers take their configuration and provider client as arguments and return
a finished response; nothing raised by the provider propagates past them.
"""
from __future__ import annotations

import logging
from typing import Mapping, Optional

from fastapi.responses import PlainTextResponse, RedirectResponse, Response

from hub.auth.config import AuthConfig
from hub.auth.cookies import (
    PKCE_COOKIE_NAME,
    clear_pkce_cookie_kwargs,
    pkce_cookie_kwargs,
    read_cookie,
    session_cookie_kwargs,
)
from hub.auth.errors import ClientProtocolError, GenericExchangeError, ProviderAuthError, URLConstructionError
from hub.auth.oidc import IdentityProviderClient
from hub.auth.pkce import CODE_CHALLENGE_METHOD, generate_pkce
from hub.auth.session import encode_session

logger = logging.getLogger(__name__)

LOGIN_FAILED_MESSAGE = "Error preparing for login."
MISSING_VERIFIER_MESSAGE = "Authentication error: Missing PKCE verifier. Please try logging in again."
CALLBACK_FAILED_MESSAGE = "Error during authentication callback. Please try logging in again."


def _public_base_url(cfg: AuthConfig) -> str:
    base = cfg.base_uri
    if not base:
        raise URLConstructionError("HUB_APP_URI is required for the login redirect")
    return base


def handle_login(cfg: AuthConfig, provider: IdentityProviderClient) -> Response:
    """Start the flow: issue a PKCE pair and redirect to the provider."""
    pkce = generate_pkce()

    try:
        _public_base_url(cfg)
        url = provider.build_auth_url(
            scopes=cfg.scopes,
            redirect_uri=cfg.redirect_uri,
            code_challenge=pkce.challenge,
            code_challenge_method=CODE_CHALLENGE_METHOD,
        )
    except URLConstructionError as e:
        logger.error("Error generating auth URL: %s", e)
        return PlainTextResponse(LOGIN_FAILED_MESSAGE, status_code=500)
    except Exception:
        logger.exception("Unexpected error generating auth URL")
        return PlainTextResponse(LOGIN_FAILED_MESSAGE, status_code=500)

    resp = RedirectResponse(url=url, status_code=302)
    resp.headers["Cache-Control"] = "no-store"
    resp.set_cookie(**pkce_cookie_kwargs(cfg, pkce.verifier))
    return resp


def _require_verifier(cookies: Mapping[str, str]) -> str:
    verifier = read_cookie(cookies, PKCE_COOKIE_NAME)
    if not verifier:
        raise ClientProtocolError("PKCE verifier cookie not found")
    return verifier


def handle_callback(
    cfg: AuthConfig,
    provider: IdentityProviderClient,
    *,
    code: Optional[str],
    cookies: Mapping[str, str],
) -> Response:
    """Complete the flow: redeem the code and establish the session cookie."""
    try:
        verifier = _require_verifier(cookies)
    except ClientProtocolError as e:
        logger.warning("%s", e)
        return PlainTextResponse(MISSING_VERIFIER_MESSAGE, status_code=400)

    try:
        app_root = _public_base_url(cfg)
        result = provider.exchange_code(
            code=code or "",
            scopes=cfg.scopes,
            redirect_uri=cfg.redirect_uri,
            code_verifier=verifier,
        )
        if result is None or not result.account_identifier:
            raise GenericExchangeError("Token acquisition failed: No response or account returned.")

        logger.info("Token acquired successfully. Creating session cookie.")
        session_value = encode_session(cfg, result.account_identifier)
        if not session_value:
            raise GenericExchangeError("Session signing is not configured (AUTH_SESSION_SECRET)")
    except ProviderAuthError as e:
        logger.error("Provider auth error during token acquisition: %s - %s", e.error_code, e.error_message)
        return PlainTextResponse(CALLBACK_FAILED_MESSAGE, status_code=500)
    except Exception:
        logger.exception("Generic error during token acquisition")
        return PlainTextResponse(CALLBACK_FAILED_MESSAGE, status_code=500)

    resp = RedirectResponse(url=app_root, status_code=302)
    resp.headers["Cache-Control"] = "no-store"
    resp.set_cookie(**session_cookie_kwargs(cfg, session_value))
    resp.set_cookie(**clear_pkce_cookie_kwargs(cfg))
    return resp
