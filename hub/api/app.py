"""
HTTP surface of the Hub backend: the OAuth login/callback endpoints and the
session endpoints that sit on top of them.
"""
from __future__ import annotations

import logging
import os
import time
from typing import Any, Dict, Iterator, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse, Response

from hub.auth.config import AuthConfig, load_auth_config
from hub.auth.cookies import clear_session_cookie_kwargs
from hub.auth.deps import authenticate_request
from hub.auth.handlers import handle_callback, handle_login
from hub.auth.oidc import IdentityProviderClient
from hub.auth.oidc import get_identity_provider as _make_identity_provider

logger = logging.getLogger(__name__)


def get_auth_config() -> AuthConfig:
    return load_auth_config()


def get_identity_provider(cfg: AuthConfig = Depends(get_auth_config)) -> Iterator[IdentityProviderClient]:
    # One client (and HTTP session) per request, closed once the response is built.
    client = _make_identity_provider(cfg)
    try:
        yield client
    finally:
        client.close()


router = APIRouter(prefix="/auth")


@router.get("/login")
def auth_login(
    cfg: AuthConfig = Depends(get_auth_config),
    provider: IdentityProviderClient = Depends(get_identity_provider),
) -> Response:
    """Initiate the authorization code flow with PKCE."""
    return handle_login(cfg, provider)


@router.get("/callback")
def auth_callback(
    request: Request,
    code: Optional[str] = Query(None),
    cfg: AuthConfig = Depends(get_auth_config),
    provider: IdentityProviderClient = Depends(get_identity_provider),
) -> Response:
    """Handle the provider redirect and establish the session."""
    return handle_callback(cfg, provider, code=code, cookies=request.cookies)


@router.post("/logout")
def auth_logout(cfg: AuthConfig = Depends(get_auth_config)) -> JSONResponse:
    resp = JSONResponse(content={"ok": True})
    resp.headers["Cache-Control"] = "no-store"
    resp.set_cookie(**clear_session_cookie_kwargs(cfg))
    return resp


@router.get("/me")
def auth_me(request: Request) -> Dict[str, Any]:
    user = getattr(request.state, "user", None)
    if not user:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return {"ok": True, "user": {"accountId": user.account_id}}


def _is_public_path(path: str, api_prefix: str) -> bool:
    if path == "/healthz":
        return True
    # Login/callback must be reachable without a session; logout even with a stale one.
    return path in (f"{api_prefix}/auth/login", f"{api_prefix}/auth/callback", f"{api_prefix}/auth/logout")


def create_app(cfg: Optional[AuthConfig] = None) -> FastAPI:
    cfg = cfg or load_auth_config()
    api_prefix = cfg.api_prefix
    application = FastAPI(title="Hub API")

    @application.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all incoming HTTP requests and enforce the session on non-public paths."""
        start_time = time.time()
        logger.debug("%s %s", request.method, request.url.path)
        try:
            path = request.url.path or ""
            if request.method != "OPTIONS" and not _is_public_path(path, api_prefix):
                # Resolve config through the app's overrides so tests can inject it.
                load_cfg = request.app.dependency_overrides.get(get_auth_config, get_auth_config)
                user = authenticate_request(request, load_cfg())
                if user is None:
                    # No `WWW-Authenticate`: browsers would show a basic-auth modal.
                    return JSONResponse(status_code=401, content={"detail": "Unauthorized"})
                request.state.user = user

            response = await call_next(request)
            process_time = time.time() - start_time
            logger.debug("%s %s - %d (%.3fs)", request.method, request.url.path, response.status_code, process_time)
            return response
        except Exception as e:
            process_time = time.time() - start_time
            logger.exception("%s %s - ERROR after %.3fs: %s", request.method, request.url.path, process_time, str(e))
            raise

    @application.get("/healthz")
    def healthz() -> Dict[str, Any]:
        return {"ok": True}

    application.include_router(router, prefix=api_prefix)
    return application


app = create_app()


def run(host: str = "0.0.0.0", port: int = 8080) -> None:
    import uvicorn

    log_level = os.getenv("LOG_LEVEL", "info").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.setLevel(getattr(logging, log_level, logging.INFO))

    uvicorn_log_level = (
        log_level.lower() if log_level.lower() in ["critical", "error", "warning", "info", "debug", "trace"] else "info"
    )

    cfg = load_auth_config()
    if not cfg.oidc_enabled:
        logger.warning("OIDC is not configured; /auth/login will fail until OIDC_* variables are set")
    if not cfg.session_secret:
        logger.warning("AUTH_SESSION_SECRET is not set; sessions cannot be issued")

    logger.info("Starting Hub API on %s:%d (log_level=%s)", host, port, log_level)
    uvicorn.run(app, host=host, port=port, log_level=uvicorn_log_level)
