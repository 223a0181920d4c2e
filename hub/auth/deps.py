from __future__ import annotations

from typing import Optional

from fastapi import Request

from hub.auth.config import AuthConfig
from hub.auth.cookies import SESSION_COOKIE_NAME, read_cookie
from hub.auth.models import AuthUser
from hub.auth.session import decode_session


def authenticate_request(request: Request, cfg: AuthConfig) -> Optional[AuthUser]:
    """
    Authenticate a request and return an AuthUser if the session cookie is present/valid.
    """
    account_id = decode_session(cfg, read_cookie(request.cookies, SESSION_COOKIE_NAME))
    if account_id is None:
        return None
    return AuthUser(account_id=account_id)
