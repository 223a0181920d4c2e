from __future__ import annotations

import hashlib
from typing import Optional

from itsdangerous import BadData, URLSafeTimedSerializer

from hub.auth.config import AuthConfig

SESSION_SALT = "hub-session-v1"


def _serializer(cfg: AuthConfig) -> Optional[URLSafeTimedSerializer]:
    if not cfg.session_secret:
        return None
    # sha384 digests are 48 bytes, which base64 encodes without spare bits: every
    # signature character is significant.
    return URLSafeTimedSerializer(
        secret_key=cfg.session_secret,
        salt=SESSION_SALT,
        signer_kwargs={"digest_method": hashlib.sha384},
    )


def encode_session(cfg: AuthConfig, account_id: str) -> Optional[str]:
    s = _serializer(cfg)
    if s is None:
        return None
    # Keep cookie small and non-sensitive (no access tokens).
    return s.dumps({"acct": account_id})


def decode_session(cfg: AuthConfig, value: str | None) -> Optional[str]:
    if not value:
        return None
    s = _serializer(cfg)
    if s is None:
        return None
    try:
        data = s.loads(value, max_age=cfg.session_ttl_seconds)
    except (BadData, ValueError):
        return None
    if not isinstance(data, dict):
        return None
    account_id = data.get("acct")
    if not isinstance(account_id, str) or not account_id:
        return None
    return account_id
