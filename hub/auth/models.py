from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class AuthUser:
    """Authenticated user, as recovered from the session cookie."""

    account_id: str


@dataclass(frozen=True)
class TokenResult:
    """Result of an authorization code exchange. Tokens are never stored in the session."""

    account_identifier: Optional[str]
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    id_token: Optional[str] = None
    expires_in: Optional[int] = None
    scopes: Tuple[str, ...] = field(default_factory=tuple)
