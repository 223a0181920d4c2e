"""Exception hierarchy for the login/callback flow.

Handlers map every variant to a fixed HTTP response; the variant only decides
how much detail is logged.
"""

from __future__ import annotations

from typing import Optional


class AuthFlowError(Exception):
    """Base exception for authentication flow errors."""

    pass


class ClientProtocolError(AuthFlowError):
    """Raised when the browser did not present what the flow requires (e.g. the PKCE cookie)."""

    pass


class URLConstructionError(AuthFlowError):
    """Raised when the provider authorization URL cannot be built."""

    pass


class ProviderAuthError(AuthFlowError):
    """Raised when the identity provider explicitly rejects the code exchange."""

    def __init__(self, error_code: str, error_message: Optional[str] = None):
        self.error_code = error_code
        self.error_message = error_message or ""
        super().__init__(f"{error_code} - {self.error_message}" if self.error_message else error_code)


class GenericExchangeError(AuthFlowError):
    """Raised on network failure, malformed responses or a missing account identifier."""

    pass
