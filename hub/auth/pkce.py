"""
PKCE (Proof Key for Code Exchange, RFC 7636) helpers.

Only the S256 method is supported.
"""
from __future__ import annotations

import hashlib
from dataclasses import dataclass

from hub.auth.util import b64url, random_token

CODE_CHALLENGE_METHOD = "S256"

# 32 random bytes -> 43 base64url chars, the minimum verifier length.
_VERIFIER_BYTES = 32


@dataclass(frozen=True)
class PkceChallenge:
    verifier: str
    challenge: str


def pkce_challenge(verifier: str) -> str:
    """
    Generate PKCE challenge from verifier using SHA256.
    """
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return b64url(digest)


def generate_pkce() -> PkceChallenge:
    verifier = random_token(_VERIFIER_BYTES)
    return PkceChallenge(verifier=verifier, challenge=pkce_challenge(verifier))
