from __future__ import annotations

import string
from dataclasses import replace
from unittest.mock import patch

from itsdangerous import TimestampSigner

from hub.auth.session import decode_session, encode_session

_ALPHABET = string.ascii_letters + string.digits + "-_."


def test_round_trip(auth_env) -> None:
    token = encode_session(auth_env, "acct-42")
    assert token
    assert decode_session(auth_env, token) == "acct-42"


def test_single_character_change_is_invalid(auth_env) -> None:
    token = encode_session(auth_env, "acct-42")
    assert token
    for i, ch in enumerate(token):
        replacement = "A" if ch != "A" else "B"
        tampered = token[:i] + replacement + token[i + 1 :]
        assert decode_session(auth_env, tampered) is None, f"tampered position {i} decoded"


def test_other_secret_is_invalid(auth_env) -> None:
    token = encode_session(auth_env, "acct-42")
    other = replace(auth_env, session_secret="another-secret")
    assert decode_session(other, token) is None


def test_expired_token_is_invalid(auth_env) -> None:
    with patch.object(TimestampSigner, "get_timestamp", return_value=1_000_000_000):
        token = encode_session(auth_env, "acct-42")
    assert decode_session(auth_env, token) is None


def test_garbage_and_empty_are_invalid(auth_env) -> None:
    assert decode_session(auth_env, None) is None
    assert decode_session(auth_env, "") is None
    assert decode_session(auth_env, "not-a-token") is None
    assert decode_session(auth_env, "a.b.c") is None


def test_missing_secret_cannot_encode_or_decode(auth_env) -> None:
    token = encode_session(auth_env, "acct-42")
    no_secret = replace(auth_env, session_secret=None)
    assert encode_session(no_secret, "acct-42") is None
    assert decode_session(no_secret, token) is None


def test_token_is_url_safe(auth_env) -> None:
    token = encode_session(auth_env, "00000000-0000-0000-0000-000000000000.11111111-2222-3333-4444-555555555555")
    assert token
    assert all(c in _ALPHABET for c in token)
