"""
Pytest config.

Pins the repo root on sys.path so `import hub` works without installing the
package, and isolates every test from the process environment and the
provider metadata caches.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_repo_root_on_syspath() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    repo_root_str = str(repo_root)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


_ensure_repo_root_on_syspath()

from hub.auth import oidc  # noqa: E402
from hub.auth.config import load_auth_config  # noqa: E402

_ENV_VARS = (
    "HUB_APP_URI",
    "HUB_API_PREFIX",
    "HUB_ENV",
    "NODE_ENV",
    "AUTH_COOKIE_SECURE",
    "AUTH_SESSION_SECRET",
    "AUTH_SESSION_TTL_SECONDS",
    "OIDC_AUTHORITY",
    "OIDC_DISCOVERY_URL",
    "OIDC_CLIENT_ID",
    "OIDC_CLIENT_SECRET",
    "OIDC_SCOPES",
)


@pytest.fixture(autouse=True)
def _isolate_auth_env(monkeypatch: pytest.MonkeyPatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    load_auth_config.cache_clear()
    oidc._discovery_cache.clear()
    oidc._jwks_cache.clear()
    yield
    load_auth_config.cache_clear()


@pytest.fixture
def auth_env(monkeypatch: pytest.MonkeyPatch):
    """A fully configured development environment; returns the loaded config."""
    monkeypatch.setenv("HUB_APP_URI", "https://hub.example.com")
    monkeypatch.setenv("AUTH_SESSION_SECRET", "test-secret-key-for-testing-purposes-only")
    monkeypatch.setenv("OIDC_AUTHORITY", "https://login.example.com/common")
    monkeypatch.setenv("OIDC_CLIENT_ID", "test-client-id")
    monkeypatch.setenv("OIDC_CLIENT_SECRET", "test-client-secret")
    load_auth_config.cache_clear()
    return load_auth_config()
