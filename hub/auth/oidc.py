from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict, Iterable, Optional, Tuple
from urllib.parse import urlencode

import jwt  # PyJWT
import requests

from hub.auth.config import AuthConfig
from hub.auth.errors import GenericExchangeError, ProviderAuthError, URLConstructionError
from hub.auth.models import TokenResult
from hub.auth.pkce import CODE_CHALLENGE_METHOD

logger = logging.getLogger(__name__)

_CACHE_TTL_SECONDS = 3600
_HTTP_TIMEOUT_SECONDS = 10

# Needed on top of the resource scopes so the token response carries an ID token.
_OIDC_SCOPES = ("openid", "profile")

_discovery_cache: Dict[str, Tuple[float, Optional[Dict[str, Any]]]] = {}
_jwks_cache: Dict[str, Tuple[float, Optional[Dict[str, Any]]]] = {}


def _fetch_cached_json(
    http: requests.Session, url: str, cache: Dict[str, Tuple[float, Optional[Dict[str, Any]]]], what: str
) -> Dict[str, Any]:
    ts, cached = cache.get(url, (0.0, None))
    now = time.time()
    if cached is not None and now - ts < _CACHE_TTL_SECONDS:
        return cached
    r = http.get(url, timeout=_HTTP_TIMEOUT_SECONDS)
    r.raise_for_status()
    data = r.json()
    if not isinstance(data, dict):
        raise ValueError(f"Invalid {what}")
    cache[url] = (now, data)
    logger.debug("Fetched %s from %s", what, url)
    return data


def _get_discovery(http: requests.Session, discovery_url: str) -> Dict[str, Any]:
    """
    Fetch OIDC discovery document from provider.
    Caches result for 1 hour per discovery URL.
    """
    return _fetch_cached_json(http, discovery_url, _discovery_cache, "OIDC discovery document")


def _get_jwks(http: requests.Session, jwks_uri: str) -> Dict[str, Any]:
    """
    Fetch JWKS (JSON Web Key Set) from provider.
    Caches result for 1 hour per JWKS URI.
    """
    return _fetch_cached_json(http, jwks_uri, _jwks_cache, "JWKS")


def _scope_param(scopes: Iterable[str]) -> str:
    ordered = []
    for s in list(_OIDC_SCOPES) + list(scopes):
        if s and s not in ordered:
            ordered.append(s)
    return " ".join(ordered)


def account_identifier_from_claims(claims: Dict[str, Any]) -> Optional[str]:
    """
    Stable, provider-scoped account identifier.

    Microsoft identity platform tokens carry `oid` (object id) and `tid` (tenant id);
    their combination is the home account id. Other providers use `sub`.
    """
    oid = str(claims.get("oid") or "").strip()
    tid = str(claims.get("tid") or "").strip()
    if oid and tid:
        return f"{oid}.{tid}"
    sub = str(claims.get("sub") or "").strip()
    return sub or None


class IdentityProviderClient:
    """
    Confidential OIDC client for the authorization code flow with PKCE.

    Holds no per-request state; provider metadata is cached module-wide. All
    provider HTTP traffic (discovery, JWKS, token endpoint) goes through one
    `requests.Session`, which the client closes only if it created it.
    """

    def __init__(self, cfg: AuthConfig, session: Optional[requests.Session] = None):
        self._cfg = cfg
        self._owns_http = session is None
        self._http = session or requests.Session()

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> IdentityProviderClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _discovery(self) -> Dict[str, Any]:
        if not self._cfg.oidc_discovery_url:
            raise ValueError("OIDC discovery URL not configured")
        return _get_discovery(self._http, self._cfg.oidc_discovery_url)

    def build_auth_url(
        self,
        *,
        scopes: Iterable[str],
        redirect_uri: str,
        code_challenge: str,
        code_challenge_method: str = CODE_CHALLENGE_METHOD,
        state: Optional[str] = None,
    ) -> str:
        """
        Build the provider authorization URL for the code flow with PKCE.
        """
        try:
            if not self._cfg.oidc_client_id:
                raise ValueError("OIDC client ID not configured")
            disc = self._discovery()
            auth_endpoint = str(disc.get("authorization_endpoint") or "")
            if not auth_endpoint:
                raise ValueError("OIDC discovery missing authorization_endpoint")
        except (requests.RequestException, ValueError) as e:
            raise URLConstructionError(str(e)) from e

        params = {
            "client_id": self._cfg.oidc_client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "response_mode": "query",
            "scope": _scope_param(scopes),
            "code_challenge": code_challenge,
            "code_challenge_method": code_challenge_method,
        }
        if state:
            params["state"] = state
        sep = "&" if "?" in auth_endpoint else "?"
        return f"{auth_endpoint}{sep}{urlencode(params)}"

    def exchange_code(
        self,
        *,
        code: str,
        scopes: Iterable[str],
        redirect_uri: str,
        code_verifier: str,
    ) -> TokenResult:
        """
        Exchange an authorization code for tokens and the account identifier.

        Raises:
            ProviderAuthError: the token endpoint returned an OAuth error body
            GenericExchangeError: network failure, timeout, malformed response or
                an ID token without an account identifier
        """
        try:
            if not self._cfg.oidc_client_id or not self._cfg.oidc_client_secret:
                raise ValueError("OIDC client ID/secret not configured")
            disc = self._discovery()
            token_endpoint = str(disc.get("token_endpoint") or "")
            if not token_endpoint:
                raise ValueError("OIDC discovery missing token_endpoint")

            payload = {
                "client_id": self._cfg.oidc_client_id,
                "client_secret": self._cfg.oidc_client_secret,
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": redirect_uri,
                "code_verifier": code_verifier,
                "scope": _scope_param(scopes),
            }
            r = self._http.post(token_endpoint, data=payload, timeout=_HTTP_TIMEOUT_SECONDS)
        except requests.Timeout as e:
            raise GenericExchangeError("Token endpoint timed out") from e
        except (requests.RequestException, ValueError) as e:
            raise GenericExchangeError(f"Token request failed: {e}") from e

        try:
            data = r.json()
        except ValueError as e:
            raise GenericExchangeError(f"Token response is not JSON (status={r.status_code})") from e
        if not isinstance(data, dict):
            raise GenericExchangeError(f"Invalid token response (status={r.status_code})")

        if r.status_code >= 400 or data.get("error"):
            error_code = str(data.get("error") or "").strip()
            if error_code:
                raise ProviderAuthError(error_code, str(data.get("error_description") or "").strip())
            raise GenericExchangeError(f"Token exchange failed (status={r.status_code})")

        id_token = str(data.get("id_token") or "").strip()
        if not id_token:
            raise GenericExchangeError("Missing id_token in token response")
        try:
            claims = self.validate_id_token(id_token)
        except (jwt.PyJWTError, requests.RequestException, ValueError) as e:
            raise GenericExchangeError(f"ID token validation failed: {e}") from e

        account_id = account_identifier_from_claims(claims)
        if not account_id:
            raise GenericExchangeError("Token acquisition failed: no account identifier returned")

        expires_in = data.get("expires_in")
        return TokenResult(
            account_identifier=account_id,
            access_token=data.get("access_token"),
            refresh_token=data.get("refresh_token"),
            id_token=id_token,
            expires_in=int(expires_in) if str(expires_in or "").isdigit() else None,
            scopes=tuple(str(data.get("scope") or "").split()),
        )

    def validate_id_token(self, id_token: str) -> Dict[str, Any]:
        """
        Validate ID token from OIDC provider.
        - Verifies JWT signature using provider's public keys
        - Validates issuer and audience
        """
        if not self._cfg.oidc_client_id:
            raise ValueError("OIDC client ID not configured")

        disc = self._discovery()
        issuer = str(disc.get("issuer") or "")
        jwks_uri = str(disc.get("jwks_uri") or "")
        if not issuer or not jwks_uri:
            raise ValueError("OIDC discovery missing issuer/jwks_uri")

        hdr = jwt.get_unverified_header(id_token)
        kid = str(hdr.get("kid") or "")
        if not kid:
            raise ValueError("ID token missing kid")

        jwks = _get_jwks(self._http, jwks_uri)
        keys = jwks.get("keys")
        if not isinstance(keys, list):
            raise ValueError("Invalid JWKS keys")

        jwk = None
        for k in keys:
            if isinstance(k, dict) and str(k.get("kid") or "") == kid:
                jwk = k
                break
        if jwk is None:
            raise ValueError("Unknown signing key (kid)")

        key = jwt.algorithms.RSAAlgorithm.from_jwk(json.dumps(jwk))

        # Multi-tenant endpoints publish a templated issuer.
        if "{tenantid}" in issuer:
            unverified = jwt.decode(id_token, options={"verify_signature": False})
            issuer = issuer.replace("{tenantid}", str(unverified.get("tid") or ""))

        claims = jwt.decode(
            id_token,
            key=key,
            algorithms=["RS256"],
            audience=self._cfg.oidc_client_id,
            issuer=issuer,
            options={
                "require": ["exp", "iat", "iss", "aud"],
            },
        )
        if not isinstance(claims, dict):
            raise ValueError("Invalid ID token claims")
        return claims


def get_identity_provider(cfg: AuthConfig) -> IdentityProviderClient:
    return IdentityProviderClient(cfg)
