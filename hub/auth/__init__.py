"""
Authentication for the Hub API.

Design goals:
- OAuth 2.0 Authorization Code flow with PKCE against an OIDC provider.
- Stateless: the PKCE verifier and the session both travel in cookies.
- Cookie-based session (HttpOnly) for the same-origin SPA.
"""
