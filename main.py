#!/usr/bin/env python3
"""
Hub backend - OAuth login/callback service for the Hub SPA.
"""

import argparse
import logging
import sys

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", stream=sys.stderr
)


def show_config() -> None:
    """Print the effective auth configuration (secrets redacted)."""
    from hub.auth.config import load_auth_config

    cfg = load_auth_config()
    print(f"App URI:        {cfg.app_uri or '(not set)'}")
    print(f"Redirect URI:   {cfg.redirect_uri}")
    print(f"Production:     {cfg.production}")
    print(f"Secure cookies: {cfg.cookie_secure}")
    print(f"OIDC enabled:   {cfg.oidc_enabled}")
    print(f"Discovery URL:  {cfg.oidc_discovery_url or '(not set)'}")
    print(f"Scopes:         {' '.join(cfg.scopes)}")
    print(f"Session secret: {'set' if cfg.session_secret else '(not set)'}")
    print(f"Session TTL:    {cfg.session_ttl_seconds}s")


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Hub backend: OAuth 2.0 authorization code flow with PKCE",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Serve the API
  python main.py --serve --port 8080

  # Show the effective auth configuration
  python main.py --show-config
        """,
    )
    parser.add_argument("--serve", action="store_true", help="Run the HTTP server")
    parser.add_argument("--show-config", action="store_true", help="Print the effective auth configuration")
    parser.add_argument("--host", default="0.0.0.0", help="Server bind host (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8080, help="Server listen port (default: 8080)")

    args = parser.parse_args()

    if args.show_config:
        show_config()
        return

    if args.serve:
        from hub.api.app import run

        run(host=args.host, port=args.port)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
