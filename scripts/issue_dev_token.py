#!/usr/bin/env python3
"""Issue a signed bearer token for local development.

Requires AUTH_BACKEND=signed on the server and the same SECRET_KEY.

Usage:
    uv run python scripts/issue_dev_token.py <uid> [--email EMAIL] [--name NAME]
"""

import argparse
import logging

from src.core.config import get_settings
from src.interface.auth import SignedTokenIdentityProvider


logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(description="Issue a signed development bearer token")
    parser.add_argument("uid", help="User id to embed in the token")
    parser.add_argument("--email", default=None)
    parser.add_argument("--name", default=None)
    args = parser.parse_args()

    provider = SignedTokenIdentityProvider(get_settings())
    token = provider.issue_token(args.uid, email=args.email, name=args.name)
    logger.info("USER_ID=%s", args.uid)
    logger.info("TOKEN=%s", token)


if __name__ == "__main__":
    main()
