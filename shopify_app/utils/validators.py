"""
Request validation utilities.
"""

import hashlib
import hmac
import re
import secrets
from typing import Mapping
from shopify_app.config import Config

_SHOP_DOMAIN = re.compile(r'[a-zA-Z0-9][a-zA-Z0-9\-]*\.myshopify\.com')


def validate_shop_domain(shop: str) -> bool:
    """
    Check that a shop parameter is a myshopify.com hostname.

    The install flow builds URLs from this value and sends the API secret
    to it, so anything else (other hosts, paths, ports, credentials in the
    netloc) is rejected.

    Args:
        shop: Value of the ``shop`` query parameter

    Returns:
        True if valid, False otherwise
    """
    if not shop:
        return False

    return _SHOP_DOMAIN.fullmatch(shop) is not None


def compute_oauth_hmac(args: Mapping[str, str], secret: str) -> str:
    """
    Compute Shopify's OAuth query signature.

    Every query parameter except ``hmac`` is joined as ``key=value`` pairs,
    sorted by key and separated by ``&``, then signed with HMAC-SHA256.

    Args:
        args: Query parameters
        secret: Integration API secret

    Returns:
        Hex digest
    """
    message = '&'.join(
        f"{key}={args[key]}" for key in sorted(args) if key != 'hmac'
    )
    return hmac.new(secret.encode(), message.encode(), hashlib.sha256).hexdigest()


def validate_oauth_hmac(args: Mapping[str, str]) -> bool:
    """
    Validate the ``hmac`` signature Shopify adds to OAuth redirects.

    Uses constant-time comparison so the signature cannot be guessed
    byte by byte from response timing.

    Args:
        args: Query parameters of the request

    Returns:
        True if valid, False otherwise
    """
    provided = args.get('hmac', '')
    if not provided or not Config.SHOPIFY_API_SECRET:
        return False

    expected = compute_oauth_hmac(args, Config.SHOPIFY_API_SECRET)
    return secrets.compare_digest(provided, expected)
