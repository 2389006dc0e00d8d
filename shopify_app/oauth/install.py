"""
OAuth install flow endpoints.
"""

from flask import Blueprint, request, jsonify, redirect
from shopify_app.clients.shopify_client import ShopifyClient, ShopifyError
from shopify_app.config import Config
from shopify_app.utils.validators import validate_oauth_hmac, validate_shop_domain
from shopify_app.utils.logger import get_logger, log_with_context, mask_token

bp = Blueprint('install', __name__)
logger = get_logger(__name__)


def _make_client(shop: str) -> ShopifyClient:
    # No access token yet; only the integration credentials are needed
    return ShopifyClient(shop, '', Config.SHOPIFY_API_KEY, Config.SHOPIFY_API_SECRET)


@bp.route('/oauth/install', methods=['GET'])
def install():
    """
    Send the merchant to Shopify's authorization page.

    Query: ?shop=store.myshopify.com

    Returns:
        302 redirect to the authorize URL, 400 on invalid shop
    """
    shop = request.args.get('shop', '')
    if not validate_shop_domain(shop):
        log_with_context(
            logger, "WARNING",
            "Install attempt with invalid shop",
            shop=shop,
            ip=request.remote_addr
        )
        return jsonify({"status": "error", "message": "Invalid shop"}), 400

    with _make_client(shop) as client:
        url = client.build_authorize_url(Config.SHOPIFY_SCOPES, Config.SHOPIFY_REDIRECT_URL)

    log_with_context(
        logger, "INFO",
        "Redirecting to Shopify authorization",
        shop=shop,
        scopes=Config.SHOPIFY_SCOPES
    )
    return redirect(url, code=302)


@bp.route('/oauth/callback', methods=['GET'])
def callback():
    """
    Exchange the authorization code for an access token.

    Query: ?shop=store.myshopify.com&code=...&timestamp=...&hmac=...

    Returns:
    {
        "status": "success",
        "shop": "store.myshopify.com",
        "access_token": "shpat_..."
    }
    """
    shop = request.args.get('shop', '')
    code = request.args.get('code', '')

    # Only Shopify can sign the redirect with our API secret
    if not validate_oauth_hmac(request.args.to_dict()):
        log_with_context(
            logger, "WARNING",
            "OAuth callback with invalid signature",
            shop=shop,
            ip=request.remote_addr
        )
        return jsonify({"status": "error", "message": "Unauthorized"}), 401

    if not validate_shop_domain(shop):
        return jsonify({"status": "error", "message": "Invalid shop"}), 400
    if not code:
        return jsonify({"status": "error", "message": "Missing code"}), 400

    try:
        with _make_client(shop) as client:
            token = client.exchange_code_for_token(code)

    except ShopifyError as e:
        log_with_context(
            logger, "ERROR",
            "Token exchange failed",
            shop=shop,
            error=str(e)
        )
        return jsonify({"status": "error", "message": "Token exchange failed"}), 502

    except Exception:
        logger.exception("Unexpected error in OAuth callback")
        return jsonify({"status": "error", "message": "Internal server error"}), 500

    if not token:
        log_with_context(
            logger, "ERROR",
            "Shopify returned no access token",
            shop=shop
        )
        return jsonify({"status": "error", "message": "No access token returned"}), 502

    log_with_context(
        logger, "INFO",
        "Shop installed",
        shop=shop,
        token=mask_token(token)
    )

    return jsonify({
        "status": "success",
        "shop": shop,
        "access_token": token
    }), 200
