"""
Shopify Admin REST API client.
"""

import json
import logging
from typing import Any, Dict, Optional
from urllib.parse import quote_plus, urlencode, urlsplit

import requests

from shopify_app.clients.http_message import (
    STATUS_CODE_KEY,
    build_query,
    decode_body,
    response_metadata,
    status_code_of,
    unwrap_payload
)
from shopify_app.utils.logger import log_with_context

# Handlers come from the application logger (create_app)
logger = logging.getLogger(__name__)

CALL_LIMIT_HEADER = 'x-shopify-shop-api-call-limit'


class ShopifyError(Exception):
    """Base class for failures reported by the network or by Shopify."""
    pass


class ShopifyTransportError(ShopifyError):
    """The HTTP exchange itself failed (DNS, connection, TLS, timeout)."""

    def __init__(self, message: str, code: str):
        super().__init__(f"{code}: {message}")
        self.message = message
        self.code = code


class ShopifyApiError(ShopifyError):
    """
    Shopify answered with an error.

    Keeps the whole request/response context for diagnostics.
    """

    def __init__(
        self,
        method: str,
        path: str,
        params: Dict[str, Any],
        response_headers: Dict[str, str],
        response: Any
    ):
        self.method = method
        self.path = path
        self.params = params
        self.response_headers = response_headers
        self.response = response

        errors = response.get('errors') if isinstance(response, dict) else response
        super().__init__(
            f"{method} {path} failed with status {self.status_code}: {errors}"
        )

    @property
    def status_code(self) -> Optional[int]:
        return status_code_of(self.response_headers)


class ShopifyUsageError(RuntimeError):
    """The client was used in a way its contract does not allow."""
    pass


class ShopifyClient:
    """
    Shopify Admin REST API client for a single shop.

    Not safe for concurrent use: ``last_response_headers`` is overwritten by
    every request, so concurrent callers need separate instances or their
    own locking.
    """

    USER_AGENT = 'HAC'
    MAX_REDIRECTS = 3
    CONNECT_TIMEOUT = 30
    READ_TIMEOUT = 30

    QUERY_METHODS = ('GET', 'DELETE')
    BODY_METHODS = ('POST', 'PUT')

    def __init__(self, shop_domain: str, token: str, api_key: str, secret: str):
        """
        Initialize Shopify client.

        Args:
            shop_domain: Shop hostname (e.g., store.myshopify.com)
            token: Admin API access token
            api_key: Integration API key
            secret: Integration API secret
        """
        self._shop_domain = shop_domain
        self._token = token
        self._api_key = api_key
        self._secret = secret

        self.last_response_headers: Optional[Dict[str, str]] = None

        self.session = requests.Session()
        self.session.max_redirects = self.MAX_REDIRECTS
        self.session.headers.update({
            'User-Agent': self.USER_AGENT
        })

    @property
    def shop_domain(self) -> str:
        return self._shop_domain

    def __enter__(self) -> 'ShopifyClient':
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        self.session.close()

    def build_authorize_url(self, scope: str, redirect_url: str = '') -> str:
        """
        Build the URL a merchant visits to authorize the integration.

        Args:
            scope: Comma-separated scopes (e.g., read_orders,write_orders)
            redirect_url: Registered callback URL, optional

        Returns:
            Authorization URL
        """
        url = (
            f"http://{self._shop_domain}/admin/oauth/authorize"
            f"?client_id={self._api_key}&scope={quote_plus(scope)}"
        )
        if redirect_url:
            url += f"&redirect_uri={quote_plus(redirect_url)}"
        return url

    def exchange_code_for_token(self, code: str) -> str:
        """
        Exchange an authorization code for a permanent access token.

        POST /admin/oauth/access_token

        Args:
            code: Code Shopify passed to the redirect URL

        Returns:
            Access token, or empty string if Shopify returned none

        Raises:
            ShopifyTransportError: If the HTTP exchange fails
        """
        url = f"https://{self._shop_domain}/admin/oauth/access_token"
        payload = urlencode({
            'client_id': self._api_key,
            'client_secret': self._secret,
            'code': code
        })
        headers = {'Content-Type': 'application/x-www-form-urlencoded'}

        body = self._http_request('POST', url, payload=payload, headers=headers)
        response = decode_body(body)

        if isinstance(response, dict) and 'access_token' in response:
            return response['access_token']
        return ''

    def call(self, method: str, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Call an Admin API resource.

        GET/DELETE send params as query string, POST/PUT as JSON body.

        Args:
            method: GET, POST, PUT or DELETE
            path: Resource path (e.g., /admin/orders/1.json)
            params: Request parameters

        Returns:
            Decoded response with the resource envelope removed

        Raises:
            ShopifyTransportError: If the HTTP exchange fails
            ShopifyApiError: If Shopify reports errors or status >= 400
            ValueError: If method is not supported
        """
        method = method.upper()
        if method not in self.QUERY_METHODS + self.BODY_METHODS:
            raise ValueError(f"Unsupported HTTP method: {method}")

        params = params or {}
        url = f"https://{self._shop_domain}/{path.lstrip('/')}"

        query = params if method in self.QUERY_METHODS else None
        payload = None
        headers = {}
        if method in self.BODY_METHODS:
            payload = json.dumps(params)
            headers['Content-Type'] = 'application/json; charset=utf-8'
            # Empty Expect disables 100-continue
            headers['Expect'] = ''
        headers['X-Shopify-Access-Token'] = self._token

        body = self._http_request(method, url, query=query, payload=payload, headers=headers)
        status_code = status_code_of(self.last_response_headers) or 0
        response = decode_body(body, keep_raw=status_code >= 400)

        if self._has_errors(response) or status_code >= 400:
            raise ShopifyApiError(method, path, params, self.last_response_headers, response)

        return unwrap_payload(response)

    def calls_made(self) -> int:
        """Number of calls made in the current rate-limit window."""
        return self._call_limit_param(0)

    def call_limit(self) -> int:
        """Size of the rate-limit bucket."""
        return self._call_limit_param(1)

    def calls_left(self) -> int:
        """Calls still available before the limit is hit."""
        return self.call_limit() - self.calls_made()

    @staticmethod
    def _has_errors(response: Any) -> bool:
        return isinstance(response, dict) and 'errors' in response

    def _call_limit_param(self, index: int) -> int:
        """
        Read one side of the ``used/limit`` call-limit header.

        Raises:
            ShopifyUsageError: If no request has completed yet
        """
        if self.last_response_headers is None:
            raise ShopifyUsageError('Cannot be called before an API call.')

        value = self.last_response_headers.get(CALL_LIMIT_HEADER, '')
        params = value.split('/')
        if index >= len(params) or not params[index].strip():
            return 0
        return int(params[index])

    @staticmethod
    def _append_query(url: str, query: Optional[Dict[str, Any]]) -> str:
        if not query:
            return url
        return f"{url}?{build_query(query)}"

    def _http_request(
        self,
        method: str,
        url: str,
        query: Optional[Dict[str, Any]] = None,
        payload: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> str:
        """
        Send an HTTP request and record the response metadata.

        Args:
            method: HTTP method
            url: Absolute URL without query string
            query: Query parameters
            payload: Encoded request body
            headers: Extra request headers

        Returns:
            Response body text

        Raises:
            ShopifyTransportError: If the request cannot be completed
        """
        url = self._append_query(url, query)

        try:
            response = self.session.request(
                method,
                url,
                data=payload if payload else None,
                headers=headers or {},
                allow_redirects=True,
                verify=True,
                timeout=(self.CONNECT_TIMEOUT, self.READ_TIMEOUT)
            )
        except requests.RequestException as e:
            log_with_context(
                logger, "WARNING",
                "Shopify request failed",
                method=method,
                path=urlsplit(url).path,
                error=type(e).__name__
            )
            raise ShopifyTransportError(str(e), type(e).__name__) from e

        self.last_response_headers = response_metadata(response)

        log_with_context(
            logger, "DEBUG",
            "Shopify request completed",
            method=method,
            path=urlsplit(url).path,
            status=self.last_response_headers[STATUS_CODE_KEY],
            call_limit=self.last_response_headers.get(CALL_LIMIT_HEADER)
        )

        return response.text
