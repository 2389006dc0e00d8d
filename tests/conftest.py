"""
Pytest fixtures and test configuration.
"""

import pytest
import requests
from unittest.mock import Mock
from requests.structures import CaseInsensitiveDict
from shopify_app import create_app
from shopify_app.clients.shopify_client import ShopifyClient
from shopify_app.config import Config


def build_response(body: str = '', status: int = 200, headers=None, reason: str = 'OK') -> requests.Response:
    """Build a real requests.Response without touching the network."""
    response = requests.Response()
    response.status_code = status
    response.reason = reason
    response._content = body.encode('utf-8')
    response.encoding = 'utf-8'
    response.headers = CaseInsensitiveDict(headers or {})
    return response


@pytest.fixture
def make_response():
    """Factory for canned HTTP responses."""
    return build_response


@pytest.fixture
def mock_session():
    """Mock requests session."""
    return Mock(spec=requests.Session)


@pytest.fixture
def shopify_client(mock_session):
    """Shopify client with a mocked session."""
    client = ShopifyClient(
        'shop.example.com',
        'shpat_token1234',
        'k1',
        's3cret'
    )
    client.session = mock_session
    return client


@pytest.fixture
def app(monkeypatch):
    """Flask app with test configuration."""
    monkeypatch.setattr(Config, 'SHOPIFY_API_KEY', 'k1')
    monkeypatch.setattr(Config, 'SHOPIFY_API_SECRET', 's3cret')
    monkeypatch.setattr(Config, 'SHOPIFY_SCOPES', 'read_orders,write_orders')
    monkeypatch.setattr(Config, 'SHOPIFY_REDIRECT_URL', 'https://app.example.com/cb')

    app = create_app()
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()
