"""
Application configuration from environment variables.
"""

import os


class Config:
    """Application configuration from environment variables."""

    # Shopify integration
    SHOPIFY_API_KEY: str = os.getenv('SHOPIFY_API_KEY', '')
    SHOPIFY_API_SECRET: str = os.getenv('SHOPIFY_API_SECRET', '')
    SHOPIFY_SCOPES: str = os.getenv('SHOPIFY_SCOPES', 'read_products')
    SHOPIFY_REDIRECT_URL: str = os.getenv('SHOPIFY_REDIRECT_URL', '')

    # Logging
    LOG_LEVEL: str = os.getenv('LOG_LEVEL', 'INFO')
    LOG_FILE: str = os.getenv('LOG_FILE', '')

    @classmethod
    def validate(cls) -> None:
        """
        Validate required configuration on startup.

        Raises:
            ValueError: If required variables missing
        """
        required = [
            'SHOPIFY_API_KEY',
            'SHOPIFY_API_SECRET'
        ]

        missing = [key for key in required if not getattr(cls, key)]

        if missing:
            raise ValueError(
                f"Missing required environment variables: {', '.join(missing)}"
            )
