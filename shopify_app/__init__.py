"""
Flask application factory for the Shopify install flow.
"""

from flask import Flask, jsonify


def create_app():
    """
    Create and configure Flask application.

    Configuration and logging are set up here rather than at import time,
    so the API client can be imported without touching the environment.

    Returns:
        Configured Flask app instance
    """
    from shopify_app.config import Config
    from shopify_app.utils.logger import get_logger

    # Package logger; client log records propagate to it
    logger = get_logger(__name__)

    app = Flask(__name__)

    # Validate configuration
    try:
        Config.validate()
        logger.info("Configuration validated successfully")
    except ValueError as e:
        logger.error(f"Configuration validation failed: {str(e)}")
        raise

    # Register blueprints
    from shopify_app.oauth import install
    app.register_blueprint(install.bp)
    logger.info("Registered OAuth blueprint")

    # Health check endpoint
    @app.route('/health', methods=['GET'])
    def health():
        """
        Health check endpoint.

        Returns:
            200 OK if application is healthy
        """
        return jsonify({"status": "healthy"}), 200

    logger.info("Application initialized successfully")

    return app
