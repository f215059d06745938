"""Application factory and app-wide configuration."""

from typing import Optional

from flask import Flask, request
from flask_cors import CORS
from loguru import logger

from retirement_sim.app.api.routes import api_bp
from retirement_sim.config import AppConfig


def create_app(config: Optional[AppConfig] = None) -> Flask:
    """Build the Flask app instance."""
    config = config or AppConfig.from_env()
    app = Flask(__name__)
    app.config["RETIREMENT_SIM"] = config

    CORS(
        app,
        resources={r"/api/*": {"origins": config.cors_origins}},
        supports_credentials=True,
    )

    @app.after_request
    def log_request(response):
        logger.info("{} {} -> {}", request.method, request.path, response.status_code)
        return response

    app.register_blueprint(api_bp, url_prefix="/api")
    return app
