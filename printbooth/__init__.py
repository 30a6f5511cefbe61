"""
Photo Booth Print Compositor - Flask Application Factory
Composes printable 4x6 photo collages from guest photos and event logos
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException
from loguru import logger
from dotenv import load_dotenv

from .config import load_config, load_event_config
from .errors import PhotoBoothError


def create_app(config: Optional[Union[str, Dict[str, Any]]] = None):
    """
    Flask application factory

    ``config`` is either an environment name ("development", "production")
    or a dict of setting overrides (used by tests).
    """

    # Load environment variables
    load_dotenv()

    overrides = config if isinstance(config, dict) else None
    config_name = config if isinstance(config, str) else os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)

    # Load configuration
    app_config = load_config(config_name, overrides)
    app.config.update(app_config.model_dump())
    # Multipart bodies carry up to four photos
    app.config['MAX_CONTENT_LENGTH'] = app_config.MAX_UPLOAD_SIZE * 5

    # Configure logging
    setup_logging(app)

    # Ensure output directories exist
    setup_directories(app)

    # Event catalogue
    app.config['EVENTS'] = load_event_config(app.config['EVENTS_FILE'])

    register_error_handlers(app)

    # Register blueprints
    from . import routes
    app.register_blueprint(routes.bp)

    logger.info(f"Photo Booth Print Compositor initialized in {config_name} mode")

    return app


def setup_logging(app):
    """Configure loguru logging"""
    log_level = app.config.get('LOG_LEVEL', 'INFO')
    log_file = app.config.get('LOG_FILE', 'logs/app.log')

    # Ensure logs directory exists
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    logger.add(
        log_file,
        rotation="1 day",
        retention="30 days",
        level=log_level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{function}:{line} | {message}"
    )


def setup_directories(app):
    """Ensure required directories exist"""
    dirs = [
        app.config.get('OUTPUT_FOLDER', 'output'),
        Path(app.config.get('LOG_FILE', 'logs/app.log')).parent,
    ]

    for dir_path in dirs:
        Path(dir_path).mkdir(parents=True, exist_ok=True)


def register_error_handlers(app):
    """Render errors as JSON; PhotoBoothError carries its own HTTP status"""

    @app.errorhandler(PhotoBoothError)
    def handle_photobooth_error(error: PhotoBoothError):
        if error.http_status >= 500:
            logger.error(f"{type(error).__name__}: {error.message}")
        else:
            logger.warning(f"{type(error).__name__}: {error.message}")
        return jsonify(error.to_dict()), error.http_status

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        if isinstance(error, HTTPException):
            return error
        logger.exception(f"Unhandled error: {error}")
        return jsonify({
            'error_type': 'InternalError',
            'message': 'Internal server error',
            'details': {},
            'suggestions': []
        }), 500
