"""Application factory for the farm CMS backend."""

from __future__ import annotations

import os

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from farmcms.auth import load_user_from_request
from farmcms.blueprints.api import api_bp
from farmcms.config import Config
from farmcms.extensions import (
    db,
    migrate,
    login_manager,
    limiter,
)
from farmcms.models import User
from farmcms.services.db import close_db, ensure_schema
from farmcms.services.storage import init_storage


def create_app(config_class=Config):
    """Create Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Initialize Flask extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    limiter.init_app(app)
    init_storage(app)

    # Safety net for development databases created before the migrations
    if os.getenv('FARMCMS_SKIP_BOOTSTRAP', '0') != '1':
        try:
            with app.app_context():
                ensure_schema()
        except Exception as e:
            app.logger.warning(f"Schema bootstrap skipped: {e}")

    @login_manager.user_loader
    def load_user(user_id: str):
        return db.session.get(User, user_id)

    login_manager.request_loader(load_user_from_request)

    @login_manager.unauthorized_handler
    def handle_unauthorized():
        return jsonify({'error': 'No token provided'}), 401

    # Ensure models are registered for migrations
    import farmcms.models  # noqa: F401

    app.register_blueprint(api_bp, url_prefix='/api')

    @app.teardown_appcontext
    def teardown_db(exception):
        close_db()

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(413)
    def too_large(error):
        return jsonify({'error': 'File is too large'}), 413

    @app.errorhandler(500)
    def internal_error(error):
        details = getattr(error, 'original_exception', None) or error
        return jsonify({'error': 'Internal server error', 'details': str(details)}), 500

    @app.errorhandler(HTTPException)
    def http_error(error):
        return jsonify({'error': error.description or error.name}), error.code

    # Register CLI commands
    from farmcms.commands import register_commands
    register_commands(app)

    return app


__all__ = ['create_app']
