"""
Flask Application Factory with SocketIO, CORS and rate limiting.
"""

import logging
import re

from flask import Flask, jsonify
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_socketio import SocketIO
from werkzeug.exceptions import HTTPException

import config
from app.db.connection import Database
from app.db.migrations import initialize_database

logger = logging.getLogger(__name__)

socketio = SocketIO()


def _cors_origins(origins):
    """Exact origins pass through; '*.example.com' becomes a suffix match."""
    if not origins:
        return '*'
    resolved = []
    for origin in origins:
        if origin.startswith('*'):
            resolved.append(re.compile('^.*' + re.escape(origin[1:]) + '$'))
        else:
            resolved.append(origin)
    return resolved


def _default_settings():
    return {
        'SECRET_KEY': config.SECRET_KEY,
        'APP_ENV': config.APP_ENV,
        'DB_FILE': config.DB_FILE,
        'MIGRATIONS_DIR': config.MIGRATIONS_DIR,
        'SEEDS_DIR': config.SEEDS_DIR,
        'SEED_ON_START': config.SEED_ON_START,
        'CORS_ORIGINS': config.CORS_ORIGINS,
        'JSON_LIMIT': config.JSON_LIMIT,
        'RATE_LIMIT': config.RATE_LIMIT,
        'RATELIMIT_ENABLED': True,
        'SOCKETIO_ASYNC_MODE': config.SOCKETIO_ASYNC_MODE,
    }


def create_app(overrides=None):
    app = Flask(__name__)
    app.config.update(_default_settings())
    if overrides:
        app.config.update(overrides)

    app.config['MAX_CONTENT_LENGTH'] = config.parse_size(app.config['JSON_LIMIT'])
    app.config['DB_READY'] = False
    app.extensions['db'] = Database(app.config['DB_FILE'])

    @app.teardown_appcontext
    def close_connection(_exc):
        app.extensions['db'].close()

    origins = _cors_origins(app.config['CORS_ORIGINS'])
    CORS(app, origins=origins, supports_credentials=origins != '*')

    Limiter(
        get_remote_address,
        app=app,
        default_limits=[app.config['RATE_LIMIT']],
        storage_uri='memory://',
    )

    from app.routes import main_bp
    app.register_blueprint(main_bp)

    from app import socketio_handlers  # noqa: F401

    socketio.init_app(
        app,
        cors_allowed_origins=origins,
        async_mode=app.config['SOCKETIO_ASYNC_MODE'],
    )

    _register_error_handlers(app)
    return app


def _register_error_handlers(app):
    @app.errorhandler(404)
    def not_found(_e):
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(HTTPException)
    def http_error(e):
        return jsonify({'error': e.description}), e.code

    @app.errorhandler(Exception)
    def unhandled(e):
        logger.exception("Request failed")
        return jsonify({'error': str(e) or e.__class__.__name__}), 500


def get_db(app):
    return app.extensions['db']


def init_db(app):
    """Run migrations (and seeds when enabled) for the app's database.

    Errors propagate; the caller decides whether start-up aborts.
    """
    initialize_database(
        get_db(app),
        app.config['MIGRATIONS_DIR'],
        app.config['SEEDS_DIR'],
        enable_seeds=app.config['SEED_ON_START'],
    )
    app.config['DB_READY'] = True
