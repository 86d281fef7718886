"""Shared fixtures: a migrated temporary database and a Flask app bound to it."""
import os
import sys

import pytest

PROJECT_ROOT = os.path.join(os.path.dirname(__file__), '..')
sys.path.insert(0, PROJECT_ROOT)

from config import MIGRATIONS_DIR, SEEDS_DIR
from app import create_app, init_db
from app.db.connection import Database
from app.db.migrations import apply_migrations


@pytest.fixture
def db(tmp_path):
    """A Database with the project's migrations applied."""
    database = Database(str(tmp_path / "test.db"))
    apply_migrations(database.connection(), MIGRATIONS_DIR)
    yield database
    database.close()


@pytest.fixture
def app(tmp_path):
    application = create_app({
        'APP_ENV': 'test',
        'DB_FILE': str(tmp_path / "api.db"),
        'MIGRATIONS_DIR': MIGRATIONS_DIR,
        'SEEDS_DIR': SEEDS_DIR,
        'SEED_ON_START': True,
        'RATELIMIT_ENABLED': False,
        'SOCKETIO_ASYNC_MODE': 'threading',
    })
    init_db(application)
    yield application
    application.extensions['db'].close()


@pytest.fixture
def client(app):
    return app.test_client()
