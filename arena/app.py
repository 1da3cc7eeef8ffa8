import logging
import os

from flask import Flask
from werkzeug.exceptions import HTTPException

from .account_manager import AccountManager
from .auth import login_manager
from .config import config, validate_runtime
from .logging_setup import configure_logging
from .match_manager import MatchManager
from .models import db
from .news_manager import NewsManager
from .responses import failure, success
from .stores import SqlStore, select_store
from .tournament_registry import TournamentRegistry

logger = logging.getLogger(__name__)


def create_app(config_name: str = None, **overrides) -> Flask:
    """Application factory for the arena service."""
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config[config_name])
    app.config.update(overrides)
    validate_runtime(app.config)

    configure_logging(app.config['LOG_LEVEL'], app.config['STRUCTURED_LOGGING'])

    # Initialize extensions
    db.init_app(app)
    login_manager.init_app(app)

    # Pick the store once; create tables when it is the database
    with app.app_context():
        store = select_store(app.config['STORE_BACKEND'])
        if isinstance(store, SqlStore):
            db.create_all()
    logger.info("Arena service starting (%s config, %s store)", config_name, store.backend)

    # Store services on app for access in routes
    app.store = store
    app.accounts = AccountManager(store)
    app.tournaments = TournamentRegistry(store)
    app.matches = MatchManager(store)
    app.news = NewsManager(store)

    from .routes import BLUEPRINTS
    for blueprint in BLUEPRINTS:
        app.register_blueprint(blueprint)

    register_error_handlers(app)
    register_health(app)

    return app


def register_error_handlers(app: Flask):
    """Unknown routes, wrong methods and stray faults use the envelope too."""

    @app.errorhandler(404)
    def not_found(e):
        return failure('Route not found', 404)

    @app.errorhandler(405)
    def method_not_allowed(e):
        return failure('Method not allowed', 405)

    @app.errorhandler(HTTPException)
    def http_error(e):
        return failure(e.description or e.name, e.code)

    @app.errorhandler(500)
    def server_error(e):
        return failure('Internal server error', 500)


def register_health(app: Flask):

    @app.route('/health')
    def health():
        reachable = app.store.ping()
        message = 'OK' if reachable else 'Data store unreachable'
        return success(message, {'backend': app.store.backend, 'reachable': reachable})
