# backend/storefront/__init__.py
from flask import Flask

from .config import Config
from .extensions import db, migrate


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Notification channels (replaceable: tests install in-memory / mock-transport versions)
    from . import realtime
    from .services import push_service
    app.extensions.setdefault(realtime.EXTENSION_KEY, realtime.LoggingPublisher())
    app.extensions.setdefault(push_service.EXTENSION_KEY, push_service.build_dispatcher(app.config))

    # Register blueprints
    from .routes.system import system_bp

    app.register_blueprint(system_bp)

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
