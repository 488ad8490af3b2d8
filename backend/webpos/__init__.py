# backend/webpos/__init__.py
from flask import Flask, request

from .config import get_config_object, insecure_defaults_in_use, validate_config
from .extensions import db, migrate


def create_app(overrides: dict | None = None, config_name: str | None = None) -> Flask:
    """
    Application factory.

    ``config_name`` picks the profile (development, testing, production);
    WEBPOS_ENV is used when omitted. ``overrides`` is applied last.
    Raises ConfigError when a production profile is missing its secrets.
    """
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(get_config_object(config_name))
    if overrides:
        app.config.update(overrides)

    validate_config(app.config)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))
    for setting in insecure_defaults_in_use(app.config):
        app.logger.warning(
            "%s is using its development default; set it before deploying", setting
        )

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    from .services.container import init_services
    init_services(app, db.session)

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.products import products_bp
    from .routes.sales import sales_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(sales_bp)

    allowed_origins = set(app.config.get("CORS_ORIGINS", ()))

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands, bootstrap
    register_commands(app)

    if app.config.get("BOOTSTRAP_ON_STARTUP"):
        with app.app_context():
            bootstrap(app)

    return app


__all__ = ["create_app"]
