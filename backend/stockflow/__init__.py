# backend/stockflow/__init__.py
import logging
import time

from flask import Flask, g, request

from .config import Config
from .extensions import db, migrate

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("stockflow").setLevel(level)


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    configure_logging(app.config["LOG_LEVEL"])

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Repositories and services, injected explicitly
    from .wiring import build_services
    build_services(app)

    # Register blueprints
    from .routes.system import system_bp
    from .routes.products import products_bp
    from .routes.inventory import inventory_bp
    from .routes.sales import sales_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(sales_bp)

    @app.before_request
    def start_timer():
        g.request_started = time.time()

    @app.after_request
    def log_request(response):
        started = g.get("request_started")
        if started is not None:
            duration = round((time.time() - started) * 1000, 2)
            app.logger.info(
                "%s %s Status: %s Time: %sms",
                request.method, request.path, response.status_code, duration,
            )
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
