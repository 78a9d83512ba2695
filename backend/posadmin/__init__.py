# backend/posadmin/__init__.py
from flask import Flask, request

from .config import get_config, validate_config
from .errors import register_error_handlers
from .extensions import db, migrate
from .logging_setup import setup_logging


def create_app(config_name=None, overrides=None) -> Flask:
    """
    Application factory.

    config_name: development | production | testing (default: APP_ENV)
    overrides: mapping applied on top of the config class, before any
    extension reads it (tests use this for the database URI).
    """
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(get_config(config_name))
    if overrides:
        app.config.update(overrides)

    setup_logging(app)
    validate_config(app)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    from .services.role_store import EXTENSION_KEY, SqlRoleStore
    app.extensions[EXTENSION_KEY] = SqlRoleStore()

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.users import users_bp
    from .routes.roles import roles_bp
    from .routes.products import products_bp
    from .routes.categories import categories_bp
    from .routes.modifiers import modifiers_bp
    from .routes.orders import orders_bp
    from .routes.shifts import shifts_bp
    from .routes.discounts import discounts_bp
    from .routes.tax_categories import tax_categories_bp
    from .routes.store_settings import store_settings_bp
    from .routes.pos_devices import pos_devices_bp
    from .routes.dining_options import dining_options_bp
    from .routes.kitchen_queues import kitchen_queues_bp
    from .routes.payment_types import payment_types_bp
    from .routes.reports import reports_bp
    from .routes.allergens import allergens_bp
    from .routes.customers import customers_bp
    from .routes.kitchen_orders import kitchen_orders_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(roles_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(modifiers_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(shifts_bp)
    app.register_blueprint(discounts_bp)
    app.register_blueprint(tax_categories_bp)
    app.register_blueprint(store_settings_bp)
    app.register_blueprint(pos_devices_bp)
    app.register_blueprint(dining_options_bp)
    app.register_blueprint(kitchen_queues_bp)
    app.register_blueprint(payment_types_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(allergens_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(kitchen_orders_bp)

    register_error_handlers(app)

    allowed_origins = set(app.config.get("CORS_ORIGINS") or ())

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
