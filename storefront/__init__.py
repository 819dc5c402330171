from collections.abc import Mapping

from flask import Flask, jsonify

from .config import Config
from .extensions import db, jwt, cors, migrate


def create_app(config=None, **overrides):
    """
    Application factory.

    ``config`` is a config class (default ``Config``) or a mapping of
    settings; keyword overrides are applied last.
    """
    app = Flask(__name__, instance_relative_config=True)

    app.config.from_object(Config)
    if isinstance(config, Mapping):
        app.config.update(config)
    elif config is not None:
        app.config.from_object(config)
    app.config.update(overrides)
    Config.init_app(app)

    from .utils.logging import configure_logging
    configure_logging(app.config["LOG_LEVEL"], json=app.config["LOG_JSON"])

    # Init extensions
    db.init_app(app)
    jwt.init_app(app)
    cors.init_app(app, resources={r"/*": {"origins": "*"}})
    migrate.init_app(app, db)

    # Storage handle + orchestrators, injected rather than global
    from .storage import Storage
    from .services import build_services
    with app.app_context():
        storage = Storage(
            db.engine,
            lock_timeout=app.config["LOCK_TIMEOUT_SECONDS"],
            retries=app.config["TRANSACTION_RETRIES"],
        )
    app.extensions["storefront"] = build_services(storage)

    from .errors import register_error_handlers
    register_error_handlers(app)

    # Register blueprints
    from .auth import bp as auth_bp; app.register_blueprint(auth_bp)
    from .product import bp as product_bp; app.register_blueprint(product_bp)
    from .cart import bp as cart_bp; app.register_blueprint(cart_bp)
    from .order import bp as order_bp; app.register_blueprint(order_bp)

    from .cli import register_cli
    register_cli(app)

    @app.get("/")
    def health():
        return jsonify(ok=True, msg="API running")

    if app.config.get("AUTO_CREATE_TABLES", True):
        storage.create_all()

    return app
