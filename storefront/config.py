import os
from datetime import timedelta


def _env_bool(name, default=False):
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in {"1", "true", "yes", "y", "on"}


class Config:
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JSON_SORT_KEYS = False
    ENV = os.getenv("FLASK_ENV", "development")

    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", "dev-secret-change-me")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(days=1)

    # seconds a checkout/payment may wait on a row lock before failing
    LOCK_TIMEOUT_SECONDS = float(os.getenv("LOCK_TIMEOUT_SECONDS", "5"))
    # extra attempts after a lock timeout / deadlock
    TRANSACTION_RETRIES = int(os.getenv("TRANSACTION_RETRIES", "1"))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_JSON = _env_bool("LOG_JSON")

    @classmethod
    def init_app(cls, app):
        uri = app.config.get("SQLALCHEMY_DATABASE_URI") or os.getenv("DATABASE_URL")
        if not uri:
            os.makedirs(app.instance_path, exist_ok=True)
            uri = f"sqlite:///{os.path.join(app.instance_path, 'storefront.db')}"
        app.config["SQLALCHEMY_DATABASE_URI"] = uri

        if uri.startswith("sqlite"):
            options = dict(app.config.get("SQLALCHEMY_ENGINE_OPTIONS") or {})
            connect_args = dict(options.get("connect_args") or {})
            connect_args.setdefault("timeout", app.config["LOCK_TIMEOUT_SECONDS"])
            connect_args.setdefault("check_same_thread", False)
            options["connect_args"] = connect_args
            app.config["SQLALCHEMY_ENGINE_OPTIONS"] = options


class TestConfig(Config):
    TESTING = True
    ENV = "testing"
    JWT_SECRET_KEY = "test-secret-key-with-enough-length-for-hs256"
    LOCK_TIMEOUT_SECONDS = 5.0
    TRANSACTION_RETRIES = 1
    LOG_LEVEL = "WARNING"
