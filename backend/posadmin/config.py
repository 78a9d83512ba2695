# Overview: Environment-driven configuration classes and startup validation.

# backend/posadmin/config.py
from __future__ import annotations

import os

from dotenv import load_dotenv

from .errors import ConfigurationError

load_dotenv()

# Public fallback shipped with the source tree. Never valid in production.
DEFAULT_JWT_SECRET = "loyverse_secret_key_change_in_production"


class Config:
    """Base configuration shared across all environments."""
    ENV_NAME = "base"

    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # Access token signing
    JWT_SECRET = os.environ.get("JWT_SECRET", DEFAULT_JWT_SECRET)
    JWT_ALGORITHM = "HS256"
    ACCESS_TOKEN_LIFETIME = os.environ.get("ACCESS_TOKEN_LIFETIME", "24h")
    REFRESH_TOKEN_LIFETIME = os.environ.get("REFRESH_TOKEN_LIFETIME", "7d")

    BCRYPT_ROUNDS = 12

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///posadmin.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Store logos and other uploaded images are served from here under /uploads
    UPLOAD_FOLDER = os.environ.get(
        "UPLOAD_FOLDER",
        os.path.join(os.getcwd(), "uploads"),
    )

    LOG_DIR = os.environ.get("LOG_DIR", os.path.join(os.getcwd(), "logs"))
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    CORS_ORIGINS = [
        o.strip()
        for o in os.environ.get(
            "CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173",
        ).split(",")
        if o.strip()
    ]


class DevelopmentConfig(Config):
    ENV_NAME = "development"
    DEBUG = True


class ProductionConfig(Config):
    ENV_NAME = "production"
    DEBUG = False

    # Correct Heroku-style scheme
    _db_url = os.environ.get("DATABASE_URL")
    if _db_url and _db_url.startswith("postgres://"):
        _db_url = _db_url.replace("postgres://", "postgresql://", 1)
    SQLALCHEMY_DATABASE_URI = _db_url or Config.SQLALCHEMY_DATABASE_URI


class TestingConfig(Config):
    ENV_NAME = "testing"
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    # bcrypt minimum cost keeps the suite fast
    BCRYPT_ROUNDS = 4


config_by_name = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}


def get_config(name: str | None = None):
    """Resolve a config class by name, defaulting to APP_ENV then development."""
    name = (name or os.environ.get("APP_ENV") or "development").lower()
    try:
        return config_by_name[name]
    except KeyError:
        raise ConfigurationError(f"Unknown APP_ENV: {name}")


def validate_config(app) -> None:
    """
    Refuse to start a production deployment that signs tokens with the
    public fallback secret.

    Outside production the fallback is tolerated but logged, so local
    development keeps working without a .env file.
    """
    secret = app.config.get("JWT_SECRET")
    using_default = not secret or secret == DEFAULT_JWT_SECRET

    if app.config.get("ENV_NAME") == "production" and using_default:
        raise ConfigurationError(
            "JWT_SECRET must be set to a deployment-specific value in production"
        )

    if using_default and not app.config.get("TESTING"):
        app.logger.warning("JWT_SECRET is not set; using the insecure development default")
