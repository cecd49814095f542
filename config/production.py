"""Production environment configuration."""

import os

from .base import BaseConfig


class ProductionConfig(BaseConfig):
    """Production environment configuration."""

    DEBUG = False
    TESTING = False

    # Database
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL")
    SQLALCHEMY_ECHO = False

    if not SQLALCHEMY_DATABASE_URI:
        raise ValueError("DATABASE_URL must be set in production")

    # CORS - Restrict to specific origins
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "localhost").split(",")

    # Logging
    LOG_LEVEL = "INFO"

    # SQLAlchemy Engine Options - Stricter pooling for production
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_size": int(os.getenv("SQLALCHEMY_ENGINE_OPTIONS_POOL_SIZE", 20)),
        "pool_recycle": int(os.getenv("SQLALCHEMY_ENGINE_OPTIONS_POOL_RECYCLE", 1800)),
        "pool_pre_ping": True,
        "connect_args": {
            "connect_timeout": 10,
        },
    }
