"""Development environment configuration."""

import os

from .base import BaseConfig


class DevelopmentConfig(BaseConfig):
    """Development environment configuration."""

    DEBUG = True
    TESTING = False

    SQLALCHEMY_ECHO = os.getenv("SQLALCHEMY_ECHO", "False").lower() == "true"

    # CORS - Allow all origins in development
    CORS_ORIGINS = ["*"]

    # Logging
    LOG_LEVEL = "DEBUG"
    LOG_FORMAT = os.getenv("LOG_FORMAT", "text")
