"""
Centralized configuration for the Quit service.

This module provides a single source of truth for all configuration settings,
with environment variable support and validation.
"""

import os
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


DEFAULT_CORS_ORIGINS = 'app://quit,http://localhost:5173,http://localhost:3000'


class Config:
    """Base configuration class with common settings."""

    # Application
    APP_NAME = "Quit Service"
    APP_VERSION = "1.0.0"

    # Flask
    SECRET_KEY = os.environ.get('SECRET_KEY') or os.urandom(32).hex()
    TESTING = os.environ.get('TESTING', 'false').lower() == 'true'
    DEBUG = os.environ.get('DEBUG', 'false').lower() == 'true'
    PORT = int(os.environ.get('PORT', 4000))
    HOST = os.environ.get('HOST', '0.0.0.0')
    MAX_CONTENT_LENGTH = int(os.environ.get('MAX_CONTENT_LENGTH', 16 * 1024))  # 16KB JSON bodies
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', DEFAULT_CORS_ORIGINS)

    # Database
    DATABASE_URL = os.environ.get('DATABASE_URL', 'sqlite:///quit.db')
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': 300,
    }

    # Authentication (tokens are minted by the login collaborator)
    JWT_SECRET = os.environ.get('JWT_SECRET') or os.urandom(32).hex()
    JWT_ALGORITHM = os.environ.get('JWT_ALGORITHM', 'HS256')
    JWT_EXPIRES_DAYS = int(os.environ.get('JWT_EXPIRES_DAYS', 30))

    # Challenge Settings
    CHALLENGE_MIN_DURATION_DAYS = int(os.environ.get('CHALLENGE_MIN_DURATION_DAYS', 7))
    CHALLENGE_MAX_DURATION_DAYS = int(os.environ.get('CHALLENGE_MAX_DURATION_DAYS', 3650))  # 10 years
    CHALLENGE_TIMEZONE = os.environ.get('CHALLENGE_TIMEZONE', 'UTC')
    REASON_MIN_LENGTH = int(os.environ.get('REASON_MIN_LENGTH', 10))
    REASON_MAX_LENGTH = int(os.environ.get('REASON_MAX_LENGTH', 500))
    FEELING_MIN_LENGTH = int(os.environ.get('FEELING_MIN_LENGTH', 5))
    FEELING_MAX_LENGTH = int(os.environ.get('FEELING_MAX_LENGTH', 1000))
    QUIT_COOLDOWN_HOURS = int(os.environ.get('QUIT_COOLDOWN_HOURS', 24))
    HISTORY_LIMIT = int(os.environ.get('HISTORY_LIMIT', 20))

    # Security Headers
    SECURITY_HEADERS_ENABLED = os.environ.get('SECURITY_HEADERS_ENABLED', 'true').lower() == 'true'
    HSTS_MAX_AGE = int(os.environ.get('HSTS_MAX_AGE', 31536000))  # 1 year
    CSP_POLICY = os.environ.get('CSP_POLICY', "default-src 'none'; frame-ancestors 'none'")

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FORMAT = os.environ.get('LOG_FORMAT', 'json')  # 'json' or 'text'
    LOG_FILE = os.environ.get('LOG_FILE', None)  # None = stdout only
    AUDIT_LOG_FILE = os.environ.get('AUDIT_LOG_FILE', None)

    @classmethod
    def validate(cls):
        """Validate configuration values."""
        errors = []

        # Validate challenge settings
        if cls.CHALLENGE_MIN_DURATION_DAYS < 1:
            errors.append("CHALLENGE_MIN_DURATION_DAYS must be >= 1")
        if cls.CHALLENGE_MAX_DURATION_DAYS < cls.CHALLENGE_MIN_DURATION_DAYS:
            errors.append("CHALLENGE_MAX_DURATION_DAYS must be >= CHALLENGE_MIN_DURATION_DAYS")
        # endsAt must stay within datetime's year range
        if cls.CHALLENGE_MAX_DURATION_DAYS > 36500:
            errors.append("CHALLENGE_MAX_DURATION_DAYS must be <= 36500")
        if cls.REASON_MIN_LENGTH < 1:
            errors.append("REASON_MIN_LENGTH must be >= 1")
        if cls.REASON_MAX_LENGTH < cls.REASON_MIN_LENGTH:
            errors.append("REASON_MAX_LENGTH must be >= REASON_MIN_LENGTH")
        if cls.FEELING_MIN_LENGTH < 1:
            errors.append("FEELING_MIN_LENGTH must be >= 1")
        if cls.FEELING_MAX_LENGTH < cls.FEELING_MIN_LENGTH:
            errors.append("FEELING_MAX_LENGTH must be >= FEELING_MIN_LENGTH")
        if cls.QUIT_COOLDOWN_HOURS < 1:
            errors.append("QUIT_COOLDOWN_HOURS must be >= 1")
        if cls.HISTORY_LIMIT < 1:
            errors.append("HISTORY_LIMIT must be >= 1")
        try:
            ZoneInfo(cls.CHALLENGE_TIMEZONE)
        except (ZoneInfoNotFoundError, ValueError):
            errors.append(f"CHALLENGE_TIMEZONE '{cls.CHALLENGE_TIMEZONE}' is not a known time zone")

        # Validate token settings
        if cls.JWT_ALGORITHM not in ('HS256', 'HS384', 'HS512'):
            errors.append("JWT_ALGORITHM must be one of HS256, HS384, HS512")
        if cls.JWT_EXPIRES_DAYS < 1:
            errors.append("JWT_EXPIRES_DAYS must be >= 1")

        if errors:
            raise ValueError(f"Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors))

        return True

    @classmethod
    def ensure_directories(cls):
        """Ensure required directories exist."""
        if cls.LOG_FILE:
            Path(cls.LOG_FILE).parent.mkdir(parents=True, exist_ok=True)
        if cls.AUDIT_LOG_FILE:
            Path(cls.AUDIT_LOG_FILE).parent.mkdir(parents=True, exist_ok=True)


class DevelopmentConfig(Config):
    """Development environment configuration."""
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing environment configuration."""
    TESTING = True
    DATABASE_URL = 'sqlite:///:memory:'  # In-memory database for tests
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_ENGINE_OPTIONS = {}
    JWT_SECRET = 'testing-secret-not-for-production'


class ProductionConfig(Config):
    """Production environment configuration."""
    DEBUG = False
    TESTING = False

    # Production should use strong secrets from environment
    @classmethod
    def validate(cls):
        """Additional validation for production."""
        super().validate()
        if not os.environ.get('SECRET_KEY'):
            raise ValueError("SECRET_KEY environment variable must be set in production")
        jwt_secret = os.environ.get('JWT_SECRET')
        if not jwt_secret or len(jwt_secret) < 16:
            raise ValueError("JWT_SECRET environment variable must be set (>= 16 chars) in production")
        if cls.DATABASE_URL.startswith('sqlite:///'):
            import warnings
            warnings.warn("SQLite is not recommended for production. Use PostgreSQL or MySQL.")


# Configuration dictionary for easy access
config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}


def get_config(env: Optional[str] = None) -> type[Config]:
    """
    Get configuration class for specified environment.

    Args:
        env: Environment name ('development', 'testing', 'production')
             If None, uses FLASK_ENV environment variable

    Returns:
        Configuration class for the environment
    """
    if env is None:
        env = os.environ.get('FLASK_ENV', 'development')

    config_class = config.get(env, config['default'])
    config_class.validate()
    config_class.ensure_directories()

    return config_class


def get_setting(name: str):
    """
    Read a setting from the running app's config, falling back to Config.

    Lets services and validators honour per-app overrides (tests, factories)
    while still working outside an application context.
    """
    from flask import current_app, has_app_context
    if has_app_context() and name in current_app.config:
        return current_app.config[name]
    return getattr(Config, name)
