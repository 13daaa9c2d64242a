"""
Centralized pytest configuration for Quit service tests.

This module provides standardized fixtures and utilities for all test modules,
ensuring consistent database setup, a controllable clock, client configuration,
and resource cleanup.
"""

import pytest
import os
import sys
from datetime import datetime, timedelta, timezone

# Add project root to Python path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from flask import Flask
from config import TestingConfig
from db.database import db
from routes.challenge_routes import challenge_bp
from services.auth_service import issue_token
from services.challenge_service import ChallengeService
from utils.error_handling import register_error_handlers
from utils.security_utils import add_security_headers
import models  # noqa: F401

# Monday 2 March 2026, 09:00 UTC
START = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock injected into the challenge service."""

    def __init__(self, now: datetime):
        self.current = now

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs):
        self.current += timedelta(**kwargs)
        return self.current

    def set(self, now: datetime):
        self.current = now
        return self.current


@pytest.fixture(scope="function")
def clock():
    return FakeClock(START)


@pytest.fixture(scope="function")
def app(clock):
    """
    Create a Flask app for testing with fresh in-memory database.

    Each test gets a clean database, the challenge blueprint with its error
    handlers, and the fake clock wired in through the CLOCK setting.
    """
    app = Flask(__name__)
    app.config.from_object(TestingConfig)
    app.config['CLOCK'] = clock

    app.register_blueprint(challenge_bp)
    register_error_handlers(app)
    app.after_request(add_security_headers)

    with app.app_context():
        db.init_app(app)
        db.create_all()
        yield app
        # Clean teardown
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope="function")
def db_session(app):
    """Provide the database session bound to the test app."""
    yield db.session


@pytest.fixture(scope="function")
def client(app):
    """
    Create a test client for HTTP endpoint testing.

    Returns Flask test client configured for the test application,
    ready for making HTTP requests in tests.
    """
    return app.test_client()


@pytest.fixture(scope="function")
def service(app, clock):
    """Challenge service driven by the fake clock."""
    return ChallengeService(clock=clock)


@pytest.fixture(scope="function")
def auth_headers(app):
    """
    Build Authorization headers for a principal/device pair.

    Usage:
        client.get('/challenges/active', headers=auth_headers('alice'))
    """
    def _headers(principal_id='user-1', device_id='device-a'):
        return {'Authorization': f'Bearer {issue_token(principal_id, device_id)}'}
    return _headers
