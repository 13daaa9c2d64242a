"""
Security utilities for the Quit service.

This module provides the response hardening applied to every request and the
CORS origin parsing used at startup.
"""

from typing import List
from flask import current_app


def parse_cors_origins(value: str) -> List[str]:
    """
    Split a comma-separated CORS_ORIGINS value.

    Args:
        value: e.g. "app://quit,http://localhost:5173"

    Returns:
        List of stripped, non-empty origins
    """
    return [origin.strip() for origin in (value or '').split(',') if origin.strip()]


def add_security_headers(response):
    """
    Add security headers to Flask response.

    Args:
        response: Flask response object

    Returns:
        Response object with security headers added
    """
    if not current_app.config.get('SECURITY_HEADERS_ENABLED', True):
        return response

    # Prevent clickjacking
    response.headers['X-Frame-Options'] = 'DENY'

    # Prevent MIME type sniffing
    response.headers['X-Content-Type-Options'] = 'nosniff'

    # Strict transport security (HTTPS only)
    hsts_max_age = current_app.config.get('HSTS_MAX_AGE', 31536000)
    response.headers['Strict-Transport-Security'] = f'max-age={hsts_max_age}; includeSubDomains'

    # Content security policy
    response.headers['Content-Security-Policy'] = current_app.config.get(
        'CSP_POLICY', "default-src 'none'; frame-ancestors 'none'")

    # Referrer policy
    response.headers['Referrer-Policy'] = 'no-referrer'

    return response
