"""
Authentication service for bearer tokens.

Identity itself (OTP login, device registration) lives in an external
collaborator; this module only mints and verifies the signed tokens it hands
out and resolves them to the principal and device a request acts for.
"""

import functools
from datetime import datetime, timedelta, timezone
from typing import NamedTuple, Optional

import jwt
from flask import request

from config import get_setting
from utils.audit_logger import audit_logger
from utils.error_handling import UnauthorizedError


class Principal(NamedTuple):
    """Authenticated identity a request is performed on behalf of."""
    principal_id: str
    device_id: str


def issue_token(principal_id: str, device_id: str, email: Optional[str] = None,
                now: Optional[datetime] = None) -> str:
    """
    Sign a bearer token for a principal on one device.

    Args:
        principal_id: Opaque id of the principal (becomes the ``sub`` claim)
        device_id: Device the token was issued to
        email: Optional email claim
        now: Issue time, defaults to the current UTC time

    Returns:
        str: The encoded JWT
    """
    now = now or datetime.now(timezone.utc)
    payload = {
        'sub': str(principal_id),
        'deviceId': device_id,
        'iat': now,
        'exp': now + timedelta(days=get_setting('JWT_EXPIRES_DAYS')),
    }
    if email:
        payload['email'] = email
    return jwt.encode(payload, get_setting('JWT_SECRET'), algorithm=get_setting('JWT_ALGORITHM'))


def decode_token(token: str) -> Principal:
    """
    Verify a bearer token and resolve it to a Principal.

    Raises:
        UnauthorizedError: bad signature, expired, or missing claims
    """
    try:
        payload = jwt.decode(
            token,
            get_setting('JWT_SECRET'),
            algorithms=[get_setting('JWT_ALGORITHM')],
            options={'require': ['sub', 'exp']},
        )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError('Token expired')
    except jwt.InvalidTokenError:
        raise UnauthorizedError('Invalid token')

    principal_id = payload.get('sub')
    device_id = payload.get('deviceId')
    if not principal_id or not isinstance(device_id, str) or not device_id:
        raise UnauthorizedError('Invalid token')
    return Principal(principal_id=principal_id, device_id=device_id)


def require_auth(f):
    """Resolve the Authorization bearer token and pass the Principal to the view."""
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        header = request.headers.get('Authorization', '')
        if not header.startswith('Bearer '):
            audit_logger.log_auth_failure('missing_token')
            raise UnauthorizedError()
        try:
            principal = decode_token(header[len('Bearer '):].strip())
        except UnauthorizedError as e:
            audit_logger.log_auth_failure(e.message.lower().replace(' ', '_'))
            raise
        return f(principal, *args, **kwargs)
    return decorated
