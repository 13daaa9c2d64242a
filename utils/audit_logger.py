"""
Audit logging for challenge lifecycle events.

This module provides structured logging for lifecycle transitions, authentication
failures and errors. Logs are formatted as JSON for easy parsing and analysis.
"""

import logging
import json
import sys
from datetime import datetime, timezone
from typing import Optional, Dict, Any
from flask import request, has_request_context
from config import Config


# Define audit event types
class AuditEventType:
    """Enumeration of audit event types."""
    # Authentication events
    AUTH_FAILURE = "auth.failure"

    # Challenge lifecycle
    CHALLENGE_CREATE = "challenge.create"
    CHALLENGE_CANCEL = "challenge.cancel"
    CHALLENGE_COMPLETE = "challenge.complete"

    # Quit requests
    QUIT_REQUEST_CREATE = "challenge.quit_request"
    QUIT_REQUEST_CANCEL = "challenge.quit_request.cancel"
    QUIT_REQUEST_UNLOCK = "challenge.quit_request.unlock"


class AuditLogger:
    """
    Centralized audit logger for lifecycle events.

    Logs are structured JSON with consistent fields:
    - timestamp: ISO8601 timestamp
    - event_type: Type of event (see AuditEventType)
    - user_id: Principal id if authenticated
    - ip_address: Client IP address
    - user_agent: Client user agent
    - data: Event-specific data
    - status: success/failure
    - message: Human-readable message
    """

    def __init__(self):
        """Initialize the audit logger."""
        self.logger = logging.getLogger('audit')
        self.logger.setLevel(getattr(logging, Config.LOG_LEVEL, logging.INFO))
        self.logger.propagate = False

        # Configure handler based on config
        if Config.AUDIT_LOG_FILE:
            handler = logging.FileHandler(Config.AUDIT_LOG_FILE)
        else:
            handler = logging.StreamHandler(sys.stdout)

        # Use JSON formatter if configured
        if Config.LOG_FORMAT == 'json':
            formatter = JSONFormatter()
        else:
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )

        handler.setFormatter(formatter)
        self.logger.addHandler(handler)

    def _get_request_context(self) -> Dict[str, Any]:
        """Extract request context information."""
        context = {}

        if has_request_context():
            context['ip_address'] = request.remote_addr
            context['user_agent'] = request.headers.get('User-Agent', 'Unknown')
            context['method'] = request.method
            context['path'] = request.path

        return context

    def log_event(
        self,
        event_type: str,
        status: str = 'success',
        user_id: Optional[str] = None,
        message: Optional[str] = None,
        **data
    ):
        """
        Log an audit event.

        Args:
            event_type: Type of event (use AuditEventType constants)
            status: 'success' or 'failure'
            user_id: Principal id if applicable
            message: Human-readable message
            **data: Additional event-specific data
        """
        event = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'event_type': event_type,
            'status': status,
        }

        event.update(self._get_request_context())

        if user_id:
            event['user_id'] = user_id
        if message:
            event['message'] = message
        if data:
            event['data'] = data

        # Log at appropriate level
        payload = json.dumps(event, default=str) if Config.LOG_FORMAT == 'json' else str(event)
        if status == 'failure' or event_type.startswith('error.'):
            self.logger.warning(payload)
        else:
            self.logger.info(payload)

    # Convenience methods for common events

    def log_auth_failure(self, reason: str = 'invalid_token'):
        """Log failed authentication attempt."""
        self.log_event(
            AuditEventType.AUTH_FAILURE,
            status='failure',
            message=f'Authentication failed: {reason}',
            reason=reason
        )

    def log_challenge_event(self, event_type: str, user_id: str, challenge_id: int,
                            message: str, **details):
        """Log a lifecycle transition of one challenge."""
        self.log_event(
            event_type,
            user_id=user_id,
            message=message,
            challenge_id=challenge_id,
            **details
        )

    def log_error(self, error_type: str, message: str, **details):
        """Log error event."""
        event_type = f"error.{error_type}"
        self.log_event(
            event_type,
            status='failure',
            message=message,
            **details
        )


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record):
        """Format log record as JSON."""
        log_data = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
        }

        # If the message is already JSON (from audit logger), parse it
        try:
            message_data = json.loads(record.getMessage())
            if isinstance(message_data, dict):
                log_data.update(message_data)
            else:
                log_data['message'] = record.getMessage()
        except (json.JSONDecodeError, ValueError):
            # Not JSON, just use the message
            log_data['message'] = record.getMessage()

        # Add exception info if present
        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


# Global audit logger instance
audit_logger = AuditLogger()
