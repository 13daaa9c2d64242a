"""
Challenge model for database operations.

This module defines the Challenge model, a time-boxed "quit" commitment owned by
a single principal. A challenge is created active, and ends either completed
(its duration elapsed) or cancelled (explicitly, or once a quit request
unlocked). Rows are never deleted so they double as the principal's history.
"""

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from sqlalchemy import CheckConstraint, Enum, Index, text
from sqlalchemy.orm import validates
from db.database import db
from models.types import UTCDateTime, utcnow


class ChallengeStatus(enum.Enum):
    """Lifecycle states of a challenge."""
    ACTIVE = "active"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class QuitRequestStatus(enum.Enum):
    """
    States of a quit request.

    Only PENDING is ever stored on the challenge itself; the other values are
    terminal and appear in the quit request log.
    """
    PENDING = "pending"
    CANCELLED_BY_USER = "cancelled_by_user"
    UNLOCKED = "unlocked"
    DISCARDED = "discarded"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


REASON_COLUMN_LENGTH = 500
FEELING_COLUMN_LENGTH = 1000


@dataclass(frozen=True)
class QuitRequest:
    """Cooling-off request embedded in an active challenge."""
    requested_at: datetime
    unlocks_at: datetime
    feeling: str
    status: QuitRequestStatus
    cancelled_at: Optional[datetime] = None


class Challenge(db.Model):
    """
    Challenge model representing one quit commitment of a principal.

    Attributes:
        id (int): Primary key, auto-generated unique identifier
        user_id (str): Opaque id of the owning principal
        device_id (str): Device the challenge was created from
        duration_days (int): Length of the commitment in calendar days
        reason (str): Why the principal is quitting (trimmed, max 500 chars)
        status (ChallengeStatus): active, cancelled or completed
        started_at (datetime): Creation instant
        ends_at (datetime): started_at advanced by duration_days calendar days
        cancelled_at (datetime, optional): Set once, on the cancel transition
        completed_at (datetime, optional): Set once, on the complete transition
        quit_* (optional): The embedded pending quit request, if any
        created_at (datetime): Insertion timestamp used for history ordering

    Storage-level invariants:
        - at most one active challenge per user (partial unique index)
        - cancelled_at and completed_at are never both set
        - quit request columns are only populated while the challenge is active
    """
    __tablename__ = 'challenges'
    __table_args__ = (
        Index(
            'uq_challenges_one_active_per_user',
            'user_id',
            unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
        Index('ix_challenges_user_created', 'user_id', 'created_at'),
        CheckConstraint(
            'cancelled_at IS NULL OR completed_at IS NULL',
            name='ck_challenges_single_terminal_timestamp',
        ),
        CheckConstraint(
            "quit_status IS NULL OR status = 'active'",
            name='ck_challenges_quit_request_only_when_active',
        ),
        CheckConstraint('duration_days >= 1', name='ck_challenges_positive_duration'),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    device_id = db.Column(db.String(128), nullable=False)
    duration_days = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.String(REASON_COLUMN_LENGTH), nullable=False)
    status = db.Column(
        Enum(ChallengeStatus, name='challenge_status', native_enum=False, length=16,
             values_callable=_enum_values),
        nullable=False,
        default=ChallengeStatus.ACTIVE,
    )
    started_at = db.Column(UTCDateTime(), nullable=False)
    ends_at = db.Column(UTCDateTime(), nullable=False)
    cancelled_at = db.Column(UTCDateTime(), nullable=True)
    completed_at = db.Column(UTCDateTime(), nullable=True)

    quit_requested_at = db.Column(UTCDateTime(), nullable=True)
    quit_unlocks_at = db.Column(UTCDateTime(), nullable=True)
    quit_feeling = db.Column(db.String(FEELING_COLUMN_LENGTH), nullable=True)
    quit_status = db.Column(
        Enum(QuitRequestStatus, name='quit_request_status', native_enum=False, length=24,
             values_callable=_enum_values),
        nullable=True,
    )
    quit_cancelled_at = db.Column(UTCDateTime(), nullable=True)

    created_at = db.Column(UTCDateTime(), default=utcnow, nullable=False)

    @validates('reason')
    def _validate_reason(self, key, value):
        value = (value or '').strip()
        if not value or len(value) > REASON_COLUMN_LENGTH:
            raise ValueError(f'reason must be 1-{REASON_COLUMN_LENGTH} characters')
        return value

    @property
    def quit_request(self) -> Optional[QuitRequest]:
        """The embedded quit request, or None when the challenge has none."""
        if self.quit_status is None:
            return None
        return QuitRequest(
            requested_at=self.quit_requested_at,
            unlocks_at=self.quit_unlocks_at,
            feeling=self.quit_feeling,
            status=self.quit_status,
            cancelled_at=self.quit_cancelled_at,
        )

    @property
    def is_active(self) -> bool:
        return self.status == ChallengeStatus.ACTIVE

    def __repr__(self) -> str:
        """Return a string representation of the Challenge instance."""
        quit_state = self.quit_status.value if self.quit_status else "none"
        return (f"<Challenge(id={self.id}, user_id='{self.user_id}', status={self.status.value if self.status else None}, "
                f"duration_days={self.duration_days}, quit_request={quit_state})>")
