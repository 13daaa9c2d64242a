"""
Quit request log model.

A pending quit request lives inside its challenge row. Once it is resolved
(rescinded by the user, unlocked after the cooling-off period, or discarded
because the challenge was cancelled directly) a copy is appended here so the
challenge keeps an audit trail of every quit attempt.
"""

from sqlalchemy import Enum
from db.database import db
from models.challenge import FEELING_COLUMN_LENGTH, QuitRequestStatus, _enum_values
from models.types import UTCDateTime


class QuitRequestRecord(db.Model):
    """Append-only record of a resolved quit request."""
    __tablename__ = 'quit_request_records'

    id = db.Column(db.Integer, primary_key=True)
    challenge_id = db.Column(db.Integer, db.ForeignKey('challenges.id'), nullable=False, index=True)
    user_id = db.Column(db.String(64), nullable=False)
    requested_at = db.Column(UTCDateTime(), nullable=False)
    unlocks_at = db.Column(UTCDateTime(), nullable=False)
    feeling = db.Column(db.String(FEELING_COLUMN_LENGTH), nullable=False)
    status = db.Column(
        Enum(QuitRequestStatus, name='quit_request_status', native_enum=False, length=24,
             values_callable=_enum_values),
        nullable=False,
    )
    resolved_at = db.Column(UTCDateTime(), nullable=False)

    def __repr__(self) -> str:
        return (f"<QuitRequestRecord(id={self.id}, challenge_id={self.challenge_id}, "
                f"status={self.status.value if self.status else None})>")
