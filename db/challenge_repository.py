"""
Challenge repository.

Thin persistence layer over the Challenge and QuitRequestRecord models. All
mutations of an existing challenge go through conditional writes scoped by
the expected prior state, so two concurrent requests against the same row
cannot both succeed: the loser sees zero affected rows.
"""

from datetime import datetime
from typing import List, Optional
from db.database import get_session
from models.challenge import Challenge, ChallengeStatus, QuitRequest, QuitRequestStatus
from models.quit_request import QuitRequestRecord


class ChallengeRepository:
    """Persistence operations for challenges, bound to one session."""

    def __init__(self, session=None):
        self.session = session if session is not None else get_session()

    def create(self, **values) -> Challenge:
        """
        Insert a new challenge and flush it.

        Raises:
            sqlalchemy.exc.IntegrityError: if the principal already owns an
                active challenge (enforced by the partial unique index)
        """
        challenge = Challenge(**values)
        self.session.add(challenge)
        self.session.flush()
        return challenge

    def find_one_by(self, user_id: str, status: ChallengeStatus) -> Optional[Challenge]:
        return self.session.query(Challenge).filter_by(user_id=user_id, status=status).first()

    def find_by_id(self, challenge_id: int, user_id: Optional[str] = None) -> Optional[Challenge]:
        query = self.session.query(Challenge).filter_by(id=challenge_id)
        if user_id is not None:
            query = query.filter_by(user_id=user_id)
        return query.first()

    def find_many_by(self, user_id: str, limit: int) -> List[Challenge]:
        """Return the principal's challenges, newest first."""
        return (self.session.query(Challenge)
                .filter_by(user_id=user_id)
                .order_by(Challenge.created_at.desc(), Challenge.id.desc())
                .limit(limit)
                .all())

    def find_due_quit_requests(self, now: datetime, user_id: Optional[str] = None) -> List[Challenge]:
        """Active challenges whose pending quit request has reached its unlock time."""
        query = (self.session.query(Challenge)
                 .filter(Challenge.status == ChallengeStatus.ACTIVE)
                 .filter(Challenge.quit_status == QuitRequestStatus.PENDING)
                 .filter(Challenge.quit_unlocks_at <= now))
        if user_id is not None:
            query = query.filter(Challenge.user_id == user_id)
        return query.order_by(Challenge.id).all()

    def update_by(self, challenge_id: int, expected_status: ChallengeStatus, values: dict,
                  *criteria, **conditions) -> bool:
        """
        Conditionally update one challenge.

        The row is only written when its status still equals expected_status and
        every extra criterion/condition holds (a None condition means IS NULL).

        Returns:
            True if this write won, False if the precondition no longer held
        """
        query = (self.session.query(Challenge)
                 .filter(Challenge.id == challenge_id)
                 .filter(Challenge.status == expected_status)
                 .filter_by(**conditions))
        for criterion in criteria:
            query = query.filter(criterion)
        return query.update(values, synchronize_session='fetch') == 1

    def update_many_by(self, values: dict, *criteria, **conditions) -> int:
        """Bulk conditional update used by reconciliation sweeps; returns affected rows."""
        query = self.session.query(Challenge).filter_by(**conditions)
        for criterion in criteria:
            query = query.filter(criterion)
        return query.update(values, synchronize_session='fetch')

    def record_quit_request(self, challenge: Challenge, quit_request: QuitRequest,
                            status: QuitRequestStatus, resolved_at: datetime) -> QuitRequestRecord:
        """Append a resolved quit request to the challenge's log."""
        record = QuitRequestRecord(
            challenge_id=challenge.id,
            user_id=challenge.user_id,
            requested_at=quit_request.requested_at,
            unlocks_at=quit_request.unlocks_at,
            feeling=quit_request.feeling,
            status=status,
            resolved_at=resolved_at,
        )
        self.session.add(record)
        return record

    def find_quit_request_records(self, challenge_id: int) -> List[QuitRequestRecord]:
        return (self.session.query(QuitRequestRecord)
                .filter_by(challenge_id=challenge_id)
                .order_by(QuitRequestRecord.requested_at, QuitRequestRecord.id)
                .all())
