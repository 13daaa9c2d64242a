# Challenge service for the quit challenge lifecycle

import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Callable, List, NamedTuple, Optional, Union

from sqlalchemy.exc import IntegrityError

from config import get_setting
from db.challenge_repository import ChallengeRepository
from db.session_manager import transaction
from models.challenge import Challenge, ChallengeStatus, QuitRequestStatus
from models.quit_request import QuitRequestRecord
from models.types import utcnow
from services.progress import add_calendar_days, format_challenge
from utils.audit_logger import audit_logger, AuditEventType
from utils.error_handling import ConflictError, NotFoundError, ValidationError
from utils.validation import validate_duration_days, validate_feeling, validate_reason

logger = logging.getLogger(__name__)

ACTIVE_CHALLENGE_EXISTS = 'You already have an active challenge. Cancel it first.'
QUIT_REQUEST_PENDING = 'A quit request is already pending for this challenge.'

MIN_CHALLENGE_ID = -(2 ** 63)
MAX_CHALLENGE_ID = 2 ** 63 - 1

# Values that remove the embedded quit request from a challenge row
CLEARED_QUIT_REQUEST = {
    'quit_requested_at': None,
    'quit_unlocks_at': None,
    'quit_feeling': None,
    'quit_status': None,
    'quit_cancelled_at': None,
}


class ReconcileResult(NamedTuple):
    """Outcome of one reconciliation pass."""
    cancelled_ids: List[int]
    completed_count: int


def _check(result, field: str):
    valid, error = result
    if not valid:
        raise ValidationError('Invalid data', details={field: [error]})


class ChallengeService:
    """
    Lifecycle manager for quit challenges.

    Time-based transitions are never scheduled. They are applied lazily by
    reconcile(), which runs before every read of the active challenge and
    before every write, with this precedence:

        1. a pending quit request whose unlock time has passed cancels the
           challenge and is discarded from it
        2. otherwise an active challenge without a pending quit request whose
           end has passed is completed

    A pending quit request therefore holds off natural completion until it is
    either rescinded or unlocks.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self.clock = clock or utcnow
        self.timezone_name = get_setting('CHALLENGE_TIMEZONE')
        self.quit_cooldown = timedelta(hours=get_setting('QUIT_COOLDOWN_HOURS'))
        self.history_limit = get_setting('HISTORY_LIMIT')

    def now(self) -> datetime:
        return self.clock()

    def present(self, challenge: Challenge, now: Optional[datetime] = None) -> dict:
        """Format a challenge with progress and countdown as of now."""
        return format_challenge(challenge, now or self.now())

    @staticmethod
    def _parse_id(challenge_id: Union[int, str]) -> int:
        # Malformed ids look exactly like unknown ones to the caller
        try:
            parsed = int(challenge_id)
        except (TypeError, ValueError):
            raise NotFoundError()
        # Ids beyond a signed 64-bit INTEGER cannot exist in storage
        if not MIN_CHALLENGE_ID <= parsed <= MAX_CHALLENGE_ID:
            raise NotFoundError()
        return parsed

    # --- Reconciliation ---

    def reconcile(self, user_id: Optional[str] = None, now: Optional[datetime] = None) -> ReconcileResult:
        """
        Apply due time-based transitions.

        Args:
            user_id: Principal to reconcile; None sweeps every principal
            now: Reference instant (defaults to the service clock)

        Returns:
            ReconcileResult with the ids cancelled by unlocked quit requests and
            the number of challenges completed
        """
        now = now or self.now()
        repository = ChallengeRepository()
        with transaction():
            cancelled_ids = self._unlock_due_quit_requests(repository, now, user_id)
            completed_count = self._complete_expired(repository, now, user_id)

        for challenge_id in cancelled_ids:
            audit_logger.log_challenge_event(
                AuditEventType.QUIT_REQUEST_UNLOCK,
                user_id=user_id,
                challenge_id=challenge_id,
                message=f'Quit request unlocked, challenge {challenge_id} cancelled'
            )
        if completed_count:
            audit_logger.log_event(
                AuditEventType.CHALLENGE_COMPLETE,
                user_id=user_id,
                message=f'{completed_count} challenge(s) completed',
                completed_count=completed_count
            )
        return ReconcileResult(cancelled_ids, completed_count)

    def _unlock_due_quit_requests(self, repository: ChallengeRepository, now: datetime,
                                  user_id: Optional[str]) -> List[int]:
        cancelled_ids = []
        for challenge in repository.find_due_quit_requests(now, user_id):
            quit_request = challenge.quit_request
            won = repository.update_by(
                challenge.id,
                ChallengeStatus.ACTIVE,
                dict(CLEARED_QUIT_REQUEST, status=ChallengeStatus.CANCELLED, cancelled_at=now),
                quit_status=QuitRequestStatus.PENDING,
                quit_requested_at=quit_request.requested_at,
            )
            if not won:
                # A concurrent request already moved this challenge on
                logger.debug("Lost unlock race for challenge %s", challenge.id)
                continue
            repository.record_quit_request(challenge, quit_request, QuitRequestStatus.UNLOCKED, now)
            cancelled_ids.append(challenge.id)
        return cancelled_ids

    def _complete_expired(self, repository: ChallengeRepository, now: datetime,
                          user_id: Optional[str]) -> int:
        conditions = {'status': ChallengeStatus.ACTIVE, 'quit_status': None}
        if user_id is not None:
            conditions['user_id'] = user_id
        return repository.update_many_by(
            {'status': ChallengeStatus.COMPLETED, 'completed_at': now},
            Challenge.ends_at <= now,
            **conditions
        )

    # --- Operations ---

    def create_challenge(self, user_id: str, device_id: str, duration_days: int, reason: str) -> Challenge:
        """
        Start a new challenge for a principal.

        Raises:
            ValidationError: duration below the minimum or reason out of bounds
            ConflictError: the principal already has an active challenge
        """
        _check(validate_duration_days(duration_days), 'durationDays')
        _check(validate_reason(reason), 'reason')
        duration_days = int(duration_days)
        reason = reason.strip()

        now = self.now()
        self.reconcile(user_id, now)
        repository = ChallengeRepository()
        try:
            with transaction():
                if repository.find_one_by(user_id, ChallengeStatus.ACTIVE) is not None:
                    raise ConflictError(ACTIVE_CHALLENGE_EXISTS)
                challenge = repository.create(
                    user_id=user_id,
                    device_id=device_id,
                    duration_days=duration_days,
                    reason=reason,
                    status=ChallengeStatus.ACTIVE,
                    started_at=now,
                    ends_at=add_calendar_days(now, duration_days, self.timezone_name),
                    created_at=now,
                )
        except IntegrityError:
            # Another device of the same principal won the insert race
            raise ConflictError(ACTIVE_CHALLENGE_EXISTS)

        audit_logger.log_challenge_event(
            AuditEventType.CHALLENGE_CREATE,
            user_id=user_id,
            challenge_id=challenge.id,
            message=f'Challenge created for {duration_days} days',
            device_id=device_id,
            duration_days=duration_days
        )
        return challenge

    def get_active_challenge(self, user_id: str) -> Optional[Challenge]:
        """Reconcile the principal, then return their active challenge if any."""
        self.reconcile(user_id)
        return ChallengeRepository().find_one_by(user_id, ChallengeStatus.ACTIVE)

    def cancel_challenge(self, user_id: str, challenge_id: Union[int, str]) -> Challenge:
        """
        Cancel an active challenge immediately.

        A pending quit request on it is discarded and kept in the quit request log.

        Raises:
            NotFoundError: unknown id, not owned, or no longer active
        """
        challenge_id = self._parse_id(challenge_id)
        now = self.now()
        self.reconcile(user_id, now)
        repository = ChallengeRepository()
        with transaction():
            challenge = repository.find_by_id(challenge_id, user_id)
            if challenge is None or not challenge.is_active:
                raise NotFoundError()
            quit_request = challenge.quit_request
            won = repository.update_by(
                challenge_id,
                ChallengeStatus.ACTIVE,
                dict(CLEARED_QUIT_REQUEST, status=ChallengeStatus.CANCELLED, cancelled_at=now),
                user_id=user_id,
                quit_status=quit_request.status if quit_request else None,
            )
            if not won:
                raise NotFoundError()
            if quit_request is not None:
                repository.record_quit_request(challenge, quit_request, QuitRequestStatus.DISCARDED, now)

        audit_logger.log_challenge_event(
            AuditEventType.CHALLENGE_CANCEL,
            user_id=user_id,
            challenge_id=challenge_id,
            message=f'Challenge {challenge_id} cancelled by user'
        )
        return challenge

    def request_quit(self, user_id: str, challenge_id: Union[int, str], feeling: str) -> Challenge:
        """
        Open the cooling-off period for quitting an active challenge.

        Raises:
            ValidationError: feeling out of bounds
            NotFoundError: unknown id, not owned, or no longer active
            ConflictError: a quit request is already pending
        """
        _check(validate_feeling(feeling), 'feeling')
        feeling = feeling.strip()
        challenge_id = self._parse_id(challenge_id)
        now = self.now()
        self.reconcile(user_id, now)
        repository = ChallengeRepository()
        with transaction() as session:
            challenge = repository.find_by_id(challenge_id, user_id)
            if challenge is None or not challenge.is_active:
                raise NotFoundError()
            if challenge.quit_status == QuitRequestStatus.PENDING:
                raise ConflictError(QUIT_REQUEST_PENDING)
            won = repository.update_by(
                challenge_id,
                ChallengeStatus.ACTIVE,
                {
                    'quit_requested_at': now,
                    'quit_unlocks_at': now + self.quit_cooldown,
                    'quit_feeling': feeling,
                    'quit_status': QuitRequestStatus.PENDING,
                    'quit_cancelled_at': None,
                },
                user_id=user_id,
                quit_status=None,
            )
            if not won:
                session.refresh(challenge)
                if challenge.is_active and challenge.quit_status == QuitRequestStatus.PENDING:
                    raise ConflictError(QUIT_REQUEST_PENDING)
                raise NotFoundError()

        audit_logger.log_challenge_event(
            AuditEventType.QUIT_REQUEST_CREATE,
            user_id=user_id,
            challenge_id=challenge_id,
            message=f'Quit requested for challenge {challenge_id}',
            unlocks_at=(now + self.quit_cooldown).isoformat()
        )
        return challenge

    def cancel_quit_request(self, user_id: str, challenge_id: Union[int, str]) -> Challenge:
        """
        Rescind a pending quit request before it unlocks.

        The request is marked cancelled_by_user in the log and cleared from the
        challenge, which keeps counting toward its end as if it never existed.

        Raises:
            NotFoundError: no active owned challenge with a pending request
        """
        challenge_id = self._parse_id(challenge_id)
        now = self.now()
        self.reconcile(user_id, now)
        repository = ChallengeRepository()
        with transaction():
            challenge = repository.find_by_id(challenge_id, user_id)
            if (challenge is None or not challenge.is_active
                    or challenge.quit_status != QuitRequestStatus.PENDING):
                raise NotFoundError('No pending quit request for this challenge.')
            quit_request = replace(challenge.quit_request,
                                   status=QuitRequestStatus.CANCELLED_BY_USER,
                                   cancelled_at=now)
            won = repository.update_by(
                challenge_id,
                ChallengeStatus.ACTIVE,
                CLEARED_QUIT_REQUEST,
                Challenge.quit_unlocks_at > now,
                user_id=user_id,
                quit_status=QuitRequestStatus.PENDING,
                quit_requested_at=quit_request.requested_at,
            )
            if not won:
                raise NotFoundError('No pending quit request for this challenge.')
            repository.record_quit_request(challenge, quit_request, QuitRequestStatus.CANCELLED_BY_USER, now)

        audit_logger.log_challenge_event(
            AuditEventType.QUIT_REQUEST_CANCEL,
            user_id=user_id,
            challenge_id=challenge_id,
            message=f'Quit request rescinded for challenge {challenge_id}'
        )
        return challenge

    def list_history(self, user_id: str) -> List[Challenge]:
        """Most recent challenges of a principal, newest first; no reconciliation."""
        return ChallengeRepository().find_many_by(user_id, self.history_limit)

    def list_quit_requests(self, user_id: str, challenge_id: Union[int, str]) -> List[QuitRequestRecord]:
        """
        Resolved quit requests of one owned challenge, oldest first.

        Raises:
            NotFoundError: unknown id or not owned
        """
        challenge_id = self._parse_id(challenge_id)
        repository = ChallengeRepository()
        if repository.find_by_id(challenge_id, user_id) is None:
            raise NotFoundError('Challenge not found.')
        return repository.find_quit_request_records(challenge_id)
