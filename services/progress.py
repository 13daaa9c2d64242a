"""
Progress and countdown computation for challenges.

Everything here is a pure function of a challenge and an explicit ``now`` so
that responses are deterministic for a given clock reading. None of the
derived values are persisted.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo

from models.challenge import Challenge, QuitRequest
from models.quit_request import QuitRequestRecord

DAY = timedelta(days=1)
HOUR = timedelta(hours=1)
MINUTE = timedelta(minutes=1)


def add_calendar_days(instant: datetime, days: int, tz_name: str = 'UTC') -> datetime:
    """
    Advance an instant by a number of calendar days.

    The wall-clock date in ``tz_name`` moves forward by ``days`` while the
    wall-clock time stays the same, so a day that is 23 or 25 hours long in
    that zone still counts as one day. The result is returned in UTC.
    """
    tz = ZoneInfo(tz_name)
    local = instant.astimezone(tz)
    shifted = datetime.combine(local.date() + timedelta(days=days), local.time(), tzinfo=tz)
    return shifted.astimezone(timezone.utc)


def _ceil_div(delta: timedelta, unit: timedelta) -> int:
    return -((-delta) // unit)


def _round_half_up_percentage(part: int, whole: int) -> int:
    return (part * 200 + whole) // (2 * whole)


def compute_progress(challenge: Challenge, now: datetime) -> Dict[str, int]:
    """
    Whole days elapsed since the start, clamped to [0, duration_days].

    Returns:
        dict with daysElapsed, daysRemaining and percentage (0-100)
    """
    duration = challenge.duration_days
    elapsed = (now - challenge.started_at) // DAY
    days_elapsed = max(min(elapsed, duration), 0)
    days_remaining = max(duration - days_elapsed, 0)
    return {
        'daysElapsed': days_elapsed,
        'daysRemaining': days_remaining,
        'percentage': _round_half_up_percentage(days_elapsed, duration),
    }


def compute_quit_countdown(quit_request: QuitRequest, now: datetime) -> Dict[str, Any]:
    """Time left until a quit request unlocks, rounded up to whole hours/minutes."""
    remaining = quit_request.unlocks_at - now
    return {
        'hoursRemaining': max(_ceil_div(remaining, HOUR), 0),
        'minutesRemaining': max(_ceil_div(remaining, MINUTE), 0),
        'isUnlocked': remaining <= timedelta(0),
    }


def isoformat(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime as ISO-8601 UTC with millisecond precision."""
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def format_quit_request(quit_request: Optional[QuitRequest], now: datetime) -> Optional[Dict[str, Any]]:
    if quit_request is None:
        return None
    formatted = {
        'requestedAt': isoformat(quit_request.requested_at),
        'unlocksAt': isoformat(quit_request.unlocks_at),
        'feeling': quit_request.feeling,
        'status': quit_request.status.value,
        'cancelledAt': isoformat(quit_request.cancelled_at),
    }
    formatted.update(compute_quit_countdown(quit_request, now))
    return formatted


def format_challenge(challenge: Challenge, now: datetime) -> Dict[str, Any]:
    """Build the response representation of a challenge as seen at ``now``."""
    return {
        'id': str(challenge.id),
        'durationDays': challenge.duration_days,
        'reason': challenge.reason,
        'status': challenge.status.value,
        'startedAt': isoformat(challenge.started_at),
        'endsAt': isoformat(challenge.ends_at),
        'cancelledAt': isoformat(challenge.cancelled_at),
        'completedAt': isoformat(challenge.completed_at),
        'createdAt': isoformat(challenge.created_at),
        'quitRequest': format_quit_request(challenge.quit_request, now),
        'progress': compute_progress(challenge, now),
    }


def format_quit_request_record(record: QuitRequestRecord) -> Dict[str, Any]:
    return {
        'id': str(record.id),
        'challengeId': str(record.challenge_id),
        'requestedAt': isoformat(record.requested_at),
        'unlocksAt': isoformat(record.unlocks_at),
        'feeling': record.feeling,
        'status': record.status.value,
        'resolvedAt': isoformat(record.resolved_at),
    }
