import os
import sys
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from datetime import datetime, timedelta, timezone

import pytest

from models.challenge import Challenge, ChallengeStatus, QuitRequest, QuitRequestStatus
from services.progress import (
    add_calendar_days,
    compute_progress,
    compute_quit_countdown,
    format_challenge,
    isoformat,
)

UTC = timezone.utc


def make_challenge(started_at, duration_days=7):
    return Challenge(
        id=1,
        user_id='user-1',
        device_id='device-a',
        duration_days=duration_days,
        reason='Quitting sugar',
        status=ChallengeStatus.ACTIVE,
        started_at=started_at,
        ends_at=add_calendar_days(started_at, duration_days),
        created_at=started_at,
    )


def test_add_calendar_days_crosses_short_month():
    # February 2026 has 28 days
    start = datetime(2026, 2, 28, 22, 15, tzinfo=UTC)
    assert add_calendar_days(start, 7) == datetime(2026, 3, 7, 22, 15, tzinfo=UTC)


def test_add_calendar_days_crosses_year():
    start = datetime(2026, 12, 28, 8, 0, tzinfo=UTC)
    assert add_calendar_days(start, 7) == datetime(2027, 1, 4, 8, 0, tzinfo=UTC)


def test_add_calendar_days_keeps_wall_clock_across_dst():
    # Lisbon moves from UTC+0 to UTC+1 on 29 March 2026
    start = datetime(2026, 3, 25, 10, 0, tzinfo=UTC)
    ends_at = add_calendar_days(start, 7, 'Europe/Lisbon')
    assert ends_at == datetime(2026, 4, 1, 9, 0, tzinfo=UTC)
    assert ends_at - start == timedelta(days=7) - timedelta(hours=1)


def test_add_calendar_days_returns_utc():
    start = datetime(2026, 6, 1, 12, 0, tzinfo=UTC)
    assert add_calendar_days(start, 10, 'America/New_York').tzinfo == UTC


def test_progress_at_start():
    start = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)
    assert compute_progress(make_challenge(start), start) == {
        'daysElapsed': 0, 'daysRemaining': 7, 'percentage': 0
    }


def test_progress_counts_whole_days_only():
    start = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)
    progress = compute_progress(make_challenge(start), start + timedelta(days=3, hours=23))
    assert progress == {'daysElapsed': 3, 'daysRemaining': 4, 'percentage': 43}


def test_progress_clamped_far_past_end():
    start = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)
    progress = compute_progress(make_challenge(start), start + timedelta(days=400))
    assert progress == {'daysElapsed': 7, 'daysRemaining': 0, 'percentage': 100}


def test_progress_clamped_when_clock_behind_start():
    start = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)
    progress = compute_progress(make_challenge(start), start - timedelta(days=2))
    assert progress == {'daysElapsed': 0, 'daysRemaining': 7, 'percentage': 0}


def test_percentage_rounds_half_up():
    start = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)
    progress = compute_progress(make_challenge(start, duration_days=8), start + timedelta(days=1))
    # 1/8 = 12.5%
    assert progress['percentage'] == 13


@pytest.mark.parametrize('remaining, hours, minutes, unlocked', [
    (timedelta(hours=24), 24, 1440, False),
    (timedelta(hours=23, minutes=59, seconds=30), 24, 1440, False),
    (timedelta(minutes=1, milliseconds=1), 1, 2, False),
    (timedelta(0), 0, 0, True),
    (timedelta(minutes=-45), 0, 0, True),
])
def test_quit_countdown(remaining, hours, minutes, unlocked):
    now = datetime(2026, 3, 3, 12, 0, tzinfo=UTC)
    quit_request = QuitRequest(
        requested_at=now - timedelta(hours=1),
        unlocks_at=now + remaining,
        feeling='stressed today',
        status=QuitRequestStatus.PENDING,
    )
    assert compute_quit_countdown(quit_request, now) == {
        'hoursRemaining': hours,
        'minutesRemaining': minutes,
        'isUnlocked': unlocked,
    }


def test_isoformat_uses_z_suffix_and_milliseconds():
    value = datetime(2026, 3, 2, 9, 0, 5, 123456, tzinfo=UTC)
    assert isoformat(value) == '2026-03-02T09:00:05.123Z'
    assert isoformat(None) is None


def test_format_challenge_shape():
    start = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)
    formatted = format_challenge(make_challenge(start), start + timedelta(days=2))
    assert formatted['id'] == '1'
    assert formatted['status'] == 'active'
    assert formatted['endsAt'] == '2026-03-09T09:00:00.000Z'
    assert formatted['cancelledAt'] is None
    assert formatted['completedAt'] is None
    assert formatted['quitRequest'] is None
    assert formatted['progress']['daysElapsed'] == 2
    assert set(formatted) == {
        'id', 'durationDays', 'reason', 'status', 'startedAt', 'endsAt', 'cancelledAt',
        'completedAt', 'createdAt', 'quitRequest', 'progress',
    }
