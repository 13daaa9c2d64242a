"""
Input validation for challenge requests.

The validators follow a (is_valid, error_message) convention; the parse_*
helpers collect every failing field and raise a single ValidationError whose
details map field names to their messages.
"""

from typing import Any, Dict, List, Optional, Tuple
from config import get_setting as _setting
from utils.error_handling import ValidationError


def validate_duration_days(value: Any, minimum: Optional[int] = None,
                           maximum: Optional[int] = None) -> Tuple[bool, Optional[str]]:
    """
    Validate a challenge duration.

    Args:
        value: Raw JSON value; integral floats such as 7.0 are accepted
        minimum: Smallest allowed duration (defaults to CHALLENGE_MIN_DURATION_DAYS)
        maximum: Largest allowed duration (defaults to CHALLENGE_MAX_DURATION_DAYS)

    Returns:
        Tuple of (is_valid, error_message)
    """
    if minimum is None:
        minimum = _setting('CHALLENGE_MIN_DURATION_DAYS')
    if maximum is None:
        maximum = _setting('CHALLENGE_MAX_DURATION_DAYS')

    if value is None:
        return False, "Duration is required"

    # bool is a subclass of int in Python; JSON true/false is not a number
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False, "Duration must be a number"

    if isinstance(value, float) and not value.is_integer():
        return False, "Duration must be a whole number of days"

    if int(value) < minimum:
        return False, f"Duration must be at least {minimum} days"

    if int(value) > maximum:
        return False, f"Duration must be no more than {maximum} days"

    return True, None


def _validate_text(value: Any, label: str, min_length: int, max_length: int) -> Tuple[bool, Optional[str]]:
    if value is None:
        return False, f"{label} is required"

    if not isinstance(value, str):
        return False, f"{label} must be a string"

    trimmed = value.strip()
    if len(trimmed) < min_length:
        return False, f"{label} must be at least {min_length} characters long"

    if len(trimmed) > max_length:
        return False, f"{label} must be no more than {max_length} characters long"

    return True, None


def validate_reason(value: Any) -> Tuple[bool, Optional[str]]:
    """Validate a challenge reason (length checked after trimming)."""
    return _validate_text(value, "Reason", _setting('REASON_MIN_LENGTH'), _setting('REASON_MAX_LENGTH'))


def validate_feeling(value: Any) -> Tuple[bool, Optional[str]]:
    """Validate the free-text feeling attached to a quit request."""
    return _validate_text(value, "Feeling", _setting('FEELING_MIN_LENGTH'), _setting('FEELING_MAX_LENGTH'))


def _require_object(payload: Any) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise ValidationError('JSON object required', details={'body': ['JSON object required']})
    return payload


def _raise_if_errors(errors: Dict[str, List[str]]):
    if errors:
        raise ValidationError('Invalid data', details=errors)


def parse_create_challenge(payload: Any) -> Tuple[int, str]:
    """
    Validate a create-challenge body.

    Returns:
        Tuple of (duration_days, trimmed_reason)

    Raises:
        ValidationError: with field-level details
    """
    data = _require_object(payload)
    errors: Dict[str, List[str]] = {}

    valid, error = validate_duration_days(data.get('durationDays'))
    if not valid:
        errors['durationDays'] = [error]

    valid, error = validate_reason(data.get('reason'))
    if not valid:
        errors['reason'] = [error]

    _raise_if_errors(errors)
    return int(data['durationDays']), data['reason'].strip()


def parse_quit_request(payload: Any) -> str:
    """Validate a quit-request body and return the trimmed feeling."""
    data = _require_object(payload)

    valid, error = validate_feeling(data.get('feeling'))
    if not valid:
        raise ValidationError('Invalid data', details={'feeling': [error]})

    return data['feeling'].strip()
