import os
import sys
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import pytest

from config import Config, TestingConfig, get_config


def test_testing_config_is_valid():
    assert TestingConfig.validate() is True
    assert TestingConfig.SQLALCHEMY_DATABASE_URI == 'sqlite:///:memory:'


def test_get_config_selects_environment():
    assert get_config('testing') is TestingConfig


@pytest.mark.parametrize('overrides, message', [
    ({'CHALLENGE_MIN_DURATION_DAYS': 0}, 'CHALLENGE_MIN_DURATION_DAYS'),
    ({'CHALLENGE_MAX_DURATION_DAYS': 6}, 'CHALLENGE_MAX_DURATION_DAYS'),
    ({'CHALLENGE_MAX_DURATION_DAYS': 10 ** 7}, 'CHALLENGE_MAX_DURATION_DAYS'),
    ({'REASON_MIN_LENGTH': 20, 'REASON_MAX_LENGTH': 10}, 'REASON_MAX_LENGTH'),
    ({'QUIT_COOLDOWN_HOURS': 0}, 'QUIT_COOLDOWN_HOURS'),
    ({'CHALLENGE_TIMEZONE': 'Mars/Olympus_Mons'}, 'CHALLENGE_TIMEZONE'),
    ({'JWT_ALGORITHM': 'none'}, 'JWT_ALGORITHM'),
])
def test_validate_rejects_bad_settings(overrides, message):
    BadConfig = type('BadConfig', (Config,), overrides)
    with pytest.raises(ValueError) as excinfo:
        BadConfig.validate()
    assert message in str(excinfo.value)
