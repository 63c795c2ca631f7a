import pytest

from go_errors import InvalidBoardSizeError
from settings import Settings


@pytest.mark.unit
def test_defaults():
    settings = Settings.from_env({})
    assert settings.port == 3000
    assert settings.host == '0.0.0.0'
    assert settings.save_path == 'saved_games'
    assert settings.board_size == 19
    assert settings.replay_interval_ms == 1000
    assert settings.cors_origins == ['*']
    assert settings.log_level == 'INFO'


@pytest.mark.unit
def test_environment_overrides():
    settings = Settings.from_env({
        'PORT': '4000',
        'HOST': '127.0.0.1',
        'SAVE_PATH': '/tmp/games',
        'BOARD_SIZE': '9',
        'REPLAY_INTERVAL_MS': '250',
        'CORS_ORIGINS': 'http://localhost:3000, http://example.com',
        'LOG_LEVEL': 'debug',
    })
    assert settings.port == 4000
    assert settings.host == '127.0.0.1'
    assert settings.save_path == '/tmp/games'
    assert settings.board_size == 9
    assert settings.replay_interval_ms == 250
    assert settings.cors_origins == ['http://localhost:3000', 'http://example.com']
    assert settings.log_level == 'DEBUG'


@pytest.mark.unit
def test_blank_values_fall_back_to_defaults():
    settings = Settings.from_env({'PORT': '', 'CORS_ORIGINS': ' , '})
    assert settings.port == 3000
    assert settings.cors_origins == ['*']


@pytest.mark.unit
@pytest.mark.parametrize("env", [
    {'PORT': 'abc'},
    {'REPLAY_INTERVAL_MS': '0'},
    {'BOARD_SIZE': 'nineteen'},
])
def test_invalid_values(env):
    with pytest.raises(ValueError):
        Settings.from_env(env)


@pytest.mark.unit
def test_board_size_out_of_range():
    with pytest.raises(InvalidBoardSizeError):
        Settings.from_env({'BOARD_SIZE': '40'})
