"""
Service configuration read from environment variables.
"""
import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

from go_board import DEFAULT_SIZE, validate_size
from replay import DEFAULT_INTERVAL_MS


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass
class Settings:
    host: str = '0.0.0.0'
    port: int = 3000
    save_path: str = 'saved_games'
    board_size: int = DEFAULT_SIZE
    replay_interval_ms: int = DEFAULT_INTERVAL_MS
    cors_origins: List[str] = field(default_factory=lambda: ['*'])
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> 'Settings':
        env = os.environ if env is None else env
        origins = [o.strip() for o in env.get('CORS_ORIGINS', '*').split(',') if o.strip()]
        settings = cls(
            host=env.get('HOST', cls.host),
            port=_int_env(env, 'PORT', cls.port),
            save_path=env.get('SAVE_PATH', cls.save_path),
            board_size=validate_size(_int_env(env, 'BOARD_SIZE', DEFAULT_SIZE)),
            replay_interval_ms=_int_env(env, 'REPLAY_INTERVAL_MS', DEFAULT_INTERVAL_MS),
            cors_origins=origins or ['*'],
            log_level=env.get('LOG_LEVEL', cls.log_level).upper(),
        )
        if settings.replay_interval_ms <= 0:
            raise ValueError("REPLAY_INTERVAL_MS must be positive")
        return settings
