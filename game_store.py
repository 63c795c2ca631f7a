"""
Named saved games stored as JSON files, one file per game.
"""
import json
import logging
import os
import re
import tempfile
from typing import List

from go_errors import CorruptRecordError, GameExistsError, GameNotFoundError, StorageError
from go_game import GameSession

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r'[<>:"/\\|?*]')


def safe_filename(name: str) -> str:
    return _UNSAFE_CHARS.sub('_', name)


class GameStore:
    def __init__(self, directory: str):
        self.directory = directory

    def _path(self, name: str) -> str:
        if not isinstance(name, str) or not name.strip():
            raise StorageError("Game name must be a non-empty string")
        return os.path.join(self.directory, f"{safe_filename(name)}.json")

    def exists(self, name: str) -> bool:
        return os.path.exists(self._path(name))

    def save(self, name: str, session: GameSession) -> str:
        """Write ``session`` under ``name``, replacing any previous save.

        The record goes to a temporary file first and is moved into place,
        so readers never see a half-written save.
        """
        path = self._path(name)
        os.makedirs(self.directory, exist_ok=True)
        data = dict(session.to_dict(), name=name)
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
        logger.info("Saved game %r to %s", name, path)
        return path

    def list_games(self) -> List[str]:
        if not os.path.isdir(self.directory):
            return []
        return sorted(f[:-5] for f in os.listdir(self.directory) if f.endswith('.json'))

    def load(self, name: str) -> GameSession:
        path = self._path(name)
        try:
            with open(path, encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            raise GameNotFoundError("Saved game not found", context={'name': name}) from None
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise CorruptRecordError("Saved game is not valid JSON",
                                     context={'name': name}) from e
        return GameSession.from_dict(data)

    def delete(self, name: str):
        try:
            os.remove(self._path(name))
        except FileNotFoundError:
            raise GameNotFoundError("Saved game not found", context={'name': name}) from None
        logger.info("Deleted game %r", name)

    def rename(self, old_name: str, new_name: str):
        old_path = self._path(old_name)
        new_path = self._path(new_name)
        if not os.path.exists(old_path):
            raise GameNotFoundError("Saved game not found", context={'name': old_name})
        if os.path.exists(new_path):
            raise GameExistsError("New name already exists", context={'name': new_name})
        os.rename(old_path, new_path)
        logger.info("Renamed game %r to %r", old_name, new_name)
