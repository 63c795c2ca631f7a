"""
Error hierarchy for the Go engine and the service around it.

Every error carries a machine-readable ``code`` so the server can hand it to
clients unchanged:

    try:
        session.play((3, 3))
    except MoveError as e:
        await sio.emit('invalidMove', e.to_dict(), room=sid)
"""

from typing import Any, Dict, Optional

__all__ = [
    "GoError",
    "InvalidBoardSizeError",
    # Move errors
    "MoveError",
    "OutOfBoundsError",
    "OccupiedCellError",
    "SuicideMoveError",
    "GameOverError",
    # History / records
    "NoHistoryError",
    "CorruptRecordError",
    "ReplayIndexExhausted",
    # Storage
    "StorageError",
    "GameNotFoundError",
    "GameExistsError",
]


class GoError(Exception):
    """Base exception for all engine errors.

    Attributes:
        code: Machine-readable error code
        message: Human-readable description
        context: Extra details (coordinates, names, ...)
    """
    code: str = "GO_ERROR"

    def __init__(self, message: str, code: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"[{self.code}] {self.message} ({ctx})"
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dict."""
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class InvalidBoardSizeError(GoError, ValueError):
    code = "INVALID_BOARD_SIZE"


# =============================================================================
# Move errors: raised before any state is touched
# =============================================================================


class MoveError(GoError):
    """A placement or pass was rejected. The session is unchanged."""
    code = "MOVE_ERROR"


class OutOfBoundsError(MoveError):
    code = "OUT_OF_BOUNDS"


class OccupiedCellError(MoveError):
    code = "OCCUPIED_CELL"


class SuicideMoveError(MoveError):
    """The placed stone's group would have no liberties after captures."""
    code = "SUICIDE_MOVE"


class GameOverError(MoveError):
    code = "GAME_OVER"


# =============================================================================
# History and records
# =============================================================================


class NoHistoryError(GoError):
    """Undo was requested with an empty history stack."""
    code = "NO_HISTORY"


class CorruptRecordError(GoError):
    """A serialized session is missing fields or holds invalid values."""
    code = "CORRUPT_RECORD"


class ReplayIndexExhausted(GoError):
    """Completion signal: the replay has no moves left to play."""
    code = "REPLAY_EXHAUSTED"


# =============================================================================
# Storage
# =============================================================================


class StorageError(GoError):
    code = "STORAGE_ERROR"


class GameNotFoundError(StorageError):
    code = "GAME_NOT_FOUND"


class GameExistsError(StorageError):
    code = "GAME_EXISTS"
