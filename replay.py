"""
Timed replay of a recorded move list.

Each ply goes through the same placement pipeline as live play, so stones
captured during the game disappear again during the replay. A replay runs on
the asyncio event loop with at most one pending ``call_later`` timer.
"""
import asyncio
import logging
from enum import Enum
from typing import Callable, List, Optional, Sequence, Union

from go_board import DEFAULT_SIZE, MAX_MOVE_NUMBER, Board, Color, label_to_coord
from go_errors import MoveError, ReplayIndexExhausted
from go_game import MoveRecord, resolve_placement

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_MS = 1000

MoveToken = Union[MoveRecord, dict]


class ReplayState(Enum):
    IDLE = 'idle'
    PLAYING = 'playing'
    PAUSED = 'paused'
    FINISHED = 'finished'


class ReplayHandle:
    """Steps through ``move_list`` one ply at a time.

    ``on_step`` is called after every advance (including skipped tokens) and
    ``on_finish`` once the list is exhausted. Both receive the handle.
    """

    def __init__(self, move_list: Sequence[MoveToken], interval_ms: int = DEFAULT_INTERVAL_MS,
                 size: int = DEFAULT_SIZE,
                 on_step: Optional[Callable[['ReplayHandle'], None]] = None,
                 on_finish: Optional[Callable[['ReplayHandle'], None]] = None,
                 loop: Optional[asyncio.AbstractEventLoop] = None):
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        self.move_list = list(move_list)
        self.interval_ms = interval_ms
        self.size = size
        self.on_step = on_step
        self.on_finish = on_finish
        self._loop = loop
        self._timer: Optional[asyncio.TimerHandle] = None
        self.state = ReplayState.IDLE
        self.index = 0
        self.skipped: List[int] = []
        self.captures = 0
        self.board = Board(size)

    @property
    def is_active(self) -> bool:
        return self.state in (ReplayState.PLAYING, ReplayState.PAUSED)

    @property
    def remaining(self) -> int:
        return len(self.move_list) - self.index

    def start(self):
        """Play from the first move. Restarts if already running."""
        self._cancel_timer()
        self.board = Board(self.size)
        self.index = 0
        self.captures = 0
        self.skipped = []
        self.state = ReplayState.PLAYING
        logger.info("Replay started: %d moves every %d ms", len(self.move_list), self.interval_ms)
        self._schedule()

    def pause(self):
        if self.state != ReplayState.PLAYING:
            return
        self._cancel_timer()
        self.state = ReplayState.PAUSED

    def resume(self):
        if self.state != ReplayState.PAUSED:
            return
        self.state = ReplayState.PLAYING
        self._schedule()

    def stop(self):
        self._cancel_timer()
        if self.is_active:
            logger.info("Replay stopped at move %d of %d", self.index, len(self.move_list))
            self.state = ReplayState.IDLE

    def current_board(self) -> Board:
        return self.board.copy()

    def step(self):
        """Apply the next ply.

        Raises ReplayIndexExhausted when every move has been played.
        Undecodable tokens and moves the pipeline rejects are logged and
        skipped; the index advances either way.
        """
        if self.index >= len(self.move_list):
            raise ReplayIndexExhausted("No moves left to replay",
                                       context={'length': len(self.move_list)})
        position = self.index
        token = self.move_list[position]
        self.index += 1
        try:
            move = self._decode(token, position)
            self.board, captured = resolve_placement(self.board, move.coord, move.player,
                                                     move.move_number)
            self.captures += captured
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping malformed replay token %d (%r): %s", position, token, e)
            self.skipped.append(position)
        except MoveError as e:
            logger.warning("Skipping illegal replay move %d: %s", position, e)
            self.skipped.append(position)

    def _decode(self, token: MoveToken, position: int) -> MoveRecord:
        if isinstance(token, MoveRecord):
            return token
        if not isinstance(token, dict):
            raise TypeError(f"Expected a move record, got {type(token).__name__}")
        move_number = token.get('moveNumber', position + 1)
        if (isinstance(move_number, bool) or not isinstance(move_number, int)
                or not 1 <= move_number <= MAX_MOVE_NUMBER):
            raise ValueError(f"Invalid move number: {move_number!r}")
        return MoveRecord(move_number, Color.parse(token['player']),
                          label_to_coord(token['coord'], self.size))

    def _advance(self):
        self._timer = None
        if self.state != ReplayState.PLAYING:
            return
        try:
            self.step()
        except ReplayIndexExhausted:
            self._finish()
            return
        if self.on_step is not None:
            self.on_step(self)
        if self.state == ReplayState.PLAYING:
            self._schedule()

    def _finish(self):
        self.state = ReplayState.FINISHED
        logger.info("Replay finished: %d moves, %d skipped", len(self.move_list), len(self.skipped))
        if self.on_finish is not None:
            self.on_finish(self)

    def _schedule(self):
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        self._timer = self._loop.call_later(self.interval_ms / 1000.0, self._advance)

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def to_dict(self) -> dict:
        return {
            'state': self.state.value,
            'index': self.index,
            'total': len(self.move_list),
            'skipped': list(self.skipped),
            'captures': self.captures,
            'board': self.board.to_list(),
        }


def start_replay(move_list: Sequence[MoveToken], interval_ms: int = DEFAULT_INTERVAL_MS,
                 **kwargs) -> ReplayHandle:
    handle = ReplayHandle(move_list, interval_ms, **kwargs)
    handle.start()
    return handle


class Replayer:
    """Keeps at most one replay running for a game session."""

    def __init__(self):
        self.handle: Optional[ReplayHandle] = None

    @property
    def is_active(self) -> bool:
        return self.handle is not None and self.handle.is_active

    def start(self, move_list: Sequence[MoveToken], interval_ms: int = DEFAULT_INTERVAL_MS,
              **kwargs) -> ReplayHandle:
        self.stop()
        self.handle = start_replay(move_list, interval_ms, **kwargs)
        return self.handle

    def stop(self):
        if self.handle is not None:
            self.handle.stop()
