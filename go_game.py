"""
Game session for the Go engine.

Holds the move commit pipeline (place, capture, suicide check), turn and pass
bookkeeping, the undo stack, the move ledger and (de)serialization of a
session to a plain dict.

``GameSession`` methods mutate the session they are called on. The
module-level functions (``attempt_move``, ``pass_turn``, ``undo``) leave their
argument untouched and return a new session.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, NamedTuple, Optional, Set, Tuple

from go_board import (BLACK, DEFAULT_SIZE, EMPTY, MAX_MOVE_NUMBER, WHITE, Board, Color,
                      Coord, coord_to_label, label_to_coord, validate_size)
from go_errors import (CorruptRecordError, GameOverError, MoveError, NoHistoryError,
                       OccupiedCellError, OutOfBoundsError, SuicideMoveError)
from go_groups import count_liberties, find_group

logger = logging.getLogger(__name__)

PASSES_TO_END = 2


@dataclass(frozen=True)
class MoveRecord:
    """A committed placement as shown in the move list and used by replay."""
    move_number: int
    player: Color
    coord: Coord

    def to_dict(self, size: int) -> dict:
        return {
            'moveNumber': self.move_number,
            'player': self.player.label,
            'coord': coord_to_label(self.coord, size),
        }

    @classmethod
    def from_dict(cls, data: dict, size: int) -> 'MoveRecord':
        """Raises KeyError, TypeError or ValueError for malformed entries."""
        move_number = data['moveNumber']
        if (isinstance(move_number, bool) or not isinstance(move_number, int)
                or not 1 <= move_number <= MAX_MOVE_NUMBER):
            raise ValueError(f"Invalid move number: {move_number!r}")
        return cls(move_number, Color.parse(data['player']), label_to_coord(data['coord'], size))


@dataclass(frozen=True)
class Snapshot:
    """Full session state taken before a placement or pass."""
    board: Board
    turn: Color
    move_number: int
    pass_count: int
    game_over: bool
    move_list: Tuple[MoveRecord, ...]
    captures: Tuple[int, int]


class MoveOutcome(NamedTuple):
    session: 'GameSession'
    captured_count: int


def resolve_placement(board: Board, coord: Coord, color: Color,
                      move_number: int) -> Tuple[Board, int]:
    """Play ``color`` at ``coord`` and return ``(new_board, captured_count)``.

    Works on a copy: ``board`` itself is never modified, so a rejected move
    leaves nothing to roll back. Opponent groups touching the new stone are
    captured first, each at most once, and only then is the new stone's own
    group checked for liberties.

    Raises:
        OutOfBoundsError, OccupiedCellError, SuicideMoveError
    """
    if color == EMPTY:
        raise ValueError("Cannot place an empty stone")
    row, col = coord
    if not board.is_inside(row, col):
        raise OutOfBoundsError("Move is outside the board",
                               context={'row': row, 'col': col, 'size': board.size})
    if not board.is_empty(row, col):
        raise OccupiedCellError("Point is already occupied", context={'row': row, 'col': col})

    work = board.copy()
    work.place(row, col, color, move_number)

    opponent = color.opponent
    processed: Set[Coord] = set()
    captured = 0
    for neighbor in work.neighbors(row, col):
        if neighbor in processed or work.colors[neighbor] != opponent:
            continue
        group = find_group(work, neighbor, opponent)
        processed.update(group)
        if count_liberties(work, group) == 0:
            for stone in group:
                work.clear(*stone)
            captured += len(group)

    own_group = find_group(work, (row, col), color)
    if count_liberties(work, own_group) == 0:
        raise SuicideMoveError("Move would leave its own group without liberties",
                               context={'row': row, 'col': col})

    return work, captured


class GameSession:
    def __init__(self, size: int = DEFAULT_SIZE):
        self.size = validate_size(size)
        self.reset()

    def reset(self):
        """Start over: empty board, black to move."""
        self.board = Board(self.size)
        self.turn = BLACK
        self.move_number = 1
        self.pass_count = 0
        self.game_over = False
        self.move_list: List[MoveRecord] = []
        self.captures: Dict[Color, int] = {BLACK: 0, WHITE: 0}
        self.history: List[Snapshot] = []

    def copy(self) -> 'GameSession':
        new_session = GameSession.__new__(GameSession)
        new_session.size = self.size
        new_session.board = self.board.copy()
        new_session.turn = self.turn
        new_session.move_number = self.move_number
        new_session.pass_count = self.pass_count
        new_session.game_over = self.game_over
        new_session.move_list = list(self.move_list)
        new_session.captures = dict(self.captures)
        # Snapshots are never mutated, sharing them is safe
        new_session.history = list(self.history)
        return new_session

    def snapshot(self) -> Snapshot:
        return Snapshot(
            board=self.board.copy(),
            turn=self.turn,
            move_number=self.move_number,
            pass_count=self.pass_count,
            game_over=self.game_over,
            move_list=tuple(self.move_list),
            captures=(self.captures[BLACK], self.captures[WHITE]),
        )

    def _restore(self, snapshot: Snapshot):
        self.board = snapshot.board.copy()
        self.turn = snapshot.turn
        self.move_number = snapshot.move_number
        self.pass_count = snapshot.pass_count
        self.game_over = snapshot.game_over
        self.move_list = list(snapshot.move_list)
        self.captures = {BLACK: snapshot.captures[0], WHITE: snapshot.captures[1]}

    @property
    def last_move(self) -> Optional[MoveRecord]:
        return self.move_list[-1] if self.move_list else None

    @property
    def can_undo(self) -> bool:
        return bool(self.history)

    def play(self, coord: Coord) -> int:
        """Place a stone for the side to move and return the number captured.

        Raises a MoveError subclass and leaves the session unchanged if the
        move is rejected.
        """
        if self.game_over:
            raise GameOverError("The game is over")
        row, col = coord
        color = self.turn
        new_board, captured = resolve_placement(self.board, (row, col), color, self.move_number)

        self.history.append(self.snapshot())
        self.board = new_board
        self.move_list.append(MoveRecord(self.move_number, color, (row, col)))
        self.captures[color] += captured
        self.move_number += 1
        self.turn = color.opponent
        self.pass_count = 0

        logger.debug("Move %d: %s at %s captured %d", self.move_number - 1, color.label,
                     coord_to_label((row, col), self.size), captured)
        return captured

    def pass_turn(self):
        if self.game_over:
            raise GameOverError("The game is over")
        self.history.append(self.snapshot())
        self.pass_count += 1
        if self.pass_count >= PASSES_TO_END:
            self.game_over = True
            logger.info("Game over after consecutive passes, stones on board: %s", self.score())
        else:
            self.turn = self.turn.opponent

    def undo(self):
        if not self.history:
            raise NoHistoryError("Nothing to undo")
        self._restore(self.history.pop())

    def is_legal(self, coord: Coord) -> bool:
        if self.game_over:
            return False
        try:
            resolve_placement(self.board, coord, self.turn, self.move_number)
        except MoveError:
            return False
        return True

    def valid_moves(self) -> List[Coord]:
        return [(r, c) for r in range(self.size) for c in range(self.size)
                if self.is_legal((r, c))]

    def score(self) -> Dict[str, int]:
        """Naive score: stones on the board for each color."""
        return self.board.stone_counts()

    def to_dict(self) -> dict:
        return {
            'board': self.board.to_list(),
            'turn': self.turn.label,
            'moveNumber': self.move_number,
            'passCount': self.pass_count,
            'gameOver': self.game_over,
            'moveList': [move.to_dict(self.size) for move in self.move_list],
            'captures': {'black': self.captures[BLACK], 'white': self.captures[WHITE]},
        }

    @classmethod
    def from_dict(cls, record: dict) -> 'GameSession':
        """Build a session from :meth:`to_dict` output.

        ``board``, ``turn`` and ``moveNumber`` are required; ``moveNum`` is
        accepted for older saves. The undo history starts empty.
        """
        if not isinstance(record, dict):
            raise CorruptRecordError("Game record must be an object")
        if 'moveNumber' not in record and 'moveNum' in record:
            record = dict(record, moveNumber=record['moveNum'])
        missing = [key for key in ('board', 'turn', 'moveNumber') if record.get(key) is None]
        if missing:
            raise CorruptRecordError("Game record is missing required fields",
                                     context={'missing': missing})

        try:
            board = Board.from_list(record['board'])
            turn = Color.parse(record['turn'])
            move_number = _non_negative_int(record['moveNumber'], 'moveNumber')
            if not 1 <= move_number < MAX_MOVE_NUMBER:
                raise ValueError(f"moveNumber must be between 1 and {MAX_MOVE_NUMBER - 1}")
            pass_count = _non_negative_int(record.get('passCount') or 0, 'passCount')
            if pass_count > PASSES_TO_END:
                raise ValueError(f"passCount must be at most {PASSES_TO_END}")
            game_over = record.get('gameOver') or False
            if not isinstance(game_over, bool):
                raise ValueError("gameOver must be a boolean")
            if game_over != (pass_count == PASSES_TO_END):
                raise ValueError(f"gameOver must be true exactly when passCount is {PASSES_TO_END}")
            move_list = [MoveRecord.from_dict(move, board.size)
                         for move in record.get('moveList') or []]
            captures = record.get('captures') or {}
            black_captures = _non_negative_int(captures.get('black', 0), 'captures.black')
            white_captures = _non_negative_int(captures.get('white', 0), 'captures.white')
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise CorruptRecordError(f"Invalid game record: {e}") from e

        session = cls.__new__(cls)
        session.size = board.size
        session.board = board
        session.turn = turn
        session.move_number = move_number
        session.pass_count = pass_count
        session.game_over = game_over
        session.move_list = move_list
        session.captures = {BLACK: black_captures, WHITE: white_captures}
        session.history = []
        return session

    def get_state(self) -> dict:
        """State sent to clients: the serialized record plus display extras."""
        state = self.to_dict()
        last_move = self.last_move
        state.update({
            'size': self.size,
            'lastMove': last_move.to_dict(self.size) if last_move else None,
            'canUndo': self.can_undo,
            'score': self.score() if self.game_over else None,
        })
        return state

    def __eq__(self, other) -> bool:
        # The undo stack is not part of a session's persisted state
        if not isinstance(other, GameSession):
            return NotImplemented
        return (self.size == other.size
                and self.board == other.board
                and self.turn == other.turn
                and self.move_number == other.move_number
                and self.pass_count == other.pass_count
                and self.game_over == other.game_over
                and self.move_list == other.move_list
                and self.captures == other.captures)

    def __repr__(self) -> str:
        return (f"GameSession(size={self.size}, turn={self.turn.label}, "
                f"move_number={self.move_number}, game_over={self.game_over})")


def _non_negative_int(value, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"{name} must be a non-negative integer")
    return value


def new_game(size: int = DEFAULT_SIZE) -> GameSession:
    return GameSession(size)


def attempt_move(session: GameSession, coord: Coord) -> MoveOutcome:
    """Play for the side to move on a copy of ``session``."""
    new_session = session.copy()
    captured = new_session.play(coord)
    return MoveOutcome(new_session, captured)


def pass_turn(session: GameSession) -> GameSession:
    new_session = session.copy()
    new_session.pass_turn()
    return new_session


def undo(session: GameSession) -> GameSession:
    new_session = session.copy()
    new_session.undo()
    return new_session


def serialize(session: GameSession) -> dict:
    return session.to_dict()


def deserialize(record: dict) -> GameSession:
    return GameSession.from_dict(record)
