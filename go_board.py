"""
Board primitives for the Go engine: stone colors, coordinates and the NxN grid
"""
import string
from enum import IntEnum
from typing import Iterator, List, NamedTuple, Tuple

import numpy as np

from go_errors import InvalidBoardSizeError

DEFAULT_SIZE = 19
MIN_SIZE = 2
# One column letter per file, A..Z
MAX_SIZE = 26

COLUMN_LETTERS = string.ascii_uppercase

# Move numbers are stored in an int32 array
MAX_MOVE_NUMBER = int(np.iinfo(np.int32).max)

Coord = Tuple[int, int]


class Color(IntEnum):
    EMPTY = 0
    BLACK = 1
    WHITE = 2

    @property
    def opponent(self) -> 'Color':
        if self == Color.BLACK:
            return Color.WHITE
        if self == Color.WHITE:
            return Color.BLACK
        return Color.EMPTY

    @property
    def label(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, value, allow_empty: bool = False) -> 'Color':
        """Accept 0/1/2, 'black'/'white'/'empty' or 'B'/'W'."""
        if isinstance(value, bool):
            raise ValueError(f"Invalid color: {value!r}")
        if isinstance(value, (int, np.integer)):
            color = cls(int(value))
        elif isinstance(value, str):
            key = value.strip().lower()
            aliases = {'b': 'black', 'w': 'white', 'e': 'empty'}
            key = aliases.get(key, key)
            if key not in ('black', 'white', 'empty'):
                raise ValueError(f"Invalid color: {value!r}")
            color = cls[key.upper()]
        else:
            raise ValueError(f"Invalid color: {value!r}")
        if color == cls.EMPTY and not allow_empty:
            raise ValueError("A player color cannot be empty")
        return color


# Aliases matching the integer board encoding
EMPTY = Color.EMPTY
BLACK = Color.BLACK
WHITE = Color.WHITE


class Cell(NamedTuple):
    color: Color
    move_number: int


def validate_size(size: int) -> int:
    if isinstance(size, bool) or not isinstance(size, (int, np.integer)):
        raise InvalidBoardSizeError(f"Board size must be an integer, got {size!r}")
    if not MIN_SIZE <= size <= MAX_SIZE:
        raise InvalidBoardSizeError(
            f"Board size must be between {MIN_SIZE} and {MAX_SIZE}",
            context={'size': int(size)})
    return int(size)


class Board:
    """Square grid of cells. Each stone remembers the move that placed it."""

    def __init__(self, size: int = DEFAULT_SIZE):
        self.size = validate_size(size)
        self.colors = np.zeros((self.size, self.size), dtype=np.int8)
        self.move_numbers = np.zeros((self.size, self.size), dtype=np.int32)

    def copy(self) -> 'Board':
        new_board = Board.__new__(Board)
        new_board.size = self.size
        new_board.colors = self.colors.copy()
        new_board.move_numbers = self.move_numbers.copy()
        return new_board

    def is_inside(self, row: int, col: int) -> bool:
        return 0 <= row < self.size and 0 <= col < self.size

    def is_empty(self, row: int, col: int) -> bool:
        return self.colors[row, col] == EMPTY

    def color_at(self, row: int, col: int) -> Color:
        return Color(int(self.colors[row, col]))

    def cell(self, row: int, col: int) -> Cell:
        return Cell(self.color_at(row, col), int(self.move_numbers[row, col]))

    def place(self, row: int, col: int, color: Color, move_number: int):
        self.colors[row, col] = color
        self.move_numbers[row, col] = move_number

    def clear(self, row: int, col: int):
        self.colors[row, col] = EMPTY
        self.move_numbers[row, col] = 0

    def neighbors(self, row: int, col: int) -> Iterator[Coord]:
        """Yield in-bounds orthogonal neighbours (up, down, left, right)."""
        if row > 0:
            yield row - 1, col
        if row < self.size - 1:
            yield row + 1, col
        if col > 0:
            yield row, col - 1
        if col < self.size - 1:
            yield row, col + 1

    def stone_counts(self) -> dict:
        return {
            'black': int(np.count_nonzero(self.colors == BLACK)),
            'white': int(np.count_nonzero(self.colors == WHITE)),
        }

    def to_list(self) -> List[List[List[int]]]:
        """Rows of ``[color, move_number]`` pairs, JSON serializable."""
        return [
            [[int(self.colors[r, c]), int(self.move_numbers[r, c])] for c in range(self.size)]
            for r in range(self.size)
        ]

    @classmethod
    def from_list(cls, rows) -> 'Board':
        """Inverse of :meth:`to_list`. Raises ValueError on malformed input."""
        if not isinstance(rows, list) or not rows:
            raise ValueError("Board must be a non-empty list of rows")
        board = cls(len(rows))
        for r, row in enumerate(rows):
            if not isinstance(row, list) or len(row) != board.size:
                raise ValueError(f"Row {r} must have {board.size} cells")
            for c, cell in enumerate(row):
                if not isinstance(cell, (list, tuple)) or len(cell) != 2:
                    raise ValueError(f"Cell ({r}, {c}) must be a [color, moveNumber] pair")
                color = Color.parse(cell[0], allow_empty=True)
                move_number = cell[1]
                if (isinstance(move_number, bool) or not isinstance(move_number, int)
                        or not 0 <= move_number <= MAX_MOVE_NUMBER):
                    raise ValueError(f"Cell ({r}, {c}) has an invalid move number")
                if color == EMPTY:
                    move_number = 0
                board.place(r, c, color, move_number)
        return board

    def __eq__(self, other) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return (self.size == other.size
                and np.array_equal(self.colors, other.colors)
                and np.array_equal(self.move_numbers, other.move_numbers))

    def __repr__(self) -> str:
        return f"Board(size={self.size}, stones={self.stone_counts()})"

    def __str__(self) -> str:
        symbols = {EMPTY: '.', BLACK: 'X', WHITE: 'O'}
        lines = []
        for r in range(self.size):
            label = str(self.size - r).rjust(2)
            row = ' '.join(symbols[Color(int(v))] for v in self.colors[r])
            lines.append(f"{label} {row}")
        lines.append('   ' + ' '.join(COLUMN_LETTERS[:self.size]))
        return '\n'.join(lines)


def is_inside(board: Board, coord: Coord) -> bool:
    row, col = coord
    return board.is_inside(row, col)


def is_empty(board: Board, coord: Coord) -> bool:
    row, col = coord
    return board.is_empty(row, col)


def coord_to_label(coord: Coord, size: int) -> str:
    """(0, 0) on a 19x19 board is 'A19'; rows count up from the bottom edge."""
    row, col = coord
    if not (0 <= row < size and 0 <= col < size):
        raise ValueError(f"Coordinate {coord} is outside a {size}x{size} board")
    return f"{COLUMN_LETTERS[col]}{size - row}"


def label_to_coord(label: str, size: int) -> Coord:
    """Inverse of :func:`coord_to_label`. Raises ValueError for bad labels."""
    if not isinstance(label, str) or len(label) < 2:
        raise ValueError(f"Invalid coordinate label: {label!r}")
    letter, number = label[0].upper(), label[1:]
    if letter not in COLUMN_LETTERS[:size] or not number.isdigit():
        raise ValueError(f"Invalid coordinate label: {label!r}")
    rank = int(number)
    if not 1 <= rank <= size:
        raise ValueError(f"Invalid coordinate label: {label!r}")
    return size - rank, COLUMN_LETTERS.index(letter)
