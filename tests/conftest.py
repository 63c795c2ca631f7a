"""Shared pytest fixtures and configuration for all tests."""

import pytest
import sys
import os

# Add parent directory to path so we can import modules
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from go_board import BLACK, WHITE, Board, Color
from go_game import GameSession

SYMBOLS = {'X': BLACK, 'O': WHITE}


def board_from_diagram(rows):
    """Build a board from rows like ``'.XO..'``; X is black, O is white.

    Stones get move numbers in reading order starting at 1.
    """
    board = Board(len(rows))
    move_number = 1
    for r, row in enumerate(rows):
        assert len(row) == board.size, f"Row {r} has the wrong length"
        for c, symbol in enumerate(row):
            if symbol in SYMBOLS:
                board.place(r, c, SYMBOLS[symbol], move_number)
                move_number += 1
    return board


def session_from_diagram(rows, turn: Color = BLACK) -> GameSession:
    board = board_from_diagram(rows)
    session = GameSession(board.size)
    session.board = board
    session.turn = turn
    session.move_number = int(board.move_numbers.max()) + 1
    return session


@pytest.fixture
def make_board():
    return board_from_diagram


@pytest.fixture
def make_session():
    return session_from_diagram


@pytest.fixture
def empty_session_9x9():
    """Fixture for an empty 9x9 game."""
    return GameSession(9)


@pytest.fixture
def capture_position():
    """A white stone with one liberty left at (2, 3); black to move."""
    return session_from_diagram([
        ".....",
        "..X..",
        ".XO..",
        "..X..",
        ".....",
    ])


@pytest.fixture
def double_capture_position():
    """Two separate white groups (sizes 1 and 2) whose only liberty is (2, 2)."""
    return session_from_diagram([
        "..X..",
        ".XOX.",
        ".....",
        ".XOX.",
        ".XOX.",
    ])


@pytest.fixture
def eye_position():
    """(2, 2) is surrounded by white stones that have other liberties."""
    return session_from_diagram([
        ".....",
        "..O..",
        ".O.O.",
        "..O..",
        ".....",
    ])


@pytest.fixture
def capture_game_moves():
    """Alternating moves on 5x5 in which black's 7th move captures (2, 2)."""
    return [(1, 2), (2, 2), (2, 1), (0, 0), (3, 2), (0, 4), (2, 3)]


@pytest.fixture
def played_capture_game(capture_game_moves):
    session = GameSession(5)
    for coord in capture_game_moves:
        session.play(coord)
    return session


@pytest.fixture
def large_board_size():
    """Large board size for performance tests."""
    return 19
