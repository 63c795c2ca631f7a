"""
Connected groups and liberties.

Groups are found with an explicit worklist and a visited set owned by each
call, so there is no recursion limit on large boards and no state shared
between calls.
"""
from typing import Iterable, Optional, Set

from go_board import EMPTY, Board, Color, Coord


def find_group(board: Board, coord: Coord, color: Optional[Color] = None) -> Set[Coord]:
    """Return every coordinate 4-connected to ``coord`` through cells of ``color``.

    ``color`` defaults to the color at ``coord``. The result is empty if the
    start cell does not hold ``color`` or if it is an empty cell.
    """
    row, col = coord
    if not board.is_inside(row, col):
        return set()
    if color is None:
        color = board.color_at(row, col)
    if color == EMPTY or board.colors[row, col] != color:
        return set()

    group = {coord}
    stack = [coord]
    while stack:
        r, c = stack.pop()
        for nr, nc in board.neighbors(r, c):
            if (nr, nc) not in group and board.colors[nr, nc] == color:
                group.add((nr, nc))
                stack.append((nr, nc))
    return group


def liberties(board: Board, group: Iterable[Coord]) -> Set[Coord]:
    libs = set()
    for r, c in group:
        for nr, nc in board.neighbors(r, c):
            if board.colors[nr, nc] == EMPTY:
                libs.add((nr, nc))
    return libs


def count_liberties(board: Board, group: Iterable[Coord]) -> int:
    """Number of distinct empty points next to the group."""
    return len(liberties(board, group))
