"""Board dumps and vertex helpers for GTP engines.

GTP names columns with letters, skipping ``I``, and rows with numbers
counted from the bottom edge: ``A1`` is the lower-left corner.
"""

from __future__ import annotations

import dataclasses
import re
import typing as t

from gtpbridge.errors import InvalidColor, InvalidVertex

if t.TYPE_CHECKING:
    from gtpbridge._types import Color, Vertex

COLUMN_LABELS = "ABCDEFGHJKLMNOPQRSTUVWXYZ"
MAX_BOARD_SIZE = len(COLUMN_LABELS)
PASS = "pass"
RESIGN = "resign"

_ROW_RE = re.compile(r"^\s*(\d+)\s")
_VERTEX_RE = re.compile(r"^([A-HJ-Z])(\d{1,2})$")
_STONE_CHARS: dict[str, Color] = {"X": "black", "O": "white"}
_COLOR_ALIASES: dict[str, Color] = {
    "b": "black",
    "black": "black",
    "w": "white",
    "white": "white",
}


def normalize_color(color: str) -> Color:
    """Return ``"black"`` or ``"white"`` for any accepted spelling.

    >>> normalize_color("B")
    'black'
    >>> normalize_color("white")
    'white'
    """
    try:
        return _COLOR_ALIASES[color.strip().lower()]
    except KeyError:
        raise InvalidColor(color) from None


def opponent(color: Color) -> Color:
    """Return the other color.

    >>> opponent("black")
    'white'
    """
    return "white" if color == "black" else "black"


def column_label(col: int) -> str:
    """Letter for 0-based column *col*.

    >>> column_label(8)
    'J'
    """
    return COLUMN_LABELS[col]


def vertex_to_point(vertex: Vertex, size: int) -> tuple[int, int]:
    """Convert a vertex to 1-based ``(x, y)`` with the origin top-left.

    >>> vertex_to_point("A19", 19)
    (1, 1)
    >>> vertex_to_point("t1", 19)
    (19, 19)
    """
    match = _VERTEX_RE.match(vertex.strip().upper())
    if match is None:
        raise InvalidVertex(vertex, size)
    x = COLUMN_LABELS.index(match.group(1)) + 1
    row = int(match.group(2))
    if x > size or not 1 <= row <= size:
        raise InvalidVertex(vertex, size)
    return x, size - row + 1


def point_to_vertex(x: int, y: int, size: int) -> Vertex:
    """Convert 1-based top-left ``(x, y)`` to a vertex.

    >>> point_to_vertex(1, 1, 19)
    'A19'
    >>> point_to_vertex(9, 19, 19)
    'J1'
    """
    if not (1 <= x <= size and 1 <= y <= size):
        raise InvalidVertex(f"({x}, {y})", size)
    return f"{COLUMN_LABELS[x - 1]}{size - y + 1}"


def normalize_vertex(vertex: Vertex, size: int) -> Vertex:
    """Validate and upper-case *vertex*; ``pass`` and ``resign`` stay lower-case.

    >>> normalize_vertex("q16", 19)
    'Q16'
    >>> normalize_vertex("PASS", 19)
    'pass'
    """
    lowered = vertex.strip().lower()
    if lowered in {PASS, RESIGN}:
        return lowered
    x, y = vertex_to_point(vertex, size)
    return point_to_vertex(x, y, size)


@dataclasses.dataclass
class Board:
    """Stones on the board as reported by ``showboard``."""

    size: int
    stones: dict[Vertex, Color] = dataclasses.field(default_factory=dict)
    last_move: Vertex | None = None

    def stone_at(self, vertex: Vertex) -> Color | None:
        """Return the stone color at *vertex*, or None if empty."""
        return self.stones.get(vertex.strip().upper())

    def count(self, color: Color) -> int:
        """Number of *color* stones on the board."""
        return sum(1 for stone in self.stones.values() if stone == color)

    def to_dict(self) -> dict[str, t.Any]:
        """JSON-ready representation."""
        return {
            "size": self.size,
            "stones": dict(self.stones),
            "lastMove": self.last_move,
        }


def parse_board(text: str, size: int = 19) -> Board:
    r"""Parse a ``showboard`` payload.

    Board rows start with their row number right-aligned in two characters;
    the point for column ``c`` sits at character ``3 + 2 * c``. Every other
    line (header, captures, engine notes) is ignored.

    Examples
    --------
    >>> dump = (
    ...     "MoveNum: 2\n"
    ...     "   A B C\n"
    ...     " 3 . . .\n"
    ...     " 2 . X .\n"
    ...     " 1 O . .\n"
    ... )
    >>> board = parse_board(dump, size=3)
    >>> board.stones
    {'B2': 'black', 'A1': 'white'}
    """
    board = Board(size=size)
    for line in text.splitlines():
        match = _ROW_RE.match(line)
        if match is None:
            continue
        row = int(match.group(1))
        if not 1 <= row <= size:
            continue
        for col in range(size):
            index = 3 + 2 * col
            if index >= len(line):
                break
            color = _STONE_CHARS.get(line[index])
            if color is not None:
                board.stones[f"{COLUMN_LABELS[col]}{row}"] = color
    return board


__all__ = [
    "COLUMN_LABELS",
    "MAX_BOARD_SIZE",
    "PASS",
    "RESIGN",
    "Board",
    "column_label",
    "normalize_color",
    "normalize_vertex",
    "opponent",
    "parse_board",
    "point_to_vertex",
    "vertex_to_point",
]
