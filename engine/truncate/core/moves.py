"""
Move types and their compact text notation.

Notation:
    Place: <tile>@<x>,<y>          e.g. "A@1,3"
    Swap:  <x>,<y>-<x>,<y>         e.g. "1,3-2,3"

The notation carries no player number; the parser takes it as an argument.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Union
import re

from .board import Coordinate

_PLACE_RE = re.compile(r"^(.)@(\d+),(\d+)$")
_SWAP_RE = re.compile(r"^(\d+),(\d+)-(\d+),(\d+)$")


@dataclass(frozen=True)
class Place:
    player: int
    tile: str
    position: Coordinate

    def __str__(self) -> str:
        return f"Player {self.player} places {self.tile} at {self.position}"


@dataclass(frozen=True, eq=False)
class Swap:
    player: int
    positions: tuple[Coordinate, Coordinate]

    def __eq__(self, other: object) -> bool:
        # The order the two squares are given in doesn't matter
        if not isinstance(other, Swap):
            return NotImplemented
        return self.player == other.player and set(self.positions) == set(other.positions)

    def __hash__(self) -> int:
        return hash((self.player, frozenset(self.positions)))

    def __str__(self) -> str:
        a, b = self.positions
        return f"Player {self.player} swaps {a} and {b}"


Move = Union[Place, Swap]


def move_to_notation(move: Move) -> str:
    if isinstance(move, Place):
        return f"{move.tile}@{move.position.x},{move.position.y}"
    a, b = move.positions
    return f"{a.x},{a.y}-{b.x},{b.y}"


def notation_to_move(notation: str, player: int) -> Move:
    """
    Parse a move from notation.

    Raises:
        ValueError: If the notation is not a place or a swap
    """
    notation = notation.strip()
    m = _PLACE_RE.match(notation)
    if m:
        tile, x, y = m.groups()
        return Place(player, tile, Coordinate(int(x), int(y)))
    m = _SWAP_RE.match(notation)
    if m:
        ax, ay, bx, by = (int(g) for g in m.groups())
        return Swap(player, (Coordinate(ax, ay), Coordinate(bx, by)))
    raise ValueError(f"Invalid move notation: {notation!r}")
