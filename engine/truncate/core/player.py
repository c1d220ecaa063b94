"""
Player state: hand, clock and swap bookkeeping.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional

from .bag import TileBag
from .errors import PlayerDoesNotHaveTile
from .reporting import HandChange

GAME_COLORS: tuple[tuple[int, int, int], ...] = (
    (80, 167, 232),
    (122, 40, 203),
    (253, 197, 245),
    (230, 63, 56),
    (246, 174, 45),
)


@dataclass
class Player:
    """
    A seat in the game.

    Attributes:
        name: Display name
        index: Seat number, also the owner number on board squares
        hand: Tiles the player can place
        hand_capacity: Hand size to refill to after placing a tile
        allotted_time: Total clock time in seconds, None when untimed
        time_remaining: Seconds left on the clock, None when untimed
        turn_starts_at: Clock reading when the current turn began
        swap_count: Consecutive swaps since the last placement
        penalties_incurred: Overtime penalty periods already applied
        color: RGB color for display
    """
    name: str
    index: int
    hand: list[str] = field(default_factory=list)
    hand_capacity: int = 7
    allotted_time: Optional[float] = None
    time_remaining: Optional[float] = None
    turn_starts_at: Optional[float] = None
    swap_count: int = 0
    penalties_incurred: int = 0
    color: tuple[int, int, int] = GAME_COLORS[0]

    def has_tile(self, tile: str) -> bool:
        return tile in self.hand

    def fill_hand(self, bag: TileBag) -> HandChange:
        """Draw until the hand holds hand_capacity tiles."""
        added = []
        while len(self.hand) < self.hand_capacity and not bag.exhausted:
            tile = bag.draw_tile()
            self.hand.append(tile)
            added.append(tile)
        return HandChange(self.index, (), tuple(added))

    def use_tile(self, tile: str, bag: TileBag) -> HandChange:
        """Spend a tile from the hand, drawing its replacement into the same slot.

        Hands holding more than hand_capacity tiles (from bonus tiles) shrink
        instead of drawing, as does any hand once an explicit bag runs dry.
        """
        if tile not in self.hand:
            raise PlayerDoesNotHaveTile(self.index, tile)
        index = self.hand.index(tile)

        if len(self.hand) > self.hand_capacity or bag.exhausted:
            self.hand.pop(index)
            return HandChange(self.index, (tile,), ())

        replacement = bag.draw_tile()
        self.hand[index] = replacement
        return HandChange(self.index, (tile,), (replacement,))

    def add_special_tile(self, tile: str) -> HandChange:
        self.hand.append(tile)
        return HandChange(self.index, (), (tile,))
