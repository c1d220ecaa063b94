"""
Tile bag: the randomized letter supply.

Tiles are drawn uniformly at random with an O(1) swap-remove. A bag built
from a letter distribution refills itself when it runs dry; an explicit bag
never refills.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Sequence
import string

import numpy as np

from .rules import TileDistribution

STANDARD_DISTRIBUTION: tuple[int, ...] = (
    14,  # a
    4,   # b
    5,   # c
    6,   # d
    16,  # e
    3,   # f
    4,   # g
    4,   # h
    10,  # i
    1,   # j
    3,   # k
    8,   # l
    4,   # m
    7,   # n
    11,  # o
    5,   # p
    1,   # q
    9,   # r
    10,  # s
    8,   # t
    6,   # u
    2,   # v
    3,   # w
    1,   # x
    4,   # y
    1,   # z
)


@dataclass(frozen=True)
class DrawnTile:
    """Receipt for a tile drawn with TileBag.draw, redeemable once with return_drawn."""
    letter: str
    serial: int
    source: TileBag = field(compare=False, repr=False)


class TileBag:
    def __init__(self, tiles: Optional[list[str]] = None,
                 distribution: Optional[Sequence[int]] = None,
                 seed: Optional[int] = None,
                 infinite: bool = False):
        if distribution is not None and len(distribution) != 26:
            raise ValueError(f"Letter distribution needs 26 entries, got {len(distribution)}")
        self.tiles: list[str] = list(tiles or [])
        self.distribution = tuple(distribution) if distribution is not None else None
        self.rng = np.random.default_rng(seed)
        self.infinite = infinite
        self._next_serial = 0
        self._outstanding: set[int] = set()
        if not self.tiles and self.distribution is not None:
            self.fill()

    @classmethod
    def new(cls, tile_distribution: TileDistribution = TileDistribution.STANDARD,
            seed: Optional[int] = None, infinite: bool = False) -> TileBag:
        if tile_distribution == TileDistribution.STANDARD:
            return cls.custom(STANDARD_DISTRIBUTION, seed, infinite)
        raise ValueError(f"Unknown tile distribution: {tile_distribution}")

    @classmethod
    def custom(cls, distribution: Sequence[int], seed: Optional[int] = None,
               infinite: bool = False) -> TileBag:
        return cls(distribution=distribution, seed=seed, infinite=infinite)

    @classmethod
    def explicit(cls, tiles: Sequence[str], seed: Optional[int] = None) -> TileBag:
        """A bag holding exactly these tiles, never refilled."""
        return cls(tiles=list(tiles), seed=seed)

    def fill(self) -> None:
        """Add a full set of tiles from the letter distribution."""
        if self.distribution is None:
            return
        for letter, amount in zip(string.ascii_uppercase, self.distribution):
            self.tiles.extend([letter] * amount)

    @property
    def exhausted(self) -> bool:
        """Nothing left to draw and nothing to refill from."""
        return not self.tiles and self.distribution is None

    def draw_tile(self) -> str:
        if not self.tiles:
            self.fill()
        if not self.tiles:
            raise IndexError("Tile bag is empty and has no distribution to refill from")

        index = int(self.rng.integers(len(self.tiles)))
        tile = self.tiles[index]
        if not self.infinite:
            self.tiles[index] = self.tiles[-1]
            self.tiles.pop()
        return tile

    def draw(self) -> DrawnTile:
        """Draw a tile and receive a token that can be returned exactly once."""
        letter = self.draw_tile()
        serial = self._next_serial
        self._next_serial += 1
        self._outstanding.add(serial)
        return DrawnTile(letter, serial, self)

    def return_drawn(self, token: DrawnTile) -> None:
        if token.source is not self or token.serial not in self._outstanding:
            raise ValueError(f"Tile {token.letter} was not drawn from this bag or was already returned")
        self._outstanding.discard(token.serial)
        self.return_tile(token.letter)

    def return_tile(self, tile: str) -> None:
        """Put a tile from the board back in the bag."""
        if not self.infinite:
            self.tiles.append(tile)

    def __len__(self) -> int:
        return len(self.tiles)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TileBag):
            return NotImplemented
        return self.tiles == other.tiles and self.distribution == other.distribution

    def __str__(self) -> str:
        return f"Bag: {''.join(sorted(self.tiles))}"
