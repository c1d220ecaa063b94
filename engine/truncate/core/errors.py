"""
Errors raised while validating and applying moves.

Every rule violation is a subclass of GamePlayError so callers can catch
the whole family at once. A raised GamePlayError guarantees the game state
was not modified.
"""

from __future__ import annotations
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .board import Coordinate


class GamePlayError(Exception):
    """Base class for illegal moves and invalid board operations."""


class InvalidPosition(GamePlayError):
    def __init__(self, position: Coordinate):
        self.position = position
        super().__init__(f"Invalid position {position}")


class OutSideBoardDimensions(GamePlayError):
    def __init__(self, position: Coordinate):
        self.position = position
        super().__init__(f"Position {position} is outside the board")


class EmptySquareInWord(GamePlayError):
    def __init__(self):
        super().__init__("Found an empty square inside a word")


class NonExistentPlayer(GamePlayError):
    def __init__(self, index: int):
        self.index = index
        super().__init__(f"Player {index} does not exist")


class SelfSwap(GamePlayError):
    def __init__(self):
        super().__init__("Can't swap a tile with itself")


class UnoccupiedSwap(GamePlayError):
    def __init__(self):
        super().__init__("Must swap between occupied squares")


class UnownedSwap(GamePlayError):
    def __init__(self):
        super().__init__("Can't swap with an opponent's tile")


class DisjointSwap(GamePlayError):
    def __init__(self):
        super().__init__("Can only swap tiles that are connected")


class NoSwapping(GamePlayError):
    def __init__(self):
        super().__init__("Swapping is not allowed in this game")


class NoopSwap(GamePlayError):
    def __init__(self):
        super().__init__("Can't swap identical letters")


class TooManySwaps(GamePlayError):
    def __init__(self, count: int):
        self.count = count
        times = "twice" if count == 2 else f"{count} times"
        super().__init__(f"Can't swap {times} in a row")


class OccupiedPlace(GamePlayError):
    def __init__(self):
        super().__init__("Can't place on an occupied square")


class NonAdjacentPlace(GamePlayError):
    def __init__(self):
        super().__init__("Must place next to your own tiles or dock")


class PlayerDoesNotHaveTile(GamePlayError):
    def __init__(self, player: int, tile: str):
        self.player = player
        self.tile = tile
        super().__init__(f"Player {player} does not have the tile '{tile}'")


class NotYourTurn(GamePlayError):
    def __init__(self, player: int, expected: Optional[int]):
        self.player = player
        self.expected = expected
        super().__init__(f"Player {player} can't play, it is player {expected}'s turn")


class GameAlreadyOver(GamePlayError):
    def __init__(self, winner: Optional[int]):
        self.winner = winner
        super().__init__(f"Game is already over, player {winner} won")


class GameNotStarted(GamePlayError):
    def __init__(self):
        super().__init__("Game has not started yet")


class InvalidGameSetup(GamePlayError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Can't start game: {reason}")
