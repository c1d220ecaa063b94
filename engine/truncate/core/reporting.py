"""
Change log entries produced by a turn.

Game.play_turn replaces Game.recent_changes with the list of changes the
move caused. Observers (a UI, a network layer) read them; the engine itself
never consumes them.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union, TYPE_CHECKING

if TYPE_CHECKING:
    from .board import Coordinate, Square
    from .judge import Outcome


class BoardChangeAction(Enum):
    ADDED = "Added"
    SWAPPED = "Swapped"
    DEFEATED = "Defeated"
    TRUNCATED = "Truncated"
    EXPLODED = "Exploded"
    VICTORIOUS = "Victorious"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class BoardChange:
    action: BoardChangeAction
    coordinate: Coordinate
    square: Square

    def __str__(self) -> str:
        return f"The square {self.square} at {self.coordinate} was {self.action}"


@dataclass(frozen=True)
class HandChange:
    player: int
    removed: tuple[str, ...] = ()
    added: tuple[str, ...] = ()

    def __str__(self) -> str:
        return (f"Player {self.player} used tiles {''.join(self.removed)} "
                f"and gained tiles {''.join(self.added)}")


@dataclass(frozen=True)
class TimeChange:
    player: int
    time_change: int  # Seconds, negative for penalties
    reason: str

    def __str__(self) -> str:
        return f"Player {self.player} time changed by {self.time_change}s: {self.reason}"


@dataclass
class BattleWord:
    word: str
    valid: Optional[bool] = None  # None when the word was never judged

    def __str__(self) -> str:
        status = {True: "Valid", False: "Invalid", None: "Unknown"}[self.valid]
        return f"{self.word} ({status})"


@dataclass
class BattleReport:
    attackers: list[BattleWord] = field(default_factory=list)
    defenders: list[BattleWord] = field(default_factory=list)
    outcome: Optional[Outcome] = None
    battle_number: Optional[int] = None

    def __str__(self) -> str:
        attackers = ", ".join(str(w) for w in self.attackers)
        defenders = ", ".join(str(w) for w in self.defenders)
        return f"Battle Report\nAttackers: {attackers}\nDefenders: {defenders}\nOutcome: {self.outcome}"


Change = Union[BoardChange, HandChange, TimeChange, BattleReport]
