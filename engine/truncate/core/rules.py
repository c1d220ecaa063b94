"""
Rule configuration for a game.

Rule variants that carry data are small frozen dataclasses grouped with
typing.Union; variants without data are enums. GameRules bundles them and
is treated as immutable once a game has started.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union


# Town defense policies

@dataclass(frozen=True)
class BeatenByContact:
    """Touching an undefended town with a surviving tile wins."""


@dataclass(frozen=True)
class BeatenByValidity:
    """A town falls only to a valid attacking word; invalid attackers stay on the board."""


@dataclass(frozen=True)
class BeatenWithDefenseStrength:
    """A town defends like a valid word of `strength` letters."""
    strength: int = 2


TownDefense = Union[BeatenByContact, BeatenByValidity, BeatenWithDefenseStrength]


@dataclass(frozen=True)
class Destination:
    town_defense: TownDefense = field(default_factory=BeatenByContact)


@dataclass(frozen=True)
class Elimination:
    """Win by leaving every opponent with nothing on the board and nowhere to play."""


WinCondition = Union[Destination, Elimination]


class Truncation(Enum):
    ROOT = "root"  # tiles cut off from their dock are removed
    NONE = "none"


# Swapping

@dataclass(frozen=True)
class TimePenalty:
    swap_threshold: int = 2
    penalties: tuple[int, ...] = (5, 10, 30, 60, 120, 240)

    def __post_init__(self):
        if not self.penalties:
            raise ValueError("TimePenalty needs at least one penalty")


@dataclass(frozen=True)
class Disallowed:
    allowed_swaps: int = 1


SwapPenalty = Union[TimePenalty, Disallowed]


@dataclass(frozen=True)
class Contiguous:
    """Swaps only between tiles in the same connected group."""
    penalty: SwapPenalty = field(default_factory=TimePenalty)


@dataclass(frozen=True)
class Universal:
    """Swaps between any two of a player's tiles."""
    penalty: SwapPenalty = field(default_factory=TimePenalty)


@dataclass(frozen=True)
class SwappingDisabled:
    pass


Swapping = Union[Contiguous, Universal, SwappingDisabled]


# Timing

@dataclass(frozen=True)
class FreeWildcard:
    """Opponents of a player who is out of time receive a bomb tile per period."""
    period: int = 60

    def __post_init__(self):
        if self.period <= 0:
            raise ValueError(f"Overtime period must be positive, got {self.period}")


@dataclass(frozen=True)
class RemoveTiles:
    """A player who is out of time loses their most advanced tile per period."""
    period: int = 60

    def __post_init__(self):
        if self.period <= 0:
            raise ValueError(f"Overtime period must be positive, got {self.period}")


@dataclass(frozen=True)
class OvertimeElimination:
    """A player who runs out of time loses immediately."""


OvertimeRule = Union[FreeWildcard, RemoveTiles, OvertimeElimination]


@dataclass(frozen=True)
class PerPlayer:
    time_allowance: int = 600
    overtime_rule: OvertimeRule = field(default_factory=FreeWildcard)


@dataclass(frozen=True)
class NoTiming:
    pass


Timing = Union[PerPlayer, NoTiming]


class TileDistribution(Enum):
    STANDARD = "standard"


class TileBagBehaviour(Enum):
    STANDARD = "standard"
    INFINITE = "infinite"  # every drawn tile is put straight back


@dataclass(frozen=True)
class BattleRules:
    # An attacking word must be this many letters longer than a valid defender
    length_delta: int = 2


@dataclass(frozen=True)
class GameRules:
    """Complete rule set for a game."""
    win_condition: WinCondition = field(default_factory=Destination)
    truncation: Truncation = Truncation.ROOT
    swapping: Swapping = field(default_factory=Contiguous)
    timing: Timing = field(default_factory=PerPlayer)
    hand_size: int = 7
    tile_distribution: TileDistribution = TileDistribution.STANDARD
    tile_bag_behaviour: TileBagBehaviour = TileBagBehaviour.STANDARD
    battle_rules: BattleRules = field(default_factory=BattleRules)
    battle_delay: int = 2  # Seconds the next player waits after a battle
    max_turns: Optional[int] = None

    @classmethod
    def generation(cls, generation: int) -> GameRules:
        """Return a preset rule set.

        Generation 0 is the classic untimed ruleset used by fixtures and
        puzzles. Generation 1 adds per-player clocks with free wildcards.
        """
        if generation == 0:
            return cls(
                timing=NoTiming(),
                swapping=Contiguous(TimePenalty()),
                battle_delay=0,
            )
        if generation == 1:
            return cls()
        raise ValueError(f"Unknown rules generation: {generation}")

    @property
    def town_defense(self) -> Optional[TownDefense]:
        if isinstance(self.win_condition, Destination):
            return self.win_condition.town_defense
        return None

    @property
    def swap_penalty(self) -> Optional[SwapPenalty]:
        if isinstance(self.swapping, (Contiguous, Universal)):
            return self.swapping.penalty
        return None
