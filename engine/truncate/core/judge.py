"""
Battle resolution.

When a placed tile touches opposing squares, the words through the placed
tile (attackers) fight the words through the touched squares (defenders):

- No attackers or no defenders: no battle.
- Any invalid attacker: the defender wins.
- A bomb tile in an attacking word wins outright.
- A defender is weak if it is invalid, or if the longest attacker is at
  least `length_delta` letters longer than it. Under validity or strength
  defense towns and docks are judged like any other defender; under
  contact defense a town is only weak once every word beside it is.
- The attacker wins against the weak defenders, if there are any.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Union
import string

from .board import Board, Coordinate, Occupied, Town
from .dictionary import WordDict
from .reporting import BattleReport, BattleWord
from .rules import (
    BattleRules, BeatenByContact, BeatenWithDefenseStrength, TownDefense,
)

BOMB = "¤"
WILDCARD = "*"
TOWN_GLYPH = "#"
DOCK_GLYPH = "|"

# Alias symbols are drawn from the Unicode private use area
_ALIAS_BASE = 0xE000

WordCache = dict[tuple[int, str, tuple], Optional[str]]


@dataclass(frozen=True)
class NoBattle:
    def __str__(self) -> str:
        return "No battle"


@dataclass(frozen=True)
class DefenderWins:
    def __str__(self) -> str:
        return "Defender wins"


@dataclass(frozen=True)
class AttackerWins:
    losers: tuple[int, ...] = ()  # Indices of the defeated defending words

    def __str__(self) -> str:
        return f"Attacker wins against {list(self.losers)}"


Outcome = Union[NoBattle, DefenderWins, AttackerWins]


def is_structure_word(word: str) -> bool:
    """Whether a defending word is a town or dock rather than tiles."""
    return len(word) > 0 and all(c in (TOWN_GLYPH, DOCK_GLYPH) for c in word)


class Judge:
    """Decides battles using a dictionary handle supplied by the host."""

    def __init__(self, dictionary: Optional[WordDict] = None):
        self.dictionary = dictionary if dictionary is not None else WordDict()
        self.aliases: dict[str, tuple[str, ...]] = {}

    @classmethod
    def from_words(cls, words: Iterable[str]) -> Judge:
        return cls(WordDict.from_words(words))

    def set_alias(self, letters: Iterable[str]) -> str:
        """Register a symbol that may stand for any one of `letters`."""
        options = tuple(sorted({c.lower() for c in letters}))
        for symbol, existing in self.aliases.items():
            if existing == options:
                return symbol
        symbol = chr(_ALIAS_BASE + len(self.aliases))
        self.aliases[symbol] = options
        return symbol

    def valid(self, word: str, dictionary: Optional[WordDict] = None,
              cache: Optional[WordCache] = None) -> Optional[str]:
        """Return the dictionary word `word` resolves to, or None.

        Bomb tiles are always valid. A wildcard or alias resolves to the
        first substitution (in alphabetical order) that forms a word.
        """
        if BOMB in word:
            return word.upper()
        dictionary = dictionary if dictionary is not None else self.dictionary

        # Alias symbols are per judge, so the key carries what they stand for
        key = (id(dictionary), word, tuple(self.aliases[c] for c in word if c in self.aliases))
        if cache is not None and key in cache:
            return cache[key]
        resolved = self._resolve(word, dictionary)
        if cache is not None:
            cache[key] = resolved
        return resolved

    def _resolve(self, word: str, dictionary: WordDict) -> Optional[str]:
        for i, c in enumerate(word):
            if c == WILDCARD:
                options: Sequence[str] = string.ascii_lowercase
            elif c in self.aliases:
                options = self.aliases[c]
            else:
                continue
            for letter in options:
                resolved = self._resolve(word[:i] + letter + word[i + 1:], dictionary)
                if resolved is not None:
                    return resolved
            return None
        return word.upper() if word in dictionary else None

    def battle(self, attackers: Sequence[str], defenders: Sequence[str],
               battle_rules: Optional[BattleRules] = None,
               town_defense: Optional[TownDefense] = None,
               attacker_dictionary: Optional[WordDict] = None,
               defender_dictionary: Optional[WordDict] = None,
               cache: Optional[WordCache] = None) -> Optional[BattleReport]:
        """Resolve a battle, or return None when there is nothing to fight."""
        if not attackers or not defenders:
            return None
        battle_rules = battle_rules or BattleRules()

        report = BattleReport(
            attackers=[],
            defenders=[BattleWord(w) for w in defenders],
            outcome=DefenderWins(),
        )
        for word in attackers:
            resolved = self.valid(word, attacker_dictionary, cache)
            report.attackers.append(BattleWord(resolved or word, resolved is not None))

        if any(not w.valid for w in report.attackers):
            return report

        strength = town_defense.strength if isinstance(town_defense, BeatenWithDefenseStrength) else None
        for defense in report.defenders:
            if is_structure_word(defense.word):
                defense.valid = strength is not None
                continue
            resolved = self.valid(defense.word, defender_dictionary, cache)
            if resolved is not None:
                defense.word = resolved
            defense.valid = resolved is not None

        if any(BOMB in word for word in attackers):
            report.outcome = AttackerWins(())
            return report

        longest = max(len(word) for word in attackers)

        def weak(defense: BattleWord) -> bool:
            length = strength if is_structure_word(defense.word) and strength is not None else len(defense.word)
            return not defense.valid or length + battle_rules.length_delta <= longest

        weak_defenders = [i for i, d in enumerate(report.defenders) if weak(d)]

        # A contact-defended town has no strength of its own and stands
        # while any tiles defending beside it hold
        if town_defense is None or isinstance(town_defense, BeatenByContact):
            words = [i for i, d in enumerate(report.defenders) if not is_structure_word(d.word)]
            if not all(i in weak_defenders for i in words):
                weak_defenders = [i for i in weak_defenders if i in words]

        if weak_defenders:
            report.outcome = AttackerWins(tuple(sorted(weak_defenders)))
        return report

    def outcome(self, attackers: Sequence[str], defenders: Sequence[str],
                battle_rules: Optional[BattleRules] = None,
                town_defense: Optional[TownDefense] = None,
                attacker_dictionary: Optional[WordDict] = None,
                defender_dictionary: Optional[WordDict] = None) -> Outcome:
        report = self.battle(attackers, defenders, battle_rules, town_defense,
                             attacker_dictionary, defender_dictionary)
        return report.outcome if report is not None else NoBattle()

    @staticmethod
    def winning_contacts(board: Board, town_defense: Optional[TownDefense] = None
                         ) -> list[tuple[Coordinate, int]]:
        """Towns touched by an opponent's tile, with the toucher's index.

        Under contact defense any touch counts; otherwise the town must
        already have been defeated in battle.
        """
        by_contact = town_defense is None or isinstance(town_defense, BeatenByContact)
        contacts = []
        for town in board.towns:
            square = board.get(town)
            if not isinstance(square, Town):
                continue
            if not (by_contact or square.defeated):
                continue
            for _, neighbour in board.neighbouring_squares(town):
                if isinstance(neighbour, Occupied) and neighbour.player != square.player:
                    contacts.append((town, neighbour.player))
                    break
        return contacts

    @staticmethod
    def winner(board: Board, town_defense: Optional[TownDefense] = None) -> Optional[int]:
        contacts = Judge.winning_contacts(board, town_defense)
        return contacts[0][1] if contacts else None
