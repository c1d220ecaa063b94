"""
Static evaluation of a game position for the NPC.

A BoardScore collects a handful of normalized components, each in [0, 1]
where higher is better for the evaluating player. They are combined into a
single rank with the weights in NPCParams. Wins and losses are compared
before rank so that an earlier win (or a later loss) always ranks higher.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional
import math

from ..core.board import Board, BoardDistances, Coordinate, Occupied, Town
from ..core.dictionary import WordDict

if TYPE_CHECKING:
    from ..core.game import Game
    from .search import Caches


@dataclass
class NPCParams:
    """Weights for each score component, plus search options."""
    raced_defense: float = 10.0
    raced_attack: float = 2.0
    self_defense: float = 1.0
    self_attack: float = 2.0
    direct_defence: float = 1.0
    direct_attack: float = 1.0
    word_validity: float = 2.0
    word_length: float = 1.0
    word_extensibility: float = 1.0
    pruning: bool = True  # Alpha-beta pruning in the search


@dataclass
class WordQualityScores:
    word_length: float = 0.0
    word_validity: float = 0.0
    word_extensibility: float = 0.0

    def __truediv__(self, divisor: float) -> WordQualityScores:
        return WordQualityScores(
            self.word_length / divisor,
            self.word_validity / divisor,
            self.word_extensibility / divisor,
        )


@dataclass
class BoardScore:
    """
    Evaluation of one position.

    turn_number is the remaining search depth when the position was
    scored, so a higher number means the position was reached sooner.
    """
    infinity: bool = False
    neg_infinity: bool = False
    turn_number: int = 0
    word_quality: WordQualityScores = field(default_factory=WordQualityScores)
    raced_defense: float = 0.0
    raced_attack: float = 0.0
    self_defense: float = 0.0
    self_attack: float = 0.0
    direct_defence: float = 0.0
    direct_attack: float = 0.0
    self_win: bool = False
    opponent_win: bool = False
    params: NPCParams = field(default_factory=NPCParams, compare=False, repr=False)
    board: Optional[Board] = field(default=None, compare=False, repr=False)

    @classmethod
    def inf(cls) -> BoardScore:
        return cls(infinity=True)

    @classmethod
    def neg_inf(cls) -> BoardScore:
        return cls(neg_infinity=True)

    def rank(self) -> float:
        p = self.params
        return (
            self.raced_defense * p.raced_defense
            + self.raced_attack * p.raced_attack
            + self.self_defense * p.self_defense
            + self.self_attack * p.self_attack
            + self.direct_defence * p.direct_defence
            + self.direct_attack * p.direct_attack
            + self.word_quality.word_validity * p.word_validity
            + self.word_quality.word_length * p.word_length
            + self.word_quality.word_extensibility * p.word_extensibility
        )

    def usize_rank(self) -> int:
        """Rank as an integer, for caching and move ordering."""
        return int(self.rank() * 100000)

    def _compare(self, other: BoardScore) -> int:
        if self.infinity != other.infinity:
            return 1 if self.infinity else -1
        if self.neg_infinity != other.neg_infinity:
            return -1 if self.neg_infinity else 1

        if self.self_win != other.self_win:
            return 1 if self.self_win else -1
        if self.self_win:
            # Earlier wins rank higher
            return (self.turn_number > other.turn_number) - (self.turn_number < other.turn_number)

        if self.opponent_win != other.opponent_win:
            return -1 if self.opponent_win else 1
        if self.opponent_win and self.turn_number != other.turn_number:
            # Later losses rank higher
            return 1 if self.turn_number < other.turn_number else -1

        rank, other_rank = self.rank(), other.rank()
        return (rank > other_rank) - (rank < other_rank)

    def __lt__(self, other: BoardScore) -> bool:
        return self._compare(other) < 0

    def __le__(self, other: BoardScore) -> bool:
        return self._compare(other) <= 0

    def __gt__(self, other: BoardScore) -> bool:
        return self._compare(other) > 0

    def __ge__(self, other: BoardScore) -> bool:
        return self._compare(other) >= 0


class DefenceEvalType(Enum):
    ATTACKABLE = "attackable"  # Distances that avoid playing through the opponent
    DIRECT = "direct"          # Distances straight across the board


def _player_towns(board: Board, player: int) -> list[Coordinate]:
    return [
        t for t in board.towns
        if isinstance(board.get(t), Town) and board.get(t).player == player
    ]


def eval_min_distance_to_towns(board: Board, distances: BoardDistances, defender: int,
                               defence_type: DefenceEvalType) -> float:
    """How far the closest of the defender's towns is from attack, normalized."""
    max_score = board.width + board.height
    scores = []
    for town in _player_towns(board, defender):
        if defence_type == DefenceEvalType.ATTACKABLE:
            dist = distances.attackable_distance(town)
        else:
            dist = distances.direct_distance(town)
        scores.append(max_score if dist is None else dist)
    score = min(scores) if scores else max_score
    return score / max_score


def eval_min_raced_distance_to_towns(board: Board, attackers_tiles: BoardDistances,
                                     defenders_tiles: BoardDistances, defender: int) -> float:
    """
    How safely the defender wins the race to each of its towns.

    1.0 means every town can be defended before it can be attacked. Even
    races are scored as lost for the defender.
    """
    max_score = board.width + board.height
    scores = []
    for town in _player_towns(board, defender):
        can_defend_in = defenders_tiles.attackable_distance(town)
        can_attack_in = attackers_tiles.attackable_distance(town)
        can_defend_in = (max_score if can_defend_in is None else can_defend_in) + 2
        can_attack_in = max((max_score if can_attack_in is None else can_attack_in) - 2, 0)
        scores.append(max(can_defend_in - can_attack_in, 0))
    score = max(scores) if scores else max_score
    return (max_score - score) / max_score


def eval_word_quality(game: Game, dictionary: WordDict, player: int,
                      caches: Optional[Caches] = None) -> WordQualityScores:
    """Average length, validity and extensibility of the player's words."""
    board = game.board
    assessed: set[Coordinate] = set()
    num_words = 0
    scores = WordQualityScores()
    word_cache = caches.words if caches is not None else None

    for coord in board.coordinates():
        square = board.get(coord)
        if not (isinstance(square, Occupied) and square.player == player) or coord in assessed:
            continue
        runs = board.get_words(coord)
        assessed.update(c for run in runs for c in run)

        words = board.word_strings(runs)
        num_words += len(words)
        for word in words:
            resolved = game.judge.valid(word, dictionary, word_cache)
            if resolved is None:
                continue
            data = dictionary.get(resolved)
            if data is None:
                continue
            scores.word_length += min((len(resolved) - 1) / 5, 1.0)
            scores.word_extensibility += min(math.sqrt(data.extensions), 100.0) / 100
            scores.word_validity += 1.0

    return scores / num_words if num_words else scores


def eval_self_board_progress(board: Board, player: int) -> float:
    """Sum of how far down the board (from the player's side) each tile sits."""
    score = 0.0
    for y, row in enumerate(board.squares):
        row_score = y if player == 0 else board.height - y
        for square in row:
            if isinstance(square, Occupied) and square.player == player:
                score += row_score
    return score


def static_eval(game: Game, dictionary: Optional[WordDict], for_player: int, depth: int,
                caches: Caches, params: Optional[NPCParams] = None) -> BoardScore:
    """Score the position for `for_player`, `depth` plies from the search horizon."""
    params = params or NPCParams()
    board = game.board
    for_opponent = (for_player + 1) % len(game.players)

    if dictionary is not None:
        word_quality = eval_word_quality(game, dictionary, for_player, caches)
    else:
        word_quality = WordQualityScores()

    shape = board.get_shape()
    floods = caches.floods.get(shape)
    if floods is None:
        floods = (board.flood_fill_attacks(for_player), board.flood_fill_attacks(for_opponent))
        caches.floods[shape] = floods
    self_dists, opponent_dists = floods

    return BoardScore(
        turn_number=depth,
        word_quality=word_quality,
        raced_defense=eval_min_raced_distance_to_towns(board, opponent_dists, self_dists, for_player),
        raced_attack=1.0 - eval_min_raced_distance_to_towns(board, self_dists, opponent_dists, for_opponent),
        self_defense=eval_min_distance_to_towns(board, opponent_dists, for_player, DefenceEvalType.ATTACKABLE),
        self_attack=1.0 - eval_min_distance_to_towns(board, self_dists, for_opponent, DefenceEvalType.ATTACKABLE),
        direct_defence=eval_min_distance_to_towns(board, opponent_dists, for_player, DefenceEvalType.DIRECT),
        direct_attack=1.0 - eval_min_distance_to_towns(board, self_dists, for_opponent, DefenceEvalType.DIRECT),
        self_win=game.winner == for_player,
        opponent_win=game.winner == for_opponent,
        params=params,
        board=board.copy(),
    )
