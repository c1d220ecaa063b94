"""
Minimax search for the NPC player.

The search works on copies of the game: every branch copies the game and
plays the candidate move through Game.play_turn, so the simulation follows
exactly the same rules as a real turn.

The NPC judges its own words with a small dictionary (what it "knows") and
its opponent's words with a larger one (what it assumes a human knows).
Before searching, the hidden parts of the game are replaced with something
the NPC can reason about: the opponent holds a single wildcard, and the NPC
stops drawing new tiles.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Optional
import logging

from ..core.board import BoardDistances, Occupied
from ..core.dictionary import WordDict
from ..core.errors import GamePlayError
from ..core.game import Game
from ..core.judge import WILDCARD
from ..core.moves import Move, Place, Swap
from .scoring import BoardScore, NPCParams, eval_self_board_progress, static_eval

logger = logging.getLogger(__name__)

# Sort key for moves that have never been scored, so they are tried first
_UNSCORED = 2 ** 63


@dataclass
class Arborist:
    """
    Node budget for a search.

    Every simulated move ticks the counter. Once it passes the cap the
    search unwinds and returns the best result found so far.
    """
    assessed: int = 0
    prune: bool = True
    cap: Optional[int] = None

    @classmethod
    def pruning(cls) -> Arborist:
        return cls(prune=True)

    @classmethod
    def exhaustive(cls) -> Arborist:
        """No pruning, for checking that pruning doesn't change the result."""
        return cls(prune=False)

    def capped(self, cap: int) -> Arborist:
        self.cap = cap
        return self

    def tick(self) -> None:
        self.assessed += 1

    @property
    def exhausted(self) -> bool:
        return self.cap is not None and self.assessed > self.cap

    def under_cap(self) -> bool:
        return self.cap is None or self.assessed < self.cap


@dataclass
class Caches:
    """Memoized work shared across one best_move call."""
    # Board shape -> (evaluating player's flood, opponent's flood)
    floods: dict[tuple[int, ...], tuple[BoardDistances, BoardDistances]] = field(default_factory=dict)
    # (move, layer) -> score of that move when last searched at that layer
    scores: dict[tuple[Move, int], int] = field(default_factory=dict)
    # Word validity, shared with Judge.valid
    words: dict = field(default_factory=dict)


def best_move(game: Game, self_dictionary: Optional[WordDict] = None,
              opponent_dictionary: Optional[WordDict] = None, depth: int = 3,
              arborist: Optional[Arborist] = None,
              params: Optional[NPCParams] = None) -> tuple[Move, BoardScore]:
    """
    Pick a move for the player whose turn it is.

    Args:
        game: Game to move in (not modified)
        self_dictionary: Words the NPC will play and recognise
        opponent_dictionary: Words the NPC expects its opponent to play
        depth: Plies to search
        arborist: Node budget, shared with the caller to read how much was searched
        params: Scoring weights and search options

    Returns:
        (move, score) for the chosen move
    """
    params = params or NPCParams()
    if game.next_player is None:
        raise ValueError("Game has no player to move")
    evaluation_player = game.next_player
    if arborist is None:
        arborist = Arborist.pruning() if params.pruning else Arborist.exhaustive()
    caches = Caches()

    base_score = static_eval(game, self_dictionary, evaluation_player, depth, caches, params)

    def run_mini(partial_depth: int, swapping: bool) -> tuple[BoardScore, Optional[Move]]:
        return minimax(
            game.copy(), self_dictionary, opponent_dictionary,
            partial_depth, partial_depth, 0,
            BoardScore.neg_inf(), BoardScore.inf(),
            evaluation_player, swapping, arborist, caches, params,
        )

    swap_result = run_mini(1, swapping=True)

    arborist.assessed = 0
    latest: Optional[tuple[BoardScore, Optional[Move]]] = None
    looked = 0
    # Iterative deepening fills the move ordering cache for the deeper searches
    for d in range(1, depth):
        result = run_mini(d, swapping=False)
        if arborist.exhausted:
            # A cut-off pass only counts when nothing shallower found a move
            if latest is None and result[1] is not None:
                latest, looked = result, d
            break
        if result[1] is not None:
            latest, looked = result, d

    if arborist.under_cap():
        result = run_mini(depth, swapping=False)
        if result[1] is not None and (arborist.under_cap() or latest is None):
            latest, looked = result, depth

    if latest is None and swap_result[1] is None:
        fallback = brute_force(game)
        if fallback is None:
            raise ValueError("No playable move was found")
        logger.debug("Bot ran out of budget before scoring a move, falling back to %s", fallback)
        return fallback, base_score
    best_score, next_move = latest if latest is not None else (BoardScore.neg_inf(), None)

    logger.debug("Bot checked %d boards, going to a depth of %d", arborist.assessed, looked)
    logger.debug("Bot has the hand: %s", "".join(game.players[evaluation_player].hand))
    logger.debug("Chosen tree for %s has the score %s", next_move, best_score)

    swap_score, swap_move = swap_result
    if swap_move is not None:
        logger.debug("Chosen swap tree for %s has the score %s", swap_move, swap_score)
        # Never swap away a forced win
        if swap_score >= best_score or (swap_score > base_score and not best_score.self_win):
            best_score, next_move = swap_score, swap_move

    return next_move, best_score


def minimax(game: Game, self_dictionary: Optional[WordDict],
            opponent_dictionary: Optional[WordDict], total_depth: int, depth: int,
            layer: int, alpha: BoardScore, beta: BoardScore, for_player: int,
            swapping: bool, arborist: Arborist, caches: Caches,
            params: NPCParams) -> tuple[BoardScore, Optional[Move]]:
    """Alpha-beta search with `for_player` as the maximizer."""
    instrument_unknown_game_state(game, for_player, total_depth, depth)

    if depth == 0 or game.winner is not None:
        return static_eval(game, self_dictionary, for_player, depth, caches, params), None

    moves = possible_swaps(game) if swapping else possible_moves(game)
    moves.sort(key=lambda m: -caches.scores.get((m, layer), _UNSCORED))

    mover = game.next_player
    maximizing = mover == for_player
    if maximizing:
        attacker_dictionary, defender_dictionary = self_dictionary, opponent_dictionary
    else:
        attacker_dictionary, defender_dictionary = opponent_dictionary, self_dictionary

    best_score = BoardScore.neg_inf() if maximizing else BoardScore.inf()
    relevant_move = None

    for next_move in moves:
        arborist.tick()
        if arborist.exhausted:
            break

        next_turn = game.copy()
        try:
            next_turn.play_turn(next_move, attacker_dictionary, defender_dictionary, caches.words)
        except GamePlayError:
            continue

        score, _ = minimax(
            next_turn, self_dictionary, opponent_dictionary, total_depth, depth - 1,
            layer + 1, alpha, beta, for_player, swapping, arborist, caches, params,
        )
        # Cached from the mover's point of view so a descending sort tries their best first
        rank = score.usize_rank()
        caches.scores[(next_move, layer)] = rank if maximizing else _UNSCORED - rank

        if maximizing:
            if score > best_score:
                best_score, relevant_move = score, next_move
            if best_score > alpha:
                alpha = best_score
        else:
            if score < best_score:
                best_score, relevant_move = score, next_move
            if best_score < beta:
                beta = best_score

        if arborist.prune and beta <= alpha:
            break

    return best_score, relevant_move


def possible_moves(game: Game) -> list[Move]:
    """Every placement of a distinct hand tile on a playable square."""
    player = game.next_player
    tiles = sorted(set(game.players[player].hand))
    squares = game.board.playable_positions(player, game.rules.truncation)

    pairs = [(sq, tile) for sq in sorted(squares) for tile in tiles]
    pairs.sort(key=lambda pair: pair[0], reverse=player != 0)
    return [Place(player, tile, position) for position, tile in pairs]


def possible_swaps(game: Game) -> list[Move]:
    """Every swap of two different letters within a connected group."""
    player = game.next_player
    swaps = []
    for cluster in game.board.swappable_positions(player):
        for a_pos, a_tile in cluster:
            for b_pos, b_tile in cluster:
                if a_tile != b_tile:
                    swaps.append(Swap(player, (a_pos, b_pos)))
    return swaps


def instrument_unknown_game_state(game: Game, evaluation_player: int,
                                  total_depth: int, current_depth: int) -> None:
    """Replace what the NPC can't know (or doesn't care about) before searching."""
    unknown_player = (evaluation_player + 1) % len(game.players)
    player = game.players[evaluation_player]

    # Remove timing concerns from the simulated turns
    game.rules = replace(game.rules, battle_delay=0)
    for seat in game.players:
        seat.time_remaining = None

    # No new tiles for the NPC in future turns
    player.hand_capacity = 0

    # One layer above the horizon, collapse the hand into a single combo tile
    if current_depth + 1 == total_depth:
        alias = game.judge.set_alias(player.hand)
        # Enough copies that playing them can't run out
        player.hand = [alias] * current_depth

    # Assume the opponent can play anything
    game.players[unknown_player].hand = [WILDCARD]


def brute_force(game: Game) -> Optional[Place]:
    """Greedy one-ply fallback: the placement that advances furthest down the board."""
    player = game.next_player
    best: Optional[tuple[float, Place]] = None
    for position in sorted(game.board.playable_positions(player, game.rules.truncation)):
        for tile in sorted(set(game.players[player].hand)):
            trial = game.board.copy()
            trial.set_square(position, Occupied(player, tile))
            score = eval_self_board_progress(trial, player)
            if best is None or score > best[0]:
                best = (score, Place(player, tile, position))
    return best[1] if best is not None else None
