"""Tests for the NPC minimax search."""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from truncate.ai.scoring import NPCParams
from truncate.ai.search import (
    Arborist, Caches, best_move, brute_force, instrument_unknown_game_state,
    possible_moves, possible_swaps,
)
from truncate.core.bag import TileBag
from truncate.core.board import Board, Coordinate
from truncate.core.game import Game
from truncate.core.judge import WILDCARD, Judge
from truncate.core.moves import Place, Swap
from truncate.core.rules import GameRules

WORDS = ["BIG", "FAT", "JOLLY", "AND", "SILLY", "FOLK", "ARTS", "AT", "TA", "SAT", "TEA", "EAT"]

WIN_BOARD = (
    "__ __ S0 |0 __\n"
    "__ __ T0 __ __\n"
    "__ A0 R0 __ __\n"
    "D0 B0 __ X1 __\n"
    "N0 __ __ X1 __\n"
    "__ __ X1 X1 __\n"
    "#1 #1 |1 #1 #1"
)

OPEN_BOARD = (
    "~~ ~~ |0 ~~ ~~\n"
    "__ S0 O0 __ __\n"
    "__ T0 __ __ __\n"
    "__ R0 __ __ __\n"
    "__ __ T1 __ __\n"
    "__ __ A1 __ __\n"
    "__ __ R1 __ __\n"
    "~~ ~~ |1 ~~ ~~"
)


def c(x, y):
    return Coordinate(x, y)


def make_game(board, hand, first_player=0):
    """A started game with `hand` given to the player about to move."""
    game = Game(
        Board.from_string(board),
        bag=TileBag.custom([1] * 26, seed=3),
        rules=GameRules.generation(0),
        judge=Judge.from_words(WORDS),
        clock=lambda: 0.0,
    )
    game.add_player("Human")
    game.add_player("Bot")
    game.start(first_player=first_player)
    game.players[first_player].hand = list(hand)
    return game


class TestArborist:
    def test_uncapped(self):
        arborist = Arborist.pruning()
        for _ in range(1000):
            arborist.tick()
        assert arborist.prune
        assert arborist.assessed == 1000
        assert not arborist.exhausted
        assert arborist.under_cap()

    def test_capped(self):
        arborist = Arborist.exhaustive().capped(2)
        assert not arborist.prune
        arborist.tick()
        arborist.tick()
        assert not arborist.under_cap()
        assert not arborist.exhausted
        arborist.tick()
        assert arborist.exhausted


class TestPossibleMoves:
    def test_each_distinct_tile_on_each_square(self):
        game = make_game(
            "~~ |0 ~~\n"
            "__ __ __\n"
            "__ __ __\n"
            "~~ |1 ~~",
            "BAA",
        )
        assert possible_moves(game) == [
            Place(0, "A", c(1, 1)),
            Place(0, "B", c(1, 1)),
        ]

    def test_follows_the_players_tiles(self):
        game = make_game(
            "~~ |0 ~~\n"
            "__ A0 __\n"
            "__ __ __\n"
            "~~ |1 ~~",
            "E",
        )
        positions = {move.position for move in possible_moves(game)}
        assert positions == {c(0, 1), c(2, 1), c(1, 2)}

    def test_second_player_starts_from_their_side(self):
        game = make_game(
            "~~ |0 ~~\n"
            "__ __ __\n"
            "__ __ __\n"
            "__ A1 __\n"
            "~~ |1 ~~",
            "E",
            first_player=1,
        )
        moves = possible_moves(game)
        assert all(move.player == 1 for move in moves)
        assert {move.position for move in moves} == {c(0, 3), c(2, 3), c(1, 2)}
        assert moves[0].position == c(2, 3)

    def test_swaps(self):
        game = make_game(
            "~~ |0 ~~\n"
            "__ A0 __\n"
            "__ B0 __\n"
            "__ __ __\n"
            "~~ |1 ~~",
            "E",
        )
        swaps = possible_swaps(game)
        assert len(swaps) == 2
        assert set(swaps) == {Swap(0, (c(1, 1), c(1, 2)))}

    def test_no_swaps_between_identical_tiles(self):
        game = make_game(
            "~~ |0 ~~\n"
            "__ A0 __\n"
            "__ A0 __\n"
            "__ __ __\n"
            "~~ |1 ~~",
            "E",
        )
        assert possible_swaps(game) == []


class TestInstrumentation:
    def test_hidden_state_is_replaced(self):
        game = make_game(OPEN_BOARD, "SEAT")
        game.players[0].time_remaining = 100.0
        instrument_unknown_game_state(game, 0, 3, 1)

        assert game.players[1].hand == [WILDCARD]
        assert game.players[0].hand_capacity == 0
        assert game.players[0].hand == list("SEAT")
        assert all(p.time_remaining is None for p in game.players)
        assert game.rules.battle_delay == 0

    def test_hand_collapses_above_horizon(self):
        game = make_game(OPEN_BOARD, "SEAT")
        alias = game.judge.set_alias("SEAT")
        instrument_unknown_game_state(game, 0, 2, 1)
        assert game.players[0].hand == [alias]


class TestBestMove:
    def test_takes_the_win(self):
        game = make_game(WIN_BOARD, "AE")
        dictionary = game.judge.dictionary

        move, score = best_move(game, dictionary, dictionary, depth=2)
        assert move == Place(0, "A", c(0, 5))
        assert score.self_win

    def test_game_is_not_modified(self):
        game = make_game(WIN_BOARD, "AE")
        before = str(game.board)
        best_move(game, game.judge.dictionary, game.judge.dictionary, depth=2)
        assert str(game.board) == before
        assert game.players[0].hand == ["A", "E"]
        assert game.winner is None
        assert game.judge.aliases == {}

    def test_pruning_matches_exhaustive(self):
        game = make_game(OPEN_BOARD, "SEAT", first_player=1)
        dictionary = game.judge.dictionary

        exhaustive = Arborist.exhaustive()
        exhaustive_move, _ = best_move(game, dictionary, dictionary, 2, exhaustive)
        pruned = Arborist.pruning()
        pruned_move, _ = best_move(game, dictionary, dictionary, 2, pruned)

        assert pruned_move == exhaustive_move
        assert pruned.assessed <= exhaustive.assessed

    def test_deterministic(self):
        game = make_game(OPEN_BOARD, "SEAT", first_player=1)
        dictionary = game.judge.dictionary

        first, first_score = best_move(game, dictionary, dictionary, 2)
        for _ in range(5):
            move, score = best_move(game, dictionary, dictionary, 2)
            assert move == first
            assert score == first_score

    def test_capped_search_still_moves(self):
        game = make_game(OPEN_BOARD, "SEAT", first_player=1)
        arborist = Arborist.pruning().capped(5)

        move, _ = best_move(game, game.judge.dictionary, game.judge.dictionary, 3, arborist)
        assert isinstance(move, (Place, Swap))
        assert move.player == 1
        assert arborist.exhausted

    def test_capped_single_pass_keeps_its_move(self):
        game = make_game(OPEN_BOARD, "SEAT", first_player=1)
        arborist = Arborist.pruning().capped(3)

        move, _ = best_move(game, game.judge.dictionary, game.judge.dictionary, 1, arborist)
        assert isinstance(move, (Place, Swap))
        assert move.player == 1
        assert arborist.exhausted

    def test_no_budget_falls_back_to_brute_force(self):
        game = make_game(OPEN_BOARD, "SEAT", first_player=1)
        arborist = Arborist.pruning().capped(0)

        move, _ = best_move(game, game.judge.dictionary, game.judge.dictionary, 2, arborist)
        assert move == brute_force(game)
        assert move.player == 1

    def test_params_choose_the_arborist(self):
        game = make_game(WIN_BOARD, "A")
        move, _ = best_move(game, depth=1, params=NPCParams(pruning=False))
        assert move == Place(0, "A", c(0, 5))

    def test_needs_a_player_to_move(self):
        game = Game(Board.from_string(OPEN_BOARD))
        with pytest.raises(ValueError):
            best_move(game)


class TestBruteForce:
    def test_moves_furthest_down(self):
        game = make_game(
            "~~ |0 ~~\n"
            "__ A0 __\n"
            "__ __ __\n"
            "__ __ __\n"
            "~~ |1 ~~",
            "CB",
        )
        assert brute_force(game) == Place(0, "B", c(1, 2))

    def test_moves_up_for_the_second_player(self):
        game = make_game(
            "~~ |0 ~~\n"
            "__ __ __\n"
            "__ __ __\n"
            "__ A1 __\n"
            "~~ |1 ~~",
            "Z",
            first_player=1,
        )
        assert brute_force(game) == Place(1, "Z", c(1, 2))

    def test_nowhere_to_play(self):
        game = make_game(
            "~~ |0 ~~\n"
            "~~ ~~ ~~\n"
            "__ __ __\n"
            "~~ |1 ~~",
            "A",
        )
        assert brute_force(game) is None


class TestCaches:
    def test_starts_empty(self):
        caches = Caches()
        assert caches.floods == {}
        assert caches.scores == {}
        assert caches.words == {}
