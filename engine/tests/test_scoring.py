"""Tests for NPC position scoring."""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from truncate.ai.scoring import (
    BoardScore, DefenceEvalType, NPCParams, WordQualityScores,
    eval_min_distance_to_towns, eval_min_raced_distance_to_towns,
    eval_self_board_progress, eval_word_quality, static_eval,
)
from truncate.ai.search import Caches
from truncate.core.board import Board, Coordinate
from truncate.core.game import Game
from truncate.core.judge import Judge
from truncate.core.rules import GameRules


class TestBoardScore:
    def test_infinities(self):
        top = BoardScore.inf()
        base = BoardScore()
        bottom = BoardScore.neg_inf()

        assert top > base
        assert bottom < base
        assert top > bottom

    def test_validity_ranks_higher(self):
        a = BoardScore(word_quality=WordQualityScores(word_validity=0.6))
        b = BoardScore(word_quality=WordQualityScores(word_validity=0.5))
        assert a > b

    def test_earlier_wins_rank_higher(self):
        base = BoardScore()
        early_win = BoardScore(turn_number=1, self_win=True)
        late_win = BoardScore(turn_number=0, self_win=True)

        assert early_win > base
        assert late_win > base
        assert early_win > late_win

    def test_later_losses_rank_higher(self):
        base = BoardScore()
        early_loss = BoardScore(turn_number=1, opponent_win=True)
        late_loss = BoardScore(turn_number=0, opponent_win=True)
        late_better_loss = BoardScore(turn_number=0, opponent_win=True, self_attack=0.1)

        assert base > early_loss
        assert base > late_loss
        assert late_loss > early_loss
        assert late_better_loss > late_loss

    def test_a_win_beats_any_rank(self):
        strong = BoardScore(raced_defense=1.0, raced_attack=1.0, self_attack=1.0)
        assert BoardScore(self_win=True) > strong
        assert BoardScore(opponent_win=True) < BoardScore()
        assert BoardScore.inf() > BoardScore(self_win=True, turn_number=10)

    def test_rank_uses_weights(self):
        score = BoardScore(raced_defense=0.5, self_attack=1.0)
        assert score.rank() == pytest.approx(0.5 * 10.0 + 1.0 * 2.0)

        score.params = NPCParams(raced_defense=0.0, self_attack=1.0)
        assert score.rank() == pytest.approx(1.0)
        assert score.usize_rank() == 100000

    def test_weights_dont_affect_equality(self):
        assert BoardScore(params=NPCParams(raced_defense=1.0)) == BoardScore()


class TestWordQuality:
    def test_division(self):
        scores = WordQualityScores(1.0, 2.0, 0.5) / 2
        assert scores == WordQualityScores(0.5, 1.0, 0.25)

    def test_eval_word_quality(self):
        judge = Judge.from_words(["ART", "TRA"])
        board = Board.from_string(
            "~~ |0 ~~\n"
            "__ A0 __\n"
            "__ R0 __\n"
            "__ T0 __\n"
            "~~ |1 ~~"
        )
        game = Game(board, judge=judge)
        game.add_player("A")
        game.add_player("B")

        scores = eval_word_quality(game, judge.dictionary, 0)
        assert scores.word_validity == 1.0
        assert scores.word_length == pytest.approx(2 / 5)

        board.set(Coordinate(1, 3), 0, "X")
        scores = eval_word_quality(game, judge.dictionary, 0)
        assert scores.word_validity == 0.0

    def test_no_words(self):
        game = Game(Board.new(3, 3))
        assert eval_word_quality(game, game.judge.dictionary, 0) == WordQualityScores()


DEFENSE_BOARD = (
    "~~ ~~ ~~ |0 ~~ ~~ ~~\n"
    "__ __ S0 O0 __ __ __\n"
    "__ __ __ __ __ __ __\n"
    "__ __ __ __ __ __ __\n"
    "__ __ A1 T1 __ H1 __\n"
    "__ __ __ A1 __ A1 __\n"
    "#1 #1 __ R1 A1 T1 #1\n"
    "~~ ~~ ~~ |1 ~~ ~~ ~~"
)


class TestDefense:
    def test_open_town(self):
        board = Board.from_string(DEFENSE_BOARD)
        dists = board.flood_fill_attacks(0)
        score = eval_min_distance_to_towns(board, dists, 1, DefenceEvalType.ATTACKABLE)
        assert score == pytest.approx(0.4)

    def test_blocked_towns(self):
        board = Board.from_string(DEFENSE_BOARD.replace("__ __ A1 T1", "__ H1 A1 T1"))
        dists = board.flood_fill_attacks(0)
        score = eval_min_distance_to_towns(board, dists, 1, DefenceEvalType.ATTACKABLE)
        assert score == 1.0

    def test_no_towns(self):
        board = Board.from_string("~~ |0 ~~\n__ __ __\n~~ |1 ~~")
        dists = board.flood_fill_attacks(0)
        assert eval_min_distance_to_towns(board, dists, 1, DefenceEvalType.DIRECT) == 1.0


class TestRacedDefense:
    def test_mostly_defended(self):
        board = Board.from_string(
            "~~ ~~ ~~ |0 ~~ ~~ ~~\n"
            "__ __ S0 O0 __ __ __\n"
            "__ __ __ __ __ __ __\n"
            "__ __ __ __ __ __ __\n"
            "__ __ __ __ __ __ __\n"
            "__ __ __ __ __ __ __\n"
            "__ __ A1 T1 __ H1 __\n"
            "__ __ __ A1 __ A1 __\n"
            "#1 #1 __ R1 A1 T1 #1\n"
            "~~ ~~ ~~ |1 ~~ ~~ ~~"
        )
        opponent_dists = board.flood_fill_attacks(0)
        own_dists = board.flood_fill_attacks(1)
        assert opponent_dists.attackable_distance(Coordinate(0, 8)) == 8
        assert own_dists.attackable_distance(Coordinate(0, 8)) == 3

        assert eval_min_raced_distance_to_towns(board, opponent_dists, own_dists, 1) == 1.0

    def test_even_race(self):
        board = Board.from_string(
            "~~ ~~ ~~ |0 ~~ ~~ ~~\n"
            "__ __ S0 O0 __ __ __\n"
            "__ __ __ __ __ __ __\n"
            "#1 __ __ __ __ __ __\n"
            "__ __ __ __ __ __ __\n"
            "__ __ A1 T1 __ H1 __\n"
            "__ __ __ A1 __ A1 __\n"
            "#1 #1 __ R1 A1 T1 #1\n"
            "~~ ~~ ~~ |1 ~~ ~~ ~~"
        )
        opponent_dists = board.flood_fill_attacks(0)
        own_dists = board.flood_fill_attacks(1)
        assert opponent_dists.attackable_distance(Coordinate(0, 3)) == 3
        assert own_dists.attackable_distance(Coordinate(0, 3)) == 3

        expected_max = board.width + board.height
        score = eval_min_raced_distance_to_towns(board, opponent_dists, own_dists, 1)
        assert score == pytest.approx((expected_max - 4.0) / expected_max)


class TestBoardProgress:
    def test_progress_by_player(self):
        board = Board.from_string(
            "~~ |0 ~~\n"
            "__ A0 __\n"
            "__ B0 __\n"
            "__ C1 __\n"
            "~~ |1 ~~"
        )
        assert eval_self_board_progress(board, 0) == 1 + 2
        assert eval_self_board_progress(board, 1) == board.height - 3

    def test_empty_board(self):
        assert eval_self_board_progress(Board.new(3, 3), 0) == 0


class TestStaticEval:
    def make_game(self, board):
        game = Game(Board.from_string(board), rules=GameRules.generation(0),
                    judge=Judge.from_words(["AB", "BA"]), clock=lambda: 0.0)
        game.add_player("A")
        game.add_player("B")
        game.start()
        return game

    def test_scores_and_caches_floods(self):
        game = self.make_game(
            "~~ |0 ~~\n"
            "__ A0 __\n"
            "__ B0 __\n"
            "__ __ __\n"
            "__ #1 __\n"
            "~~ |1 ~~"
        )
        caches = Caches()
        score = static_eval(game, game.judge.dictionary, 0, 2, caches)

        assert score.turn_number == 2
        assert score.word_quality.word_validity == 1.0
        assert not score.self_win
        assert not score.opponent_win
        assert list(caches.floods) == [game.board.get_shape()]
        assert 0.0 <= score.self_attack <= 1.0

    def test_without_dictionary(self):
        game = self.make_game(
            "~~ |0 ~~\n"
            "__ A0 __\n"
            "__ __ __\n"
            "__ #1 __\n"
            "~~ |1 ~~"
        )
        score = static_eval(game, None, 0, 0, Caches())
        assert score.word_quality == WordQualityScores()

    def test_winner_is_recorded(self):
        game = self.make_game(
            "~~ |0 ~~\n"
            "__ A0 __\n"
            "__ __ __\n"
            "__ #1 __\n"
            "~~ |1 ~~"
        )
        game.winner = 0
        assert static_eval(game, None, 0, 0, Caches()).self_win
        assert static_eval(game, None, 1, 0, Caches()).opponent_win
