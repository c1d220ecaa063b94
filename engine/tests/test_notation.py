"""Tests for move notation and game records."""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from truncate.core.bag import TileBag
from truncate.core.board import Board, Coordinate
from truncate.core.dictionary import WordDict
from truncate.core.game import Game
from truncate.core.judge import Judge
from truncate.core.moves import Place, Swap, move_to_notation, notation_to_move
from truncate.core.notation import GameRecord, game_to_text, text_to_game
from truncate.core.rules import GameRules

BOARD = (
    "~~ ~~ |0 ~~ ~~\n"
    "~~ #0 __ #0 ~~\n"
    "~~ __ __ __ ~~\n"
    "~~ #1 __ #1 ~~\n"
    "~~ ~~ |1 ~~ ~~"
)


def c(x, y):
    return Coordinate(x, y)


def started_game(seed=7):
    game = Game(Board.from_string(BOARD), rules=GameRules.generation(0), seed=seed,
                clock=lambda: 0.0)
    game.add_player("Alice")
    game.add_player("Bob")
    game.start()
    return game


class TestMoveNotation:
    def test_place(self):
        move = Place(0, "A", c(1, 3))
        assert move_to_notation(move) == "A@1,3"
        assert notation_to_move("A@1,3", 0) == move

    def test_swap(self):
        move = Swap(1, (c(1, 3), c(2, 3)))
        assert move_to_notation(move) == "1,3-2,3"
        assert notation_to_move(" 1,3-2,3 ", 1) == move

    def test_swap_order_doesnt_matter(self):
        assert Swap(0, (c(1, 1), c(2, 2))) == Swap(0, (c(2, 2), c(1, 1)))
        assert hash(Swap(0, (c(1, 1), c(2, 2)))) == hash(Swap(0, (c(2, 2), c(1, 1))))
        assert Swap(0, (c(1, 1), c(2, 2))) != Swap(1, (c(1, 1), c(2, 2)))

    def test_large_coordinates(self):
        assert notation_to_move("z@12,104", 0) == Place(0, "z", c(12, 104))

    @pytest.mark.parametrize("notation", ["", "A@1", "AB@1,2", "1,2-3", "A@-1,2", "1,2,3-4,5"])
    def test_invalid(self, notation):
        with pytest.raises(ValueError):
            notation_to_move(notation, 0)


class TestGameRecord:
    def test_empty_game(self):
        text = game_to_text(started_game(), generation=0)
        assert '[Event "Truncate Game"]' in text
        assert '[Player0 "Alice"]' in text
        assert '[Player1 "Bob"]' in text
        assert '[Result "*"]' in text
        assert '[Seed "7"]' in text
        assert BOARD in text

    def test_unstarted_game(self):
        game = Game(Board.from_string(BOARD))
        with pytest.raises(ValueError):
            GameRecord.from_game(game)

    def test_moves_are_numbered(self):
        game = started_game()
        tile = game.players[0].hand[0]
        game.play_turn(Place(0, tile, c(2, 1)))
        other = game.players[1].hand[0]
        game.play_turn(Place(1, other, c(2, 3)))

        text = game_to_text(game, generation=0)
        assert f"1. {tile}@2,1 {other}@2,3" in text

    def test_records_starting_board(self):
        game = started_game()
        game.play_turn(Place(0, game.players[0].hand[0], c(2, 1)))
        record = GameRecord.from_game(game, generation=0)
        assert record.board == BOARD

    def test_parse(self):
        text = (
            '[Event "Club Night"]\n'
            '[Date "2026.01.18"]\n'
            '[Seed "1234"]\n'
            '[Generation "0"]\n'
            '[Player0 "Alice"]\n'
            '[Player1 "Bob"]\n'
            '[Result "0"]\n'
            '\n'
            f'{BOARD}\n'
            '\n'
            '1. A@2,1 B@2,3 2. 2,1-2,2\n'
        )
        record = GameRecord.from_text(text)
        assert record.event == "Club Night"
        assert record.date == "2026.01.18"
        assert record.seed == 1234
        assert record.generation == 0
        assert record.players == ["Alice", "Bob"]
        assert record.result == "0"
        assert record.board == BOARD
        assert record.moves == ["A@2,1", "B@2,3", "2,1-2,2"]
        assert record.parsed_moves() == [
            Place(0, "A", c(2, 1)),
            Place(1, "B", c(2, 3)),
            Swap(0, (c(2, 1), c(2, 2))),
        ]

    def test_text_round_trip(self):
        record = GameRecord(seed=3, generation=0, players=["A", "B"], board=BOARD,
                            moves=["A@2,1", "B@2,3"] * 30, result="1")
        parsed = GameRecord.from_text(record.to_text())
        assert parsed == record
        assert all(len(line) <= 80 for line in record.to_text().split("\n"))

    def test_bad_board(self):
        with pytest.raises(ValueError):
            GameRecord.from_text('[Event "x"]\n\n__ __\n__\n\nA@1,1\n')

    def test_missing_board(self):
        with pytest.raises(ValueError):
            GameRecord.from_text('[Event "x"]\n')

    def test_bad_move(self):
        with pytest.raises(ValueError):
            GameRecord.from_text(f'[Event "x"]\n\n{BOARD}\n\n1. A@2,1 nonsense\n')


class TestReplay:
    def test_replay_matches_game(self):
        game = started_game(seed=99)
        game.play_turn(Place(0, game.players[0].hand[0], c(2, 1)))
        game.play_turn(Place(1, game.players[1].hand[0], c(2, 3)))

        replayed = text_to_game(game_to_text(game, generation=0))
        assert replayed.board == game.board
        assert [p.hand for p in replayed.players] == [p.hand for p in game.players]
        assert replayed.move_sequence == game.move_sequence
        assert replayed.next_player == game.next_player

    def test_replay_uses_dictionary(self):
        record = GameRecord(
            seed=5, generation=0, players=["A", "B"],
            board=(
                "~~ |0 ~~\n"
                "__ __ __\n"
                "__ __ __\n"
                "~~ |1 ~~"
            ),
        )
        game = record.replay(WordDict.from_words(["at"]))
        assert "at" in game.judge.dictionary
        assert game.turn_count == 0
