"""Tests for the tile bag."""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from truncate.core.bag import STANDARD_DISTRIBUTION, TileBag
from truncate.core.rules import TileDistribution


def two_letter_distribution(a=5, b=5):
    return [a, b] + [0] * 24


class TestDrawing:
    def test_draws_whole_distribution(self):
        bag = TileBag.custom(two_letter_distribution(), seed=3)
        drawn = [bag.draw_tile() for _ in range(10)]
        assert drawn.count("A") == 5
        assert drawn.count("B") == 5
        assert len(bag) == 0

    def test_refills_when_empty(self):
        bag = TileBag.custom(two_letter_distribution(1, 1), seed=3)
        drawn = [bag.draw_tile() for _ in range(6)]
        assert drawn.count("A") == 3
        assert drawn.count("B") == 3

    def test_same_seed_same_draws(self):
        first = TileBag.new(seed=42)
        second = TileBag.new(seed=42)
        assert [first.draw_tile() for _ in range(30)] == [second.draw_tile() for _ in range(30)]

    def test_standard_distribution(self):
        bag = TileBag.new(TileDistribution.STANDARD)
        assert len(bag) == sum(STANDARD_DISTRIBUTION)
        assert bag.tiles.count("E") == 16
        assert bag.tiles.count("Z") == 1

    def test_bad_distribution(self):
        with pytest.raises(ValueError):
            TileBag.custom([1, 2, 3])


class TestExplicitBag:
    def test_never_refills(self):
        bag = TileBag.explicit(["X", "Y"], seed=1)
        assert sorted(bag.draw_tile() for _ in range(2)) == ["X", "Y"]
        with pytest.raises(IndexError):
            bag.draw_tile()

    def test_exhausted(self):
        bag = TileBag.explicit(["X"])
        assert not bag.exhausted
        bag.draw_tile()
        assert bag.exhausted
        bag.return_tile("X")
        assert not bag.exhausted
        assert not TileBag.custom(two_letter_distribution(1, 0)).exhausted

    def test_returned_tiles_can_be_drawn(self):
        bag = TileBag.explicit([])
        bag.return_tile("Q")
        assert len(bag) == 1
        assert bag.draw_tile() == "Q"


class TestInfiniteBag:
    def test_draws_do_not_deplete(self):
        bag = TileBag.custom(two_letter_distribution(1, 0), seed=1, infinite=True)
        assert [bag.draw_tile() for _ in range(5)] == ["A"] * 5
        assert len(bag) == 1

    def test_returns_are_ignored(self):
        bag = TileBag.custom(two_letter_distribution(1, 0), infinite=True)
        bag.return_tile("Z")
        assert len(bag) == 1


class TestDrawnTokens:
    def test_return_once(self):
        bag = TileBag.explicit(["K"])
        token = bag.draw()
        assert token.letter == "K"
        assert len(bag) == 0

        bag.return_drawn(token)
        assert len(bag) == 1
        with pytest.raises(ValueError):
            bag.return_drawn(token)

    def test_foreign_token(self):
        bag = TileBag.explicit(["K"])
        other = TileBag.explicit(["K"])
        token = other.draw()
        with pytest.raises(ValueError):
            bag.return_drawn(token)

    def test_tokens_are_distinct(self):
        bag = TileBag.explicit(["K", "K"])
        first, second = bag.draw(), bag.draw()
        assert first != second
        bag.return_drawn(second)
        bag.return_drawn(first)
        assert bag.tiles == ["K", "K"]
