"""Tests for word dictionaries."""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from truncate.core.dictionary import WordData, WordDict


class TestWordDict:
    def test_case_insensitive(self):
        dictionary = WordDict.from_words(["Big", "BAG"])
        assert "big" in dictionary
        assert "BIG" in dictionary
        assert "bag" in dictionary
        assert "bog" not in dictionary
        assert 3 not in dictionary

    def test_from_lines(self):
        dictionary = WordDict.from_lines([
            "art 12 3.5",
            "*rude 1 0.2",
            "",
            "zyzzyva",
        ])
        assert len(dictionary) == 3
        assert dictionary.get("art") == WordData(12, 3.5, False)
        assert dictionary.get("rude").objectionable
        assert dictionary.get("zyzzyva") == WordData()

    def test_bad_line(self):
        with pytest.raises(ValueError, match="line 2"):
            WordDict.from_lines(["art 1 1.0", "bad many words"])

    def test_load(self, tmp_path):
        path = tmp_path / "words.txt"
        path.write_text("jolly 4 1.5\nfolk 2 0.5\n", encoding="utf-8")
        dictionary = WordDict.load(path)
        assert sorted(dictionary) == ["folk", "jolly"]

    def test_most_common(self):
        dictionary = WordDict({
            "rare": WordData(rel_freq=0.1),
            "common": WordData(rel_freq=9.0),
            "middling": WordData(rel_freq=2.0),
        })
        assert sorted(dictionary.most_common(2)) == ["common", "middling"]

    def test_filtered(self):
        dictionary = WordDict({
            "nice": WordData(),
            "rude": WordData(objectionable=True),
        })
        clean = dictionary.filtered(lambda word, data: not data.objectionable)
        assert list(clean) == ["nice"]
        assert len(dictionary) == 2
