"""
Word dictionaries.

A WordDict maps lowercase words to their metadata. Hosts build one (or
several) at startup and pass them into the judge, the game and the NPC;
nothing in the engine keeps a dictionary in module state.

Word list format, one word per line:

    word extensions rel_freq

A leading '*' marks a word as objectionable.
"""

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional, Union
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WordData:
    extensions: int = 0     # How many longer words contain this one
    rel_freq: float = 0.0   # Relative frequency in common usage
    objectionable: bool = False


class WordDict:
    """Lowercase word -> WordData lookup."""

    def __init__(self, words: Optional[dict[str, WordData]] = None):
        self.words: dict[str, WordData] = {
            w.lower(): data for w, data in (words or {}).items()
        }

    @classmethod
    def from_words(cls, words: Iterable[str]) -> WordDict:
        return cls({w: WordData() for w in words})

    @classmethod
    def from_lines(cls, lines: Iterable[str]) -> WordDict:
        words = {}
        for line_number, line in enumerate(lines, start=1):
            parts = line.split()
            if not parts:
                continue
            word = parts[0]
            objectionable = word.startswith("*")
            if objectionable:
                word = word[1:]
            try:
                extensions = int(parts[1]) if len(parts) > 1 else 0
                rel_freq = float(parts[2]) if len(parts) > 2 else 0.0
            except ValueError as e:
                raise ValueError(f"Bad word list entry on line {line_number}: {line!r}") from e
            words[word] = WordData(extensions, rel_freq, objectionable)
        return cls(words)

    @classmethod
    def load(cls, path: Union[str, Path]) -> WordDict:
        with open(path, encoding="utf-8") as f:
            dictionary = cls.from_lines(f)
        logger.debug("Loaded %d words from %s", len(dictionary), path)
        return dictionary

    def filtered(self, keep: Callable[[str, WordData], bool]) -> WordDict:
        """A new dictionary holding only the words `keep` accepts."""
        return WordDict({w: d for w, d in self.words.items() if keep(w, d)})

    def most_common(self, count: int) -> WordDict:
        """The `count` most frequent words, for a limited vocabulary."""
        ranked = sorted(self.words.items(), key=lambda item: (-item[1].rel_freq, item[0]))
        return WordDict(dict(ranked[:count]))

    def get(self, word: str) -> Optional[WordData]:
        return self.words.get(word.lower())

    def __contains__(self, word: object) -> bool:
        return isinstance(word, str) and word.lower() in self.words

    def __len__(self) -> int:
        return len(self.words)

    def __iter__(self) -> Iterator[str]:
        return iter(self.words)
