"""
Game records (PGN-like format).

Format example:
```
[Event "Casual Game"]
[Date "2026.01.18"]
[Seed "1234"]
[Generation "1"]
[Player0 "Alice"]
[Player1 "Bob"]
[Result "0"]

~~ ~~ |0 ~~ ~~
~~ #0 __ #0 ~~
~~ __ __ __ ~~
~~ #1 __ #1 ~~
~~ ~~ |1 ~~ ~~

1. A@2,1 E@2,3 2. 2,1-2,2 ...
```

The board block is the starting board in the textual board format. Each
move token is in move notation (see moves.py); the player for each move
follows from the turn order, starting with player 0. The result is the
winning player's index, or "*" while the game is in progress.
"""

from __future__ import annotations
import re
from datetime import date
from dataclasses import dataclass, field
from typing import Optional

from .board import Board
from .dictionary import WordDict
from .game import Game
from .judge import Judge
from .moves import Move, move_to_notation, notation_to_move
from .rules import GameRules

_TAG_PATTERN = re.compile(r'\[(\w+)\s+"([^"]*)"\]')


@dataclass
class GameRecord:
    """Record of a complete or in-progress game."""

    # Metadata (PGN-style tags)
    event: str = "Truncate Game"
    date: str = field(default_factory=lambda: date.today().strftime("%Y.%m.%d"))
    seed: Optional[int] = None
    generation: int = 1  # GameRules.generation preset the game was played under
    players: list[str] = field(default_factory=lambda: ["Player 0", "Player 1"])
    result: str = "*"

    board: str = ""
    moves: list[str] = field(default_factory=list)

    @classmethod
    def from_game(cls, game: Game, generation: int = 1, **metadata) -> GameRecord:
        """Create a record from a started game."""
        if game.initial_board is None:
            raise ValueError("Game has not started, nothing to record")
        record = cls(
            seed=game.seed,
            generation=generation,
            players=[p.name for p in game.players],
            board=str(game.initial_board),
            **metadata,
        )
        record.moves = [move_to_notation(m) for m in game.move_sequence]
        if game.winner is not None:
            record.result = str(game.winner)
        return record

    def to_text(self) -> str:
        lines = [
            f'[Event "{self.event}"]',
            f'[Date "{self.date}"]',
            f'[Seed "{"" if self.seed is None else self.seed}"]',
            f'[Generation "{self.generation}"]',
        ]
        for index, name in enumerate(self.players):
            lines.append(f'[Player{index} "{name}"]')
        lines.append(f'[Result "{self.result}"]')
        lines.append('')
        lines.extend(self.board.split('\n'))
        lines.append('')

        parts = []
        count = len(self.players)
        for ply, move in enumerate(self.moves):
            if ply % count == 0:
                parts.append(f"{ply // count + 1}. {move}")
            else:
                parts.append(move)

        # Word wrap at 80 chars
        current_line = ""
        for word in ' '.join(parts).split():
            if len(current_line) + len(word) + 1 > 80:
                lines.append(current_line)
                current_line = word
            else:
                current_line = f"{current_line} {word}".strip()
        if current_line:
            lines.append(current_line)

        return '\n'.join(lines)

    @classmethod
    def from_text(cls, text: str) -> GameRecord:
        """
        Parse a record.

        Raises:
            ValueError: On a malformed tag, board or move token
        """
        record = cls(players=[])
        players: dict[int, str] = {}
        for match in _TAG_PATTERN.finditer(text):
            tag, value = match.groups()
            tag_lower = tag.lower()
            if tag_lower == 'event':
                record.event = value
            elif tag_lower == 'date':
                record.date = value
            elif tag_lower == 'seed':
                record.seed = int(value) if value else None
            elif tag_lower == 'generation':
                record.generation = int(value)
            elif tag_lower == 'result':
                record.result = value
            elif tag_lower.startswith('player') and tag_lower[6:].isdigit():
                players[int(tag_lower[6:])] = value
        record.players = [players[i] for i in sorted(players)]

        # The first block of non-blank lines is the board, the rest are moves
        lines = _TAG_PATTERN.sub('', text).split('\n')
        while lines and not lines[0].strip():
            lines.pop(0)
        board_lines = []
        while lines and lines[0].strip():
            board_lines.append(lines.pop(0).strip())
        if not board_lines:
            raise ValueError("Game record has no board")
        # Parsed here so a bad board fails at load time, not at replay
        Board.from_string('\n'.join(board_lines))
        record.board = '\n'.join(board_lines)
        move_lines = lines

        for token in ' '.join(move_lines).split():
            if re.match(r'^\d+\.$', token):
                continue
            notation_to_move(token, 0)
            record.moves.append(token)
        return record

    def parsed_moves(self) -> list[Move]:
        count = max(len(self.players), 2)
        return [notation_to_move(m, ply % count) for ply, m in enumerate(self.moves)]

    def replay(self, dictionary: Optional[WordDict] = None) -> Game:
        """Rebuild the game and play every recorded move.

        The clock is frozen at zero so timed rules replay without penalties.
        """
        rules = GameRules.generation(self.generation)
        game = Game(
            Board.from_string(self.board),
            rules=rules,
            judge=Judge(dictionary),
            seed=self.seed,
            clock=lambda: 0.0,
        )
        for name in self.players or ["Player 0", "Player 1"]:
            game.add_player(name)
        game.start()
        for move in self.parsed_moves():
            game.play_turn(move)
        return game


def game_to_text(game: Game, generation: int = 1, **metadata) -> str:
    """Convert a game to record text."""
    return GameRecord.from_game(game, generation, **metadata).to_text()


def text_to_game(text: str, dictionary: Optional[WordDict] = None) -> Game:
    """Parse record text and return the replayed game."""
    return GameRecord.from_text(text).replay(dictionary)
