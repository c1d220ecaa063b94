"""Core game logic: board, tiles, battles and the turn engine."""

from .board import Board, Coordinate, Direction, Square, Water, Land, Town, Dock, Occupied
from .bag import TileBag
from .dictionary import WordDict, WordData
from .errors import GamePlayError
from .judge import Judge, NoBattle, DefenderWins, AttackerWins
from .moves import Place, Swap, Move
from .rules import GameRules
from .game import Game, GamePhase
