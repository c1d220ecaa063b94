"""
The turn engine.

A Game moves through three phases: players join in the lobby, take turns
while active, and the game is concluded once somebody wins. play_turn is
the only mutating entry point during play. Every move is validated in full
before anything changes, so a raised GamePlayError leaves the board, bag,
hands, clocks and turn order exactly as they were.
"""

from __future__ import annotations
from enum import Enum
from typing import Callable, Optional
import copy
import logging
import time

from .bag import TileBag
from .board import Board, Coordinate, Dock, Land, Occupied, Town
from .dictionary import WordDict
from .errors import (
    GameAlreadyOver, GameNotStarted, InvalidGameSetup, InvalidPosition,
    NonAdjacentPlace, NonExistentPlayer, NotYourTurn, OccupiedPlace,
    PlayerDoesNotHaveTile, TooManySwaps,
)
from .judge import BOMB, AttackerWins, DefenderWins, Judge, WordCache
from .moves import Move, Place
from .player import GAME_COLORS, Player
from .reporting import (
    BattleReport, BoardChange, BoardChangeAction, Change, TimeChange,
)
from .rules import (
    BeatenByValidity, Destination, Disallowed, Elimination, FreeWildcard,
    GameRules, OvertimeElimination, PerPlayer, RemoveTiles, TileBagBehaviour,
    TimePenalty, Truncation,
)

logger = logging.getLogger(__name__)


class GamePhase(Enum):
    LOBBY = "lobby"
    ACTIVE = "active"
    CONCLUDED = "concluded"


class Game:
    """
    A single match.

    Attributes:
        rules: The rule set, fixed for the life of the game
        board: Current board
        bag: Tile supply
        judge: Battle judge holding the default dictionary
        players: Seats in turn order
        next_player: Index of the player to move, None before the start
        recent_changes: Changes caused by the last turn
        battle_count: Battles fought so far
        turn_count: Turns played so far
        winner: Index of the winner once concluded
        move_sequence: Every move played, in order
    """

    def __init__(self, board: Board, bag: Optional[TileBag] = None,
                 rules: Optional[GameRules] = None, judge: Optional[Judge] = None,
                 seed: Optional[int] = None,
                 clock: Callable[[], float] = time.time):
        self.rules = rules or GameRules()
        self.board = board
        self.seed = seed
        if bag is None:
            bag = TileBag.new(
                self.rules.tile_distribution, seed,
                infinite=self.rules.tile_bag_behaviour == TileBagBehaviour.INFINITE,
            )
        self.bag = bag
        self.judge = judge or Judge()
        self.clock = clock

        self.players: list[Player] = []
        self.eliminated: set[int] = set()
        self.phase = GamePhase.LOBBY
        self.next_player: Optional[int] = None
        self.recent_changes: list[Change] = []
        self.battle_count = 0
        self.turn_count = 0
        self.player_turn_count: list[int] = []
        self.winner: Optional[int] = None
        self.started_at: Optional[float] = None
        self.ended_at: Optional[float] = None
        self.initial_board: Optional[Board] = None
        self.move_sequence: list[Move] = []

    @classmethod
    def new(cls, land_width: int, land_height: int, seed: Optional[int] = None,
            rules: Optional[GameRules] = None, **kwargs) -> Game:
        return cls(Board.new(land_width, land_height), rules=rules, seed=seed, **kwargs)

    def copy(self) -> Game:
        """Independent copy for simulation. The dictionary and clock are shared."""
        clone = copy.copy(self)
        clone.judge = copy.copy(self.judge)
        clone.judge.aliases = dict(self.judge.aliases)
        clone.board = self.board.copy()
        clone.bag = copy.deepcopy(self.bag)
        clone.players = [copy.deepcopy(p) for p in self.players]
        clone.eliminated = set(self.eliminated)
        clone.recent_changes = list(self.recent_changes)
        clone.player_turn_count = list(self.player_turn_count)
        clone.move_sequence = list(self.move_sequence)
        return clone

    # Lobby

    def add_player(self, name: str) -> Player:
        if self.phase != GamePhase.LOBBY:
            raise InvalidGameSetup("players can only join before the game starts")
        index = len(self.players)
        allowance = None
        if isinstance(self.rules.timing, PerPlayer):
            allowance = float(self.rules.timing.time_allowance)
        player = Player(
            name=name,
            index=index,
            hand_capacity=self.rules.hand_size,
            allotted_time=allowance,
            time_remaining=allowance,
            color=GAME_COLORS[index % len(GAME_COLORS)],
        )
        self.players.append(player)
        self.player_turn_count.append(0)
        return player

    def start(self, first_player: int = 0) -> None:
        """Deal hands and hand the first turn to `first_player`."""
        if self.phase != GamePhase.LOBBY:
            raise InvalidGameSetup("the game has already started")
        if len(self.players) < 2:
            raise InvalidGameSetup(f"need at least two players, have {len(self.players)}")
        for player in self.players:
            if not self.board.player_exists(player.index):
                raise InvalidGameSetup(f"player {player.index} has no dock on the board")
        if not 0 <= first_player < len(self.players):
            raise NonExistentPlayer(first_player)

        for player in self.players:
            player.fill_hand(self.bag)

        now = self.clock()
        self.started_at = now
        self.initial_board = self.board.copy()
        self.next_player = first_player
        self.players[first_player].turn_starts_at = now
        self.phase = GamePhase.ACTIVE
        logger.info("Game started with %d players on a %dx%d board",
                    len(self.players), self.board.width, self.board.height)

    def get_player(self, index: int) -> Player:
        if not 0 <= index < len(self.players):
            raise NonExistentPlayer(index)
        return self.players[index]

    # Turns

    def play_turn(self, move: Move,
                  attacker_dictionary: Optional[WordDict] = None,
                  defender_dictionary: Optional[WordDict] = None,
                  cache: Optional[WordCache] = None) -> Optional[int]:
        """
        Play one move for the player whose turn it is.

        Args:
            move: The move to play
            attacker_dictionary: Dictionary for the mover's words (default: the judge's)
            defender_dictionary: Dictionary for the defending words (default: the judge's)
            cache: Word validity cache shared across calls

        Returns:
            The winner's index if this turn ended the game, else None
        """
        if self.phase == GamePhase.CONCLUDED:
            raise GameAlreadyOver(self.winner)
        if self.phase == GamePhase.LOBBY:
            raise GameNotStarted()
        player = self.get_player(move.player)
        if move.player != self.next_player:
            raise NotYourTurn(move.player, self.next_player)

        now = self.clock()
        if self._out_of_time(player, now) and isinstance(self._overtime_rule(), OvertimeElimination):
            logger.info("Player %d ran out of time", player.index)
            self.eliminate_player(player.index)
            if self.winner is None:
                self._advance_turn(player, now, battled=False)
            return self.winner

        changes = self.make_move(move, attacker_dictionary, defender_dictionary, cache)
        self.recent_changes = changes
        self.move_sequence.append(move)
        self.turn_count += 1
        self.player_turn_count[player.index] += 1

        winner = self.calculate_game_over(player.index)
        if winner is not None:
            self._conclude(winner)
            return winner

        battled = any(isinstance(c, BattleReport) for c in changes)
        self._advance_turn(player, now, battled)
        return self.winner

    def make_move(self, move: Move,
                  attacker_dictionary: Optional[WordDict] = None,
                  defender_dictionary: Optional[WordDict] = None,
                  cache: Optional[WordCache] = None) -> list[Change]:
        """Validate and apply a move, returning the changes it caused."""
        player = self.get_player(move.player)

        if isinstance(move, Place):
            square = self.board.get(move.position)
            if isinstance(square, Occupied):
                raise OccupiedPlace()
            if not isinstance(square, Land):
                raise InvalidPosition(move.position)
            if not any(
                isinstance(sq, (Occupied, Dock)) and sq.player == player.index
                for _, sq in self.board.neighbouring_squares(move.position)
            ):
                raise NonAdjacentPlace()
            if not player.has_tile(move.tile):
                raise PlayerDoesNotHaveTile(player.index, move.tile)

            changes: list[Change] = [player.use_tile(move.tile, self.bag)]
            placed = self.board.set(move.position, player.index, move.tile)
            changes.append(BoardChange(BoardChangeAction.ADDED, move.position, placed))
            changes.extend(self.resolve_attack(
                player.index, move.position, attacker_dictionary, defender_dictionary, cache
            ))
            player.swap_count = 0
            return changes

        self.board.check_swap(player.index, move.positions, self.rules.swapping)
        penalty = self.rules.swap_penalty
        if isinstance(penalty, Disallowed) and player.swap_count >= penalty.allowed_swaps:
            raise TooManySwaps(player.swap_count + 1)

        changes = list(self.board.swap(player.index, move.positions, self.rules.swapping))
        player.swap_count += 1
        if isinstance(penalty, TimePenalty) and player.swap_count > penalty.swap_threshold:
            index = player.swap_count - penalty.swap_threshold - 1
            seconds = penalty.penalties[min(index, len(penalty.penalties) - 1)]
            if player.time_remaining is not None:
                player.time_remaining -= seconds
            plural = "s" if player.swap_count != 1 else ""
            changes.append(TimeChange(
                player.index, -seconds,
                f"Lost time for {player.swap_count} consecutive swap{plural}",
            ))
        return changes

    def resolve_attack(self, player: int, position: Coordinate,
                       attacker_dictionary: Optional[WordDict] = None,
                       defender_dictionary: Optional[WordDict] = None,
                       cache: Optional[WordCache] = None) -> list[Change]:
        """Fight the battle started by a tile placed at `position`."""
        changes: list[Change] = []
        town_defense = self.rules.town_defense
        attackers, defenders = self.board.collect_combatants(player, position, town_defense)
        report = self.judge.battle(
            self.board.word_strings(attackers),
            self.board.word_strings(defenders),
            self.rules.battle_rules,
            town_defense,
            attacker_dictionary,
            defender_dictionary,
            cache,
        )

        if report is not None:
            if isinstance(report.outcome, DefenderWins):
                for coord in (c for run in defenders for c in run):
                    changes.append(BoardChange(BoardChangeAction.VICTORIOUS, coord, self.board.get(coord)))
                # Under validity defense a failed attack stays on the board
                if not isinstance(town_defense, BeatenByValidity):
                    for coord in (c for run in attackers for c in run):
                        changes.extend(self._remove_tile(coord, BoardChangeAction.DEFEATED))
            elif isinstance(report.outcome, AttackerWins):
                for coord in (c for run in attackers for c in run):
                    changes.append(BoardChange(BoardChangeAction.VICTORIOUS, coord, self.board.get(coord)))
                for loser in report.outcome.losers:
                    for coord in defenders[loser]:
                        square = self.board.get(coord)
                        if isinstance(square, Town):
                            self.board.defeat_town(coord)
                            changes.append(BoardChange(BoardChangeAction.DEFEATED, coord, self.board.get(coord)))
                        else:
                            changes.extend(self._remove_tile(coord, BoardChangeAction.DEFEATED))
                for coord, square in self.board.neighbouring_squares(position):
                    if isinstance(square, Occupied) and square.player != player:
                        changes.extend(self._remove_tile(coord, BoardChangeAction.EXPLODED))

            report.battle_number = self.battle_count
            self.battle_count += 1
            changes.append(report)

        placed = self.board.get(position)
        if isinstance(placed, Occupied) and placed.tile == BOMB:
            self.board.clear(position)
            changes.append(BoardChange(BoardChangeAction.EXPLODED, position, placed))

        if self.rules.truncation == Truncation.ROOT:
            changes.extend(self.board.truncate(self.bag))
        return changes

    def _remove_tile(self, coord: Coordinate, action: BoardChangeAction) -> list[Change]:
        removed = self.board.clear(coord)
        if removed is None:
            return []
        if removed.tile != BOMB:
            self.bag.return_tile(removed.tile)
        return [BoardChange(action, coord, removed)]

    # Winning and losing

    def calculate_game_over(self, current_player: int) -> Optional[int]:
        """Check the win condition after `current_player` moved."""
        opponents = [p.index for p in self.players
                     if p.index != current_player and p.index not in self.eliminated]

        if isinstance(self.rules.win_condition, Destination):
            contacts = self.judge.winning_contacts(self.board, self.rules.town_defense)
            for town, _ in contacts:
                self.board.defeat_town(town)
            winners = [p for _, p in contacts]
            if current_player in winners:
                return current_player
            if winners:
                return winners[0]

            for opponent in opponents:
                if not self.board.playable_positions(opponent, self.rules.truncation):
                    logger.debug("Player %d has nowhere left to play", opponent)
                    self.eliminate_player(opponent, conclude=False)
            if len(self.players) - len(self.eliminated) == 1:
                return current_player

        elif isinstance(self.rules.win_condition, Elimination):
            if opponents and all(self._wiped_out(p) for p in opponents):
                return current_player

        if self.rules.max_turns is not None and self.turn_count >= self.rules.max_turns:
            return self.proximity_winner()
        return None

    def _wiped_out(self, player: int) -> bool:
        on_board = any(
            isinstance(self.board.get(c), Occupied) and self.board.get(c).player == player
            for c in self.board.coordinates()
        )
        return not on_board and not self.board.playable_positions(player, self.rules.truncation)

    def proximity_winner(self) -> int:
        """The player whose tiles got closest to an enemy town.

        Ties fall to the player who took fewer turns, then the lower index.
        """
        def key(player: Player) -> tuple:
            closest_first = self.board.proximity_to_enemy_town(player.index)[::-1]
            return (closest_first or [float("inf")], self.player_turn_count[player.index], player.index)

        contenders = [p for p in self.players if p.index not in self.eliminated]
        return min(contenders, key=key).index

    def eliminate_player(self, index: int, conclude: bool = True) -> None:
        """Defeat every town a player holds and take them out of the turn order."""
        self.board.defeat_player(index)
        self.eliminated.add(index)
        remaining = [p.index for p in self.players if p.index not in self.eliminated]
        if conclude and len(remaining) == 1:
            self._conclude(remaining[0])

    def resign_player(self, index: int) -> Optional[int]:
        if self.phase != GamePhase.ACTIVE:
            raise GameNotStarted() if self.phase == GamePhase.LOBBY else GameAlreadyOver(self.winner)
        self.get_player(index)
        logger.info("Player %d resigned", index)
        self.eliminate_player(index)
        if self.winner is None and self.next_player == index:
            self._advance_turn(self.players[index], self.clock(), battled=False)
        return self.winner

    def _conclude(self, winner: int) -> None:
        self.winner = winner
        self.phase = GamePhase.CONCLUDED
        self.ended_at = self.clock()
        logger.info("Player %d won after %d turns", winner, self.turn_count)

    # Clocks

    def _overtime_rule(self):
        if isinstance(self.rules.timing, PerPlayer):
            return self.rules.timing.overtime_rule
        return None

    def player_time_remaining(self, index: int, now: Optional[float] = None) -> Optional[float]:
        """Clock time left, counting the turn in progress."""
        player = self.get_player(index)
        if player.time_remaining is None:
            return None
        remaining = player.time_remaining
        if index == self.next_player and player.turn_starts_at is not None:
            now = self.clock() if now is None else now
            remaining -= max(now - player.turn_starts_at, 0)
        return remaining

    def _out_of_time(self, player: Player, now: float) -> bool:
        remaining = self.player_time_remaining(player.index, now)
        return remaining is not None and remaining < 0

    def any_player_is_overtime(self) -> bool:
        now = self.clock()
        return any(self._out_of_time(p, now) for p in self.players)

    def game_is_overtime(self) -> bool:
        """Whether every player still in the game has run out of time."""
        now = self.clock()
        remaining = [p for p in self.players if p.index not in self.eliminated]
        return bool(remaining) and all(self._out_of_time(p, now) for p in remaining)

    def _advance_turn(self, player: Player, now: float, battled: bool) -> None:
        if player.time_remaining is not None and player.turn_starts_at is not None:
            player.time_remaining -= max(now - player.turn_starts_at, 0)
        player.turn_starts_at = None

        count = len(self.players)
        next_index = (player.index + 1) % count
        while next_index in self.eliminated and next_index != player.index:
            next_index = (next_index + 1) % count
        self.next_player = next_index

        delay = self.rules.battle_delay if battled else 0
        self.players[next_index].turn_starts_at = now + delay

        if player.time_remaining is not None and player.time_remaining < 0:
            self.recent_changes.extend(self._apply_overtime(player))

    def _apply_overtime(self, player: Player) -> list[Change]:
        rule = self._overtime_rule()
        if isinstance(rule, OvertimeElimination):
            logger.info("Player %d ran out of time", player.index)
            self.eliminate_player(player.index)
            return []

        if not isinstance(rule, (FreeWildcard, RemoveTiles)):
            return []
        total = 1 + int(-player.time_remaining // rule.period)
        new_penalties = total - player.penalties_incurred
        player.penalties_incurred = total

        changes: list[Change] = []
        for _ in range(max(new_penalties, 0)):
            if isinstance(rule, FreeWildcard):
                for opponent in self.players:
                    if opponent.index != player.index and opponent.index not in self.eliminated:
                        changes.append(opponent.add_special_tile(BOMB))
            else:
                changes.extend(self._remove_most_advanced_tile(player.index))
        return changes

    def _remove_most_advanced_tile(self, index: int) -> list[Change]:
        opponent = (index + 1) % len(self.players)
        if not any(self.board.get(t).player == opponent for t in self.board.towns):
            return []
        distances = self.board.flood_fill_from_towns(opponent)
        tiles = [
            (distances.direct_distance(c), c) for c in self.board.coordinates()
            if isinstance(self.board.get(c), Occupied) and self.board.get(c).player == index
            and distances.direct_distance(c) is not None
        ]
        if not tiles:
            return []
        _, coord = min(tiles)
        changes = self._remove_tile(coord, BoardChangeAction.DEFEATED)
        if self.rules.truncation == Truncation.ROOT:
            changes.extend(self.board.truncate(self.bag))
        return changes
