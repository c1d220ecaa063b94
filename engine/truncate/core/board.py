"""
Board representation for Truncate.

The board is a rectangular grid of squares indexed as squares[y][x]. Docks
are each player's root on the board; towns are the squares an opponent
tries to reach. Both are cached in coordinate lists that are recomputed
whenever the grid changes structurally.

Textual format (one row per line, tokens separated by spaces):

    ~~  water            __  land
    |N  dock of player N #N  town of player N
    ⊭N  defeated town    AN  tile 'A' owned by player N
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional, Union, TYPE_CHECKING

from .errors import (
    DisjointSwap, EmptySquareInWord, InvalidPosition, NonExistentPlayer,
    NoopSwap, NoSwapping, OutSideBoardDimensions, SelfSwap, UnoccupiedSwap,
    UnownedSwap,
)
from .reporting import BoardChange, BoardChangeAction
from .rules import (
    BeatenWithDefenseStrength, Contiguous, SwappingDisabled, Truncation,
    Swapping, TownDefense,
)

if TYPE_CHECKING:
    from .bag import TileBag


class BoardParseError(ValueError):
    """Raised when a textual board can't be parsed."""


class Direction(Enum):
    NORTH_WEST = (-1, -1)
    NORTH = (0, -1)
    NORTH_EAST = (1, -1)
    EAST = (1, 0)
    SOUTH_EAST = (1, 1)
    SOUTH = (0, 1)
    SOUTH_WEST = (-1, 1)
    WEST = (-1, 0)

    def opposite(self) -> Direction:
        dx, dy = self.value
        return Direction((-dx, -dy))

    def read_top_to_bottom(self) -> bool:
        """Whether vertical words read downwards for a player sitting on this side."""
        return self in (Direction.SOUTH, Direction.WEST)

    def read_left_to_right(self) -> bool:
        """Whether horizontal words read rightwards for a player sitting on this side."""
        return self in (Direction.SOUTH, Direction.EAST)


@dataclass(frozen=True, order=True)
class Coordinate:
    x: int
    y: int

    def add(self, direction: Direction) -> Optional[Coordinate]:
        """Step one square in a direction, or None when stepping below zero."""
        dx, dy = direction.value
        x, y = self.x + dx, self.y + dy
        if x < 0 or y < 0:
            return None
        return Coordinate(x, y)

    def neighbors_4(self) -> list[Coordinate]:
        """Orthogonal neighbours, from north clockwise."""
        steps = (Direction.NORTH, Direction.EAST, Direction.SOUTH, Direction.WEST)
        return [c for c in (self.add(d) for d in steps) if c is not None]

    def neighbors_8(self) -> list[Coordinate]:
        """Orthogonal and diagonal neighbours, from north-west clockwise."""
        steps = (
            Direction.NORTH_WEST, Direction.NORTH, Direction.NORTH_EAST, Direction.EAST,
            Direction.SOUTH_EAST, Direction.SOUTH, Direction.SOUTH_WEST, Direction.WEST,
        )
        return [c for c in (self.add(d) for d in steps) if c is not None]

    def distance_to(self, other: Coordinate) -> int:
        return abs(self.x - other.x) + abs(self.y - other.y)

    def to_1d(self, width: int) -> int:
        return self.x + self.y * width

    @classmethod
    def from_1d(cls, index: int, width: int) -> Coordinate:
        return cls(index % width, index // width)

    def __str__(self) -> str:
        return f"({self.x}, {self.y})"


# Squares

@dataclass(frozen=True)
class Water:
    def __str__(self) -> str:
        return "~~"


@dataclass(frozen=True)
class Land:
    def __str__(self) -> str:
        return "__"


@dataclass(frozen=True)
class Town:
    player: int
    defeated: bool = False

    def __str__(self) -> str:
        return f"⊭{self.player}" if self.defeated else f"#{self.player}"


@dataclass(frozen=True)
class Dock:
    player: int

    def __str__(self) -> str:
        return f"|{self.player}"


@dataclass(frozen=True)
class Occupied:
    player: int
    tile: str

    def __str__(self) -> str:
        return f"{self.tile}{self.player}"


Square = Union[Water, Land, Town, Dock, Occupied]

WATER = Water()
LAND = Land()


def parse_square(token: str) -> Square:
    """Parse a single two character board token."""
    if token == "~~":
        return WATER
    if token == "__":
        return LAND
    if len(token) < 2:
        raise BoardParseError(f"Square token is too short: {token!r}")

    kind, owner = token[0], token[1:]
    if not owner.isdigit():
        raise BoardParseError(f"Square {token!r} needs a player number")
    player = int(owner)

    if kind == "|":
        return Dock(player)
    if kind == "#":
        return Town(player)
    if kind == "⊭":
        return Town(player, defeated=True)
    if kind in "~_" or kind.isdigit() or kind.isspace():
        raise BoardParseError(f"Unknown square token: {token!r}")
    return Occupied(player, kind)


class BoardDistances:
    """Per-square distances produced by the board's flood fills."""

    def __init__(self, board: Board):
        self.board_width = board.width
        size = board.width * board.height
        self.attackable: list[Optional[int]] = [None] * size
        self.direct: list[Optional[int]] = [None] * size

    def copy_to_direct(self) -> None:
        self.direct = list(self.attackable)

    def attackable_distance(self, coord: Coordinate) -> Optional[int]:
        return self.attackable[coord.to_1d(self.board_width)]

    def direct_distance(self, coord: Coordinate) -> Optional[int]:
        return self.direct[coord.to_1d(self.board_width)]

    def set_attackable(self, coord: Coordinate, distance: int) -> None:
        self.attackable[coord.to_1d(self.board_width)] = distance

    def set_direct(self, coord: Coordinate, distance: int) -> None:
        self.direct[coord.to_1d(self.board_width)] = distance

    def iter_attackable(self) -> Iterator[tuple[Coordinate, int]]:
        for index, dist in enumerate(self.attackable):
            if dist is not None:
                yield Coordinate.from_1d(index, self.board_width), dist

    def iter_direct(self) -> Iterator[tuple[Coordinate, int]]:
        for index, dist in enumerate(self.direct):
            if dist is not None:
                yield Coordinate.from_1d(index, self.board_width), dist


class Board:
    """Grid of squares plus cached dock and town positions."""

    def __init__(self, squares: list[list[Square]],
                 orientations: Optional[list[Direction]] = None):
        self.squares = squares
        # The side of the board each player sits at
        self.orientations = orientations or [Direction.NORTH, Direction.SOUTH]
        self.docks: list[Coordinate] = []
        self.towns: list[Coordinate] = []
        self.cache_special_squares()

    @classmethod
    def new(cls, land_width: int, land_height: int) -> Board:
        """Create a rectangle of land ringed by water.

        Each player gets a row of towns along their edge of the land and a
        dock in the water at the middle of that edge.
        """
        width = land_width + 2
        height = land_height + 2
        squares: list[list[Square]] = [[WATER] * width]
        for _ in range(land_height):
            squares.append([WATER] + [LAND] * land_width + [WATER])
        squares.append([WATER] * width)

        dock_x = width // 2
        for x in range(1, land_width + 1):
            if x != dock_x:
                squares[1][x] = Town(0)
                squares[height - 2][x] = Town(1)
        squares[0][dock_x] = Dock(0)
        squares[height - 1][dock_x] = Dock(1)

        return cls(squares)

    @classmethod
    def from_string(cls, text: str) -> Board:
        squares = []
        for line in text.split("\n"):
            if not line.strip():
                continue
            squares.append([parse_square(token) for token in line.split()])

        if not squares:
            raise BoardParseError("Board contains no squares")
        if any(len(row) != len(squares[0]) for row in squares[1:]):
            raise BoardParseError("Tried to make a jagged board")

        return cls(squares)

    def __str__(self) -> str:
        return "\n".join(" ".join(str(sq) for sq in row) for row in self.squares)

    def __repr__(self) -> str:
        return f"Board({self.width}x{self.height})\n{self}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self.squares == other.squares and self.orientations == other.orientations

    def copy(self) -> Board:
        """Copy the grid. Squares are immutable so rows are copied shallowly."""
        return Board([list(row) for row in self.squares], list(self.orientations))

    @property
    def width(self) -> int:
        return len(self.squares[0])

    @property
    def height(self) -> int:
        return len(self.squares)

    def coordinates(self) -> Iterator[Coordinate]:
        """All coordinates in row-major order."""
        for y in range(self.height):
            for x in range(self.width):
                yield Coordinate(x, y)

    def in_bounds(self, position: Coordinate) -> bool:
        return 0 <= position.x < self.width and 0 <= position.y < self.height

    def cache_special_squares(self) -> None:
        self.docks = []
        self.towns = []
        for coord in self.coordinates():
            square = self.squares[coord.y][coord.x]
            if isinstance(square, Dock):
                self.docks.append(coord)
            elif isinstance(square, Town):
                self.towns.append(coord)

    # Grid resizing

    def grow(self) -> None:
        """Add a ring of water around the board."""
        for row in self.squares:
            row.insert(0, WATER)
            row.append(WATER)
        self.squares.insert(0, [WATER] * self.width)
        self.squares.append([WATER] * self.width)
        self.cache_special_squares()

    def _redundant_edges(self) -> tuple[int, int, int, int]:
        """Rows/columns of pure water on each edge, less the ring we keep."""

        def redundant(square: Square) -> bool:
            return isinstance(square, (Water, Dock))

        def count(lines: list[list[Square]]) -> int:
            for i, line in enumerate(lines):
                if not all(redundant(s) for s in line):
                    return max(i - 1, 0)
            return 0

        columns = [[row[x] for row in self.squares] for x in range(self.width)]
        top = count(self.squares)
        bottom = count(self.squares[::-1])
        left = count(columns)
        right = count(columns[::-1])
        return top, right, bottom, left

    def trim(self) -> None:
        """Shrink the board to its content, keeping a single ring of water."""
        top, right, bottom, left = self._redundant_edges()
        rows = self.squares[top:self.height - bottom]
        self.squares = [row[left:len(row) - right] for row in rows]
        self.cache_special_squares()

    # Access and mutation

    def get(self, position: Coordinate) -> Square:
        if not self.in_bounds(position):
            raise OutSideBoardDimensions(position)
        return self.squares[position.y][position.x]

    def set_square(self, position: Coordinate, square: Square) -> None:
        if not self.in_bounds(position):
            raise OutSideBoardDimensions(position)
        self.squares[position.y][position.x] = square

    def player_exists(self, player: int) -> bool:
        return any(self.get(dock).player == player for dock in self.docks)

    def set(self, position: Coordinate, player: int, tile: str) -> Square:
        """Place a tile for a player on land (or over an existing tile)."""
        if not self.player_exists(player):
            raise NonExistentPlayer(player)
        square = self.get(position)
        if not isinstance(square, (Land, Occupied)):
            raise InvalidPosition(position)
        placed = Occupied(player, tile)
        self.squares[position.y][position.x] = placed
        return placed

    def check_swap(self, player: int, positions: tuple[Coordinate, Coordinate],
                   swapping: Swapping) -> tuple[str, str]:
        """Validate a swap and return the two tiles involved."""
        a, b = positions
        if a == b:
            raise SelfSwap()

        tiles = []
        for pos in positions:
            square = self.get(pos)
            if not isinstance(square, Occupied):
                raise UnoccupiedSwap()
            if square.player != player:
                raise UnownedSwap()
            tiles.append(square.tile)

        if tiles[0] == tiles[1]:
            raise NoopSwap()

        if isinstance(swapping, SwappingDisabled):
            raise NoSwapping()
        if isinstance(swapping, Contiguous) and b not in self.depth_first_search(a):
            raise DisjointSwap()
        return tiles[0], tiles[1]

    def swap(self, player: int, positions: tuple[Coordinate, Coordinate],
             swapping: Swapping) -> list[BoardChange]:
        first, second = self.check_swap(player, positions, swapping)
        a, b = positions
        return [
            BoardChange(BoardChangeAction.SWAPPED, a, self.set(a, player, second)),
            BoardChange(BoardChangeAction.SWAPPED, b, self.set(b, player, first)),
        ]

    def clear(self, position: Coordinate) -> Optional[Square]:
        """Turn an occupied square back into land, returning the removed square."""
        if not self.in_bounds(position):
            return None
        square = self.squares[position.y][position.x]
        if not isinstance(square, Occupied):
            return None
        self.squares[position.y][position.x] = LAND
        return square

    def defeat_town(self, position: Coordinate) -> None:
        square = self.get(position)
        if isinstance(square, Town):
            self.squares[position.y][position.x] = Town(square.player, defeated=True)

    def defeat_player(self, player: int) -> None:
        for town in self.towns:
            square = self.get(town)
            if square.player == player:
                self.defeat_town(town)

    def reset(self) -> None:
        """Clear every tile and restore every town."""
        for coord in self.coordinates():
            square = self.get(coord)
            if isinstance(square, Occupied):
                self.set_square(coord, LAND)
            elif isinstance(square, Town):
                self.set_square(coord, Town(square.player))

    def neighbouring_squares(self, position: Coordinate) -> list[tuple[Coordinate, Square]]:
        return [(c, self.get(c)) for c in position.neighbors_4() if self.in_bounds(c)]

    def reciprocal_coordinate(self, position: Coordinate) -> Coordinate:
        """The square opposite this one under a half turn of the board."""
        return Coordinate(self.width - 1 - position.x, self.height - 1 - position.y)

    # Connectivity

    def depth_first_search(self, position: Coordinate) -> set[Coordinate]:
        """Tiles connected to a tile or dock and owned by the same player."""
        visited: set[Coordinate] = set()
        if not self.in_bounds(position):
            return visited
        start = self.get(position)
        if not isinstance(start, (Occupied, Dock)):
            return visited

        player = start.player
        stack = [position]
        visited.add(position)
        while stack:
            current = stack.pop()
            for neighbour, square in self.neighbouring_squares(current):
                if (isinstance(square, Occupied) and square.player == player
                        and neighbour not in visited):
                    visited.add(neighbour)
                    stack.append(neighbour)
        return visited

    def truncate(self, bag: TileBag) -> list[BoardChange]:
        """Remove every tile that is no longer connected to a dock."""
        attached: set[Coordinate] = set()
        for dock in self.docks:
            attached |= self.depth_first_search(dock)

        changes = []
        for coord in self.coordinates():
            if coord in attached:
                continue
            removed = self.clear(coord)
            if removed is not None:
                bag.return_tile(removed.tile)
                changes.append(BoardChange(BoardChangeAction.TRUNCATED, coord, removed))
        return changes

    def flood_fill(self, start: Coordinate) -> BoardDistances:
        """Distances from a player's tile or dock across the board.

        `attackable` counts placements needed to reach each square without
        playing through an opponent; `direct` continues past those edges to
        cover the whole board.
        """
        distances = BoardDistances(self)
        start_square = self.get(start)
        attacker = start_square.player if isinstance(start_square, (Occupied, Dock)) else None

        def adjacent_to_opponent(neighbours: list[tuple[Coordinate, Square]]) -> bool:
            return any(
                isinstance(sq, (Occupied, Town)) and sq.player != attacker
                for _, sq in neighbours
            )

        distances.set_attackable(start, 0)
        attackable_pts = deque((c, 0) for c, _ in self.neighbouring_squares(start))
        direct_pts: deque[tuple[Coordinate, int]] = deque()

        while attackable_pts:
            pt, dist = attackable_pts.popleft()
            visited = distances.attackable_distance(pt)
            if visited is not None and visited <= dist:
                continue
            distances.set_attackable(pt, dist)

            square = self.get(pt)
            neighbours = self.neighbouring_squares(pt)
            if isinstance(square, Occupied) and square.player == attacker:
                # Another of our tiles, distances restart from here
                attackable_pts.extend((c, 0) for c, _ in neighbours)
                distances.set_attackable(pt, 0)
            elif isinstance(square, Land):
                if adjacent_to_opponent(neighbours):
                    # Can't play through this square, but playing here attacks its neighbours
                    attackable_pts.extend(
                        (c, dist + 1) for c, sq in neighbours if not isinstance(sq, Land)
                    )
                    direct_pts.extend((c, dist + 1) for c, _ in neighbours)
                else:
                    attackable_pts.extend((c, dist + 1) for c, _ in neighbours)
            elif isinstance(square, Water):
                continue
            else:
                direct_pts.extend((c, dist + 1) for c, _ in neighbours)

        distances.copy_to_direct()

        while direct_pts:
            pt, dist = direct_pts.popleft()
            visited = distances.direct_distance(pt)
            if visited is not None and visited <= dist:
                continue
            distances.set_direct(pt, dist)

            if isinstance(self.get(pt), Water):
                continue
            direct_pts.extend((c, dist + 1) for c, _ in self.neighbouring_squares(pt))

        return distances

    def flood_fill_attacks(self, attacker: int) -> BoardDistances:
        """Flood fill from the attacker's most advanced tile."""
        rows = range(self.height - 1, -1, -1) if attacker == 0 else range(self.height)
        for y in rows:
            for x in range(self.width):
                square = self.squares[y][x]
                if isinstance(square, Occupied) and square.player == attacker:
                    return self.flood_fill(Coordinate(x, y))
        # No tiles on the board, nothing is reachable yet
        return BoardDistances(self)

    def flood_fill_from_towns(self, player: int) -> BoardDistances:
        distances = BoardDistances(self)
        start = next(
            (t for t in self.towns if self.get(t).player == player), None
        )
        if start is None:
            raise ValueError(f"Player {player} has no towns")

        distances.set_direct(start, 0)
        direct_pts = deque((c, 0) for c, _ in self.neighbouring_squares(start))
        while direct_pts:
            pt, dist = direct_pts.popleft()
            visited = distances.direct_distance(pt)
            if visited is not None and visited <= dist:
                continue
            distances.set_direct(pt, dist)

            square = self.get(pt)
            neighbours = self.neighbouring_squares(pt)
            if isinstance(square, Water):
                continue
            if isinstance(square, Town) and square.player == player:
                direct_pts.extend((c, 0) for c, _ in neighbours)
                distances.set_direct(pt, 0)
            else:
                direct_pts.extend((c, dist + 1) for c, _ in neighbours)
        return distances

    def shortest_path_between(self, start: Coordinate, end: Coordinate) -> Optional[list[Coordinate]]:
        """Shortest land path between two squares, exclusive of both ends.

        Ignores tiles on the board, so it is only exact before play begins.
        """
        seen = {start}
        queue = deque((c, []) for c in start.neighbors_4() if self.in_bounds(c))
        while queue:
            pt, path = queue.popleft()
            if pt == end:
                return path
            if pt in seen:
                continue
            seen.add(pt)
            if isinstance(self.get(pt), Land):
                next_path = path + [pt]
                queue.extend(
                    (c, next_path) for c in pt.neighbors_4()
                    if self.in_bounds(c) and c not in seen
                )
        return None

    def distance_to_closest_obstruction(self, pt: Coordinate,
                                        excluding: tuple[Coordinate, ...] = ()) -> int:
        """Distance from a point to the nearest square that isn't land."""
        seen: set[Coordinate] = set()
        queue = deque([(pt, 0)])
        last_distance = 0
        while queue:
            current, dist = queue.popleft()
            if current in excluding or current in seen:
                continue
            seen.add(current)
            last_distance = dist
            if not self.in_bounds(current) or not isinstance(self.get(current), Land):
                return dist
            queue.extend((c, dist + 1) for c in current.neighbors_4())
        return last_distance

    def distance_from_attack(self, position: Coordinate, player: int) -> Optional[int]:
        """Placements between a square and the nearest opposing presence.

        Walks over land only. Returns None when no opponent is reachable.
        """
        if not self.in_bounds(position):
            raise OutSideBoardDimensions(position)
        seen = {position}
        queue = deque([(position, 0)])
        while queue:
            current, dist = queue.popleft()
            for neighbour, square in self.neighbouring_squares(current):
                if isinstance(square, (Occupied, Town, Dock)) and square.player != player:
                    return dist + 1
                if neighbour not in seen and isinstance(square, Land):
                    seen.add(neighbour)
                    queue.append((neighbour, dist + 1))
        return None

    def proximity_to_enemy_town(self, player: int) -> list[int]:
        """Distances from each of the player's tiles to the enemy towns, furthest first."""
        distances = self.flood_fill_from_towns((player + 1) % 2)
        proximities = []
        for coord in self.coordinates():
            square = self.get(coord)
            if isinstance(square, Occupied) and square.player == player:
                dist = distances.direct_distance(coord)
                if dist is not None:
                    proximities.append(dist)
        proximities.sort(reverse=True)
        return proximities

    def get_shape(self) -> tuple[int, ...]:
        """Bitmask of occupied squares for each player, usable as a cache key."""
        players = max((len(self.orientations), *(self.get(d).player + 1 for d in self.docks)))
        masks = [0] * players
        for coord in self.coordinates():
            square = self.get(coord)
            if isinstance(square, Occupied) and square.player < players:
                masks[square.player] |= 1 << coord.to_1d(self.width)
        return tuple(masks)

    # Words

    def get_words(self, position: Coordinate) -> list[list[Coordinate]]:
        """The vertical and horizontal words running through a tile.

        Words are ordered in the owner's reading direction. Single letter
        words only count when the tile forms no longer word.
        """
        if not self.in_bounds(position):
            return []
        square = self.get(position)
        if isinstance(square, (Town, Dock)):
            return [[position]]
        if not isinstance(square, Occupied):
            return []

        owner = square.player
        words = []
        for forwards, backwards in ((Direction.SOUTH, Direction.NORTH),
                                    (Direction.EAST, Direction.WEST)):
            word = [position]
            for direction in (forwards, backwards):
                location = position.add(direction)
                while location is not None and self.in_bounds(location):
                    sq = self.get(location)
                    if not isinstance(sq, Occupied) or sq.player != owner:
                        break
                    if direction is forwards:
                        word.append(location)
                    else:
                        word.insert(0, location)
                    location = location.add(direction)
            words.append(word)

        # Seats without an orientation read like the bottom player
        orientation = self.orientations[owner] if owner < len(self.orientations) else Direction.SOUTH
        if not orientation.read_top_to_bottom():
            words[0].reverse()
        if not orientation.read_left_to_right():
            words[1].reverse()

        if all(len(w) == 1 for w in words):
            return words
        return [w for w in words if len(w) > 1]

    def collect_combatants(self, player: int, position: Coordinate,
                           town_defense: Optional[TownDefense] = None
                           ) -> tuple[list[list[Coordinate]], list[list[Coordinate]]]:
        """Attacking words through a placed tile and the defending words it touches."""
        attackers = self.get_words(position)
        docks_defend = isinstance(town_defense, BeatenWithDefenseStrength)

        defenders = []
        for coord, square in self.neighbouring_squares(position):
            if isinstance(square, Occupied):
                engaged = square.player != player
            elif isinstance(square, Town):
                engaged = square.player != player and not square.defeated
            elif isinstance(square, Dock):
                engaged = docks_defend and square.player != player
            else:
                engaged = False
            if engaged:
                defenders.extend(self.get_words(coord))
        return attackers, defenders

    def word_strings(self, runs: list[list[Coordinate]]) -> list[str]:
        strings = []
        for run in runs:
            letters = []
            for coord in run:
                square = self.get(coord)
                if isinstance(square, Occupied):
                    letters.append(square.tile)
                elif isinstance(square, Dock):
                    letters.append("|")
                elif isinstance(square, Town):
                    letters.append("#")
                else:
                    raise EmptySquareInWord()
            strings.append("".join(letters))
        return strings

    def playable_positions(self, player: int,
                           truncation: Truncation = Truncation.ROOT) -> set[Coordinate]:
        """Land squares where the player may place a tile."""
        roots: set[Coordinate] = set()
        if truncation == Truncation.ROOT:
            for dock in self.docks:
                if self.get(dock).player == player:
                    roots |= self.depth_first_search(dock)
        else:
            for coord in self.coordinates():
                square = self.get(coord)
                if isinstance(square, (Occupied, Dock)) and square.player == player:
                    roots.add(coord)

        return {
            n for root in roots for n in root.neighbors_4()
            if self.in_bounds(n) and isinstance(self.get(n), Land)
        }

    def swappable_positions(self, player: int) -> list[list[tuple[Coordinate, str]]]:
        """Groups of the player's tiles that can swap with one another."""
        clusters = []
        for dock in self.docks:
            if self.get(dock).player != player:
                continue
            cluster = []
            for coord in sorted(self.depth_first_search(dock)):
                square = self.get(coord)
                if isinstance(square, Occupied):
                    cluster.append((coord, square.tile))
            if len(cluster) > 1:
                clusters.append(cluster)
        return clusters
