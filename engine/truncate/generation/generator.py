"""
Procedural board generation.

Land comes from noise multiplied against a radial gradient, so boards are
islands. The largest landmass is kept, docks are dropped on ocean water
touching it, and towns grow from a second noise layer near each dock.

Each candidate board is checked (towns for both players, a path between
the docks, corridor width, symmetry). A failed candidate is retried with a
reseeded copy of the parameters until max_attempts is reached.
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass, replace
from typing import Optional
import logging

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from ..core.board import WATER, LAND, Board, Coordinate, Dock, Land, Square, Town, Water
from .noise import value_noise

logger = logging.getLogger(__name__)

# Towns may only appear where one dock is this much closer than the other
ZONE_RATIO = 0.4


@dataclass
class BoardParams:
    """Generation parameters. Identical parameters give identical boards."""
    seed: int = 1234
    generation: int = 0
    bounding_width: int = 16
    bounding_height: int = 18
    maximum_land_width: Optional[int] = 10
    maximum_land_height: Optional[int] = 14
    water_level: float = 0.5
    town_density: float = 0.5
    jitter: float = 0.5
    town_jitter: float = 0.5
    dispersion: float = 1.0          # Noise feature size in squares
    island_influence: float = 1.0    # Strength of the radial falloff toward the edges
    water_carving: Optional[float] = None  # Level of a second noise layer that cuts lakes
    symmetric: bool = False          # Boards identical under a half turn, players swapped
    minimum_choke: int = 1           # Narrowest corridor allowed between the docks
    maximum_town_density: Optional[float] = None  # Max fraction of a zone that becomes towns
    maximum_town_distance: Optional[float] = None  # Max normalized distance of a town from the center
    max_attempts: int = 100
    current_iteration: int = 0

    def regen(self) -> None:
        """Advance to the next seed in a fixed sequence."""
        self.seed = int(np.random.default_rng(self.seed).integers(2 ** 32))
        self.current_iteration += 1


@dataclass
class BoardGenerationResult:
    board: Board
    iterations: int
    succeeded: bool


class GenerationFailure(Exception):
    """Raised inside an attempt when a candidate board is rejected."""


class _NoLand(GenerationFailure):
    pass


class _TooWide(GenerationFailure):
    pass


class _TooTall(GenerationFailure):
    pass


def generate_board(params: Optional[BoardParams] = None) -> BoardGenerationResult:
    """
    Generate a board, retrying until every check passes.

    Returns:
        The board with succeeded=True, or the last rejected candidate with
        succeeded=False once max_attempts have been used
    """
    params = replace(params or BoardParams())
    if params.max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {params.max_attempts}")
    board = None
    for attempt in range(params.max_attempts):
        candidate = Board([[WATER] * (params.bounding_width + 2)
                           for _ in range(params.bounding_height + 2)])
        try:
            _attempt(candidate, params)
        except _NoLand:
            params.water_level *= 0.5
        except _TooWide:
            params.bounding_width -= 1
        except _TooTall:
            params.bounding_height -= 1
        except GenerationFailure as e:
            logger.debug("Board %d rejected: %s", params.current_iteration, e)
            params.regen()
        else:
            logger.debug("Generated a board in %d step(s)", params.current_iteration)
            return BoardGenerationResult(candidate, params.current_iteration, True)
        board = candidate

    logger.warning("Board generation gave up after %d attempts", params.max_attempts)
    return BoardGenerationResult(board, params.current_iteration, False)


def _attempt(board: Board, params: BoardParams) -> None:
    rng = np.random.default_rng([params.seed, params.generation])

    board.squares = _land_squares(params, rng)
    board.cache_special_squares()
    trim_nubs(board)

    board.trim()
    if params.maximum_land_width is not None and board.width > params.maximum_land_width + 2:
        if params.bounding_width <= 1:
            raise GenerationFailure("land can't be narrowed any further")
        raise _TooWide()
    if params.maximum_land_height is not None and board.height > params.maximum_land_height + 2:
        if params.bounding_height <= 1:
            raise GenerationFailure("land can't be shortened any further")
        raise _TooTall()

    drop_docks(board, rng, params.symmetric)
    generate_towns(board, rng, params)
    ensure_paths(board)
    check_choke(board, params.minimum_choke)
    if params.symmetric:
        check_symmetry(board)


def _land_squares(params: BoardParams, rng: np.random.Generator) -> list[list[Square]]:
    width, height = params.bounding_width, params.bounding_height
    noise = value_noise((height, width), rng, params.dispersion, symmetric=params.symmetric)

    # Normalized coordinates of the interior, centered on the middle of the board
    ni = np.arange(1, width + 1) / (width + 1) - 0.5
    nj = np.arange(1, height + 1) / (height + 1) - 0.5
    distance_to_center = np.sqrt(ni[None, :] ** 2 + nj[:, None] ** 2)
    gradient = 1.0 - distance_to_center * 2.0 * params.island_influence

    value = noise * params.jitter + noise * gradient
    land = value > params.water_level
    if params.water_carving is not None:
        carving = value_noise((height, width), rng, params.dispersion, symmetric=params.symmetric)
        land &= carving > params.water_carving

    squares: list[list[Square]] = [[WATER] * (width + 2)]
    for row in land:
        squares.append([WATER] + [LAND if cell else WATER for cell in row] + [WATER])
    squares.append([WATER] * (width + 2))
    return squares


def trim_nubs(board: Board) -> None:
    """Flood everything but the largest landmass."""
    visited: set[Coordinate] = set()
    largest: set[Coordinate] = set()
    for coord in board.coordinates():
        if coord in visited or not isinstance(board.get(coord), Land):
            continue
        this_search = {coord}
        visited.add(coord)
        pts = deque([coord])
        while pts:
            pt = pts.popleft()
            for neighbor, square in board.neighbouring_squares(pt):
                if neighbor not in visited and isinstance(square, Land):
                    visited.add(neighbor)
                    this_search.add(neighbor)
                    pts.append(neighbor)
        if len(this_search) > len(largest):
            largest = this_search

    if not largest:
        raise _NoLand()

    for coord in board.coordinates():
        if coord not in largest and isinstance(board.get(coord), Land):
            board.set_square(coord, WATER)


def drop_docks(board: Board, rng: np.random.Generator, symmetric: bool = False) -> None:
    """Put a dock for each player on ocean water next to the land."""
    start = Coordinate(0, 0)
    visited = {start}
    land_adjacent: list[Coordinate] = []
    pts = deque([start])
    while pts:
        pt = pts.popleft()
        for neighbor, square in board.neighbouring_squares(pt):
            if isinstance(square, Land) and pt not in land_adjacent:
                land_adjacent.append(pt)
            if neighbor in visited:
                continue
            if isinstance(square, Water):
                visited.add(neighbor)
                pts.append(neighbor)

    if not land_adjacent:
        raise GenerationFailure("no ocean touches the land")

    dock_zero = land_adjacent[int(rng.integers(len(land_adjacent)))]
    if symmetric:
        dock_one = board.reciprocal_coordinate(dock_zero)
        if dock_one not in land_adjacent or dock_one == dock_zero:
            raise GenerationFailure("the opposite dock isn't on the shore")
    else:
        furthest_distance = max(pt.distance_to(dock_zero) for pt in land_adjacent)
        min_distance = (furthest_distance // 3) * 2
        far_positions = [pt for pt in land_adjacent if pt.distance_to(dock_zero) >= min_distance]
        dock_one = far_positions[int(rng.integers(len(far_positions)))]
        if dock_one == dock_zero:
            raise GenerationFailure("only one dock position is available")

    board.set_square(dock_zero, Dock(0))
    board.set_square(dock_one, Dock(1))
    board.cache_special_squares()


def generate_towns(board: Board, rng: np.random.Generator, params: BoardParams) -> None:
    """Grow towns near each dock from a second noise layer."""
    docks = {board.get(d).player: d for d in board.docks}
    if set(docks) != {0, 1}:
        raise GenerationFailure("expected a dock for each of two players")

    town_rng = np.random.default_rng(int(rng.integers(2 ** 32)))
    noise = value_noise((board.height, board.width), town_rng, params.dispersion,
                        symmetric=params.symmetric)

    zones: dict[int, list[tuple[float, Coordinate]]] = {0: [], 1: []}
    for coord in board.coordinates():
        if not isinstance(board.get(coord), Land):
            continue
        distance_zero = coord.distance_to(docks[0])
        distance_one = coord.distance_to(docks[1])
        if distance_zero / distance_one < ZONE_RATIO:
            player = 0
        elif distance_one / distance_zero < ZONE_RATIO:
            player = 1
        else:
            continue

        rel_i = coord.x / (board.width - 1) - 0.5
        rel_j = coord.y / (board.height - 1) - 0.5
        distance_to_center = float(np.sqrt(rel_i ** 2 + rel_j ** 2))
        if params.maximum_town_distance is not None and distance_to_center > params.maximum_town_distance:
            continue

        # Inverse radial gradient, towns prefer the edges
        gradient = distance_to_center * 2.0
        value = float(noise[coord.y, coord.x]) * (params.town_jitter + gradient)
        zones[player].append((value, coord))

    for player, candidates in zones.items():
        towns = [(v, c) for v, c in candidates if v > 1.0 - params.town_density]
        if params.maximum_town_density is not None:
            limit = max(1, int(params.maximum_town_density * len(candidates)))
            towns = sorted(towns, key=lambda vc: (-vc[0], vc[1]))[:limit]
        for _, coord in towns:
            board.set_square(coord, Town(player))

    board.cache_special_squares()
    for player in (0, 1):
        if not any(board.get(t).player == player for t in board.towns):
            raise GenerationFailure(f"player {player} has no towns")


def ensure_paths(board: Board) -> None:
    dock_zero, dock_one = sorted(board.docks, key=lambda d: board.get(d).player)
    if board.flood_fill(dock_zero).attackable_distance(dock_one) is None:
        raise GenerationFailure("the docks aren't connected")


def _walkable_mask(board: Board) -> np.ndarray:
    return np.array([
        [isinstance(sq, (Land, Town)) for sq in row]
        for row in board.squares
    ])


def _opening(mask: np.ndarray, size: int) -> np.ndarray:
    """Morphological opening: the cells covered by a size x size square that fits inside mask."""
    if size <= 1:
        return mask.copy()
    opened = np.zeros_like(mask)
    if mask.shape[0] < size or mask.shape[1] < size:
        return opened
    fits = sliding_window_view(mask, (size, size)).all(axis=(2, 3))
    for dy in range(size):
        for dx in range(size):
            opened[dy:dy + fits.shape[0], dx:dx + fits.shape[1]] |= fits
    return opened


def check_choke(board: Board, minimum_choke: int) -> None:
    """Require a corridor at least minimum_choke squares wide between the docks."""
    if minimum_choke <= 1:
        return
    opened = _opening(_walkable_mask(board), minimum_choke)
    dock_zero, dock_one = sorted(board.docks, key=lambda d: board.get(d).player)

    def near(dock: Coordinate) -> set[Coordinate]:
        ys, xs = np.nonzero(opened)
        return {
            Coordinate(int(x), int(y)) for y, x in zip(ys, xs)
            if Coordinate(int(x), int(y)).distance_to(dock) <= minimum_choke
        }

    starts, targets = near(dock_zero), near(dock_one)
    seen = set(starts)
    pts = deque(starts)
    while pts:
        pt = pts.popleft()
        if pt in targets:
            return
        for neighbor in pt.neighbors_4():
            if (neighbor not in seen and board.in_bounds(neighbor)
                    and opened[neighbor.y, neighbor.x]):
                seen.add(neighbor)
                pts.append(neighbor)
    raise GenerationFailure(f"no corridor {minimum_choke} squares wide joins the docks")


def check_symmetry(board: Board) -> None:
    """Each square must mirror its reciprocal with the players swapped."""

    def swapped(square: Square) -> Square:
        if isinstance(square, Town):
            return Town(1 - square.player, square.defeated)
        if isinstance(square, Dock):
            return Dock(1 - square.player)
        return square

    for coord in board.coordinates():
        if board.get(board.reciprocal_coordinate(coord)) != swapped(board.get(coord)):
            raise GenerationFailure(f"board isn't symmetric at {coord}")
