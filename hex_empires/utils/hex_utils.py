"""Hex grid mathematics and pathfinding for Hex Empires.

The map uses "odd-r" offset coordinates: ``(col, row)`` with every odd row
shifted half a hex to the right. Distance and range queries convert to cube
coordinates, where a step in any of the six directions changes exactly two
components by one.
"""

import math
from typing import Callable, Dict, Iterator, List, Optional, Set, Tuple

from ..core.exceptions import raise_if_out_of_bounds

Position = Tuple[int, int]
Cube = Tuple[int, int, int]
StepCost = Callable[[Position, Position], float]

# (dcol, drow) for E, NE, NW, W, SW, SE; depends on row parity
EVEN_ROW_DIRECTIONS = ((1, 0), (0, -1), (-1, -1), (-1, 0), (-1, 1), (0, 1))
ODD_ROW_DIRECTIONS = ((1, 0), (1, -1), (0, -1), (-1, 0), (0, 1), (1, 1))

# Cube (x, y, z) directions in cyclic order
CUBE_DIRECTIONS = ((1, -1, 0), (1, 0, -1), (0, 1, -1), (-1, 1, 0), (-1, 0, 1), (0, -1, 1))


def offset_to_cube(col: int, row: int) -> Cube:
    """Convert odd-r offset coordinates to cube coordinates."""
    x = col - (row - (row & 1)) // 2
    z = row
    return (x, -x - z, z)


def cube_to_offset(cube: Cube) -> Position:
    """Convert cube coordinates back to odd-r offset coordinates."""
    x, _, z = cube
    return (x + (z - (z & 1)) // 2, z)


def cube_distance(a: Cube, b: Cube) -> int:
    return (abs(a[0] - b[0]) + abs(a[1] - b[1]) + abs(a[2] - b[2])) // 2


def hex_distance(a: Position, b: Position) -> int:
    """Number of hex steps between two offset positions."""
    return cube_distance(offset_to_cube(*a), offset_to_cube(*b))


def manhattan_distance(a: Position, b: Position) -> int:
    """Offset-space Manhattan distance, used for the city work radius."""
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def direction_offsets(row: int) -> Tuple[Position, ...]:
    """Neighbour offsets for a row; odd and even rows differ."""
    return ODD_ROW_DIRECTIONS if row & 1 else EVEN_ROW_DIRECTIONS


def neighbor_positions(col: int, row: int) -> List[Position]:
    """All six neighbour positions, unbounded."""
    return [(col + dc, row + dr) for dc, dr in direction_offsets(row)]


def is_adjacent(a: Position, b: Position) -> bool:
    return hex_distance(a, b) == 1


class HexGrid:
    """Bounded hex grid with range, ring and A* path queries."""

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height

    def is_valid(self, col: int, row: int) -> bool:
        """Check if a coordinate lies on the map."""
        return 0 <= col < self.width and 0 <= row < self.height

    def positions(self) -> Iterator[Position]:
        """Iterate every position row by row."""
        for row in range(self.height):
            for col in range(self.width):
                yield (col, row)

    def get_neighbors(self, col: int, row: int) -> List[Position]:
        """In-bounds neighbours of a hex."""
        return [(c, r) for c, r in neighbor_positions(col, row) if self.is_valid(c, r)]

    def get_hexes_in_range(self, center: Position, radius: int) -> List[Position]:
        """All hexes within ``radius`` steps of center, center included."""
        if radius < 0:
            return []
        cx, cy, cz = offset_to_cube(*center)
        result = []
        for dx in range(-radius, radius + 1):
            for dy in range(max(-radius, -dx - radius), min(radius, -dx + radius) + 1):
                dz = -dx - dy
                col, row = cube_to_offset((cx + dx, cy + dy, cz + dz))
                if self.is_valid(col, row):
                    result.append((col, row))
        return result

    def get_hex_ring(self, center: Position, radius: int) -> List[Position]:
        """Hexes at exactly ``radius`` steps from center, clipped to the map."""
        if radius < 0:
            return []
        if radius == 0:
            return [center] if self.is_valid(*center) else []

        cube = offset_to_cube(*center)
        start = CUBE_DIRECTIONS[4]
        cube = (cube[0] + start[0] * radius, cube[1] + start[1] * radius, cube[2] + start[2] * radius)
        ring = []
        for direction in range(6):
            dx, dy, dz = CUBE_DIRECTIONS[direction]
            for _ in range(radius):
                col, row = cube_to_offset(cube)
                if self.is_valid(col, row):
                    ring.append((col, row))
                cube = (cube[0] + dx, cube[1] + dy, cube[2] + dz)
        return ring

    def find_path(self, start: Position, end: Position,
                  cost_fn: Optional[StepCost] = None) -> List[Position]:
        """Find a path between two hexes using A*.

        ``cost_fn(from, to)`` returns the cost of one step and may return
        ``math.inf`` for an impassable step. The heuristic is hex distance.
        Returns the full path including both endpoints, ``[start]`` when
        start equals end, or an empty list when the end is unreachable.
        """
        raise_if_out_of_bounds(start[0], start[1], self.width, self.height)
        raise_if_out_of_bounds(end[0], end[1], self.width, self.height)
        start, end = tuple(start), tuple(end)
        if start == end:
            return [start]
        if cost_fn is None:
            cost_fn = lambda current, neighbor: 1

        open_set: Set[Position] = {start}
        closed_set: Set[Position] = set()
        came_from: Dict[Position, Position] = {}
        g_score: Dict[Position, float] = {start: 0}
        f_score: Dict[Position, float] = {start: hex_distance(start, end)}

        while open_set:
            # Get node with lowest f_score, ties broken by position for determinism
            current = min(open_set, key=lambda h: (f_score.get(h, math.inf), h))

            if current == end:
                path = [current]
                while current in came_from:
                    current = came_from[current]
                    path.append(current)
                return path[::-1]

            open_set.remove(current)
            closed_set.add(current)

            for neighbor in self.get_neighbors(*current):
                if neighbor in closed_set:
                    continue
                step = cost_fn(current, neighbor)
                if step is None or math.isinf(step):
                    continue
                tentative_g_score = g_score[current] + step
                if tentative_g_score < g_score.get(neighbor, math.inf):
                    came_from[neighbor] = current
                    g_score[neighbor] = tentative_g_score
                    f_score[neighbor] = tentative_g_score + hex_distance(neighbor, end)
                    open_set.add(neighbor)

        return []

    def path_cost(self, path: List[Position], cost_fn: StepCost) -> float:
        """Total step cost along a path."""
        return sum(cost_fn(a, b) for a, b in zip(path, path[1:]))

    def require_valid(self, col: int, row: int) -> None:
        """Raise InvalidHexError when the coordinate is off the map."""
        raise_if_out_of_bounds(col, row, self.width, self.height)
