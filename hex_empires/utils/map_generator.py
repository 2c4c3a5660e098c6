"""Procedural terrain generation for Hex Empires.

Three layered noise fields (elevation, temperature, humidity) classify each
cell, a smoothing pass removes single-tile water/land anomalies, and a final
pass scatters special resources. Output is fully determined by the seed.
"""

from dataclasses import dataclass
from typing import List, Optional

import logging
import numpy as np

from ..core.enums import TerrainType, ResourceType
from ..core.exceptions import MapGenerationError
from ..core.constants import (
    NOISE_SCALE, NOISE_OCTAVES, TEMPERATURE_OFFSET, HUMIDITY_OFFSET,
    RESOURCE_CHANCE, SMOOTHING_MIN_NEIGHBORS
)
from ..data import GameRules, DEFAULT_RULES
from .hex_utils import HexGrid
from .validation import GameValidator


def _fade(t: np.ndarray) -> np.ndarray:
    return t * t * t * (t * (t * 6 - 15) + 10)


def _lerp(a: np.ndarray, b: np.ndarray, t: np.ndarray) -> np.ndarray:
    return a + t * (b - a)


def _gradient(hashed: np.ndarray, x: np.ndarray, y: np.ndarray) -> np.ndarray:
    h = hashed & 3
    return np.where(h & 1, -x, x) + np.where(h & 2, -y, y)


class PerlinNoise:
    """Seeded 2D gradient noise over numpy arrays."""

    def __init__(self, seed: Optional[int] = None):
        rng = np.random.default_rng(seed)
        permutation = rng.permutation(256)
        self._perm = np.concatenate([permutation, permutation])

    def noise(self, x, y) -> np.ndarray:
        """Single-octave noise, roughly in [-1, 1]."""
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)
        x_floor = np.floor(x)
        y_floor = np.floor(y)
        xi = x_floor.astype(int) & 255
        yi = y_floor.astype(int) & 255
        xf = x - x_floor
        yf = y - y_floor
        u = _fade(xf)
        v = _fade(yf)

        p = self._perm
        aa = p[p[xi] + yi]
        ab = p[p[xi] + yi + 1]
        ba = p[p[xi + 1] + yi]
        bb = p[p[xi + 1] + yi + 1]

        x1 = _lerp(_gradient(aa, xf, yf), _gradient(ba, xf - 1, yf), u)
        x2 = _lerp(_gradient(ab, xf, yf - 1), _gradient(bb, xf - 1, yf - 1), u)
        return _lerp(x1, x2, v)

    def fractal(self, x, y, octaves: int = 1, persistence: float = 0.5) -> np.ndarray:
        """Sum of octaves normalised back to the single-octave range."""
        total = np.zeros(np.broadcast(np.asarray(x), np.asarray(y)).shape)
        amplitude = 1.0
        frequency = 1.0
        max_amplitude = 0.0
        for _ in range(octaves):
            total = total + amplitude * self.noise(np.asarray(x) * frequency, np.asarray(y) * frequency)
            max_amplitude += amplitude
            amplitude *= persistence
            frequency *= 2.0
        return total / max_amplitude


@dataclass
class GeneratorConfig:
    """Tunable parameters for terrain generation."""

    scale: float = NOISE_SCALE
    octaves: int = NOISE_OCTAVES
    ocean_threshold: float = -0.3
    mountain_threshold: float = 0.4
    hill_threshold: float = 0.2
    resource_chance: float = RESOURCE_CHANCE
    smoothing: bool = True

    def validate(self) -> None:
        """Validate generator settings."""
        GameValidator.validate_positive(self.scale, "scale")
        GameValidator.validate_range(self.octaves, 1, 8, "octaves")
        GameValidator.validate_probability(self.resource_chance, "resource_chance")
        if not self.ocean_threshold < self.hill_threshold < self.mountain_threshold:
            raise MapGenerationError(
                "Elevation thresholds must be increasing",
                error_code="BAD_THRESHOLDS",
                context={"ocean": self.ocean_threshold, "hill": self.hill_threshold,
                         "mountain": self.mountain_threshold}
            )


class TerrainGenerator:
    """Builds the tile grid for a new map."""

    def __init__(self, width: int, height: int, seed: Optional[int] = None,
                 config: Optional[GeneratorConfig] = None, rules: GameRules = DEFAULT_RULES):
        GameValidator.validate_map_dimensions(width, height)
        self.width = width
        self.height = height
        self.seed = seed
        self.config = config or GeneratorConfig()
        self.config.validate()
        self.rules = rules
        self.grid = HexGrid(width, height)
        self.noise = PerlinNoise(seed)
        self.rng = np.random.default_rng(seed)

    def sample_fields(self):
        """Elevation, temperature and humidity arrays indexed [row, col]."""
        rows, cols = np.mgrid[0:self.height, 0:self.width]
        s = self.config.scale
        octaves = self.config.octaves
        elevation = self.noise.fractal(cols * s, rows * s, octaves)
        temperature = self.noise.fractal((cols + TEMPERATURE_OFFSET) * s, (rows + TEMPERATURE_OFFSET) * s, octaves)
        humidity = self.noise.fractal((cols + HUMIDITY_OFFSET) * s, (rows + HUMIDITY_OFFSET) * s, octaves)
        return elevation, temperature, humidity

    def classify(self, elevation: float, temperature: float, humidity: float) -> TerrainType:
        """Threshold rules, first match wins."""
        cfg = self.config
        if elevation < cfg.ocean_threshold:
            return TerrainType.OCEAN
        if elevation > cfg.mountain_threshold:
            return TerrainType.MOUNTAINS
        if elevation > cfg.hill_threshold:
            return TerrainType.HILLS
        if temperature < -0.2:
            return TerrainType.TUNDRA
        if temperature > 0.3 and humidity < -0.2:
            return TerrainType.DESERT
        if humidity > 0.2 and -0.1 < temperature < 0.3:
            return TerrainType.FOREST
        if humidity > 0.3 and temperature >= 0.3:
            return TerrainType.JUNGLE
        if humidity < 0.1:
            return TerrainType.PLAINS
        return TerrainType.GRASSLAND

    def generate_terrain(self) -> List[List[TerrainType]]:
        """Terrain grid indexed [row][col], before smoothing."""
        elevation, temperature, humidity = self.sample_fields()
        return [
            [self.classify(elevation[row, col], temperature[row, col], humidity[row, col])
             for col in range(self.width)]
            for row in range(self.height)
        ]

    def smooth(self, terrain: List[List[TerrainType]]) -> List[List[TerrainType]]:
        """Reclassify water/land tiles with fewer than three same-category neighbours.

        Works from a snapshot so the result does not depend on scan order.
        Edge tiles with fewer neighbours need all of them to match.
        """
        is_water = [[self.rules.terrain_data(t).is_water for t in row] for row in terrain]
        result = [list(row) for row in terrain]
        for col, row in self.grid.positions():
            neighbors = self.grid.get_neighbors(col, row)
            same = sum(1 for c, r in neighbors if is_water[r][c] == is_water[row][col])
            if same < min(SMOOTHING_MIN_NEIGHBORS, len(neighbors)):
                result[row][col] = TerrainType.GRASSLAND if is_water[row][col] else TerrainType.OCEAN
        return result

    def place_resources(self, terrain: List[List[TerrainType]]) -> List[List[Optional[ResourceType]]]:
        """At most one resource per tile, drawn with a fixed chance."""
        resources = [[None] * self.width for _ in range(self.height)]
        for col, row in self.grid.positions():
            if self.rng.random() >= self.config.resource_chance:
                continue
            candidates = self.rules.resources_for(terrain[row][col])
            if candidates:
                resources[row][col] = candidates[int(self.rng.integers(len(candidates)))]
        return resources

    def generate(self):
        """Create the full tile grid, indexed [row][col]."""
        from ..entities.tile import Tile

        terrain = self.generate_terrain()
        if self.config.smoothing:
            terrain = self.smooth(terrain)
        resources = self.place_resources(terrain)

        tiles = [
            [Tile(col, row, terrain[row][col], resource=resources[row][col], rules=self.rules)
             for col in range(self.width)]
            for row in range(self.height)
        ]
        water = sum(1 for row in terrain for t in row if self.rules.terrain_data(t).is_water)
        logging.info(f"Generated {self.width}x{self.height} map (seed={self.seed}, water tiles={water})")
        return tiles
