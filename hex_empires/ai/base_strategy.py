"""Base strategy class for AI decision making."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple, TYPE_CHECKING
import logging
import math

from ..core.enums import TerrainType
from ..core.constants import (
    GOOD_SITE_MIN_DISTANCE, GOOD_SITE_MIN_YIELD, SETTLER_SEARCH_RADIUS, ENEMY_SEARCH_RADIUS
)
from ..entities.city import evaluate_city_site
from ..utils.hex_utils import hex_distance

if TYPE_CHECKING:
    from ..entities.civilization import Civilization
    from ..entities.unit import Unit
    from ..game.game_map import GameMap

Position = Tuple[int, int]


class BaseStrategy(ABC):
    """Base class for AI strategy implementations.

    Subclasses decide; the helpers here only evaluate the map and move
    units through their own ``move_to`` so every rule still applies.
    """

    def __init__(self, strategy_name: str):
        self.strategy_name = strategy_name
        self.decision_history: List[Dict[str, Any]] = []

    @abstractmethod
    def make_decisions(self, civilization: "Civilization", world: "GameMap") -> None:
        """Issue this turn's production, unit, diplomacy and exploration orders."""
        pass

    @abstractmethod
    def choose_research(self, civilization: "Civilization") -> Optional[str]:
        """Pick the next technology to research."""
        pass

    # Site evaluation
    def is_good_city_site(self, col: int, row: int, world: "GameMap") -> bool:
        """Land, not mountains, spaced from every city, with enough combined yield."""
        tile = world.get_tile(col, row)
        if tile is None or tile.is_water or tile.terrain == TerrainType.MOUNTAINS:
            return False
        for city in world.get_all_cities():
            if hex_distance(city.position, (col, row)) < GOOD_SITE_MIN_DISTANCE:
                return False
        combined = sum(world.get_tile(c, r).get_yields().total for c, r in world.grid.get_neighbors(col, row))
        return combined >= GOOD_SITE_MIN_YIELD

    def count_good_sites(self, center: Position, radius: int, world: "GameMap") -> int:
        return sum(1 for col, row in world.grid.get_hexes_in_range(center, radius)
                   if self.is_good_city_site(col, row, world))

    def evaluate_settler_targets(self, unit: "Unit", world: "GameMap",
                                 radius: int = SETTLER_SEARCH_RADIUS) -> List[Tuple[Position, float]]:
        """Good sites near a settler scored by site value minus twice the distance, best first."""
        candidates = []
        for col, row in world.grid.get_hexes_in_range(unit.position, radius):
            if not self.is_good_city_site(col, row, world):
                continue
            if any(u.civilization_id != unit.civilization_id for u in world.get_units_at(col, row)):
                continue
            score = evaluate_city_site(world.get_tile(col, row), world) - 2 * hex_distance(unit.position, (col, row))
            candidates.append(((col, row), score))
        candidates.sort(key=lambda c: (-c[1], c[0]))
        return candidates

    # Enemy detection
    def find_nearest_enemy(self, unit: "Unit", civilization: "Civilization", world: "GameMap",
                           radius: int = ENEMY_SEARCH_RADIUS) -> Optional[Position]:
        """Closest unit or city of a civilization we are at war with."""
        best = None
        for col, row in world.grid.get_hexes_in_range(unit.position, radius):
            hostile = any(civilization.is_at_war_with(u.civilization_id) for u in world.get_units_at(col, row))
            city = world.get_city_at(col, row)
            if city is not None and civilization.is_at_war_with(city.civilization_id):
                hostile = True
            if hostile:
                key = (hex_distance(unit.position, (col, row)), (col, row))
                if best is None or key < best:
                    best = key
        return best[1] if best else None

    def adjacent_enemy_units(self, unit: "Unit", civilization: "Civilization", world: "GameMap") -> List["Unit"]:
        enemies = []
        for col, row in world.grid.get_neighbors(unit.col, unit.row):
            enemies.extend(u for u in world.get_units_at(col, row)
                           if civilization.is_at_war_with(u.civilization_id))
        return enemies

    # Movement helpers
    def step_toward(self, unit: "Unit", target: Position, world: "GameMap") -> bool:
        """Follow an A* path toward target while movement lasts; True if the unit moved."""
        if unit.position == tuple(target):
            return False
        path = world.grid.find_path(unit.position, tuple(target), world.movement_cost_fn(unit, goal=target))
        moved = False
        for step in path[1:]:
            if not unit.has_moves_left() or world.get_unit(unit.id) is None:
                break
            if step == tuple(target) and world.get_units_at(*step):
                break
            if not unit.move_to(step[0], step[1], world).success:
                break
            moved = True
        return moved

    def random_step(self, unit: "Unit", world: "GameMap") -> bool:
        """Take one legal step in a random direction."""
        neighbors = world.grid.get_neighbors(unit.col, unit.row)
        world.rng.shuffle(neighbors)
        for col, row in neighbors:
            if unit.can_move_to(col, row, world) is None:
                return unit.move_to(col, row, world).success
        return False

    def nearest_unexplored(self, unit: "Unit", radius: int, world: "GameMap") -> Optional[Position]:
        """Closest tile the owner has never seen that the unit can stand on."""
        best = None
        for col, row in world.grid.get_hexes_in_range(unit.position, radius):
            tile = world.get_tile(col, row)
            if tile.is_explored_by(unit.civilization_id):
                continue
            if math.isinf(tile.get_movement_cost(unit)):
                continue
            key = (hex_distance(unit.position, (col, row)), (col, row))
            if best is None or key < best:
                best = key
        return best[1] if best else None

    # Decision log
    def log_decision(self, decision_type: str, decision_data: Dict[str, Any]):
        """Log a strategic decision for analysis."""
        log_entry = {
            "decision_type": decision_type,
            "data": decision_data,
            "strategy": self.strategy_name
        }
        self.decision_history.append(log_entry)
        logging.debug(f"AI {self.strategy_name} {decision_type}: {decision_data}")

    def get_decision_summary(self) -> Dict[str, int]:
        """Count logged decisions by type."""
        summary: Dict[str, int] = {}
        for entry in self.decision_history:
            summary[entry["decision_type"]] = summary.get(entry["decision_type"], 0) + 1
        return summary
