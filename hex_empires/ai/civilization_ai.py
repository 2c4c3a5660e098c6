"""
Civilization AI for Hex Empires.

One instance per computer-controlled civilization. Each turn it runs,
in order:
- production: idle cities get the item with the highest military,
  expansion or infrastructure need
- unit orders: settlers move to good city sites and found cities;
  military units attack, fortify or advance
- diplomacy: maybe declare war on a weak neighbour
- exploration: units that received no other orders explore
"""

from typing import Dict, List, Optional, Tuple, TYPE_CHECKING

from .base_strategy import BaseStrategy
from ..core.enums import UnitType, BuildingType
from ..core.constants import (
    EXPLORATION_RADIUS, NEIGHBOR_RADIUS, WAR_STRENGTH_MARGIN, WAR_AGGRESSION_THRESHOLD,
    MILITARY_NEED_THRESHOLD, EXPANSION_NEED_THRESHOLD, INFRASTRUCTURE_NEED_THRESHOLD
)
from ..entities.city import City, ProductionItem
from ..utils.hex_utils import hex_distance

if TYPE_CHECKING:
    from ..entities.civilization import Civilization
    from ..entities.unit import Unit
    from ..game.game_map import GameMap

# Weakest to strongest
MILITARY_UNIT_LADDER = (UnitType.MILITIA, UnitType.PHALANX, UnitType.LEGION, UnitType.CAVALRY)


class CivilizationAI(BaseStrategy):
    """Heuristic AI driven by the owning civilization's personality."""

    def __init__(self):
        super().__init__("civilization_ai")

    def make_decisions(self, civilization: "Civilization", world: "GameMap") -> None:
        """Run production, unit orders, diplomacy and exploration in that order."""
        for city in world.get_cities_for(civilization.id):
            if city.current_production is None and not city.build_queue:
                item = self.choose_production(city, civilization, world)
                city.queue_production(item)

        self.command_units(civilization, world)
        self.conduct_diplomacy(civilization, world)
        self.explore(civilization, world)

    # Research
    def choose_research(self, civilization: "Civilization") -> Optional[str]:
        """Highest 10 + 2 x matching trait - cost // 10 among available technologies."""
        best_id, best_score = None, None
        for tech in civilization.technology_manager.get_available():
            trait = civilization.personality.trait_for_category(tech.category)
            score = 10 + 2 * trait - tech.cost // 10
            if best_score is None or score > best_score:
                best_id, best_score = tech.tech_id, score
        if best_id is not None:
            self.log_decision("research", {"civilization_id": civilization.id, "tech_id": best_id,
                                           "score": best_score})
        return best_id

    # Production
    def calculate_military_need(self, civilization: "Civilization", world: "GameMap") -> int:
        cities = len(world.get_cities_for(civilization.id))
        military = len(civilization.military_units(world))
        need = max(0, 2 * cities - military) * 20
        if civilization.at_war_with:
            need += 50
        need += civilization.personality.aggression * 3
        return min(100, need)

    def calculate_expansion_need(self, civilization: "Civilization", world: "GameMap") -> int:
        cities = world.get_cities_for(civilization.id)
        settlers = [u for u in world.get_units_for(civilization.id) if u.can_settle]
        center = self._home_position(civilization, world)
        good_sites = self.count_good_sites(center, EXPLORATION_RADIUS, world) if center else 0
        need = (civilization.personality.expansion * 5 - len(cities) * 10 - len(settlers) * 30
                + 10 * min(5, good_sites))
        return max(0, min(100, need))

    def calculate_infrastructure_needs(self, city: City, civilization: "Civilization") -> Dict[BuildingType, int]:
        needs: Dict[BuildingType, int] = {}
        if city.population >= 3:
            needs[BuildingType.GRANARY] = 40
        if civilization.personality.military > 5:
            needs[BuildingType.BARRACKS] = 30
        if city.unhappiness > 20:
            needs[BuildingType.TEMPLE] = 35
        if city.trade > 3:
            needs[BuildingType.MARKETPLACE] = 25
        return needs

    def best_military_unit(self, city: City, civilization: "Civilization", world: "GameMap") -> UnitType:
        """Strongest unit on the ladder this city can build."""
        for unit_type in reversed(MILITARY_UNIT_LADDER):
            if city.can_build(ProductionItem.unit(unit_type), civilization, world) is None:
                return unit_type
        return UnitType.MILITIA

    def choose_production(self, city: City, civilization: "Civilization", world: "GameMap") -> ProductionItem:
        """Highest-need candidate; militia when nothing clears its threshold."""
        candidates: List[Tuple[int, ProductionItem]] = []

        military_need = self.calculate_military_need(civilization, world)
        if military_need > MILITARY_NEED_THRESHOLD:
            candidates.append((military_need, ProductionItem.unit(self.best_military_unit(city, civilization, world))))

        expansion_need = self.calculate_expansion_need(civilization, world)
        if expansion_need > EXPANSION_NEED_THRESHOLD:
            candidates.append((expansion_need, ProductionItem.unit(UnitType.SETTLER)))

        for building, need in self.calculate_infrastructure_needs(city, civilization).items():
            item = ProductionItem.building(building)
            if need > INFRASTRUCTURE_NEED_THRESHOLD and city.can_build(item, civilization, world) is None:
                candidates.append((need, item))

        if candidates:
            need, choice = max(candidates, key=lambda c: c[0])
        else:
            need, choice = 0, ProductionItem.unit(UnitType.MILITIA)

        civilization.priorities.military = military_need
        civilization.priorities.expansion = expansion_need
        self.log_decision("production", {"city_id": city.id, "item": str(choice), "need": need})
        return choice

    # Diplomacy
    def conduct_diplomacy(self, civilization: "Civilization", world: "GameMap") -> Optional[int]:
        """Maybe declare war on the weakest nearby civilization; returns its id."""
        aggression = civilization.personality.aggression
        if aggression <= WAR_AGGRESSION_THRESHOLD:
            return None
        if world.rng.random() >= aggression / 100:
            return None

        own_strength = civilization.strength(world)
        weakest, weakest_strength = None, None
        for other in self.find_neighbors(civilization, world):
            if civilization.is_at_war_with(other.id):
                continue
            strength = other.strength(world)
            if strength < own_strength * WAR_STRENGTH_MARGIN and (weakest is None or strength < weakest_strength):
                weakest, weakest_strength = other, strength
        if weakest is None:
            return None

        civilization.declare_war(weakest.id, world)
        self.log_decision("war", {"civilization_id": civilization.id, "target_id": weakest.id,
                                  "own_strength": own_strength, "target_strength": weakest_strength})
        return weakest.id

    def find_neighbors(self, civilization: "Civilization", world: "GameMap") -> List["Civilization"]:
        """Living civilizations with a city within range of one of ours."""
        own_cities = world.get_cities_for(civilization.id)
        neighbors = []
        for other in world.get_civilizations():
            if other.id == civilization.id or not other.alive:
                continue
            if any(hex_distance(mine.position, theirs.position) <= NEIGHBOR_RADIUS
                   for mine in own_cities for theirs in world.get_cities_for(other.id)):
                neighbors.append(other)
        return neighbors

    # Unit orders
    def command_units(self, civilization: "Civilization", world: "GameMap") -> None:
        for unit in list(world.get_units_for(civilization.id)):
            if world.get_unit(unit.id) is None or not unit.needs_orders():
                continue
            if unit.can_settle:
                self.command_settler(unit, civilization, world)
            elif unit.is_military:
                self.command_military(unit, civilization, world)

    def command_settler(self, unit: "Unit", civilization: "Civilization", world: "GameMap") -> None:
        if not world.get_cities_for(civilization.id) and unit.check_settle(world) is None:
            unit.settle(world)
            self.log_decision("settle", {"unit_id": unit.id, "position": unit.position, "first_city": True})
            return

        targets = self.evaluate_settler_targets(unit, world)
        if not targets:
            return
        target, score = targets[0]
        if unit.position != target:
            self.step_toward(unit, target, world)
            self.log_decision("settler_move", {"unit_id": unit.id, "target": target, "score": score})
        if world.get_unit(unit.id) is not None and unit.position == target and unit.check_settle(world) is None:
            unit.settle(world)
            self.log_decision("settle", {"unit_id": unit.id, "position": target, "first_city": False})

    def command_military(self, unit: "Unit", civilization: "Civilization", world: "GameMap") -> None:
        enemies = self.adjacent_enemy_units(unit, civilization, world)
        if enemies:
            target = min(enemies, key=lambda u: (u.defense, u.id))
            outcome = unit.attack_unit(target, world)
            self.log_decision("attack", {"unit_id": unit.id, "target_id": target.id, "success": outcome.success})
            return

        city = world.get_city_at(unit.col, unit.row)
        if city is not None and city.civilization_id == civilization.id and len(world.get_units_at(*unit.position)) == 1:
            if not unit.fortified:
                unit.fortify(world)
                self.log_decision("fortify", {"unit_id": unit.id, "city_id": city.id})
            return

        enemy = self.find_nearest_enemy(unit, civilization, world)
        if enemy is not None:
            self.step_toward(unit, enemy, world)
            self.log_decision("advance", {"unit_id": unit.id, "target": enemy})

    # Exploration
    def explore(self, civilization: "Civilization", world: "GameMap") -> None:
        """Idle military units head for unexplored tiles, or wander."""
        for unit in list(world.get_units_for(civilization.id)):
            if world.get_unit(unit.id) is None or not unit.is_military or not unit.needs_orders():
                continue
            target = self.nearest_unexplored(unit, EXPLORATION_RADIUS, world)
            if target is not None and self.step_toward(unit, target, world):
                self.log_decision("explore", {"unit_id": unit.id, "target": target})
            elif self.random_step(unit, world):
                self.log_decision("wander", {"unit_id": unit.id, "position": unit.position})

    def _home_position(self, civilization: "Civilization", world: "GameMap") -> Optional[Tuple[int, int]]:
        capital = world.get_capital(civilization.id)
        if capital is not None:
            return capital.position
        units = world.get_units_for(civilization.id)
        return units[0].position if units else None
