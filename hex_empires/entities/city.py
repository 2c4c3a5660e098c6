"""City entity: yields, growth, production queue and unit support."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union, TYPE_CHECKING
import logging

from .base import MapEntity
from ..actions.base_action import ActionOutcome
from ..core.enums import UnitType, BuildingType, ProductionKind, FailureReason
from ..core.exceptions import coerce_enum, UnknownTypeError
from ..core.constants import (
    BASE_MAX_POPULATION, FOOD_PER_CITIZEN, GROWTH_FOOD_PER_CITIZEN, CITY_WORK_RADIUS,
    CORRUPTION_DISTANCE_DIVISOR, GOLD_SHARE, CITY_CENTER_MIN_FOOD, CITY_CENTER_MIN_PRODUCTION,
    CITY_CENTER_MIN_TRADE
)
from ..data import GameRules, DEFAULT_RULES, Yields
from ..game.events import GameEventType
from ..utils.hex_utils import hex_distance, manhattan_distance
from ..utils.validation import Validator

if TYPE_CHECKING:
    from ..game.game_map import GameMap
    from .civilization import Civilization
    from .tile import Tile

Position = Tuple[int, int]


@dataclass(frozen=True)
class ProductionItem:
    """A unit or building a city can produce."""
    kind: ProductionKind
    key: Union[UnitType, BuildingType]

    def __post_init__(self):
        kind = coerce_enum(ProductionKind, self.kind, "production kind")
        enum_class = UnitType if kind == ProductionKind.UNIT else BuildingType
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "key", coerce_enum(enum_class, self.key, kind.value))

    @classmethod
    def unit(cls, unit_type) -> "ProductionItem":
        return cls(ProductionKind.UNIT, unit_type)

    @classmethod
    def building(cls, building) -> "ProductionItem":
        return cls(ProductionKind.BUILDING, building)

    @classmethod
    def parse(cls, value) -> "ProductionItem":
        """Accept an item, a UnitType/BuildingType, a dict or a "kind:key" / bare key string."""
        if isinstance(value, ProductionItem):
            return value
        if isinstance(value, UnitType):
            return cls.unit(value)
        if isinstance(value, BuildingType):
            return cls.building(value)
        if isinstance(value, dict):
            return cls.from_dict(value)
        if isinstance(value, str):
            if ":" in value:
                kind, key = value.split(":", 1)
                return cls(kind, key)
            for enum_class, kind in ((UnitType, ProductionKind.UNIT), (BuildingType, ProductionKind.BUILDING)):
                try:
                    return cls(kind, enum_class(value))
                except ValueError:
                    continue
        raise UnknownTypeError(f"Unknown production item: {value}", error_code="UNKNOWN_TYPE",
                               context={"table": "production", "key": value})

    @property
    def is_unit(self) -> bool:
        return self.kind == ProductionKind.UNIT

    def cost(self, rules: GameRules = DEFAULT_RULES) -> int:
        if self.is_unit:
            return rules.unit_data(self.key).cost
        return rules.building_data(self.key).cost

    def name(self, rules: GameRules = DEFAULT_RULES) -> str:
        if self.is_unit:
            return rules.unit_data(self.key).name
        return rules.building_data(self.key).name

    def required_tech(self, rules: GameRules = DEFAULT_RULES) -> Optional[str]:
        if self.is_unit:
            return rules.unit_data(self.key).required_tech
        return rules.building_data(self.key).required_tech

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.kind.value, "key": self.key.value}

    @classmethod
    def from_dict(cls, data: Dict[str, str]) -> "ProductionItem":
        return cls(data["kind"], data["key"])

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.key.value}"


def evaluate_city_site(tile: "Tile", world: "GameMap") -> float:
    """Score a prospective city site from the tile and its neighbours.

    Each tile adds food x2 + production + trade x1.5, plus 3 when it holds
    a resource.
    """
    score = 0.0
    positions = [tile.position] + world.grid.get_neighbors(tile.col, tile.row)
    for col, row in positions:
        other = world.get_tile(col, row)
        yields = other.get_yields()
        score += yields.food * 2 + yields.production + yields.trade * 1.5
        if other.resource is not None:
            score += 3
    return score


@dataclass(eq=False)
class City(MapEntity):
    """A settlement working nearby tiles and producing units and buildings."""

    name: str = "City"
    population: int = 1
    max_population: int = BASE_MAX_POPULATION
    food_storage: int = 0
    build_queue: List[ProductionItem] = field(default_factory=list)
    current_production: Optional[ProductionItem] = None
    production_progress: int = 0
    carried_over_progress: int = 0
    buildings: List[BuildingType] = field(default_factory=list)
    working_tiles: List[Position] = field(default_factory=list)
    supported_unit_ids: List[str] = field(default_factory=list)
    purchased_this_turn: bool = False
    purchased_item: Optional[ProductionItem] = None
    # Pick production automatically whenever the city goes idle
    auto_production: bool = False
    happiness: int = 0
    unhappiness: int = 0
    disorder: bool = False
    corruption: int = 0
    founded_turn: int = 0
    # Last computed yields
    food: int = 0
    production: int = 0
    trade: int = 0
    gold: int = 0
    science: int = 0
    rules: GameRules = field(default=DEFAULT_RULES, repr=False)

    def __post_init__(self):
        self.buildings = [coerce_enum(BuildingType, b, "building") for b in self.buildings]
        self.working_tiles = [tuple(p) for p in self.working_tiles]
        if self.position not in self.working_tiles:
            self.working_tiles.insert(0, self.position)
        super().__post_init__()

    def validate(self) -> None:
        """Validate city state."""
        super().validate()
        Validator.validate_type(self.name, str, "name")
        Validator.validate_positive(self.population, "population")
        Validator.validate_non_negative(self.food_storage, "food_storage")
        Validator.validate_non_negative(self.production_progress, "production_progress")

    # Derived values
    @property
    def growth_threshold(self) -> int:
        return self.population * GROWTH_FOOD_PER_CITIZEN

    def has_building(self, building: BuildingType) -> bool:
        return building in self.buildings

    def _building_sum(self, attribute: str) -> float:
        return sum(getattr(self.rules.building_data(b), attribute) for b in self.buildings)

    @property
    def building_maintenance(self) -> int:
        return int(self._building_sum("maintenance"))

    def is_coastal(self, world: "GameMap") -> bool:
        return any(world.get_tile(c, r).is_water for c, r in world.grid.get_neighbors(self.col, self.row))

    # Yields
    def tile_yields(self, position: Position, world: "GameMap") -> Yields:
        """Yields of one worked tile; the centre tile has guaranteed minimums."""
        tile = world.get_tile(*position)
        if tile is None:
            return Yields()
        yields = tile.get_yields()
        if position == self.position:
            yields = Yields(max(yields.food, CITY_CENTER_MIN_FOOD),
                            max(yields.production, CITY_CENTER_MIN_PRODUCTION),
                            max(yields.trade, CITY_CENTER_MIN_TRADE))
        return yields

    def calculate_yields(self, world: "GameMap") -> Dict[str, int]:
        """Recompute food, production, trade, corruption, gold and science."""
        total = Yields()
        for position in self.working_tiles:
            total = total + self.tile_yields(position, world)

        self.food = int(total.food * (1 + self._building_sum("food_bonus")))
        self.production = int(total.production * (1 + self._building_sum("production_bonus")))
        trade = int(total.trade * (1 + self._building_sum("trade_bonus")))

        self.corruption = 0
        capital = world.get_capital(self.civilization_id)
        if capital is not None and capital.id != self.id:
            distance = hex_distance(self.position, capital.position)
            corruption = trade * distance // CORRUPTION_DISTANCE_DIVISOR
            reduction = min(1.0, self._building_sum("corruption_reduction"))
            self.corruption = int(corruption * (1 - reduction))
        self.trade = max(0, trade - self.corruption)

        gold = int(self.trade * GOLD_SHARE)
        science = self.trade - gold
        self.gold = int(gold * (1 + self._building_sum("gold_bonus")))
        self.science = int(science * (1 + self._building_sum("science_bonus")))
        return self.yields_dict()

    def yields_dict(self) -> Dict[str, int]:
        return {
            "food": self.food,
            "production": self.production,
            "trade": self.trade,
            "gold": self.gold,
            "science": self.science,
            "corruption": self.corruption,
        }

    # Workers
    def can_work_tile(self, position: Position, world: "GameMap") -> bool:
        """Tile in radius, explored by the owner, free, and reachable if ocean."""
        tile = world.get_tile(*position)
        if tile is None or position == self.position:
            return False
        if manhattan_distance(self.position, position) > CITY_WORK_RADIUS:
            return False
        if not tile.is_explored_by(self.civilization_id):
            return False
        for other in world.get_all_cities():
            if other.id != self.id and position in other.working_tiles:
                return False
        if tile.is_water:
            return tile.resource is not None or self.is_coastal(world)
        return True

    def get_workable_tiles(self, world: "GameMap") -> List[Position]:
        """Workable positions, best food first, then production, then trade."""
        candidates = []
        for d_col in range(-CITY_WORK_RADIUS, CITY_WORK_RADIUS + 1):
            for d_row in range(-CITY_WORK_RADIUS, CITY_WORK_RADIUS + 1):
                position = (self.col + d_col, self.row + d_row)
                if self.can_work_tile(position, world):
                    candidates.append(position)
        yields = {p: world.get_tile(*p).get_yields() for p in candidates}
        return sorted(candidates, key=lambda p: (-yields[p].food, -yields[p].production, -yields[p].trade, p))

    def optimize_worker_assignment(self, world: "GameMap") -> List[Position]:
        """Reset to the centre tile, then work the best tiles; one citizen per tile including the centre."""
        self.working_tiles = [self.position]
        for position in self.get_workable_tiles(world)[:max(0, self.population - 1)]:
            self.working_tiles.append(position)
        return list(self.working_tiles)

    # Production management
    def can_build(self, item: ProductionItem, civilization: "Civilization",
                  world: "GameMap") -> Optional[FailureReason]:
        """Reason the item cannot be built here, or None."""
        tech = item.required_tech(self.rules)
        if tech and not civilization.has_technology(tech):
            return FailureReason.MISSING_TECHNOLOGY
        if item.is_unit:
            if self.rules.unit_data(item.key).naval and not self.is_coastal(world):
                return FailureReason.NOT_COASTAL
        elif self.has_building(item.key):
            return FailureReason.ALREADY_BUILT
        return None

    def set_production(self, item: ProductionItem) -> None:
        """Switch what the city is building; accumulated progress is kept."""
        if self.current_production is None:
            self.production_progress += self.carried_over_progress
            self.carried_over_progress = 0
        self.current_production = item

    def queue_production(self, item: ProductionItem) -> None:
        if self.current_production is None:
            self.set_production(item)
        else:
            self.build_queue.append(item)

    def remove_queue_item(self, index: int) -> ActionOutcome:
        if not 0 <= index < len(self.build_queue):
            return ActionOutcome.fail(FailureReason.INVALID_INDEX, f"No queue entry {index} in {self.name}")
        item = self.build_queue.pop(index)
        return ActionOutcome.ok(f"Removed {item} from {self.name}", {"item": item.to_dict()})

    def start_next_production(self) -> Optional[ProductionItem]:
        if self.current_production is None and self.build_queue:
            self.set_production(self.build_queue.pop(0))
        return self.current_production

    def is_producing(self, item: ProductionItem) -> bool:
        return self.current_production == item or item in self.build_queue

    def purchase(self, item: ProductionItem, civilization: "Civilization", world: "GameMap") -> ActionOutcome:
        """Buy an item for gold equal to its cost; delivered at the next city turn."""
        if self.purchased_this_turn or self.purchased_item is not None:
            return ActionOutcome.fail(FailureReason.ALREADY_PURCHASED, f"{self.name} already purchased this turn")
        reason = self.can_build(item, civilization, world)
        if reason is not None:
            return ActionOutcome.fail(reason, f"{self.name} cannot buy {item}")
        price = item.cost(self.rules)
        if civilization.gold < price:
            return ActionOutcome.fail(FailureReason.INSUFFICIENT_GOLD,
                                      f"{item.name(self.rules)} costs {price} gold, have {civilization.gold}")
        civilization.gold -= price
        self.purchased_item = item
        self.purchased_this_turn = True
        logging.info(f"{self.name} purchased {item.name(self.rules)} for {price} gold")
        return ActionOutcome.ok(f"Purchased {item.name(self.rules)}", {"price": price, "item": item.to_dict()})

    # Turn pipeline
    def process_food(self) -> Optional[str]:
        """Apply the food surplus; returns "grew", "starved" or None."""
        surplus = self.food - FOOD_PER_CITIZEN * self.population
        self.food_storage += surplus
        threshold = self.growth_threshold
        outcome = None

        if self.food_storage >= threshold and self.population < self.max_population:
            self.population += 1
            retained = min(1.0, self._building_sum("food_retained"))
            self.food_storage = int(threshold * retained)
            outcome = "grew"
        elif self.food_storage < 0:
            if self.population > 1:
                self.population -= 1
                outcome = "starved"
            self.food_storage = 0

        self.food_storage = max(0, min(self.food_storage, self.growth_threshold))
        return outcome

    def advance_production(self, world: Optional["GameMap"] = None) -> Optional[ProductionItem]:
        """Add this turn's production; returns the finished item, if any.

        With a ``world``, a finished unit that has no free tile to appear on
        stays in production at full progress until one frees up.
        """
        if self.current_production is None:
            return None
        self.production_progress += self.production
        cost = self.current_production.cost(self.rules)
        if self.production_progress < cost:
            return None

        finished = self.current_production
        if world is not None and finished.is_unit and self.spawn_position(finished.key, world) is None:
            self.production_progress = cost
            logging.info(f"{self.name} holds back {finished.name(self.rules)}: no free tile")
            return None
        excess = self.production_progress - cost
        self.current_production = None
        self.production_progress = 0
        self.carried_over_progress = excess
        self.start_next_production()
        return finished

    def complete_item(self, item: ProductionItem, world: "GameMap") -> Optional[str]:
        """Deliver a produced or purchased item; returns the new unit id for units.

        A unit with nowhere to stand is not created; callers check
        ``spawn_position`` first and hold the item back.
        """
        created_id = None
        if item.is_unit:
            position = self.spawn_position(item.key, world)
            if position is None:
                logging.info(f"{self.name} has no free tile for {item.name(self.rules)}; delivery waits")
                return None
            col, row = position
            unit = world.create_unit(item.key, self.civilization_id, col, row, home_city_id=self.id,
                                     veteran=self._building_sum("veteran_units") > 0)
            self.supported_unit_ids.append(unit.id)
            created_id = unit.id
        elif not self.has_building(item.key):
            self.buildings.append(item.key)
            self.max_population += self.rules.building_data(item.key).max_population_bonus

        world.events.publish(GameEventType.PRODUCTION_COMPLETED, city_id=self.id,
                             civilization_id=self.civilization_id, item=item.to_dict(), unit_id=created_id)
        logging.info(f"{self.name} completed {item.name(self.rules)}")
        return created_id

    def spawn_position(self, unit_type: UnitType, world: "GameMap") -> Optional[Position]:
        """Centre if empty, else the first empty adjacent tile the unit can stand on, else None."""
        naval = self.rules.unit_data(unit_type).naval
        if not naval and not world.get_units_at(self.col, self.row):
            return self.position
        for col, row in world.grid.get_neighbors(self.col, self.row):
            tile = world.get_tile(col, row)
            if tile.is_water != naval:
                continue
            if not world.get_units_at(col, row) and world.get_city_at(col, row) is None:
                return (col, row)
        return None

    def process_unit_support(self, world: "GameMap") -> List[str]:
        """Disband the farthest supported units while maintenance exceeds production."""
        units = [world.get_unit(uid) for uid in self.supported_unit_ids]
        units = [u for u in units if u is not None and u.home_city_id == self.id]
        self.supported_unit_ids = [u.id for u in units]

        disbanded = []
        maintenance = sum(u.maintenance for u in units)
        by_distance = sorted(units, key=lambda u: hex_distance(self.position, u.position), reverse=True)
        for unit in by_distance:
            if maintenance <= self.production:
                break
            maintenance -= unit.maintenance
            self.supported_unit_ids.remove(unit.id)
            world.remove_unit(unit.id, reason="disbanded")
            disbanded.append(unit.id)
            world.events.publish(GameEventType.UNIT_DISBANDED, unit_id=unit.id, city_id=self.id,
                                 civilization_id=self.civilization_id, unit_type=unit.unit_type.value)
            logging.info(f"{self.name} disbanded {unit.name} {unit.id}: cannot afford maintenance")
        return disbanded

    def update_happiness(self) -> bool:
        """Recompute happiness; returns True when the city just fell into disorder."""
        self.unhappiness = self.population
        self.happiness = int(self._building_sum("happiness"))
        was_in_disorder = self.disorder
        self.disorder = self.unhappiness > self.happiness
        return self.disorder and not was_in_disorder

    def process_turn(self, world: "GameMap") -> Dict[str, Any]:
        """Run the full per-turn city pipeline."""
        report: Dict[str, Any] = {"city_id": self.id}

        purchased = self.purchased_item
        if purchased is not None and not (purchased.is_unit and self.spawn_position(purchased.key, world) is None):
            report["purchased"] = purchased.to_dict()
            self.complete_item(purchased, world)
            self.purchased_item = None
        self.purchased_this_turn = False

        self.calculate_yields(world)
        self.start_next_production()

        food_result = self.process_food()
        if food_result is not None:
            self.optimize_worker_assignment(world)
            event = GameEventType.CITY_GREW if food_result == "grew" else GameEventType.CITY_STARVED
            world.events.publish(event, city_id=self.id, civilization_id=self.civilization_id,
                                 population=self.population)
            logging.info(f"{self.name} {food_result}: population {self.population}")
        report["food"] = food_result

        finished = self.advance_production(world)
        if finished is not None:
            self.complete_item(finished, world)
            report["completed"] = finished.to_dict()

        report["disbanded"] = self.process_unit_support(world)

        if self.update_happiness():
            world.events.publish(GameEventType.CITY_DISORDER, city_id=self.id,
                                 civilization_id=self.civilization_id,
                                 happiness=self.happiness, unhappiness=self.unhappiness)
            logging.info(f"{self.name} fell into disorder")
        return report

    # Serialization
    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "civilization_id": self.civilization_id,
            "col": self.col,
            "row": self.row,
            "population": self.population,
            "max_population": self.max_population,
            "food_storage": self.food_storage,
            "build_queue": [item.to_dict() for item in self.build_queue],
            "current_production": self.current_production.to_dict() if self.current_production else None,
            "production_progress": self.production_progress,
            "carried_over_progress": self.carried_over_progress,
            "buildings": [b.value for b in self.buildings],
            "working_tiles": [list(p) for p in self.working_tiles],
            "supported_unit_ids": list(self.supported_unit_ids),
            "purchased_this_turn": self.purchased_this_turn,
            "purchased_item": self.purchased_item.to_dict() if self.purchased_item else None,
            "auto_production": self.auto_production,
            "happiness": self.happiness,
            "unhappiness": self.unhappiness,
            "disorder": self.disorder,
            "corruption": self.corruption,
            "founded_turn": self.founded_turn,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], rules: GameRules = DEFAULT_RULES, **kwargs) -> "City":
        current = data.get("current_production")
        purchased = data.get("purchased_item")
        return cls(
            id=data["id"],
            name=data["name"],
            civilization_id=int(data["civilization_id"]),
            col=int(data["col"]),
            row=int(data["row"]),
            population=int(data.get("population", 1)),
            max_population=int(data.get("max_population", BASE_MAX_POPULATION)),
            food_storage=int(data.get("food_storage", 0)),
            build_queue=[ProductionItem.from_dict(item) for item in data.get("build_queue", [])],
            current_production=ProductionItem.from_dict(current) if current else None,
            production_progress=int(data.get("production_progress", 0)),
            carried_over_progress=int(data.get("carried_over_progress", 0)),
            buildings=list(data.get("buildings", [])),
            working_tiles=[tuple(p) for p in data.get("working_tiles", [])],
            supported_unit_ids=list(data.get("supported_unit_ids", [])),
            purchased_this_turn=bool(data.get("purchased_this_turn", False)),
            purchased_item=ProductionItem.from_dict(purchased) if purchased else None,
            auto_production=bool(data.get("auto_production", False)),
            happiness=int(data.get("happiness", 0)),
            unhappiness=int(data.get("unhappiness", 0)),
            disorder=bool(data.get("disorder", False)),
            corruption=int(data.get("corruption", 0)),
            founded_turn=int(data.get("founded_turn", 0)),
            rules=rules,
        )

    def __str__(self) -> str:
        return f"{self.name} (pop {self.population}) of civ {self.civilization_id} at {self.position}"
