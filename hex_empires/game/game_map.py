"""Central game state for Hex Empires: the map, its entities and the turn order."""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple
import logging
import math
import random

from ..core.enums import TerrainType, UnitType
from ..core.exceptions import (
    InvalidGameStateError, InvalidCivilizationError, SerializationError, MapGenerationError,
    HexEmpiresError
)
from ..core.constants import (
    DEFAULT_MAP_WIDTH, DEFAULT_MAP_HEIGHT, MIN_START_DISTANCE, START_POSITION_MARGIN,
    STARTING_YEAR, CITY_SIGHT_RANGE, CIVILIZATION_TEMPLATES
)
from ..data import GameRules, DEFAULT_RULES
from ..entities.base import create_entity_id
from ..entities.tile import Tile
from ..entities.unit import Unit
from ..entities.city import City, ProductionItem
from ..entities.civilization import Civilization, AIPersonality
from ..ai.civilization_ai import CivilizationAI
from ..utils.hex_utils import HexGrid, hex_distance
from ..utils.map_generator import TerrainGenerator, GeneratorConfig
from ..utils.validation import GameValidator, Validator
from .events import EventBus, GameEventType
from .turn_manager import TurnManager

Position = Tuple[int, int]


@dataclass
class GameSettings:
    """Configuration settings for a game."""

    map_width: int = DEFAULT_MAP_WIDTH
    map_height: int = DEFAULT_MAP_HEIGHT
    seed: Optional[int] = None
    civilizations: List[str] = field(default_factory=lambda: ["romans", "babylonians"])
    human_player: Optional[str] = None
    auto_end_turn: bool = False
    start_positions: Optional[List[Position]] = None
    min_start_distance: int = MIN_START_DISTANCE
    generator: GeneratorConfig = field(default_factory=GeneratorConfig)

    def validate(self) -> None:
        """Validate game settings."""
        GameValidator.validate_map_dimensions(self.map_width, self.map_height)
        GameValidator.validate_civilizations(self.civilizations)
        if self.seed is not None:
            Validator.validate_type(self.seed, int, "seed")
        if self.human_player is not None and self.human_player not in self.civilizations:
            raise InvalidCivilizationError(
                f"Human player {self.human_player} is not among the civilizations",
                error_code="UNKNOWN_HUMAN_PLAYER",
                context={"human_player": self.human_player, "civilizations": self.civilizations}
            )
        Validator.validate_type(self.auto_end_turn, bool, "auto_end_turn")
        Validator.validate_non_negative(self.min_start_distance, "min_start_distance")
        if self.start_positions is not None:
            if len(self.start_positions) != len(self.civilizations):
                raise InvalidGameStateError(
                    "Need exactly one start position per civilization",
                    error_code="START_POSITION_COUNT",
                    context={"positions": len(self.start_positions), "civilizations": len(self.civilizations)}
                )
            GameValidator.validate_start_positions(self.start_positions, self.map_width, self.map_height)
        self.generator.validate()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "map_width": self.map_width,
            "map_height": self.map_height,
            "seed": self.seed,
            "civilizations": list(self.civilizations),
            "human_player": self.human_player,
            "auto_end_turn": self.auto_end_turn,
            "start_positions": [list(p) for p in self.start_positions] if self.start_positions else None,
            "min_start_distance": self.min_start_distance,
            "generator": dict(self.generator.__dict__),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameSettings":
        positions = data.get("start_positions")
        return cls(
            map_width=int(data.get("map_width", DEFAULT_MAP_WIDTH)),
            map_height=int(data.get("map_height", DEFAULT_MAP_HEIGHT)),
            seed=data.get("seed"),
            civilizations=list(data.get("civilizations", ["romans", "babylonians"])),
            human_player=data.get("human_player"),
            auto_end_turn=bool(data.get("auto_end_turn", False)),
            start_positions=[tuple(p) for p in positions] if positions else None,
            min_start_distance=int(data.get("min_start_distance", MIN_START_DISTANCE)),
            generator=GeneratorConfig(**data.get("generator", {})),
        )


class GameMap:
    """Owns tiles, units, cities and civilizations and mediates every change.

    Units and cities live in canonical dicts keyed by id. The position
    indices and each civilization's ``unit_ids``/``city_ids`` are caches
    rebuilt from those dicts after every add, remove, move or capture.
    """

    def __init__(self, settings: Optional[GameSettings] = None, rules: GameRules = DEFAULT_RULES,
                 events: Optional[EventBus] = None, tiles: Optional[List[List[Tile]]] = None):
        self.settings = settings or GameSettings()
        self.settings.validate()
        self.rules = rules
        self.events = events or EventBus()
        self.rng = random.Random(self.settings.seed)
        self.width = self.settings.map_width
        self.height = self.settings.map_height
        self.grid = HexGrid(self.width, self.height)

        if tiles is None:
            tiles = TerrainGenerator(self.width, self.height, self.settings.seed,
                                     self.settings.generator, rules).generate()
        elif len(tiles) != self.height or any(len(row) != self.width for row in tiles):
            raise InvalidGameStateError("Tile grid does not match the map size", error_code="TILE_GRID_SIZE",
                                        context={"width": self.width, "height": self.height})
        self.tiles = tiles

        self.units: Dict[str, Unit] = {}
        self.cities: Dict[str, City] = {}
        self.civilizations: Dict[int, Civilization] = {}
        self.civilization_order: List[int] = []
        self.active_civilization_id: Optional[int] = None

        self.turn = 1
        self.year = STARTING_YEAR
        self.game_over = False
        self.winner_id: Optional[int] = None
        self.action_log: List[Dict[str, Any]] = []

        self._units_by_position: Dict[Position, List[Unit]] = {}
        self._cities_by_position: Dict[Position, City] = {}
        self.turn_manager = TurnManager(self)

    # Setup
    def setup(self) -> None:
        """Create civilizations from templates, place starting units and begin the first turn."""
        if self.civilizations:
            raise InvalidGameStateError("Game is already set up", error_code="ALREADY_SET_UP")
        for index, key in enumerate(self.settings.civilizations):
            self.add_civilization(self._create_civilization(index, key))

        positions = self.choose_start_positions(len(self.civilization_order))
        for civ_id, position in zip(self.civilization_order, positions):
            self.place_starting_units(civ_id, position)

        self.active_civilization_id = self.civilization_order[0]
        for civ_id in self.civilization_order:
            self.update_visibility(civ_id)
        self.events.publish(GameEventType.NEW_GAME, civilizations=list(self.civilization_order),
                            width=self.width, height=self.height, seed=self.settings.seed)
        logging.info(f"New game: {self.width}x{self.height}, civilizations {self.settings.civilizations}")

        first = self.active_civilization
        if not first.is_human:
            self.turn_manager.begin_civilization_turn(first)

    def _create_civilization(self, index: int, key: str) -> Civilization:
        template = CIVILIZATION_TEMPLATES.get(key)
        if template is None:
            raise InvalidCivilizationError(f"Unknown civilization template: {key}",
                                           error_code="UNKNOWN_CIVILIZATION", context={"key": key})
        is_human = key == self.settings.human_player
        civilization = Civilization(
            id=index,
            name=template["name"],
            leader=template["leader"],
            template=key,
            is_human=is_human,
            personality=AIPersonality() if is_human else AIPersonality.random(self.rng),
            city_names=list(template["cities"]),
            rules=self.rules,
        )
        if not is_human:
            civilization.ai = CivilizationAI()
        return civilization

    def is_habitable(self, col: int, row: int) -> bool:
        tile = self.get_tile(col, row)
        return tile is not None and not tile.is_water and tile.terrain != TerrainType.MOUNTAINS

    def choose_start_positions(self, count: int) -> List[Position]:
        """Explicit positions from settings, else random habitable tiles spread apart.

        The minimum distance is relaxed one step at a time when the map
        cannot fit every civilization.
        """
        if self.settings.start_positions:
            positions = [tuple(p) for p in self.settings.start_positions]
            for col, row in positions:
                if not self.is_habitable(col, row):
                    raise InvalidGameStateError("Start position is not habitable land",
                                                error_code="BAD_START_POSITION", context={"position": (col, row)})
            return positions

        margin = min(START_POSITION_MARGIN, self.width // 4, self.height // 4)
        candidates = [(col, row) for col, row in self.grid.positions()
                      if margin <= col < self.width - margin and margin <= row < self.height - margin
                      and self.is_habitable(col, row)]
        if len(candidates) < count:
            candidates = [p for p in self.grid.positions() if self.is_habitable(*p)]
        if len(candidates) < count:
            raise MapGenerationError("Not enough habitable land for every civilization",
                                     error_code="NO_START_POSITIONS",
                                     context={"needed": count, "available": len(candidates)})
        self.rng.shuffle(candidates)

        distance = self.settings.min_start_distance
        while True:
            chosen: List[Position] = []
            for candidate in candidates:
                if all(hex_distance(candidate, other) >= distance for other in chosen):
                    chosen.append(candidate)
                    if len(chosen) == count:
                        return chosen
            logging.debug(f"Relaxing start distance below {distance}")
            distance -= 1

    def place_starting_units(self, civ_id: int, position: Position) -> List[Unit]:
        """Settler on the start tile, militia on a free adjacent land tile."""
        settler = self.create_unit(UnitType.SETTLER, civ_id, *position)
        militia_position = position
        for col, row in self.grid.get_neighbors(*position):
            tile = self.get_tile(col, row)
            if not tile.is_water and not self.get_units_at(col, row):
                militia_position = (col, row)
                break
        militia = self.create_unit(UnitType.MILITIA, civ_id, *militia_position)
        return [settler, militia]

    # Accessors
    def get_tile(self, col: int, row: int) -> Optional[Tile]:
        if not self.grid.is_valid(col, row):
            return None
        return self.tiles[row][col]

    def iter_tiles(self):
        for row in self.tiles:
            yield from row

    def get_unit(self, unit_id: str) -> Optional[Unit]:
        return self.units.get(unit_id)

    def get_units_at(self, col: int, row: int) -> List[Unit]:
        return list(self._units_by_position.get((col, row), []))

    def get_unit_at(self, col: int, row: int) -> Optional[Unit]:
        units = self._units_by_position.get((col, row))
        return units[0] if units else None

    def get_city(self, city_id: str) -> Optional[City]:
        return self.cities.get(city_id)

    def get_city_at(self, col: int, row: int) -> Optional[City]:
        return self._cities_by_position.get((col, row))

    def get_civilization(self, civ_id: int) -> Optional[Civilization]:
        return self.civilizations.get(civ_id)

    def get_civilizations(self) -> List[Civilization]:
        return [self.civilizations[civ_id] for civ_id in self.civilization_order]

    @property
    def active_civilization(self) -> Optional[Civilization]:
        return self.civilizations.get(self.active_civilization_id)

    def get_all_units(self) -> List[Unit]:
        return list(self.units.values())

    def get_all_cities(self) -> List[City]:
        return list(self.cities.values())

    def get_units_for(self, civ_id: int) -> List[Unit]:
        return [u for u in self.units.values() if u.civilization_id == civ_id]

    def get_cities_for(self, civ_id: int) -> List[City]:
        return [c for c in self.cities.values() if c.civilization_id == civ_id]

    def get_capital(self, civ_id: int) -> Optional[City]:
        civilization = self.civilizations.get(civ_id)
        if civilization is None or civilization.capital_id is None:
            return None
        return self.cities.get(civilization.capital_id)

    def format_year(self) -> str:
        return f"{-self.year} BC" if self.year < 0 else f"{self.year} AD"

    # Mutators
    def add_civilization(self, civilization: Civilization) -> None:
        if civilization.id in self.civilizations:
            raise InvalidGameStateError(f"Duplicate civilization id {civilization.id}",
                                        error_code="DUPLICATE_CIVILIZATION", context={"id": civilization.id})
        self.civilizations[civilization.id] = civilization
        self.civilization_order.append(civilization.id)

    def _require_civilization(self, civ_id: int) -> Civilization:
        civilization = self.civilizations.get(civ_id)
        if civilization is None:
            raise InvalidCivilizationError(f"Unknown civilization {civ_id}", error_code="UNKNOWN_CIVILIZATION",
                                           context={"civilization_id": civ_id})
        return civilization

    def add_unit(self, unit: Unit, reveal: bool = True) -> Unit:
        """Insert an existing unit; the caller guarantees the tile suits it."""
        self.grid.require_valid(unit.col, unit.row)
        self._require_civilization(unit.civilization_id)
        self.units[unit.id] = unit
        self._rebuild_indices()
        if reveal:
            self.reveal_around(unit.col, unit.row, unit.sight_range, unit.civilization_id)
        return unit

    def create_unit(self, unit_type, civ_id: int, col: int, row: int,
                    home_city_id: Optional[str] = None, veteran: bool = False) -> Unit:
        unit = Unit.create(unit_type, civ_id, col, row, rules=self.rules, home_city_id=home_city_id, veteran=veteran)
        self.add_unit(unit)
        self.events.publish(GameEventType.UNIT_CREATED, unit_id=unit.id, civilization_id=civ_id,
                            unit_type=unit.unit_type.value, position=unit.position)
        logging.debug(f"Created {unit.name} {unit.id} for civ {civ_id} at {unit.position}")
        return unit

    def remove_unit(self, unit_id: str, reason: str = "removed") -> Optional[Unit]:
        unit = self.units.pop(unit_id, None)
        if unit is None:
            return None
        home = self.cities.get(unit.home_city_id) if unit.home_city_id else None
        if home is not None and unit.id in home.supported_unit_ids:
            home.supported_unit_ids.remove(unit.id)
        self._rebuild_indices()
        logging.debug(f"Removed {unit.name} {unit.id} ({reason})")
        return unit

    def move_unit(self, unit: Unit, col: int, row: int) -> None:
        """Relocate a unit and reveal around its new tile; rules are checked by the unit."""
        self.grid.require_valid(col, row)
        unit.col, unit.row = col, row
        self._rebuild_indices()
        self.reveal_around(col, row, unit.sight_range, unit.civilization_id)

    def add_city(self, city: City, reveal: bool = True) -> City:
        self.grid.require_valid(city.col, city.row)
        self._require_civilization(city.civilization_id)
        if city.position in self._cities_by_position:
            raise InvalidGameStateError("Tile already holds a city", error_code="CITY_EXISTS",
                                        context={"position": city.position})
        self.cities[city.id] = city
        self._rebuild_indices()
        if reveal:
            self.reveal_around(city.col, city.row, CITY_SIGHT_RANGE, city.civilization_id)
        return city

    def found_city(self, civ_id: int, col: int, row: int, name: Optional[str] = None) -> City:
        civilization = self._require_civilization(civ_id)
        city = City(id=create_entity_id("city"), civilization_id=civ_id, col=col, row=row,
                    name=name or civilization.next_city_name(), founded_turn=self.turn, rules=self.rules)
        self.add_city(city)
        self.release_worked_tile(city.position, city)
        if self.get_capital(civ_id) is None:
            civilization.capital_id = city.id
        city.optimize_worker_assignment(self)
        city.calculate_yields(self)
        self.events.publish(GameEventType.CITY_FOUNDED, city_id=city.id, civilization_id=civ_id,
                            name=city.name, position=city.position)
        logging.info(f"{civilization.name} founded {city.name} at {city.position}")
        return city

    def apply_auto_production(self, city: City) -> Optional[ProductionItem]:
        """Queue the advisor's pick in an idle city that has auto production on."""
        if not city.auto_production or city.current_production is not None or city.build_queue:
            return None
        civilization = self._require_civilization(city.civilization_id)
        advisor = civilization.ai or CivilizationAI()
        item = advisor.choose_production(city, civilization, self)
        city.set_production(item)
        logging.info(f"{city.name} auto production chose {item.name(self.rules)}")
        return item

    def release_worked_tile(self, position: Position, keeper: City) -> List[City]:
        """Take a tile away from every other city working it and reassign their citizens."""
        displaced = [c for c in self.cities.values() if c.id != keeper.id and position in c.working_tiles]
        for city in displaced:
            city.working_tiles.remove(position)
        for city in displaced:
            city.optimize_worker_assignment(self)
            city.calculate_yields(self)
            logging.info(f"{city.name} lost the tile at {position} to {keeper.name}")
        return displaced

    def capture_city(self, city: City, new_civ_id: int) -> None:
        """Transfer a city; production and the old owner's unit support are dropped."""
        old_civ_id = city.civilization_id
        new_owner = self._require_civilization(new_civ_id)
        old_owner = self.civilizations.get(old_civ_id)

        city.civilization_id = new_civ_id
        city.current_production = None
        city.build_queue.clear()
        city.production_progress = 0
        city.carried_over_progress = 0
        for unit_id in city.supported_unit_ids:
            unit = self.units.get(unit_id)
            if unit is not None:
                unit.home_city_id = None
        city.supported_unit_ids = []
        self._rebuild_indices()

        if old_owner is not None and old_owner.capital_id == city.id:
            remaining = self.get_cities_for(old_civ_id)
            old_owner.capital_id = remaining[0].id if remaining else None
        if self.get_capital(new_civ_id) is None:
            new_owner.capital_id = city.id
        self.release_worked_tile(city.position, city)
        city.optimize_worker_assignment(self)
        self.reveal_around(city.col, city.row, CITY_SIGHT_RANGE, new_civ_id)

        self.events.publish(GameEventType.CITY_CAPTURED, city_id=city.id, name=city.name,
                            old_civilization_id=old_civ_id, new_civilization_id=new_civ_id)
        logging.info(f"{new_owner.name} captured {city.name}")

    def wake_units_near(self, col: int, row: int, civ_id: int) -> List[Unit]:
        """Wake other civilizations' sleeping units next to a tile a unit of ``civ_id`` entered."""
        woken = []
        for position in self.grid.get_neighbors(col, row):
            for unit in self._units_by_position.get(position, []):
                if unit.civilization_id != civ_id and unit.sleeping:
                    unit.wake()
                    woken.append(unit)
        return woken

    def enemy_adjacent(self, unit: Unit) -> bool:
        return any(other.civilization_id != unit.civilization_id
                   for position in self.grid.get_neighbors(unit.col, unit.row)
                   for other in self._units_by_position.get(position, []))

    def movement_cost_fn(self, unit: Unit, goal: Optional[Position] = None) -> Callable[[Position, Position], float]:
        """Step cost function for pathfinding; tiles holding foreign units block except the goal."""
        def cost(current: Position, neighbor: Position) -> float:
            if neighbor != goal and any(u.civilization_id != unit.civilization_id
                                        for u in self._units_by_position.get(neighbor, [])):
                return math.inf
            return unit.cost_between(self, current, neighbor)
        return cost

    def _rebuild_indices(self) -> None:
        units_by_position: Dict[Position, List[Unit]] = {}
        for unit in self.units.values():
            units_by_position.setdefault(unit.position, []).append(unit)
        self._units_by_position = units_by_position
        self._cities_by_position = {city.position: city for city in self.cities.values()}
        for civilization in self.civilizations.values():
            civilization.unit_ids = [u.id for u in self.units.values() if u.civilization_id == civilization.id]
            civilization.city_ids = [c.id for c in self.cities.values() if c.civilization_id == civilization.id]

    # Visibility
    def reveal_around(self, col: int, row: int, radius: int, civ_id: int) -> None:
        for position in self.grid.get_hexes_in_range((col, row), radius):
            self.tiles[position[1]][position[0]].reveal(civ_id)

    def update_visibility(self, civ_id: int) -> None:
        """Recompute what a civilization currently sees; explored tiles stay explored."""
        for tile in self.iter_tiles():
            tile.hide(civ_id)
        for unit in self.get_units_for(civ_id):
            self.reveal_around(unit.col, unit.row, unit.sight_range, civ_id)
        for city in self.get_cities_for(civ_id):
            self.reveal_around(city.col, city.row, CITY_SIGHT_RANGE, civ_id)

    # Turns
    def next_turn(self) -> Dict[str, Any]:
        return self.turn_manager.next_turn()

    def process_turn(self) -> Dict[str, Any]:
        return self.turn_manager.process_turn()

    def end_game(self, winner_id: Optional[int]) -> None:
        self.game_over = True
        self.winner_id = winner_id
        winner = self.civilizations.get(winner_id) if winner_id is not None else None
        self.events.publish(GameEventType.GAME_OVER, winner_id=winner_id, turn=self.turn, year=self.year)
        logging.info(f"Game over on turn {self.turn}: winner {winner.name if winner else 'none'}")

    def log_action(self, action_type: str, data: Dict[str, Any]) -> None:
        """Append an executed command to the action log."""
        self.action_log.append({
            "turn": self.turn,
            "civilization_id": self.active_civilization_id,
            "action_type": action_type,
            "data": data,
        })

    # Reporting
    def get_game_info(self) -> Dict[str, Any]:
        """Summary of the game for displays and tests."""
        active = self.active_civilization
        return {
            "turn": self.turn,
            "year": self.year,
            "year_label": self.format_year(),
            "width": self.width,
            "height": self.height,
            "active_civilization_id": self.active_civilization_id,
            "active_civilization": active.name if active else None,
            "game_over": self.game_over,
            "winner_id": self.winner_id,
            "unit_count": len(self.units),
            "city_count": len(self.cities),
            "civilizations": [
                {
                    "id": civ.id,
                    "name": civ.name,
                    "leader": civ.leader,
                    "is_human": civ.is_human,
                    "alive": civ.alive,
                    "gold": civ.gold,
                    "science": civ.science,
                    "cities": len(civ.city_ids),
                    "units": len(civ.unit_ids),
                    "technologies": len(civ.technology_manager.researched),
                    "researching": civ.technology_manager.researching,
                    "at_war_with": sorted(civ.at_war_with),
                }
                for civ in self.get_civilizations()
            ],
        }

    # Serialization
    def serialize(self) -> Dict[str, Any]:
        """JSON-safe snapshot of the whole game, including the RNG state."""
        version, internal, gauss = self.rng.getstate()
        return {
            "settings": self.settings.to_dict(),
            "turn": self.turn,
            "year": self.year,
            "active_civilization_id": self.active_civilization_id,
            "game_over": self.game_over,
            "winner_id": self.winner_id,
            "civilization_order": list(self.civilization_order),
            "rng_state": [version, list(internal), gauss],
            "tiles": [tile.to_dict() for tile in self.iter_tiles()],
            "civilizations": [civ.to_dict() for civ in self.get_civilizations()],
            "cities": [city.to_dict() for city in self.cities.values()],
            "units": [unit.to_dict() for unit in self.units.values()],
        }

    @classmethod
    def deserialize(cls, data: Dict[str, Any], rules: GameRules = DEFAULT_RULES,
                    events: Optional[EventBus] = None) -> "GameMap":
        """Rebuild a game from ``serialize`` output."""
        try:
            settings = GameSettings.from_dict(data["settings"])
            width, height = settings.map_width, settings.map_height
            flat = [Tile.from_dict(tile, rules) for tile in data["tiles"]]
            if len(flat) != width * height:
                raise SerializationError("Tile count does not match the map size", error_code="TILE_COUNT",
                                         context={"tiles": len(flat), "expected": width * height})
            tiles: List[List[Optional[Tile]]] = [[None] * width for _ in range(height)]
            for tile in flat:
                tiles[tile.row][tile.col] = tile

            world = cls(settings, rules, events, tiles)
            for civ_data in data["civilizations"]:
                civilization = Civilization.from_dict(civ_data, rules)
                if not civilization.is_human:
                    civilization.ai = CivilizationAI()
                world.add_civilization(civilization)
            world.civilization_order = [int(c) for c in data.get("civilization_order", world.civilization_order)]
            for city_data in data["cities"]:
                world.add_city(City.from_dict(city_data, rules), reveal=False)
            for unit_data in data["units"]:
                world.add_unit(Unit.from_dict(unit_data, rules), reveal=False)

            world.turn = int(data["turn"])
            world.year = int(data["year"])
            world.active_civilization_id = data.get("active_civilization_id")
            world.game_over = bool(data.get("game_over", False))
            world.winner_id = data.get("winner_id")
            rng_state = data.get("rng_state")
            if rng_state:
                world.rng.setstate((rng_state[0], tuple(rng_state[1]), rng_state[2]))
        except SerializationError:
            raise
        except (KeyError, TypeError, ValueError, IndexError, HexEmpiresError) as e:
            raise SerializationError(f"Cannot restore game: {str(e)}", error_code="CORRUPT_STATE") from e
        return world

    def __str__(self) -> str:
        return (f"Hex Empires {self.width}x{self.height} - Turn {self.turn} ({self.format_year()}) - "
                f"{len(self.civilizations)} civilizations")


def create_game(settings: Optional[GameSettings] = None, rules: GameRules = DEFAULT_RULES,
                events: Optional[EventBus] = None, tiles: Optional[List[List[Tile]]] = None) -> GameMap:
    """Create and set up a new game with default or custom settings."""
    world = GameMap(settings, rules, events, tiles)
    world.setup()
    return world


def load_game(data: Dict[str, Any], rules: GameRules = DEFAULT_RULES,
              events: Optional[EventBus] = None) -> GameMap:
    """Load a game from serialized data."""
    return GameMap.deserialize(data, rules, events)
