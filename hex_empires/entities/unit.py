"""Unit entity: movement, combat, settling and terrain work."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, TYPE_CHECKING
import logging
import math

from .base import MapEntity, create_entity_id
from ..actions.base_action import ActionOutcome
from ..core.enums import UnitType, ImprovementType, FailureReason
from ..core.exceptions import coerce_enum
from ..core.constants import (
    ATTACKER_EXPERIENCE, DEFENDER_EXPERIENCE, VETERAN_EXPERIENCE, MIN_CITY_DISTANCE,
    RAILROAD_MOVEMENT_COST
)
from ..data import GameRules, DEFAULT_RULES, UnitData
from ..game.events import GameEventType
from ..simulation.combat_system import resolve_combat
from ..utils.hex_utils import hex_distance
from ..utils.validation import Validator

if TYPE_CHECKING:
    from ..game.game_map import GameMap

# Float movement costs; avoids rejecting a road step after two others
MOVEMENT_EPSILON = 1e-9


@dataclass(eq=False)
class Unit(MapEntity):
    """A mobile piece owned by one civilization and standing on one tile.

    States: active, fortified (toggled, cleared by moving), sleeping
    (until woken or an enemy comes adjacent) and working (a pending tile
    improvement with a countdown). A unit with a go-to path walks it at the
    start of each of its turns.
    """

    unit_type: UnitType = UnitType.MILITIA
    movement: float = -1.0
    max_movement: float = -1.0
    attack: float = -1.0
    defense: float = -1.0
    experience: int = 0
    veteran: bool = False
    fortified: bool = False
    sleeping: bool = False
    skipped: bool = False
    moved: bool = False
    work_target: Optional[ImprovementType] = None
    work_turns: int = 0
    home_city_id: Optional[str] = None
    goto_path: List[Tuple[int, int]] = field(default_factory=list)
    rules: GameRules = field(default=DEFAULT_RULES, repr=False)

    def __post_init__(self):
        self.unit_type = coerce_enum(UnitType, self.unit_type, "unit")
        if self.work_target is not None:
            self.work_target = coerce_enum(ImprovementType, self.work_target, "improvement")
        self.goto_path = [tuple(p) for p in self.goto_path]
        data = self.data
        if self.max_movement < 0:
            self.max_movement = data.movement
        if self.movement < 0:
            self.movement = self.max_movement
        if self.attack < 0:
            self.attack = data.attack
        if self.defense < 0:
            self.defense = data.defense
        super().__post_init__()

    def validate(self) -> None:
        """Validate unit state."""
        super().validate()
        Validator.validate_non_negative(self.movement, "movement")
        Validator.validate_positive(self.max_movement, "max_movement")
        Validator.validate_non_negative(self.experience, "experience")
        Validator.validate_non_negative(self.work_turns, "work_turns")

    @classmethod
    def create(cls, unit_type, civilization_id: int, col: int, row: int,
               rules: GameRules = DEFAULT_RULES, home_city_id: Optional[str] = None,
               veteran: bool = False) -> "Unit":
        """Create a fresh unit with full movement and table stats."""
        return cls(id=create_entity_id("unit"), civilization_id=civilization_id, col=col, row=row,
                   unit_type=unit_type, veteran=veteran, home_city_id=home_city_id, rules=rules)

    # Table lookups
    @property
    def data(self) -> UnitData:
        return self.rules.unit_data(self.unit_type)

    @property
    def name(self) -> str:
        return self.data.name

    @property
    def naval(self) -> bool:
        return self.data.naval

    @property
    def is_military(self) -> bool:
        return self.data.is_military

    @property
    def can_settle(self) -> bool:
        return self.data.can_settle

    @property
    def can_work(self) -> bool:
        return self.data.can_work

    @property
    def sight_range(self) -> int:
        return self.data.sight_range

    @property
    def maintenance(self) -> int:
        return self.data.maintenance

    @property
    def is_working(self) -> bool:
        return self.work_target is not None

    def has_moves_left(self) -> bool:
        return self.movement > MOVEMENT_EPSILON

    def needs_orders(self) -> bool:
        """Active unit with movement left and no standing orders."""
        return (self.has_moves_left() and not self.sleeping and not self.fortified
                and not self.is_working and not self.skipped and not self.goto_path)

    # Movement
    def step_cost(self, world: "GameMap", col: int, row: int) -> float:
        """Movement cost from the current tile to an adjacent one."""
        return self.cost_between(world, self.position, (col, row))

    def cost_between(self, world: "GameMap", origin: Tuple[int, int], target: Tuple[int, int]) -> float:
        """Cost for this unit to step from ``origin`` into ``target``; railroad to railroad is free."""
        origin_tile = world.get_tile(*origin)
        target_tile = world.get_tile(*target)
        if target_tile is None:
            return math.inf
        cost = target_tile.get_movement_cost(self)
        if math.isinf(cost):
            return cost
        if (origin_tile is not None and origin_tile.has_improvement(ImprovementType.RAILROAD)
                and target_tile.has_improvement(ImprovementType.RAILROAD)):
            return float(RAILROAD_MOVEMENT_COST)
        return cost

    def can_move_to(self, col: int, row: int, world: "GameMap") -> Optional[FailureReason]:
        """Reason a one-step move is not allowed, or None."""
        if not world.grid.is_valid(col, row):
            return FailureReason.OUT_OF_BOUNDS
        if hex_distance(self.position, (col, row)) != 1:
            return FailureReason.NOT_ADJACENT
        cost = self.step_cost(world, col, row)
        if math.isinf(cost):
            return FailureReason.IMPASSABLE
        occupants = [u for u in world.get_units_at(col, row) if u.id != self.id]
        if any(u.civilization_id != self.civilization_id for u in occupants):
            return FailureReason.ENEMY_PRESENT
        if occupants:
            return FailureReason.OCCUPIED
        city = world.get_city_at(col, row)
        if city is not None and city.civilization_id != self.civilization_id and not self.is_military:
            return FailureReason.ENEMY_PRESENT
        if not self.has_moves_left():
            return FailureReason.NO_MOVES_LEFT
        if self.movement + MOVEMENT_EPSILON < cost:
            return FailureReason.INSUFFICIENT_MOVEMENT
        return None

    def move_to(self, col: int, row: int, world: "GameMap") -> ActionOutcome:
        """Move one step; on failure nothing about the unit changes."""
        reason = self.can_move_to(col, row, world)
        if reason is not None:
            return ActionOutcome.fail(reason, f"{self.name} cannot move to ({col}, {row}): {reason.value}")

        cost = self.step_cost(world, col, row)
        origin = self.position
        self.movement = max(0.0, self.movement - cost)
        self.moved = True
        self.fortified = False
        self.sleeping = False
        self.clear_work()
        self._enter_tile(col, row, world)

        world.events.publish(GameEventType.UNIT_MOVED, unit_id=self.id, civilization_id=self.civilization_id,
                             from_position=origin, to_position=self.position, movement_left=self.movement)
        logging.debug(f"{self.name} {self.id} moved {origin} -> {self.position} ({self.movement:.2f} left)")
        return ActionOutcome.ok(f"{self.name} moved to ({col}, {row})",
                                {"from": origin, "to": self.position, "movement_left": self.movement})

    def _enter_tile(self, col: int, row: int, world: "GameMap") -> None:
        world.move_unit(self, col, row)
        world.wake_units_near(col, row, self.civilization_id)
        city = world.get_city_at(col, row)
        if city is not None and city.civilization_id != self.civilization_id and self.is_military:
            world.capture_city(city, self.civilization_id)

    # Combat
    def check_attack(self, defender: "Unit") -> Optional[FailureReason]:
        if self.attack <= 0:
            return FailureReason.CANNOT_ATTACK
        if defender.civilization_id == self.civilization_id:
            return FailureReason.NOT_ENEMY
        if hex_distance(self.position, defender.position) != 1:
            return FailureReason.NOT_ADJACENT
        if not self.has_moves_left():
            return FailureReason.NO_MOVES_LEFT
        return None

    def attack_unit(self, defender: "Unit", world: "GameMap") -> ActionOutcome:
        """Attack an adjacent enemy unit; the loser is removed from the map."""
        reason = self.check_attack(defender)
        if reason is not None:
            return ActionOutcome.fail(reason, f"{self.name} cannot attack {defender.name}: {reason.value}")

        attacker_civ = world.get_civilization(self.civilization_id)
        if not attacker_civ.is_at_war_with(defender.civilization_id):
            attacker_civ.declare_war(defender.civilization_id, world)

        target = defender.position
        tile = world.get_tile(*target)
        city = world.get_city_at(*target)
        result = resolve_combat(self, defender, tile, city, world.rng)

        self.goto_path = []
        self.movement = 0.0
        self.moved = True
        self.fortified = False
        self.sleeping = False
        self.clear_work()

        if result.attacker_won:
            world.remove_unit(defender.id, reason="combat")
            self.gain_experience(ATTACKER_EXPERIENCE)
            remaining = world.get_units_at(*target)
            if not remaining and not math.isinf(tile.get_movement_cost(self)):
                self._enter_tile(target[0], target[1], world)
            world.events.publish(GameEventType.COMBAT_VICTORY, attacker_id=self.id, defender_id=defender.id,
                                 attacker_civilization_id=self.civilization_id,
                                 defender_civilization_id=defender.civilization_id,
                                 position=target, result=result.to_dict())
            logging.info(f"{self.name} {self.id} defeated {defender.name} {defender.id} at {target}")
        else:
            world.remove_unit(self.id, reason="combat")
            defender.gain_experience(DEFENDER_EXPERIENCE)
            world.events.publish(GameEventType.COMBAT_DEFEAT, attacker_id=self.id, defender_id=defender.id,
                                 attacker_civilization_id=self.civilization_id,
                                 defender_civilization_id=defender.civilization_id,
                                 position=target, result=result.to_dict())
            logging.info(f"{self.name} {self.id} was destroyed attacking {defender.name} {defender.id}")

        return ActionOutcome.ok("Attack won" if result.attacker_won else "Attack lost", result.to_dict())

    def gain_experience(self, amount: int) -> None:
        self.experience += amount
        if self.experience >= VETERAN_EXPERIENCE:
            self.veteran = True

    # Settling
    def check_settle(self, world: "GameMap") -> Optional[FailureReason]:
        if not self.can_settle:
            return FailureReason.CANNOT_SETTLE
        tile = world.get_tile(self.col, self.row)
        if tile is None or tile.is_water:
            return FailureReason.CANNOT_SETTLE
        for city in world.get_all_cities():
            if hex_distance(city.position, self.position) < MIN_CITY_DISTANCE:
                return FailureReason.TOO_CLOSE_TO_CITY
        return None

    def settle(self, world: "GameMap", name: Optional[str] = None) -> ActionOutcome:
        """Found a city on the current tile; the settler is consumed."""
        reason = self.check_settle(world)
        if reason is not None:
            return ActionOutcome.fail(reason, f"Cannot found a city at {self.position}: {reason.value}")
        city = world.found_city(self.civilization_id, self.col, self.row, name)
        world.remove_unit(self.id, reason="settled")
        return ActionOutcome.ok(f"Founded {city.name}", {"city_id": city.id, "position": city.position})

    # Terrain work
    def start_work(self, improvement_type, world: "GameMap") -> ActionOutcome:
        """Begin building an improvement on the current tile."""
        improvement_type = coerce_enum(ImprovementType, improvement_type, "improvement")
        if not self.can_work:
            return ActionOutcome.fail(FailureReason.CANNOT_WORK, f"{self.name} cannot build improvements")
        tile = world.get_tile(self.col, self.row)
        reason = tile.check_improvement(improvement_type)
        if reason is not None:
            return ActionOutcome.fail(reason, f"Cannot build {improvement_type.value} at {self.position}")

        data = self.rules.improvement_data(improvement_type)
        self.work_target = improvement_type
        self.work_turns = math.ceil(data.base_turns * tile.terrain_data.build_modifier)
        self.movement = 0.0
        self.fortified = False
        self.sleeping = False
        tile.add_improvement(improvement_type, complete=False)
        logging.debug(f"{self.name} {self.id} started {improvement_type.value} at {self.position} "
                      f"({self.work_turns} turns)")
        return ActionOutcome.ok(f"Started {data.name}", {"turns": self.work_turns})

    def do_work(self, world: "GameMap") -> Optional[ImprovementType]:
        """Advance the work countdown; returns the improvement when finished."""
        if self.work_target is None:
            return None
        self.work_turns -= 1
        if self.work_turns > 0:
            return None

        finished = self.work_target
        self.clear_work()
        tile = world.get_tile(self.col, self.row)
        outcome = tile.add_improvement(finished, complete=True)
        if outcome.success:
            world.events.publish(GameEventType.IMPROVEMENT_COMPLETED, unit_id=self.id,
                                 civilization_id=self.civilization_id, improvement=finished.value,
                                 position=self.position, terrain=tile.terrain.value)
            logging.info(f"{finished.value} completed at {self.position}")
            return finished
        return None

    def clear_work(self) -> None:
        self.work_target = None
        self.work_turns = 0

    # Go-to
    def set_goto(self, col: int, row: int, world: "GameMap") -> ActionOutcome:
        """Plot an A* route to a distant tile and start walking it."""
        if not world.grid.is_valid(col, row):
            return ActionOutcome.fail(FailureReason.OUT_OF_BOUNDS, f"({col}, {row}) is off the map")
        path = world.grid.find_path(self.position, (col, row), world.movement_cost_fn(self))
        if len(path) < 2:
            return ActionOutcome.fail(FailureReason.NO_PATH, f"{self.name} has no route to ({col}, {row})")

        self.goto_path = path[1:]
        self.sleeping = False
        self.fortified = False
        self.clear_work()
        logging.debug(f"{self.name} {self.id} heading to ({col}, {row}), {len(self.goto_path)} steps")
        steps = self.follow_goto(world)
        return ActionOutcome.ok(f"{self.name} heading to ({col}, {row})",
                                {"steps_taken": steps, "remaining": list(self.goto_path)})

    def follow_goto(self, world: "GameMap") -> int:
        """Step along the go-to path while movement lasts; returns steps taken.

        The path is dropped on arrival or when the next step is blocked. A
        step that only lacks movement this turn is retried next turn.
        """
        steps = 0
        while self.goto_path and self.has_moves_left():
            col, row = self.goto_path[0]
            reason = self.can_move_to(col, row, world)
            if reason == FailureReason.INSUFFICIENT_MOVEMENT and self.movement < self.max_movement:
                break
            if reason is not None:
                logging.info(f"{self.name} {self.id} stopped at {self.position}: {reason.value}")
                self.goto_path = []
                break
            self.move_to(col, row, world)
            self.goto_path.pop(0)
            steps += 1
            if not self.goto_path:
                logging.debug(f"{self.name} {self.id} arrived at {self.position}")
        return steps

    # Orders
    def fortify(self, world: Optional["GameMap"] = None) -> ActionOutcome:
        """Toggle fortification; only allowed before moving this turn."""
        if self.moved:
            return ActionOutcome.fail(FailureReason.ALREADY_MOVED, f"{self.name} already moved this turn")
        self.fortified = not self.fortified
        self.goto_path = []
        self.sleeping = False
        self.movement = 0.0
        if world is not None:
            world.events.publish(GameEventType.UNIT_FORTIFIED, unit_id=self.id,
                                 civilization_id=self.civilization_id, fortified=self.fortified)
        return ActionOutcome.ok(f"{self.name} {'fortified' if self.fortified else 'unfortified'}",
                                {"fortified": self.fortified})

    def sleep(self) -> ActionOutcome:
        self.sleeping = True
        self.goto_path = []
        self.fortified = False
        return ActionOutcome.ok(f"{self.name} is sleeping")

    def wake(self) -> ActionOutcome:
        self.sleeping = False
        return ActionOutcome.ok(f"{self.name} is awake")

    def skip(self) -> ActionOutcome:
        self.skipped = True
        return ActionOutcome.ok(f"{self.name} skips this turn")

    def start_turn(self, world: "GameMap") -> None:
        """Restore movement, clear per-turn flags, advance work and follow any go-to path."""
        self.movement = self.max_movement
        self.moved = False
        self.skipped = False
        if self.sleeping and world.enemy_adjacent(self):
            self.sleeping = False
        self.do_work(world)
        if self.goto_path:
            self.follow_goto(world)

    # Serialization
    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.unit_type.value,
            "civilization_id": self.civilization_id,
            "col": self.col,
            "row": self.row,
            "movement": self.movement,
            "max_movement": self.max_movement,
            "attack": self.attack,
            "defense": self.defense,
            "experience": self.experience,
            "veteran": self.veteran,
            "fortified": self.fortified,
            "sleeping": self.sleeping,
            "skipped": self.skipped,
            "work_target": self.work_target.value if self.work_target else None,
            "work_turns": self.work_turns,
            "moved": self.moved,
            "home_city_id": self.home_city_id,
            "goto_path": [list(p) for p in self.goto_path],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], rules: GameRules = DEFAULT_RULES, **kwargs) -> "Unit":
        unit_type = coerce_enum(UnitType, data["type"], "unit")
        table = rules.unit_data(unit_type)
        return cls(
            id=data["id"],
            civilization_id=int(data["civilization_id"]),
            col=int(data["col"]),
            row=int(data["row"]),
            unit_type=unit_type,
            movement=float(data.get("movement", table.movement)),
            max_movement=float(data.get("max_movement", table.movement)),
            attack=float(data.get("attack", table.attack)),
            defense=float(data.get("defense", table.defense)),
            experience=int(data.get("experience", 0)),
            veteran=bool(data.get("veteran", False)),
            fortified=bool(data.get("fortified", False)),
            sleeping=bool(data.get("sleeping", False)),
            skipped=bool(data.get("skipped", False)),
            work_target=data.get("work_target"),
            work_turns=int(data.get("work_turns", 0)),
            moved=bool(data.get("moved", False)),
            home_city_id=data.get("home_city_id"),
            goto_path=[tuple(p) for p in data.get("goto_path", [])],
            rules=rules,
        )

    def __str__(self) -> str:
        return f"{self.name} ({self.id}) of civ {self.civilization_id} at {self.position}"
