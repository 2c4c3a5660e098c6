"""Map tile: terrain, improvements, resource and per-civilization visibility."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import math

from ..actions.base_action import ActionOutcome
from ..core.enums import TerrainType, ResourceType, ImprovementType, FailureReason
from ..core.exceptions import coerce_enum
from ..core.constants import ROAD_MOVEMENT_COST, CITY_WALLS_DEFENSE_BONUS
from ..data import GameRules, DEFAULT_RULES, TerrainData, Yields


@dataclass
class TileImprovement:
    """An improvement on a tile and whether it is finished."""
    improvement_type: ImprovementType
    complete: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.improvement_type.value, "complete": self.complete}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TileImprovement":
        return cls(coerce_enum(ImprovementType, data["type"], "improvement"), bool(data.get("complete", True)))


@dataclass(eq=False)
class Tile:
    """One grid cell.

    Yields are never stored; ``get_yields`` derives them from terrain,
    resource, completed improvements and pollution every time.
    """

    col: int
    row: int
    terrain: TerrainType
    improvements: List[TileImprovement] = field(default_factory=list)
    resource: Optional[ResourceType] = None
    visibility: Dict[int, bool] = field(default_factory=dict)
    explored: Dict[int, bool] = field(default_factory=dict)
    polluted: bool = False
    rules: GameRules = field(default=DEFAULT_RULES, repr=False)

    def __post_init__(self):
        self.terrain = coerce_enum(TerrainType, self.terrain, "terrain")
        if self.resource is not None:
            self.resource = coerce_enum(ResourceType, self.resource, "resource")

    @property
    def position(self):
        return (self.col, self.row)

    @property
    def terrain_data(self) -> TerrainData:
        return self.rules.terrain_data(self.terrain)

    @property
    def is_water(self) -> bool:
        return self.terrain_data.is_water

    # Yields
    def get_yields(self) -> Yields:
        """Base terrain + resource + completed improvements, minus pollution, floored at 0."""
        total = self.terrain_data.yields
        if self.resource is not None:
            total = total + self.rules.resource_data(self.resource).yields
        for improvement in self.improvements:
            if improvement.complete:
                total = total + self.rules.improvement_data(improvement.improvement_type).yields
        if self.polluted:
            total = Yields(total.food - 1, total.production - 1, total.trade)
        return total.floored()

    # Movement and defense
    def get_movement_cost(self, unit) -> float:
        """Cost for ``unit`` to enter this tile; ``math.inf`` when impassable."""
        if bool(getattr(unit, "naval", False)) != self.is_water:
            return math.inf
        cost = self.terrain_data.movement_cost
        if self.has_improvement(ImprovementType.ROAD):
            cost = min(cost, ROAD_MOVEMENT_COST)
        return cost

    def get_defense_bonus(self, walls: bool = False) -> float:
        """Terrain defense plus fortress and city-walls bonuses."""
        bonus = self.terrain_data.defense_bonus
        for improvement in self.improvements:
            if improvement.complete:
                bonus += self.rules.improvement_data(improvement.improvement_type).defense_bonus
        if walls:
            bonus += CITY_WALLS_DEFENSE_BONUS
        return bonus

    # Improvements
    def has_improvement(self, improvement_type: ImprovementType, complete_only: bool = True) -> bool:
        return any(
            imp.improvement_type == improvement_type and (imp.complete or not complete_only)
            for imp in self.improvements
        )

    def check_improvement(self, improvement_type) -> Optional[FailureReason]:
        """Reason the improvement cannot be built here, or None."""
        improvement_type = coerce_enum(ImprovementType, improvement_type, "improvement")
        data = self.rules.improvement_data(improvement_type)
        if self.is_water:
            return FailureReason.CANNOT_IMPROVE
        if self.has_improvement(improvement_type):
            return FailureReason.ALREADY_IMPROVED
        if not data.allows(self.terrain):
            return FailureReason.CANNOT_IMPROVE
        if data.requires_improvement and not self.has_improvement(data.requires_improvement):
            return FailureReason.MISSING_PREREQUISITE
        return None

    def can_improve(self, improvement_type) -> bool:
        return self.check_improvement(improvement_type) is None

    def add_improvement(self, improvement_type, complete: bool = True) -> ActionOutcome:
        """Add (or finish) an improvement after checking terrain and duplicates.

        Terraforming improvements convert the terrain when completed and are
        never stored on the tile.
        """
        improvement_type = coerce_enum(ImprovementType, improvement_type, "improvement")
        reason = self.check_improvement(improvement_type)
        if reason is not None:
            return ActionOutcome.fail(reason, f"Cannot add {improvement_type.value} at {self.position}")

        data = self.rules.improvement_data(improvement_type)
        if data.converts_to is not None:
            if complete:
                self.convert_terrain(data.converts_to)
            return ActionOutcome.ok(f"{data.name} applied at {self.position}")

        for existing in self.improvements:
            if existing.improvement_type == improvement_type:
                existing.complete = existing.complete or complete
                return ActionOutcome.ok(f"{data.name} updated at {self.position}")

        self.improvements.append(TileImprovement(improvement_type, complete))
        return ActionOutcome.ok(f"{data.name} added at {self.position}")

    def convert_terrain(self, new_terrain: TerrainType) -> None:
        """Change terrain, dropping a resource or improvements the new terrain cannot hold."""
        self.terrain = coerce_enum(TerrainType, new_terrain, "terrain")
        if self.resource is not None:
            if self.terrain not in self.rules.resource_data(self.resource).allowed_terrain:
                self.resource = None
        kept = []
        for improvement in self.improvements:
            data = self.rules.improvement_data(improvement.improvement_type)
            if not self.is_water and data.allows(self.terrain):
                kept.append(improvement)
        self.improvements = kept

    # Visibility
    def reveal(self, civilization_id: int) -> None:
        self.visibility[civilization_id] = True
        self.explored[civilization_id] = True

    def hide(self, civilization_id: int) -> None:
        self.visibility[civilization_id] = False

    def is_visible_to(self, civilization_id: int) -> bool:
        return self.visibility.get(civilization_id, False)

    def is_explored_by(self, civilization_id: int) -> bool:
        return self.explored.get(civilization_id, False)

    # Serialization
    def to_dict(self) -> Dict[str, Any]:
        return {
            "col": self.col,
            "row": self.row,
            "terrain": self.terrain.value,
            "improvements": [imp.to_dict() for imp in self.improvements],
            "resource": self.resource.value if self.resource else None,
            "visibility": {str(k): v for k, v in sorted(self.visibility.items())},
            "explored": {str(k): v for k, v in sorted(self.explored.items())},
            "polluted": self.polluted,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], rules: GameRules = DEFAULT_RULES) -> "Tile":
        return cls(
            col=int(data["col"]),
            row=int(data["row"]),
            terrain=coerce_enum(TerrainType, data["terrain"], "terrain"),
            improvements=[TileImprovement.from_dict(imp) for imp in data.get("improvements", [])],
            resource=coerce_enum(ResourceType, data["resource"], "resource") if data.get("resource") else None,
            visibility={int(k): bool(v) for k, v in data.get("visibility", {}).items()},
            explored={int(k): bool(v) for k, v in data.get("explored", {}).items()},
            polluted=bool(data.get("polluted", False)),
            rules=rules,
        )
