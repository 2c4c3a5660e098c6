"""Game data structures and rule tables for Hex Empires.

Every table is built from frozen dataclasses and wrapped in a read-only
mapping. A ``GameRules`` instance is created once and handed to the map and
entities by reference; nothing mutates it at runtime.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, FrozenSet, Mapping, Optional, Tuple

from ..core.enums import (
    TerrainType, ResourceType, ImprovementType, UnitType, UnitRole, BuildingType, TechCategory
)
from ..core.exceptions import DataError, raise_if_unknown_type


@dataclass(frozen=True)
class Yields:
    """Food, production and trade output."""
    food: int = 0
    production: int = 0
    trade: int = 0

    def __add__(self, other: "Yields") -> "Yields":
        return Yields(self.food + other.food,
                      self.production + other.production,
                      self.trade + other.trade)

    def floored(self) -> "Yields":
        """Clamp every component at zero."""
        return Yields(max(0, self.food), max(0, self.production), max(0, self.trade))

    @property
    def total(self) -> int:
        return self.food + self.production + self.trade

    def to_dict(self) -> Dict[str, int]:
        return {"food": self.food, "production": self.production, "trade": self.trade}


@dataclass(frozen=True)
class TerrainData:
    """Data structure for terrain type information."""
    terrain: TerrainType
    name: str
    movement_cost: float
    defense_bonus: float
    yields: Yields
    build_modifier: float = 1.0
    is_water: bool = False
    color: str = "#888888"

    def __post_init__(self):
        """Validate terrain data."""
        if self.movement_cost <= 0:
            raise ValueError(f"Invalid movement cost for {self.name}: {self.movement_cost}")
        if self.build_modifier <= 0:
            raise ValueError(f"Invalid build modifier for {self.name}: {self.build_modifier}")


@dataclass(frozen=True)
class ResourceData:
    """Data structure for special resource information."""
    resource: ResourceType
    name: str
    yields: Yields
    allowed_terrain: FrozenSet[TerrainType]

    def __post_init__(self):
        """Validate resource data."""
        if not self.allowed_terrain:
            raise ValueError(f"Resource {self.name} must allow at least one terrain")


@dataclass(frozen=True)
class ImprovementData:
    """Data structure for tile improvement information.

    ``allowed_terrain`` of None means any land terrain. Improvements with
    ``converts_to`` change the tile's terrain when finished instead of
    being stored on the tile.
    """
    improvement: ImprovementType
    name: str
    base_turns: int
    yields: Yields = Yields()
    allowed_terrain: Optional[FrozenSet[TerrainType]] = None
    requires_improvement: Optional[ImprovementType] = None
    defense_bonus: float = 0.0
    converts_to: Optional[TerrainType] = None

    def __post_init__(self):
        """Validate improvement data."""
        if self.base_turns <= 0:
            raise ValueError(f"Invalid build time for {self.name}: {self.base_turns}")

    def allows(self, terrain: TerrainType) -> bool:
        return self.allowed_terrain is None or terrain in self.allowed_terrain


@dataclass(frozen=True)
class UnitData:
    """Data structure for unit type information."""
    unit_type: UnitType
    name: str
    attack: float
    defense: float
    movement: float
    cost: int
    maintenance: int = 1
    role: UnitRole = UnitRole.MILITARY
    can_settle: bool = False
    can_work: bool = False
    sight_range: int = 1
    required_tech: Optional[str] = None

    def __post_init__(self):
        """Validate unit data."""
        if self.cost <= 0:
            raise ValueError(f"Invalid unit cost: {self.cost}")
        if self.movement <= 0:
            raise ValueError(f"Invalid unit movement: {self.movement}")
        if self.attack < 0 or self.defense < 0:
            raise ValueError(f"Invalid combat values for {self.name}")

    @property
    def naval(self) -> bool:
        return self.role == UnitRole.NAVAL

    @property
    def is_military(self) -> bool:
        return self.role != UnitRole.CIVILIAN and self.attack > 0


@dataclass(frozen=True)
class BuildingData:
    """Data structure for building information.

    Bonus fields are fractions: 0.5 means +50% of the base value.
    """
    building: BuildingType
    name: str
    cost: int
    maintenance: int = 1
    happiness: int = 0
    food_bonus: float = 0.0
    production_bonus: float = 0.0
    trade_bonus: float = 0.0
    gold_bonus: float = 0.0
    science_bonus: float = 0.0
    defense_bonus: float = 0.0
    max_population_bonus: int = 0
    food_retained: float = 0.0
    corruption_reduction: float = 0.0
    veteran_units: bool = False
    required_tech: Optional[str] = None

    def __post_init__(self):
        """Validate building data."""
        if self.cost <= 0:
            raise ValueError(f"Invalid building cost: {self.cost}")
        if not 0.0 <= self.food_retained < 1.0:
            raise ValueError(f"Invalid retained food share: {self.food_retained}")


@dataclass(frozen=True)
class TechnologyData:
    """Data structure for technology information."""
    tech_id: str
    name: str
    cost: int
    category: TechCategory
    prerequisites: Tuple[str, ...] = ()

    def __post_init__(self):
        """Validate technology data."""
        if self.cost <= 0:
            raise ValueError(f"Invalid technology cost: {self.cost}")
        if self.tech_id in self.prerequisites:
            raise ValueError(f"Technology {self.tech_id} cannot require itself")


@dataclass(frozen=True)
class GameRules:
    """Complete, read-only rule set.

    Every enum-keyed table must cover its whole enum and every technology
    reference must resolve, otherwise construction fails with DataError.
    """
    terrain: Mapping[TerrainType, TerrainData]
    resources: Mapping[ResourceType, ResourceData]
    improvements: Mapping[ImprovementType, ImprovementData]
    units: Mapping[UnitType, UnitData]
    buildings: Mapping[BuildingType, BuildingData]
    technologies: Mapping[str, TechnologyData] = field(default_factory=dict)

    def __post_init__(self):
        for name in ("terrain", "resources", "improvements", "units", "buildings", "technologies"):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))
        self._check_complete(TerrainType, self.terrain, "terrain")
        self._check_complete(ResourceType, self.resources, "resource")
        self._check_complete(ImprovementType, self.improvements, "improvement")
        self._check_complete(UnitType, self.units, "unit")
        self._check_complete(BuildingType, self.buildings, "building")
        self._check_technology_references()

    @staticmethod
    def _check_complete(enum_class, table: Mapping, table_name: str) -> None:
        missing = [member.value for member in enum_class if member not in table]
        if missing:
            raise DataError(
                f"Incomplete {table_name} table",
                error_code="INCOMPLETE_TABLE",
                context={"table": table_name, "missing": missing}
            )

    def _check_technology_references(self) -> None:
        for tech in self.technologies.values():
            for prereq in tech.prerequisites:
                raise_if_unknown_type(prereq, self.technologies, "technology")
        for unit in self.units.values():
            if unit.required_tech:
                raise_if_unknown_type(unit.required_tech, self.technologies, "technology")
        for building in self.buildings.values():
            if building.required_tech:
                raise_if_unknown_type(building.required_tech, self.technologies, "technology")

    # Lookups
    def terrain_data(self, terrain: TerrainType) -> TerrainData:
        raise_if_unknown_type(terrain, self.terrain, "terrain")
        return self.terrain[terrain]

    def resource_data(self, resource: ResourceType) -> ResourceData:
        raise_if_unknown_type(resource, self.resources, "resource")
        return self.resources[resource]

    def improvement_data(self, improvement: ImprovementType) -> ImprovementData:
        raise_if_unknown_type(improvement, self.improvements, "improvement")
        return self.improvements[improvement]

    def unit_data(self, unit_type: UnitType) -> UnitData:
        raise_if_unknown_type(unit_type, self.units, "unit")
        return self.units[unit_type]

    def building_data(self, building: BuildingType) -> BuildingData:
        raise_if_unknown_type(building, self.buildings, "building")
        return self.buildings[building]

    def technology_data(self, tech_id: str) -> TechnologyData:
        raise_if_unknown_type(tech_id, self.technologies, "technology")
        return self.technologies[tech_id]

    def resources_for(self, terrain: TerrainType) -> Tuple[ResourceType, ...]:
        """Resources whose allowed terrain contains ``terrain``, in table order."""
        return tuple(r.resource for r in self.resources.values() if terrain in r.allowed_terrain)


_T = TerrainType

TERRAIN_TABLE: Dict[TerrainType, TerrainData] = {
    _T.OCEAN: TerrainData(_T.OCEAN, "Ocean", 0.8, 0.0, Yields(1, 0, 2), 1.0, True, "#1e3a8a"),
    _T.GRASSLAND: TerrainData(_T.GRASSLAND, "Grassland", 0.8, 0.0, Yields(3, 0, 0), 1.0, False, "#22c55e"),
    _T.PLAINS: TerrainData(_T.PLAINS, "Plains", 0.8, 0.0, Yields(1, 1, 0), 1.0, False, "#eab308"),
    _T.DESERT: TerrainData(_T.DESERT, "Desert", 0.8, 0.0, Yields(0, 1, 0), 1.0, False, "#f59e0b"),
    _T.TUNDRA: TerrainData(_T.TUNDRA, "Tundra", 0.8, 0.0, Yields(1, 0, 0), 1.0, False, "#94a3b8"),
    _T.FOREST: TerrainData(_T.FOREST, "Forest", 0.9, 1.35, Yields(1, 2, 0), 2.0, False, "#166534"),
    _T.JUNGLE: TerrainData(_T.JUNGLE, "Jungle", 1.0, 1.35, Yields(0, 0, 0), 2.0, False, "#15803d"),
    _T.SWAMP: TerrainData(_T.SWAMP, "Swamp", 0.9, 1.35, Yields(0, 0, 0), 3.0, False, "#7c2d12"),
    _T.HILLS: TerrainData(_T.HILLS, "Hills", 0.9, 1.5, Yields(0, 1, 0), 2.0, False, "#a3a3a3"),
    _T.MOUNTAINS: TerrainData(_T.MOUNTAINS, "Mountains", 1.0, 2.5, Yields(0, 1, 0), 3.0, False, "#78716c"),
}

RESOURCE_TABLE: Dict[ResourceType, ResourceData] = {
    ResourceType.WHEAT: ResourceData(ResourceType.WHEAT, "Wheat", Yields(food=1),
                                     frozenset({_T.GRASSLAND, _T.PLAINS})),
    ResourceType.CATTLE: ResourceData(ResourceType.CATTLE, "Cattle", Yields(food=1),
                                      frozenset({_T.GRASSLAND, _T.PLAINS})),
    ResourceType.FISH: ResourceData(ResourceType.FISH, "Fish", Yields(food=2), frozenset({_T.OCEAN})),
    ResourceType.WHALES: ResourceData(ResourceType.WHALES, "Whales", Yields(food=1, trade=2),
                                      frozenset({_T.OCEAN})),
    ResourceType.COAL: ResourceData(ResourceType.COAL, "Coal", Yields(production=1),
                                    frozenset({_T.HILLS, _T.MOUNTAINS})),
    ResourceType.IRON: ResourceData(ResourceType.IRON, "Iron", Yields(production=1),
                                    frozenset({_T.HILLS, _T.MOUNTAINS})),
    ResourceType.GOLD: ResourceData(ResourceType.GOLD, "Gold", Yields(trade=3),
                                    frozenset({_T.HILLS, _T.MOUNTAINS})),
    ResourceType.GEMS: ResourceData(ResourceType.GEMS, "Gems", Yields(trade=4),
                                    frozenset({_T.HILLS, _T.MOUNTAINS})),
    ResourceType.SILK: ResourceData(ResourceType.SILK, "Silk", Yields(trade=2),
                                    frozenset({_T.FOREST, _T.GRASSLAND})),
    ResourceType.SPICES: ResourceData(ResourceType.SPICES, "Spices", Yields(trade=3),
                                      frozenset({_T.GRASSLAND, _T.PLAINS})),
}

IMPROVEMENT_TABLE: Dict[ImprovementType, ImprovementData] = {
    ImprovementType.ROAD: ImprovementData(ImprovementType.ROAD, "Road", 3, Yields(trade=1)),
    ImprovementType.RAILROAD: ImprovementData(ImprovementType.RAILROAD, "Railroad", 6, Yields(production=1),
                                              requires_improvement=ImprovementType.ROAD),
    ImprovementType.IRRIGATION: ImprovementData(ImprovementType.IRRIGATION, "Irrigation", 5, Yields(food=1),
                                                frozenset({_T.GRASSLAND, _T.PLAINS, _T.DESERT})),
    ImprovementType.MINE: ImprovementData(ImprovementType.MINE, "Mine", 5, Yields(production=1),
                                          frozenset({_T.HILLS, _T.MOUNTAINS})),
    ImprovementType.FORTRESS: ImprovementData(ImprovementType.FORTRESS, "Fortress", 8, defense_bonus=1.0),
    ImprovementType.AIRBASE: ImprovementData(ImprovementType.AIRBASE, "Airbase", 10),
    ImprovementType.CONVERT_TO_GRASSLAND: ImprovementData(
        ImprovementType.CONVERT_TO_GRASSLAND, "Convert to Grassland", 8,
        allowed_terrain=frozenset({_T.JUNGLE, _T.SWAMP}), converts_to=_T.GRASSLAND),
    ImprovementType.CONVERT_TO_FOREST: ImprovementData(
        ImprovementType.CONVERT_TO_FOREST, "Convert to Forest", 8,
        allowed_terrain=frozenset({_T.JUNGLE, _T.SWAMP, _T.GRASSLAND}), converts_to=_T.FOREST),
    ImprovementType.CONVERT_TO_PLAINS: ImprovementData(
        ImprovementType.CONVERT_TO_PLAINS, "Convert to Plains", 8,
        allowed_terrain=frozenset({_T.FOREST}), converts_to=_T.PLAINS),
}

UNIT_TABLE: Dict[UnitType, UnitData] = {
    UnitType.SETTLER: UnitData(UnitType.SETTLER, "Settler", 0, 1, 1, 30, role=UnitRole.CIVILIAN,
                               can_settle=True, can_work=True),
    UnitType.MILITIA: UnitData(UnitType.MILITIA, "Militia", 1, 1, 1, 10),
    UnitType.PHALANX: UnitData(UnitType.PHALANX, "Phalanx", 1, 2, 1, 20, required_tech="bronze_working"),
    UnitType.LEGION: UnitData(UnitType.LEGION, "Legion", 3, 1, 1, 20, required_tech="iron_working"),
    UnitType.CHARIOT: UnitData(UnitType.CHARIOT, "Chariot", 4, 1, 2, 40, sight_range=2, required_tech="wheel"),
    UnitType.CAVALRY: UnitData(UnitType.CAVALRY, "Cavalry", 4, 1, 2, 40, sight_range=2,
                               required_tech="horseback_riding"),
    UnitType.CATAPULT: UnitData(UnitType.CATAPULT, "Catapult", 6, 1, 1, 40, required_tech="mathematics"),
    UnitType.TRIREME: UnitData(UnitType.TRIREME, "Trireme", 1, 0, 3, 40, role=UnitRole.NAVAL, sight_range=2,
                               required_tech="map_making"),
}

BUILDING_TABLE: Dict[BuildingType, BuildingData] = {
    BuildingType.BARRACKS: BuildingData(BuildingType.BARRACKS, "Barracks", 40, veteran_units=True),
    BuildingType.GRANARY: BuildingData(BuildingType.GRANARY, "Granary", 60, food_retained=0.5,
                                       required_tech="pottery"),
    BuildingType.TEMPLE: BuildingData(BuildingType.TEMPLE, "Temple", 40, happiness=1,
                                      required_tech="ceremonial_burial"),
    BuildingType.MARKETPLACE: BuildingData(BuildingType.MARKETPLACE, "Marketplace", 80, trade_bonus=0.5,
                                           gold_bonus=0.5, required_tech="currency"),
    BuildingType.LIBRARY: BuildingData(BuildingType.LIBRARY, "Library", 80, science_bonus=0.5,
                                       required_tech="alphabet"),
    BuildingType.COURTHOUSE: BuildingData(BuildingType.COURTHOUSE, "Courthouse", 80, happiness=1,
                                          corruption_reduction=0.5),
    BuildingType.CITY_WALLS: BuildingData(BuildingType.CITY_WALLS, "City Walls", 120, maintenance=2,
                                          defense_bonus=2.0, required_tech="masonry"),
    BuildingType.AQUEDUCT: BuildingData(BuildingType.AQUEDUCT, "Aqueduct", 120, max_population_bonus=8,
                                        required_tech="construction"),
    BuildingType.COLOSSEUM: BuildingData(BuildingType.COLOSSEUM, "Colosseum", 100, happiness=2,
                                         required_tech="construction"),
}

TECHNOLOGY_TABLE: Dict[str, TechnologyData] = {
    tech.tech_id: tech for tech in (
        TechnologyData("pottery", "Pottery", 40, TechCategory.ECONOMY),
        TechnologyData("ceremonial_burial", "Ceremonial Burial", 40, TechCategory.CULTURE),
        TechnologyData("alphabet", "Alphabet", 60, TechCategory.SCIENCE),
        TechnologyData("bronze_working", "Bronze Working", 80, TechCategory.MILITARY),
        TechnologyData("iron_working", "Iron Working", 100, TechCategory.MILITARY, ("bronze_working",)),
        TechnologyData("horseback_riding", "Horseback Riding", 80, TechCategory.MILITARY),
        TechnologyData("wheel", "The Wheel", 60, TechCategory.TRANSPORT),
        TechnologyData("masonry", "Masonry", 80, TechCategory.CONSTRUCTION),
        TechnologyData("construction", "Construction", 120, TechCategory.CONSTRUCTION, ("masonry",)),
        TechnologyData("currency", "Currency", 100, TechCategory.ECONOMY, ("bronze_working",)),
        TechnologyData("mathematics", "Mathematics", 100, TechCategory.SCIENCE, ("alphabet",)),
        TechnologyData("map_making", "Map Making", 90, TechCategory.EXPLORATION, ("alphabet",)),
    )
}

DEFAULT_RULES = GameRules(
    terrain=TERRAIN_TABLE,
    resources=RESOURCE_TABLE,
    improvements=IMPROVEMENT_TABLE,
    units=UNIT_TABLE,
    buildings=BUILDING_TABLE,
    technologies=TECHNOLOGY_TABLE,
)
