"""Core enumerations for the Hex Empires engine."""

from enum import Enum, IntEnum


class TerrainType(Enum):
    """Terrain types a tile can have."""
    OCEAN = "ocean"
    GRASSLAND = "grassland"
    PLAINS = "plains"
    DESERT = "desert"
    TUNDRA = "tundra"
    FOREST = "forest"
    JUNGLE = "jungle"
    SWAMP = "swamp"
    HILLS = "hills"
    MOUNTAINS = "mountains"


class ResourceType(Enum):
    """Special resources found on tiles."""
    WHEAT = "wheat"
    CATTLE = "cattle"
    FISH = "fish"
    WHALES = "whales"
    COAL = "coal"
    IRON = "iron"
    GOLD = "gold"
    GEMS = "gems"
    SILK = "silk"
    SPICES = "spices"


class ImprovementType(Enum):
    """Tile improvements that working units can build."""
    ROAD = "road"
    RAILROAD = "railroad"
    IRRIGATION = "irrigation"
    MINE = "mine"
    FORTRESS = "fortress"
    AIRBASE = "airbase"
    CONVERT_TO_GRASSLAND = "convert_to_grassland"
    CONVERT_TO_FOREST = "convert_to_forest"
    CONVERT_TO_PLAINS = "convert_to_plains"


class UnitType(Enum):
    """Unit types that can be produced or placed."""
    SETTLER = "settler"
    MILITIA = "militia"
    PHALANX = "phalanx"
    LEGION = "legion"
    CHARIOT = "chariot"
    CAVALRY = "cavalry"
    CATAPULT = "catapult"
    TRIREME = "trireme"


class UnitRole(Enum):
    """Broad unit roles used by AI and support rules."""
    CIVILIAN = "civilian"
    MILITARY = "military"
    NAVAL = "naval"


class BuildingType(Enum):
    """City buildings."""
    BARRACKS = "barracks"
    GRANARY = "granary"
    TEMPLE = "temple"
    MARKETPLACE = "marketplace"
    LIBRARY = "library"
    COURTHOUSE = "courthouse"
    CITY_WALLS = "city_walls"
    AQUEDUCT = "aqueduct"
    COLOSSEUM = "colosseum"


class ProductionKind(Enum):
    """What a production queue entry builds."""
    UNIT = "unit"
    BUILDING = "building"


class TechCategory(Enum):
    """Technology categories, matched against AI personality traits."""
    ECONOMY = "economy"
    CULTURE = "culture"
    SCIENCE = "science"
    MILITARY = "military"
    TRANSPORT = "transport"
    CONSTRUCTION = "construction"
    EXPLORATION = "exploration"


class Era(IntEnum):
    """Technology eras derived from prerequisite depth."""
    ANCIENT = 0
    CLASSICAL = 1
    MEDIEVAL = 2
    RENAISSANCE = 3


class FailureReason(Enum):
    """Reason codes attached to failed commands."""
    GAME_OVER = "game_over"
    NOT_ACTIVE_CIVILIZATION = "not_active_civilization"
    UNIT_NOT_FOUND = "unit_not_found"
    CITY_NOT_FOUND = "city_not_found"
    CIVILIZATION_NOT_FOUND = "civilization_not_found"
    TECHNOLOGY_NOT_FOUND = "technology_not_found"
    UNKNOWN_ITEM = "unknown_item"
    OUT_OF_BOUNDS = "out_of_bounds"
    NOT_ADJACENT = "not_adjacent"
    IMPASSABLE = "impassable"
    INSUFFICIENT_MOVEMENT = "insufficient_movement"
    OCCUPIED = "occupied"
    ENEMY_PRESENT = "enemy_present"
    CANNOT_ATTACK = "cannot_attack"
    NOT_ENEMY = "not_enemy"
    CANNOT_SETTLE = "cannot_settle"
    TOO_CLOSE_TO_CITY = "too_close_to_city"
    CANNOT_WORK = "cannot_work"
    CANNOT_IMPROVE = "cannot_improve"
    ALREADY_IMPROVED = "already_improved"
    MISSING_PREREQUISITE = "missing_prerequisite"
    ALREADY_MOVED = "already_moved"
    NO_MOVES_LEFT = "no_moves_left"
    INSUFFICIENT_GOLD = "insufficient_gold"
    ALREADY_PURCHASED = "already_purchased"
    ALREADY_BUILT = "already_built"
    MISSING_TECHNOLOGY = "missing_technology"
    NOT_COASTAL = "not_coastal"
    INVALID_INDEX = "invalid_index"
    ALREADY_RESEARCHED = "already_researched"
    NO_PATH = "no_path"
