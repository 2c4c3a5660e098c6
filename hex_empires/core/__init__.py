"""Core engine components."""

from .enums import *
from .exceptions import *
from .constants import *

__all__ = [
    # Enums
    "TerrainType", "ResourceType", "ImprovementType", "UnitType", "UnitRole", "BuildingType",
    "ProductionKind", "TechCategory", "Era", "FailureReason",
    # Exceptions
    "HexEmpiresError", "ValidationError", "GameStateError", "DataError", "UnknownTypeError",
    "InvalidHexError",
    # Constants
    "STARTING_YEAR", "YEARS_PER_TURN", "INITIAL_GOLD", "CIVILIZATION_TEMPLATES",
]
