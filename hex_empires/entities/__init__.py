"""Game entities."""

from .base import BaseEntity, MapEntity, create_entity_id
from .tile import Tile, TileImprovement
from .unit import Unit
from .city import City, ProductionItem
from .civilization import Civilization, AIPersonality

__all__ = [
    "BaseEntity", "MapEntity", "create_entity_id",
    "Tile", "TileImprovement", "Unit", "City", "ProductionItem",
    "Civilization", "AIPersonality"
]
