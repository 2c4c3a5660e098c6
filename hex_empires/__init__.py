"""
Hex Empires - a turn-based civilization strategy engine.

This package provides a hex-grid world with procedurally generated terrain,
cities, units, technologies and AI civilizations, driven through a command
API and a synchronous event stream.
"""

__version__ = "0.1.0"
__author__ = "Hex Empires Team"

from .game.events import EventBus, GameEventType
from .game.game_map import GameMap, GameSettings, create_game, load_game
from .actions.command_api import CommandAPI

__all__ = ["GameMap", "GameSettings", "create_game", "load_game", "EventBus", "GameEventType", "CommandAPI"]
