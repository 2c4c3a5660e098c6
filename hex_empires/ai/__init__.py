"""AI decision making system."""

from .base_strategy import BaseStrategy
from .civilization_ai import CivilizationAI

__all__ = [
    "BaseStrategy",
    "CivilizationAI"
]
