"""Game action system."""

from .base_action import BaseAction, ActionResult, ActionOutcome

__all__ = [
    "BaseAction",
    "ActionResult",
    "ActionOutcome"
]
