"""Base action class for the command pattern implementation."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Any, Optional, TYPE_CHECKING
from enum import Enum
import logging

from ..core.enums import FailureReason

if TYPE_CHECKING:
    from ..game.game_map import GameMap


class ActionResult(Enum):
    """Result types for action execution."""
    SUCCESS = "success"
    FAILURE = "failure"
    INVALID = "invalid"


@dataclass
class ActionOutcome:
    """Result of executing an action."""
    result: ActionResult
    message: str
    reason: Optional[FailureReason] = None
    data: Optional[Dict[str, Any]] = None

    @property
    def success(self) -> bool:
        return self.result == ActionResult.SUCCESS

    @classmethod
    def ok(cls, message: str, data: Optional[Dict[str, Any]] = None) -> "ActionOutcome":
        return cls(ActionResult.SUCCESS, message, None, data)

    @classmethod
    def fail(cls, reason: FailureReason, message: str = "",
             data: Optional[Dict[str, Any]] = None) -> "ActionOutcome":
        return cls(ActionResult.FAILURE, message or reason.value, reason, data)

    @classmethod
    def invalid(cls, reason: FailureReason, message: str = "") -> "ActionOutcome":
        return cls(ActionResult.INVALID, message or reason.value, reason)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "result": self.result.value,
            "message": self.message,
            "reason": self.reason.value if self.reason else None,
            "data": self.data,
        }


class BaseAction(ABC):
    """Base class for all game actions using Command pattern.

    ``validate`` returns a failure reason (or None) without touching the
    game; ``execute`` re-validates, applies the change and logs the outcome
    to the map's action log.
    """

    def __init__(self, civilization_id: int, action_type: str):
        self.civilization_id = civilization_id
        self.action_type = action_type
        self.executed = False
        self.outcome: Optional[ActionOutcome] = None

    def check_common(self, game_map: "GameMap") -> Optional[FailureReason]:
        """Checks every command shares: game still running, actor is active."""
        if game_map.game_over:
            return FailureReason.GAME_OVER
        if game_map.get_civilization(self.civilization_id) is None:
            return FailureReason.CIVILIZATION_NOT_FOUND
        if game_map.active_civilization_id != self.civilization_id:
            return FailureReason.NOT_ACTIVE_CIVILIZATION
        return None

    @abstractmethod
    def validate(self, game_map: "GameMap") -> Optional[FailureReason]:
        """Return why this action cannot run, or None."""
        pass

    @abstractmethod
    def perform(self, game_map: "GameMap") -> ActionOutcome:
        """Apply the action; only called after validation passed."""
        pass

    def execute(self, game_map: "GameMap") -> ActionOutcome:
        """Validate, perform and log the action."""
        reason = self.validate(game_map)
        if reason is not None:
            outcome = ActionOutcome.invalid(reason, f"{self.action_type} rejected: {reason.value}")
            logging.warning(f"Rejected {self.action_type} for civilization {self.civilization_id}: {reason.value}")
        else:
            outcome = self.perform(game_map)
            self.executed = outcome.success
            if not outcome.success:
                logging.warning(f"{self.action_type} failed for civilization {self.civilization_id}: "
                                f"{outcome.message}")

        self.outcome = outcome
        self.log_execution(game_map, outcome)
        return outcome

    def get_action_data(self) -> Dict[str, Any]:
        """Get serializable data about this action."""
        return {
            "civilization_id": self.civilization_id,
            "action_type": self.action_type,
            "executed": self.executed,
            "outcome": self.outcome.result.value if self.outcome else None
        }

    def log_execution(self, game_map: "GameMap", outcome: ActionOutcome):
        """Log this action's execution."""
        action_data = self.get_action_data()
        action_data.update({
            "outcome_message": outcome.message,
            "outcome_reason": outcome.reason.value if outcome.reason else None,
            "outcome_data": outcome.data
        })

        game_map.log_action(self.action_type, action_data)
