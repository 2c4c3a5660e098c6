"""
Command API for Hex Empires.

The single entry point a front end or script uses to drive a game. Every
method returns an ActionOutcome; expected failures come back as FAILURE or
INVALID outcomes with a FailureReason instead of raising.
"""

from typing import Any, Dict, Optional, TYPE_CHECKING
import logging

from .base_action import BaseAction, ActionOutcome
from .unit_actions import (
    MoveUnitAction, SetGotoAction, AttackUnitAction, FoundCityAction, FortifyUnitAction, SleepUnitAction,
    WakeUnitAction, SkipUnitAction, BuildImprovementAction
)
from .city_actions import (
    SetProductionAction, RemoveQueueItemAction, PurchaseProductionAction, SetAutoProductionAction,
    SetResearchAction
)
from ..core.enums import FailureReason
from ..game.events import GameEventType

if TYPE_CHECKING:
    from ..game.game_map import GameMap


class CommandAPI:
    """Validated commands over one GameMap."""

    def __init__(self, game_map: "GameMap"):
        self.game_map = game_map

    def execute(self, action: BaseAction) -> ActionOutcome:
        return action.execute(self.game_map)

    def _unit_owner(self, unit_id: str) -> Optional[int]:
        unit = self.game_map.get_unit(unit_id)
        return unit.civilization_id if unit is not None else self.game_map.active_civilization_id

    def _city_owner(self, city_id: str) -> Optional[int]:
        city = self.game_map.get_city(city_id)
        return city.civilization_id if city is not None else self.game_map.active_civilization_id

    # Unit commands
    def move_unit(self, unit_id: str, col: int, row: int) -> ActionOutcome:
        """Move one step, attacking when the target tile holds an enemy."""
        return self.execute(MoveUnitAction(self._unit_owner(unit_id), unit_id, col, row))

    def set_unit_goto(self, unit_id: str, col: int, row: int) -> ActionOutcome:
        """Route the unit to a distant tile; it moves now and at the start of later turns."""
        return self.execute(SetGotoAction(self._unit_owner(unit_id), unit_id, col, row))

    def attack_unit(self, unit_id: str, target_id: str) -> ActionOutcome:
        return self.execute(AttackUnitAction(self._unit_owner(unit_id), unit_id, target_id))

    def found_city_with_settler(self, unit_id: str, name: Optional[str] = None) -> ActionOutcome:
        return self.execute(FoundCityAction(self._unit_owner(unit_id), unit_id, name))

    def unit_fortify(self, unit_id: str) -> ActionOutcome:
        return self.execute(FortifyUnitAction(self._unit_owner(unit_id), unit_id))

    def unit_sleep(self, unit_id: str) -> ActionOutcome:
        return self.execute(SleepUnitAction(self._unit_owner(unit_id), unit_id))

    def unit_wake(self, unit_id: str) -> ActionOutcome:
        return self.execute(WakeUnitAction(self._unit_owner(unit_id), unit_id))

    def skip_unit(self, unit_id: str) -> ActionOutcome:
        return self.execute(SkipUnitAction(self._unit_owner(unit_id), unit_id))

    def build_improvement(self, unit_id: str, improvement_type) -> ActionOutcome:
        return self.execute(BuildImprovementAction(self._unit_owner(unit_id), unit_id, improvement_type))

    # City commands
    def set_city_production(self, city_id: str, item, enqueue: bool = False) -> ActionOutcome:
        return self.execute(SetProductionAction(self._city_owner(city_id), city_id, item, enqueue))

    def remove_city_queue_item(self, city_id: str, index: int) -> ActionOutcome:
        return self.execute(RemoveQueueItemAction(self._city_owner(city_id), city_id, index))

    def purchase_city_production(self, city_id: str, item) -> ActionOutcome:
        """Pay the item's cost in gold; once per city per turn, delivered next turn."""
        return self.execute(PurchaseProductionAction(self._city_owner(city_id), city_id, item))

    def set_city_auto_production(self, city_id: str, enabled: bool = True) -> ActionOutcome:
        return self.execute(SetAutoProductionAction(self._city_owner(city_id), city_id, enabled))

    # Research
    def set_research(self, civ_id: int, tech_id: str) -> ActionOutcome:
        return self.execute(SetResearchAction(civ_id, tech_id))

    # Turns
    def next_turn(self) -> ActionOutcome:
        return self._advance("next_turn", self.game_map.next_turn)

    def process_turn(self) -> ActionOutcome:
        return self._advance("process_turn", self.game_map.process_turn)

    def _advance(self, action_type: str, advance) -> ActionOutcome:
        if self.game_map.game_over:
            logging.warning(f"Rejected {action_type}: game over")
            outcome = ActionOutcome.invalid(FailureReason.GAME_OVER, f"{action_type} rejected: game over")
        else:
            summary = advance()
            outcome = ActionOutcome.ok(f"Turn {summary['turn']}, civilization {summary['active_civilization_id']}",
                                       summary)
        self.game_map.log_action(action_type, outcome.to_dict())
        return outcome

    # Queries
    def get_game_info(self) -> Dict[str, Any]:
        return self.game_map.get_game_info()

    def subscribe(self, callback, event_type: Optional[GameEventType] = None) -> None:
        """Listen to the game's event stream."""
        self.game_map.events.subscribe(callback, event_type)
