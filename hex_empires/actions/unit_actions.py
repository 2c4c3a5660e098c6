"""Unit commands: movement, attack, founding cities, orders and terrain work."""

from typing import Any, Dict, Optional, TYPE_CHECKING

from .base_action import BaseAction, ActionOutcome
from ..core.enums import ImprovementType, FailureReason
from ..core.exceptions import coerce_enum, UnknownTypeError
from ..simulation.combat_system import get_defense_strength

if TYPE_CHECKING:
    from ..game.game_map import GameMap
    from ..entities.unit import Unit


class UnitAction(BaseAction):
    """Base for commands issued to one unit of the acting civilization."""

    def __init__(self, civilization_id: int, unit_id: str, action_type: str):
        super().__init__(civilization_id, action_type)
        self.unit_id = unit_id

    def get_unit(self, game_map: "GameMap") -> Optional["Unit"]:
        return game_map.get_unit(self.unit_id)

    def validate(self, game_map: "GameMap") -> Optional[FailureReason]:
        reason = self.check_common(game_map)
        if reason is not None:
            return reason
        unit = self.get_unit(game_map)
        if unit is None:
            return FailureReason.UNIT_NOT_FOUND
        if unit.civilization_id != self.civilization_id:
            return FailureReason.NOT_ACTIVE_CIVILIZATION
        return self.validate_unit(unit, game_map)

    def validate_unit(self, unit: "Unit", game_map: "GameMap") -> Optional[FailureReason]:
        """Command-specific checks; the unit exists and belongs to the actor."""
        return None

    def get_action_data(self) -> Dict[str, Any]:
        data = super().get_action_data()
        data["unit_id"] = self.unit_id
        return data


def select_defender(game_map: "GameMap", col: int, row: int) -> Optional["Unit"]:
    """Strongest defender on a tile, including terrain and city bonuses."""
    units = game_map.get_units_at(col, row)
    if not units:
        return None
    tile = game_map.get_tile(col, row)
    city = game_map.get_city_at(col, row)
    return max(units, key=lambda u: (get_defense_strength(u, tile, city), u.id))


class MoveUnitAction(UnitAction):
    """Move one step; stepping onto an enemy-held tile attacks its best defender."""

    def __init__(self, civilization_id: int, unit_id: str, col: int, row: int):
        super().__init__(civilization_id, unit_id, "move_unit")
        self.col = col
        self.row = row

    def _target_defender(self, unit: "Unit", game_map: "GameMap") -> Optional["Unit"]:
        defender = select_defender(game_map, self.col, self.row)
        if defender is not None and defender.civilization_id != unit.civilization_id and unit.is_military:
            return defender
        return None

    def validate_unit(self, unit: "Unit", game_map: "GameMap") -> Optional[FailureReason]:
        if not game_map.grid.is_valid(self.col, self.row):
            return FailureReason.OUT_OF_BOUNDS
        defender = self._target_defender(unit, game_map)
        if defender is not None:
            return unit.check_attack(defender)
        return unit.can_move_to(self.col, self.row, game_map)

    def perform(self, game_map: "GameMap") -> ActionOutcome:
        unit = self.get_unit(game_map)
        unit.goto_path = []
        defender = self._target_defender(unit, game_map)
        if defender is not None:
            return unit.attack_unit(defender, game_map)
        return unit.move_to(self.col, self.row, game_map)

    def get_action_data(self) -> Dict[str, Any]:
        data = super().get_action_data()
        data["target"] = (self.col, self.row)
        return data


class SetGotoAction(UnitAction):
    """Send a unit toward a distant tile; it keeps walking on later turns."""

    def __init__(self, civilization_id: int, unit_id: str, col: int, row: int):
        super().__init__(civilization_id, unit_id, "set_goto")
        self.col = col
        self.row = row

    def validate_unit(self, unit: "Unit", game_map: "GameMap") -> Optional[FailureReason]:
        if not game_map.grid.is_valid(self.col, self.row):
            return FailureReason.OUT_OF_BOUNDS
        if unit.position == (self.col, self.row):
            return FailureReason.NO_PATH
        return None

    def perform(self, game_map: "GameMap") -> ActionOutcome:
        return self.get_unit(game_map).set_goto(self.col, self.row, game_map)

    def get_action_data(self) -> Dict[str, Any]:
        data = super().get_action_data()
        data["target"] = (self.col, self.row)
        return data


class AttackUnitAction(UnitAction):
    def __init__(self, civilization_id: int, unit_id: str, target_id: str):
        super().__init__(civilization_id, unit_id, "attack_unit")
        self.target_id = target_id

    def validate_unit(self, unit: "Unit", game_map: "GameMap") -> Optional[FailureReason]:
        target = game_map.get_unit(self.target_id)
        if target is None:
            return FailureReason.UNIT_NOT_FOUND
        return unit.check_attack(target)

    def perform(self, game_map: "GameMap") -> ActionOutcome:
        return self.get_unit(game_map).attack_unit(game_map.get_unit(self.target_id), game_map)

    def get_action_data(self) -> Dict[str, Any]:
        data = super().get_action_data()
        data["target_id"] = self.target_id
        return data


class FoundCityAction(UnitAction):
    def __init__(self, civilization_id: int, unit_id: str, name: Optional[str] = None):
        super().__init__(civilization_id, unit_id, "found_city")
        self.name = name

    def validate_unit(self, unit: "Unit", game_map: "GameMap") -> Optional[FailureReason]:
        return unit.check_settle(game_map)

    def perform(self, game_map: "GameMap") -> ActionOutcome:
        return self.get_unit(game_map).settle(game_map, self.name)


class FortifyUnitAction(UnitAction):
    def __init__(self, civilization_id: int, unit_id: str):
        super().__init__(civilization_id, unit_id, "fortify_unit")

    def validate_unit(self, unit: "Unit", game_map: "GameMap") -> Optional[FailureReason]:
        return FailureReason.ALREADY_MOVED if unit.moved else None

    def perform(self, game_map: "GameMap") -> ActionOutcome:
        return self.get_unit(game_map).fortify(game_map)


class SleepUnitAction(UnitAction):
    def __init__(self, civilization_id: int, unit_id: str):
        super().__init__(civilization_id, unit_id, "sleep_unit")

    def perform(self, game_map: "GameMap") -> ActionOutcome:
        return self.get_unit(game_map).sleep()


class WakeUnitAction(UnitAction):
    def __init__(self, civilization_id: int, unit_id: str):
        super().__init__(civilization_id, unit_id, "wake_unit")

    def perform(self, game_map: "GameMap") -> ActionOutcome:
        return self.get_unit(game_map).wake()


class SkipUnitAction(UnitAction):
    def __init__(self, civilization_id: int, unit_id: str):
        super().__init__(civilization_id, unit_id, "skip_unit")

    def perform(self, game_map: "GameMap") -> ActionOutcome:
        return self.get_unit(game_map).skip()


class BuildImprovementAction(UnitAction):
    """Start terrain work on the unit's tile."""

    def __init__(self, civilization_id: int, unit_id: str, improvement_type):
        super().__init__(civilization_id, unit_id, "build_improvement")
        self.improvement_type = improvement_type

    def _improvement(self) -> Optional[ImprovementType]:
        try:
            return coerce_enum(ImprovementType, self.improvement_type, "improvement")
        except UnknownTypeError:
            return None

    def validate_unit(self, unit: "Unit", game_map: "GameMap") -> Optional[FailureReason]:
        improvement = self._improvement()
        if improvement is None:
            return FailureReason.UNKNOWN_ITEM
        if not unit.can_work:
            return FailureReason.CANNOT_WORK
        return game_map.get_tile(unit.col, unit.row).check_improvement(improvement)

    def perform(self, game_map: "GameMap") -> ActionOutcome:
        return self.get_unit(game_map).start_work(self._improvement(), game_map)

    def get_action_data(self) -> Dict[str, Any]:
        data = super().get_action_data()
        improvement = self._improvement()
        data["improvement"] = improvement.value if improvement else str(self.improvement_type)
        return data

