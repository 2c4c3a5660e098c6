"""City and research commands."""

from typing import Any, Dict, Optional, TYPE_CHECKING
import logging

from .base_action import BaseAction, ActionOutcome
from ..core.enums import FailureReason
from ..core.exceptions import UnknownTypeError
from ..entities.city import ProductionItem

if TYPE_CHECKING:
    from ..game.game_map import GameMap
    from ..entities.city import City


class CityAction(BaseAction):
    """Base for commands issued to one city of the acting civilization."""

    def __init__(self, civilization_id: int, city_id: str, action_type: str):
        super().__init__(civilization_id, action_type)
        self.city_id = city_id

    def get_city(self, game_map: "GameMap") -> Optional["City"]:
        return game_map.get_city(self.city_id)

    def validate(self, game_map: "GameMap") -> Optional[FailureReason]:
        reason = self.check_common(game_map)
        if reason is not None:
            return reason
        city = self.get_city(game_map)
        if city is None:
            return FailureReason.CITY_NOT_FOUND
        if city.civilization_id != self.civilization_id:
            return FailureReason.NOT_ACTIVE_CIVILIZATION
        return self.validate_city(city, game_map)

    def validate_city(self, city: "City", game_map: "GameMap") -> Optional[FailureReason]:
        return None

    def get_action_data(self) -> Dict[str, Any]:
        data = super().get_action_data()
        data["city_id"] = self.city_id
        return data


def parse_item(value) -> Optional[ProductionItem]:
    try:
        return ProductionItem.parse(value)
    except UnknownTypeError:
        return None


class SetProductionAction(CityAction):
    """Replace current production, or append to the queue when ``enqueue`` is set."""

    def __init__(self, civilization_id: int, city_id: str, item, enqueue: bool = False):
        super().__init__(civilization_id, city_id, "set_city_production")
        self.item = parse_item(item)
        self.raw_item = item
        self.enqueue = enqueue

    def validate_city(self, city: "City", game_map: "GameMap") -> Optional[FailureReason]:
        if self.item is None:
            return FailureReason.UNKNOWN_ITEM
        return city.can_build(self.item, game_map.get_civilization(self.civilization_id), game_map)

    def perform(self, game_map: "GameMap") -> ActionOutcome:
        city = self.get_city(game_map)
        if self.enqueue:
            city.queue_production(self.item)
            message = f"Queued {self.item.name(city.rules)} in {city.name}"
        else:
            city.set_production(self.item)
            message = f"{city.name} now building {self.item.name(city.rules)}"
        logging.debug(message)
        return ActionOutcome.ok(message, {
            "current_production": str(city.current_production) if city.current_production else None,
            "queue": [str(item) for item in city.build_queue],
        })

    def get_action_data(self) -> Dict[str, Any]:
        data = super().get_action_data()
        data.update({"item": str(self.item or self.raw_item), "enqueue": self.enqueue})
        return data


class RemoveQueueItemAction(CityAction):
    def __init__(self, civilization_id: int, city_id: str, index: int):
        super().__init__(civilization_id, city_id, "remove_city_queue_item")
        self.index = index

    def validate_city(self, city: "City", game_map: "GameMap") -> Optional[FailureReason]:
        if not isinstance(self.index, int) or not 0 <= self.index < len(city.build_queue):
            return FailureReason.INVALID_INDEX
        return None

    def perform(self, game_map: "GameMap") -> ActionOutcome:
        return self.get_city(game_map).remove_queue_item(self.index)


class PurchaseProductionAction(CityAction):
    """Buy an item outright; it is delivered when the city is next processed."""

    def __init__(self, civilization_id: int, city_id: str, item):
        super().__init__(civilization_id, city_id, "purchase_city_production")
        self.item = parse_item(item)
        self.raw_item = item

    def validate_city(self, city: "City", game_map: "GameMap") -> Optional[FailureReason]:
        if self.item is None:
            return FailureReason.UNKNOWN_ITEM
        return None

    def perform(self, game_map: "GameMap") -> ActionOutcome:
        city = self.get_city(game_map)
        return city.purchase(self.item, game_map.get_civilization(self.civilization_id), game_map)

    def get_action_data(self) -> Dict[str, Any]:
        data = super().get_action_data()
        data["item"] = str(self.item or self.raw_item)
        return data


class SetAutoProductionAction(CityAction):
    """Let the city pick its own production whenever it runs out of work."""

    def __init__(self, civilization_id: int, city_id: str, enabled: bool = True):
        super().__init__(civilization_id, city_id, "set_city_auto_production")
        self.enabled = enabled

    def perform(self, game_map: "GameMap") -> ActionOutcome:
        city = self.get_city(game_map)
        city.auto_production = bool(self.enabled)
        if city.auto_production:
            game_map.apply_auto_production(city)
        state = "enabled" if city.auto_production else "disabled"
        logging.debug(f"{city.name} auto production {state}")
        return ActionOutcome.ok(f"Auto production {state} in {city.name}", {
            "auto_production": city.auto_production,
            "current_production": str(city.current_production) if city.current_production else None,
        })

    def get_action_data(self) -> Dict[str, Any]:
        data = super().get_action_data()
        data["enabled"] = bool(self.enabled)
        return data


class SetResearchAction(BaseAction):
    def __init__(self, civilization_id: int, tech_id: str):
        super().__init__(civilization_id, "set_research")
        self.tech_id = tech_id

    def validate(self, game_map: "GameMap") -> Optional[FailureReason]:
        reason = self.check_common(game_map)
        if reason is not None:
            return reason
        manager = game_map.get_civilization(self.civilization_id).technology_manager
        if manager.get_technology(self.tech_id) is None:
            return FailureReason.TECHNOLOGY_NOT_FOUND
        if manager.is_researched(self.tech_id):
            return FailureReason.ALREADY_RESEARCHED
        if not manager.can_research_technology(self.tech_id):
            return FailureReason.MISSING_PREREQUISITE
        return None

    def perform(self, game_map: "GameMap") -> ActionOutcome:
        civilization = game_map.get_civilization(self.civilization_id)
        civilization.technology_manager.set_researching(self.tech_id)
        cost = civilization.research_cost(self.tech_id)
        logging.debug(f"{civilization.name} researching {self.tech_id}")
        return ActionOutcome.ok(f"Researching {self.tech_id}", {
            "tech_id": self.tech_id,
            "cost": cost,
            "progress": civilization.research_progress,
        })

    def get_action_data(self) -> Dict[str, Any]:
        data = super().get_action_data()
        data["tech_id"] = self.tech_id
        return data
