"""Synchronous game event stream."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
import logging


class GameEventType(Enum):
    """Every event the engine publishes."""
    NEW_GAME = "new_game"
    UNIT_MOVED = "unit_moved"
    COMBAT_VICTORY = "combat_victory"
    COMBAT_DEFEAT = "combat_defeat"
    CITY_FOUNDED = "city_founded"
    TURN_PROCESSED = "turn_processed"
    AI_FINISHED = "ai_finished"
    AUTO_END_TURN = "auto_end_turn"
    TURN_END_CONFIRMATION_NEEDED = "turn_end_confirmation_needed"
    UNIT_CREATED = "unit_created"
    UNIT_DISBANDED = "unit_disbanded"
    UNIT_FORTIFIED = "unit_fortified"
    CITY_GREW = "city_grew"
    CITY_STARVED = "city_starved"
    CITY_DISORDER = "city_disorder"
    CITY_CAPTURED = "city_captured"
    PRODUCTION_COMPLETED = "production_completed"
    IMPROVEMENT_COMPLETED = "improvement_completed"
    TECHNOLOGY_DISCOVERED = "technology_discovered"
    WAR_DECLARED = "war_declared"
    PEACE_MADE = "peace_made"
    CIVILIZATION_DEFEATED = "civilization_defeated"
    GAME_OVER = "game_over"


@dataclass
class GameEvent:
    """A published event and its payload."""
    event_type: GameEventType
    payload: Dict[str, Any] = field(default_factory=dict)

    def __getitem__(self, key: str) -> Any:
        return self.payload[key]

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.event_type.value, "payload": self.payload}


EventCallback = Callable[[GameEvent], None]


class EventBus:
    """Publish/subscribe hub handed to the map and entities.

    Listeners run in subscription order before ``publish`` returns. A
    listener registered without an event type receives every event.
    """

    def __init__(self):
        self._listeners: Dict[Optional[GameEventType], List[EventCallback]] = {}

    def subscribe(self, callback: EventCallback, event_type: Optional[GameEventType] = None) -> None:
        """Register a callback for one event type, or for all of them."""
        if event_type not in self._listeners:
            self._listeners[event_type] = []
        self._listeners[event_type].append(callback)

    def unsubscribe(self, callback: EventCallback, event_type: Optional[GameEventType] = None) -> bool:
        """Remove a callback; returns False when it was not registered."""
        callbacks = self._listeners.get(event_type, [])
        if callback in callbacks:
            callbacks.remove(callback)
            return True
        return False

    def publish(self, event_type: GameEventType, **payload) -> GameEvent:
        """Deliver an event to typed listeners, then to catch-all listeners."""
        event = GameEvent(event_type, payload)
        callbacks = list(self._listeners.get(event_type, [])) + list(self._listeners.get(None, []))
        for callback in callbacks:
            try:
                callback(event)
            except Exception as e:
                logging.warning(f"Event listener error for {event_type.value}: {str(e)}")
        return event

    def listener_count(self, event_type: Optional[GameEventType] = None) -> int:
        return len(self._listeners.get(event_type, []))


class EventRecorder:
    """Catch-all listener that keeps published events in order."""

    def __init__(self, bus: Optional[EventBus] = None):
        self.events: List[GameEvent] = []
        if bus is not None:
            bus.subscribe(self)

    def __call__(self, event: GameEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: GameEventType) -> List[GameEvent]:
        return [e for e in self.events if e.event_type == event_type]

    def clear(self) -> None:
        self.events.clear()
