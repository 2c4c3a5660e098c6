"""Turn management and civilization rotation for Hex Empires."""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, TYPE_CHECKING
import logging

from ..core.exceptions import GameStateError, GameOverError
from ..core.constants import STARTING_YEAR, YEARS_PER_TURN
from .events import GameEventType

if TYPE_CHECKING:
    from .game_map import GameMap
    from ..entities.civilization import Civilization


@dataclass
class TurnStep:
    """One stage of ``next_turn``, run in registration order."""

    name: str
    description: str
    process_func: Callable[["GameMap"], None]

    def process(self, world: "GameMap") -> None:
        try:
            self.process_func(world)
        except GameStateError:
            raise
        except Exception as e:
            logging.error(f"Error processing turn step {self.name}: {str(e)}")
            raise GameStateError(f"Failed to process turn step {self.name}: {str(e)}",
                                 error_code="TURN_STEP_FAILED",
                                 context={"step": self.name, "turn": world.turn}) from e


class TurnManager:
    """Moves the game from one civilization's turn to the next.

    Exactly one civilization is active at a time. When the rotation wraps
    past the last living civilization the game turn advances and every
    city is processed.
    """

    def __init__(self, world: "GameMap"):
        self.world = world
        self.steps: List[TurnStep] = []
        self.turn_callbacks: List[Callable[["GameMap"], None]] = []
        self.wrapped = False
        self._setup_default_steps()

    def _setup_default_steps(self) -> None:
        self.register_step(TurnStep("end_turn", "Close the active civilization's turn", self._end_active_turn))
        self.register_step(TurnStep("advance", "Rotate to the next living civilization", self._advance_civilization))
        self.register_step(TurnStep("start_turn", "Reset units and run the civilization's turn start",
                                    self._start_active_turn))
        self.register_step(TurnStep("victory", "Check defeat and victory", self._check_victory))
        self.register_step(TurnStep("auto_end", "Offer to end a finished human turn", self._check_auto_end))

    def register_step(self, step: TurnStep) -> None:
        self.steps.append(step)

    def register_turn_callback(self, callback: Callable[["GameMap"], None]) -> None:
        """Register a callback run after every ``next_turn``."""
        self.turn_callbacks.append(callback)

    # Public API
    def next_turn(self) -> Dict[str, Any]:
        """End the active civilization's turn and start the next one."""
        world = self.world
        if world.game_over:
            raise GameOverError("The game is over", error_code="GAME_OVER",
                                context={"turn": world.turn, "winner_id": world.winner_id})
        self.wrapped = False
        for step in self.steps:
            if world.game_over and step.name != "victory":
                continue
            step.process(world)

        for callback in self.turn_callbacks:
            try:
                callback(world)
            except Exception as e:
                logging.warning(f"Turn callback error: {str(e)}")

        return {
            "turn": world.turn,
            "year": world.year,
            "active_civilization_id": world.active_civilization_id,
            "new_game_turn": self.wrapped,
            "game_over": world.game_over,
        }

    def process_turn(self) -> Dict[str, Any]:
        """Advance until a human civilization is active or the game ends.

        Bounded by one full rotation, so games without a human player
        advance exactly one round per call.
        """
        world = self.world
        summary = None
        for _ in range(max(1, len(world.civilization_order))):
            summary = self.next_turn()
            if world.game_over:
                break
            active = world.active_civilization
            if active is not None and active.is_human:
                break
        return summary

    def begin_civilization_turn(self, civilization: "Civilization") -> None:
        """Reset units, refresh the view, fill idle auto-production cities, then run the turn start."""
        world = self.world
        for unit in list(world.get_units_for(civilization.id)):
            unit.start_turn(world)
        world.update_visibility(civilization.id)
        for city in world.get_cities_for(civilization.id):
            world.apply_auto_production(city)
        civilization.start_turn(world)

    # Steps
    def _end_active_turn(self, world: "GameMap") -> None:
        active = world.active_civilization
        if active is not None:
            logging.debug(f"{active.name} ended turn {world.turn}")

    def _advance_civilization(self, world: "GameMap") -> None:
        order = world.civilization_order
        if not order:
            raise GameStateError("No civilizations in play", error_code="NO_CIVILIZATIONS")

        current = order.index(world.active_civilization_id) if world.active_civilization_id in order else -1
        for offset in range(1, len(order) + 1):
            index = (current + offset) % len(order)
            if index <= current:
                self.wrapped = True
            if world.get_civilization(order[index]).alive:
                break
        else:
            raise GameStateError("No living civilization to take a turn", error_code="NO_LIVING_CIVILIZATIONS")

        if self.wrapped:
            self._advance_game_turn(world)
        world.active_civilization_id = order[index]

    def _advance_game_turn(self, world: "GameMap") -> None:
        world.turn += 1
        world.year = STARTING_YEAR + (world.turn - 1) * YEARS_PER_TURN
        reports = []
        for city in list(world.get_all_cities()):
            if world.get_city(city.id) is not None:
                reports.append(city.process_turn(world))
        world.events.publish(GameEventType.TURN_PROCESSED, turn=world.turn, year=world.year,
                             cities_processed=len(reports))
        logging.info(f"Turn {world.turn} ({world.format_year()}): processed {len(reports)} cities")

    def _start_active_turn(self, world: "GameMap") -> None:
        self.begin_civilization_turn(world.active_civilization)

    def _check_victory(self, world: "GameMap") -> None:
        for civilization in world.get_civilizations():
            civilization.check_defeat(world)
        if world.game_over:
            return
        alive = [c for c in world.get_civilizations() if c.alive]
        if not alive or (len(world.civilization_order) > 1 and len(alive) <= 1):
            world.end_game(alive[0].id if alive else None)

    def _check_auto_end(self, world: "GameMap") -> None:
        active = world.active_civilization
        if active is not None and active.is_human:
            self.check_auto_end(active)

    def check_auto_end(self, civilization: "Civilization") -> Optional[GameEventType]:
        """Publish an end-of-turn event once no unit of the civilization needs orders."""
        world = self.world
        if any(unit.needs_orders() for unit in world.get_units_for(civilization.id)):
            return None
        event_type = (GameEventType.AUTO_END_TURN if world.settings.auto_end_turn
                      else GameEventType.TURN_END_CONFIRMATION_NEEDED)
        world.events.publish(event_type, civilization_id=civilization.id, turn=world.turn)
        return event_type
