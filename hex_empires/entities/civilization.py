"""Civilization entity for Hex Empires."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, TYPE_CHECKING
import logging
import random

from ..core.enums import TechCategory
from ..core.exceptions import InvalidCivilizationError
from ..core.constants import INITIAL_GOLD, TECH_COST_PER_KNOWN, STARTING_RESEARCH
from ..data import GameRules, DEFAULT_RULES
from ..game.events import GameEventType
from ..game.technology_manager import TechnologyManager
from ..utils.validation import GameValidator, Validator

if TYPE_CHECKING:
    from ..game.game_map import GameMap
    from .unit import Unit
    from .city import City

PERSONALITY_TRAITS = ("aggression", "expansion", "diplomacy", "science", "military", "economy")

# Trait consulted when the AI weighs a technology of each category
CATEGORY_TRAITS = {
    TechCategory.ECONOMY: "economy",
    TechCategory.CULTURE: "diplomacy",
    TechCategory.SCIENCE: "science",
    TechCategory.MILITARY: "military",
    TechCategory.TRANSPORT: "expansion",
    TechCategory.CONSTRUCTION: "economy",
    TechCategory.EXPLORATION: "expansion",
}


@dataclass
class AIPersonality:
    """Six traits from 1 to 10 that bias AI decisions."""
    aggression: int = 5
    expansion: int = 5
    diplomacy: int = 5
    science: int = 5
    military: int = 5
    economy: int = 5

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        for trait in PERSONALITY_TRAITS:
            GameValidator.validate_personality_trait(getattr(self, trait), trait)

    def trait_for_category(self, category: TechCategory) -> int:
        return getattr(self, CATEGORY_TRAITS[category])

    @classmethod
    def random(cls, rng: random.Random) -> "AIPersonality":
        return cls(**{trait: rng.randint(1, 10) for trait in PERSONALITY_TRAITS})

    def to_dict(self) -> Dict[str, int]:
        return {trait: getattr(self, trait) for trait in PERSONALITY_TRAITS}

    @classmethod
    def from_dict(cls, data: Dict[str, int]) -> "AIPersonality":
        return cls(**{trait: int(data.get(trait, 5)) for trait in PERSONALITY_TRAITS})


@dataclass
class Priorities:
    """Most recent need scores computed by the AI, 0-100."""
    military: int = 0
    expansion: int = 0
    infrastructure: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"military": self.military, "expansion": self.expansion, "infrastructure": self.infrastructure}


@dataclass
class Civilization:
    """A player in the game, human or computer controlled.

    Unit and city membership is derived by the GameMap from its canonical
    unit and city dicts; ``unit_ids`` and ``city_ids`` are refreshed each
    time those change.
    """

    id: int
    name: str
    leader: str = ""
    template: str = ""
    is_human: bool = False
    gold: int = INITIAL_GOLD
    science: int = 0
    research_progress: int = 0
    personality: AIPersonality = field(default_factory=AIPersonality)
    priorities: Priorities = field(default_factory=Priorities)
    at_war_with: Set[int] = field(default_factory=set)
    unit_ids: List[str] = field(default_factory=list)
    city_ids: List[str] = field(default_factory=list)
    capital_id: Optional[str] = None
    alive: bool = True
    city_names: List[str] = field(default_factory=list)
    cities_founded: int = 0
    technology_manager: TechnologyManager = None
    rules: GameRules = field(default=DEFAULT_RULES, repr=False)
    ai: Any = field(default=None, repr=False)

    def __post_init__(self):
        if self.technology_manager is None:
            self.technology_manager = TechnologyManager(self.rules.technologies)
            self.technology_manager.set_researching(STARTING_RESEARCH)
        self.validate()

    def validate(self) -> None:
        Validator.validate_type(self.id, int, "id")
        Validator.validate_non_negative(self.id, "id")
        if not self.name:
            raise InvalidCivilizationError("Civilization needs a name", error_code="MISSING_NAME",
                                           context={"id": self.id})
        Validator.validate_non_negative(self.gold, "gold")
        Validator.validate_non_negative(self.research_progress, "research_progress")

    # Queries
    def has_technology(self, tech_id: str) -> bool:
        return self.technology_manager.is_researched(tech_id)

    def is_at_war_with(self, civilization_id: int) -> bool:
        return civilization_id in self.at_war_with

    def units(self, world: "GameMap") -> List["Unit"]:
        return world.get_units_for(self.id)

    def cities(self, world: "GameMap") -> List["City"]:
        return world.get_cities_for(self.id)

    def military_units(self, world: "GameMap") -> List["Unit"]:
        return [u for u in world.get_units_for(self.id) if u.is_military]

    def strength(self, world: "GameMap") -> int:
        """10 per city, 2 per unit and 3 more per military unit."""
        units = world.get_units_for(self.id)
        military = sum(1 for u in units if u.is_military)
        return 10 * len(world.get_cities_for(self.id)) + 2 * len(units) + 3 * military

    def research_cost(self, tech_id: str) -> int:
        """Base cost plus 2 per technology already known."""
        tech = self.technology_manager.get_technology(tech_id)
        return tech.cost + TECH_COST_PER_KNOWN * len(self.technology_manager.researched)

    def next_city_name(self) -> str:
        if self.cities_founded < len(self.city_names):
            name = self.city_names[self.cities_founded]
        else:
            name = f"{self.name} City {self.cities_founded + 1}"
        self.cities_founded += 1
        return name

    # Diplomacy
    def declare_war(self, other_id: int, world: "GameMap") -> bool:
        """Enter war with another civilization; both sides record it."""
        other = world.get_civilization(other_id)
        if other is None or other_id == self.id or self.is_at_war_with(other_id):
            return False
        self.at_war_with.add(other_id)
        other.at_war_with.add(self.id)
        world.events.publish(GameEventType.WAR_DECLARED, civilization_id=self.id, target_id=other_id)
        logging.info(f"{self.name} declared war on {other.name}")
        return True

    def make_peace(self, other_id: int, world: "GameMap") -> bool:
        other = world.get_civilization(other_id)
        if other is None or not self.is_at_war_with(other_id):
            return False
        self.at_war_with.discard(other_id)
        other.at_war_with.discard(self.id)
        world.events.publish(GameEventType.PEACE_MADE, civilization_id=self.id, target_id=other_id)
        logging.info(f"{self.name} made peace with {other.name}")
        return True

    # Turn processing
    def calculate_resources(self, world: "GameMap") -> None:
        """Collect gold net of building upkeep and total science from all cities."""
        cities = world.get_cities_for(self.id)
        for city in cities:
            city.calculate_yields(world)
        income = sum(city.gold for city in cities)
        upkeep = sum(city.building_maintenance for city in cities)
        self.gold += max(0, income - upkeep)
        self.science = sum(city.science for city in cities)

    def choose_research(self) -> Optional[str]:
        """AI choice when an AI is attached, otherwise the cheapest available technology."""
        if self.ai is not None:
            return self.ai.choose_research(self)
        available = self.technology_manager.get_available()
        if not available:
            return None
        return min(available, key=lambda tech: tech.cost).tech_id

    def process_research(self, world: "GameMap") -> Optional[str]:
        """Add this turn's science; returns the technology discovered, if any."""
        manager = self.technology_manager
        if manager.researching is None:
            manager.set_researching(self.choose_research())
        if manager.researching is None:
            return None

        self.research_progress += self.science
        tech_id = manager.researching
        cost = self.research_cost(tech_id)
        if self.research_progress < cost:
            return None

        manager.research_technology(tech_id)
        self.research_progress = 0
        world.events.publish(GameEventType.TECHNOLOGY_DISCOVERED, civilization_id=self.id, tech_id=tech_id)
        logging.info(f"{self.name} discovered {manager.get_technology(tech_id).name}")
        return tech_id

    def start_turn(self, world: "GameMap") -> None:
        self.calculate_resources(world)
        self.process_research(world)
        if not self.is_human and self.ai is not None:
            self.ai.make_decisions(self, world)
            world.events.publish(GameEventType.AI_FINISHED, civilization_id=self.id)

    def check_defeat(self, world: "GameMap") -> bool:
        """Mark the civilization defeated once it has no units and no cities."""
        if not self.alive:
            return True
        if world.get_units_for(self.id) or world.get_cities_for(self.id):
            return False
        self.alive = False
        self.at_war_with.clear()
        world.events.publish(GameEventType.CIVILIZATION_DEFEATED, civilization_id=self.id)
        logging.info(f"{self.name} has been defeated")
        return True

    # Serialization
    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "leader": self.leader,
            "template": self.template,
            "is_human": self.is_human,
            "gold": self.gold,
            "science": self.science,
            "research_progress": self.research_progress,
            "personality": self.personality.to_dict(),
            "priorities": self.priorities.to_dict(),
            "at_war_with": sorted(self.at_war_with),
            "capital_id": self.capital_id,
            "alive": self.alive,
            "city_names": list(self.city_names),
            "cities_founded": self.cities_founded,
            "technologies": self.technology_manager.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], rules: GameRules = DEFAULT_RULES) -> "Civilization":
        manager = TechnologyManager(rules.technologies)
        manager.load_dict(data.get("technologies", {}))
        return cls(
            id=int(data["id"]),
            name=data["name"],
            leader=data.get("leader", ""),
            template=data.get("template", ""),
            is_human=bool(data.get("is_human", False)),
            gold=int(data.get("gold", INITIAL_GOLD)),
            science=int(data.get("science", 0)),
            research_progress=int(data.get("research_progress", 0)),
            personality=AIPersonality.from_dict(data.get("personality", {})),
            priorities=Priorities(**data.get("priorities", {})),
            at_war_with=set(data.get("at_war_with", [])),
            capital_id=data.get("capital_id"),
            alive=bool(data.get("alive", True)),
            city_names=list(data.get("city_names", [])),
            cities_founded=int(data.get("cities_founded", 0)),
            technology_manager=manager,
            rules=rules,
        )

    def __str__(self) -> str:
        kind = "human" if self.is_human else "AI"
        return f"{self.name} ({kind}, id {self.id})"
