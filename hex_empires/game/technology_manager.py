"""Per-civilization technology research state over the shared technology table."""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Set
import logging

from ..core.enums import Era
from ..core.exceptions import TechnologyError
from ..core.constants import STARTING_TECHNOLOGIES
from ..data import DEFAULT_RULES, TechnologyData


class TechnologyManager:
    """Tracks which technologies one civilization has and is researching.

    The technology table is shared and read-only; only the researched set
    and the current research target belong to this manager.
    """

    def __init__(self, technologies: Optional[Mapping[str, TechnologyData]] = None,
                 starting_technologies: Iterable[str] = STARTING_TECHNOLOGIES):
        self.technologies = technologies if technologies is not None else DEFAULT_RULES.technologies
        self.starting_technologies = tuple(t for t in starting_technologies if t in self.technologies)
        self.researched: Set[str] = set()
        self.researching: Optional[str] = None
        self._depth_cache: Dict[str, int] = {}
        self.reset()

    def reset(self) -> None:
        """Back to only the starting technologies, researched without prerequisite checks."""
        self.researched = set(self.starting_technologies)
        self.researching = None

    # Queries
    def get_technology(self, tech_id: str) -> Optional[TechnologyData]:
        return self.technologies.get(tech_id)

    def is_researched(self, tech_id: str) -> bool:
        return tech_id in self.researched

    def can_research_technology(self, tech_id: str) -> bool:
        """Known, not yet researched, and every prerequisite researched."""
        tech = self.technologies.get(tech_id)
        if tech is None or tech_id in self.researched:
            return False
        return all(prereq in self.researched for prereq in tech.prerequisites)

    def get_available(self) -> List[TechnologyData]:
        """Technologies that can be researched right now, in table order."""
        return [tech for tech_id, tech in self.technologies.items() if self.can_research_technology(tech_id)]

    def get_researched(self) -> List[TechnologyData]:
        return [tech for tech_id, tech in self.technologies.items() if tech_id in self.researched]

    def get_future(self) -> List[TechnologyData]:
        """Technologies still locked behind missing prerequisites."""
        return [tech for tech_id, tech in self.technologies.items()
                if tech_id not in self.researched and not self.can_research_technology(tech_id)]

    def get_current_research(self) -> Optional[TechnologyData]:
        return self.technologies.get(self.researching) if self.researching else None

    def get_children(self, tech_id: str) -> List[str]:
        """Technologies that list ``tech_id`` as a prerequisite."""
        return [other.tech_id for other in self.technologies.values() if tech_id in other.prerequisites]

    def get_prerequisite_depth(self, tech_id: str) -> int:
        """Longest prerequisite chain below a technology (memoised DFS)."""
        return self._depth(tech_id, set())

    def _depth(self, tech_id: str, visiting: Set[str]) -> int:
        if tech_id in self._depth_cache:
            return self._depth_cache[tech_id]
        tech = self.technologies.get(tech_id)
        if tech is None:
            raise TechnologyError(f"Unknown technology: {tech_id}", error_code="UNKNOWN_TECHNOLOGY",
                                  context={"tech_id": tech_id})
        if tech_id in visiting:
            raise TechnologyError(f"Prerequisite cycle through {tech_id}", error_code="PREREQUISITE_CYCLE",
                                  context={"tech_id": tech_id})
        visiting.add(tech_id)
        depth = 0
        if tech.prerequisites:
            depth = max(self._depth(prereq, visiting) for prereq in tech.prerequisites) + 1
        visiting.discard(tech_id)
        self._depth_cache[tech_id] = depth
        return depth

    def get_era(self, tech_id: str) -> Era:
        """Era from prerequisite depth: 0 ancient, 1 classical, 2 medieval, deeper renaissance."""
        return Era(min(self.get_prerequisite_depth(tech_id), Era.RENAISSANCE))

    def get_technologies_by_era(self) -> Dict[Era, List[str]]:
        eras: Dict[Era, List[str]] = {}
        for tech_id in self.technologies:
            eras.setdefault(self.get_era(tech_id), []).append(tech_id)
        return eras

    def completion_percentage(self) -> float:
        total = len(self.technologies)
        return (len(self.researched) / total) * 100 if total else 0.0

    def total_science_invested(self) -> int:
        """Sum of base costs of everything researched."""
        return sum(self.technologies[t].cost for t in self.researched)

    # Mutations
    def set_researching(self, tech_id: Optional[str]) -> bool:
        """Make ``tech_id`` the only technology being researched; None clears it."""
        if tech_id is None:
            self.researching = None
            return True
        if not self.can_research_technology(tech_id):
            return False
        self.researching = tech_id
        return True

    def research_technology(self, tech_id: str) -> bool:
        """Mark a researchable technology as researched; returns False otherwise."""
        if not self.can_research_technology(tech_id):
            return False
        self.researched.add(tech_id)
        if self.researching == tech_id:
            self.researching = None
        logging.debug(f"Technology researched: {tech_id}")
        return True

    # Serialization
    def to_dict(self) -> Dict[str, Any]:
        return {
            "researched": sorted(self.researched),
            "researching": self.researching,
        }

    def load_dict(self, data: Dict[str, Any]) -> None:
        """Restore researched set and current research from ``to_dict`` output."""
        unknown = [t for t in data.get("researched", []) if t not in self.technologies]
        if unknown:
            raise TechnologyError("Serialized state references unknown technologies",
                                  error_code="UNKNOWN_TECHNOLOGY", context={"unknown": unknown})
        self.researched = set(data.get("researched", []))
        self.researching = data.get("researching")
