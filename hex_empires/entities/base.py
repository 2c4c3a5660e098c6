"""Base entity classes for Hex Empires domain objects."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Tuple
import uuid

from ..utils.validation import Validator


def create_entity_id(prefix: str = "") -> str:
    """Create a unique entity ID with optional prefix."""
    entity_id = uuid.uuid4().hex[:12]
    return f"{prefix}_{entity_id}" if prefix else entity_id


@dataclass(eq=False)
class BaseEntity(ABC):
    """Base class for all game entities with common functionality."""

    id: str = field(default_factory=create_entity_id)

    def __post_init__(self):
        """Post-initialization validation."""
        self.validate()

    @abstractmethod
    def validate(self) -> None:
        """Validate entity state. Must be implemented by subclasses."""
        pass

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """Plain-data representation with a fixed field set."""
        pass

    @classmethod
    def from_dict(cls, data: Dict[str, Any], **kwargs) -> "BaseEntity":
        """Create entity from dictionary representation."""
        raise NotImplementedError("Subclasses must implement from_dict")

    def __eq__(self, other) -> bool:
        """Equality based on ID."""
        if not isinstance(other, BaseEntity):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        """Hash based on ID."""
        return hash(self.id)


@dataclass(eq=False)
class MapEntity(BaseEntity):
    """Base class for civilization-owned entities that sit on one tile."""

    civilization_id: int = 0
    col: int = 0
    row: int = 0

    def validate(self) -> None:
        """Validate ownership and position fields."""
        Validator.validate_type(self.civilization_id, int, "civilization_id")
        Validator.validate_non_negative(self.civilization_id, "civilization_id")
        Validator.validate_type(self.col, int, "col")
        Validator.validate_type(self.row, int, "row")

    @property
    def position(self) -> Tuple[int, int]:
        return (self.col, self.row)

