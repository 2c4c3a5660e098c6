"""Input validation utilities for the Hex Empires engine."""

from typing import Any, List, Tuple, Type, Union

from ..core.exceptions import (
    InvalidInputError, RangeValidationError, TypeValidationError, ConstraintViolationError
)
from ..core.constants import MIN_MAP_SIZE, MAX_MAP_SIZE, MAX_CIVILIZATIONS, CIVILIZATION_TEMPLATES

Number = Union[int, float]


class Validator:
    """Field checks shared by settings, rule tables and entities.

    Each check raises a ValidationError subclass whose context names the
    offending field.
    """

    @staticmethod
    def validate_type(value: Any, expected_type: Type, field_name: str = "value") -> None:
        """``bool`` is rejected where an ``int`` is expected."""
        if isinstance(value, bool) and expected_type is not bool:
            ok = False
        else:
            ok = isinstance(value, expected_type)
        if not ok:
            raise TypeValidationError(
                f"{field_name} expects {expected_type.__name__}, not {type(value).__name__}",
                error_code="TYPE_MISMATCH",
                context={"field": field_name, "expected": expected_type.__name__}
            )

    @staticmethod
    def validate_range(value: Number, min_val: Number, max_val: Number, field_name: str = "value") -> None:
        if value < min_val or value > max_val:
            raise RangeValidationError(
                f"{field_name}={value} outside [{min_val}, {max_val}]",
                error_code="OUT_OF_RANGE",
                context={"field": field_name, "value": value, "min": min_val, "max": max_val}
            )

    @staticmethod
    def validate_positive(value: Number, field_name: str = "value") -> None:
        if value <= 0:
            raise RangeValidationError(f"{field_name}={value} must be above zero", error_code="NOT_POSITIVE",
                                       context={"field": field_name, "value": value})

    @staticmethod
    def validate_non_negative(value: Number, field_name: str = "value") -> None:
        if value < 0:
            raise RangeValidationError(f"{field_name}={value} cannot be negative", error_code="NEGATIVE",
                                       context={"field": field_name, "value": value})

    @staticmethod
    def validate_unique_list(value: List, field_name: str = "list") -> None:
        duplicates = sorted({repr(item) for item in value if value.count(item) > 1})
        if duplicates:
            raise ConstraintViolationError(
                f"{field_name} repeats {', '.join(duplicates)}",
                error_code="DUPLICATE_ITEMS",
                context={"field": field_name, "duplicates": duplicates}
            )


class GameValidator(Validator):
    """Validator for game-specific inputs."""

    @staticmethod
    def validate_map_dimensions(width: int, height: int) -> None:
        """Validate map width and height."""
        GameValidator.validate_type(width, int, "map_width")
        GameValidator.validate_type(height, int, "map_height")
        GameValidator.validate_range(width, MIN_MAP_SIZE, MAX_MAP_SIZE, "map_width")
        GameValidator.validate_range(height, MIN_MAP_SIZE, MAX_MAP_SIZE, "map_height")

    @staticmethod
    def validate_coordinate(col: int, row: int, width: int, height: int) -> None:
        """Validate an offset coordinate against map bounds."""
        GameValidator.validate_type(col, int, "col")
        GameValidator.validate_type(row, int, "row")
        GameValidator.validate_range(col, 0, width - 1, "col")
        GameValidator.validate_range(row, 0, height - 1, "row")

    @staticmethod
    def validate_civilizations(keys: List[str]) -> None:
        """Validate the civilization template keys chosen for a game."""
        GameValidator.validate_range(len(keys), 1, MAX_CIVILIZATIONS, "civilization_count")
        GameValidator.validate_unique_list(keys, "civilizations")
        for key in keys:
            if key not in CIVILIZATION_TEMPLATES:
                raise InvalidInputError(
                    f"Unknown civilization template: {key}",
                    error_code="UNKNOWN_CIVILIZATION",
                    context={"key": key, "valid": sorted(CIVILIZATION_TEMPLATES)}
                )

    @staticmethod
    def validate_probability(value: float, field_name: str = "probability") -> None:
        """Validate a probability in [0, 1]."""
        GameValidator.validate_range(value, 0.0, 1.0, field_name)

    @staticmethod
    def validate_start_positions(positions: List[Tuple[int, int]], width: int, height: int) -> None:
        """Validate explicit start positions."""
        for col, row in positions:
            GameValidator.validate_coordinate(col, row, width, height)
        GameValidator.validate_unique_list([tuple(p) for p in positions], "start_positions")

    @staticmethod
    def validate_personality_trait(value: int, trait: str) -> None:
        """Validate an AI personality trait value."""
        GameValidator.validate_type(value, int, trait)
        GameValidator.validate_range(value, 1, 10, trait)
