"""Custom exceptions for the Hex Empires engine."""


class HexEmpiresError(Exception):
    """Root of every error raised by hex_empires; carries a code and context."""

    def __init__(self, message: str, error_code: str = None, context: dict = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}

    def __str__(self):
        base_msg = self.message
        if self.error_code:
            base_msg = f"[{self.error_code}] {base_msg}"
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg = f"{base_msg} (Context: {context_str})"
        return base_msg


# Game State Exceptions
class GameStateError(HexEmpiresError):
    """Turn orchestration or saved state is inconsistent."""
    pass


class InvalidGameStateError(GameStateError):
    """Setup or settings make the game unplayable."""
    pass


class GameOverError(GameStateError):
    """Attempted turn processing on a game that has already ended."""
    pass


class SerializationError(GameStateError):
    """Serialized state could not be reconstructed."""
    pass


# Civilization Exceptions
class CivilizationError(HexEmpiresError):
    """Errors related to civilization operations."""
    pass


class InvalidCivilizationError(CivilizationError):
    """Unknown civilization id or template."""
    pass


class TechnologyError(CivilizationError):
    """Errors in the technology graph."""
    pass


# Entity Exceptions
class EntityError(HexEmpiresError):
    """Errors related to units, cities and tiles."""
    pass


class CombatError(EntityError):
    """Combat cannot be resolved with the given participants."""
    pass


# Map Exceptions
class MapError(HexEmpiresError):
    """Errors related to the hex grid."""
    pass


class InvalidHexError(MapError):
    """Coordinate outside the grid."""
    pass


class MapGenerationError(MapError):
    """Terrain generation failed."""
    pass


# Data Exceptions
class DataError(HexEmpiresError):
    """Static rule table is malformed."""
    pass


class UnknownTypeError(DataError):
    """Type key has no entry in the rule tables."""
    pass


# Validation Exceptions
class ValidationError(HexEmpiresError):
    """A field failed a Validator check."""
    pass


class InvalidInputError(ValidationError):
    """Unknown key or malformed value."""
    pass


class RangeValidationError(ValidationError):
    """Number outside its allowed bounds."""
    pass


class TypeValidationError(ValidationError):
    """Field holds the wrong Python type."""
    pass


class ConstraintViolationError(ValidationError):
    """Collection breaks a uniqueness rule."""
    pass


def raise_if_out_of_bounds(col: int, row: int, width: int, height: int):
    """Raise InvalidHexError if the coordinate is outside the grid."""
    if not (0 <= col < width and 0 <= row < height):
        raise InvalidHexError(
            f"Coordinate ({col}, {row}) is outside the map",
            error_code="OUT_OF_BOUNDS",
            context={"col": col, "row": row, "width": width, "height": height}
        )


def raise_if_unknown_type(key, table, table_name: str):
    """Raise UnknownTypeError if key is missing from a rule table."""
    if key not in table:
        raise UnknownTypeError(
            f"Unknown {table_name} type: {key}",
            error_code="UNKNOWN_TYPE",
            context={"table": table_name, "key": key}
        )


def coerce_enum(enum_class, value, table_name: str = None):
    """Convert a raw value (or member) into enum_class, raising UnknownTypeError."""
    if isinstance(value, enum_class):
        return value
    try:
        return enum_class(value)
    except ValueError:
        raise UnknownTypeError(
            f"Unknown {table_name or enum_class.__name__} type: {value}",
            error_code="UNKNOWN_TYPE",
            context={"table": table_name or enum_class.__name__, "key": value}
        )
