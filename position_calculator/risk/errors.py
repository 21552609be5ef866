from enum import Enum


class ErrorKind(str, Enum):
    MISSING_OR_INVALID_FIELD = "missing_or_invalid_field"
    CONFLICTING_INPUT = "conflicting_input"
    DIVISION_BY_ZERO = "division_by_zero"
    INVALID_ARGUMENT = "invalid_argument"


class PositionCalculatorError(ValueError):
    """Raised when a derivation cannot produce a finite, meaningful result."""

    kind: ErrorKind = ErrorKind.INVALID_ARGUMENT


class InvalidArgumentError(PositionCalculatorError):
    """An input makes a formula undefined (zero size, non-positive price, ...)."""

    kind = ErrorKind.INVALID_ARGUMENT


class DegenerateDistanceError(PositionCalculatorError, ZeroDivisionError):
    """Stop-loss distance is zero, so risk cannot be converted into a size."""

    kind = ErrorKind.DIVISION_BY_ZERO
