"""Input checks that run before any derivation.

Errors are accumulated inside each tier; the conflict tier only runs once every
required field is usable, so formulas never see a missing or non-positive base.
"""
import logging
import math
from typing import Any, List, Optional

from position_calculator.core.logging import get_logger, log_event
from position_calculator.risk.errors import ErrorKind
from position_calculator.risk.models import CalculatorInputs, PositionType, ValidationIssue, ValidationResult

logger = get_logger(__name__)

REQUIRED_FIELDS = (
    ("account_size", "Account Size"),
    ("leverage", "Leverage"),
    ("entry_price", "Entry Price"),
)

OPTIONAL_FIELDS = (
    ("stop_loss_price", "Stop Loss Price"),
    ("risk_usd", "Risk USD"),
    ("take_profit_price", "Take Profit Price"),
    ("target_profit_usd", "Target Profit USD"),
    ("position_size", "Position Size"),
)

# Prices that may not coincide with the entry price.
CONFLICT_FIELDS = (
    ("stop_loss_price", "Stop Loss Price"),
    ("take_profit_price", "Take Profit Price"),
)


def is_finite_number(value: Any) -> bool:
    """Real ints and floats only; bools, strings and NaN/inf are not numbers here."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # ints too large for a float
        return False


def is_positive_number(value: Any) -> bool:
    return is_finite_number(value) and value > 0


def _invalid(field: str, label: str) -> ValidationIssue:
    return ValidationIssue(
        code=ErrorKind.MISSING_OR_INVALID_FIELD.value,
        field=field,
        message=f"{label} must be positive",
    )


def _check_required(inputs: CalculatorInputs) -> List[ValidationIssue]:
    return [
        _invalid(name, label)
        for name, label in REQUIRED_FIELDS
        if not is_positive_number(getattr(inputs, name))
    ]


def _check_position_type(value: Optional[Any]) -> List[ValidationIssue]:
    try:
        PositionType.parse(value)
    except ValueError:
        return [
            ValidationIssue(
                code=ErrorKind.MISSING_OR_INVALID_FIELD.value,
                field="position_type",
                message="Position Type must be long or short",
            )
        ]
    return []


def _check_conflicts(inputs: CalculatorInputs) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    for name, label in OPTIONAL_FIELDS:
        value = getattr(inputs, name)
        if value is not None and not is_positive_number(value):
            issues.append(_invalid(name, label))

    entry_price = float(inputs.entry_price)
    for name, label in CONFLICT_FIELDS:
        value = getattr(inputs, name)
        if value is None or not is_positive_number(value):
            continue
        if float(value) == entry_price:
            issues.append(
                ValidationIssue(
                    code=ErrorKind.CONFLICTING_INPUT.value,
                    field=name,
                    message=f"{label} cannot equal Entry Price",
                )
            )
    return issues


def validate(inputs: CalculatorInputs) -> ValidationResult:
    """Return every applicable error for ``inputs``; ``ok`` only when there are none."""
    issues = _check_required(inputs)
    if issues:
        log_event(
            logger,
            logging.INFO,
            "inputs_rejected",
            tier="required",
            errors=[issue.message for issue in issues],
        )
        return ValidationResult(errors=tuple(issues))

    issues = _check_position_type(inputs.position_type) + _check_conflicts(inputs)
    if issues:
        log_event(
            logger,
            logging.INFO,
            "inputs_rejected",
            tier="conflict",
            errors=[issue.message for issue in issues],
        )
    return ValidationResult(errors=tuple(issues))
