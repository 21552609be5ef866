"""Leveraged position sizing: pure formulas plus the rules that pick between them.

Position size, stop-loss and take-profit each resolve through an ordered tuple of
named rules. A rule returns ``None`` when it does not apply; the first value wins
and the last rule of every tuple always applies.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from position_calculator.core.config import DEFAULT_PRICE_OFFSET_PCT
from position_calculator.core.logging import get_logger, log_event
from position_calculator.risk.errors import (
    DegenerateDistanceError,
    InvalidArgumentError,
    PositionCalculatorError,
)
from position_calculator.risk.models import (
    CalculationOutcome,
    CalculationResult,
    CalculatorInputs,
    PositionType,
)
from position_calculator.risk.validator import is_finite_number, is_positive_number, validate


logger = get_logger(__name__)


def calculate_max_position_size(account_size: float, leverage: float, entry_price: float) -> float:
    """maxPositionSize = accountSize * leverage / entryPrice"""
    if entry_price <= 0:
        raise InvalidArgumentError("Entry Price must be positive")
    return (account_size * leverage) / entry_price


def calculate_position_size_from_risk(risk_usd: float, entry_price: float, stop_loss_price: float) -> float:
    """Size that loses exactly ``risk_usd`` if the stop is hit."""
    sl_distance = abs(entry_price - stop_loss_price)
    if sl_distance == 0:
        raise DegenerateDistanceError("Stop Loss Price cannot equal Entry Price")
    return risk_usd / sl_distance


def calculate_stop_loss_price(
    entry_price: float, risk_usd: float, position_size: float, position_type: PositionType
) -> float:
    """Stop placed ``risk_usd / position_size`` against the position."""
    if position_size == 0:
        raise InvalidArgumentError("Position Size cannot be zero")
    sl_distance = risk_usd / position_size
    return entry_price - position_type.sign * sl_distance


def calculate_take_profit_price(
    entry_price: float, target_profit_usd: float, position_size: float, position_type: PositionType
) -> float:
    """Target placed ``target_profit_usd / position_size`` in favour of the position."""
    if position_size == 0:
        raise InvalidArgumentError("Position Size cannot be zero")
    tp_distance = target_profit_usd / position_size
    return entry_price + position_type.sign * tp_distance


def calculate_liquidation_price(entry_price: float, leverage: float, position_type: PositionType) -> float:
    """Simplified liquidation: the full margin is gone. Ignores maintenance margin and fees."""
    if leverage <= 0:
        raise InvalidArgumentError("Leverage must be positive")
    liquidation_distance = entry_price / leverage
    return entry_price - position_type.sign * liquidation_distance


def calculate_risk_profit(
    entry_price: float, stop_loss_price: float, take_profit_price: float, position_size: float
) -> Tuple[float, float]:
    risk_amount = abs(entry_price - stop_loss_price) * position_size
    profit_amount = abs(take_profit_price - entry_price) * position_size
    return risk_amount, profit_amount


def calculate_risk_reward_ratio(risk_amount: float, profit_amount: float) -> float:
    """profit / risk to two decimals; 0 when there is no risk."""
    if risk_amount <= 0:
        return 0.0
    ratio = profit_amount / risk_amount
    if not math.isfinite(ratio):
        raise InvalidArgumentError("Risk/reward ratio overflows the numeric range")
    return round(ratio, 2)


@dataclass
class _Resolution:
    """Working values for one derivation; never shared between calls."""

    inputs: CalculatorInputs
    position_type: PositionType
    entry_price: float
    max_position_size: float
    price_offset_pct: float
    position_size: Optional[float] = None


Rule = Callable[[_Resolution], Optional[float]]


def _supplied_position_size(state: _Resolution) -> Optional[float]:
    return state.inputs.position_size


def _position_size_from_risk(state: _Resolution) -> Optional[float]:
    inputs = state.inputs
    if inputs.risk_usd is None or inputs.stop_loss_price is None:
        return None
    return calculate_position_size_from_risk(inputs.risk_usd, state.entry_price, inputs.stop_loss_price)


def _max_position_size(state: _Resolution) -> Optional[float]:
    return state.max_position_size


def _supplied_stop_loss(state: _Resolution) -> Optional[float]:
    return state.inputs.stop_loss_price


def _stop_loss_from_risk(state: _Resolution) -> Optional[float]:
    if state.inputs.risk_usd is None:
        return None
    price = calculate_stop_loss_price(
        state.entry_price, state.inputs.risk_usd, state.position_size, state.position_type
    )
    if price <= 0:
        raise InvalidArgumentError("Derived Stop Loss Price must be positive; reduce Risk USD or increase Position Size")
    return price


def _default_stop_loss(state: _Resolution) -> Optional[float]:
    return state.entry_price * (1 - state.position_type.sign * state.price_offset_pct)


def _supplied_take_profit(state: _Resolution) -> Optional[float]:
    return state.inputs.take_profit_price


def _take_profit_from_target(state: _Resolution) -> Optional[float]:
    if state.inputs.target_profit_usd is None:
        return None
    price = calculate_take_profit_price(
        state.entry_price, state.inputs.target_profit_usd, state.position_size, state.position_type
    )
    if price <= 0:
        raise InvalidArgumentError(
            "Derived Take Profit Price must be positive; reduce Target Profit USD or increase Position Size"
        )
    return price


def _default_take_profit(state: _Resolution) -> Optional[float]:
    return state.entry_price * (1 + state.position_type.sign * state.price_offset_pct)


POSITION_SIZE_RULES: Tuple[Tuple[str, Rule], ...] = (
    ("supplied", _supplied_position_size),
    ("risk_and_stop", _position_size_from_risk),
    ("max_position", _max_position_size),
)

STOP_LOSS_RULES: Tuple[Tuple[str, Rule], ...] = (
    ("supplied", _supplied_stop_loss),
    ("risk_usd", _stop_loss_from_risk),
    ("default_offset", _default_stop_loss),
)

TAKE_PROFIT_RULES: Tuple[Tuple[str, Rule], ...] = (
    ("supplied", _supplied_take_profit),
    ("target_profit_usd", _take_profit_from_target),
    ("default_offset", _default_take_profit),
)


def resolve(rules: Tuple[Tuple[str, Rule], ...], state: _Resolution) -> Tuple[str, float]:
    """Return ``(rule_name, value)`` for the first rule that yields a value."""
    for name, rule in rules:
        value = rule(state)
        if value is not None:
            return name, float(value)
    raise InvalidArgumentError("No rule produced a value")


def _require_positive(value: Optional[float], label: str) -> float:
    if not is_positive_number(value):
        raise InvalidArgumentError(f"{label} must be positive")
    return float(value)


def _require_finite(**values: float) -> None:
    overflowed = sorted(name for name, value in values.items() if not math.isfinite(value))
    if overflowed:
        raise InvalidArgumentError(
            f"Inputs overflow the numeric range ({', '.join(overflowed)})"
        )


def _check_optional(inputs: CalculatorInputs) -> None:
    for value, label, allow_zero in (
        (inputs.stop_loss_price, "Stop Loss Price", False),
        (inputs.take_profit_price, "Take Profit Price", False),
        (inputs.risk_usd, "Risk USD", True),
        (inputs.target_profit_usd, "Target Profit USD", True),
        (inputs.position_size, "Position Size", True),
    ):
        if value is None:
            continue
        if not is_finite_number(value) or value < 0 or (value == 0 and not allow_zero):
            raise InvalidArgumentError(f"{label} must be positive")


def derive_with_sources(
    inputs: CalculatorInputs, *, price_offset_pct: float = DEFAULT_PRICE_OFFSET_PCT
) -> Tuple[CalculationResult, Dict[str, str]]:
    """Derive the full result and report which rule settled each resolved field."""
    account_size = _require_positive(inputs.account_size, "Account Size")
    leverage = _require_positive(inputs.leverage, "Leverage")
    entry_price = _require_positive(inputs.entry_price, "Entry Price")
    try:
        position_type = PositionType.parse(inputs.position_type)
    except ValueError as exc:
        raise InvalidArgumentError(str(exc)) from exc
    _check_optional(inputs)

    state = _Resolution(
        inputs=inputs,
        position_type=position_type,
        entry_price=entry_price,
        max_position_size=calculate_max_position_size(account_size, leverage, entry_price),
        price_offset_pct=price_offset_pct,
    )
    sources: Dict[str, str] = {}
    sources["position_size"], state.position_size = resolve(POSITION_SIZE_RULES, state)
    sources["stop_loss_price"], stop_loss_price = resolve(STOP_LOSS_RULES, state)
    sources["take_profit_price"], take_profit_price = resolve(TAKE_PROFIT_RULES, state)

    position_size = state.position_size
    position_value = entry_price * position_size
    required_margin = position_value / leverage
    liquidation_price = calculate_liquidation_price(entry_price, leverage, position_type)
    risk_amount, profit_amount = calculate_risk_profit(entry_price, stop_loss_price, take_profit_price, position_size)
    _require_finite(
        max_position_size=state.max_position_size,
        position_size=position_size,
        stop_loss_price=stop_loss_price,
        take_profit_price=take_profit_price,
        position_value=position_value,
        required_margin=required_margin,
        risk_amount=risk_amount,
        profit_amount=profit_amount,
    )

    result = CalculationResult(
        position_size=position_size,
        position_value=position_value,
        required_margin=required_margin,
        max_position_size=state.max_position_size,
        entry_price=entry_price,
        stop_loss_price=stop_loss_price,
        take_profit_price=take_profit_price,
        risk_amount=risk_amount,
        profit_amount=profit_amount,
        risk_reward_ratio=calculate_risk_reward_ratio(risk_amount, profit_amount),
        liquidation_price=liquidation_price,
        leverage=leverage,
    )
    log_event(
        logger,
        logging.DEBUG,
        "position_derived",
        position_type=position_type.value,
        sources=sources,
        position_size=position_size,
        risk_reward_ratio=result.risk_reward_ratio,
    )
    return result, sources


def derive(inputs: CalculatorInputs, *, price_offset_pct: float = DEFAULT_PRICE_OFFSET_PCT) -> CalculationResult:
    """Compute every result field, raising ``PositionCalculatorError`` on degenerate input."""
    result, _ = derive_with_sources(inputs, price_offset_pct=price_offset_pct)
    return result


def collect_warnings(
    position_type: PositionType,
    result: CalculationResult,
    sources: Dict[str, str],
    price_offset_pct: float = DEFAULT_PRICE_OFFSET_PCT,
) -> List[str]:
    """Advisory notes about a valid result; they never block it."""
    warnings: List[str] = []
    sign = position_type.sign
    if result.position_size > result.max_position_size * (1 + 1e-9):
        warnings.append("Position Size exceeds max position size; required margin exceeds account size")
    if sign * (result.stop_loss_price - result.liquidation_price) <= 0:
        warnings.append("Stop Loss Price is at or beyond the liquidation price")
    if sign * (result.stop_loss_price - result.entry_price) > 0:
        warnings.append("Stop Loss Price is on the profit side of Entry Price")
    if sign * (result.take_profit_price - result.entry_price) < 0:
        warnings.append("Take Profit Price is on the loss side of Entry Price")
    offset = f"{price_offset_pct * 100:g}%"
    if sources.get("stop_loss_price") == "default_offset":
        warnings.append(f"Stop Loss Price defaulted to a {offset} move against the position")
    if sources.get("take_profit_price") == "default_offset":
        warnings.append(f"Take Profit Price defaulted to a {offset} move in favour of the position")
    return warnings


def evaluate(inputs: CalculatorInputs, *, price_offset_pct: float = DEFAULT_PRICE_OFFSET_PCT) -> CalculationOutcome:
    """Validate, then derive. Returns errors or a complete result, never a partial one."""
    validation = validate(inputs)
    if not validation.ok:
        return CalculationOutcome(errors=validation.messages, error_code=validation.errors[0].code)

    try:
        result, sources = derive_with_sources(inputs, price_offset_pct=price_offset_pct)
    except PositionCalculatorError as exc:
        log_event(logger, logging.INFO, "derivation_failed", kind=exc.kind.value, error=str(exc))
        return CalculationOutcome(errors=[str(exc)], error_code=exc.kind.value)

    position_type = PositionType.parse(inputs.position_type)
    return CalculationOutcome(
        result=result,
        warnings=collect_warnings(position_type, result, sources, price_offset_pct),
    )
