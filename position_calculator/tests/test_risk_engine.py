import math
import sys
from dataclasses import replace
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from position_calculator.risk.errors import (  # noqa: E402
    DegenerateDistanceError,
    ErrorKind,
    InvalidArgumentError,
    PositionCalculatorError,
)
from position_calculator.risk.models import CalculationResult, CalculatorInputs, PositionType  # noqa: E402
from position_calculator.risk.risk_engine import (  # noqa: E402
    POSITION_SIZE_RULES,
    STOP_LOSS_RULES,
    TAKE_PROFIT_RULES,
    calculate_liquidation_price,
    calculate_max_position_size,
    calculate_position_size_from_risk,
    calculate_risk_reward_ratio,
    calculate_stop_loss_price,
    calculate_take_profit_price,
    derive,
    derive_with_sources,
    evaluate,
)


def base_inputs(**overrides) -> CalculatorInputs:
    inputs = CalculatorInputs(
        account_size=10000,
        leverage=10,
        entry_price=50000,
        position_type=PositionType.LONG,
    )
    return replace(inputs, **overrides)


@pytest.mark.parametrize(
    "account_size,leverage,entry_price",
    [(10000, 10, 50000), (250.5, 3, 1.2345), (1e6, 125, 0.00042), (1, 1, 1)],
)
def test_max_position_size_formula(account_size, leverage, entry_price):
    expected = account_size * leverage / entry_price
    result = derive(base_inputs(account_size=account_size, leverage=leverage, entry_price=entry_price))
    assert math.isclose(result.max_position_size, expected, rel_tol=1e-9)
    assert math.isclose(calculate_max_position_size(account_size, leverage, entry_price), expected, rel_tol=1e-9)


def test_long_defaults_without_optional_inputs():
    result = derive(base_inputs())
    assert isinstance(result, CalculationResult)
    assert math.isclose(result.max_position_size, 2.0)
    assert math.isclose(result.position_size, 2.0)
    assert math.isclose(result.stop_loss_price, 47500)
    assert math.isclose(result.take_profit_price, 52500)
    assert math.isclose(result.liquidation_price, 45000)
    assert math.isclose(result.required_margin, 10000)
    assert math.isclose(result.position_value, 100000)
    assert math.isclose(result.risk_amount, 5000)
    assert math.isclose(result.profit_amount, 5000)
    assert result.risk_reward_ratio == 1.0
    assert result.leverage == 10
    assert result.entry_price == 50000


def test_short_defaults_mirror_long():
    result = derive(base_inputs(position_type=PositionType.SHORT))
    assert math.isclose(result.stop_loss_price, 52500)
    assert math.isclose(result.take_profit_price, 47500)
    assert math.isclose(result.liquidation_price, 55000)


def test_position_size_from_risk_and_stop():
    result, sources = derive_with_sources(base_inputs(risk_usd=500, stop_loss_price=49000))
    assert math.isclose(result.position_size, 0.5)
    assert sources["position_size"] == "risk_and_stop"
    assert sources["stop_loss_price"] == "supplied"
    assert math.isclose(result.risk_amount, 500)


def test_stop_loss_derived_from_risk_and_size():
    result, sources = derive_with_sources(base_inputs(position_size=0.5, risk_usd=500))
    assert math.isclose(result.stop_loss_price, 49000)
    assert sources["stop_loss_price"] == "risk_usd"


def test_short_stop_loss_and_take_profit_from_currency_targets():
    result = derive(
        base_inputs(position_type=PositionType.SHORT, position_size=0.5, risk_usd=500, target_profit_usd=1500)
    )
    assert math.isclose(result.stop_loss_price, 51000)
    assert math.isclose(result.take_profit_price, 47000)
    assert result.risk_reward_ratio == 3.0


def test_take_profit_derived_for_long():
    result = derive(base_inputs(position_size=2, target_profit_usd=1000))
    assert math.isclose(result.take_profit_price, 50500)
    assert math.isclose(result.profit_amount, 1000)


def test_supplied_position_size_wins_over_risk():
    result, sources = derive_with_sources(base_inputs(position_size=1.5, risk_usd=500, stop_loss_price=49000))
    assert result.position_size == 1.5
    assert sources["position_size"] == "supplied"
    assert math.isclose(result.risk_amount, 1500)


def test_risk_without_stop_falls_back_to_max_size():
    result, sources = derive_with_sources(base_inputs(risk_usd=500))
    assert sources["position_size"] == "max_position"
    assert math.isclose(result.position_size, 2.0)
    # With the max size known, the stop is placed from the risk budget.
    assert math.isclose(result.stop_loss_price, 49750)


def test_rule_order_is_explicit():
    assert [name for name, _ in POSITION_SIZE_RULES] == ["supplied", "risk_and_stop", "max_position"]
    assert [name for name, _ in STOP_LOSS_RULES] == ["supplied", "risk_usd", "default_offset"]
    assert [name for name, _ in TAKE_PROFIT_RULES] == ["supplied", "target_profit_usd", "default_offset"]


def test_stop_equal_to_entry_raises_degenerate_distance():
    with pytest.raises(DegenerateDistanceError) as excinfo:
        derive(base_inputs(risk_usd=500, stop_loss_price=50000))
    assert excinfo.value.kind is ErrorKind.DIVISION_BY_ZERO
    assert isinstance(excinfo.value, ZeroDivisionError)
    with pytest.raises(DegenerateDistanceError):
        calculate_position_size_from_risk(500, 100, 100)


def test_zero_position_size_rejected_for_currency_targets():
    with pytest.raises(InvalidArgumentError):
        derive(base_inputs(position_size=0, risk_usd=500))
    with pytest.raises(InvalidArgumentError):
        derive(base_inputs(position_size=0, target_profit_usd=500))
    with pytest.raises(InvalidArgumentError):
        calculate_stop_loss_price(100, 10, 0, PositionType.LONG)
    with pytest.raises(InvalidArgumentError):
        calculate_take_profit_price(100, 10, 0, PositionType.SHORT)


def test_zero_position_size_without_targets_has_zero_ratio():
    result = derive(base_inputs(position_size=0))
    assert result.risk_amount == 0
    assert result.risk_reward_ratio == 0
    assert not math.isnan(result.risk_reward_ratio)


def test_risk_reward_ratio_never_infinite():
    assert calculate_risk_reward_ratio(0, 100) == 0
    assert calculate_risk_reward_ratio(3, 10) == 3.33


@pytest.mark.parametrize(
    "field,value",
    [("account_size", 0), ("leverage", -1), ("entry_price", None), ("entry_price", float("nan"))],
)
def test_derive_guards_required_fields(field, value):
    with pytest.raises(InvalidArgumentError):
        derive(base_inputs(**{field: value}))


def test_derived_stop_must_stay_positive():
    with pytest.raises(InvalidArgumentError) as excinfo:
        derive(base_inputs(position_size=1, risk_usd=60000))
    assert "Stop Loss Price" in str(excinfo.value)


def test_liquidation_price_by_side():
    assert math.isclose(calculate_liquidation_price(100, 4, PositionType.LONG), 75)
    assert math.isclose(calculate_liquidation_price(100, 4, PositionType.SHORT), 125)


def test_custom_price_offset():
    result = derive(base_inputs(), price_offset_pct=0.02)
    assert math.isclose(result.stop_loss_price, 49000)
    assert math.isclose(result.take_profit_price, 51000)


def test_derive_is_idempotent():
    inputs = base_inputs(risk_usd=321.7, stop_loss_price=48765.4, target_profit_usd=999.9)
    first = derive(inputs)
    second = derive(inputs)
    assert first == second
    assert first.as_dict() == second.as_dict()


def test_evaluate_returns_validation_errors_without_result():
    outcome = evaluate(base_inputs(account_size=0, leverage=-1, entry_price=None))
    assert outcome.ok is False
    assert outcome.result is None
    assert outcome.errors == [
        "Account Size must be positive",
        "Leverage must be positive",
        "Entry Price must be positive",
    ]
    assert outcome.error_code == ErrorKind.MISSING_OR_INVALID_FIELD.value


def test_evaluate_returns_single_terminal_error_on_derivation_failure():
    outcome = evaluate(base_inputs(position_size=1, risk_usd=60000))
    assert outcome.ok is False
    assert outcome.result is None
    assert len(outcome.errors) == 1
    assert outcome.error_code == ErrorKind.INVALID_ARGUMENT.value


def test_evaluate_success_with_default_offset_warnings():
    outcome = evaluate(base_inputs())
    assert outcome.ok
    assert math.isclose(outcome.result.position_size, 2.0)
    joined = " ".join(outcome.warnings)
    assert "Stop Loss Price defaulted" in joined
    assert "Take Profit Price defaulted" in joined


def test_evaluate_warns_on_oversized_position_and_stop_past_liquidation():
    outcome = evaluate(base_inputs(position_size=5, stop_loss_price=44000, take_profit_price=60000))
    assert outcome.ok
    joined = " ".join(outcome.warnings)
    assert "exceeds max position size" in joined
    assert "liquidation price" in joined
    assert "defaulted" not in joined


def test_evaluate_warns_on_wrong_side_prices():
    outcome = evaluate(base_inputs(stop_loss_price=51000, take_profit_price=49000))
    assert outcome.ok
    joined = " ".join(outcome.warnings)
    assert "profit side" in joined
    assert "loss side" in joined


def test_evaluate_warnings_do_not_leak_between_calls():
    noisy = evaluate(base_inputs(position_size=5, stop_loss_price=44000))
    quiet = evaluate(base_inputs(stop_loss_price=49000, take_profit_price=52000))
    assert noisy.warnings
    assert quiet.warnings == []


def test_errors_share_base_class():
    assert issubclass(DegenerateDistanceError, PositionCalculatorError)
    assert issubclass(InvalidArgumentError, ValueError)


def test_overflowing_inputs_fail_instead_of_returning_inf():
    inputs = base_inputs(account_size=1e10, leverage=100, entry_price=1e-300)
    with pytest.raises(InvalidArgumentError) as excinfo:
        derive(inputs)
    assert "overflow" in str(excinfo.value)
    outcome = evaluate(inputs)
    assert outcome.ok is False
    assert outcome.result is None
    assert outcome.error_code == ErrorKind.INVALID_ARGUMENT.value


def test_overflowing_supplied_size_fails():
    with pytest.raises(InvalidArgumentError):
        derive(base_inputs(position_size=1e305, entry_price=1e5))


def test_risk_reward_ratio_overflow_raises():
    with pytest.raises(InvalidArgumentError):
        calculate_risk_reward_ratio(1e-320, 1e10)


def test_string_inputs_rejected_without_type_error():
    inputs = base_inputs(account_size="10000", leverage="10", entry_price="50000")
    outcome = evaluate(inputs)
    assert outcome.ok is False
    assert outcome.error_code == ErrorKind.MISSING_OR_INVALID_FIELD.value
    with pytest.raises(InvalidArgumentError):
        derive(inputs)
    with pytest.raises(InvalidArgumentError):
        derive(base_inputs(risk_usd="500"))


def test_position_type_is_required():
    inputs = CalculatorInputs(account_size=10000, leverage=10, entry_price=50000)
    assert inputs.position_type is None
    with pytest.raises(InvalidArgumentError):
        derive(inputs)
    outcome = evaluate(inputs)
    assert outcome.errors == ["Position Type must be long or short"]
