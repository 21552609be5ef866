from typing import Dict, Iterable

from position_calculator.risk.models import CalculationResult

CURRENCY_FIELDS = (
    "position_value",
    "required_margin",
    "entry_price",
    "stop_loss_price",
    "take_profit_price",
    "risk_amount",
    "profit_amount",
    "liquidation_price",
)
SIZE_FIELDS = ("position_size", "max_position_size")

LABELS = {
    "position_size": "Position Size",
    "position_value": "Position Value",
    "required_margin": "Required Margin",
    "max_position_size": "Max Position Size",
    "entry_price": "Entry Price",
    "stop_loss_price": "Stop Loss Price",
    "take_profit_price": "Take Profit Price",
    "risk_amount": "Risk Amount",
    "profit_amount": "Profit Amount",
    "risk_reward_ratio": "Risk/Reward",
    "liquidation_price": "Liquidation Price",
    "leverage": "Leverage",
}


def format_currency(value: float) -> str:
    return f"${value:,.2f}"


def format_size(value: float) -> str:
    return f"{value:.4f}"


def format_result(result: CalculationResult) -> Dict[str, str]:
    """Display strings keyed like the result fields."""
    values = result.as_dict()
    formatted: Dict[str, str] = {}
    for key in CURRENCY_FIELDS:
        formatted[key] = format_currency(values[key])
    for key in SIZE_FIELDS:
        formatted[key] = format_size(values[key])
    formatted["risk_reward_ratio"] = f"{result.risk_reward_ratio:.2f} : 1"
    formatted["leverage"] = f"{result.leverage:g}x"
    return formatted


def format_table(result: CalculationResult) -> str:
    formatted = format_result(result)
    width = max(len(label) for label in LABELS.values())
    return "\n".join(f"{LABELS[key]:<{width}}  {formatted[key]}" for key in LABELS)


def format_messages(messages: Iterable[str], prefix: str = "-") -> str:
    return "\n".join(f"{prefix} {message}" for message in messages)
