from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from position_calculator.core.config import Settings, get_settings


class PositionType(str, Enum):
    LONG = "long"
    SHORT = "short"

    @classmethod
    def parse(cls, value: Any) -> "PositionType":
        """Accept long/short (or buy/sell) in any case."""
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower()
        if text in {"long", "buy"}:
            return cls.LONG
        if text in {"short", "sell"}:
            return cls.SHORT
        raise ValueError("position type must be 'long' or 'short'")

    @property
    def sign(self) -> int:
        """+1 when profits come from a rising price, -1 otherwise."""
        return 1 if self is PositionType.LONG else -1


@dataclass(frozen=True)
class CalculatorInputs:
    """One immutable snapshot of user inputs for a single evaluation."""

    account_size: Optional[float] = None
    leverage: Optional[float] = None
    entry_price: Optional[float] = None
    position_type: Optional[PositionType] = None
    stop_loss_price: Optional[float] = None
    risk_usd: Optional[float] = None
    take_profit_price: Optional[float] = None
    target_profit_usd: Optional[float] = None
    position_size: Optional[float] = None


@dataclass(frozen=True)
class CalculationResult:
    position_size: float
    position_value: float
    required_margin: float
    max_position_size: float
    entry_price: float
    stop_loss_price: float
    take_profit_price: float
    risk_amount: float
    profit_amount: float
    risk_reward_ratio: float
    liquidation_price: float
    leverage: float

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class ValidationIssue:
    code: str
    field: Optional[str]
    message: str


@dataclass(frozen=True)
class ValidationResult:
    errors: Tuple[ValidationIssue, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def messages(self) -> List[str]:
        return [issue.message for issue in self.errors]


@dataclass(frozen=True)
class CalculationOutcome:
    """Tagged return of one evaluation: a result, or the errors that prevented it."""

    result: Optional[CalculationResult] = None
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    error_code: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.result is not None


def default_inputs(settings: Optional[Settings] = None) -> CalculatorInputs:
    """Snapshot used when the caller resets its form."""
    settings = settings or get_settings()
    return CalculatorInputs(
        account_size=settings.default_account_size,
        leverage=settings.default_leverage,
        entry_price=settings.default_entry_price,
        position_type=PositionType.parse(settings.default_position_type),
    )
