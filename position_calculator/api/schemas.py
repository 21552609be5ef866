from typing import Dict, List, Optional

from pydantic import BaseModel, Field, validator

from position_calculator.risk.models import CalculatorInputs, PositionType


class CalculatorRequest(BaseModel):
    # Required inputs stay optional here so the validator can report every missing one.
    account_size: Optional[float] = None
    leverage: Optional[float] = None
    entry_price: Optional[float] = None
    position_type: Optional[str] = None
    stop_loss_price: Optional[float] = None
    risk_usd: Optional[float] = None
    take_profit_price: Optional[float] = None
    target_profit_usd: Optional[float] = None
    position_size: Optional[float] = None

    @validator("position_type")
    def validate_position_type(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return PositionType.parse(value).value

    def to_inputs(self) -> CalculatorInputs:
        return CalculatorInputs(
            account_size=self.account_size,
            leverage=self.leverage,
            entry_price=self.entry_price,
            position_type=PositionType.parse(self.position_type) if self.position_type else None,
            stop_loss_price=self.stop_loss_price,
            risk_usd=self.risk_usd,
            take_profit_price=self.take_profit_price,
            target_profit_usd=self.target_profit_usd,
            position_size=self.position_size,
        )


class ValidationIssueResponse(BaseModel):
    code: str
    field: Optional[str] = None
    message: str


class ValidationResponse(BaseModel):
    ok: bool
    errors: List[ValidationIssueResponse] = []


class CalculationResponse(BaseModel):
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
    warnings: List[str] = []
    formatted: Dict[str, str] = {}


class DefaultsResponse(BaseModel):
    account_size: float
    leverage: float
    entry_price: float
    position_type: str
    price_offset_pct: float = Field(..., gt=0, lt=1)


class ErrorResponse(BaseModel):
    error: str
    detail: str
    context: Optional[dict] = None
