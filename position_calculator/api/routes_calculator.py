from fastapi import APIRouter

from position_calculator.api.errors import error_response, validation_error_response
from position_calculator.api.schemas import (
    CalculationResponse,
    CalculatorRequest,
    DefaultsResponse,
    ErrorResponse,
    ValidationIssueResponse,
    ValidationResponse,
)
from position_calculator.core.config import get_settings
from position_calculator.core.logging import get_logger
from position_calculator.risk.errors import PositionCalculatorError
from position_calculator.risk.formatting import format_result
from position_calculator.risk.models import default_inputs
from position_calculator.risk.risk_engine import collect_warnings, derive_with_sources
from position_calculator.risk.validator import validate

router = APIRouter(prefix="/api/calculator", tags=["calculator"])

logger = get_logger(__name__)


@router.get("/defaults", response_model=DefaultsResponse)
async def defaults():
    """Inputs the UI restores on reset."""
    settings = get_settings()
    inputs = default_inputs(settings)
    return DefaultsResponse(
        account_size=inputs.account_size,
        leverage=inputs.leverage,
        entry_price=inputs.entry_price,
        position_type=inputs.position_type.value,
        price_offset_pct=settings.default_price_offset_pct,
    )


@router.post("/validate", response_model=ValidationResponse)
async def validate_inputs(request: CalculatorRequest):
    """Report every validation issue without deriving anything."""
    validation = validate(request.to_inputs())
    return ValidationResponse(
        ok=validation.ok,
        errors=[
            ValidationIssueResponse(code=issue.code, field=issue.field, message=issue.message)
            for issue in validation.errors
        ],
    )


@router.post(
    "/calculate",
    response_model=CalculationResponse,
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def calculate(request: CalculatorRequest):
    """Validate the inputs, then derive the full position result."""
    inputs = request.to_inputs()
    validation = validate(inputs)
    if not validation.ok:
        logger.warning(
            "calculation_rejected",
            extra={
                "event": "calculation_rejected",
                "position_type": request.position_type,
                "errors": validation.messages,
            },
        )
        return validation_error_response(list(validation.errors))

    offset_pct = get_settings().default_price_offset_pct
    try:
        result, sources = derive_with_sources(inputs, price_offset_pct=offset_pct)
    except PositionCalculatorError as exc:
        logger.warning(
            "calculation_failed",
            extra={"event": "calculation_failed", "kind": exc.kind.value, "error": str(exc)},
        )
        return error_response(status_code=400, code=exc.kind.value, detail=str(exc))
    except Exception:
        logger.exception("calculation_error", extra={"event": "calculation_error"})
        return error_response(status_code=500, code="unexpected_error", detail="Unexpected error. Check server logs.")

    return CalculationResponse(
        **result.as_dict(),
        warnings=collect_warnings(inputs.position_type, result, sources, offset_pct),
        formatted=format_result(result),
    )
