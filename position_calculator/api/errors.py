from typing import Any, Dict, List, Optional

from fastapi.responses import JSONResponse

from position_calculator.risk.models import ValidationIssue


def error_response(
    *,
    status_code: int,
    code: str,
    detail: str,
    context: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    """Return a consistent error payload for API responses."""
    payload: Dict[str, Any] = {"error": code, "detail": detail}
    if context:
        payload["context"] = context
    return JSONResponse(status_code=status_code, content=payload)


def validation_error_response(issues: List[ValidationIssue]) -> JSONResponse:
    """400 carrying every validation issue; ``detail`` joins their messages."""
    return error_response(
        status_code=400,
        code="validation_error",
        detail="; ".join(issue.message for issue in issues),
        context={
            "errors": [
                {"code": issue.code, "field": issue.field, "message": issue.message}
                for issue in issues
            ]
        },
    )
