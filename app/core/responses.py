from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from asyncpg import Record
from orjson import dumps, OPT_NON_STR_KEYS, OPT_INDENT_2
from pydantic import BaseModel
from starlette.responses import JSONResponse

from app.core.logger import api_logger
from app.schemas.verification import VerificationFailure, VerificationResult

FAILURE_STATUS: Dict[VerificationFailure, int] = {
    VerificationFailure.MALFORMED_INPUT: 400,
    VerificationFailure.MISSING_SIGNATURE: 401,
    VerificationFailure.INVALID_SIGNATURE: 401,
    VerificationFailure.STALE_DELIVERY: 401,
    VerificationFailure.EXPIRED: 401,
    VerificationFailure.NOT_CONFIGURED: 500,
}


def default(obj: Any) -> Any:
    """
    Args:
        obj: Object to serialize

    Returns:
        Serializable representation
    """
    if isinstance(obj, Record):
        return dict(obj)

    if isinstance(obj, (datetime, date)):
        return obj.isoformat()

    if isinstance(obj, Decimal):
        return float(obj)

    if isinstance(obj, Enum):
        return obj.value

    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json", exclude_none=True)

    raise TypeError(f"Type is not JSON serializable: {type(obj).__name__}")


class ORJSONResponse(JSONResponse):
    """
    Custom JSON response using ORJSON for fast serialization
    """

    def __init__(
            self,
            content: Any,
            status_code: int = 200,
            headers: Optional[Dict[str, str]] = None,
            media_type: str = "application/json",
            pretty: bool = False,
    ):
        """
        Initialize ORJSON response

        Args:
            content: Response content
            status_code: HTTP status code
            headers: Additional headers
            media_type: Content type
            pretty: Pretty print JSON (adds indentation)
        """
        self._pretty = pretty
        super().__init__(
            content=content,
            status_code=status_code,
            headers=headers,
            media_type=media_type
        )

    def render(self, content: Any) -> bytes:
        options = OPT_NON_STR_KEYS

        if self._pretty:
            options |= OPT_INDENT_2

        try:
            return dumps(content, option=options, default=default)
        except TypeError as e:
            api_logger.error(f"Error serializing response: {e}")

            return dumps({
                "success": False,
                "message": "serialization_error",
            })


def standard_response(
        success: bool,
        message: str,
        data: Any = None,
        errors: Optional[List[str]] = None,
        status_code: int = 200,
        pretty: bool = False,
) -> ORJSONResponse:
    """
    Create standardized API response

    Response format:
    {
        "success": true/false,
        "message": "Operation description",
        "data": {...},           // Optional
        "errors": [...],         // Optional
        "timestamp": "ISO8601"
    }

    Args:
        success: Operation success status
        message: Human-readable message or machine readable code
        data: Response data (optional)
        errors: List of error messages (optional)
        status_code: HTTP status code
        pretty: Pretty print JSON

    Returns:
        ORJSONResponse
    """
    response: dict = {
        'success': success,
        'message': message,
        'timestamp': datetime.now().isoformat() + 'Z'
    }

    if data is not None:
        response['data'] = data

    if errors is not None:
        response['errors'] = errors

    return ORJSONResponse(
        content=response,
        status_code=status_code,
        pretty=pretty
    )


def success_response(
        message: str = "Success",
        data: Any = None,
        status_code: int = 200,
) -> ORJSONResponse:
    return standard_response(
        success=True,
        message=message,
        data=data,
        status_code=status_code
    )


def error_response(
        message: str = "Error",
        errors: Optional[List[str]] = None,
        data: Any = None,
        status_code: int = 400,
) -> ORJSONResponse:
    return standard_response(
        success=False,
        message=message,
        errors=errors,
        data=data,
        status_code=status_code
    )


def verification_failure_response(result: VerificationResult) -> ORJSONResponse:
    """
    Reject a payload that failed verification

    The failure reason is the message so callers can tell invalid
    signatures, malformed input and missing configuration apart.

    Args:
        result: Non-authentic verification result

    Returns:
        ORJSONResponse with the status mapped from the failure reason
    """
    reason = result.reason or VerificationFailure.INVALID_SIGNATURE

    return error_response(
        message=reason.value,
        errors=[reason.value],
        status_code=FAILURE_STATUS[reason]
    )


def server_error_response(message: str = "server_error") -> ORJSONResponse:
    return error_response(
        message=message,
        status_code=500
    )
