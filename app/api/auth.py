from fastapi import APIRouter, Depends, Request
from orjson import loads

from app.core.config import Settings, get_settings
from app.core.logger import auth_logger
from app.core.responses import error_response, success_response, verification_failure_response
from app.schemas.auth import InitDataRequest
from app.verifiers import verify_init_data

router = APIRouter(prefix="/auth/telegram")


async def read_init_data_request(request: Request) -> InitDataRequest:
    """
    Request body as InitDataRequest

    An empty, non-JSON or non-object body counts as a body without initData,
    so it ends up as missing_init_data instead of a validation error.
    """
    raw_body = await request.body()

    try:
        return InitDataRequest.model_validate(loads(raw_body))
    except ValueError:
        return InitDataRequest()


@router.post(path="/validate")
async def validate_init_data(
        request: Request,
        body: InitDataRequest = Depends(read_init_data_request),
        settings: Settings = Depends(get_settings)
):
    """
    Validate Telegram Mini App initData

    Security: HMAC-SHA256 chain keyed by the bot token
    """
    if not body.init_data:
        return error_response(message="missing_init_data", status_code=400)

    result = verify_init_data(
        body.init_data,
        settings.bot_token,
        max_age=settings.init_data_max_age,
        dev_mode=settings.SIGNATURE_DEV_MODE
    )

    if not result.authentic:
        client = request.client.host if request.client else "unknown"
        auth_logger.warning(f"initData rejected ({result.reason.value}) from {client}")
        return verification_failure_response(result)

    auth_logger.debug(f"initData verified for user {result.user.id if result.user else None}")

    return success_response(
        message="init_data_valid",
        data={
            "user": result.user,
            "auth_date": result.auth_date,
            "notes": result.notes,
            "dev_bypass": result.dev_bypass,
        }
    )
