from typing import Optional

from fastapi import APIRouter, Depends

from app.core.dependencies import get_profile_store
from app.core.logger import api_logger
from app.core.responses import error_response, server_error_response, success_response
from app.db.stores import ProfileStore
from app.schemas.profile import ProfileUpdate

router = APIRouter(prefix="/api/profile")


@router.get(path="")
async def read_profile(
        telegram_id: Optional[int] = None,
        store: ProfileStore = Depends(get_profile_store)
):
    if not telegram_id:
        return error_response(message="missing_telegram_id", status_code=400)

    try:
        profile = await store.get(telegram_id)
    except Exception as e:
        api_logger.exception(f"Error reading profile {telegram_id}: {e}")
        return server_error_response()

    return success_response(data={"profile": profile})


@router.post(path="")
async def upsert_profile(
        body: ProfileUpdate,
        store: ProfileStore = Depends(get_profile_store)
):
    if not body.telegram_id:
        return error_response(message="missing_telegram_id", status_code=400)

    try:
        profile = await store.put(body.telegram_id, body)
    except Exception as e:
        api_logger.exception(f"Error saving profile {body.telegram_id}: {e}")
        return server_error_response()

    return success_response(data={"profile": profile})
