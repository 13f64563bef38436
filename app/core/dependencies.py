from typing import Optional

from fastapi import HTTPException, Request

from app.db.stores import PostgresProfileStore, ProfileStore
from app.services.payments import PaymentEventProcessor


async def get_profile_store(request: Request) -> ProfileStore:
    """Profile store backed by the application database"""
    db = getattr(request.app.state, "db", None)
    if db is None:
        raise HTTPException(status_code=503, detail="Database unavailable")
    return PostgresProfileStore(db)


async def get_payment_processor(request: Request) -> Optional[PaymentEventProcessor]:
    """
    Shared processor created at startup

    Per event locks only serialize deliveries seen by the same processor,
    so a single instance lives on app.state. None when the database is off;
    webhooks are still verified before that is reported.
    """
    return getattr(request.app.state, "payment_processor", None)
