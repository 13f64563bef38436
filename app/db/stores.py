from typing import Optional, Protocol

from app.core.logger import db_logger
from app.db.models import PaymentEventModel, ProfileModel
from app.db.pool import Database
from app.schemas.profile import ProfileUpdate


class ProfileStore(Protocol):
    """Durable profile storage keyed by Telegram id"""

    async def get(self, telegram_id: int) -> Optional[ProfileModel]:
        ...

    async def put(self, telegram_id: int, profile: ProfileUpdate) -> ProfileModel:
        ...


class PaymentEventStore(Protocol):
    """Durable record of processed payment events"""

    async def record(self, event: PaymentEventModel) -> bool:
        """Store the event, returning False when it was already recorded"""
        ...


class PostgresProfileStore:
    def __init__(self, db: Database):
        self.db = db

    async def get(self, telegram_id: int) -> Optional[ProfileModel]:
        async with self.db.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT * FROM profiles WHERE telegram_id = $1",
                telegram_id
            )

        return ProfileModel.model_validate(dict(row)) if row else None

    async def put(self, telegram_id: int, profile: ProfileUpdate) -> ProfileModel:
        async with self.db.transaction() as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO profiles (telegram_id, display_name, age, location)
                VALUES ($1, $2, $3, $4)
                ON CONFLICT (telegram_id) DO UPDATE
                SET display_name = EXCLUDED.display_name,
                    age = EXCLUDED.age,
                    location = EXCLUDED.location,
                    updated_at = now()
                RETURNING *
                """,
                telegram_id,
                profile.display_name,
                profile.age,
                profile.location
            )

        db_logger.info(f"Profile upserted: telegram_id={telegram_id}")
        return ProfileModel.model_validate(dict(row))


class PostgresPaymentEventStore:
    def __init__(self, db: Database):
        self.db = db

    async def record(self, event: PaymentEventModel) -> bool:
        async with self.db.transaction() as conn:
            inserted = await conn.fetchval(
                """
                INSERT INTO payment_events (provider, event_id, event_type, payload)
                VALUES ($1, $2, $3, $4)
                ON CONFLICT (provider, event_id) DO NOTHING
                RETURNING event_id
                """,
                event.provider,
                event.event_id,
                event.event_type,
                event.payload
            )

        return inserted is not None
