"""In-memory doubles for the store protocols."""

from __future__ import annotations

from app.db.models import PaymentEventModel, ProfileModel
from app.schemas.profile import ProfileUpdate


class MemoryProfileStore:
    def __init__(self) -> None:
        self.profiles: dict[int, ProfileModel] = {}

    async def get(self, telegram_id: int) -> ProfileModel | None:
        return self.profiles.get(telegram_id)

    async def put(self, telegram_id: int, profile: ProfileUpdate) -> ProfileModel:
        stored = ProfileModel(
            telegram_id=telegram_id,
            display_name=profile.display_name,
            age=profile.age,
            location=profile.location,
        )
        self.profiles[telegram_id] = stored
        return stored


class FailingProfileStore:
    async def get(self, telegram_id: int) -> ProfileModel | None:
        raise ConnectionError("database down")

    async def put(self, telegram_id: int, profile: ProfileUpdate) -> ProfileModel:
        raise ConnectionError("database down")


class MemoryPaymentEventStore:
    def __init__(self) -> None:
        self.events: dict[tuple[str, str], PaymentEventModel] = {}
        self.calls = 0

    async def record(self, event: PaymentEventModel) -> bool:
        self.calls += 1
        key = (event.provider, event.event_id)
        if key in self.events:
            return False
        self.events[key] = event
        return True
