from asyncio import Lock
from contextlib import asynccontextmanager
from typing import Dict

from app.core.logger import webhook_logger
from app.db.models import PaymentEventModel
from app.db.stores import PaymentEventStore
from app.schemas.verification import WebhookResult
from app.schemas.webhook import WebhookAck


class KeyedLock:
    """asyncio locks keyed by string, dropped once no task holds or waits on them"""

    def __init__(self):
        self._locks: Dict[str, Lock] = {}
        self._users: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, key: str):
        lock = self._locks.setdefault(key, Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]


class PaymentEventProcessor:
    """
    Record verified payment events, one at a time per event id

    Verification happens before this point; the processor only guarantees
    that concurrent or replayed deliveries of the same event are handled once.
    """

    def __init__(self, store: PaymentEventStore):
        self.store = store
        self.locks = KeyedLock()

    async def process(self, result: WebhookResult) -> WebhookAck:
        """
        Args:
            result: Authentic webhook verification result

        Returns:
            WebhookAck, duplicate=True for an already recorded event

        Raises:
            ValueError: If the result is not authentic
        """
        if not result.authentic:
            raise ValueError("Refusing to process an unverified webhook")

        if not result.event_id:
            webhook_logger.warning(
                f"{result.provider} event {result.event_type} has no id, not recorded"
            )
            return WebhookAck(provider=result.provider, event_type=result.event_type)

        async with self.locks.hold(f"{result.provider}:{result.event_id}"):
            is_new = await self.store.record(
                PaymentEventModel(
                    provider=result.provider,
                    event_id=result.event_id,
                    event_type=result.event_type,
                    payload=result.payload or {}
                )
            )

        if is_new:
            webhook_logger.info(f"{result.provider} event recorded: {result.event_type} {result.event_id}")
        else:
            webhook_logger.info(f"{result.provider} event already processed: {result.event_id}")

        return WebhookAck(
            provider=result.provider,
            event_type=result.event_type,
            event_id=result.event_id,
            duplicate=not is_new
        )
