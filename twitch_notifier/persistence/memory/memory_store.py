"""
In-memory subscription store.

Single-process only; records are lost on restart. Suitable for local
development and tests.
"""

import asyncio

from twitch_notifier.domain.interfaces.subscription_store import ISubscriptionStore
from twitch_notifier.domain.models.subscription import (
    SubscriptionRecord,
    TenantSubscription,
)


class MemorySubscriptionStore(ISubscriptionStore):
    """
    Dict of records keyed by broadcaster id, guarded by one asyncio.Lock.

    Records are copied in and out so callers never mutate stored state.
    """

    def __init__(self):
        self._records: dict[str, SubscriptionRecord] = {}
        self._lock = asyncio.Lock()

    @property
    def backend_name(self) -> str:
        return "memory"

    async def get(self, broadcaster_id: str) -> SubscriptionRecord | None:
        async with self._lock:
            record = self._records.get(broadcaster_id)
            return record.model_copy(deep=True) if record else None

    async def create(self, record: SubscriptionRecord) -> bool:
        async with self._lock:
            if record.broadcaster_id in self._records:
                return False
            self._records[record.broadcaster_id] = record.model_copy(deep=True)
            return True

    async def set_tenant(self, broadcaster_id: str, tenant_id: str) -> bool:
        async with self._lock:
            record = self._records.get(broadcaster_id)
            if record is None:
                return False
            record.tenants[tenant_id] = TenantSubscription(subscribed=True)
            return True

    async def remove_tenant(self, broadcaster_id: str, tenant_id: str) -> str | None:
        async with self._lock:
            record = self._records.get(broadcaster_id)
            if record is None:
                return None
            record.tenants.pop(tenant_id, None)
            if record.subscribed_tenants():
                return None
            del self._records[broadcaster_id]
            return record.subscription_id

    async def delete(self, broadcaster_id: str) -> None:
        async with self._lock:
            self._records.pop(broadcaster_id, None)

    async def find_by_tenant(self, tenant_id: str) -> list[SubscriptionRecord]:
        async with self._lock:
            return [
                record.model_copy(deep=True)
                for record in self._records.values()
                if record.is_subscribed(tenant_id)
            ]
