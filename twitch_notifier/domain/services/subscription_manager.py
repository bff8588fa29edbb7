"""
Reference-counted subscription management.

Many Discord servers can follow the same broadcaster; Twitch only ever
holds one stream.online subscription for it. The first server to follow
creates the subscription, the last one to leave deletes it.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from twitch_notifier.core.errors import Conflict, NotFound, NotifierError
from twitch_notifier.core.logging.context import set_request_context
from twitch_notifier.core.logging.logger import get_logger
from twitch_notifier.domain.interfaces.subscription_store import ISubscriptionStore
from twitch_notifier.domain.interfaces.twitch_interface import ITwitchClient
from twitch_notifier.domain.models.subscription import (
    SubscriptionRecord,
    TenantSubscription,
)
from twitch_notifier.domain.models.twitch import BroadcasterUser

ADD_ATTEMPTS = 3


class SubscriptionManager:
    """
    Adds and removes servers on broadcaster subscription records.

    Add/remove for one broadcaster run under a per-broadcaster lock within
    this process. Across worker processes the store decides: only one
    create wins, and only the remove that drops the last server gets the
    subscription id back to delete on Twitch.
    """

    def __init__(self, store: ISubscriptionStore, twitch_client: ITwitchClient):
        self.store = store
        self.twitch_client = twitch_client
        self.logger = get_logger(__name__)
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    @asynccontextmanager
    async def _broadcaster_lock(self, broadcaster_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(broadcaster_id, asyncio.Lock())
        self._lock_users[broadcaster_id] = self._lock_users.get(broadcaster_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[broadcaster_id] -= 1
            if self._lock_users[broadcaster_id] == 0:
                del self._lock_users[broadcaster_id]
                del self._locks[broadcaster_id]

    async def add_tenant(self, twitch_url: str, tenant_id: str) -> SubscriptionRecord:
        """
        Subscribe a server to a broadcaster.

        Creates the Twitch subscription only when no record exists yet.
        Adding a server that is already subscribed changes nothing.

        Args:
            twitch_url: Channel URL or login
            tenant_id: Discord server id

        Returns:
            The record after the change

        Raises:
            Conflict: Other workers kept creating and deleting the record
        """
        broadcaster = await self.twitch_client.retrieve_broadcaster(twitch_url)
        set_request_context(tenant_id=tenant_id, broadcaster_id=broadcaster.id)

        async with self._broadcaster_lock(broadcaster.id):
            for _ in range(ADD_ATTEMPTS):
                record = await self.store.get(broadcaster.id)
                if record is None:
                    record = await self._create_record(broadcaster, tenant_id)
                    if record is not None:
                        return record
                    continue

                if record.is_subscribed(tenant_id):
                    self.logger.debug(f"Already following {broadcaster.login}")
                    return record

                if await self.store.set_tenant(broadcaster.id, tenant_id):
                    record.tenants[tenant_id] = TenantSubscription(subscribed=True)
                    self.logger.info(f"➕ Now following {broadcaster.login}")
                    return record

        raise Conflict(f"subscription for {broadcaster.login} is changing, try again")

    async def _create_record(
        self, broadcaster: BroadcasterUser, tenant_id: str
    ) -> SubscriptionRecord | None:
        """
        Create the Twitch subscription, then its record.

        Returns None when another worker stored a record first. The Twitch
        subscription made here is deleted again in that case, and when the
        store write fails.
        """
        subscription = await self.twitch_client.subscribe_stream_online(broadcaster.id)
        record = SubscriptionRecord(
            broadcaster_id=broadcaster.id,
            broadcaster_name=broadcaster.login,
            subscription_id=subscription.id,
            tenants={tenant_id: TenantSubscription(subscribed=True)},
        )

        try:
            created = await self.store.create(record)
        except Exception:
            self.logger.error(
                f"❌ Could not store record, deleting subscription {subscription.id}"
            )
            try:
                await self.twitch_client.delete_subscription(subscription.id)
            except NotifierError as e:
                self.logger.error(f"❌ Subscription {subscription.id} left on Twitch: {e}")
            raise

        if not created:
            self.logger.info(
                f"Record for {broadcaster.login} created elsewhere, "
                f"deleting duplicate subscription {subscription.id}"
            )
            await self.twitch_client.delete_subscription(subscription.id)
            return None

        self.logger.info(
            f"➕ Created subscription {subscription.id} for {broadcaster.login}"
        )
        return record

    async def remove_tenant(self, twitch_url: str, tenant_id: str) -> None:
        """
        Unsubscribe a server from a broadcaster.

        When no other server remains subscribed the store drops the record
        and the Twitch subscription is deleted.

        Raises:
            NotFound: Nobody follows this broadcaster
        """
        broadcaster = await self.twitch_client.retrieve_broadcaster(twitch_url)
        set_request_context(tenant_id=tenant_id, broadcaster_id=broadcaster.id)

        async with self._broadcaster_lock(broadcaster.id):
            if await self.store.get(broadcaster.id) is None:
                raise NotFound(f"no subscription exists for {broadcaster.login}")

            subscription_id = await self.store.remove_tenant(broadcaster.id, tenant_id)
            if subscription_id is None:
                self.logger.info(f"➖ Stopped following {broadcaster.login}")
                return

            await self.twitch_client.delete_subscription(subscription_id)
            self.logger.info(
                f"➖ Last follower left, deleted subscription {subscription_id}"
            )

    async def list_tenant_entities(self, tenant_id: str) -> list[str]:
        """Channel URLs of every broadcaster the server follows, in no particular order."""
        records = await self.store.find_by_tenant(tenant_id)
        return [record.twitch_url for record in records]
