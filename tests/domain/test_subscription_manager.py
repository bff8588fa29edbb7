"""
Tests for SubscriptionManager reference counting.
"""

import asyncio

import pytest

from twitch_notifier.core.errors import Conflict, NotFound, UpstreamUnavailable
from twitch_notifier.domain.services.subscription_manager import SubscriptionManager
from twitch_notifier.persistence.memory.memory_store import MemorySubscriptionStore

LADDER_URL = "https://www.twitch.tv/ladderking"
DEV_URL = "https://www.twitch.tv/twitchdev"


class RoundTripStore(MemorySubscriptionStore):
    """Memory store whose reads yield to the loop after reading, like a network store."""

    async def get(self, broadcaster_id):
        record = await super().get(broadcaster_id)
        await asyncio.sleep(0)
        return record


@pytest.mark.asyncio
class TestAddTenant:
    async def test_first_server_creates_subscription_and_record(
        self, manager, memory_store, twitch_client
    ):
        record = await manager.add_tenant(LADDER_URL, "guild-a")

        assert twitch_client.subscribe_calls == ["5550001"]
        assert record.subscription_id == "sub-5550001-1"
        assert record.broadcaster_name == "ladderking"
        stored = await memory_store.get("5550001")
        assert stored.subscribed_tenants() == ["guild-a"]

    async def test_second_server_reuses_subscription(
        self, manager, memory_store, twitch_client
    ):
        await manager.add_tenant(LADDER_URL, "guild-a")
        await manager.add_tenant(LADDER_URL, "guild-b")

        assert twitch_client.subscribe_calls == ["5550001"]
        stored = await memory_store.get("5550001")
        assert sorted(stored.subscribed_tenants()) == ["guild-a", "guild-b"]
        assert stored.subscription_id == "sub-5550001-1"

    async def test_adding_twice_is_idempotent(self, manager, memory_store, twitch_client):
        await manager.add_tenant(LADDER_URL, "guild-a")
        await manager.add_tenant(LADDER_URL, "guild-a")

        assert twitch_client.subscribe_calls == ["5550001"]
        stored = await memory_store.get("5550001")
        assert stored.subscribed_tenants() == ["guild-a"]

    async def test_bare_login_is_accepted(self, manager, twitch_client):
        record = await manager.add_tenant("twitchdev", "guild-a")

        assert record.broadcaster_id == "141981764"
        assert record.twitch_url == DEV_URL

    async def test_concurrent_first_adds_subscribe_once(self, manager, memory_store, twitch_client):
        await asyncio.gather(
            manager.add_tenant(LADDER_URL, "guild-a"),
            manager.add_tenant(LADDER_URL, "guild-b"),
            manager.add_tenant(LADDER_URL, "guild-c"),
        )

        assert twitch_client.subscribe_calls == ["5550001"]
        stored = await memory_store.get("5550001")
        assert sorted(stored.subscribed_tenants()) == ["guild-a", "guild-b", "guild-c"]

    async def test_unknown_broadcaster_raises_and_stores_nothing(
        self, manager, memory_store, twitch_client
    ):
        with pytest.raises(NotFound):
            await manager.add_tenant("https://www.twitch.tv/nobody", "guild-a")

        assert twitch_client.subscribe_calls == []
        assert await memory_store.find_by_tenant("guild-a") == []

    async def test_subscribe_failure_creates_no_record(
        self, manager, memory_store, twitch_client, monkeypatch, upstream_error
    ):
        async def failing_subscribe(broadcaster_id):
            raise upstream_error

        monkeypatch.setattr(twitch_client, "subscribe_stream_online", failing_subscribe)

        with pytest.raises(UpstreamUnavailable):
            await manager.add_tenant(LADDER_URL, "guild-a")

        assert await memory_store.get("5550001") is None

    async def test_store_failure_deletes_new_subscription(
        self, manager, memory_store, twitch_client, monkeypatch
    ):
        store_create = memory_store.create
        calls = []

        async def create_once_failing(record):
            calls.append(record.subscription_id)
            if len(calls) == 1:
                raise ConnectionError("redis is down")
            return await store_create(record)

        monkeypatch.setattr(memory_store, "create", create_once_failing)

        with pytest.raises(ConnectionError):
            await manager.add_tenant(LADDER_URL, "guild-a")

        assert twitch_client.delete_calls == ["sub-5550001-1"]
        assert await memory_store.get("5550001") is None

        record = await manager.add_tenant(LADDER_URL, "guild-a")

        assert twitch_client.subscribe_calls == ["5550001", "5550001"]
        assert twitch_client.delete_calls == ["sub-5550001-1"]
        assert record.subscription_id == "sub-5550001-2"

    async def test_store_failure_raises_even_if_cleanup_fails(
        self, manager, memory_store, twitch_client, monkeypatch, upstream_error
    ):
        async def failing_create(record):
            raise ConnectionError("redis is down")

        async def failing_delete(subscription_id):
            raise upstream_error

        monkeypatch.setattr(memory_store, "create", failing_create)
        monkeypatch.setattr(twitch_client, "delete_subscription", failing_delete)

        with pytest.raises(ConnectionError):
            await manager.add_tenant(LADDER_URL, "guild-a")

    async def test_record_that_keeps_vanishing_raises_conflict(
        self, manager, memory_store, monkeypatch
    ):
        await manager.add_tenant(LADDER_URL, "guild-a")

        async def record_gone(broadcaster_id, tenant_id):
            return False

        monkeypatch.setattr(memory_store, "set_tenant", record_gone)

        with pytest.raises(Conflict):
            await manager.add_tenant(LADDER_URL, "guild-b")


@pytest.mark.asyncio
class TestRemoveTenant:
    async def test_remove_with_other_followers_keeps_subscription(
        self, manager, memory_store, twitch_client
    ):
        await manager.add_tenant(LADDER_URL, "guild-a")
        await manager.add_tenant(LADDER_URL, "guild-b")

        await manager.remove_tenant(LADDER_URL, "guild-a")

        assert twitch_client.delete_calls == []
        stored = await memory_store.get("5550001")
        assert stored.subscribed_tenants() == ["guild-b"]

    async def test_last_follower_deletes_subscription_and_record(
        self, manager, memory_store, twitch_client
    ):
        await manager.add_tenant(LADDER_URL, "guild-a")

        await manager.remove_tenant(LADDER_URL, "guild-a")

        assert twitch_client.delete_calls == ["sub-5550001-1"]
        assert await memory_store.get("5550001") is None

    async def test_no_record_raises_not_found(self, manager, twitch_client):
        with pytest.raises(NotFound):
            await manager.remove_tenant(LADDER_URL, "guild-a")

        assert twitch_client.delete_calls == []

    async def test_concurrent_removes_leave_no_orphan(
        self, manager, memory_store, twitch_client
    ):
        await manager.add_tenant(LADDER_URL, "guild-a")
        await manager.add_tenant(LADDER_URL, "guild-b")

        await asyncio.gather(
            manager.remove_tenant(LADDER_URL, "guild-a"),
            manager.remove_tenant(LADDER_URL, "guild-b"),
        )

        assert twitch_client.delete_calls == ["sub-5550001-1"]
        assert await memory_store.get("5550001") is None

    async def test_locks_are_released(self, manager):
        await manager.add_tenant(LADDER_URL, "guild-a")
        await manager.remove_tenant(LADDER_URL, "guild-a")

        assert manager._locks == {}
        assert manager._lock_users == {}


@pytest.mark.asyncio
class TestFullScenario:
    async def test_two_servers_follow_and_leave(self, manager, memory_store, twitch_client):
        await manager.add_tenant(LADDER_URL, "guild-a")
        await manager.add_tenant(DEV_URL, "guild-a")
        await manager.add_tenant(LADDER_URL, "guild-b")

        assert sorted(await manager.list_tenant_entities("guild-a")) == [
            "https://www.twitch.tv/ladderking",
            DEV_URL,
        ]
        assert await manager.list_tenant_entities("guild-b") == [LADDER_URL]

        await manager.remove_tenant(LADDER_URL, "guild-a")
        assert await manager.list_tenant_entities("guild-a") == [DEV_URL]
        assert await manager.list_tenant_entities("guild-b") == [LADDER_URL]

        await manager.remove_tenant(LADDER_URL, "guild-b")
        await manager.remove_tenant(DEV_URL, "guild-a")

        assert await manager.list_tenant_entities("guild-a") == []
        assert await manager.list_tenant_entities("guild-b") == []
        assert sorted(twitch_client.delete_calls) == ["sub-141981764-2", "sub-5550001-1"]

    async def test_list_unknown_server_is_empty(self, manager):
        assert await manager.list_tenant_entities("guild-z") == []


@pytest.mark.asyncio
class TestSeveralWorkers:
    """One manager per worker process, all sharing one store."""

    @pytest.fixture
    def shared_store(self):
        return RoundTripStore()

    @pytest.fixture
    def workers(self, shared_store, twitch_client):
        return (
            SubscriptionManager(shared_store, twitch_client),
            SubscriptionManager(shared_store, twitch_client),
        )

    async def test_simultaneous_last_removes_delete_subscription(
        self, workers, shared_store, twitch_client
    ):
        first, second = workers
        await first.add_tenant(LADDER_URL, "guild-a")
        await first.add_tenant(LADDER_URL, "guild-b")

        await asyncio.gather(
            first.remove_tenant(LADDER_URL, "guild-a"),
            second.remove_tenant(LADDER_URL, "guild-b"),
        )

        assert twitch_client.delete_calls == ["sub-5550001-1"]
        assert await shared_store.get("5550001") is None

    async def test_simultaneous_first_adds_keep_one_subscription(
        self, workers, shared_store, twitch_client
    ):
        first, second = workers

        await asyncio.gather(
            first.add_tenant(LADDER_URL, "guild-a"),
            second.add_tenant(LADDER_URL, "guild-b"),
        )

        stored = await shared_store.get("5550001")
        assert sorted(stored.subscribed_tenants()) == ["guild-a", "guild-b"]
        assert len(twitch_client.subscribe_calls) == 2
        assert len(twitch_client.delete_calls) == 1
        assert twitch_client.delete_calls[0] != stored.subscription_id
