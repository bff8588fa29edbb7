"""
Redis subscription store.

Each record is one hash::

    twitch_notifier:subscription:<broadcaster_id>
        broadcaster_id     141981764
        broadcaster_name   twitchdev
        subscription_id    f1c2a387-...
        tenant:<server_id> 1

Writes that depend on the current hash run as Lua scripts, so workers
sharing one redis cannot interleave between the check and the write.
"""

import logging

from twitch_notifier.domain.interfaces.subscription_store import ISubscriptionStore
from twitch_notifier.domain.models.subscription import (
    SubscriptionRecord,
    TenantSubscription,
)

from .redis_client import PoolAlias, RedisClient

logger = logging.getLogger(__name__)

KEY_PREFIX = "twitch_notifier:subscription"
TENANT_FIELD_PREFIX = "tenant:"

# Write the whole hash only when the key is free
_CREATE_IF_ABSENT = """
if redis.call('EXISTS', KEYS[1]) == 1 then
    return 0
end
redis.call('HSET', KEYS[1], unpack(ARGV))
return 1
"""

# HSET only when the hash still exists, so a concurrent delete is not undone
_SET_TENANT_IF_EXISTS = """
if redis.call('EXISTS', KEYS[1]) == 1 then
    return redis.call('HSET', KEYS[1], ARGV[1], '1')
end
return -1
"""

# HDEL the server; when no tenant field is left, delete the hash and return
# its subscription id
_REMOVE_TENANT = """
if redis.call('EXISTS', KEYS[1]) == 0 then
    return false
end
redis.call('HDEL', KEYS[1], ARGV[1])
local fields = redis.call('HGETALL', KEYS[1])
for i = 1, #fields, 2 do
    if string.sub(fields[i], 1, #ARGV[2]) == ARGV[2] and fields[i + 1] == '1' then
        return false
    end
end
local subscription_id = redis.call('HGET', KEYS[1], 'subscription_id')
redis.call('DEL', KEYS[1])
return subscription_id
"""


def record_key(broadcaster_id: str) -> str:
    return f"{KEY_PREFIX}:{broadcaster_id}"


def tenant_field(tenant_id: str) -> str:
    return f"{TENANT_FIELD_PREFIX}{tenant_id}"


def record_to_hash(record: SubscriptionRecord) -> dict[str, str]:
    mapping = {
        "broadcaster_id": record.broadcaster_id,
        "broadcaster_name": record.broadcaster_name,
        "subscription_id": record.subscription_id,
    }
    for tenant_id in record.subscribed_tenants():
        mapping[tenant_field(tenant_id)] = "1"
    return mapping


def hash_to_record(data: dict[str, str]) -> SubscriptionRecord:
    tenants = {
        field.removeprefix(TENANT_FIELD_PREFIX): TenantSubscription(subscribed=True)
        for field, value in data.items()
        if field.startswith(TENANT_FIELD_PREFIX) and value == "1"
    }
    return SubscriptionRecord(
        broadcaster_id=data["broadcaster_id"],
        broadcaster_name=data.get("broadcaster_name", ""),
        subscription_id=data["subscription_id"],
        tenants=tenants,
    )


class RedisSubscriptionStore(ISubscriptionStore):
    """Hash-per-broadcaster store on the "subscriptions" pool."""

    def __init__(self, alias: PoolAlias = "subscriptions", scan_count: int = 100):
        self.alias = alias
        self.scan_count = scan_count

    @property
    def backend_name(self) -> str:
        return "redis"

    async def get(self, broadcaster_id: str) -> SubscriptionRecord | None:
        async with RedisClient.connection(self.alias) as redis:
            data = await redis.hgetall(record_key(broadcaster_id))
        if not data:
            return None
        return hash_to_record(data)

    async def create(self, record: SubscriptionRecord) -> bool:
        key = record_key(record.broadcaster_id)
        fields = [item for pair in record_to_hash(record).items() for item in pair]
        async with RedisClient.connection(self.alias) as redis:
            created = await redis.eval(_CREATE_IF_ABSENT, 1, key, *fields)
        if created != 1:
            logger.debug(f"Subscription record {key} already exists")
            return False
        logger.debug(f"Created subscription record {key}")
        return True

    async def set_tenant(self, broadcaster_id: str, tenant_id: str) -> bool:
        async with RedisClient.connection(self.alias) as redis:
            result = await redis.eval(
                _SET_TENANT_IF_EXISTS,
                1,
                record_key(broadcaster_id),
                tenant_field(tenant_id),
            )
        if result == -1:
            logger.warning(
                f"Record for {broadcaster_id} vanished before {tenant_id} was added"
            )
            return False
        return True

    async def remove_tenant(self, broadcaster_id: str, tenant_id: str) -> str | None:
        async with RedisClient.connection(self.alias) as redis:
            return await redis.eval(
                _REMOVE_TENANT,
                1,
                record_key(broadcaster_id),
                tenant_field(tenant_id),
                TENANT_FIELD_PREFIX,
            )

    async def delete(self, broadcaster_id: str) -> None:
        async with RedisClient.connection(self.alias) as redis:
            await redis.delete(record_key(broadcaster_id))

    async def find_by_tenant(self, tenant_id: str) -> list[SubscriptionRecord]:
        field = tenant_field(tenant_id)
        records = []
        async with RedisClient.connection(self.alias) as redis:
            async for key in redis.scan_iter(
                match=f"{KEY_PREFIX}:*", count=self.scan_count
            ):
                if await redis.hget(key, field) != "1":
                    continue
                data = await redis.hgetall(key)
                if data:
                    records.append(hash_to_record(data))
        return records
