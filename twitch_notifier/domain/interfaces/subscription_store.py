"""
Subscription store interface.

One record per broadcaster. Each operation is atomic for a single
broadcaster id, also across worker processes sharing one backend.
``create`` only succeeds when no record exists and ``remove_tenant`` deletes
the record in the same step that drops its last server, so no interleaving
of workers leaves a record without subscribers.
"""

from abc import ABC, abstractmethod

from ..models.subscription import SubscriptionRecord


class ISubscriptionStore(ABC):
    """Storage contract for broadcaster subscription records."""

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Short label for health output ("memory" or "redis")."""

    @abstractmethod
    async def get(self, broadcaster_id: str) -> SubscriptionRecord | None:
        """
        Fetch the record for a broadcaster.

        Returns:
            The record, or None if no server follows this broadcaster
        """

    @abstractmethod
    async def create(self, record: SubscriptionRecord) -> bool:
        """
        Persist a new record unless one already exists for the broadcaster.

        Returns:
            True if written, False if another record was already there
        """

    @abstractmethod
    async def set_tenant(self, broadcaster_id: str, tenant_id: str) -> bool:
        """
        Mark ``tenant_id`` subscribed on an existing record.

        Returns:
            False if the record is missing (nothing is written)
        """

    @abstractmethod
    async def remove_tenant(self, broadcaster_id: str, tenant_id: str) -> str | None:
        """
        Drop ``tenant_id`` from a record.

        When no subscribed server remains the record is deleted as part of
        the same operation.

        Returns:
            The deleted record's subscription id, or None if the record is
            missing or still has subscribers
        """

    @abstractmethod
    async def delete(self, broadcaster_id: str) -> None:
        """Delete the record. Deleting a missing record is not an error."""

    @abstractmethod
    async def find_by_tenant(self, tenant_id: str) -> list[SubscriptionRecord]:
        """All records on which ``tenant_id`` is subscribed."""
