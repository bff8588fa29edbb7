"""Downstream event sender interface."""

from abc import ABC, abstractmethod

from ..models.broadcast import BroadcastConfiguration


class IEventSender(ABC):
    @abstractmethod
    async def latest_broadcast_configuration(
        self, tenant_id: str
    ) -> BroadcastConfiguration | None:
        """Most recent broadcast configuration saved by a server, or None."""

    @abstractmethod
    async def send_broadcast(self, tenant_id: str, title: str, video_url: str) -> None:
        """Forward a matching broadcast to a server."""
