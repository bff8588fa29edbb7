"""
Stream-online fan-out.

Runs after the webhook has been acknowledged. Nothing here reaches the
HTTP response; every failure ends in a log line.
"""

import asyncio

from twitch_notifier.core.errors import NotifierError
from twitch_notifier.core.logging.context import set_request_context
from twitch_notifier.core.logging.logger import get_logger
from twitch_notifier.domain.interfaces.event_sender_interface import IEventSender
from twitch_notifier.domain.interfaces.subscription_store import ISubscriptionStore
from twitch_notifier.domain.interfaces.twitch_interface import ITwitchClient
from twitch_notifier.domain.models.subscription import TWITCH_CHANNEL_BASE_URL


class NotificationFanout:
    """Forwards a live broadcast to every subscribed server whose keyword matches its title."""

    def __init__(
        self,
        store: ISubscriptionStore,
        twitch_client: ITwitchClient,
        event_sender: IEventSender,
    ):
        self.store = store
        self.twitch_client = twitch_client
        self.event_sender = event_sender
        self.logger = get_logger(__name__)

    async def handle_stream_online(self, broadcaster_id: str) -> list[str]:
        """
        Process one stream.online notification.

        1. Read the channel once for its current title (no retry).
        2. Load the subscription record; a missing record is logged.
        3. Evaluate every subscribed server concurrently and independently.

        Returns:
            Ids of the servers a broadcast was forwarded to
        """
        set_request_context(broadcaster_id=broadcaster_id)

        try:
            channel = await self.twitch_client.retrieve_channel(broadcaster_id)
        except NotifierError as e:
            self.logger.error(f"Could not read channel, fan-out aborted: {e.message}")
            return []

        record = await self.store.get(broadcaster_id)
        if record is None:
            self.logger.error(
                f"stream.online for {broadcaster_id} but no server follows it "
                f"(stale subscription?)"
            )
            return []

        login = channel.broadcaster_login or record.broadcaster_name
        video_url = f"{TWITCH_CHANNEL_BASE_URL}/{login}"
        tenants = record.subscribed_tenants()

        results = await asyncio.gather(
            *(
                self._notify_tenant(tenant_id, channel.title, video_url)
                for tenant_id in tenants
            ),
            return_exceptions=True,
        )

        delivered = []
        for tenant_id, result in zip(tenants, results, strict=True):
            if isinstance(result, BaseException):
                self.logger.error(
                    f"Fan-out to server {tenant_id} failed: {result}",
                    exc_info=result,
                )
            elif result:
                delivered.append(tenant_id)

        self.logger.info(
            f"📣 '{channel.title}' forwarded to {len(delivered)}/{len(tenants)} servers"
        )
        return delivered

    async def _notify_tenant(self, tenant_id: str, title: str, video_url: str) -> bool:
        set_request_context(tenant_id=tenant_id)

        configuration = await self.event_sender.latest_broadcast_configuration(
            tenant_id
        )
        if configuration is None:
            self.logger.warning("No broadcast configuration, skipping server")
            return False

        if not configuration.matches(title):
            self.logger.debug(
                f"Title '{title}' does not match keyword '{configuration.title_keyword}'"
            )
            return False

        await self.event_sender.send_broadcast(tenant_id, title, video_url)
        return True
