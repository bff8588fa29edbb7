"""
Tests for context-prefixed logging.
"""

import asyncio
import logging

import pytest

from twitch_notifier.core.logging.context import (
    clear_request_context,
    get_context_info,
    set_request_context,
)
from twitch_notifier.core.logging.logger import CompactFormatter, get_logger


class TestContextLogger:
    def test_no_prefix_without_context(self, caplog):
        logger = get_logger("twitch_notifier.tests.plain")

        with caplog.at_level(logging.INFO, logger="twitch_notifier.tests.plain"):
            logger.info("hello")

        assert caplog.records[-1].getMessage() == "hello"

    def test_prefix_from_context(self, caplog):
        logger = get_logger("twitch_notifier.tests.ctx")
        set_request_context(tenant_id="guild-a", broadcaster_id="5550001")

        with caplog.at_level(logging.INFO, logger="twitch_notifier.tests.ctx"):
            logger.info("hello")

        assert caplog.records[-1].getMessage() == "[T:guild-a][B:5550001] hello"

    def test_logger_created_before_context_is_set(self, caplog):
        logger = get_logger("twitch_notifier.tests.early")
        set_request_context(broadcaster_id="141981764")

        with caplog.at_level(logging.WARNING, logger="twitch_notifier.tests.early"):
            logger.warning("late context")

        assert caplog.records[-1].getMessage() == "[B:141981764] late context"

    def test_clear(self):
        set_request_context(tenant_id="guild-a")
        clear_request_context()

        assert get_context_info() == {"tenant_id": None, "broadcaster_id": None}


@pytest.mark.asyncio
class TestContextIsolation:
    async def test_tasks_do_not_leak_context(self):
        seen = {}

        async def worker(tenant_id):
            set_request_context(tenant_id=tenant_id)
            await asyncio.sleep(0)
            seen[tenant_id] = get_context_info()["tenant_id"]

        set_request_context(broadcaster_id="5550001")
        await asyncio.gather(worker("guild-a"), worker("guild-b"))

        assert seen == {"guild-a": "guild-a", "guild-b": "guild-b"}
        assert get_context_info() == {"tenant_id": None, "broadcaster_id": "5550001"}


class TestCompactFormatter:
    def test_shortens_package_names(self):
        record = logging.LogRecord(
            "twitch_notifier.webhooks.dispatcher", logging.INFO, __file__, 1, "msg", None, None
        )

        assert CompactFormatter("%(name)s").format(record) == "webhooks.dispatcher"

    def test_leaves_other_names(self):
        record = logging.LogRecord("uvicorn.error", logging.INFO, __file__, 1, "msg", None, None)

        assert CompactFormatter("%(name)s").format(record) == "uvicorn.error"
