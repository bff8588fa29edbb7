"""
Management endpoint controller.

Bodies are validated here rather than by FastAPI so that every failure,
validation included, produces the same 500 ``{"message": ...}`` response.
"""

import json
from typing import TypeVar

from fastapi import Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ValidationError

from twitch_notifier.api.models.notifier_models import (
    DiscordServerRequest,
    NotifierRequest,
)
from twitch_notifier.core.errors import MalformedPayload, NotifierError
from twitch_notifier.core.logging.context import set_request_context
from twitch_notifier.core.logging.logger import get_logger
from twitch_notifier.domain.services.subscription_manager import SubscriptionManager

M = TypeVar("M", bound=BaseModel)


def _describe_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        field = ".".join(str(loc) for loc in item["loc"]) or "body"
        parts.append(f"{field}: {item['msg']}")
    return "invalid request body - " + "; ".join(parts)


async def parse_body(request: Request, model: type[M]) -> M:
    """
    Validate a JSON request body into ``model``.

    Raises:
        MalformedPayload: Body is not JSON or does not fit the model
    """
    raw_body = await request.body()
    try:
        payload = json.loads(raw_body or b"null")
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedPayload(f"request body is not valid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise MalformedPayload("request body must be a JSON object")

    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise MalformedPayload(_describe_validation_error(e)) from e


def error_response(error: Exception) -> JSONResponse:
    message = error.message if isinstance(error, NotifierError) else str(error)
    return JSONResponse(status_code=500, content={"message": message})


class NotifierController:
    """Add, remove and list the broadcasters a Discord server follows."""

    def __init__(self):
        self.logger = get_logger(__name__)

    async def add_notifier(
        self, request: Request, manager: SubscriptionManager
    ) -> Response:
        try:
            body = await parse_body(request, NotifierRequest)
            set_request_context(tenant_id=body.discord_server)
            await manager.add_tenant(body.twitch_url, body.discord_server)
        except NotifierError as e:
            self.logger.error(f"addTwitchNotifier failed: {e.message}")
            return error_response(e)
        return Response(status_code=200)

    async def remove_notifier(
        self, request: Request, manager: SubscriptionManager
    ) -> Response:
        try:
            body = await parse_body(request, NotifierRequest)
            set_request_context(tenant_id=body.discord_server)
            await manager.remove_tenant(body.twitch_url, body.discord_server)
        except NotifierError as e:
            self.logger.error(f"removeTwitchNotifier failed: {e.message}")
            return error_response(e)
        return Response(status_code=200)

    async def list_notifiers(
        self, request: Request, manager: SubscriptionManager
    ) -> Response:
        try:
            body = await parse_body(request, DiscordServerRequest)
            set_request_context(tenant_id=body.discord_server)
            urls = await manager.list_tenant_entities(body.discord_server)
        except NotifierError as e:
            self.logger.error(f"listTwitchNotifiers failed: {e.message}")
            return error_response(e)
        return JSONResponse(status_code=200, content=urls)
