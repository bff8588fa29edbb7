"""
Controllers: request handling between the routes and the services.
"""

from .notifier_controller import NotifierController
from .webhook_controller import WebhookController

__all__ = ["NotifierController", "WebhookController"]
