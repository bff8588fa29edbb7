"""Subscription and dedup persistence backends."""

from .store_factory import create_subscription_store

__all__ = ["create_subscription_store"]
