"""Built-in plugins."""

from .notifier_core_plugin import NotifierCorePlugin, install_services
from .redis_plugin import RedisPlugin

__all__ = ["NotifierCorePlugin", "RedisPlugin", "install_services"]
