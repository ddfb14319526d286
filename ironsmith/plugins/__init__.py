"""Plugin resolution for config-driven builds."""

from ironsmith.plugins.loader import PluginLoader, PluginLoadError, PluginNotFoundError

__all__ = ["PluginLoadError", "PluginLoader", "PluginNotFoundError"]
