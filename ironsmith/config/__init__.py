from .loader import ConfigNotFoundError, load_config
from .models import IronsmithConfig, PluginSpec

__all__ = [
    "ConfigNotFoundError",
    "IronsmithConfig",
    "PluginSpec",
    "load_config",
]
