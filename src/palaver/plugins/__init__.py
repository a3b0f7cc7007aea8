"""Optional lifecycle plugins."""

from palaver.plugins.autoload import AutoLoad, AutoLoadConfig, auto_load

__all__ = ["AutoLoad", "AutoLoadConfig", "auto_load"]
