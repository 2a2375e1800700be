"""Driver configuration."""

from osprov.config.config_manager import ConfigManager
from osprov.config.driver_config import DriverConfig

__all__ = ["ConfigManager", "DriverConfig"]
