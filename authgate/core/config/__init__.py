from authgate.core.config.manager import ConfigManager, get_config
from authgate.core.config.models import AppConfig

__all__ = ["AppConfig", "ConfigManager", "get_config"]
