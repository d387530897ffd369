from docs_browser.config.loader import YamlConfigLoader
from docs_browser.config.models import AppConfig, ConfigLoadRequest

__all__ = ["AppConfig", "ConfigLoadRequest", "YamlConfigLoader"]
