"""
Client configuration: pydantic models persisted as `config/bridge.json`.
"""

from bridge.core.config.manager import ConfigManager
from bridge.core.config.models import BridgeConfig
from bridge.core.config.paths import ConfigFsPaths

__all__ = ["BridgeConfig", "ConfigFsPaths", "ConfigManager"]
