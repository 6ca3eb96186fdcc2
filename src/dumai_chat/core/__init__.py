"""Core utilities for DumAI chat"""

from dumai_chat.core.config import Settings, get_settings, settings
from dumai_chat.core.logging import configure_logging, get_logger

__all__ = ["Settings", "settings", "get_settings", "configure_logging", "get_logger"]
