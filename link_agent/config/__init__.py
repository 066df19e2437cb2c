# Configuration module for the MAAS link agent
from .manager import ConfigManager

__all__ = ["ConfigManager"]
