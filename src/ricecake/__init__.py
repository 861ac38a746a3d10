"""RiceCake - cafeteria tray images from menu items."""

__version__ = "2.0.0"

from ricecake.core.config import RiceCakeConfig, config
from ricecake.core.tray_service import TrayService

__all__ = [
    "RiceCakeConfig",
    "TrayService",
    "config",
]
