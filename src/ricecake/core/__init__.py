"""Core functionality for tray image generation.

This package contains everything below the HTTP layer:

- **config**: Environment-based configuration using Pydantic Settings
- **prompt_library** / **prompt_composer**: Food prompt data and prompt
  construction for whole trays and single dishes
- **cache_store** / **match_cache**: Menu-composition cache with a durable
  SQLite store and an in-memory fallback
- **providers** / **food_images**: External image provider and per-item
  generation with retry and placeholder fallback
- **compositor**: Fixed-layout tray rendering
- **enhance** / **storage**: Enhancement filters and upload storage
- **tray_service**: The orchestrator used by the API

Usage Example
-------------
    from ricecake.core import TrayService, config

    service = TrayService.from_config(config)
    result = service.generate_tray(items)
"""

from ricecake.core.config import RiceCakeConfig, config
from ricecake.core.match_cache import MatchCache, cache_key
from ricecake.core.models import MatchResult, MenuItem, TrayResult
from ricecake.core.prompt_composer import PromptComposer
from ricecake.core.prompt_library import PromptLibrary
from ricecake.core.tray_service import TrayService

__all__ = [
    "MatchCache",
    "MatchResult",
    "MenuItem",
    "PromptComposer",
    "PromptLibrary",
    "RiceCakeConfig",
    "TrayResult",
    "TrayService",
    "cache_key",
    "config",
]
