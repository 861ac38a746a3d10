"""Tray generation orchestrator.

:class:`TrayService` ties the components together and is the only object the
API layer talks to.

Tray generation state machine
-----------------------------
::

    START → CACHE_LOOKUP ─┬─ hit  → DONE (cached=True)
                          └─ miss → PER_ITEM_GENERATE → COMPOSITE
                                    → PERSIST_FILE → CACHE_SAVE → DONE

- Without a configured provider the miss branch goes straight to the mock
  tray.
- Any exception inside the miss branch falls back to the mock tray, which is
  also persisted and cached.
- Only a failure of the mock path propagates, as
  :class:`~ricecake.core.errors.TrayGenerationError`.

Usage
-----
::

    from ricecake.core.config import config
    from ricecake.core.tray_service import TrayService

    service = TrayService.from_config(config)
    result = service.generate_tray(items, "standard")
    print(result.image_url, result.cached, result.mock)
"""

from __future__ import annotations

import logging
import time
import uuid
from collections import deque
from collections.abc import Sequence
from pathlib import Path

from ricecake.core.cache_store import open_cache_store
from ricecake.core.compositor import STANDARD, TrayCompositor
from ricecake.core.config import RiceCakeConfig
from ricecake.core.enhance import enhance_image
from ricecake.core.errors import ProviderUnavailableError, TrayGenerationError
from ricecake.core.food_images import FoodImageGenerator
from ricecake.core.match_cache import MatchCache
from ricecake.core.models import ImageResult, MenuItem, TrayResult
from ricecake.core.prompt_composer import PromptComposer
from ricecake.core.prompt_library import PromptLibrary
from ricecake.core.providers import ImageProviderBase, build_provider
from ricecake.core.storage import ImageStorage

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 10


class TrayService:
    """Generate, cache, preview and enhance tray images.

    Args:
        match_cache: Menu composition cache.
        storage: Upload storage.
        compositor: Tray renderer.
        food_images: Per-item generator, or ``None`` when no provider is
            configured.
    """

    def __init__(
        self,
        match_cache: MatchCache,
        storage: ImageStorage,
        compositor: TrayCompositor,
        food_images: FoodImageGenerator | None = None,
    ) -> None:
        self.match_cache = match_cache
        self.storage = storage
        self.compositor = compositor
        self.food_images = food_images
        self._history: deque[dict] = deque(maxlen=HISTORY_LIMIT)

    @classmethod
    def from_config(
        cls,
        config: RiceCakeConfig,
        provider: ImageProviderBase | None = None,
    ) -> TrayService:
        """Wire up a service from configuration.

        Args:
            config: Application configuration.
            provider: Overrides the provider built from *config*.
        """
        composer = PromptComposer(PromptLibrary())
        match_cache = MatchCache(open_cache_store(config), composer, config.cache_ttl_seconds)
        provider = provider if provider is not None else build_provider(config)
        food_images = (
            FoodImageGenerator(provider, composer, config) if provider is not None else None
        )
        return cls(
            match_cache=match_cache,
            storage=ImageStorage(config.uploads_dir),
            compositor=TrayCompositor(),
            food_images=food_images,
        )

    # -- Tray generation ----------------------------------------------------

    def generate_tray(
        self,
        items: Sequence[MenuItem],
        template_id: str = STANDARD,
    ) -> TrayResult:
        """Return a tray image for *items*, from cache or freshly generated.

        Args:
            items: Non-empty, validated menu.
            template_id: Tray layout.

        Returns:
            :class:`TrayResult` describing where the image lives and how it
            was produced.

        Raises:
            TrayGenerationError: Both the real and the mock path failed.
        """
        names = [item.name for item in items]
        logger.info("Tray requested: %s (template=%s)", names, template_id)

        match = self.match_cache.find_match(items)
        if match.is_hit:
            result = TrayResult(
                image_url=match.cached_image,
                cached=True,
                mock=False,
                confidence=match.confidence,
            )
            self._remember(names, result)
            return result

        if self.food_images is None:
            logger.info("No image provider configured; rendering mock tray.")
            result = self._generate_mock_tray(items, cause=None)
        else:
            try:
                result = self._generate_real_tray(items, template_id)
            except Exception as e:
                logger.warning(
                    "Tray generation failed, falling back to mock tray: %s",
                    e,
                    exc_info=True,
                )
                result = self._generate_mock_tray(items, cause=e)

        self._remember(names, result)
        return result

    def _generate_real_tray(self, items: Sequence[MenuItem], template_id: str) -> TrayResult:
        images = self.food_images.generate_all(items)
        logger.info("Generated %d food images.", len(images))

        tray = self.compositor.compose(images, template_id)
        image_url = self.storage.save(tray, "tray")

        self.match_cache.save_result(items, image_url)
        return TrayResult(image_url=image_url, cached=False, mock=False)

    def _generate_mock_tray(
        self,
        items: Sequence[MenuItem],
        cause: Exception | None,
    ) -> TrayResult:
        try:
            image_url = self.storage.save(self.compositor.render_mock_tray(), "mock_tray")
        except Exception as e:
            logger.exception("Mock tray generation failed.")
            detail = f"; original error: {cause}" if cause is not None else ""
            raise TrayGenerationError(f"Tray image generation failed: {e}{detail}") from e

        self.match_cache.save_result(items, image_url)
        return TrayResult(image_url=image_url, cached=False, mock=True)

    def _remember(self, names: list[str], result: TrayResult) -> None:
        self._history.appendleft(
            {
                "id": str(uuid.uuid4()),
                "created_at": time.time(),
                "items": names,
                "image_url": result.image_url,
                "cached": result.cached,
                "mock": result.mock,
            }
        )

    def recent_history(self) -> list[dict]:
        """Most recent tray results, newest first (not persisted)."""
        return list(self._history)

    # -- Single images ------------------------------------------------------

    def preview_food(self, name: str, category: str) -> ImageResult:
        """Generate and store one dish photo.

        Raises:
            ProviderUnavailableError: No provider is configured.
            ProviderError: Generation or download failed.
        """
        if self.food_images is None:
            raise ProviderUnavailableError(
                "No image provider configured. Set RICECAKE_OPENAI_API_KEY."
            )
        data = self.food_images.generate_preview(name, category)
        return ImageResult(image_url=self.storage.save(data, "food"))

    def enhance(self, image_url: str, kind: str) -> ImageResult:
        """Apply an enhancement filter to a stored image.

        Raises:
            ImageNotFoundError: *image_url* does not name a stored image.
            ImageProcessingError: The stored file is not a decodable image.
        """
        enhanced = enhance_image(self.storage.read(image_url), kind)
        return ImageResult(image_url=self.storage.save(enhanced, "enhanced"))

    def find_cached_path(self, image_id: str) -> Path | None:
        """Path of the stored ``<image_id>.png``, or ``None``."""
        return self.storage.find(image_id)

    def get_stats(self) -> dict:
        return self.match_cache.get_stats()
