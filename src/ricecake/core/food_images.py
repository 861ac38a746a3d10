"""Per-item food image generation with timeout, retry and placeholder fallback.

For every menu item :class:`FoodImageGenerator` performs:

1. Build a single-dish prompt with :meth:`PromptComposer.describe`.
2. Ask the provider for one image, bounded by ``generation_timeout``.
   A :class:`~ricecake.core.errors.RateLimitError` is retried up to
   ``rate_limit_retries`` times with ``retry_delay`` seconds between
   attempts, reusing the same prompt and timeout.  A timeout is terminal.
3. Download the returned URL (``download_timeout``) and check that the bytes
   decode as an image.
4. On any failure, substitute the deterministic placeholder for the dish.

:meth:`FoodImageGenerator.generate_one` therefore never raises: one bad dish
degrades to a placeholder instead of aborting the whole tray.

Items are processed sequentially.  Worst-case latency per item is
``timeout * (1 + retries) + retries * delay``.
"""

from __future__ import annotations

import io
import logging
import time
from collections.abc import Callable, Sequence

import httpx
from PIL import Image

from ricecake.core.config import RiceCakeConfig
from ricecake.core.errors import (
    ProviderError,
    ProviderTimeoutError,
    RateLimitError,
)
from ricecake.core.models import MenuItem
from ricecake.core.placeholders import create_placeholder
from ricecake.core.prompt_composer import PromptComposer
from ricecake.core.providers import ImageProviderBase

logger = logging.getLogger(__name__)


def verify_image(data: bytes) -> None:
    """Raise :class:`ProviderError` unless *data* decodes as an image."""
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.verify()
    except Exception as e:
        raise ProviderError(f"Downloaded data is not a valid image: {e}") from e


class FoodImageGenerator:
    """Generate one photo per dish through an external provider.

    Args:
        provider: Image provider.
        composer: Prompt composer for single-dish prompts.
        config: Supplies size/quality/style, timeouts and retry budget.
        http_client: Client used to download generated images.
        sleep: Delay function between rate-limited attempts.
    """

    def __init__(
        self,
        provider: ImageProviderBase,
        composer: PromptComposer,
        config: RiceCakeConfig,
        http_client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.provider = provider
        self.composer = composer
        self.config = config
        self._http = http_client if http_client is not None else httpx.Client(
            follow_redirects=True
        )
        self._sleep = sleep

    # -- Provider call ------------------------------------------------------

    def request_image_url(self, prompt: str, subject: str) -> str:
        """Call the provider with the rate-limit retry budget.

        Args:
            prompt: Generation prompt.
            subject: Dish name, used in log lines and error messages.

        Returns:
            URL of the generated image.

        Raises:
            ProviderError: Retries exhausted or a non-retryable failure.
        """
        retries_left = self.config.rate_limit_retries
        while True:
            logger.info("Requesting image for '%s' (model=%s).", subject, self.config.image_model)
            try:
                return self.provider.generate(
                    prompt,
                    size=self.config.image_size,
                    quality=self.config.image_quality,
                    style=self.config.image_style,
                    timeout=self.config.generation_timeout,
                )
            except RateLimitError:
                if retries_left <= 0:
                    raise
                logger.warning(
                    "Rate limited on '%s', retrying in %.1fs (%d left).",
                    subject,
                    self.config.retry_delay,
                    retries_left,
                )
                retries_left -= 1
                self._sleep(self.config.retry_delay)
            except ProviderTimeoutError as e:
                raise ProviderTimeoutError(subject, e.timeout) from e

    def download(self, url: str) -> bytes:
        """Fetch a generated image and verify it decodes.

        Raises:
            ProviderError: HTTP failure or undecodable payload.
        """
        try:
            response = self._http.get(url, timeout=self.config.download_timeout)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise ProviderError(f"Image download failed: {e}") from e
        data = response.content
        verify_image(data)
        return data

    # -- Public interface ---------------------------------------------------

    def generate_preview(self, name: str, category: str) -> bytes:
        """Generate one dish photo, raising on failure (no placeholder).

        Raises:
            ProviderError: Generation or download failed.
        """
        prompt = self.composer.describe(name, category)
        url = self.request_image_url(prompt, name)
        return self.download(url)

    def generate_one(self, item: MenuItem) -> bytes:
        """Return image bytes for *item*, falling back to a placeholder.

        Never raises.
        """
        prompt = self.composer.describe(item.name, item.category)
        logger.debug("Prompt for '%s': %s", item.name, prompt)
        try:
            url = self.request_image_url(prompt, item.name)
            data = self.download(url)
        except ProviderError as e:
            logger.warning("Using placeholder for '%s': %s", item.name, e)
            return create_placeholder(item.name)
        except Exception:
            logger.exception("Unexpected failure generating '%s'; using placeholder.", item.name)
            return create_placeholder(item.name)

        logger.info("Image for '%s' ready (%d bytes).", item.name, len(data))
        return data

    def generate_all(self, items: Sequence[MenuItem]) -> list[tuple[MenuItem, bytes]]:
        """Generate images for *items* sequentially, in input order."""
        return [(item, self.generate_one(item)) for item in items]
