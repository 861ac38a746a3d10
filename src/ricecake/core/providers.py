"""External text-to-image providers.

A provider turns a prompt into the URL of a generated image.  The rest of the
application only sees :class:`ImageProviderBase` and the provider errors from
:mod:`ricecake.core.errors`:

- :class:`~ricecake.core.errors.RateLimitError` — retryable
- :class:`~ricecake.core.errors.ProviderTimeoutError` — the call exceeded
  its timeout window
- :class:`~ricecake.core.errors.ProviderError` — anything else

:class:`OpenAIImageProvider` wraps the OpenAI Images API.  The SDK's own
retry loop is disabled (``max_retries=0``) because retry policy belongs to
:mod:`ricecake.core.food_images`; the per-request ``timeout`` aborts the
HTTP call when the window expires.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import openai

from ricecake.core.config import RiceCakeConfig
from ricecake.core.errors import ProviderError, ProviderTimeoutError, RateLimitError

logger = logging.getLogger(__name__)


class ImageProviderBase(ABC):
    """Capability: ``generate(prompt, ...) -> image URL``."""

    name: str = "base"

    @abstractmethod
    def generate(
        self,
        prompt: str,
        *,
        size: str,
        quality: str,
        style: str,
        timeout: float,
    ) -> str:
        """Generate one image and return its URL.

        Raises:
            RateLimitError: The provider asked the caller to slow down.
            ProviderTimeoutError: No answer inside *timeout* seconds.
            ProviderError: Any other failure, including a response without URL.
        """


class OpenAIImageProvider(ImageProviderBase):
    """OpenAI Images API provider.

    Args:
        api_key: OpenAI API key.
        model: Image model name (``dall-e-3``).
        client: Pre-built client, mainly for tests.
    """

    name = "openai"

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "dall-e-3",
        client: openai.OpenAI | None = None,
    ) -> None:
        self.model = model
        self._client = client if client is not None else openai.OpenAI(
            api_key=api_key,
            max_retries=0,
        )
        logger.info("OpenAI image provider initialised (model=%s).", model)

    def generate(
        self,
        prompt: str,
        *,
        size: str,
        quality: str,
        style: str,
        timeout: float,
    ) -> str:
        try:
            response = self._client.images.generate(
                model=self.model,
                prompt=prompt,
                n=1,
                size=size,
                quality=quality,
                style=style,
                timeout=timeout,
            )
        except openai.RateLimitError as e:
            raise RateLimitError(str(e)) from e
        except openai.APITimeoutError as e:
            raise ProviderTimeoutError("OpenAI", timeout) from e
        except openai.OpenAIError as e:
            raise ProviderError(f"OpenAI image request failed: {e}") from e

        url = response.data[0].url if response.data else None
        if not url:
            raise ProviderError("OpenAI response did not include an image URL")
        return url


def build_provider(config: RiceCakeConfig) -> ImageProviderBase | None:
    """Return the configured provider, or ``None`` when no API key is set."""
    if not config.has_provider:
        logger.info("No image provider configured; trays will use the mock path.")
        return None
    return OpenAIImageProvider(api_key=config.openai_api_key, model=config.image_model)
