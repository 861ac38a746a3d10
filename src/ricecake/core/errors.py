"""Exception hierarchy for the RiceCake tray generator.

Errors fall into two tiers:

**Recoverable** — raised close to an external collaborator and caught one
layer up, where they are logged and degraded (placeholder image, cache miss,
mock tray).  They never reach an API caller:

- :class:`RateLimitError`, :class:`ProviderTimeoutError` and
  :class:`ProviderError` inside per-item generation
- :class:`CacheStoreError` inside the match cache

**Fatal** — propagated to the caller and mapped to an HTTP status by the API
layer:

- :class:`TrayGenerationError` — even the mock tray could not be produced
- :class:`ProviderUnavailableError` — no provider configured for a preview
- :class:`ProviderError` — a preview generation failed
- :class:`ImageNotFoundError` — a referenced upload does not exist
- :class:`ImageProcessingError` — an upload could not be decoded or filtered
"""

from __future__ import annotations


class RiceCakeError(Exception):
    """Base class for every error raised by the tray generator."""


class ProviderError(RiceCakeError):
    """The image provider rejected or failed a generation request."""


class RateLimitError(ProviderError):
    """The image provider reported a rate-limit condition (retryable)."""


class ProviderTimeoutError(ProviderError):
    """A provider call did not finish inside its timeout window."""

    def __init__(self, subject: str, timeout: float) -> None:
        super().__init__(f"{subject} image generation timed out ({timeout:g}s)")
        self.timeout = timeout


class ProviderUnavailableError(ProviderError):
    """No image provider is configured."""


class CacheStoreError(RiceCakeError):
    """The cache store could not be read or written."""


class ImageNotFoundError(RiceCakeError):
    """A referenced image file does not exist under the upload root."""


class ImageProcessingError(RiceCakeError):
    """An image could not be decoded, filtered or encoded."""


class TrayGenerationError(RiceCakeError):
    """Tray generation failed on both the real and the mock path."""
