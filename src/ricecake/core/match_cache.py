"""Match cache: menu composition → cached tray image or generation prompt.

The cache key is the menu's item names sorted ascending and joined with
``+``.  Category and id play no part, so ``[Kimchi (side), Rice (main)]`` and
``[Rice (side), Kimchi (main)]`` share an entry.  In the store the key is
namespaced as ``menu:<key>``.

Failure semantics
-----------------
The store is a best-effort accelerator.  Every store failure degrades:

- a failed read is treated as a miss (after checking the in-memory fallback)
- a failed write goes to the in-memory fallback instead
- anything else unexpected in :meth:`MatchCache.find_match` returns
  ``MatchResult(matched=False, confidence=0.0)``

Nothing in this module raises to its caller.  Degraded paths are logged and
counted (see :meth:`MatchCache.get_stats`).
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from ricecake.core.cache_store import CacheStoreBase, MemoryCacheStore
from ricecake.core.errors import CacheStoreError
from ricecake.core.models import MatchResult, MenuItem
from ricecake.core.prompt_composer import PromptComposer

logger = logging.getLogger(__name__)

KEY_PREFIX = "menu:"
DEFAULT_TTL_SECONDS = 24 * 60 * 60

HIT_CONFIDENCE = 1.0
PROMPT_CONFIDENCE = 0.8
FAILURE_CONFIDENCE = 0.0


def cache_key(items: Sequence[MenuItem]) -> str:
    """Canonical key for a menu: sorted names joined with ``+``."""
    return "+".join(sorted(item.name for item in items))


@dataclass
class CacheCounters:
    hits: int = 0
    misses: int = 0
    store_errors: int = 0


class MatchCache:
    """Look up and record tray images by menu composition.

    Args:
        store: Cache store chosen at startup.
        composer: Prompt composer used on a miss.
        ttl_seconds: Lifetime of saved entries.
    """

    def __init__(
        self,
        store: CacheStoreBase,
        composer: PromptComposer,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
    ) -> None:
        self.store = store
        self.composer = composer
        self.ttl_seconds = ttl_seconds
        # Holds entries whose durable write failed; lost on restart.
        self._fallback = MemoryCacheStore()
        self.counters = CacheCounters()
        logger.info("Match cache using %s store (ttl=%ss).", store.name, ttl_seconds)

    def _lookup(self, store_key: str) -> str | None:
        try:
            value = self.store.get(store_key)
        except CacheStoreError as e:
            self.counters.store_errors += 1
            logger.warning("Cache read failed, checking memory fallback: %s", e)
            value = None
        if value is None:
            value = self._fallback.get(store_key)
        return value

    def find_match(self, items: Sequence[MenuItem]) -> MatchResult:
        """Return a cached image for *items*, or a composed prompt on a miss.

        Args:
            items: Non-empty menu.

        Returns:
            ``MatchResult`` with confidence 1.0 (hit), 0.8 (prompt) or 0.0
            (internal failure).
        """
        try:
            key = cache_key(items)
            cached = self._lookup(KEY_PREFIX + key)
            if cached:
                self.counters.hits += 1
                logger.info("Cache hit for '%s': %s", key, cached)
                return MatchResult(matched=True, cached_image=cached, confidence=HIT_CONFIDENCE)

            self.counters.misses += 1
            prompt = self.composer.compose(items)
            logger.info("Cache miss for '%s', composed prompt.", key)
            return MatchResult(
                matched=True,
                reference_prompt=prompt,
                confidence=PROMPT_CONFIDENCE,
            )
        except Exception:
            logger.exception("Match lookup failed.")
            return MatchResult(matched=False, confidence=FAILURE_CONFIDENCE)

    def save_result(self, items: Sequence[MenuItem], image_url: str) -> None:
        """Record *image_url* as the tray for *items*.

        Never raises: generation already succeeded by the time this runs.
        """
        try:
            store_key = KEY_PREFIX + cache_key(items)
        except Exception:
            logger.exception("Could not derive cache key; result not cached.")
            return

        try:
            self.store.set_with_expiry(store_key, image_url, self.ttl_seconds)
            logger.info("Cached %s -> %s", store_key, image_url)
        except CacheStoreError as e:
            self.counters.store_errors += 1
            logger.warning("Cache write failed, saving to memory fallback: %s", e)
            self._fallback.set_with_expiry(store_key, image_url, self.ttl_seconds)

    def get_stats(self) -> dict:
        """Return cache statistics.

        Returns:
            Dictionary with ``total_cached``, ``total_food_items``, ``hits``,
            ``misses``, ``store_errors`` and ``backend``.
        """
        try:
            keys = set(self.store.keys_with_prefix(KEY_PREFIX))
        except CacheStoreError as e:
            self.counters.store_errors += 1
            logger.warning("Cache key listing failed: %s", e)
            keys = set()
        keys.update(self._fallback.keys_with_prefix(KEY_PREFIX))

        return {
            "backend": self.store.name,
            "total_cached": len(keys),
            "total_food_items": self.composer.library.food_count,
            "hits": self.counters.hits,
            "misses": self.counters.misses,
            "store_errors": self.counters.store_errors,
        }
