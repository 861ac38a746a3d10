"""Shared pytest fixtures for RiceCake tests."""

from __future__ import annotations

import io
import shutil
import tempfile
from collections.abc import Callable, Generator
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from ricecake.api.main import create_app
from ricecake.core.cache_store import SqliteCacheStore
from ricecake.core.compositor import TrayCompositor
from ricecake.core.config import RiceCakeConfig
from ricecake.core.food_images import FoodImageGenerator
from ricecake.core.match_cache import MatchCache
from ricecake.core.models import MenuItem
from ricecake.core.prompt_composer import PromptComposer
from ricecake.core.providers import ImageProviderBase
from ricecake.core.storage import ImageStorage
from ricecake.core.tray_service import TrayService

IMAGE_HOST = "https://images.test"


def make_png(color: tuple[int, int, int] = (255, 0, 0), size: tuple[int, int] = (64, 64)) -> bytes:
    """Encode a solid-colour RGB image as PNG bytes."""
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


class FakeProvider(ImageProviderBase):
    """Scriptable in-memory image provider.

    Attributes:
        calls: Every prompt received, in order.
        scripted: keyword → list of exceptions raised (one per call) while the
            prompt contains the keyword.
        always_fail: keyword → exception raised on every matching call.
        urls: keyword → URL returned for matching prompts.
    """

    name = "fake"

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.timeouts: list[float] = []
        self.scripted: dict[str, list[Exception]] = {}
        self.always_fail: dict[str, Exception] = {}
        self.urls: dict[str, str] = {}

    def generate(self, prompt, *, size, quality, style, timeout):
        self.calls.append(prompt)
        self.timeouts.append(timeout)
        for keyword, error in self.always_fail.items():
            if keyword in prompt:
                raise error
        for keyword, errors in self.scripted.items():
            if keyword in prompt and errors:
                raise errors.pop(0)
        for keyword, url in self.urls.items():
            if keyword in prompt:
                return url
        return f"{IMAGE_HOST}/default.png"


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config(temp_dir: Path) -> RiceCakeConfig:
    """Configuration pointing at temporary directories, with no retry delay."""
    return RiceCakeConfig(
        _env_file=None,
        openai_api_key="test-key",
        uploads_dir=temp_dir / "uploads",
        cache_backend="sqlite",
        cache_db_path=temp_dir / "data" / "cache.sqlite",
        generation_timeout=1.5,
        rate_limit_retries=3,
        retry_delay=0.25,
    )


@pytest.fixture
def hosted_images() -> dict[str, bytes]:
    """URL path → payload served by :func:`image_client`.

    ``/default.png`` is red; tests add entries as needed.
    """
    return {"/default.png": make_png((255, 0, 0))}


@pytest.fixture
def image_client(hosted_images: dict[str, bytes]) -> Generator[httpx.Client, None, None]:
    """httpx client whose transport serves :func:`hosted_images`."""

    def handler(request: httpx.Request) -> httpx.Response:
        payload = hosted_images.get(request.url.path)
        if payload is None:
            return httpx.Response(404)
        return httpx.Response(200, content=payload, headers={"content-type": "image/png"})

    client = httpx.Client(transport=httpx.MockTransport(handler))
    try:
        yield client
    finally:
        client.close()


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def sleeps() -> list[float]:
    """Records every retry delay instead of sleeping."""
    return []


@pytest.fixture
def composer() -> PromptComposer:
    return PromptComposer()


@pytest.fixture
def food_images(
    fake_provider: FakeProvider,
    composer: PromptComposer,
    test_config: RiceCakeConfig,
    image_client: httpx.Client,
    sleeps: list[float],
) -> FoodImageGenerator:
    return FoodImageGenerator(
        fake_provider,
        composer,
        test_config,
        http_client=image_client,
        sleep=sleeps.append,
    )


@pytest.fixture
def tray_service(
    test_config: RiceCakeConfig,
    composer: PromptComposer,
    food_images: FoodImageGenerator,
) -> TrayService:
    """Fully wired service using the fake provider and a temporary SQLite cache."""
    return TrayService(
        match_cache=MatchCache(
            SqliteCacheStore(test_config.cache_db_path),
            composer,
            test_config.cache_ttl_seconds,
        ),
        storage=ImageStorage(test_config.uploads_dir),
        compositor=TrayCompositor(),
        food_images=food_images,
    )


@pytest.fixture
def test_client(
    test_config: RiceCakeConfig, tray_service: TrayService
) -> Generator[TestClient, None, None]:
    """FastAPI TestClient bound to :func:`tray_service`."""
    with TestClient(create_app(test_config, service=tray_service)) as client:
        yield client


@pytest.fixture
def item_factory() -> Callable[..., MenuItem]:
    """Build menu items with sequential ids."""
    counter = {"n": 0}

    def make(name: str, category: str = "side", **kwargs) -> MenuItem:
        counter["n"] += 1
        item_id = kwargs.pop("id", f"item-{counter['n']}")
        return MenuItem(id=item_id, name=name, category=category, **kwargs)

    return make


@pytest.fixture
def sample_menu() -> list[MenuItem]:
    """The canonical four-item lunch."""
    return [
        MenuItem(id="1", name="Kimchi Stew", category="main"),
        MenuItem(id="2", name="Pork Stir-fry", category="side"),
        MenuItem(id="3", name="Kimchi", category="side"),
        MenuItem(id="4", name="Seaweed Soup", category="soup"),
    ]


@pytest.fixture
def image_host() -> str:
    """Base URL served by :func:`image_client`."""
    return IMAGE_HOST


@pytest.fixture
def png_factory() -> Callable[..., bytes]:
    """Expose :func:`make_png` to test modules."""
    return make_png
