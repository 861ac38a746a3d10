"""Tests for ricecake.core.providers — OpenAI error mapping and provider wiring."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import openai
import pytest

from ricecake.core.config import RiceCakeConfig
from ricecake.core.errors import ProviderError, ProviderTimeoutError, RateLimitError
from ricecake.core.providers import OpenAIImageProvider, build_provider

API_URL = "https://api.openai.com/v1/images/generations"


def _request() -> httpx.Request:
    return httpx.Request("POST", API_URL)


def _generate(provider: OpenAIImageProvider) -> str:
    return provider.generate(
        "a photo of rice",
        size="1024x1024",
        quality="standard",
        style="natural",
        timeout=12.0,
    )


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def provider(client):
    return OpenAIImageProvider(client=client)


class TestOpenAIImageProvider:
    """Test request forwarding and error translation."""

    def test_returns_first_url(self, provider, client):
        client.images.generate.return_value = SimpleNamespace(
            data=[SimpleNamespace(url="https://cdn.test/rice.png")]
        )
        assert _generate(provider) == "https://cdn.test/rice.png"

    def test_forwards_request_options(self, provider, client):
        client.images.generate.return_value = SimpleNamespace(
            data=[SimpleNamespace(url="https://cdn.test/rice.png")]
        )
        _generate(provider)
        client.images.generate.assert_called_once_with(
            model="dall-e-3",
            prompt="a photo of rice",
            n=1,
            size="1024x1024",
            quality="standard",
            style="natural",
            timeout=12.0,
        )

    def test_rate_limit(self, provider, client):
        client.images.generate.side_effect = openai.RateLimitError(
            "slow down",
            response=httpx.Response(429, request=_request()),
            body=None,
        )
        with pytest.raises(RateLimitError):
            _generate(provider)

    def test_timeout(self, provider, client):
        client.images.generate.side_effect = openai.APITimeoutError(request=_request())
        with pytest.raises(ProviderTimeoutError) as exc_info:
            _generate(provider)
        assert exc_info.value.timeout == 12.0
        assert "timed out (12s)" in str(exc_info.value)

    def test_other_api_error(self, provider, client):
        client.images.generate.side_effect = openai.APIConnectionError(request=_request())
        with pytest.raises(ProviderError) as exc_info:
            _generate(provider)
        assert not isinstance(exc_info.value, (RateLimitError, ProviderTimeoutError))

    @pytest.mark.parametrize("data", [[], [SimpleNamespace(url=None)]])
    def test_missing_url(self, provider, client, data):
        client.images.generate.return_value = SimpleNamespace(data=data)
        with pytest.raises(ProviderError, match="did not include an image URL"):
            _generate(provider)


class TestBuildProvider:
    """Test provider construction from configuration."""

    def test_no_key_means_no_provider(self, temp_dir, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        monkeypatch.delenv("RICECAKE_OPENAI_API_KEY", raising=False)
        config = RiceCakeConfig(_env_file=None, uploads_dir=temp_dir / "uploads")
        assert build_provider(config) is None

    def test_key_builds_openai_provider(self, test_config):
        provider = build_provider(test_config)
        assert isinstance(provider, OpenAIImageProvider)
        assert provider.model == "dall-e-3"
