"""Configuration management for the RiceCake tray generator.

Settings are read by pydantic-settings.  Sources, highest precedence first:

1. keyword arguments passed to ``RiceCakeConfig(...)``
2. ``RICECAKE_*`` environment variables
3. a ``.env`` file in the working directory
4. the field defaults below

The OpenAI key is also accepted under its conventional name, ``OPENAI_API_KEY``.

Example .env file:
    RICECAKE_OPENAI_API_KEY=sk-...
    RICECAKE_CACHE_BACKEND=sqlite
    RICECAKE_CACHE_DB_PATH=data/cache.sqlite
    RICECAKE_UPLOADS_DIR=uploads

Shared Instance
---------------
Importing this module builds ``config`` once; the API and the CLI entry point
both read from it.  Tests build their own ``RiceCakeConfig`` instead.

Usage Example
-------------
    from ricecake.core.config import config

    print(config.image_model)
    print(config.uploads_dir)

Generation Budget
-----------------
Per-item generation is bounded by three settings:
- generation_timeout: seconds the provider may take for one attempt
- rate_limit_retries: extra attempts granted after a rate-limit response
- retry_delay: seconds slept between attempts

The worst case for one item is therefore
``generation_timeout * (1 + rate_limit_retries) + rate_limit_retries * retry_delay``.
"""

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RiceCakeConfig(BaseSettings):
    """Main configuration for the RiceCake tray generator.

    Every field can be set through ``RICECAKE_<FIELD_NAME>``.

    Attributes
    ----------
    Image Provider Settings:
        openai_api_key : str | None
            API key for the OpenAI Images API.  When unset, tray generation
            goes straight to the mock tray path.
        image_model : str
            Image model identifier (dall-e-3)
        image_size, image_quality, image_style : str
            Parameters forwarded to every generation request
        generation_timeout : float
            Seconds allowed for a single provider call
        rate_limit_retries : int
            Extra attempts after a rate-limit response
        retry_delay : float
            Seconds to wait between rate-limited attempts
        download_timeout : float
            Seconds allowed to download a generated image

    Cache Settings:
        cache_backend : Literal["sqlite", "memory"]
            Durable SQLite store or process-local memory store
        cache_db_path : Path
            SQLite database file for the durable store
        cache_ttl_seconds : int
            Lifetime of a cached tray (24 hours by default)

    Paths:
        uploads_dir : Path
            Directory where tray, preview and enhanced images are written

    Server Settings:
        server_host : str
            Bind address for uvicorn
        server_port : int
            Port for uvicorn (1024-65535)

    Notes
    -----
    - ``uploads_dir`` is created on construction; the cache directory is
      left to the SQLite store.
    - Settings are read once; changes need a restart.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RICECAKE_",
        case_sensitive=False,
        populate_by_name=True,
    )

    # Image provider
    openai_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "openai_api_key", "RICECAKE_OPENAI_API_KEY", "OPENAI_API_KEY"
        ),
        description="OpenAI API key (unset = mock trays only)",
    )
    image_model: str = Field(default="dall-e-3", description="Image generation model")
    image_size: str = Field(default="1024x1024", description="Requested image size")
    image_quality: str = Field(default="standard", description="Requested image quality")
    image_style: str = Field(default="natural", description="Requested image style")

    # Per-item generation budget
    generation_timeout: float = Field(
        default=30.0,
        description="Seconds allowed for one provider call",
        gt=0,
    )
    rate_limit_retries: int = Field(
        default=3,
        description="Extra attempts after a rate-limit response",
        ge=0,
        le=10,
    )
    retry_delay: float = Field(
        default=2.0,
        description="Seconds between rate-limited attempts",
        ge=0,
    )
    download_timeout: float = Field(
        default=30.0,
        description="Seconds allowed to download a generated image",
        gt=0,
    )

    # Match cache
    cache_backend: Literal["sqlite", "memory"] = Field(
        default="sqlite",
        description="Cache store implementation chosen at startup",
    )
    cache_db_path: Path = Field(
        default=Path("data/cache.sqlite"),
        description="SQLite file for the durable cache store",
    )
    cache_ttl_seconds: int = Field(
        default=86400,
        description="Cached tray lifetime in seconds",
        ge=1,
    )

    # Paths
    uploads_dir: Path = Field(
        default=Path("uploads"),
        description="Directory for generated images",
    )

    # Server
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address",
    )
    server_port: int = Field(
        default=5000,
        description="Server port",
        ge=1024,
        le=65535,
    )

    def __init__(self, **kwargs):
        """Initialize configuration and create the uploads directory.

        Args:
            **kwargs: Field overrides, mainly used by tests.
        """
        super().__init__(**kwargs)

        # The cache database directory is created lazily by the SQLite store,
        # so a memory-only deployment never touches it.
        self.uploads_dir.mkdir(parents=True, exist_ok=True)

    @property
    def has_provider(self) -> bool:
        """Whether an external image provider is configured."""
        return bool(self.openai_api_key)


# Shared instance built from the environment and .env.
config = RiceCakeConfig()
