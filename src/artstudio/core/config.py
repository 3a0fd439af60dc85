"""Configuration management for Digital Art Studio.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the ARTSTUDIO_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (ARTSTUDIO_* prefix)
2. .env file in the project root
3. Default values defined in StudioConfig

The OpenAI API key is the one exception to the prefix rule: it is read from
``ARTSTUDIO_OPENAI_API_KEY`` or, failing that, the conventional
``OPENAI_API_KEY`` variable used by the OpenAI SDK.

Example .env file:
    OPENAI_API_KEY=sk-...
    ARTSTUDIO_DEFAULT_MODEL=gpt-image-1
    ARTSTUDIO_SERVER_PORT=7860

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
This ensures a single source of truth for all configuration values across
the application.

Usage Example
-------------
    from artstudio.core.config import config

    print(config.default_model)
    print(config.proxy_url)

A missing API key is not a startup error.  The proxy reports it per request,
so the home page and the studio still load without credentials.
"""

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_DIR = Path(__file__).resolve().parent.parent


class StudioConfig(BaseSettings):
    """Main configuration for Digital Art Studio.

    Attributes
    ----------
    Image API Settings:
        openai_api_key : str | None
            Credential for the hosted image API.  Absent means every proxy
            request fails with a configuration error.
        openai_base_url : str | None
            Optional override of the API base URL (proxies, compatible hosts)
        default_model : str
            Model used when a request does not name one
        default_size : str
            Resolution used when a request does not name one
        variation_model : str
            Variation-capable model substituted for non-DALL-E models

    Gallery Settings:
        gallery_max_items : int
            Maximum number of gallery items kept (oldest evicted first)
        gallery_storage_key : str
            Browser storage key holding the serialized gallery
        gallery_quota_bytes : int
            Storage quota for the serialized gallery
        browser_state_secret : str
            Secret used to encrypt the gallery in browser storage

    Server Settings:
        api_base_url : str | None
            URL the studio uses to reach the proxy (defaults to the local server)
        server_host : str
            Server bind address (0.0.0.0 for local network)
        server_port : int
            Server port (1024-65535)
        log_level : str
            Root logging level
        templates_dir : Path
            Directory containing ``index.html``
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="ARTSTUDIO_",
        case_sensitive=False,
        extra="ignore",
    )

    # Image API settings
    openai_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("ARTSTUDIO_OPENAI_API_KEY", "OPENAI_API_KEY", "openai_api_key"),
        description="API key for the hosted image generation service",
    )
    openai_base_url: str | None = Field(
        default=None,
        description="Optional base URL override for the image API",
    )
    default_model: str = Field(
        default="gpt-image-1",
        description="Model used when the request does not specify one",
    )
    default_size: Literal["256x256", "512x512", "1024x1024", "2048x2048"] = Field(
        default="1024x1024",
        description="Resolution used when the request does not specify one",
    )
    variation_model: str = Field(
        default="dall-e-2",
        description="Variation-capable model used when the requested model cannot do variations",
    )

    # Gallery settings
    gallery_max_items: int = Field(default=100, ge=1, le=1000)
    gallery_storage_key: str = Field(default="studio-gallery")
    gallery_quota_bytes: int = Field(
        default=5 * 1024 * 1024,
        ge=0,
        description="Byte quota for the persisted gallery (browser localStorage sized)",
    )
    browser_state_secret: str = Field(
        default="artstudio-gallery",
        description="Secret for encrypting the gallery in browser storage",
    )

    # Server settings
    api_base_url: str | None = Field(
        default=None,
        description="Proxy URL used by the studio (defaults to the local server)",
    )
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address (0.0.0.0 for local network)",
    )
    server_port: int = Field(
        default=7860,
        description="Server port",
        ge=1024,
        le=65535,
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    templates_dir: Path = Field(default=PACKAGE_DIR / "templates")

    @property
    def proxy_url(self) -> str:
        """Base URL of the request proxy as seen from the studio."""
        if self.api_base_url:
            return self.api_base_url.rstrip("/")
        return f"http://127.0.0.1:{self.server_port}"


# Global configuration instance
# Loads values from environment variables (ARTSTUDIO_* prefix) and .env file.
config = StudioConfig()
