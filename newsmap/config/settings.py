"""Application settings with environment variable support."""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="NEWSMAP_",  # NEWSMAP_CORS_PROXY_URL, NEWSMAP_SOURCES_PATH, etc.
        extra="ignore",
    )

    sources_path: Optional[Path] = None

    # Feed fetching. An empty proxy fetches feeds directly.
    cors_proxy_url: str = "https://api.allorigins.win/raw?url="
    feed_timeout_seconds: float = Field(20.0, gt=0)
    feed_fetch_max_attempts: int = Field(2, ge=1)
    feed_retry_backoff_seconds: float = Field(1.0, ge=0)
    max_concurrent_sources: int = Field(1, ge=1)

    # Article scraping
    enable_full_content_fetch: bool = True
    scrape_timeout_seconds: float = Field(10.0, gt=0)
    scraper_user_agent: str = DEFAULT_USER_AGENT
    content_min_length: int = Field(200, ge=0)

    # Feed parsing. An empty template leaves image_url unset.
    description_max_length: int = Field(250, gt=0)
    placeholder_image_template: str = "https://picsum.photos/seed/{seed}/160/90"

    # Analysis
    max_articles_to_analyze: int = Field(10, ge=1)


settings = Settings()
