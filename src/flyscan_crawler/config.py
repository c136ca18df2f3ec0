"""Crawler configuration via environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class CrawlerSettings(BaseSettings):
    """Settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FLYSCAN_", env_file=".env", extra="ignore"
    )

    # Rate limit shared by every upstream call in the process
    rate_per_second: float = 10.0
    max_concurrent_requests: int = 4

    # Retry policy
    retry_max_attempts: int = 3
    retry_base_delay: float = 1.0
    retry_max_delay: float = 30.0

    # Timeouts (seconds)
    timeout: int = 30

    # Proxy
    proxy_url: str = ""

    user_agent: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )

    # Calendar search: upstream rejects windows wider than this
    max_days_per_search: int = 61
    date_search_concurrency: int = 4

    # Round-trip fallback: secondary searches pinned to an outbound flight
    return_search_concurrency: int = 3
    default_top_n: int = 5

    # Currency
    default_currency: str = "USD"


settings = CrawlerSettings()
