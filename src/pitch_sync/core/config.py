from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # DB
    database_url: str = Field(
        default="sqlite+pysqlite:///./pitch_sync.db",
        validation_alias="DATABASE_URL",
    )
    db_echo: bool = False

    # sofascore
    sofascore_api_base_url: str = "https://api.sofascore.com/api/v1"
    sofascore_web_base_url: str = "https://www.sofascore.com"
    sofascore_image_base_url: str = "https://api.sofascore.app/api/v1"
    user_agent: str = DEFAULT_USER_AGENT
    http_timeout_s: float = 15.0

    # fetch gateway
    fetch_max_retries: int = 3
    fetch_backoff_base_s: float = 1.0
    fetch_backoff_multiplier: float = 1.5
    fetch_jitter_min_s: float = 1.0
    fetch_jitter_max_s: float = 3.0

    # browser fallback
    browser_enabled: bool = True
    browser_timeout_ms: int = 30_000
    browser_selector_timeout_ms: int = 10_000

    # job pacing
    item_delay_min_s: float = 1.0
    item_delay_max_s: float = 3.0
    stage_delay_min_s: float = 3.0
    stage_delay_max_s: float = 5.0
    batch_delay_s: float = 2.0
    day_delay_s: float = 2.0
    block_delay_s: float = 5.0

    # jobs
    job_workers: int = 4
    status_endpoint_prefix: str = "/api/sofascore/jobs"

    log_level: str = "INFO"


settings = Settings()
