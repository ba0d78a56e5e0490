"""
Zentrale Konfiguration für den Career Crawler
Basiert auf Pydantic Settings mit Environment Variable Support
"""

from functools import lru_cache
from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings

DEFAULT_LEAGUES: list[str] = [
    "GB1",
    "GB2",
    "IT1",
    "IT2",
    "ES1",
    "ES2",
    "L1",
    "L2",
    "FR1",
    "FR2",
    "NL1",
    "NL2",
    "PO1",
    "PO2",
]

DEFAULT_LEAGUE_SLUGS: dict[str, str] = {
    "GB1": "premier-league",
    "GB2": "championship",
    "IT1": "serie-a",
    "IT2": "serie-b",
    "ES1": "laliga",
    "ES2": "laliga2",
    "L1": "bundesliga",
    "L2": "2-bundesliga",
    "FR1": "ligue-1",
    "FR2": "ligue-2",
    "NL1": "eredivisie",
    "NL2": "eerste-divisie",
    "PO1": "liga-portugal",
    "PO2": "liga-portugal-2",
}


class Settings(BaseSettings):
    """Application Settings mit Environment Variable Support"""

    # Output documents
    output_file: str = "data/clubs.json"
    players_output_file: str = "data/players.json"
    error_log_file: str = "data/errors.jsonl"

    # Status server
    host: str = "0.0.0.0"
    port: int = 3000

    # Upstream proxy (passed straight to Chromium)
    proxy_url: Optional[str] = None
    proxy_user: Optional[str] = None
    proxy_pass: Optional[str] = None

    # Browser
    base_url: str = "https://www.transfermarkt.com"
    headless: bool = True
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
    )
    accept_language: str = "en-US,en;q=0.9"
    page_timeout_ms: int = 30000
    wait_timeout_ms: int = 10000

    # Retry policy (seconds)
    max_retries: int = 3
    retry_base_delay: float = 2.0
    retry_delay_cap: float = 10.0

    # Pacing (seconds)
    pacing_min_seconds: float = 2.0
    pacing_max_seconds: float = 5.0
    batch_size: int = 10
    batch_cooldown_seconds: float = 60.0

    # Crawl space
    start_year: int = 2006
    end_year: int = 2025
    leagues: list[str] = DEFAULT_LEAGUES
    league_slugs: dict[str, str] = DEFAULT_LEAGUE_SLUGS

    # Monitoring
    log_level: str = "INFO"
    log_file_path: Optional[str] = None

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @model_validator(mode="after")
    def _check_ranges(self) -> "Settings":
        if self.end_year < self.start_year:
            raise ValueError("end_year must not be before start_year")
        if self.pacing_max_seconds < self.pacing_min_seconds:
            raise ValueError("pacing_max_seconds must be >= pacing_min_seconds")
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        return self

    @property
    def proxy(self) -> Optional[dict[str, str]]:
        """Playwright proxy dict or None when no proxy is configured."""
        if not self.proxy_url:
            return None
        proxy = {"server": self.proxy_url}
        if self.proxy_user and self.proxy_pass:
            proxy["username"] = self.proxy_user
            proxy["password"] = self.proxy_pass
        return proxy


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached Settings instance (read once per process)."""
    return Settings()
