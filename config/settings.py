"""Configuration management using pydantic-settings."""
from datetime import datetime
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


def compute_season_start_year(now: Optional[datetime] = None, first_month: int = 8) -> int:
    """
    Compute the starting year of the season in progress.

    API-Sports uses the starting year of a season (2025 for 2025-26).
    Months before `first_month` still belong to the previous year's season.
    """
    now = now or datetime.now()
    if now.month < first_month:
        return now.year - 1
    return now.year


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API-Sports (football, basketball, hockey, MMA share one key)
    api_sports_key: Optional[str] = None
    api_football_base_url: str = "https://v3.football.api-sports.io"
    api_basketball_base_url: str = "https://v1.basketball.api-sports.io"
    api_hockey_base_url: str = "https://v1.hockey.api-sports.io"
    api_mma_base_url: str = "https://v1.mma.api-sports.io"

    # ESPN public site API (unofficial, no key)
    espn_base_url: str = "https://site.api.espn.com/apis/site/v2/sports"

    # The Odds API
    odds_api_key: Optional[str] = None
    odds_api_base_url: str = "https://api.the-odds-api.com/v4"
    odds_regions: str = "eu,us"

    # Upstream request policy
    request_timeout_seconds: float = 8.0
    max_concurrent_requests: int = 6
    rate_limit_retries: int = 2

    # Cache settings
    cache_enabled: bool = True
    cache_default_ttl_seconds: int = 300

    # Default league context per sport
    default_soccer_league_id: int = 39  # Premier League
    default_basketball_league_id: int = 12  # NBA
    default_hockey_league_id: int = 57  # NHL

    # Edge detection
    edge_min_threshold: float = 3.0


settings = Settings()
