"""
Provider clients, one per upstream data source.
"""
from .base import (
    ProviderClient,
    ProviderError,
    ProviderHTTPError,
    ProviderNotConfiguredError,
    ProviderPayloadError,
    ProviderRateLimitError,
    ProviderTimeoutError,
)
from .api_sports import BasketballClient, FootballClient, HockeyClient
from .espn import EspnClient
from .mma import MmaClient
from .odds_api import OddsApiClient

__all__ = [
    # Errors
    "ProviderError",
    "ProviderHTTPError",
    "ProviderNotConfiguredError",
    "ProviderPayloadError",
    "ProviderRateLimitError",
    "ProviderTimeoutError",
    # Clients
    "ProviderClient",
    "FootballClient",
    "BasketballClient",
    "HockeyClient",
    "MmaClient",
    "EspnClient",
    "OddsApiClient",
]
