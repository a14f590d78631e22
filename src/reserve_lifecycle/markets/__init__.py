"""Static market configurations, looked up by MARKET_NAME."""

from __future__ import annotations

from types import MappingProxyType

from reserve_lifecycle.core.errors import ConfigurationError
from reserve_lifecycle.data.models import MarketConfiguration
from reserve_lifecycle.markets.plume import PLUME_CONFIG

MARKETS = MappingProxyType(
    {
        "plume": PLUME_CONFIG,
    }
)


def load_market_config(market_name: str) -> MarketConfiguration:
    """Return the configuration registered under ``market_name``.

    Raises:
        ConfigurationError: If no market has that name.
    """
    try:
        return MARKETS[market_name.lower()]
    except KeyError:
        raise ConfigurationError(
            f"Unknown market '{market_name}'. Available markets: {sorted(MARKETS)}"
        ) from None


__all__ = ["MARKETS", "load_market_config"]
