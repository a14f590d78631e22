"""Per-network address resolution for reserves, treasury and incentives."""

from __future__ import annotations

from reserve_lifecycle.core.errors import ConfigurationError
from reserve_lifecycle.core.logging import OperationLogger
from reserve_lifecycle.data.constants import (
    INCENTIVES_PROXY_ID,
    TREASURY_PROXY_ID,
    ZERO_ADDRESS,
)
from reserve_lifecycle.data.interfaces import DeploymentRegistry
from reserve_lifecycle.data.models import MarketConfiguration


def resolve_reserve_addresses(
    config: MarketConfiguration,
    network: str,
    logger: OperationLogger | None = None,
) -> dict[str, str]:
    """Map each configured reserve symbol to its asset address on ``network``.

    Symbols with no address (or the zero address) on the network are skipped
    with a warning. Assets that have an address but no reserve configuration
    are never included. Order follows ``reserves_config``.

    Args:
        config: Market configuration.
        network: Active network name (FORK when set).
        logger: Optional run logger.

    Returns:
        Ordered mapping of symbol to asset address. May be empty.
    """
    network_assets = config.reserve_assets.get(network, {})
    resolved: dict[str, str] = {}

    for symbol in config.reserves_config:
        address = network_assets.get(symbol)
        if not address or address == ZERO_ADDRESS:
            if logger:
                logger.warning(
                    f"- Skipping {symbol}: no asset address on network {network}",
                    {"symbol": symbol, "network": network},
                )
            continue
        resolved[symbol] = address

    return resolved


def resolve_treasury_address(
    config: MarketConfiguration,
    network: str,
    registry: DeploymentRegistry,
) -> str:
    """Treasury receiving the reserve factor.

    The network's configured treasury wins when it is set and non-zero;
    otherwise the deployed treasury proxy is used.

    Raises:
        ConfigurationError: If neither is available.
    """
    configured = config.reserve_factor_treasury_address.get(network)
    if configured and configured != ZERO_ADDRESS:
        return configured

    deployed = registry.get(TREASURY_PROXY_ID)
    if deployed is None:
        raise ConfigurationError(
            f"No treasury configured for {network} and no {TREASURY_PROXY_ID} deployment found."
        )
    return deployed.address


def resolve_incentives_controller(
    config: MarketConfiguration,
    network: str,
    registry: DeploymentRegistry,
) -> str:
    """Incentives controller for new tokens, or the zero address when incentives are off.

    Raises:
        ConfigurationError: If incentives are enabled but the controller is not deployed.
    """
    if not config.incentives.is_enabled(network):
        return ZERO_ADDRESS

    deployed = registry.get(INCENTIVES_PROXY_ID)
    if deployed is None:
        raise ConfigurationError(
            f"Incentives are enabled on {network} but {INCENTIVES_PROXY_ID} is not deployed."
        )
    return deployed.address
