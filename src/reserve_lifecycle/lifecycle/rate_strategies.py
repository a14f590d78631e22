"""Rate strategy resolution.

Each named curve is deployed once per pool as a
DefaultReserveInterestRateStrategy under ``ReserveStrategy-<name>``. Later
runs find the registry entry and reuse it, so re-running a pipeline never
deploys a strategy twice.
"""

from __future__ import annotations

from typing import Mapping

from reserve_lifecycle.core.errors import CallReverted, DeploymentError, TxFailed
from reserve_lifecycle.core.logging import OperationLogger
from reserve_lifecycle.data.constants import RATE_STRATEGY_CONTRACT, RATE_STRATEGY_ID_TEMPLATE
from reserve_lifecycle.data.interfaces import DeploymentRegistry
from reserve_lifecycle.data.models import DeployedArtifactHandle, RateStrategyParams


def strategy_deployment_id(strategy_name: str) -> str:
    return RATE_STRATEGY_ID_TEMPLATE.format(name=strategy_name)


class RateStrategyResolver:
    """Map named curves to deployed strategy contracts.

    Usage:
        resolver = RateStrategyResolver(registry, logger)
        handles = resolver.resolve_all(config.rate_strategies, pool.addresses_provider)
    """

    def __init__(
        self,
        registry: DeploymentRegistry,
        logger: OperationLogger | None = None,
    ) -> None:
        self.registry = registry
        self.logger = logger

    def resolve(
        self,
        params: RateStrategyParams,
        provider_address: str,
    ) -> DeployedArtifactHandle:
        """Return the strategy contract for ``params``, deploying it if unknown.

        Args:
            params: The curve to bind.
            provider_address: Addresses provider of the pool the strategy serves.

        Returns:
            Handle of the existing or freshly deployed strategy.

        Raises:
            DeploymentError: If the strategy has to be deployed and deployment fails.
        """
        name = strategy_deployment_id(params.name)

        existing = self.registry.get(name)
        if existing is not None:
            if self.logger:
                self.logger.log_event(
                    "strategy_reused", {"name": name, "address": existing.address}
                )
            return existing

        try:
            handle = self.registry.deploy(
                name, RATE_STRATEGY_CONTRACT, params.constructor_args(provider_address)
            )
        except (CallReverted, TxFailed) as e:
            raise DeploymentError(name, e.reason) from e

        if self.logger:
            self.logger.log_event("strategy_deployed", {"name": name, "address": handle.address})
        return handle

    def resolve_all(
        self,
        strategies: Mapping[str, RateStrategyParams],
        provider_address: str,
    ) -> dict[str, DeployedArtifactHandle]:
        """Resolve every declared curve, keyed by curve name."""
        return {
            name: self.resolve(params, provider_address)
            for name, params in strategies.items()
        }
