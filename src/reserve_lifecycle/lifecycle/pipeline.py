"""List and delist pipelines.

Listing runs its stages strictly in order, each one gated on the previous:
1. Rate strategies (deploy once, reuse after)
2. Token implementations (deploy once, lock)
3. Reserve address resolution for the active network
4. Batched reserve initialization
5. Risk parameter configuration, then e-mode categories
6. Token record bookkeeping
7. Oracle price feed wiring

Delisting resolves addresses and strategies (strategies also when there is
nothing to drop), then drops reserves and deletes their records. Any failure propagates as a LifecycleError and the
on-chain and registry state stays as the last completed stage left it;
running the pipeline again resumes from there.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from reserve_lifecycle.core.context import NetworkContext
from reserve_lifecycle.core.logging import OperationLogger
from reserve_lifecycle.data.interfaces import (
    DeploymentRegistry,
    ImplementationInitializer,
    PoolAdmin,
    PriceOracle,
    TokenRecordStore,
    TransactionSubmitter,
)
from reserve_lifecycle.data.models import MarketConfiguration
from reserve_lifecycle.lifecycle.addresses import (
    resolve_incentives_controller,
    resolve_reserve_addresses,
    resolve_treasury_address,
)
from reserve_lifecycle.lifecycle.configurator import ReserveConfigurator
from reserve_lifecycle.lifecycle.decommission import ReserveDecommissioner
from reserve_lifecycle.lifecycle.emode import EModeConfigurator
from reserve_lifecycle.lifecycle.initializer import ReserveInitializer
from reserve_lifecycle.lifecycle.oracle import OracleWirer
from reserve_lifecycle.lifecycle.rate_strategies import RateStrategyResolver
from reserve_lifecycle.lifecycle.token_implementations import TokenImplementationProvisioner

EMPTY_ASSET_WARNING = "[WARNING] Skipping initialization. Empty asset list."


@dataclass
class LifecycleCollaborators:
    """External systems a pipeline drives."""

    registry: DeploymentRegistry
    pool: PoolAdmin
    oracle: PriceOracle
    transactions: TransactionSubmitter
    implementation_initializer: ImplementationInitializer
    token_records: TokenRecordStore


class _Pipeline:
    operation = "lifecycle"

    def __init__(
        self,
        config: MarketConfiguration,
        context: NetworkContext,
        collaborators: LifecycleCollaborators,
        market_name: str,
        logger: OperationLogger,
    ) -> None:
        self.config = config
        self.context = context
        self.collaborators = collaborators
        self.market_name = market_name
        self.logger = logger
        self.strategy_resolver = RateStrategyResolver(collaborators.registry, logger)

    def _stage_done(self, stage: str, **data: Any) -> None:
        self.logger.log_event("stage_completed", {"stage": stage, **data})

    def _start(self) -> None:
        self.logger.info(
            f"Starting {self.operation} for {self.config.market_id} on {self.context.network}",
            {"market": self.market_name, **self.context.as_log_data()},
        )


class ListingPipeline(_Pipeline):
    """Onboard every configured reserve that has an address on the network.

    Usage:
        pipeline = ListingPipeline(config, context, collaborators, "plume", run_logger)
        pipeline.run()
    """

    operation = "list"

    def run(self) -> bool:
        """Run every listing stage.

        Returns:
            True once all stages completed, including when there was nothing to list.

        Raises:
            ConfigurationError: If treasury or incentives wiring cannot be resolved.
            DeploymentError: If a strategy or implementation cannot be provisioned.
            OnChainCallFailure: If a pool or oracle call fails.
        """
        c = self.collaborators
        network = self.context.network
        self._start()

        # 1. Strategies
        strategies = self.strategy_resolver.resolve_all(
            self.config.rate_strategies, c.pool.addresses_provider
        )
        self._stage_done("rate_strategies", count=len(strategies))

        # 2. Token implementations
        provisioner = TokenImplementationProvisioner(
            c.registry,
            c.implementation_initializer,
            c.transactions,
            self.market_name,
            self.logger,
        )
        provisioned = provisioner.provision(c.pool.get_pool_address())
        self._stage_done(
            "token_implementations",
            newly_deployed=provisioned.newly_deployed,
            outcomes={kind.value: outcome.value for kind, outcome in provisioned.outcomes.items()},
        )

        # 3. Addresses
        reserves = resolve_reserve_addresses(self.config, network, self.logger)
        if not reserves:
            self.logger.warning(EMPTY_ASSET_WARNING)
            return True
        self._stage_done("address_resolution", symbols=list(reserves))

        treasury = resolve_treasury_address(self.config, network, c.registry)
        incentives_controller = resolve_incentives_controller(self.config, network, c.registry)
        self.logger.info(
            "Resolved token wiring",
            {"treasury": treasury, "incentives_controller": incentives_controller},
        )

        # 4. Initialize
        initializer = ReserveInitializer(self.config, c.pool, c.transactions, self.logger)
        initialized = initializer.initialize(
            reserves,
            strategies,
            provisioned.implementations,
            treasury,
            incentives_controller,
        )
        self._stage_done(
            "initialize",
            initialized=list(initialized.initialized),
            already_live=list(initialized.already_live),
        )

        # 5. Configure
        live = initialized.live
        ReserveConfigurator(self.config, c.pool, c.transactions, self.logger).configure(live)
        self._stage_done("configure", symbols=list(live))

        if self.config.e_modes:
            receipts = EModeConfigurator(
                self.config, c.pool, c.transactions, self.logger
            ).configure(live)
            self._stage_done("emode", categories=len(receipts))

        # 6. Token records
        records = c.token_records.save_token_records(live)
        self.logger.log_event("token_records_saved", {"records": records})

        # 7. Oracle
        OracleWirer(self.config, c.oracle, c.transactions, self.logger).wire(live, network)
        self._stage_done("oracle")

        return True


class DelistingPipeline(_Pipeline):
    """Remove every configured reserve that has an address on the network.

    Usage:
        pipeline = DelistingPipeline(config, context, collaborators, "plume", run_logger)
        pipeline.run()
    """

    operation = "delist"

    def run(self) -> bool:
        """Drop the resolved reserves and delete their token records.

        Returns:
            True once every reserve was dropped, including when there was nothing to drop.

        Raises:
            DeploymentError: If a strategy cannot be provisioned.
            OnChainCallFailure: On the first drop the pool rejects.
        """
        c = self.collaborators
        self._start()

        reserves = resolve_reserve_addresses(self.config, self.context.network, self.logger)
        if not reserves:
            # Strategies are shared; they are still resolved on an empty network
            strategies = self.strategy_resolver.resolve_all(
                self.config.rate_strategies, c.pool.addresses_provider
            )
            self._stage_done("rate_strategies", count=len(strategies))
            self.logger.warning(EMPTY_ASSET_WARNING)
            return True

        decommissioner = ReserveDecommissioner(
            self.config,
            c.pool,
            c.token_records,
            c.transactions,
            self.strategy_resolver,
            self.logger,
        )
        result = decommissioner.decommission(reserves)
        self._stage_done(
            "decommission",
            dropped=list(result.dropped),
            already_gone=list(result.already_gone),
            records_deleted=result.records_deleted,
        )
        return True
