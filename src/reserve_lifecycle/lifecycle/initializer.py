"""Batched reserve initialization.

Builds one InitReserveInput per resolved reserve and submits the whole batch
in a single configurator call. Reserves the pool already knows are left out,
which makes re-running a listing safe.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from reserve_lifecycle.core.errors import ConfigurationError
from reserve_lifecycle.core.logging import OperationLogger
from reserve_lifecycle.data.interfaces import PoolAdmin, TransactionSubmitter
from reserve_lifecycle.data.models import (
    DeployedArtifactHandle,
    InitReserveInput,
    MarketConfiguration,
    TokenImplementations,
    TxReceipt,
)
from reserve_lifecycle.lifecycle.submission import submit


@dataclass
class InitializationResult:
    """Reserves initialized on this run and those that were already live."""

    initialized: dict[str, str] = field(default_factory=dict)
    already_live: dict[str, str] = field(default_factory=dict)
    receipt: TxReceipt | None = None

    @property
    def live(self) -> dict[str, str]:
        """Every reserve that now exists on the pool."""
        return {**self.already_live, **self.initialized}


class ReserveInitializer:
    """Initialize new reserves on a pool with the market's token naming."""

    def __init__(
        self,
        config: MarketConfiguration,
        pool: PoolAdmin,
        transactions: TransactionSubmitter,
        logger: OperationLogger | None = None,
    ) -> None:
        self.config = config
        self.pool = pool
        self.transactions = transactions
        self.logger = logger

    def build_input(
        self,
        symbol: str,
        asset: str,
        strategy: DeployedArtifactHandle,
        implementations: TokenImplementations,
        treasury: str,
        incentives_controller: str,
    ) -> InitReserveInput:
        """Assemble the initialization entry of one reserve."""
        params = self.config.reserves_config[symbol]
        prefix = self.config.symbol_prefix
        a_token_impl = implementations.interest_bearing(params.a_token_impl)

        return InitReserveInput(
            symbol=symbol,
            a_token_impl=a_token_impl.address,
            stable_debt_token_impl=implementations.stable_debt_token.address,
            variable_debt_token_impl=implementations.variable_debt_token.address,
            underlying_asset_decimals=params.reserve_decimals,
            interest_rate_strategy_address=strategy.address,
            underlying_asset=asset,
            treasury=treasury,
            incentives_controller=incentives_controller,
            a_token_name=f"{self.config.a_token_name_prefix} {symbol}",
            a_token_symbol=f"a{prefix}{symbol}",
            variable_debt_token_name=(
                f"{self.config.variable_debt_token_name_prefix} Variable Debt {symbol}"
            ),
            variable_debt_token_symbol=f"variableDebt{prefix}{symbol}",
            stable_debt_token_name=(
                f"{self.config.stable_debt_token_name_prefix} Stable Debt {symbol}"
            ),
            stable_debt_token_symbol=f"stableDebt{prefix}{symbol}",
        )

    def initialize(
        self,
        reserves: Mapping[str, str],
        strategies: Mapping[str, DeployedArtifactHandle],
        implementations: TokenImplementations,
        treasury: str,
        incentives_controller: str,
    ) -> InitializationResult:
        """Initialize every reserve in ``reserves`` the pool does not have yet.

        Args:
            reserves: Resolved symbol -> asset address mapping.
            strategies: Deployed strategy handles keyed by curve name.
            implementations: Token implementations of the pool.
            treasury: Treasury address for new aTokens.
            incentives_controller: Controller address, zero when disabled.

        Returns:
            Which reserves were initialized now and which were already live.

        Raises:
            ConfigurationError: If a reserve's strategy was not resolved.
            OnChainCallFailure: If the batch call fails.
        """
        result = InitializationResult()
        batch: list[InitReserveInput] = []

        for symbol, asset in reserves.items():
            if self.pool.is_reserve_initialized(asset):
                if self.logger:
                    self.logger.info(f"- Skipping init of {symbol}: reserve already initialized")
                result.already_live[symbol] = asset
                continue

            strategy_name = self.config.reserves_config[symbol].strategy
            strategy = strategies.get(strategy_name)
            if strategy is None:
                raise ConfigurationError(
                    f"Rate strategy '{strategy_name}' for {symbol} has not been resolved."
                )

            batch.append(
                self.build_input(
                    symbol, asset, strategy, implementations, treasury, incentives_controller
                )
            )

        if not batch:
            if self.logger:
                self.logger.info("[Deployment] No new reserves to initialize")
            return result

        result.receipt = submit(
            "initReserves", self.transactions, lambda: self.pool.init_reserves(batch)
        )
        result.initialized = {entry.symbol: entry.underlying_asset for entry in batch}

        if self.logger:
            self.logger.log_event(
                "reserves_initialized",
                {
                    "symbols": list(result.initialized),
                    "tx_hash": result.receipt.tx_hash,
                },
            )
            self.logger.info("[Deployment] Initialized all reserves")
        return result
