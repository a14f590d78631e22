"""Risk parameter configuration of live reserves."""

from __future__ import annotations

from typing import Mapping

from reserve_lifecycle.core.logging import OperationLogger
from reserve_lifecycle.data.interfaces import PoolAdmin, TransactionSubmitter
from reserve_lifecycle.data.models import (
    ConfigureReserveInput,
    MarketConfiguration,
    TxReceipt,
)
from reserve_lifecycle.lifecycle.submission import submit


class ReserveConfigurator:
    """Push each reserve's declared risk parameters to the pool.

    The target state is fully described by the market configuration, so
    configuring the same reserves twice leaves the pool unchanged.
    """

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

    def build_batch(self, reserves: Mapping[str, str]) -> list[ConfigureReserveInput]:
        return [
            ConfigureReserveInput.from_params(symbol, asset, self.config.reserves_config[symbol])
            for symbol, asset in reserves.items()
        ]

    def configure(self, reserves: Mapping[str, str]) -> TxReceipt | None:
        """Configure ``reserves`` (symbol -> asset), which must already be live.

        Returns:
            Receipt of the configuration call, or None when there was nothing to do.

        Raises:
            OnChainCallFailure: If the configuration call fails.
        """
        batch = self.build_batch(reserves)
        if not batch:
            return None

        receipt = submit(
            "configureReserves",
            self.transactions,
            lambda: self.pool.configure_reserves(batch),
        )

        if self.logger:
            self.logger.log_event(
                "reserves_configured",
                {"symbols": [entry.symbol for entry in batch], "tx_hash": receipt.tx_hash},
            )
            self.logger.info("[Deployment] Configured all reserves")
        return receipt
