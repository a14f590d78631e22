"""Price feed wiring for listed reserves."""

from __future__ import annotations

from typing import Mapping

from reserve_lifecycle.core.logging import OperationLogger
from reserve_lifecycle.data.constants import ZERO_ADDRESS
from reserve_lifecycle.data.interfaces import PriceOracle, TransactionSubmitter
from reserve_lifecycle.data.models import MarketConfiguration, TxReceipt
from reserve_lifecycle.lifecycle.submission import submit


class OracleWirer:
    """Bind each listed asset to its configured price feed in one call."""

    def __init__(
        self,
        config: MarketConfiguration,
        oracle: PriceOracle,
        transactions: TransactionSubmitter,
        logger: OperationLogger | None = None,
    ) -> None:
        self.config = config
        self.oracle = oracle
        self.transactions = transactions
        self.logger = logger

    def bindings(self, reserves: Mapping[str, str], network: str) -> tuple[list[str], list[str]]:
        """Parallel (assets, sources) lists for reserves that have a feed.

        Reserves without a feed on ``network`` are skipped with a warning.
        """
        feeds = self.config.chainlink_aggregator.get(network, {})
        assets: list[str] = []
        sources: list[str] = []

        for symbol, asset in reserves.items():
            source = feeds.get(symbol)
            if not source or source == ZERO_ADDRESS:
                if self.logger:
                    self.logger.warning(
                        f"- Skipping oracle for {symbol}: no price feed on network {network}"
                    )
                continue
            assets.append(asset)
            sources.append(source)

        return assets, sources

    def wire(self, reserves: Mapping[str, str], network: str) -> TxReceipt | None:
        """Set price sources for ``reserves``.

        Returns:
            Receipt of the oracle call, or None if no reserve had a feed.

        Raises:
            OnChainCallFailure: If the oracle call fails.
        """
        assets, sources = self.bindings(reserves, network)
        if not assets:
            if self.logger:
                self.logger.warning("- No price feeds to set")
            return None

        receipt = submit(
            "setAssetSources",
            self.transactions,
            lambda: self.oracle.set_asset_sources(assets, sources),
        )

        if self.logger:
            self.logger.log_event(
                "oracle_sources_set",
                {"assets": assets, "sources": sources, "tx_hash": receipt.tx_hash},
            )
            self.logger.info("Updated all reserves oracle")
        return receipt
