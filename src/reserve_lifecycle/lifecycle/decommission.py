"""Reserve delisting.

Drops each resolved reserve from the pool in order and then forgets the
token records of the reserves that are gone. Reserves the pool no longer
lists (dropped by an earlier, interrupted run) are not dropped again, but
their leftover records are still deleted. The pool refuses to drop a
reserve with open positions; that failure stops the run immediately, after
the records of the reserves already gone have been cleaned up, so the
bookkeeping always matches what is on-chain.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from reserve_lifecycle.core.errors import OnChainCallFailure
from reserve_lifecycle.core.logging import OperationLogger
from reserve_lifecycle.data.interfaces import PoolAdmin, TokenRecordStore, TransactionSubmitter
from reserve_lifecycle.data.models import MarketConfiguration
from reserve_lifecycle.lifecycle.rate_strategies import RateStrategyResolver
from reserve_lifecycle.lifecycle.submission import submit


@dataclass
class DecommissionResult:
    dropped: dict[str, str] = field(default_factory=dict)
    already_gone: dict[str, str] = field(default_factory=dict)
    records_deleted: list[str] = field(default_factory=list)

    @property
    def removed(self) -> dict[str, str]:
        """Reserves no longer listed, whether dropped now or before."""
        return {**self.already_gone, **self.dropped}


class ReserveDecommissioner:
    """Remove reserves from a pool and delete their token records.

    Usage:
        decommissioner = ReserveDecommissioner(
            config, pool, token_records, transactions, resolver, logger
        )
        result = decommissioner.decommission(reserves)
    """

    def __init__(
        self,
        config: MarketConfiguration,
        pool: PoolAdmin,
        token_records: TokenRecordStore,
        transactions: TransactionSubmitter,
        strategy_resolver: RateStrategyResolver,
        logger: OperationLogger | None = None,
    ) -> None:
        self.config = config
        self.pool = pool
        self.token_records = token_records
        self.transactions = transactions
        self.strategy_resolver = strategy_resolver
        self.logger = logger

    def _delete_records(self, result: DecommissionResult) -> None:
        removed = result.removed
        if not removed:
            return
        result.records_deleted = self.token_records.delete_token_records(removed)
        if self.logger:
            self.logger.log_event("token_records_deleted", {"records": result.records_deleted})

    def decommission(self, reserves: Mapping[str, str]) -> DecommissionResult:
        """Drop ``reserves`` (symbol -> asset) and delete their records.

        Strategies are resolved first, exactly as for a listing, so the
        registry state a delist leaves behind is the same either way.

        Raises:
            DeploymentError: If a strategy has to be deployed and fails.
            OnChainCallFailure: On the first drop that fails. ``dropped``
                on the exception names the reserves removed before it.
        """
        self.strategy_resolver.resolve_all(
            self.config.rate_strategies, self.pool.addresses_provider
        )

        result = DecommissionResult()

        for symbol, asset in reserves.items():
            if not self.pool.is_reserve_initialized(asset):
                result.already_gone[symbol] = asset
                if self.logger:
                    self.logger.info(f"- Skipping drop of {symbol}: reserve not listed")
                continue

            try:
                receipt = submit(
                    "dropReserve", self.transactions, lambda: self.pool.drop_reserve(asset)
                )
            except OnChainCallFailure as e:
                self._delete_records(result)
                if self.logger:
                    self.logger.error(
                        f"Failed to drop {symbol}: {e.reason}",
                        {
                            "symbol": symbol,
                            "asset": asset,
                            "dropped": list(result.dropped),
                            "records_deleted": result.records_deleted,
                        },
                    )
                raise OnChainCallFailure(
                    "dropReserve", f"{symbol}: {e.reason}", dropped=list(result.dropped)
                ) from e

            result.dropped[symbol] = asset
            if self.logger:
                self.logger.log_event(
                    "reserve_dropped",
                    {"symbol": symbol, "asset": asset, "tx_hash": receipt.tx_hash},
                )

        self._delete_records(result)
        if self.logger:
            self.logger.info("[Deployment] Dropped all reserves")
        return result
