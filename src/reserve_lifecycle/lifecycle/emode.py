"""E-mode category setup for live reserves."""

from __future__ import annotations

from typing import Mapping

from reserve_lifecycle.core.logging import OperationLogger
from reserve_lifecycle.data.interfaces import PoolAdmin, TransactionSubmitter
from reserve_lifecycle.data.models import MarketConfiguration, TxReceipt
from reserve_lifecycle.lifecycle.submission import submit


class EModeConfigurator:
    """Create the market's e-mode categories and assign their live members."""

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

    def configure(self, reserves: Mapping[str, str]) -> list[TxReceipt]:
        """Apply every declared e-mode group.

        Members that are not in ``reserves`` are left out. A group with no
        live member is skipped.

        Raises:
            OnChainCallFailure: If an e-mode call fails.
        """
        receipts: list[TxReceipt] = []

        for name, group in self.config.e_modes.items():
            members = {s: reserves[s] for s in group.assets if s in reserves}
            if not members:
                if self.logger:
                    self.logger.warning(f"- Skipping e-mode {name}: no live member reserves")
                continue

            receipt = submit(
                f"configureEMode:{name}",
                self.transactions,
                lambda: self.pool.configure_emode(group, members),
            )
            receipts.append(receipt)

            if self.logger:
                self.logger.log_event(
                    "emode_configured",
                    {
                        "name": name,
                        "category_id": group.id,
                        "assets": list(members),
                        "tx_hash": receipt.tx_hash,
                    },
                )

        return receipts
