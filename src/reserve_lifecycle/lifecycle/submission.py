"""Send-and-confirm helper shared by the side-effecting stages."""

from __future__ import annotations

from typing import Callable

from reserve_lifecycle.core.errors import CallReverted, OnChainCallFailure, TxFailed
from reserve_lifecycle.data.interfaces import TransactionSubmitter
from reserve_lifecycle.data.models import TxReceipt


def submit(
    stage: str,
    transactions: TransactionSubmitter,
    send: Callable[[], str],
) -> TxReceipt:
    """Run ``send`` and block until its transaction is confirmed.

    Raises:
        OnChainCallFailure: If the call is rejected or the transaction fails.
    """
    try:
        tx_hash = send()
        return transactions.wait_for_confirmation(tx_hash)
    except (CallReverted, TxFailed) as e:
        raise OnChainCallFailure(stage, e.reason) from e
