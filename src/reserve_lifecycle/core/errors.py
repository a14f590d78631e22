"""Error taxonomy for reserve lifecycle operations.

Stage-local recoverable conditions (already deployed artifact, already locked
implementation, missing per-network address or feed) never raise; they are
logged and skipped. Everything below halts the run at the failing stage,
leaving registry and on-chain state as the last successful stage left it.
"""

from __future__ import annotations


class LifecycleError(Exception):
    """Base class for all reserve lifecycle failures."""

    pass


class ConfigurationError(LifecycleError):
    """Missing network identity, unknown market, or unresolvable wiring."""

    pass


class DeploymentError(LifecycleError):
    """A required contract deployment or initialization call failed."""

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"Deployment of {name} failed: {reason}")


class OnChainCallFailure(LifecycleError):
    """A pool, configurator or oracle call reverted or was not confirmed."""

    def __init__(
        self,
        stage: str,
        reason: str,
        dropped: list[str] | None = None,
    ) -> None:
        self.stage = stage
        self.reason = reason
        self.dropped = dropped or []
        super().__init__(f"{stage} failed: {reason}")


class CallReverted(LifecycleError):
    """The node rejected a call before it was mined."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Call reverted: {reason}")


class TxFailed(LifecycleError):
    """A submitted transaction failed or was never confirmed."""

    def __init__(self, tx_hash: str, reason: str = "transaction reverted") -> None:
        self.tx_hash = tx_hash
        self.reason = reason
        super().__init__(f"Transaction {tx_hash} failed: {reason}")
