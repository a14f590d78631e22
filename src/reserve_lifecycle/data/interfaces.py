"""Collaborators the lifecycle stages drive.

The stages only know these interfaces. ``data.registry`` and ``data.aave_v3``
provide the web3-backed implementations; tests substitute in-memory ones.

Write methods return a transaction hash. Stages confirm it through the
TransactionSubmitter before moving on. Implementations raise CallReverted
when the node rejects a call before it is mined.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from reserve_lifecycle.data.models import (
    ConfigureReserveInput,
    DeployedArtifactHandle,
    EModeGroup,
    InitReserveInput,
    TxReceipt,
)


class DeploymentRegistry(ABC):
    """Persistent record of deployed contracts, keyed by logical name."""

    @abstractmethod
    def get(self, name: str) -> DeployedArtifactHandle | None:
        """Return the recorded deployment, or None if the name is unknown."""
        pass

    @abstractmethod
    def deploy(self, name: str, contract: str, args: list[Any]) -> DeployedArtifactHandle:
        """Deploy ``contract`` under ``name`` unless the name is already recorded.

        Returns the existing handle unchanged when the name is known.

        Raises:
            DeploymentError: If the deployment transaction fails.
        """
        pass

    @abstractmethod
    def save(self, handle: DeployedArtifactHandle) -> None:
        """Record an address under a name without deploying anything."""
        pass

    @abstractmethod
    def delete(self, name: str) -> bool:
        """Forget a recorded name. Returns False if it was not recorded."""
        pass


class TransactionSubmitter(ABC):
    """Blocks until a submitted transaction is confirmed."""

    @abstractmethod
    def wait_for_confirmation(self, tx_hash: str) -> TxReceipt:
        """Wait for ``tx_hash`` to be mined.

        Raises:
            TxFailed: If the transaction failed or was never confirmed.
        """
        pass


class ImplementationInitializer(ABC):
    """Sends the initialize call of a token implementation contract."""

    @abstractmethod
    def initialize(self, handle: DeployedArtifactHandle, args: list[Any]) -> str:
        """Call ``initialize(*args)`` on the implementation behind ``handle``."""
        pass


class PoolAdmin(ABC):
    """Administrative surface of one lending pool."""

    @property
    @abstractmethod
    def addresses_provider(self) -> str:
        """Address of the pool's addresses provider."""
        pass

    @abstractmethod
    def get_pool_address(self) -> str:
        pass

    @abstractmethod
    def is_reserve_initialized(self, asset: str) -> bool:
        """True when the pool already has an interest-bearing token for ``asset``."""
        pass

    @abstractmethod
    def init_reserves(self, batch: list[InitReserveInput]) -> str:
        pass

    @abstractmethod
    def configure_reserves(self, batch: list[ConfigureReserveInput]) -> str:
        pass

    @abstractmethod
    def configure_emode(self, group: EModeGroup, assets: dict[str, str]) -> str:
        """Create or update an e-mode category and assign ``assets`` to it."""
        pass

    @abstractmethod
    def drop_reserve(self, asset: str) -> str:
        """Remove a reserve. Rejected by the pool while positions are open."""
        pass


class PriceOracle(ABC):
    """Asset price source registry."""

    @abstractmethod
    def set_asset_sources(self, assets: list[str], sources: list[str]) -> str:
        pass


class TokenRecordStore(ABC):
    """Off-chain bookkeeping of the tokens created for each reserve."""

    @abstractmethod
    def save_token_records(self, reserves: dict[str, str]) -> list[str]:
        """Record token addresses of ``reserves`` (symbol -> asset). Returns record names."""
        pass

    @abstractmethod
    def delete_token_records(self, reserves: dict[str, str]) -> list[str]:
        """Delete records of ``reserves``. Returns the record names removed."""
        pass
