"""JSON-file deployment registry.

Deployments are recorded one file per logical name under
``<deployments_dir>/<network>/<name>.json`` so repeated runs resolve the same
contracts instead of deploying them again. New contracts are built from
compiled artifacts (``<artifacts_dir>/**/<Contract>.json`` with ``abi`` and
``bytecode``).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from web3 import Web3
from web3.exceptions import ContractLogicError, Web3Exception

from reserve_lifecycle.core.errors import ConfigurationError, DeploymentError, TxFailed
from reserve_lifecycle.core.logging import OperationLogger
from reserve_lifecycle.data.interfaces import DeploymentRegistry, TransactionSubmitter
from reserve_lifecycle.data.models import DeployedArtifactHandle


class ArtifactStore:
    """Lookup of compiled contract artifacts by contract name."""

    def __init__(self, artifacts_dir: Path) -> None:
        self.artifacts_dir = artifacts_dir
        self._cache: dict[str, dict[str, Any]] = {}

    def load(self, contract: str) -> dict[str, Any]:
        """Load the artifact of ``contract``.

        Raises:
            DeploymentError: If no artifact with bytecode exists for the contract.
        """
        if contract in self._cache:
            return self._cache[contract]

        candidates = sorted(self.artifacts_dir.rglob(f"{contract}.json"))
        for path in candidates:
            with open(path) as f:
                artifact = json.load(f)
            if artifact.get("abi") is not None and artifact.get("bytecode", "0x") != "0x":
                self._cache[contract] = artifact
                return artifact

        raise DeploymentError(
            contract,
            f"no compiled artifact with bytecode found under {self.artifacts_dir}",
        )


class JsonDeploymentRegistry(DeploymentRegistry):
    """Deployment registry persisted as JSON files per network.

    Usage:
        registry = JsonDeploymentRegistry(web3, "plume", Path("deployments"), deployer,
                                          transactions, ArtifactStore(Path("artifacts")))
        handle = registry.deploy("ReserveStrategy-x", "DefaultReserveInterestRateStrategy", args)
    """

    def __init__(
        self,
        web3: Web3,
        network: str,
        deployments_dir: Path,
        deployer: str,
        transactions: TransactionSubmitter,
        artifacts: ArtifactStore,
        logger: OperationLogger | None = None,
    ) -> None:
        self.web3 = web3
        self.network = network
        self.deployer = deployer
        self.transactions = transactions
        self.artifacts = artifacts
        self.logger = logger
        self._dir = deployments_dir / network
        self._dir.mkdir(parents=True, exist_ok=True)

    def _path(self, name: str) -> Path:
        return self._dir / f"{name}.json"

    def get(self, name: str) -> DeployedArtifactHandle | None:
        """Load the record stored under ``name``.

        Records written by other deploy tooling carry only ``address``,
        ``abi`` and ``args``; the file name stands in for the missing fields.

        Raises:
            ConfigurationError: If the record exists but is not a deployment.
        """
        path = self._path(name)
        if not path.exists():
            return None
        with open(path) as f:
            record = json.load(f)

        record.setdefault("name", name)
        record.setdefault("contract", name)
        try:
            return DeployedArtifactHandle.model_validate(record)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid deployment record {path}: {e}") from e

    def deploy(self, name: str, contract: str, args: list[Any]) -> DeployedArtifactHandle:
        existing = self.get(name)
        if existing is not None:
            if self.logger:
                self.logger.debug(f"reusing \"{name}\" at {existing.address}")
            return existing

        artifact = self.artifacts.load(contract)
        factory = self.web3.eth.contract(abi=artifact["abi"], bytecode=artifact["bytecode"])

        try:
            tx_hash = Web3.to_hex(factory.constructor(*args).transact({"from": self.deployer}))
        except ContractLogicError as e:
            raise DeploymentError(name, e.message or str(e)) from e
        except Web3Exception as e:
            raise DeploymentError(name, str(e)) from e

        try:
            receipt = self.transactions.wait_for_confirmation(tx_hash)
        except TxFailed as e:
            raise DeploymentError(name, e.reason) from e

        if not receipt.contract_address:
            raise DeploymentError(name, f"receipt of {tx_hash} has no contract address")

        handle = DeployedArtifactHandle(
            name=name,
            address=receipt.contract_address,
            contract=contract,
            args=args,
            abi=artifact["abi"],
            newly_deployed=True,
        )
        self.save(handle)

        if self.logger:
            self.logger.info(
                f"deploying \"{name}\" (tx: {tx_hash})...: deployed at {handle.address} "
                f"with {receipt.gas_used} gas"
            )
        return handle

    def save(self, handle: DeployedArtifactHandle) -> None:
        with open(self._path(handle.name), "w") as f:
            json.dump(handle.model_dump(exclude={"newly_deployed"}), f, indent=2, default=str)

    def delete(self, name: str) -> bool:
        path = self._path(name)
        if not path.exists():
            return False
        path.unlink()
        return True
