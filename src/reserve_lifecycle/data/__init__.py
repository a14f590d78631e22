"""Data models, collaborator interfaces and their web3 implementations."""

from reserve_lifecycle.data.models import (
    ConfigureReserveInput,
    DeployedArtifactHandle,
    EModeGroup,
    IncentivesConfig,
    InitReserveInput,
    MarketConfiguration,
    RateStrategyParams,
    ReserveParams,
    ReserveTokenAddresses,
    TokenImplementationKind,
    TokenImplementations,
    TxReceipt,
    parse_units,
)
from reserve_lifecycle.data.interfaces import (
    DeploymentRegistry,
    ImplementationInitializer,
    PoolAdmin,
    PriceOracle,
    TokenRecordStore,
    TransactionSubmitter,
)
from reserve_lifecycle.data.registry import ArtifactStore, JsonDeploymentRegistry

__all__ = [
    # Models
    "ConfigureReserveInput",
    "DeployedArtifactHandle",
    "EModeGroup",
    "IncentivesConfig",
    "InitReserveInput",
    "MarketConfiguration",
    "RateStrategyParams",
    "ReserveParams",
    "ReserveTokenAddresses",
    "TokenImplementationKind",
    "TokenImplementations",
    "TxReceipt",
    "parse_units",
    # Collaborators
    "DeploymentRegistry",
    "ImplementationInitializer",
    "PoolAdmin",
    "PriceOracle",
    "TokenRecordStore",
    "TransactionSubmitter",
    # Registry
    "ArtifactStore",
    "JsonDeploymentRegistry",
]
