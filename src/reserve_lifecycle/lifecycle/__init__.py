"""Reserve lifecycle stages and the pipelines that sequence them."""

from reserve_lifecycle.lifecycle.addresses import (
    resolve_incentives_controller,
    resolve_reserve_addresses,
    resolve_treasury_address,
)
from reserve_lifecycle.lifecycle.configurator import ReserveConfigurator
from reserve_lifecycle.lifecycle.decommission import DecommissionResult, ReserveDecommissioner
from reserve_lifecycle.lifecycle.emode import EModeConfigurator
from reserve_lifecycle.lifecycle.initializer import InitializationResult, ReserveInitializer
from reserve_lifecycle.lifecycle.oracle import OracleWirer
from reserve_lifecycle.lifecycle.pipeline import (
    DelistingPipeline,
    LifecycleCollaborators,
    ListingPipeline,
)
from reserve_lifecycle.lifecycle.rate_strategies import RateStrategyResolver
from reserve_lifecycle.lifecycle.token_implementations import (
    ProvisionResult,
    SeedOutcome,
    TokenImplementationProvisioner,
)

__all__ = [
    # Address resolution
    "resolve_incentives_controller",
    "resolve_reserve_addresses",
    "resolve_treasury_address",
    # Stages
    "DecommissionResult",
    "EModeConfigurator",
    "InitializationResult",
    "OracleWirer",
    "ProvisionResult",
    "RateStrategyResolver",
    "ReserveConfigurator",
    "ReserveDecommissioner",
    "ReserveInitializer",
    "SeedOutcome",
    "TokenImplementationProvisioner",
    # Pipelines
    "DelistingPipeline",
    "LifecycleCollaborators",
    "ListingPipeline",
]
