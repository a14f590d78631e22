"""Reserve Lifecycle - listing and delisting of lending market reserves.

This package turns a declarative per-market configuration into on-chain
reserves on an Aave v3 style pool, and removes them again, in a way that
can be re-run safely after a partial failure.
"""

__version__ = "0.1.0"

from reserve_lifecycle.core.errors import (
    ConfigurationError,
    DeploymentError,
    LifecycleError,
    OnChainCallFailure,
)

__all__ = [
    "ConfigurationError",
    "DeploymentError",
    "LifecycleError",
    "OnChainCallFailure",
    "__version__",
]
