"""Core modules: errors, operator context and run logging."""

from reserve_lifecycle.core.context import NetworkContext, OperatorSettings
from reserve_lifecycle.core.errors import (
    CallReverted,
    ConfigurationError,
    DeploymentError,
    LifecycleError,
    OnChainCallFailure,
    TxFailed,
)
from reserve_lifecycle.core.logging import OperationLogger, verify_log_integrity

__all__ = [
    # Context
    "NetworkContext",
    "OperatorSettings",
    # Errors
    "CallReverted",
    "ConfigurationError",
    "DeploymentError",
    "LifecycleError",
    "OnChainCallFailure",
    "TxFailed",
    # Logging
    "OperationLogger",
    "verify_log_integrity",
]
