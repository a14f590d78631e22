"""Command-line interface for reserve listing and delisting.

Provides CLI entry points for:
- Listing every configured reserve of a market on the active network
- Delisting (dropping) those reserves again
- Verifying the run log a list or delist left behind

Settings come from the environment (.env supported) and can be overridden
with flags. Each invocation writes its own hash-chained run log and checks
it before exiting.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from web3 import Web3
from web3.middleware import SignAndSendRawMiddlewareBuilder

from reserve_lifecycle.core.context import NetworkContext, OperatorSettings
from reserve_lifecycle.core.errors import ConfigurationError, LifecycleError
from reserve_lifecycle.core.logging import OperationLogger, verify_log_integrity
from reserve_lifecycle.data.aave_v3 import (
    RegistryTokenRecordStore,
    Web3ImplementationInitializer,
    Web3PoolAdmin,
    Web3PriceOracle,
    Web3TransactionSubmitter,
)
from reserve_lifecycle.data.constants import (
    ORACLE_ID,
    POOL_ADDRESSES_PROVIDER_ID,
    POOL_DATA_PROVIDER_ID,
    RESERVES_SETUP_HELPER_ID,
)
from reserve_lifecycle.data.interfaces import DeploymentRegistry
from reserve_lifecycle.data.registry import ArtifactStore, JsonDeploymentRegistry
from reserve_lifecycle.lifecycle.pipeline import (
    DelistingPipeline,
    LifecycleCollaborators,
    ListingPipeline,
)
from reserve_lifecycle.markets import load_market_config


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    """Flags shared by every lifecycle command."""
    market_group = parser.add_argument_group("market")
    market_group.add_argument(
        "--market",
        dest="market_name",
        help="Market configuration name (default: $MARKET_NAME)",
    )
    market_group.add_argument(
        "--network",
        help="Network name (default: $NETWORK)",
    )
    market_group.add_argument(
        "--fork",
        help="Network whose tables to use on a forked node (default: $FORK)",
    )

    node_group = parser.add_argument_group("node")
    node_group.add_argument(
        "--rpc-url",
        help="JSON-RPC endpoint (default: $RPC_URL or http://127.0.0.1:8545)",
    )

    paths_group = parser.add_argument_group("paths")
    paths_group.add_argument(
        "--deployments-dir",
        type=Path,
        help="Deployment registry directory (default: ./deployments)",
    )
    paths_group.add_argument(
        "--artifacts-dir",
        type=Path,
        help="Compiled contract artifacts directory (default: ./artifacts)",
    )
    paths_group.add_argument(
        "--log-dir",
        type=Path,
        help="Run log directory (default: ./logs)",
    )


def _settings_from_args(args: argparse.Namespace) -> OperatorSettings:
    return OperatorSettings.from_env(
        market_name=args.market_name,
        network=args.network,
        fork=args.fork,
        rpc_url=args.rpc_url,
        deployments_dir=args.deployments_dir,
        artifacts_dir=args.artifacts_dir,
        log_dir=args.log_dir,
    )


def _connect(settings: OperatorSettings) -> tuple[Web3, str]:
    """Open the node connection and pick the deployer account."""
    web3 = Web3(Web3.HTTPProvider(settings.rpc_url))
    if not web3.is_connected():
        raise ConfigurationError(f"Cannot reach a node at {settings.rpc_url}.")

    if settings.private_key:
        account = web3.eth.account.from_key(settings.private_key)
        web3.middleware_onion.inject(SignAndSendRawMiddlewareBuilder.build(account), layer=0)
        deployer = account.address
    else:
        accounts = web3.eth.accounts
        if not accounts:
            raise ConfigurationError(
                "No DEPLOYER_PRIVATE_KEY set and the node exposes no unlocked accounts."
            )
        deployer = accounts[0]

    web3.eth.default_account = deployer
    return web3, deployer


def _require(registry: DeploymentRegistry, name: str) -> str:
    handle = registry.get(name)
    if handle is None:
        raise ConfigurationError(f"{name} is not deployed on this network.")
    return handle.address


def _build_collaborators(
    web3: Web3,
    settings: OperatorSettings,
    deployer: str,
    logger: OperationLogger,
    configures_reserves: bool,
) -> LifecycleCollaborators:
    transactions = Web3TransactionSubmitter(web3)
    registry = JsonDeploymentRegistry(
        web3,
        settings.active_network,
        settings.deployments_dir,
        deployer,
        transactions,
        ArtifactStore(settings.artifacts_dir),
        logger,
    )

    # Only listing sets risk parameters through the helper
    setup_helper = None
    if configures_reserves:
        setup_helper = registry.deploy(
            RESERVES_SETUP_HELPER_ID, RESERVES_SETUP_HELPER_ID, []
        ).address

    pool = Web3PoolAdmin(
        web3,
        _require(registry, POOL_ADDRESSES_PROVIDER_ID),
        deployer,
        transactions,
        setup_helper,
    )

    return LifecycleCollaborators(
        registry=registry,
        pool=pool,
        oracle=Web3PriceOracle(web3, _require(registry, ORACLE_ID), deployer),
        transactions=transactions,
        implementation_initializer=Web3ImplementationInitializer(web3, deployer),
        token_records=RegistryTokenRecordStore(
            web3, registry, _require(registry, POOL_DATA_PROVIDER_ID), settings.market_name
        ),
    )


def _report_run_log(logger: OperationLogger) -> bool:
    """Close the run log and print where it is and whether it is intact."""
    logger.close()
    summary = logger.get_log_summary()
    is_valid, errors = logger.verify()

    print()
    print(f"Run log: {summary['json_log_path']} ({summary['entry_count']} entries)")
    if is_valid:
        print(f"Run log chain head: {summary['last_hash']}")
    else:
        print("WARNING: run log failed verification:", file=sys.stderr)
        for error in errors:
            print(f"  {error}", file=sys.stderr)
    return is_valid


def _run(
    operation: str,
    pipeline_cls: type[ListingPipeline] | type[DelistingPipeline],
    args: argparse.Namespace,
) -> None:
    """Shared body of the list and delist commands."""
    try:
        settings = _settings_from_args(args)
        config = load_market_config(settings.market_name)
    except LifecycleError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)

    logger = OperationLogger.create_run(operation, settings.market_name, settings.log_dir)

    print("=" * 60)
    print(f"{config.market_id}: {operation} reserves")
    print("=" * 60)
    print(f"Network: {settings.active_network}")
    print(f"RPC: {settings.rpc_url}")
    print()

    try:
        web3, deployer = _connect(settings)
        context = NetworkContext.verify(settings.active_network, web3.eth.chain_id, deployer)
        collaborators = _build_collaborators(
            web3,
            settings,
            deployer,
            logger,
            configures_reserves=pipeline_cls is ListingPipeline,
        )
        pipeline = pipeline_cls(config, context, collaborators, settings.market_name, logger)
        pipeline.run()
    except LifecycleError as e:
        logger.error(str(e), {"error_type": type(e).__name__})
        _report_run_log(logger)
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)

    if not _report_run_log(logger):
        sys.exit(1)
    print(f"{operation.capitalize()} complete.")


def verify_log() -> None:
    """CLI entry point for checking a finished run log."""
    parser = argparse.ArgumentParser(
        prog="verify-run-log",
        description="Check the hash chain of a run log written by list or delist",
    )
    parser.add_argument("log_path", type=Path, help="Path to a run's .jsonl file")
    _verify_log(parser.parse_args())


def _verify_log(args: argparse.Namespace) -> None:
    if not args.log_path.exists():
        print(f"ERROR: {args.log_path} does not exist", file=sys.stderr)
        sys.exit(1)

    is_valid, errors = verify_log_integrity(args.log_path)
    if not is_valid:
        print(f"{args.log_path}: INVALID", file=sys.stderr)
        for error in errors:
            print(f"  {error}", file=sys.stderr)
        sys.exit(1)
    print(f"{args.log_path}: OK")


def run_list() -> None:
    """CLI entry point for listing new reserves."""
    parser = argparse.ArgumentParser(
        prog="list-new-tokens",
        description="Deploy strategies and token implementations, then list reserves",
    )
    _add_common_arguments(parser)
    _run("list", ListingPipeline, parser.parse_args())


def run_delist() -> None:
    """CLI entry point for dropping listed reserves."""
    parser = argparse.ArgumentParser(
        prog="drop-tokens",
        description="Drop reserves from the pool and delete their token records",
    )
    _add_common_arguments(parser)
    _run("delist", DelistingPipeline, parser.parse_args())


def main() -> None:
    """Main CLI entry point with subcommands."""
    parser = argparse.ArgumentParser(
        prog="reserve-lifecycle",
        description="Reserve listing and delisting for lending markets",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    list_parser = subparsers.add_parser("list", help="List configured reserves")
    _add_common_arguments(list_parser)

    delist_parser = subparsers.add_parser("delist", help="Drop configured reserves")
    _add_common_arguments(delist_parser)

    verify_parser = subparsers.add_parser("verify-log", help="Check a run log's hash chain")
    verify_parser.add_argument("log_path", type=Path, help="Path to a run's .jsonl file")

    args = parser.parse_args()

    if args.command == "list":
        _run("list", ListingPipeline, args)
    elif args.command == "delist":
        _run("delist", DelistingPipeline, args)
    elif args.command == "verify-log":
        _verify_log(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
