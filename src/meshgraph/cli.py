"""
Command line entry point for meshgraph.

Commands:
    meshgraph init-db                          - Create the snapshot tables
    meshgraph deps <node>                      - Print what a node depends on
    meshgraph deps <node> --service <name>     - Print service-level dependencies
    meshgraph deps <node> --from MS --to MS    - Answer from stored snapshots

Exit codes follow ``meshgraph.core.errors.ExitCode``.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Sequence

from pydantic import ValidationError
from rich.console import Console

from meshgraph.config import Settings, get_settings
from meshgraph.core.errors import (
    ConfigurationError,
    ExitCode,
    MeshGraphError,
    format_error_message,
)
from meshgraph.db.session import create_schema, dispose_engine, get_session_factory, init_engine
from meshgraph.logging import configure_logging
from meshgraph.query import DependencyQueryService, build_graph_store
from meshgraph.snapshots.sql import SqlSnapshotStore

console = Console()
err_console = Console(stderr=True)


def load_settings() -> Settings:
    """
    Load settings from the environment.

    Raises:
        ConfigurationError: If a MESHGRAPH_ variable holds an invalid value
    """
    try:
        return get_settings()
    except ValidationError as exc:
        fields = ",".join(str(err["loc"][0]) for err in exc.errors() if err["loc"])
        raise ConfigurationError(
            "Invalid meshgraph settings", details={"fields": fields}
        ) from exc


async def init_db_command(settings: Settings) -> int:
    """Create the snapshot tables in the configured database."""
    init_engine(settings)
    try:
        await create_schema()
    finally:
        await dispose_engine()

    console.print("[green]✓[/green] Snapshot tables ready")
    return ExitCode.SUCCESS


async def deps_command(
    settings: Settings,
    node_id: str,
    service: str | None = None,
    from_ms: int = 0,
    to_ms: int = 0,
) -> int:
    """
    Print the dependency model of a node as JSON.

    With no time range the graph is rebuilt from the last stored snapshot.
    """
    init_engine(settings)
    try:
        snapshot_store = SqlSnapshotStore(get_session_factory())
        graph_store = await build_graph_store(snapshot_store)
        queries = DependencyQueryService(graph_store, snapshot_store)
        if service:
            model = await queries.get_service_dependency_model(from_ms, to_ms, node_id, service)
        else:
            model = await queries.get_dependency_model(from_ms, to_ms, node_id)
    finally:
        await dispose_engine()

    console.print_json(data=model.to_dict())
    return ExitCode.SUCCESS


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="meshgraph", description="Service dependency graph for a microservice mesh"
    )
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("init-db", help="Create the snapshot tables")

    deps_parser = subparsers.add_parser("deps", help="Print the dependencies of a node")
    deps_parser.add_argument("node", help="Node (mesh instance) id")
    deps_parser.add_argument("--service", help="Resolve dependencies of one hosted service")
    deps_parser.add_argument(
        "--from", dest="from_ms", type=int, default=0, help="Range start, epoch ms"
    )
    deps_parser.add_argument(
        "--to", dest="to_ms", type=int, default=0, help="Range end, epoch ms (0 = now)"
    )
    return parser


def run_command(args: argparse.Namespace) -> int:
    """Run a parsed command and map meshgraph errors to exit codes."""
    try:
        settings = load_settings()
        configure_logging(settings.log_level, json_output=False)

        if args.command == "init-db":
            return asyncio.run(init_db_command(settings))
        if args.command == "deps":
            return asyncio.run(
                deps_command(
                    settings,
                    args.node,
                    service=args.service,
                    from_ms=args.from_ms,
                    to_ms=args.to_ms,
                )
            )
    except MeshGraphError as exc:
        err_console.print(f"✗ {format_error_message(exc)}", style="red", markup=False)
        return exc.exit_code

    return ExitCode.UNKNOWN_ERROR


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(ExitCode.CONFIG_ERROR)

    sys.exit(run_command(args))
