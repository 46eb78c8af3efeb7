"""Command line tools for the Akamai connectors of a resource collection.

Usage:
    akamai-netstorage connect <collection>
    akamai-netstorage list <collection>
    akamai-netstorage list-paths <collection>
    akamai-netstorage nuke <collection> --are-you-sure yes

Options:
    --config     Collections file (default: NETSTORAGE_COLLECTIONS_FILE)
    --log-level  Logging level (default: NETSTORAGE_LOG_LEVEL)
"""

import argparse
import asyncio
import logging
import sys
from dataclasses import asdict, is_dataclass
from pathlib import Path
from pprint import pformat
from typing import Any, Awaitable, Callable, TextIO

from akamai_netstorage.connector import Connector
from akamai_netstorage.core.config import settings
from akamai_netstorage.resources.registry import CollectionRegistry
from akamai_netstorage.storage.exceptions import CollectionNotFoundError, StorageError

logger = logging.getLogger(__name__)

ROLES = ("storage", "target")
CONFIRMATIONS = {"1", "true", "yes", "y"}


def get_connector(registry: CollectionRegistry, collection_name: str, role: str) -> Connector | None:
    """Connector of the storage or target of a collection, None if it is not Akamai-backed."""
    collection = registry.get_collection(collection_name)
    backend = collection.storage if role == "storage" else collection.target
    return backend.get_connector()


def _dump(value: Any, label: str, out: TextIO) -> None:
    if isinstance(value, list):
        value = [asdict(item) if is_dataclass(item) else item for item in value]
    out.write(f"{label}:\n{pformat(value)}\n")


def _not_found(role: str, collection_name: str, out: TextIO) -> None:
    out.write(f"No akamai connector found for {role} in collection {collection_name}\n")


async def _for_each_connector(
    registry: CollectionRegistry,
    collection_name: str,
    operation: Callable[[Connector], Awaitable[Any]],
    label: str,
    out: TextIO,
) -> None:
    for role in ROLES:
        connector = get_connector(registry, collection_name, role)
        if connector:
            _dump(await operation(connector), f"{role} {label}", out)
        else:
            _not_found(role, collection_name, out)


async def connect_command(registry: CollectionRegistry, collection_name: str, out: TextIO) -> None:
    """Test the connection of both connectors."""
    await _for_each_connector(
        registry, collection_name, lambda c: c.test_connection(), "connection is working", out
    )


async def list_command(registry: CollectionRegistry, collection_name: str, out: TextIO) -> None:
    """Print the recursive listing of both working directories."""
    await _for_each_connector(
        registry, collection_name, lambda c: c.get_content_list(), "connector listing", out
    )


async def list_paths_command(registry: CollectionRegistry, collection_name: str, out: TextIO) -> None:
    """Print every path in deletion order."""
    await _for_each_connector(
        registry, collection_name, lambda c: c.collect_all_paths(), "connector listing", out
    )


async def nuke_command(
    registry: CollectionRegistry, collection_name: str, are_you_sure: str, out: TextIO
) -> None:
    """Danger! Removes all folders and files of the collection's connectors."""
    confirmed = (are_you_sure or "").strip().lower() in CONFIRMATIONS
    for role in ROLES:
        connector = get_connector(registry, collection_name, role)
        if connector and confirmed:
            out.write(f"removing files for {role} connector\n")
            await connector.remove_all_files(out)
        else:
            _not_found(role, collection_name, out)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="akamai-netstorage",
        description="Inspect and clean up the Akamai NetStorage directories of resource collections",
    )
    parser.add_argument("--config", type=Path, default=None, help="Collections file")
    parser.add_argument("--log-level", default=None, help="Logging level")

    subparsers = parser.add_subparsers(dest="command", required=True)
    for name, help_text in (
        ("connect", "Test the storage and target connections"),
        ("list", "List the contents of the working directories"),
        ("list-paths", "List all paths in the order they would be removed"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("collection", help="Resource collection name")

    nuke = subparsers.add_parser("nuke", help="Remove all files and folders of the collection")
    nuke.add_argument("collection", help="Resource collection name")
    nuke.add_argument("--are-you-sure", required=True, help="Confirm with yes")
    return parser


async def run(args: argparse.Namespace, registry: CollectionRegistry, out: TextIO) -> None:
    if args.command == "connect":
        await connect_command(registry, args.collection, out)
    elif args.command == "list":
        await list_command(registry, args.collection, out)
    elif args.command == "list-paths":
        await list_paths_command(registry, args.collection, out)
    elif args.command == "nuke":
        await nuke_command(registry, args.collection, args.are_you_sure, out)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=(args.log_level or settings.LOG_LEVEL).upper(),
        format="%(levelname)s: %(message)s",
    )

    config_file = args.config or settings.COLLECTIONS_FILE
    try:
        registry = CollectionRegistry.from_file(config_file)
    except (OSError, ValueError, StorageError) as e:
        logger.error(f"Could not load collections from {config_file}: {e}")
        return 1

    try:
        asyncio.run(run(args, registry, sys.stdout))
    except CollectionNotFoundError as e:
        logger.error(str(e))
        return 1
    except StorageError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
