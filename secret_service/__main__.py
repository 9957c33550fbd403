"""Command-line access to the Secret Service.

    python -m secret_service collections
    python -m secret_service search service=github user=alice
    python -m secret_service lookup service=github user=alice
    printf 's3cret' | python -m secret_service store --label GitHub service=github
    python -m secret_service clear --label Test
"""
import sys
import asyncio
import argparse
import logging
from typing import Any, Optional

import orjson

from .config import ClientConfig
from .exceptions import NoResultError, SecretServiceException
from .item import Item
from .service import SecretService

logger = logging.getLogger("secret_service")


def set_args() -> argparse.ArgumentParser:
    """
    Set the arguments for the command line.

    Returns:
        argparse.ArgumentParser: The argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="secret_service",
        description="Query and store secrets through the FreeDesktop Secret Service.",
    )
    parser.add_argument(
        "--algorithm",
        choices=("plain", "dh"),
        default=None,
        help="Transport encryption to negotiate (default: from environment, else dh).",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log debug information to stderr.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("collections", help="List collections.")

    search = commands.add_parser("search", help="List items matching attributes.")
    search.add_argument("attributes", nargs="*", metavar="KEY=VALUE")

    lookup = commands.add_parser("lookup", help="Print the secret of the first match.")
    lookup.add_argument("attributes", nargs="+", metavar="KEY=VALUE")

    store = commands.add_parser("store", help="Store a secret read from stdin.")
    store.add_argument("--label", required=True)
    store.add_argument("--replace", action="store_true")
    store.add_argument("--content-type", default="text/plain")
    store.add_argument("attributes", nargs="+", metavar="KEY=VALUE")

    clear = commands.add_parser("clear", help="Delete every collection with a label.")
    clear.add_argument("--label", required=True)
    return parser


def parse_pairs(values: list[str]) -> list[tuple[str, str]]:
    """Split ``KEY=VALUE`` arguments; duplicates are checked later."""
    pairs = []
    for value in values:
        key, sep, val = value.partition("=")
        if not sep or not key:
            raise ValueError(f"Expected KEY=VALUE, got {value!r}")
        pairs.append((key, val))
    return pairs


async def describe_item(item: Item) -> dict[str, Any]:
    return {
        "path": item.path,
        "label": await item.get_label(),
        "attributes": await item.get_attributes(),
        "locked": await item.is_locked(),
    }


def dump(data: Any) -> None:
    sys.stdout.write(orjson.dumps(data, option=orjson.OPT_INDENT_2).decode("utf-8"))
    sys.stdout.write("\n")


async def run(args: argparse.Namespace, service: SecretService,
              stdin: Optional[Any] = None) -> int:
    """Execute one parsed command against a connected service."""
    if args.command == "collections":
        result = []
        for collection in await service.get_all_collections():
            result.append({
                "path": collection.path,
                "label": await collection.get_label(),
                "locked": await collection.is_locked(),
            })
        dump(result)
    elif args.command == "search":
        found = await service.search_items(parse_pairs(args.attributes))
        dump([await describe_item(item) for item in found.all()])
    elif args.command == "lookup":
        found = await service.search_items(parse_pairs(args.attributes))
        if not found.unlocked:
            raise NoResultError("No unlocked item matches")
        sys.stdout.buffer.write(await found.unlocked[0].get_secret())
        sys.stdout.flush()
    elif args.command == "store":
        stream = stdin if stdin is not None else sys.stdin.buffer
        collection = await service.get_default_collection()
        if await collection.is_locked():
            await collection.unlock()
        item = await collection.create_item(
            args.label,
            parse_pairs(args.attributes),
            stream.read(),
            replace=args.replace,
            content_type=args.content_type,
        )
        dump({"path": item.path})
    elif args.command == "clear":
        deleted = []
        for collection in await service.get_all_collections():
            if await collection.get_label() == args.label:
                await collection.delete()
                deleted.append(collection.path)
        dump({"deleted": deleted})
    return 0


async def amain(args: argparse.Namespace) -> int:
    config = ClientConfig.from_env()
    async with await SecretService.connect(args.algorithm, config=config) as service:
        return await run(args, service)


def main(argv: Optional[list[str]] = None) -> int:
    args = set_args().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(amain(args))
    except (SecretServiceException, ValueError) as err:
        logger.debug("Command failed", exc_info=True)
        print(f"secret_service: {err}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
