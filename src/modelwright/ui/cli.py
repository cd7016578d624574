# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Any

from dotenv import load_dotenv

from modelwright.adapters.tooling import to_jsonable
from modelwright.app import build_engine, create_named_object
from modelwright.config import configure_logging

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Discover and apply mutations on a foreign object model"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log at DEBUG level",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    types = subparsers.add_parser("types", help="List supported types")
    types.add_argument(
        "--mutable",
        action="store_true",
        help="List descriptors of types exposing at least one mutation instead",
    )

    capabilities = subparsers.add_parser("capabilities", help="Show the capabilities of a type")
    capabilities.add_argument("type_name", help="Short or qualified type name")

    create = subparsers.add_parser("create", help="Create and store a named object")
    create.add_argument("type_name", help="Short or qualified type name")
    create.add_argument("object_name", help="Name to store the object under")
    create.add_argument(
        "--input",
        dest="inputs",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Input value; VALUE is parsed as JSON when possible (repeatable)",
    )

    execute = subparsers.add_parser("execute", help="Execute a mutation on a stored object")
    execute.add_argument("type_name", help="Short or qualified type name")
    execute.add_argument("object_name", help="Name of the stored object")
    execute.add_argument("operation", help="Mutation capability name")
    execute.add_argument(
        "--input",
        dest="inputs",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Input value; VALUE is parsed as JSON when possible (repeatable)",
    )

    subparsers.add_parser("stats", help="Show engine cache statistics")

    return parser.parse_args(list(argv))


def _parse_inputs(pairs: Sequence[str]) -> dict[str, Any]:
    inputs: dict[str, Any] = {}
    for pair in pairs:
        key, separator, raw = pair.partition("=")
        if not separator or not key.strip():
            raise ValueError(f"Invalid input {pair!r}; expected KEY=VALUE")
        try:
            inputs[key.strip()] = json.loads(raw)
        except json.JSONDecodeError:
            inputs[key.strip()] = raw
    return inputs


def _emit(payload: object) -> None:
    print(json.dumps(to_jsonable(payload), indent=2, sort_keys=True))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args: argparse.Namespace
    inputs: dict[str, Any] = {}
    try:
        parsed_args = _parse_args(args_list)
        if parsed_args.command in {"create", "execute"}:
            inputs = _parse_inputs(parsed_args.inputs)
    except ValueError:
        configure_logging()
        log.exception("CLI validation error")
        sys.exit(2)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else None)

    succeeded = True
    try:
        engine = build_engine()
        if parsed_args.command == "types":
            if parsed_args.mutable:
                _emit(engine.discover_available_types())
            else:
                _emit(engine.list_supported_types())
        elif parsed_args.command == "capabilities":
            capabilities = engine.get_capabilities(parsed_args.type_name)
            succeeded = capabilities.success
            _emit(capabilities)
        elif parsed_args.command == "create":
            creation, saved = create_named_object(
                engine, parsed_args.type_name, parsed_args.object_name, inputs
            )
            succeeded = creation.success and saved
            _emit({"creation": creation, "saved": saved})
        elif parsed_args.command == "execute":
            result = engine.execute_mutation(
                parsed_args.type_name, parsed_args.object_name, parsed_args.operation, inputs
            )
            succeeded = result.success
            _emit(result)
        elif parsed_args.command == "stats":
            _emit(engine.get_statistics())
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except Exception:
        log.exception("Fatal error while running %s", parsed_args.command)
        sys.exit(1)

    if not succeeded:
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
