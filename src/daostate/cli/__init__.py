"""
daostate CLI - inspect DAO application state dumped from an algod node.

Commands:
- daostate info: Show version, schema shape, and configuration
- daostate decode global FILE: Decode application info into a global record
- daostate decode local FILE: Decode local state into an investor record
- daostate match FILE: Check whether local state looks like a DAO's
- daostate dump FILE: Print every key of a snapshot in readable form

FILE holds algod JSON: application info, account info, account-application
info, a single local state object, or a bare key-value list.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from daostate.config.runtime import get_runtime_config
from daostate.observability.logger import configure_logging
from daostate.state.decoder import decode_global_state, decode_investor_state
from daostate.state.diagnostics import format_snapshot
from daostate.state.fetch import global_state_from_application, local_state_from_account
from daostate.state.matcher import find_dao_local_states, matches_local_schema
from daostate.state.schema import GLOBAL_SCHEMA, LOCAL_SCHEMA
from daostate.state.snapshot import StateSnapshot
from daostate.utils.errors import DaoStateError, create_error_response

EXIT_OK = 0
EXIT_DECODE_ERROR = 1
EXIT_USAGE_ERROR = 2


class _UsageError(Exception):
    pass


def _read_json(path: str) -> Any:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as e:
        raise _UsageError(f"Cannot read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise _UsageError(f"{path} is not valid JSON: {e}") from e


def _load_snapshot(path: str, app_id: int | None = None) -> tuple[StateSnapshot, str | None]:
    """Load a snapshot (and the creator, for application info) from a JSON file."""
    payload = _read_json(path)
    try:
        if isinstance(payload, list):
            return StateSnapshot.from_algod(payload), None
        if not isinstance(payload, dict):
            raise _UsageError(f"Unsupported JSON payload in {path}")
        if "params" in payload:
            return global_state_from_application(payload)
        if "app-local-state" in payload:
            local_id = app_id if app_id is not None else int(payload["app-local-state"]["id"])
            return local_state_from_account(payload, local_id), None
        if "apps-local-state" in payload:
            if app_id is None:
                raise _UsageError("--app-id is required for account info payloads")
            return local_state_from_account(payload, app_id), None
        if "key-value" in payload:
            return StateSnapshot.from_algod(payload["key-value"], payload.get("schema")), None
    except (KeyError, TypeError, ValueError) as e:
        raise _UsageError(f"Malformed state payload in {path}: {e}") from e
    raise _UsageError(f"Unsupported JSON payload in {path}")


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, sort_keys=True))


def cmd_info(args: argparse.Namespace) -> int:
    """Show version, schema shape, and configuration."""
    from daostate import __version__

    config = get_runtime_config()
    print("=" * 60)
    print("daostate - DAO application state decoder")
    print("=" * 60)
    print()
    print(f"Version:     {__version__}")
    print(
        f"Python:      {sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"
    )
    print()
    print("Schemas:")
    for descriptor in (GLOBAL_SCHEMA, LOCAL_SCHEMA):
        print(
            f"  {descriptor.name:<8} {descriptor.num_ints} ints + "
            f"{descriptor.num_byte_slices} byte slices = {descriptor.total_slots} slots"
        )
    print()
    print("Configuration:")
    for section, values in config.to_dict().items():
        if isinstance(values, dict):
            for key, value in values.items():
                print(f"  {section}.{key}: {value}")
        else:
            print(f"  {section}: {values}")
    print("=" * 60)
    return EXIT_OK


def cmd_decode(args: argparse.Namespace) -> int:
    """Decode a global or local state file into a record."""
    config = get_runtime_config()
    snapshot, creator = _load_snapshot(args.file, args.app_id)
    log_state = config.decoder.log_state_on_mismatch

    if args.area == "global":
        owner = args.owner or creator
        if owner is None:
            raise _UsageError("--owner is required when the file carries no creator")
        record = decode_global_state(snapshot, owner, log_state)
    else:
        record = decode_investor_state(snapshot, log_state)

    output = record.model_dump(mode="json")
    if args.area == "local":
        output["claimed_since_lock"] = record.claimed_since_lock
    _print_json(output)
    return EXIT_OK


def cmd_match(args: argparse.Namespace) -> int:
    """Report whether local state matches the DAO investor schema."""
    payload = _read_json(args.file)
    if isinstance(payload, dict) and "apps-local-state" in payload and args.app_id is None:
        _print_json({"matching_app_ids": find_dao_local_states(payload)})
        return EXIT_OK

    snapshot, _ = _load_snapshot(args.file, args.app_id)
    _print_json({"matches": matches_local_schema(snapshot)})
    return EXIT_OK


def cmd_dump(args: argparse.Namespace) -> int:
    """Print every entry of a snapshot."""
    snapshot, _ = _load_snapshot(args.file, args.app_id)
    _print_json(format_snapshot(snapshot))
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    from daostate import __version__

    parser = argparse.ArgumentParser(
        prog="daostate",
        description="daostate - DAO application state decoder",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log at DEBUG level (includes state dumps on schema mismatch)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("info", help="Show version, schemas, and configuration")

    decode_parser = subparsers.add_parser("decode", help="Decode a state file")
    decode_parser.add_argument("area", choices=["global", "local"], help="State area")
    decode_parser.add_argument("file", help="Path to algod JSON")
    decode_parser.add_argument(
        "--owner",
        type=str,
        help="Application creator address (default: creator in the file)",
    )
    decode_parser.add_argument(
        "--app-id",
        type=int,
        help="Application id, required for account info payloads",
    )

    match_parser = subparsers.add_parser("match", help="Classify local state")
    match_parser.add_argument("file", help="Path to algod JSON")
    match_parser.add_argument("--app-id", type=int, help="Application id to check")

    dump_parser = subparsers.add_parser("dump", help="Print a snapshot")
    dump_parser.add_argument("file", help="Path to algod JSON")
    dump_parser.add_argument("--app-id", type=int, help="Application id")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config = get_runtime_config()
        if args.verbose:
            config.observability.log_level = "DEBUG"
        configure_logging(config.observability)

        if args.command == "info":
            return cmd_info(args)
        elif args.command == "decode":
            return cmd_decode(args)
        elif args.command == "match":
            return cmd_match(args)
        elif args.command == "dump":
            return cmd_dump(args)
        else:
            parser.print_help()
            return EXIT_OK
    except _UsageError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE_ERROR
    except DaoStateError as e:
        print(json.dumps(create_error_response(e), indent=2), file=sys.stderr)
        return EXIT_DECODE_ERROR


if __name__ == "__main__":
    sys.exit(main())
