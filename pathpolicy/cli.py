from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from collections.abc import Sequence
from pathlib import Path

from pathpolicy.hostos import detect_host_os
from pathpolicy.loader import PolicyFileError, load_overrides
from pathpolicy.models import POLICY_KINDS
from pathpolicy.table import OVERRIDES_ENV_KEY, PolicyTable, build_table

_LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
}


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pathpolicy",
        description="Inspect the PATH sandbox tool policy table",
    )
    parser.add_argument(
        "--log-level",
        choices=sorted(_LOG_LEVELS),
        default="WARN",
        help="Logging level",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    show = subparsers.add_parser("show", help="Show the policy for one or more tools.")
    show.add_argument("names", nargs="+", help="Tool basenames to look up.")
    _add_table_arguments(show)
    show.set_defaults(func=_cmd_show)

    listing = subparsers.add_parser("list", help="List table entries.")
    listing.add_argument("--kind", choices=POLICY_KINDS, help="Only list entries of this kind.")
    _add_table_arguments(listing)
    listing.set_defaults(func=_cmd_list)

    validate = subparsers.add_parser("validate", help="Validate a policy override file.")
    validate.add_argument("path", type=Path, help="YAML or JSON override file.")
    validate.set_defaults(func=_cmd_validate)

    return parser


def _add_table_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--host-os",
        default=None,
        help="Resolve the table for this host OS (default: detected).",
    )
    parser.add_argument(
        "--overrides",
        type=Path,
        default=None,
        help=f"Policy override file (default: ${OVERRIDES_ENV_KEY}).",
    )


def _resolve_table(args: argparse.Namespace) -> PolicyTable:
    host_os = (args.host_os or "").strip().lower() or detect_host_os()
    overrides_path = args.overrides
    if overrides_path is None:
        env_value = os.environ.get(OVERRIDES_ENV_KEY, "").strip()
        overrides_path = Path(env_value) if env_value else None
    overrides = load_overrides(overrides_path) if overrides_path is not None else None
    return build_table(host_os, overrides)


def _cmd_show(args: argparse.Namespace) -> int:
    table = _resolve_table(args)
    tools = {name: table.lookup(name).to_payload() for name in args.names}
    print(json.dumps({"host_os": table.host_os, "tools": tools}, sort_keys=True))
    return 0


def _cmd_list(args: argparse.Namespace) -> int:
    table = _resolve_table(args)
    names = table.names(args.kind)
    payload = {
        "host_os": table.host_os,
        "counts": dict(table.counts()),
        "tools": {name: table.lookup(name).kind for name in names},
    }
    print(json.dumps(payload, sort_keys=True))
    return 0


def _cmd_validate(args: argparse.Namespace) -> int:
    overrides = load_overrides(args.path)
    print(json.dumps({"path": str(args.path), "entries": len(overrides)}, sort_keys=True))
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=_LOG_LEVELS[args.log_level])
    try:
        return args.func(args)
    except PolicyFileError as exc:
        print(str(exc), file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
