"""CLI argument parsing and main entry point.

* ``agent-secrets check`` — prepare a snapshot from the config file and
  agent stores, report counts and warnings (never values).
* ``agent-secrets refs``  — list config slots that hold secret references.
* ``agent-secrets slots`` — list every known secret-bearing config slot.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from agent_secrets.constants import APP_NAME, APP_VERSION
from agent_secrets.display.logging_config import secret_redaction_filter, setup_logging
from agent_secrets.errors import AgentSecretsError

module_logger = logging.getLogger(__name__)


def _load_raw_config(config_path: Optional[str]) -> dict:
    from agent_secrets.config.loader import read_config_file, resolve_config_path

    cfg_abs_path = resolve_config_path(config_path)
    module_logger.info("Configuration file path resolved to: %s", cfg_abs_path)
    return read_config_file(cfg_abs_path)


# ── ``agent-secrets check`` ─────────────────────────────────────────────


def _cmd_check(args: argparse.Namespace) -> int:
    """Entry-point for ``agent-secrets check``."""
    from agent_secrets.secrets.runtime import prepare_secrets_runtime_snapshot

    if args.log_level:
        setup_logging(args.log_level)

    try:
        raw_config = _load_raw_config(args.config)
        snapshot = asyncio.run(prepare_secrets_runtime_snapshot(raw_config))
    except AgentSecretsError as exc:
        print(f"Error: {secret_redaction_filter.scrub(str(exc))}", file=sys.stderr)
        return 1

    from agent_secrets.secrets.resolver import find_config_secret_refs

    print(f"Config secret references resolved: {len(find_config_secret_refs(raw_config))}")
    print(f"Agent auth stores: {len(snapshot.auth_stores)}")
    for entry in snapshot.auth_stores:
        print(f"  {entry.agent_dir}: {len(entry.store.profiles)} profile(s)")
    if snapshot.warnings:
        print(f"Warnings ({len(snapshot.warnings)}):")
        for warning in snapshot.warnings:
            print(f"  - {warning}")
    else:
        print("No warnings.")
    return 0


# ── ``agent-secrets refs`` / ``slots`` ──────────────────────────────────


def _cmd_refs(args: argparse.Namespace) -> int:
    """Entry-point for ``agent-secrets refs``."""
    from agent_secrets.secrets.resolver import find_config_secret_refs

    try:
        refs = find_config_secret_refs(_load_raw_config(args.config))
    except AgentSecretsError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if not refs:
        print("No secret references found.")
    for path, ref in refs:
        print(f"{path} -> {ref.describe()}")
    return 0


def _cmd_slots(_args: argparse.Namespace) -> int:
    """Entry-point for ``agent-secrets slots``."""
    from agent_secrets.secrets.manifest import CONFIG_SECRET_SLOTS

    for slot in CONFIG_SECRET_SLOTS:
        print(f"{slot.dotted:45s} {slot.description}")
    return 0


# ── CLI parser construction ──────────────────────────────────────────────


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser with check/refs/slots subcommands."""
    parser = argparse.ArgumentParser(
        prog="agent-secrets",
        description=f"{APP_NAME} v{APP_VERSION}",
    )

    subparsers = parser.add_subparsers(dest="command")

    config_help = (
        "Path to configuration file (YAML or JSON). "
        "Default: $AGENT_SECRETS_CONFIG or <state dir>/config.yaml"
    )

    # ── check ───────────────────────────────────────────────────
    sp_check = subparsers.add_parser(
        "check",
        help="Resolve all secret references and report problems",
    )
    sp_check.add_argument("--config", type=str, default=None, metavar="PATH", help=config_help)
    sp_check.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["debug", "info", "warning", "error", "critical"],
        help="Also write a log file at this level (default: no log file)",
    )
    sp_check.set_defaults(func=_cmd_check)

    # ── refs ────────────────────────────────────────────────────
    sp_refs = subparsers.add_parser(
        "refs",
        help="List config slots holding secret references",
    )
    sp_refs.add_argument("--config", type=str, default=None, metavar="PATH", help=config_help)
    sp_refs.set_defaults(func=_cmd_refs)

    # ── slots ───────────────────────────────────────────────────
    sp_slots = subparsers.add_parser(
        "slots",
        help="List every config location that may hold a secret reference",
    )
    sp_slots.set_defaults(func=_cmd_slots)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Program entry point: parse arguments and dispatch to subcommand."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)
    else:
        sys.exit(args.func(args))
