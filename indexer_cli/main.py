"""
CLI Main Entry Point

Parses command-line arguments and dispatches to subcommands.

Usage:
    python -m indexer_cli serve [--host H] [--port P] [--no-ingest]
    python -m indexer_cli sync [--once]
    python -m indexer_cli root
    python -m indexer_cli path <leaf_index>
    python -m indexer_cli path --commitment <value>
    python -m indexer_cli pending
    python -m indexer_cli submit [--root R]
    python -m indexer_cli submit-all
    python -m indexer_cli verify-path <file.json> [--root R]
    python -m indexer_cli config --init [--path indexer.json]

Environment Variables:
    RPC_URL                     Starknet JSON-RPC endpoint
    CONTRACT                    Commitment contract address
    START_BLOCK                 First block to scan on an empty database
    PORT                        Query API port (default: 4000)
    INDEXER_ACCOUNT_ADDRESS     Account used to submit roots
    INDEXER_PRIVATE_KEY         Private key of that account
    INDEXER_DB_PATH             SQLite database (default: commitments.db)
    INDEXER_LOG_LEVEL           Log level (default: INFO)
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import traceback
from pathlib import Path
from typing import Sequence

from core.config.runtime import load_config
from core.schemas.errors import DataIntegrityError, IndexerException
from indexer_cli.commands import query, serve, submit, verify
from indexer_cli.config import get_default_config_template


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the CLI."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="commitment-indexer",
        description="Commitment indexer - sync commitments, serve Merkle paths, publish roots.",
    )
    parser.add_argument(
        "--version", action="version", version="%(prog)s 0.1.0"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Path to configuration file (default: ./indexer.json or ~/.config/commitment-indexer/config.json)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides config)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output machine-readable JSON",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Print tracebacks on error",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- serve command ---
    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the query API with the ingestion loop",
    )
    serve_parser.add_argument("--host", type=str, default=None, help="Bind address (default: from config)")
    serve_parser.add_argument("--port", type=int, default=None, help="Port (default: PORT or 4000)")
    serve_parser.add_argument(
        "--no-ingest",
        action="store_true",
        default=False,
        help="Serve local state only, do not poll the chain",
    )
    serve_parser.set_defaults(func=serve.serve_cmd)

    # --- sync command ---
    sync_parser = subparsers.add_parser(
        "sync",
        help="Run ingestion in the foreground",
        description="Poll the chain, append new commitments and record roots.",
    )
    sync_parser.add_argument(
        "--once",
        action="store_true",
        default=False,
        help="Run a single ingestion cycle and exit",
    )
    sync_parser.set_defaults(func=serve.sync_cmd)

    # --- query commands ---
    root_parser = subparsers.add_parser("root", help="Show the current root")
    root_parser.set_defaults(func=query.root_cmd)

    path_parser = subparsers.add_parser(
        "path",
        help="Print the inclusion path for a leaf",
        description="Print the inclusion path (JSON) by leaf index or by commitment value.",
    )
    path_parser.add_argument("leaf_index", type=int, nargs="?", default=None, help="0-based leaf index")
    path_parser.add_argument("--commitment", type=str, default=None, help="Commitment value (decimal or 0x-hex)")
    path_parser.set_defaults(func=query.path_cmd)

    pending_parser = subparsers.add_parser("pending", help="List roots not yet submitted")
    pending_parser.set_defaults(func=query.pending_cmd)

    # --- submit commands ---
    submit_parser = subparsers.add_parser(
        "submit",
        help="Submit one root (default: the newest pending root)",
    )
    submit_parser.add_argument("--root", type=str, default=None, help="Root to submit")
    submit_parser.set_defaults(func=submit.submit_cmd)

    submit_all_parser = subparsers.add_parser(
        "submit-all",
        help="Submit every pending root, oldest first",
    )
    submit_all_parser.set_defaults(func=submit.submit_all_cmd)

    # --- verify-path command ---
    verify_parser = subparsers.add_parser(
        "verify-path",
        help="Recompute the root from an inclusion path",
    )
    verify_parser.add_argument("path_file", type=str, help="JSON file as printed by `path` or GET /path")
    verify_parser.add_argument("--root", type=str, default=None, help="Expected root (default: the file's root)")
    verify_parser.set_defaults(func=verify.verify_path_cmd)

    # --- config command ---
    config_parser = subparsers.add_parser(
        "config",
        help="Manage configuration",
        description="Print a configuration template or the effective configuration.",
    )
    config_parser.add_argument(
        "--init",
        action="store_true",
        default=False,
        help="Print a template configuration (or write it with --path)",
    )
    config_parser.add_argument(
        "--show",
        action="store_true",
        default=False,
        help="Show the effective configuration (private key redacted)",
    )
    config_parser.add_argument(
        "--path",
        type=str,
        default=None,
        help="Write the template to this file instead of stdout",
    )
    config_parser.set_defaults(func=config_cmd)

    return parser


def config_cmd(args: argparse.Namespace) -> int:
    """Handle config command."""
    if args.init:
        template = get_default_config_template()
        if args.path is None:
            sys.stdout.write(template)
            return EXIT_SUCCESS

        config_path = Path(args.path)
        if config_path.exists():
            print(f"Error: Config file already exists: {config_path}", file=sys.stderr)
            return EXIT_RUNTIME_ERROR
        config_path.write_text(template)
        print(f"Created configuration file: {config_path}")
        print("Keep INDEXER_PRIVATE_KEY in the environment or .env, not in this file.")
        return EXIT_SUCCESS

    if args.show:
        print(json.dumps(args.indexer_config.to_dict(), indent=2))
        return EXIT_SUCCESS

    print("Usage: commitment-indexer config [--init [--path FILE]|--show]")
    return EXIT_SUCCESS


def main(argv: Sequence[str] | None = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0=success, 1=error, 2=verification failed / ingestion halted)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_RUNTIME_ERROR

    # Load configuration
    try:
        config = load_config(args.config)
    except Exception as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    setup_logging(level=args.log_level or config.log_level)

    # Attach config to args for commands to use
    args.indexer_config = config

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except DataIntegrityError as e:
        print(f"Data-integrity failure: {e.message} {e.details}", file=sys.stderr)
        return EXIT_VERIFICATION_FAILED
    except IndexerException as e:
        if args.debug:
            traceback.print_exc()
        print(f"Error [{e.code}]: {e.message}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except Exception as e:
        if args.debug:
            traceback.print_exc()
        else:
            print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(main())
