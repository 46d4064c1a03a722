"""
couchtree CLI — Download / upload CouchDB design documents as file trees.

Commands:
- couchtree download DOC_ID   — Write DOC_ID into {path}/{database}/{name}/
- couchtree upload DOC_ID     — PUT {path}/{database}/{name}/ back as DOC_ID

Example:
    couchtree --server=http://localhost:5984 --user admin --password Secret \\
        --path=$HOME/couchdb --database=my-database download _design/indexes

Exit codes: 0 success, 1 operation failed, 2 usage or configuration error.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional

from couchtree.engine.client import CouchClient
from couchtree.engine.config import CouchTreeConfig, apply_overrides, load_config
from couchtree.engine.errors import CouchTreeConfigError, CouchTreeError
from couchtree.engine.logging import LEVELS, FileLogger, configure_logging

logger = logging.getLogger("couchtree.cli")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="couchtree",
        description="Keep CouchDB design documents as plain files",
    )
    parser.add_argument("--config", help="Path to couchtree.yaml (default: auto-discover)")
    parser.add_argument("--server", help="Server address and port (default: http://localhost:5984)")
    parser.add_argument("--database", help="Database holding the design document (required)")
    parser.add_argument("--user", help="User name")
    parser.add_argument("--password", help="User password")
    parser.add_argument("--path", help="Path of the design documents (default: .)")
    parser.add_argument("--suffix", help="Content file suffix (default: .js)")
    parser.add_argument(
        "--log", type=str.upper, choices=list(LEVELS), help="Logging level (default: INFO)"
    )
    # Accepted before the command as well as after "upload"; ignored by download
    parser.add_argument(
        "--ignore-rev", dest="global_ignore_rev", action="store_true",
        help="Do not send the _rev file to the server (upload only)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # couchtree download
    download_parser = subparsers.add_parser("download", help="Write a design document to disk")
    download_parser.add_argument("document_id", help="Document id (e.g., _design/indexes)")

    # couchtree upload
    upload_parser = subparsers.add_parser("upload", help="Upload a design document from disk")
    upload_parser.add_argument("document_id", help="Document id (e.g., _design/indexes)")
    upload_parser.add_argument(
        "--ignore-rev", action="store_true", help="Do not send the _rev file to the server"
    )

    return parser


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command not in ("download", "upload"):
        parser.print_usage(sys.stderr)
        return EXIT_USAGE

    try:
        config = resolve_config(args)
    except CouchTreeConfigError as e:
        print(f"[ERROR] {e.message}", file=sys.stderr)
        return EXIT_USAGE

    if not config.database:
        print("--database=name is a required parameter", file=sys.stderr)
        parser.print_usage(sys.stderr)
        return EXIT_USAGE

    configure_logging(config.logging.level)

    if args.command == "download":
        return cmd_download(args, config)
    return cmd_upload(args, config)


def resolve_config(args: argparse.Namespace) -> CouchTreeConfig:
    """couchtree.yaml (if any) with command-line flags on top."""
    config = load_config(args.config)
    return apply_overrides(config, {
        "database": args.database,
        "server.url": args.server,
        "server.user": args.user,
        "server.password": args.password,
        "tree.path": args.path,
        "tree.suffix": args.suffix,
        "logging.level": args.log,
    })


def make_client(config: CouchTreeConfig) -> CouchClient:
    return CouchClient(
        config.server.url,
        user=config.server.user,
        password=config.server.password,
        timeout=config.server.timeout,
    )


def _journal(config: CouchTreeConfig) -> Optional[FileLogger]:
    if not config.logging.journal:
        return None
    return FileLogger(config.logging.directory)


def cmd_download(args: argparse.Namespace, config: CouchTreeConfig) -> int:
    from couchtree.sync import download

    try:
        with make_client(config) as client:
            result = download(
                client,
                config.database,
                config.tree.path,
                args.document_id,
                suffix=config.tree.suffix,
                journal=_journal(config),
            )
    except CouchTreeError as e:
        logger.error(f"download of {args.document_id} failed >>> {e!r}")
        return EXIT_FAILED

    logger.info(f"{result.files} file(s) written to {result.path}")
    return EXIT_OK


def cmd_upload(args: argparse.Namespace, config: CouchTreeConfig) -> int:
    from couchtree.sync import upload

    try:
        with make_client(config) as client:
            result = upload(
                client,
                config.database,
                config.tree.path,
                args.document_id,
                ignore_rev=args.ignore_rev or args.global_ignore_rev,
                suffix=config.tree.suffix,
                file_filter=config.tree.filter,
                journal=_journal(config),
            )
    except CouchTreeError as e:
        logger.error(f"upload of {args.document_id} failed >>> {e!r}")
        return EXIT_FAILED

    logger.info(f"{result.files} file(s) uploaded as {result.document_id} rev {result.rev}")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
