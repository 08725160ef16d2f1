"""Main CLI entry point for mboxindex."""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from mboxindex.config.config_loader import ConfigError, ConfigLoader
from mboxindex.config.settings import AppConfig
from mboxindex.services.indexing.index_validator import IndexValidator
from mboxindex.services.mailbox.base import InvalidIndexError, MessageNotFoundError
from mboxindex.services.mailbox.mbox import Mbox
from mboxindex.services.scanner.base import FormatValidationError
from mboxindex.storage.audit_log import AuditLog
from mboxindex.storage.database import (
    DatabaseConnection,
    IndexAnomalyRepository,
    MessageIndexRepository,
)


def open_database(config: AppConfig) -> DatabaseConnection:
    """Open the configured index database, creating its tables."""
    db = DatabaseConnection(config.storage.get_database_path())
    db.execute_schema()
    return db


def open_mbox(
    path: Path,
    config: AppConfig,
    strict: Optional[bool] = None,
    buffer_size: Optional[int] = None,
    use_cache: bool = False,
    saved_index: Optional[list[dict]] = None,
) -> Mbox:
    """
    Open an mbox file with settings from the loaded configuration.

    Args:
        path: Path to mbox file
        config: Application configuration
        strict: Overrides config.scanner.strict when given
        buffer_size: Overrides config.scanner.buffer_size when given
        use_cache: Read and store the index in the configured database
        saved_index: Entries from a previous export

    Returns:
        Loaded Mbox

    Notes:
        Rejected files and saved indexes are recorded in the database
    """
    db = open_database(config)
    index_repo = MessageIndexRepository(db) if use_cache else None

    return Mbox.open(
        path,
        config=config.scanner,
        strict=strict,
        buffer_size=buffer_size,
        saved_index=saved_index,
        audit_log=AuditLog(config.storage.get_audit_log_path()),
        index_repo=index_repo,
        anomaly_repo=IndexAnomalyRepository(db),
    )


def cmd_index(args, config: AppConfig) -> int:
    """Index command: scan an mbox file and report its messages."""
    saved_index = None
    if args.saved_index:
        with open(args.saved_index, "r", encoding="utf-8") as f:
            saved_index = json.load(f)

    mbox = open_mbox(
        args.mbox,
        config,
        strict=True if args.strict else None,
        buffer_size=args.buffer_size,
        use_cache=args.cache,
        saved_index=saved_index,
    )

    entries = mbox.export_index()
    if args.export:
        with open(args.export, "w", encoding="utf-8") as f:
            json.dump(entries, f, indent=2)
        print(f"Index exported to: {args.export}")

    if args.list:
        for entry in entries:
            print(f"{entry['index']:>6}  offset={entry['offset']:<12} size={entry['size']}")

    print(f"{args.mbox}: {mbox.count()} messages")
    return 0


def cmd_show(args, config: AppConfig) -> int:
    """Show command: print one message."""
    mbox = open_mbox(args.mbox, config)

    if args.headers_only:
        email = mbox.get_parsed(args.index, skip_text_body=True, skip_html_body=True)
        for name, values in email.headers.items():
            for value in values:
                print(f"{name}: {value}")
        if email.attachments:
            print(f"[{len(email.attachments)} attachment(s)]")
    else:
        sys.stdout.write(mbox.get(args.index))

    return 0


def cmd_compact(args, config: AppConfig) -> int:
    """Compact command: write the mailbox without the given messages."""
    mbox = open_mbox(args.mbox, config)

    for index in args.delete:
        mbox.delete(index)

    written = mbox.write(args.destination)
    print(f"Wrote {written} messages to {args.destination} ({len(args.delete)} removed)")
    return 0


def cmd_extract(args, config: AppConfig) -> int:
    """Extract command: save attachments of all messages."""
    mbox = open_mbox(args.mbox, config)
    extraction = config.extraction

    result = mbox.extract_attachments(
        args.output_dir,
        deduplicate=args.dedupe or extraction.deduplicate,
        sanitize_filenames=extraction.sanitize_filenames,
        on_conflict=args.on_conflict or extraction.on_conflict,
    )

    print(
        f"Extracted {result.extracted} of {result.total_attachments} attachments "
        f"({result.deduplicated} duplicates, {result.skipped} skipped)"
    )
    return 0


def cmd_anomalies(args, config: AppConfig) -> int:
    """Anomalies command: summarize rejected files and saved indexes."""
    validator = IndexValidator(IndexAnomalyRepository(open_database(config)))
    summary = validator.get_anomalies_summary(args.mbox)

    scope = args.mbox if args.mbox else "all files (unresolved)"
    print(f"Anomalies for {scope}: {summary['total_anomalies']}")
    for anomaly_type, count in sorted(summary["by_type"].items()):
        print(f"  {anomaly_type}: {count}")
    return 0


def cmd_export_log(args, config: AppConfig) -> int:
    """Export audit log command."""
    audit_log = AuditLog(config.storage.get_audit_log_path())

    output_path = args.output if args.output else Path("mboxindex_audit.json")
    count = audit_log.export(output_path)

    print(f"{count} audit events exported to: {output_path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(description="mboxindex - random access to mbox files")
    parser.add_argument("--config", type=Path, help="Custom config file path")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    index_parser = subparsers.add_parser("index", help="Scan an mbox file")
    index_parser.add_argument("mbox", type=Path, help="Mbox file")
    index_parser.add_argument("--strict", action="store_true", help="Require a leading From line")
    index_parser.add_argument("--buffer-size", type=int, help="Read chunk size in bytes")
    index_parser.add_argument("--export", type=Path, help="Write the index as JSON")
    index_parser.add_argument("--saved-index", type=Path, help="Restore from an exported index")
    index_parser.add_argument("--cache", action="store_true", help="Use the index database")
    index_parser.add_argument("--list", action="store_true", help="Print every index entry")
    index_parser.set_defaults(handler=cmd_index)

    show_parser = subparsers.add_parser("show", help="Print one message")
    show_parser.add_argument("mbox", type=Path, help="Mbox file")
    show_parser.add_argument("index", type=int, help="Message index")
    show_parser.add_argument("--headers-only", action="store_true", help="Print parsed headers")
    show_parser.set_defaults(handler=cmd_show)

    compact_parser = subparsers.add_parser("compact", help="Write without deleted messages")
    compact_parser.add_argument("mbox", type=Path, help="Mbox file")
    compact_parser.add_argument("destination", type=Path, help="Output mbox file")
    compact_parser.add_argument(
        "--delete", type=int, nargs="+", required=True, help="Message indexes to drop"
    )
    compact_parser.set_defaults(handler=cmd_compact)

    extract_parser = subparsers.add_parser("extract", help="Save attachments")
    extract_parser.add_argument("mbox", type=Path, help="Mbox file")
    extract_parser.add_argument("output_dir", type=Path, help="Destination directory")
    extract_parser.add_argument("--dedupe", action="store_true", help="Skip identical files")
    extract_parser.add_argument(
        "--on-conflict", choices=["skip", "overwrite", "rename"], help="Existing file policy"
    )
    extract_parser.set_defaults(handler=cmd_extract)

    anomalies_parser = subparsers.add_parser("anomalies", help="Summarize recorded anomalies")
    anomalies_parser.add_argument("mbox", type=Path, nargs="?", help="Restrict to one mbox file")
    anomalies_parser.set_defaults(handler=cmd_anomalies)

    export_parser = subparsers.add_parser("export-log", help="Export the audit log")
    export_parser.add_argument("--output", type=Path, help="Output file path")
    export_parser.set_defaults(handler=cmd_export_log)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 1

    try:
        config = ConfigLoader(args.config).load_app_config()
        return args.handler(args, config)
    except (
        ConfigError,
        FileNotFoundError,
        FormatValidationError,
        InvalidIndexError,
        MessageNotFoundError,
        json.JSONDecodeError,
    ) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
