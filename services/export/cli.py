#!/usr/bin/env python3
"""
RTX Export CLI
Command-line tool for exporting RT tickets to CSV
"""

import argparse
import asyncio
import getpass
import logging
import sys
from contextlib import ExitStack
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import structlog

from services.export import config
from services.export.context import ExportContext
from services.export.pipeline import export_tickets, ticket_range
from services.export.writer import CsvSink, needs_header
from services.ingest.client import RTClient
from services.normalize.assembler import RecordAssembler
from shared.errors import AuthenticationError
from shared.schemas.profile import available_profiles

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_AUTH_FAILED = 2


def configure_logging(verbose: bool = False):
    """Render structlog events on stderr so stdout stays free for CSV"""
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG if verbose else logging.INFO),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def status(message: str):
    print(message, file=sys.stderr)


async def check_connection(host: str, username: str, password: str, timeout: float) -> int:
    """Check that RT is reachable with these credentials"""
    status(f"Testing connection to {host}...")
    async with RTClient(host, username, password, timeout=timeout) as client:
        try:
            ok = await client.check_health()
        except AuthenticationError as e:
            status(f"❌ {e}")
            return EXIT_AUTH_FAILED

    if ok:
        status("✅ RT is reachable and accepted the credentials")
        return EXIT_OK
    status("❌ Failed to reach RT")
    return EXIT_ERROR


async def run_export(args: argparse.Namespace, password: str) -> int:
    """Export a range of tickets to CSV plus a companion error log"""
    try:
        overrides = config.parse_overrides(args.set)
        profile = config.build_profile(args.profile, overrides, args.translations)
        assembler = RecordAssembler(profile)
    except (ValueError, FileNotFoundError) as e:
        status(f"❌ {e}")
        return EXIT_ERROR

    ticket_ids = ticket_range(args.ticket_id, args.numbers)
    status(f"Exporting {len(ticket_ids)} tickets from #{args.ticket_id} downwards (profile: {profile.name})...")

    with ExitStack() as stack:
        if args.output:
            write_header = needs_header(args.output, args.append)
            out = stack.enter_context(open(args.output, "a" if args.append else "w", encoding="utf-8"))
        else:
            write_header = True
            out = sys.stdout

        error_log_path = args.error_log or (f"{args.output}.errors.log" if args.output else None)
        if error_log_path:
            error_stream = stack.enter_context(open(error_log_path, "a", encoding="utf-8"))
        else:
            error_stream = sys.stderr

        context = ExportContext(error_stream=error_stream)
        sink = CsvSink(out, assembler.header)
        if write_header:
            sink.write_header()

        async with RTClient(args.host, args.username, password, timeout=args.timeout) as client:
            try:
                written = await export_tickets(
                    client,
                    ticket_ids,
                    assembler,
                    context,
                    sink,
                    concurrency=args.concurrency,
                    per_page=args.per_page,
                )
            except AuthenticationError as e:
                status(f"❌ {e}")
                status("   Aborting: every remaining ticket would fail the same way")
                return EXIT_AUTH_FAILED

    status(f"✅ Exported {written} tickets ({context.skipped} skipped, {context.error_count} errors)")
    if args.output:
        status(f"   Saved to {args.output}")
    if error_log_path and context.error_count:
        status(f"   Errors logged to {error_log_path}")
    return EXIT_OK


def show_profile(name: str = None) -> int:
    if not name:
        for profile_name in available_profiles():
            print(profile_name)
        return EXIT_OK
    try:
        profile = config.build_profile(name)
    except (ValueError, FileNotFoundError) as e:
        status(f"❌ {e}")
        return EXIT_ERROR
    print(",".join(profile.header))
    return EXIT_OK


def main():
    parser = argparse.ArgumentParser(description="RTX - export RT tickets to CSV")
    parser.add_argument("--host", default=config.RT_HOST, help="RT host URL, e.g. http://localhost:8080")
    parser.add_argument("--username", "-u", default=config.RT_USERNAME, help="RT account username")
    parser.add_argument("--password", "-p", default=config.RT_PASSWORD, help="RT account password (prompted if empty)")
    parser.add_argument("--timeout", type=float, default=config.RT_TIMEOUT, help="Per-request timeout in seconds")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    # Test command
    subparsers.add_parser("test", help="Test RT connection and credentials")

    # Export command
    export_parser = subparsers.add_parser("export", help="Export tickets to CSV")
    export_parser.add_argument("--ticket-id", "-i", type=int, required=True, help="Top-most ticket id to export")
    export_parser.add_argument("--numbers", "-n", type=int, required=True, help="How many tickets, from --ticket-id downwards")
    export_parser.add_argument("--profile", default=config.RTX_PROFILE, help="Built-in profile name or JSON file")
    export_parser.add_argument("--output", "-o", help="CSV file (default: stdout)")
    export_parser.add_argument("--append", action="store_true", help="Append to --output instead of overwriting")
    export_parser.add_argument("--error-log", help="Error log file (default: <output>.errors.log or stderr)")
    export_parser.add_argument("--concurrency", type=int, default=config.RTX_CONCURRENCY, help="Tickets processed at once")
    export_parser.add_argument("--per-page", type=int, default=config.RT_HISTORY_PER_PAGE, help="History page size")
    export_parser.add_argument("--translations", help="JSON file of translation tables merged into the profile")
    export_parser.add_argument(
        "--set",
        action="append",
        metavar="COLUMN=VALUE",
        help="Override a column's literal default (repeatable)",
    )

    # Profiles command
    profiles_parser = subparsers.add_parser("profiles", help="List profiles or print a profile's header")
    profiles_parser.add_argument("name", nargs="?", help="Profile name or JSON file")

    args = parser.parse_args()
    configure_logging(args.verbose)

    if args.command == "profiles":
        sys.exit(show_profile(args.name))

    password = args.password or getpass.getpass(f"RT password for {args.username}: ")

    if args.command == "test":
        sys.exit(asyncio.run(check_connection(args.host, args.username, password, args.timeout)))

    elif args.command == "export":
        sys.exit(asyncio.run(run_export(args, password)))


if __name__ == "__main__":
    main()
