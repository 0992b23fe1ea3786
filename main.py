"""
Roster engine command-line entry point.

Talks to the REST backend configured by ROSTER_API_URL / ROSTER_API_TOKEN,
or runs the offline console demo.

Usage:
    Import a file:  python main.py import customers.xlsx
    List a page:    python main.py list --status follow_up --page 2
    Console demo:   python main.py console
"""

import argparse
import asyncio
import logging
import sys

from roster.config import settings
from roster.ingestion.importer import RosterImporter
from roster.ingestion.readers import UnsupportedFileError
from roster.presentation.page_controller import RosterPageController
from roster.schemas.roster_schema import RosterPage, RosterView
from roster.services.roster_service import HttpRosterService

logger = logging.getLogger(__name__)


def format_page(page: RosterPage) -> str:
    """Render a page as plain text for the terminal."""
    marker = "" if page.total.confidence.value == "exact" else "~"
    lines = [
        f"Page {page.page} of {marker}{max(page.page_count, 1)} "
        f"({marker}{page.total.value} records, source: {page.total.source.value})",
    ]
    for record in page.records:
        lines.append(
            f"  [{record.id}] {record.name or '-':<28} {record.phone or '-':<16} "
            f"{record.email or '-':<30} {record.status.value}"
        )
    return "\n".join(lines)


async def _run_import(path: str) -> int:
    async with HttpRosterService() as service:
        importer = RosterImporter(service)
        try:
            summary = await importer.import_file(path)
        except UnsupportedFileError as e:
            logger.error("%s", e)
            return 1
    sys.stdout.write(
        f"Imported {summary.imported} of {summary.total} row(s); "
        f"{summary.skipped} skipped, {summary.failed} failed.\n"
    )
    for message in summary.errors:
        sys.stdout.write(f"  {message}\n")
    return 0 if summary.succeeded else 2


async def _run_list(args: argparse.Namespace) -> int:
    async with HttpRosterService() as service:
        controller = RosterPageController(
            service,
            view=RosterView.ARCHIVE if args.archive else RosterView.ACTIVE,
            page_size=args.page_size,
        )
        if args.status:
            await controller.set_status_filter(args.status)
        if args.old_clients:
            await controller.set_pseudo_filter("old_clients", True)
        if args.page > 1:
            await controller.set_page(args.page)
        elif controller.last_page is None:
            await controller.refresh()

    if controller.last_page is None:
        logger.error("Could not load the roster: %s", controller.last_error)
        return 1
    sys.stdout.write(format_page(controller.last_page) + "\n")
    return 0


def _run_console_mode(scenario: str) -> None:
    """Start the offline console demo (no backend required)."""
    from console_demo import ConsoleSession

    session = ConsoleSession(scenario)
    asyncio.run(session.run())


def main() -> None:
    parser = argparse.ArgumentParser(description="Customer roster import and listing.")
    sub = parser.add_subparsers(dest="command", required=True)

    import_cmd = sub.add_parser("import", help="Import a CSV or XLSX roster file.")
    import_cmd.add_argument("path", help="Path to the .csv, .tsv, or .xlsx file.")

    list_cmd = sub.add_parser("list", help="Show one page of the roster.")
    list_cmd.add_argument("--status", action="append", default=[], help="Status filter (repeatable).")
    list_cmd.add_argument("--old-clients", action="store_true", help="Only clients older than a year.")
    list_cmd.add_argument("--archive", action="store_true", help="List archived records.")
    list_cmd.add_argument("--page", type=int, default=1)
    list_cmd.add_argument(
        "--page-size",
        type=int,
        default=settings.pagination.default_page_size,
        choices=settings.pagination.page_size_options,
    )

    console_cmd = sub.add_parser("console", help="Run the offline demo.")
    console_cmd.add_argument("--scenario", default="import", choices=["import", "unreliable"])

    args = parser.parse_args()

    if args.command == "console":
        _run_console_mode(args.scenario)
        return
    try:
        if args.command == "import":
            code = asyncio.run(_run_import(args.path))
        else:
            code = asyncio.run(_run_list(args))
    except ValueError as e:
        logger.error("%s", e)
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
