"""
Offline console demo: runs a roster import and browse session without a backend.

Uses the real normalizer, importer, page controller, and render guard
against the in-memory roster store. No network calls.

Usage:
    python console_demo.py
    python console_demo.py --scenario unreliable
"""

import argparse
import asyncio

from roster.ingestion.importer import RosterImporter
from roster.presentation.page_controller import RosterPageController
from roster.schemas.customer_schema import CustomerStatus
from roster.schemas.roster_schema import ImportSummary, RosterPage
from roster.services.memory_service import InMemoryRosterService
from roster.services.roster_service import RosterServiceError

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

SAMPLE_SHEET: list[list[str]] = [
    ["Customer export", "", ""],
    ["Generated 2025-03-01"],
    ["", "", "", ""],
    ["Name", "Mobile", "Email", "Address Line"],
    ["John Q Public", "555-0100", "john@example.com", "12 Elm Street, Springfield"],
    ["Jane Doe", "555-0101", "jane@example.com", ""],
    ["", "", "", "orphan address"],
    ["Ada Lovelace", "", "ada@example.com", "1 Analytical Ave"],
    ["Grace Hopper", "555-0103", "", ""],
    ["Alan Turing", "555-0104", "alan@example.com", ""],
]

LEGACY_ROWS = [
    {"name": "Old Timer", "phone": "555-0900", "status": "follow_up",
     "notes": "Called twice, no answer", "created_at": "2022-01-15T09:00:00+00:00"},
    {"name": "Long Standing", "phone": "555-0901", "status": "interested",
     "notes": "44 Harbor Rd", "created_at": "2021-06-01T09:00:00+00:00"},
]


class ConsoleSession:
    """Walks through import and browsing in the terminal."""

    def __init__(self, scenario: str = "import") -> None:
        self.scenario = scenario
        if scenario == "unreliable":
            self.service = InMemoryRosterService(report_totals=False, stats_total=0, latency=0.05)
        else:
            self.service = InMemoryRosterService(latency=0.05)
        self.controller = RosterPageController(
            self.service,
            page_size=100,
            page_size_options=(2, 3, 100),
            on_page_ready=self.show_page,
            on_fetch_failed=self.show_failure,
        )
        self.importer = RosterImporter(
            self.service,
            batch_size=2,
            controller=self.controller,
            on_import_complete=self.show_import,
        )

    def say(self, text: str) -> None:
        print(f"{BLUE}{BOLD}[Roster]{RESET} {BLUE}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def show_page(self, page: RosterPage) -> None:
        approx = page.total.confidence.value == "approximate"
        color = YELLOW if approx else GREEN
        total = f"~{page.total.value}" if approx else str(page.total.value)
        print(
            f"{color}{BOLD}Page {page.page}/{max(page.page_count, 1)}{RESET} "
            f"{color}total {total} ({page.total.source.value}), generation {page.generation}{RESET}"
        )
        for record in page.records:
            detail = record.address or record.comments or ""
            print(
                f"    {record.name:<18} {record.phone or '-':<10} "
                f"{record.status.value:<11} {DIM}{detail}{RESET}"
            )

    def show_failure(self, error: RosterServiceError) -> None:
        print(f"{RED}{BOLD}Fetch failed:{RESET} {RED}{error} (last page kept){RESET}")

    def show_import(self, summary: ImportSummary) -> None:
        self.say(
            f"Import finished: {summary.imported} imported, {summary.skipped} skipped, "
            f"{summary.failed} failed (header at row {summary.header_row_index})."
        )

    async def run(self) -> None:
        self.say(f"Scenario: {self.scenario}")
        self.service.seed([{**row} for row in LEGACY_ROWS])
        self.system_log(f"Seeded {len(LEGACY_ROWS)} legacy record(s)")

        self.say("Importing sample sheet...")
        await self.importer.import_rows(SAMPLE_SHEET)

        self.say("Switching to 2 per page")
        await self.controller.set_page_size(2)
        self.say("Next page")
        await self.controller.set_page(2)

        self.say("Old clients only")
        await self.controller.set_pseudo_filter("old_clients", True)
        await self.controller.set_pseudo_filter("old_clients", False)

        self.say("Two rapid filter clicks; only the second may render")
        first = asyncio.create_task(
            self.controller.set_status_filter({CustomerStatus.FOLLOW_UP})
        )
        second = asyncio.create_task(
            self.controller.set_status_filter({CustomerStatus.PENDING, CustomerStatus.INTERESTED})
        )
        results = await asyncio.gather(first, second)
        self.system_log(
            f"first click rendered: {results[0] is not None}, "
            f"second click rendered: {results[1] is not None}"
        )

        self.say("Backend goes away")
        self.service.fail_next()
        await self.controller.refresh()
        self.system_log(f"Still showing generation {self.controller.last_page.generation}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline roster demo.")
    parser.add_argument("--scenario", default="import", choices=["import", "unreliable"])
    args = parser.parse_args()
    asyncio.run(ConsoleSession(args.scenario).run())


if __name__ == "__main__":
    main()
