"""Import raw telemetry events from a JSON array file."""

from __future__ import annotations

from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from analysis.events import EventBatchError
from telemetry.services import import_events
from telemetry.sources import EventSourceError, JsonFileEventSource


class Command(BaseCommand):
    """Load a telemetry export and store events not already imported."""

    help = "Import telemetry events from a JSON array file (idempotent by checksum)."

    def add_arguments(self, parser) -> None:
        """Add command arguments."""

        parser.add_argument("path", help="Path to a JSON file containing an array of event objects.")
        parser.add_argument(
            "--check",
            action="store_true",
            help="Dry-run: report what would be imported without writing.",
        )
        parser.add_argument(
            "--write",
            action="store_true",
            help="Write new events to the database.",
        )

    def handle(self, *args, **options) -> str | None:
        """Run the command."""

        path = Path(options["path"])
        check: bool = options["check"]
        write: bool = options["write"]

        if check and write:
            raise CommandError("Use either --check or --write, not both.")
        if not check and not write:
            raise CommandError("Refusing to write without explicit intent; pass --check or --write.")

        try:
            records = JsonFileEventSource(path=path).load()
            summary = import_events(records, write=write)
        except (EventSourceError, EventBatchError) as exc:
            raise CommandError(str(exc)) from exc

        mode = "CHECK" if check else "WRITE"
        totals = {"records": len(records), **summary.as_dict()}
        self.stdout.write(f"[{mode}] {totals}")
        return None
