"""Run the telemetry analysis over the configured event source."""

from __future__ import annotations

import json

from django.core.management.base import BaseCommand, CommandError

from analysis.engine import SECTIONS
from analysis.events import EventBatchError
from telemetry.services import build_engine
from telemetry.sources import EventSourceError


class Command(BaseCommand):
    """Print analysis sections as JSON."""

    help = "Analyze telemetry from TELEMETRY_SOURCE_MODE and print the requested sections as JSON."

    def add_arguments(self, parser) -> None:
        """Add command arguments."""

        parser.add_argument(
            "--section",
            action="append",
            choices=SECTIONS,
            help="Analysis section to include (repeatable). Defaults to every section.",
        )
        parser.add_argument(
            "--indent",
            type=int,
            default=2,
            help="JSON indentation (0 for compact output).",
        )

    def handle(self, *args, **options) -> str | None:
        """Run the command."""

        sections: list[str] | None = options["section"]
        indent: int = options["indent"]
        if indent < 0:
            raise CommandError("--indent must be zero or positive.")

        try:
            engine = build_engine()
            payload = engine.analyze_all(sections)
        except (EventSourceError, EventBatchError) as exc:
            raise CommandError(str(exc)) from exc

        self.stdout.write(json.dumps(payload, indent=indent or None, ensure_ascii=False))
        return None
