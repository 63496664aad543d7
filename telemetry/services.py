"""Service helpers for importing telemetry and wiring the analysis engine.

Imports are idempotent: each raw record is keyed by the SHA-256 of its
canonical JSON form, so re-importing a file only adds events not seen before.
"""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from django.conf import settings as django_settings
from django.db import transaction

from analysis.dto import RawEvent
from analysis.engine import AnalysisEngine, EngineConfig
from analysis.events import EventBatchError, parse_events
from telemetry.models import TelemetryEvent
from telemetry.sources import build_event_source

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TelemetryImportSummary:
    """Summary counts for a telemetry import run."""

    added: int
    unchanged: int
    duplicates: int

    def as_dict(self) -> dict[str, int]:
        return {"added": self.added, "unchanged": self.unchanged, "duplicates": self.duplicates}


def compute_event_checksum(record: Mapping[str, Any]) -> str:
    """Compute a deterministic SHA-256 hash for a raw event record.

    Args:
        record: Raw event mapping as received from a source.

    Returns:
        A lowercase hex digest of the canonical JSON representation.
    """

    payload = json.dumps(record, sort_keys=True, ensure_ascii=False, separators=(",", ":"), default=str)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


_LENGTH_CHECKED_FIELDS = ("event_type", "player_id", "session_id", "game_reference", "game_mode", "game_color")


def _check_column_lengths(event: RawEvent, *, index: int) -> None:
    """Reject values longer than their `TelemetryEvent` column."""

    for name in _LENGTH_CHECKED_FIELDS:
        value = getattr(event, name)
        limit = TelemetryEvent._meta.get_field(name).max_length
        if value is not None and len(value) > limit:
            raise EventBatchError(f"{name} is longer than {limit} characters", index=index)


def import_events(records: Sequence[Mapping[str, Any]], *, write: bool) -> TelemetryImportSummary:
    """Validate a raw batch and persist events not already stored.

    Args:
        records: Raw event mappings.
        write: When False, compute the summary without writing to the database.

    Returns:
        Counts of added events, events already stored, and repeats within the
        batch itself.

    Raises:
        EventBatchError: When the batch is malformed or a text field
            exceeds its column length; nothing is written.
    """

    events = parse_events(records)
    for index, (record, event) in enumerate(zip(records, events)):
        if isinstance(record, RawEvent):
            raise EventBatchError("expected a raw record object, got a parsed RawEvent", index=index)
        _check_column_lengths(event, index=index)

    checksums = [compute_event_checksum(record) for record in records]
    existing = set(
        TelemetryEvent.objects.filter(checksum__in=set(checksums)).values_list("checksum", flat=True)
    )

    pending: list[TelemetryEvent] = []
    seen: set[str] = set()
    unchanged = 0
    duplicates = 0
    for event, checksum in zip(events, checksums):
        if checksum in existing:
            unchanged += 1
            continue
        if checksum in seen:
            duplicates += 1
            continue
        seen.add(checksum)
        pending.append(
            TelemetryEvent(
                event_at=event.event_at,
                event_type=event.event_type,
                player_id=event.player_id,
                session_id=event.session_id,
                game_reference=event.game_reference,
                game_level=event.game_level,
                game_mode=event.game_mode,
                game_color=event.game_color,
                extra=dict(event.extra),
                checksum=checksum,
            )
        )

    if write and pending:
        with transaction.atomic():
            TelemetryEvent.objects.bulk_create(pending)
    logger.info(
        "Telemetry import (%s): %d added, %d unchanged, %d duplicates",
        "write" if write else "check",
        len(pending),
        unchanged,
        duplicates,
    )
    return TelemetryImportSummary(added=len(pending), unchanged=unchanged, duplicates=duplicates)


def engine_config_from_settings(settings: Any = django_settings) -> EngineConfig:
    """Build an EngineConfig from the `ANALYSIS_*` settings."""

    return EngineConfig(
        alpha=float(getattr(settings, "ANALYSIS_SIGNIFICANCE_LEVEL", 0.05)),
        response_time_bins=int(getattr(settings, "ANALYSIS_RESPONSE_TIME_BINS", 15)),
        level_bins=int(getattr(settings, "ANALYSIS_LEVEL_BINS", 10)),
    )


def build_engine(settings: Any = django_settings) -> AnalysisEngine:
    """Build an AnalysisEngine over the configured telemetry source."""

    return AnalysisEngine(build_event_source(settings), config=engine_config_from_settings(settings))
