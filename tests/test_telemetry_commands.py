"""Integration tests for the telemetry import and analysis commands."""

from __future__ import annotations

import json
from io import StringIO

import pytest
from conftest import build_sample_batch
from django.core.management import call_command
from django.core.management.base import CommandError

from analysis.events import EventBatchError, parse_event
from telemetry.models import TelemetryEvent
from telemetry.services import compute_event_checksum, import_events

pytestmark = pytest.mark.integration


@pytest.fixture
def export_file(tmp_path):
    path = tmp_path / "game_data.json"
    path.write_text(json.dumps(build_sample_batch()), encoding="utf-8")
    return path


def test_checksum_ignores_key_order() -> None:
    assert compute_event_checksum({"a": 1, "b": 2}) == compute_event_checksum({"b": 2, "a": 1})


@pytest.mark.django_db
def test_import_telemetry_requires_explicit_intent(export_file) -> None:
    with pytest.raises(CommandError, match="--check or --write"):
        call_command("import_telemetry", str(export_file))
    with pytest.raises(CommandError, match="not both"):
        call_command("import_telemetry", str(export_file), "--check", "--write")


@pytest.mark.django_db
def test_import_telemetry_check_does_not_write(export_file) -> None:
    out = StringIO()
    call_command("import_telemetry", str(export_file), "--check", stdout=out)

    assert out.getvalue().startswith("[CHECK]")
    assert "'added': 20" in out.getvalue()
    assert TelemetryEvent.objects.count() == 0


@pytest.mark.django_db
def test_import_telemetry_write_is_idempotent(export_file) -> None:
    call_command("import_telemetry", str(export_file), "--write", stdout=StringIO())
    out = StringIO()
    call_command("import_telemetry", str(export_file), "--write", stdout=out)

    assert TelemetryEvent.objects.count() == 20
    assert "'added': 0" in out.getvalue()
    assert "'unchanged': 20" in out.getvalue()
    stored = TelemetryEvent.objects.filter(game_reference="G1", event_type="simon_select_end").first()
    assert stored is not None
    assert stored.game_level == 1
    assert stored.event_at is not None


@pytest.mark.django_db
def test_import_events_counts_repeats_within_a_batch() -> None:
    record = {"event_type": "game_over", "game_reference": "G1"}

    summary = import_events([record, dict(record)], write=True)

    assert (summary.added, summary.duplicates) == (1, 1)


@pytest.mark.django_db
def test_import_telemetry_reports_malformed_batches(tmp_path) -> None:
    path = tmp_path / "bad.json"
    path.write_text(json.dumps([{"event_at": "soon", "event_type": "game_over"}]), encoding="utf-8")

    with pytest.raises(CommandError, match="record 0"):
        call_command("import_telemetry", str(path), "--write")
    assert TelemetryEvent.objects.count() == 0


@pytest.mark.django_db
def test_import_telemetry_rejects_values_longer_than_their_column(tmp_path) -> None:
    """An over-long mode fails the whole import before anything is written."""

    records = build_sample_batch()
    records[3]["game_mode"] = "m" * 33
    path = tmp_path / "long.json"
    path.write_text(json.dumps(records), encoding="utf-8")

    with pytest.raises(CommandError, match="record 3: game_mode is longer than 32"):
        call_command("import_telemetry", str(path), "--write")
    assert TelemetryEvent.objects.count() == 0


@pytest.mark.django_db
def test_import_events_requires_raw_records() -> None:
    parsed = parse_event({"event_type": "game_over"})

    with pytest.raises(EventBatchError, match="record 0: expected a raw record object"):
        import_events([parsed], write=True)

@pytest.mark.django_db
def test_analyze_telemetry_reads_the_database(export_file, settings) -> None:
    """Imported events round-trip through the database source into the engine."""

    settings.TELEMETRY_SOURCE_MODE = "database"
    call_command("import_telemetry", str(export_file), "--write", stdout=StringIO())

    out = StringIO()
    call_command("analyze_telemetry", "--section", "dashboard", "--section", "inferential", stdout=out)
    payload = json.loads(out.getvalue())

    assert set(payload) == {"dashboard", "inferential"}
    assert payload["dashboard"]["totalGames"] == 3
    assert payload["dashboard"]["totalSessions"] == 2


def test_analyze_telemetry_reports_source_errors(tmp_path, settings) -> None:
    settings.TELEMETRY_SOURCE_MODE = "json"
    settings.TELEMETRY_JSON_PATH = tmp_path / "missing.json"

    with pytest.raises(CommandError, match="Failed to read"):
        call_command("analyze_telemetry")


def test_analyze_telemetry_reads_a_json_export(export_file, settings) -> None:
    settings.TELEMETRY_SOURCE_MODE = "json"
    settings.TELEMETRY_JSON_PATH = export_file

    out = StringIO()
    call_command("analyze_telemetry", "--section", "regression", "--indent", "0", stdout=out)
    payload = json.loads(out.getvalue())

    assert payload["regression"]["simple"]["n"] == 5
