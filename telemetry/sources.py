"""Data-source adapters supplying raw telemetry batches to the analysis engine.

Each source implements `analysis.engine.EventSource` (`load() -> list[dict]`).
Sources are selected by `settings.TELEMETRY_SOURCE_MODE` through
`build_event_source`.
"""

from __future__ import annotations

import json
import logging
import urllib.request
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from analysis.engine import EventSource

logger = logging.getLogger(__name__)

SOURCE_MODES: tuple[str, ...] = ("json", "api", "database", "combined")


class EventSourceError(RuntimeError):
    """Raised when a source cannot produce a telemetry batch."""


def _require_array(payload: object, *, origin: str) -> list[dict[str, Any]]:
    """Return a decoded JSON payload when it is an array of objects."""

    if not isinstance(payload, list):
        raise EventSourceError(f"Expected a JSON array of events from {origin}, got {type(payload).__name__}")
    return payload


@dataclass(frozen=True, slots=True)
class JsonFileEventSource:
    """Load events from a JSON file containing an array of event objects."""

    path: Path

    def load(self) -> list[dict[str, Any]]:
        """Read and decode the file.

        Raises:
            EventSourceError: When the file is missing, unreadable, not JSON, or
                not an array.
        """

        try:
            text = Path(self.path).read_text(encoding="utf-8")
        except OSError as exc:
            raise EventSourceError(f"Failed to read telemetry file: {self.path}") from exc
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise EventSourceError(f"Telemetry file is not valid JSON: {self.path}") from exc
        events = _require_array(payload, origin=str(self.path))
        logger.info("Loaded %d events from %s", len(events), self.path)
        return events


@dataclass(frozen=True, slots=True)
class ApiEventSource:
    """Load events from the game-data HTTP API using token authentication.

    Attributes:
        base_url: API origin, e.g. "https://example.com".
        endpoint: Path of the game-data collection.
        token: Optional API token sent as `Authorization: Token <token>`.
        timeout_seconds: Socket timeout for the request.
    """

    base_url: str
    endpoint: str = "/api/game-data/"
    token: str = ""
    timeout_seconds: int = 30

    @property
    def url(self) -> str:
        return self.base_url.rstrip("/") + "/" + self.endpoint.lstrip("/")

    def load(self) -> list[dict[str, Any]]:
        """Fetch and decode the event array.

        Raises:
            EventSourceError: On network or HTTP errors and non-array payloads.
        """

        headers = {
            "User-Agent": "sphereStats (telemetry import)",
            "Accept": "application/json",
        }
        if self.token:
            headers["Authorization"] = f"Token {self.token}"
        request = urllib.request.Request(self.url, headers=headers)
        try:
            with urllib.request.urlopen(request, timeout=self.timeout_seconds) as response:
                raw = response.read().decode("utf-8", errors="replace")
        except OSError as exc:
            raise EventSourceError(f"Failed to fetch telemetry from {self.url}") from exc
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise EventSourceError(f"Telemetry API returned invalid JSON: {self.url}") from exc
        events = _require_array(payload, origin=self.url)
        logger.info("Loaded %d events from %s", len(events), self.url)
        return events


class DatabaseEventSource:
    """Load events persisted in `telemetry.TelemetryEvent`, in import order."""

    def load(self) -> list[dict[str, Any]]:
        from telemetry.models import TelemetryEvent

        events = [event.to_record() for event in TelemetryEvent.objects.order_by("id")]
        logger.info("Loaded %d events from the database", len(events))
        return events


@dataclass(frozen=True, slots=True)
class CombinedEventSource:
    """Concatenate several sources without deduplication or sorting.

    A member that fails to load is logged and contributes no events.
    """

    members: Sequence[EventSource]

    def load(self) -> list[dict[str, Any]]:
        combined: list[dict[str, Any]] = []
        for member in self.members:
            try:
                combined.extend(member.load())
            except EventSourceError as exc:
                logger.warning("Skipping telemetry source %s: %s", type(member).__name__, exc)
        logger.info("Combined %d events from %d sources", len(combined), len(self.members))
        return combined


def build_event_source(settings: Any) -> EventSource:
    """Build the configured event source.

    Args:
        settings: Object exposing the `TELEMETRY_*` settings (usually
            `django.conf.settings`).

    Returns:
        An EventSource for `TELEMETRY_SOURCE_MODE`. Unknown modes fall back to
        the JSON file source.

    Raises:
        EventSourceError: When API mode is selected without a base URL.
    """

    mode = str(getattr(settings, "TELEMETRY_SOURCE_MODE", "database")).strip().lower()
    json_source = JsonFileEventSource(path=Path(settings.TELEMETRY_JSON_PATH))
    api_source = _api_source(settings)

    if mode == "database":
        return DatabaseEventSource()
    if mode == "api":
        if api_source is None:
            raise EventSourceError("TELEMETRY_API_BASE_URL must be set when TELEMETRY_SOURCE_MODE is 'api'.")
        return api_source
    if mode == "combined":
        members: list[EventSource] = [json_source]
        if api_source is not None:
            members.append(api_source)
        return CombinedEventSource(members=tuple(members))
    if mode != "json":
        logger.warning("Unknown telemetry source mode %r; falling back to JSON", mode)
    return json_source


def _api_source(settings: Any) -> ApiEventSource | None:
    """Return the API source, or None when no base URL is configured."""

    base_url = str(getattr(settings, "TELEMETRY_API_BASE_URL", "") or "").strip()
    if not base_url:
        return None
    return ApiEventSource(
        base_url=base_url,
        endpoint=getattr(settings, "TELEMETRY_API_ENDPOINT", "/api/game-data/"),
        token=getattr(settings, "TELEMETRY_API_TOKEN", "") or "",
        timeout_seconds=int(getattr(settings, "TELEMETRY_API_TIMEOUT_SECONDS", 30)),
    )
