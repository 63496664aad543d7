"""Coercion of raw telemetry records into `RawEvent` DTOs.

Records arrive as JSON-like mappings from an external data source. Missing or
oddly typed optional fields become None; only a structurally broken batch or
an unparsable timestamp fails the whole batch.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any

from .dto import RawEvent

logger = logging.getLogger(__name__)

EVENT_FIELDS: tuple[str, ...] = (
    "event_at",
    "event_type",
    "player_id",
    "session_id",
    "game_reference",
    "game_level",
    "game_mode",
    "game_color",
)


class EventBatchError(ValueError):
    """Raised when a telemetry batch cannot be reconstructed."""

    def __init__(self, message: str, *, index: int | None = None) -> None:
        """Initialize the error.

        Args:
            message: Human-readable description of the problem.
            index: Position of the offending record in the batch, if any.
        """

        if index is not None:
            message = f"Malformed telemetry batch at record {index}: {message}"
        else:
            message = f"Malformed telemetry batch: {message}"
        super().__init__(message)
        self.index = index


def parse_events(records: object) -> tuple[RawEvent, ...]:
    """Parse a batch of raw records into RawEvent DTOs.

    Args:
        records: A list or tuple of mappings using the telemetry field names.

    Returns:
        Parsed events in arrival order.

    Raises:
        EventBatchError: When the batch is not an array of mappings or a
            record carries a non-empty `event_at` that is not ISO-8601.
    """

    if isinstance(records, (str, bytes)) or not isinstance(records, Sequence):
        raise EventBatchError(f"expected an array of event records, got {type(records).__name__}")

    events: list[RawEvent] = []
    for index, record in enumerate(records):
        if isinstance(record, RawEvent):
            events.append(record)
            continue
        if not isinstance(record, Mapping):
            raise EventBatchError(f"expected an object, got {type(record).__name__}", index=index)
        events.append(parse_event(record, index=index))

    logger.debug("Parsed %d telemetry events", len(events))
    return tuple(events)


def parse_event(record: Mapping[str, Any], *, index: int | None = None) -> RawEvent:
    """Parse a single record into a RawEvent.

    Args:
        record: Mapping using the telemetry field names.
        index: Optional batch position used in error messages.

    Returns:
        RawEvent with unknown keys preserved in `extra`.
    """

    try:
        event_at = parse_timestamp(record.get("event_at"))
    except ValueError as exc:
        raise EventBatchError(str(exc), index=index) from exc

    extra = {key: value for key, value in record.items() if key not in EVENT_FIELDS}
    return RawEvent(
        event_at=event_at,
        event_type=_coerce_str(record.get("event_type")),
        player_id=_coerce_str(record.get("player_id")),
        session_id=_coerce_str(record.get("session_id")),
        game_reference=_coerce_str(record.get("game_reference")),
        game_level=_coerce_int(record.get("game_level")),
        game_mode=_coerce_str(record.get("game_mode")),
        game_color=_coerce_str(record.get("game_color")),
        extra=MappingProxyType(extra),
    )


def parse_timestamp(value: object) -> datetime | None:
    """Parse an ISO-8601 timestamp into an aware datetime.

    Args:
        value: ISO-8601 string, datetime, or None/blank.

    Returns:
        Timezone-aware datetime (naive values are assumed UTC), or None when
        the value is missing.

    Raises:
        ValueError: When a non-empty value cannot be parsed.
    """

    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ValueError(f"unparsable event_at {value!r}") from None
    else:
        raise ValueError(f"unparsable event_at {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _coerce_str(value: object) -> str | None:
    """Coerce an identifier-like value into a trimmed string, or None."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        value = str(value)
    if not isinstance(value, str):
        return None
    text = value.strip()
    return text or None


def _coerce_int(value: object) -> int | None:
    """Coerce a level-like value into an int when safe."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return int(value)
        return None
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            return None
    return None
