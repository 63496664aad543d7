"""JSON-ready encoders for analysis results.

Dataclass field names are converted to camelCase (`std_dev` -> `stdDev`,
`p_value` -> `pValue`). Mapping keys are data (modes, outcomes, event types)
and are kept verbatim. `InsufficientData` encodes as `{"error": reason}`.
Non-finite floats (a perfect fit gives an infinite t-statistic) encode as
None so the payload stays valid JSON.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import fields, is_dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from .dto import Game, Player, Reconstruction, Session
from .stats_dto import InsufficientData


def camel_case(name: str) -> str:
    """Convert a snake_case identifier to camelCase."""

    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def to_jsonable(value: Any) -> Any:
    """Recursively convert DTOs and containers into JSON-serializable values.

    Args:
        value: A DTO, mapping, sequence or scalar.

    Returns:
        Plain dicts, lists, strings, numbers, booleans and None.
    """

    if isinstance(value, InsufficientData):
        return {"error": value.reason}
    if isinstance(value, Enum):
        return value.value
    if value is None or isinstance(value, (bool, str, int)):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, datetime):
        return value.isoformat()
    if is_dataclass(value) and not isinstance(value, type):
        return {camel_case(f.name): to_jsonable(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Mapping):
        return {str(to_jsonable(key)): to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(item) for item in value]
    raise TypeError(f"Cannot encode {type(value).__name__} as JSON")


def game_payload(game: Game, *, include_events: bool = False) -> dict[str, Any]:
    """Encode a game with its per-level detail rows.

    Args:
        game: Valid game to encode.
        include_events: Whether to embed the game's raw events.
    """

    payload: dict[str, Any] = {
        "gameReference": game.game_reference,
        "mode": to_jsonable(game.mode),
        "rawMode": game.raw_mode,
        "outcome": game.outcome.value,
        "startedAt": to_jsonable(game.started_at),
        "endedAt": to_jsonable(game.ended_at),
        "maxLevel": game.max_level,
        "eventCount": len(game.events),
        "levels": to_jsonable(game.levels),
        "responseTimes": to_jsonable(game.response_times),
    }
    if include_events:
        payload["events"] = to_jsonable(game.events)
    return payload


def session_payload(session: Session) -> dict[str, Any]:
    """Encode a session including its derived duration."""

    payload = to_jsonable(session)
    payload["durationSeconds"] = session.duration_seconds
    return payload


def player_payload(player: Player) -> dict[str, Any]:
    payload = to_jsonable(player)
    payload["identified"] = player.identified
    return payload


def reconstruction_payload(reconstruction: Reconstruction) -> dict[str, Any]:
    """Encode the Player -> Session -> Game hierarchy."""

    return {
        "players": [player_payload(player) for player in reconstruction.players],
        "sessions": [session_payload(session) for session in reconstruction.sessions],
        "games": [game_payload(game) for game in reconstruction.games],
        "invalidGameReferences": list(reconstruction.invalid_game_references),
    }
