"""Pytest fixtures shared across the telemetry test suite."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

T0 = datetime(2025, 1, 1, 10, 0, tzinfo=timezone.utc)


def at(seconds: float) -> str:
    """Return the ISO-8601 timestamp `seconds` after the fixture epoch."""

    return (T0 + timedelta(seconds=seconds)).isoformat()


def event(
    event_type: str,
    seconds: float | None,
    *,
    game: str | None = None,
    level: int | None = None,
    mode: str | None = None,
    color: str | None = None,
    session: str | None = None,
    player: str | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """Build a raw telemetry record using the client's field names."""

    record: dict[str, Any] = {
        "event_at": None if seconds is None else at(seconds),
        "event_type": event_type,
        "player_id": player,
        "session_id": session,
        "game_reference": game,
        "game_level": level,
        "game_mode": mode,
        "game_color": color,
    }
    record.update(extra)
    return record


def build_sample_batch() -> list[dict[str, Any]]:
    """Return a batch with two valid AR/2D games, one invalid game, and two players.

    - G1 (AR, P1/S1): level 1 takes 3s (level_complete), level 2 takes 4s
      (game_over fallback). Outcome Game Over.
    - G2 (2D, P1/S1): level 1 takes 5s; level 2 has no end event. Outcome
      Player Left.
    - G3 (AR, P2/S2): only `simon_select`, so invalid.
    - G4 (2D, P2/S3): levels 1 and 2 take 2s and 5s. Outcome Restarted.
    - S1 spans t=-10 (app_open) to t=30 (last game event).
    """

    s1 = {"session": "S1", "player": "P1"}
    g1 = {"game": "G1", "mode": "modeAR", **s1}
    g2 = {"game": "G2", "mode": "mode2D", **s1}
    g3 = {"game": "G3", "mode": "modeAR", "session": "S2", "player": "P2"}
    g4 = {"game": "G4", "mode": "mode2D", "session": "S3", "player": "P2"}
    return [
        event("app_open", -10, **s1),
        event("game_start", 0, level=0, **g1),
        event("simon_select_end", 1, level=1, color="Red", **g1),
        event("player_select", 2, level=1, color="red", **g1),
        event("level_complete", 4, level=2, **g1),
        event("simon_select_end", 5, level=2, color="Blue", **g1),
        event("player_select", 6, level=2, color="Blue", **g1),
        event("game_over", 9, level=2, **g1),
        event("simon_select", 20, level=1, color="Green", **g2),
        event("player_select", 21, level=1, color="green", **g2),
        event("level_complete", 25, level=2, **g2),
        event("simon_select", 26, level=2, color="Yellow", **g2),
        event("back_to_menu", 30, level=2, **g2),
        event("simon_select", 40, level=1, color="Purple", **g3),
        event("simon_select", 100, level=1, color="Red", **g4),
        event("level_complete", 102, level=2, **g4),
        event("simon_select", 103, level=2, color="Red", **g4),
        event("level_complete", 108, level=3, **g4),
        event("simon_select", 109, level=3, **g4),
        event("restart_game", 115, level=3, **g4),
    ]


@pytest.fixture
def sample_batch() -> list[dict[str, Any]]:
    """Return a fresh copy of the shared sample batch."""

    return build_sample_batch()


def pytest_collection_modifyitems(items: Sequence[pytest.Item]) -> None:
    """Enforce that every test has exactly one speed marker.

    The suite must be runnable by intent:
    - `unit`: pure, fast tests with no database access.
    - `integration`: tests touching Django, database, commands, or IO.

    Each test must have exactly one of these markers.
    """

    invalid: list[str] = []
    for item in items:
        has_unit = item.get_closest_marker("unit") is not None
        has_integration = item.get_closest_marker("integration") is not None
        if has_unit == has_integration:
            markers = []
            if has_unit:
                markers.append("unit")
            if has_integration:
                markers.append("integration")
            invalid.append(f"{item.nodeid} (markers={markers or 'none'})")

    if invalid:
        joined = "\n".join(f"- {nodeid}" for nodeid in invalid)
        raise pytest.UsageError(
            "Each test must have exactly one speed marker: `@pytest.mark.unit` or "
            "`@pytest.mark.integration`.\n"
            f"Offending tests:\n{joined}"
        )
