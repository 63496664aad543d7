"""Game mode and outcome categories.

Values are stable identifiers shared by the reconstruction stage, the
statistics stages and the presentation payloads.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import StrEnum


class GameMode(StrEnum):
    """Mode category a game was played in."""

    AR = "AR"
    TWO_D = "2D"


class Outcome(StrEnum):
    """How a game ended, in classification priority order."""

    GAME_OVER = "Game Over"
    RESTARTED = "Restarted"
    PLAYER_LEFT = "Player Left"
    LEVEL_COMPLETE = "Level Complete"
    UNKNOWN = "Unknown"


# Outcome columns used by contingency tables; Unknown games are left out.
TABULATED_OUTCOMES: tuple[Outcome, ...] = (
    Outcome.GAME_OVER,
    Outcome.LEVEL_COMPLETE,
    Outcome.RESTARTED,
    Outcome.PLAYER_LEFT,
)

_AR_TOKENS = frozenset({"ar", "modear"})
_2D_TOKENS = frozenset({"2d", "mode2d"})


def classify_mode(raw_mode: str | None) -> GameMode | None:
    """Map a raw mode string to a mode category.

    Args:
        raw_mode: Raw `game_mode` value from an event.

    Returns:
        GameMode.AR when the lower-cased value contains "ar", GameMode.TWO_D
        when it contains "2d", otherwise None. AR wins when both match.
    """

    if not raw_mode:
        return None
    mode = raw_mode.strip().lower()
    if "ar" in mode or mode in _AR_TOKENS:
        return GameMode.AR
    if "2d" in mode or mode in _2D_TOKENS:
        return GameMode.TWO_D
    return None


def qualifying_event_type(mode: GameMode | None) -> str:
    """Return the event type that marks the end of the prompt sequence.

    AR clients emit `simon_select_end` once the sequence finished playing;
    every other mode uses `simon_select`.
    """

    return "simon_select_end" if mode is GameMode.AR else "simon_select"


def classify_outcome(event_types: Iterable[str | None]) -> Outcome:
    """Classify a game outcome from the event types it contains.

    Args:
        event_types: Event types of every event in the game.

    Returns:
        The first matching Outcome in priority order: game over, restart,
        player left (quit or back to menu), level complete, unknown.
    """

    seen = {event_type for event_type in event_types if event_type}
    if "game_over" in seen:
        return Outcome.GAME_OVER
    if "restart_game" in seen:
        return Outcome.RESTARTED
    if "quit_application" in seen or "back_to_menu" in seen:
        return Outcome.PLAYER_LEFT
    if "level_complete" in seen:
        return Outcome.LEVEL_COMPLETE
    return Outcome.UNKNOWN
