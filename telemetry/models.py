"""Database models for raw Sphere telemetry events."""

from __future__ import annotations

from typing import Any

from django.db import models


class TelemetryEvent(models.Model):
    """A raw telemetry event as emitted by the game client.

    Every telemetry field is nullable because the client omits fields freely;
    unknown keys are preserved in `extra`. `checksum` is the SHA-256 of the
    canonical JSON record and keeps imports idempotent.
    """

    event_at = models.DateTimeField(null=True, blank=True)
    event_type = models.CharField(max_length=64, null=True, blank=True)
    player_id = models.CharField(max_length=128, null=True, blank=True)
    session_id = models.CharField(max_length=128, null=True, blank=True)
    game_reference = models.CharField(max_length=128, null=True, blank=True)
    game_level = models.IntegerField(null=True, blank=True)
    game_mode = models.CharField(max_length=32, null=True, blank=True)
    game_color = models.CharField(max_length=32, null=True, blank=True)
    extra = models.JSONField(default=dict, blank=True)
    checksum = models.CharField(max_length=64, unique=True)
    imported_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Telemetry Event"
        verbose_name_plural = "Telemetry Events"
        ordering = ["id"]
        indexes = [
            models.Index(fields=["game_reference"], name="telemetry_game_ref_idx"),
            models.Index(fields=["session_id"], name="telemetry_session_idx"),
            models.Index(fields=["player_id"], name="telemetry_player_idx"),
        ]

    def __str__(self) -> str:
        """Return a concise display string for admin/debug usage."""

        return f"TelemetryEvent(type={self.event_type}, game={self.game_reference}, level={self.game_level})"

    def to_record(self) -> dict[str, Any]:
        """Return the event as a raw record using the telemetry field names."""

        record: dict[str, Any] = dict(self.extra or {})
        record.update(
            {
                "event_at": self.event_at.isoformat() if self.event_at else None,
                "event_type": self.event_type,
                "player_id": self.player_id,
                "session_id": self.session_id,
                "game_reference": self.game_reference,
                "game_level": self.game_level,
                "game_mode": self.game_mode,
                "game_color": self.game_color,
            }
        )
        return record
