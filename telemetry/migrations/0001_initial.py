"""Create the TelemetryEvent table.

Raw telemetry events are stored with every field nullable, an `extra` JSON
side-map for unknown keys, and a unique checksum for idempotent imports.
"""

from __future__ import annotations

from django.db import migrations, models


class Migration(migrations.Migration):
    """Initial schema migration for the telemetry app."""

    initial = True

    dependencies: list[tuple[str, str]] = []

    operations = [
        migrations.CreateModel(
            name="TelemetryEvent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("event_at", models.DateTimeField(blank=True, null=True)),
                ("event_type", models.CharField(blank=True, max_length=64, null=True)),
                ("player_id", models.CharField(blank=True, max_length=128, null=True)),
                ("session_id", models.CharField(blank=True, max_length=128, null=True)),
                ("game_reference", models.CharField(blank=True, max_length=128, null=True)),
                ("game_level", models.IntegerField(blank=True, null=True)),
                ("game_mode", models.CharField(blank=True, max_length=32, null=True)),
                ("game_color", models.CharField(blank=True, max_length=32, null=True)),
                ("extra", models.JSONField(blank=True, default=dict)),
                ("checksum", models.CharField(max_length=64, unique=True)),
                ("imported_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "verbose_name": "Telemetry Event",
                "verbose_name_plural": "Telemetry Events",
                "ordering": ["id"],
                "indexes": [
                    models.Index(fields=["game_reference"], name="telemetry_game_ref_idx"),
                    models.Index(fields=["session_id"], name="telemetry_session_idx"),
                    models.Index(fields=["player_id"], name="telemetry_player_idx"),
                ],
            },
        ),
    ]
