"""Django app configuration for Telemetry."""

from __future__ import annotations

from django.apps import AppConfig


class TelemetryConfig(AppConfig):
    """AppConfig for raw telemetry events and their data sources."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "telemetry"
