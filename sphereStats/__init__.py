"""Django project package for Sphere telemetry analysis."""
