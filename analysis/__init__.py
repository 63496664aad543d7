"""Pure analysis package for Sphere game telemetry.

This package contains deterministic, testable computations that operate on
in-memory inputs and return DTOs. It must not import Django or perform any
database I/O.
"""

from .engine import AnalysisEngine, EngineConfig, EventSource, StaticEventSource, analyze_batch
from .events import EventBatchError
from .reconstruction import reconstruct

__all__ = [
    "AnalysisEngine",
    "EngineConfig",
    "EventBatchError",
    "EventSource",
    "StaticEventSource",
    "analyze_batch",
    "reconstruct",
]
