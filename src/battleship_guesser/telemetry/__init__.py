"""Public telemetry helpers for the guesser."""

from __future__ import annotations

from .config import TelemetryConfig, init_telemetry, load_telemetry_config
from .logger import configure_console_logging
from .metrics import SolverInstruments, solver_instruments
from .tracer import get_tracer

__all__ = [
    "TelemetryConfig",
    "SolverInstruments",
    "configure_console_logging",
    "get_tracer",
    "solver_instruments",
    "load_telemetry_config",
    "init_telemetry",
]
