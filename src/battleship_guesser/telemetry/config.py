"""Telemetry configuration helpers."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Any, Dict

from pydantic import BaseModel, Field

ENV_PREFIX = "BATTLESHIP_GUESSER_"
_TRUTHY = {"1", "true", "yes", "on"}
_SIGNAL_FLAGS = {
    "traces": "enable_tracing",
    "metrics": "enable_metrics",
    "logs": "enable_logging",
}


class TelemetryConfig(BaseModel):
    """Which OpenTelemetry exporters to wire up, and where they send data."""

    enable_tracing: bool = False
    enable_metrics: bool = False
    enable_logging: bool = False
    otlp_traces_endpoint: str | None = None
    otlp_metrics_endpoint: str | None = None
    otlp_logs_endpoint: str | None = None
    trace_sample_ratio: float = Field(default=1.0, ge=0.0, le=1.0)
    service_name: str = "battleship-guesser"
    service_namespace: str = "solver"
    resource_attributes: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_env(cls, **overrides: Any) -> "TelemetryConfig":
        """Build a config from `BATTLESHIP_GUESSER_*` and `OTEL_*` variables."""

        data: Dict[str, Any] = cls().model_dump()
        data.update(overrides)

        flags = {
            "enable_tracing": (f"{ENV_PREFIX}ENABLE_TRACING", "OTEL_TRACES_ENABLED"),
            "enable_metrics": (f"{ENV_PREFIX}ENABLE_METRICS", "OTEL_METRICS_ENABLED"),
            "enable_logging": (f"{ENV_PREFIX}ENABLE_LOGGING", "OTEL_LOGS_ENABLED"),
        }
        for field_name, env_names in flags.items():
            for env_name in env_names:
                raw = os.getenv(env_name)
                if raw is not None:
                    data[field_name] = raw.strip().lower() in _TRUTHY
                    break

        base = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
        for signal in ("traces", "metrics", "logs"):
            key = f"otlp_{signal}_endpoint"
            if data.get(key):
                continue
            explicit = os.getenv(f"OTEL_EXPORTER_OTLP_{signal.upper()}_ENDPOINT")
            if explicit:
                data[key] = explicit
            elif base:
                data[key] = f"{base.rstrip('/')}/v1/{signal}"

        ratio = os.getenv(f"{ENV_PREFIX}TRACE_SAMPLE_RATIO")
        if ratio:
            data["trace_sample_ratio"] = float(ratio)

        if os.getenv("OTEL_SERVICE_NAME"):
            data["service_name"] = os.environ["OTEL_SERVICE_NAME"]
        if os.getenv("OTEL_SERVICE_NAMESPACE"):
            data["service_namespace"] = os.environ["OTEL_SERVICE_NAMESPACE"]

        resource_env = os.getenv("OTEL_RESOURCE_ATTRIBUTES")
        if resource_env:
            attrs = dict(data.get("resource_attributes", {}))
            for part in resource_env.split(","):
                key, sep, value = part.partition("=")
                if sep:
                    attrs[key.strip()] = value.strip()
            data["resource_attributes"] = attrs

        # An endpoint implies the matching exporter.
        for signal, flag in _SIGNAL_FLAGS.items():
            if data.get(f"otlp_{signal}_endpoint"):
                data[flag] = True

        return cls(**data)

    def resource_attributes_with_service(self) -> dict[str, str]:
        attributes = {
            "service.name": self.service_name,
            "service.namespace": self.service_namespace,
        }
        attributes.update(self.resource_attributes)
        return attributes


@lru_cache(maxsize=1)
def load_telemetry_config() -> TelemetryConfig:
    """Load and cache telemetry config from the environment."""

    return TelemetryConfig.from_env()


def init_telemetry(config: TelemetryConfig | None = None) -> TelemetryConfig:
    """Initialise the enabled telemetry subsystems."""

    from .logger import init_logging
    from .metrics import init_metrics
    from .tracer import init_tracing

    resolved = config or load_telemetry_config()

    if resolved.enable_tracing:
        init_tracing(resolved)
    if resolved.enable_metrics:
        init_metrics(resolved)
    if resolved.enable_logging:
        init_logging(resolved)
    return resolved
