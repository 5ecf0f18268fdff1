"""Tracing for move-generation passes and game reports.

Every module asks for its own named tracer at import time. Until
:func:`init_tracing` installs a provider those tracers are OpenTelemetry
proxies and spans cost nothing; afterwards they report to the installed
provider without being re-fetched.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
)
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased
from opentelemetry.trace import Tracer

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .config import TelemetryConfig


_TRACER_PROVIDER: TracerProvider | None = None


def get_tracer(name: str) -> Tracer:
    """Return the tracer for instrumentation scope ``name`` (a module path)."""
    return trace.get_tracer(name)


def init_tracing(config: TelemetryConfig) -> TracerProvider:
    """Install a TracerProvider sampling ``config.trace_sample_ratio`` of passes.

    Spans go over OTLP when an endpoint is configured. Otherwise they are
    printed to stderr, keeping stdout free for the game prompts.
    """
    global _TRACER_PROVIDER

    provider = TracerProvider(
        resource=Resource.create(config.resource_attributes_with_service()),
        sampler=ParentBased(TraceIdRatioBased(config.trace_sample_ratio)),
    )
    if config.otlp_traces_endpoint:
        exporter = OTLPSpanExporter(endpoint=config.otlp_traces_endpoint, insecure=True)
        provider.add_span_processor(BatchSpanProcessor(exporter))
    else:
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter(out=sys.stderr)))

    trace.set_tracer_provider(provider)
    _TRACER_PROVIDER = provider
    return provider
