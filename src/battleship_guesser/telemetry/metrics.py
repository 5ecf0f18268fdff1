"""The guesser's metric instruments."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from opentelemetry import metrics as otel_metrics
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.metrics import Counter, Histogram, Meter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.metrics.view import ExplicitBucketHistogramAggregation, View
from opentelemetry.sdk.resources import Resource

if TYPE_CHECKING:  # pragma: no cover
    from .config import TelemetryConfig

METER_NAME = "battleship_guesser"
PASS_DURATION_METRIC = "battleship_guesser_pass_duration"
# Milliseconds; exhaustive passes finish in tens of ms, sampled ones can run for seconds.
PASS_DURATION_BUCKETS_MS = (5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000, 30000, 60000)

_METER_PROVIDER: MeterProvider | None = None
_INSTRUMENTS: SolverInstruments | None = None


@dataclass(frozen=True)
class SolverInstruments:
    moves_generated: Counter
    pass_duration: Histogram
    fleets_tested: Counter
    valid_fleets: Counter
    guesses_recorded: Counter
    games_finished: Counter

    @classmethod
    def create(cls, meter: Meter) -> SolverInstruments:
        return cls(
            moves_generated=meter.create_counter(
                "battleship_guesser_moves_generated",
                unit="1",
                description="Move-generation passes that produced a move",
            ),
            pass_duration=meter.create_histogram(
                PASS_DURATION_METRIC,
                unit="ms",
                description="Wall-clock duration of a move-generation pass",
            ),
            fleets_tested=meter.create_counter(
                "battleship_guesser_fleets_tested",
                unit="1",
                description="Candidate fleets checked against the board",
            ),
            valid_fleets=meter.create_counter(
                "battleship_guesser_valid_fleets",
                unit="1",
                description="Candidate fleets consistent with the board",
            ),
            guesses_recorded=meter.create_counter(
                "battleship_guesser_guesses_recorded",
                unit="1",
                description="Guess outcomes reported to the game state",
            ),
            games_finished=meter.create_counter(
                "battleship_guesser_games_total",
                unit="1",
                description="Interactive games ended, by whether the fleet was sunk",
            ),
        )


def solver_instruments() -> SolverInstruments:
    """Return the instrument set, creating it on first use."""
    global _INSTRUMENTS
    if _INSTRUMENTS is None:
        _INSTRUMENTS = SolverInstruments.create(otel_metrics.get_meter(METER_NAME))
    return _INSTRUMENTS


def init_metrics(config: TelemetryConfig) -> MeterProvider:
    """Install a MeterProvider and rebuild the instruments against it."""
    global _METER_PROVIDER, _INSTRUMENTS

    readers = []
    if config.otlp_metrics_endpoint:
        exporter = OTLPMetricExporter(endpoint=config.otlp_metrics_endpoint, insecure=True)
        readers.append(PeriodicExportingMetricReader(exporter, export_interval_millis=5000))

    provider = MeterProvider(
        resource=Resource.create(config.resource_attributes_with_service()),
        metric_readers=readers,
        views=[
            View(
                instrument_name=PASS_DURATION_METRIC,
                aggregation=ExplicitBucketHistogramAggregation(boundaries=PASS_DURATION_BUCKETS_MS),
            )
        ],
    )
    otel_metrics.set_meter_provider(provider)

    _METER_PROVIDER = provider
    _INSTRUMENTS = SolverInstruments.create(provider.get_meter(METER_NAME))
    return provider
