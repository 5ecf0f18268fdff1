"""Telemetry instrumentation unit tests."""

from __future__ import annotations

import logging
import sys
from unittest.mock import MagicMock

import pytest

from battleship_guesser import cli
from battleship_guesser.engine.game import GameState, GuessOutcome
from battleship_guesser.engine.ship import Coordinate, Orientation
from battleship_guesser.solver import MoveGenerator, SolverConfig
from battleship_guesser.telemetry import config as telemetry_config_module
from battleship_guesser.telemetry import logger as logger_module
from battleship_guesser.telemetry import metrics as metrics_module
from battleship_guesser.telemetry import tracer as tracer_module
from battleship_guesser.telemetry.config import TelemetryConfig


class DummySpan:
    def __init__(self, names: list[str], span_name: str) -> None:
        self._names = names
        self._names.append(span_name)
        self.attributes: dict[str, object] = {}

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        return False

    def set_attribute(self, key, value):
        self.attributes[key] = value


class DummyTracer:
    def __init__(self) -> None:
        self.span_names: list[str] = []
        self.spans: list[DummySpan] = []

    def start_as_current_span(self, name: str):
        span = DummySpan(self.span_names, name)
        self.spans.append(span)
        return span


def reset_singletons() -> None:
    tracer_module._TRACER_PROVIDER = None
    metrics_module._METER_PROVIDER = None
    metrics_module._INSTRUMENTS = None


def test_init_tracing_samples_and_exports_over_otlp(monkeypatch: pytest.MonkeyPatch) -> None:
    reset_singletons()
    provider_cls = MagicMock()
    monkeypatch.setattr(tracer_module, "TracerProvider", provider_cls)
    monkeypatch.setattr(tracer_module, "OTLPSpanExporter", MagicMock(return_value=MagicMock()))
    monkeypatch.setattr(tracer_module, "BatchSpanProcessor", MagicMock(return_value=MagicMock()))
    monkeypatch.setattr(tracer_module.trace, "set_tracer_provider", MagicMock())

    provider = tracer_module.init_tracing(
        TelemetryConfig(
            enable_tracing=True, otlp_traces_endpoint="http://example", trace_sample_ratio=0.25
        )
    )

    assert provider is provider_cls.return_value
    assert tracer_module._TRACER_PROVIDER is provider
    sampler = provider_cls.call_args.kwargs["sampler"]
    assert "TraceIdRatioBased{0.25}" in sampler.get_description()
    tracer_module.BatchSpanProcessor.assert_called_once()
    reset_singletons()


def test_console_spans_go_to_stderr(monkeypatch: pytest.MonkeyPatch) -> None:
    reset_singletons()
    console = MagicMock()
    monkeypatch.setattr(tracer_module, "TracerProvider", MagicMock())
    monkeypatch.setattr(tracer_module, "ConsoleSpanExporter", console)
    monkeypatch.setattr(tracer_module, "SimpleSpanProcessor", MagicMock())
    monkeypatch.setattr(tracer_module.trace, "set_tracer_provider", MagicMock())

    tracer_module.init_tracing(TelemetryConfig(enable_tracing=True))

    console.assert_called_once_with(out=sys.stderr)
    reset_singletons()


def test_init_metrics_rebuilds_instruments(monkeypatch: pytest.MonkeyPatch) -> None:
    reset_singletons()
    meter_provider = MagicMock()
    provider_cls = MagicMock(return_value=meter_provider)
    monkeypatch.setattr(metrics_module, "MeterProvider", provider_cls)
    monkeypatch.setattr(metrics_module, "OTLPMetricExporter", MagicMock(return_value=MagicMock()))
    monkeypatch.setattr(
        metrics_module, "PeriodicExportingMetricReader", MagicMock(return_value=MagicMock())
    )
    monkeypatch.setattr(metrics_module.otel_metrics, "set_meter_provider", MagicMock())

    metrics_module.init_metrics(
        TelemetryConfig(enable_metrics=True, otlp_metrics_endpoint="http://example")
    )

    meter = meter_provider.get_meter.return_value
    instruments = metrics_module.solver_instruments()
    assert instruments.moves_generated is meter.create_counter.return_value
    assert instruments.pass_duration is meter.create_histogram.return_value
    meter.create_histogram.assert_called_once()
    assert meter.create_histogram.call_args.args[0] == metrics_module.PASS_DURATION_METRIC
    views = provider_cls.call_args.kwargs["views"]
    assert len(views) == 1
    reset_singletons()


def test_solver_instruments_are_created_once(monkeypatch: pytest.MonkeyPatch) -> None:
    reset_singletons()
    meter = MagicMock()
    monkeypatch.setattr(metrics_module.otel_metrics, "get_meter", MagicMock(return_value=meter))

    first = metrics_module.solver_instruments()
    second = metrics_module.solver_instruments()

    assert first is second
    assert meter.create_counter.call_count == 5
    assert meter.create_histogram.call_count == 1
    reset_singletons()


def test_game_end_is_counted(monkeypatch: pytest.MonkeyPatch) -> None:
    instruments = MagicMock()
    monkeypatch.setattr(metrics_module, "_INSTRUMENTS", instruments)
    monkeypatch.setattr("builtins.input", lambda *_: "3")

    cli.play_game(SolverConfig(), state=GameState(size=4, fleet_lengths=(2,)))

    instruments.games_finished.add.assert_called_once_with(1, attributes={"finished": False})


def test_event_formatter_appends_extra_fields() -> None:
    formatter = logger_module.EventFormatter("%(levelname)s %(message)s")
    record = logging.makeLogRecord(
        {"levelname": "INFO", "msg": "move_selected", "x": 3, "strategy": "exhaustive"}
    )
    plain = logging.makeLogRecord({"levelname": "INFO", "msg": "done"})

    assert formatter.format(record) == "INFO move_selected | strategy=exhaustive x=3"
    assert formatter.format(plain) == "INFO done"


def test_console_logging_replaces_its_own_handler() -> None:
    package_logger = logging.getLogger(logger_module.PACKAGE_LOGGER)
    previous_level = package_logger.level
    try:
        logger_module.configure_console_logging(verbose=False)
        handler = logger_module.configure_console_logging(verbose=True)

        ours = [h for h in package_logger.handlers if isinstance(h.formatter, logger_module.EventFormatter)]
        assert ours == [handler]
        assert handler.level == logging.DEBUG
        assert package_logger.level == logging.DEBUG
    finally:
        for existing in list(package_logger.handlers):
            if isinstance(existing.formatter, logger_module.EventFormatter):
                package_logger.removeHandler(existing)
        package_logger.setLevel(previous_level)


def test_init_logging_installs_one_otlp_handler(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("opentelemetry.sdk._logs.LoggerProvider", MagicMock())
    monkeypatch.setattr("opentelemetry._logs.set_logger_provider", MagicMock())
    monkeypatch.setattr(logger_module, "_OTLP_HANDLER", None)
    package_logger = logging.getLogger(logger_module.PACKAGE_LOGGER)
    previous_level = package_logger.level
    handler = None
    try:
        package_logger.setLevel(logging.WARNING)
        handler = logger_module.init_logging(TelemetryConfig(enable_logging=True))

        assert handler is not None
        assert handler in package_logger.handlers
        assert package_logger.level == logging.INFO
        assert logger_module.init_logging(TelemetryConfig(enable_logging=True)) is handler
    finally:
        if handler is not None:
            package_logger.removeHandler(handler)
        package_logger.setLevel(previous_level)


def test_init_telemetry_noop(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[str] = []

    monkeypatch.setattr(tracer_module, "init_tracing", lambda cfg: calls.append("tr"))
    monkeypatch.setattr(metrics_module, "init_metrics", lambda cfg: calls.append("me"))
    monkeypatch.setattr(logger_module, "init_logging", lambda cfg: calls.append("lo"))

    telemetry_config_module.init_telemetry(TelemetryConfig())
    assert calls == []


def test_init_telemetry_respects_flags(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[str] = []

    monkeypatch.setattr(tracer_module, "init_tracing", lambda cfg: calls.append("tr"))
    monkeypatch.setattr(metrics_module, "init_metrics", lambda cfg: calls.append("me"))
    monkeypatch.setattr(logger_module, "init_logging", lambda cfg: calls.append("lo"))

    config = TelemetryConfig(enable_tracing=True, enable_logging=True)
    telemetry_config_module.init_telemetry(config)
    assert calls == ["tr", "lo"]


def test_endpoints_enable_matching_exporters(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "BATTLESHIP_GUESSER_ENABLE_TRACING",
        "BATTLESHIP_GUESSER_ENABLE_METRICS",
        "BATTLESHIP_GUESSER_ENABLE_LOGGING",
        "OTEL_TRACES_ENABLED",
        "OTEL_METRICS_ENABLED",
        "OTEL_LOGS_ENABLED",
        "OTEL_EXPORTER_OTLP_TRACES_ENDPOINT",
        "OTEL_EXPORTER_OTLP_METRICS_ENDPOINT",
        "OTEL_EXPORTER_OTLP_LOGS_ENDPOINT",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://collector:4317/")
    monkeypatch.setenv("OTEL_RESOURCE_ATTRIBUTES", "deployment.environment=test,team=games")

    config = TelemetryConfig.from_env()

    assert config.enable_tracing and config.enable_metrics and config.enable_logging
    assert config.otlp_traces_endpoint == "http://collector:4317/v1/traces"
    assert config.otlp_logs_endpoint == "http://collector:4317/v1/logs"
    attributes = config.resource_attributes_with_service()
    assert attributes["deployment.environment"] == "test"
    assert attributes["team"] == "games"
    assert "service.name" in attributes


def test_flag_variables_toggle_exporters(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("OTEL_EXPORTER_OTLP_ENDPOINT", "OTEL_EXPORTER_OTLP_METRICS_ENDPOINT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("BATTLESHIP_GUESSER_ENABLE_METRICS", "yes")
    assert TelemetryConfig.from_env().enable_metrics is True
    monkeypatch.setenv("BATTLESHIP_GUESSER_ENABLE_METRICS", "0")
    assert TelemetryConfig.from_env().enable_metrics is False


def test_load_telemetry_config_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    telemetry_config_module.load_telemetry_config.cache_clear()
    calls = {"count": 0}

    def fake_from_env(cls, **overrides):
        calls["count"] += 1
        return TelemetryConfig(enable_tracing=True)

    monkeypatch.setattr(TelemetryConfig, "from_env", classmethod(fake_from_env))

    first = telemetry_config_module.load_telemetry_config()
    second = telemetry_config_module.load_telemetry_config()
    assert first is second
    assert calls["count"] == 1
    telemetry_config_module.load_telemetry_config.cache_clear()


def test_move_generation_emits_spans(monkeypatch: pytest.MonkeyPatch) -> None:
    tracer = DummyTracer()
    monkeypatch.setattr("battleship_guesser.solver.engine.tracer", tracer)
    monkeypatch.setattr("battleship_guesser.solver.search.tracer", tracer)
    monkeypatch.setattr("battleship_guesser.solver.selector.tracer", tracer)

    state = GameState(size=4, fleet_lengths=(2,))
    MoveGenerator(SolverConfig(max_configs_tested=1000)).run(state)

    assert tracer.span_names == ["solver.generate_move", "solver.search", "solver.select_move"]
    outer = tracer.spans[0]
    assert outer.attributes["move.x"] == 1
    assert outer.attributes["search.strategy"] == "exhaustive"
    assert outer.attributes["search.valid_fleets"] == 24


def test_game_reports_emit_spans_and_logs(monkeypatch: pytest.MonkeyPatch) -> None:
    tracer = DummyTracer()
    logger = MagicMock()
    monkeypatch.setattr("battleship_guesser.engine.game.tracer", tracer)
    monkeypatch.setattr("battleship_guesser.engine.game.logger", logger)

    state = GameState()
    state.report_guess_outcome(Coordinate(3, 3), GuessOutcome.HIT)
    state.report_ship_sunk(0, 3, 3, Orientation.UP)
    with pytest.raises(ValueError):
        state.report_ship_sunk(0, 3, 3, Orientation.UP)

    assert tracer.span_names == [
        "game.report_guess_outcome",
        "game.report_ship_sunk",
        "game.report_ship_sunk",
    ]
    logged = [call.args[0] for call in logger.info.call_args_list]
    assert logged == ["guess_recorded", "ship_sunk_recorded"]
    logger.error.assert_called_once()
    assert logger.error.call_args.args[0] == "sinkage_duplicate"
