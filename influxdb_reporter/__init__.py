"""Report period metric snapshots to InfluxDB using the line protocol."""

from influxdb_reporter.config import ConfigurationError, ReporterConfig, Settings, resolve_settings
from influxdb_reporter.deps import InfluxDBReporterFactory
from influxdb_reporter.line_protocol import encode
from influxdb_reporter.reporter import InfluxDBReporter

__all__ = [
    "ConfigurationError",
    "InfluxDBReporter",
    "InfluxDBReporterFactory",
    "ReporterConfig",
    "Settings",
    "encode",
    "resolve_settings",
]
