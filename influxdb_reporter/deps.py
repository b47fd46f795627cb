"""Providers used by the metrics host to build the reporter.

The configuration read from the environment is cached; tests clear it with
``get_config.cache_clear()``.
"""

from functools import lru_cache

from influxdb_reporter.config import ReporterConfig, load_config
from influxdb_reporter.module import ModuleFactory
from influxdb_reporter.reporter import InfluxDBReporter


@lru_cache(maxsize=1)
def get_config() -> ReporterConfig:
    return load_config()


class InfluxDBReporterFactory(ModuleFactory):
    """Creates an ``InfluxDBReporter`` from the environment configuration."""

    def create(self) -> InfluxDBReporter:
        return InfluxDBReporter(get_config())
