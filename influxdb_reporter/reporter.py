"""The InfluxDB metric reporter module.

Each reporting period the host hands a ``PeriodSnapshot`` to
``InfluxDBReporter.report_period_snapshot``, which encodes it as line
protocol and POSTs it to InfluxDB.  A period with nothing to write (no
instruments, or only empty distributions) sends no request at all.

Settings and the HTTP client are published together as a single immutable
``ReporterState``.  ``reconfigure`` builds a complete new state and swaps it
in with one attribute assignment, so a reporting call always works against
either the old or the new state, never a mix of both.

Clients replaced by ``reconfigure`` stay open so in-flight writes can finish;
``stop`` closes them together with the current one.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, NamedTuple

import httpx

from influxdb_reporter.clients.influxdb import InfluxDBClient
from influxdb_reporter.config import ReporterConfig, Settings, resolve_settings
from influxdb_reporter.environment import Environment
from influxdb_reporter.line_protocol import encode
from influxdb_reporter.models import PeriodSnapshot
from influxdb_reporter.module import MetricReporter

logger = logging.getLogger(__name__)


class ReporterState(NamedTuple):
    settings: Settings
    client: InfluxDBClient


class InfluxDBReporter(MetricReporter):
    """Reports period snapshots to InfluxDB over HTTP."""

    def __init__(
        self,
        config: ReporterConfig | Mapping[str, Any] | None = None,
        environment: Environment | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._environment = environment if environment is not None else Environment.detect()
        self._transport = transport
        self._retired: list[InfluxDBClient] = []
        self._state = self._build_state(config)

    @property
    def settings(self) -> Settings:
        return self._state.settings

    def _build_state(self, config: ReporterConfig | Mapping[str, Any] | None) -> ReporterState:
        settings = resolve_settings(config, self._environment)
        client = InfluxDBClient(
            url=settings.url,
            credentials=settings.credentials,
            timeout=settings.request_timeout,
            transport=self._transport,
        )
        return ReporterState(settings=settings, client=client)

    def report_period_snapshot(self, snapshot: PeriodSnapshot) -> None:
        state = self._state
        try:
            payload = encode(snapshot, state.settings)
            if not payload:
                logger.debug("No metrics to report for this period")
                return
            state.client.write(payload)
        except Exception:
            logger.exception("Failed to report metrics to InfluxDB")

    def reconfigure(self, config: ReporterConfig | Mapping[str, Any] | None) -> None:
        """Switch to *config*.

        Raises:
            ConfigurationError: if *config* is invalid; the current settings
                stay active in that case.
        """
        state = self._build_state(config)
        self._retired.append(self._state.client)
        self._state = state
        logger.info("InfluxDB reporter reconfigured, writing to %s", state.settings.url)

    def stop(self) -> None:
        for client in self._retired:
            client.close()
        self._retired.clear()
        self._state.client.close()
