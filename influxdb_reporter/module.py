"""Interfaces the metrics host uses to drive reporter modules."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from influxdb_reporter.models import PeriodSnapshot


class MetricReporter(ABC):
    """A module that receives one ``PeriodSnapshot`` per reporting period.

    The host calls ``report_period_snapshot`` serially on its own schedule,
    ``reconfigure`` whenever the configuration changes and ``stop`` once on
    shutdown.
    """

    @abstractmethod
    def report_period_snapshot(self, snapshot: PeriodSnapshot) -> None:
        """Ship the metrics of one period.  Must not raise."""
        ...

    @abstractmethod
    def reconfigure(self, config: Any) -> None:
        """Apply a new configuration, replacing the current one."""
        ...

    @abstractmethod
    def stop(self) -> None:
        """Release any resources held by the module."""
        ...


class ModuleFactory(ABC):
    @abstractmethod
    def create(self) -> MetricReporter:
        ...
