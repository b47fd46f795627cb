"""Pydantic models for the period snapshots handed over by the metrics host.

A ``PeriodSnapshot`` carries every metric recorded during one reporting
period, grouped by kind.  Each metric has a name and a list of instruments,
one per distinct tag set.  Counters hold integers, gauges floats, and the
three distribution kinds (histograms, range samplers, timers) a
``Distribution`` summary.
"""

from __future__ import annotations

import math
import time
from collections import Counter
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

TagValue = str | bool | int

V = TypeVar("V")

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_NANOS_PER_SECOND = 1_000_000_000


# ── Time ──────────────────────────────────────────────────────────────────────


class Instant(BaseModel):
    """A point on the UTC timeline with nanosecond resolution."""

    model_config = ConfigDict(frozen=True)

    seconds: int = Field(..., description="Whole seconds since the Unix epoch")
    nanos: int = Field(
        0, ge=0, lt=_NANOS_PER_SECOND, description="Nanoseconds within the second"
    )

    @classmethod
    def from_epoch_nanos(cls, nanos: int) -> Instant:
        seconds, rest = divmod(nanos, _NANOS_PER_SECOND)
        return cls(seconds=seconds, nanos=rest)

    @classmethod
    def from_datetime(cls, value: datetime) -> Instant:
        """Convert *value* to an Instant.  Naive datetimes are taken as UTC."""
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        delta = value - _EPOCH
        return cls(
            seconds=delta.days * 86_400 + delta.seconds,
            nanos=delta.microseconds * 1_000,
        )

    @classmethod
    def now(cls) -> Instant:
        return cls.from_epoch_nanos(time.time_ns())

    def to_epoch_millis(self) -> int:
        return self.seconds * 1_000 + self.nanos // 1_000_000


# ── Distributions ─────────────────────────────────────────────────────────────


class Bucket(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: int
    frequency: int = Field(..., ge=0)


class Distribution(BaseModel):
    """Summary of the values recorded by a histogram, range sampler or timer.

    ``buckets`` must be sorted by value; ``percentile`` walks them to find
    the value at a given rank.
    """

    model_config = ConfigDict(frozen=True)

    count: int = 0
    sum: int = 0
    min: int = 0
    max: int = 0
    buckets: tuple[Bucket, ...] = ()

    @classmethod
    def from_values(cls, values: Iterable[int]) -> Distribution:
        frequencies = Counter(values)
        if not frequencies:
            return cls()
        buckets = tuple(
            Bucket(value=value, frequency=frequency)
            for value, frequency in sorted(frequencies.items())
        )
        return cls(
            count=sum(frequencies.values()),
            sum=sum(value * frequency for value, frequency in frequencies.items()),
            min=buckets[0].value,
            max=buckets[-1].value,
            buckets=buckets,
        )

    def percentile(self, rank: float) -> int:
        """Return the recorded value at *rank* (0-100), using nearest-rank."""
        if self.count == 0:
            return 0
        target = max(1, math.ceil(rank * self.count / 100.0))
        seen = 0
        for bucket in self.buckets:
            seen += bucket.frequency
            if seen >= target:
                return bucket.value
        return self.max


# ── Metric snapshots ──────────────────────────────────────────────────────────


class Instrument(BaseModel, Generic[V]):
    """The value recorded for one tag set of a metric."""

    model_config = ConfigDict(frozen=True)

    tags: dict[str, TagValue] = Field(default_factory=dict)
    value: V


class MetricSnapshot(BaseModel, Generic[V]):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    instruments: list[Instrument[V]] = Field(default_factory=list)


class PeriodSnapshot(BaseModel):
    """Everything recorded between *start* and *end*, grouped by metric kind."""

    model_config = ConfigDict(frozen=True)

    start: Instant
    end: Instant
    counters: list[MetricSnapshot[int]] = Field(default_factory=list)
    gauges: list[MetricSnapshot[float]] = Field(default_factory=list)
    histograms: list[MetricSnapshot[Distribution]] = Field(default_factory=list)
    range_samplers: list[MetricSnapshot[Distribution]] = Field(default_factory=list)
    timers: list[MetricSnapshot[Distribution]] = Field(default_factory=list)
