"""InfluxDB line-protocol encoding of period snapshots.

Every instrument of every metric becomes one record::

    name[,tag=value...] field=value[,field=value...] timestamp\\n

Counters write a single integer ``count`` field, gauges a single float
``value`` field, and distributions (histograms, range samplers and timers)
write ``count``, ``sum``, ``min``, one ``p<rank>`` float field per configured
percentile and finally ``max``.

Tags are the instrument's tags merged with the additional tags from the
settings (settings win on key collisions), sorted by key and passed through
the settings' tag filter.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping

from influxdb_reporter.config import Settings
from influxdb_reporter.models import (
    Distribution,
    Instant,
    MetricSnapshot,
    PeriodSnapshot,
    TagValue,
)

logger = logging.getLogger(__name__)


# ── Escaping ──────────────────────────────────────────────────────────────────


def escape_name(name: str) -> str:
    """Escape a measurement name (spaces and commas)."""
    return name.replace(" ", "\\ ").replace(",", "\\,")


def escape_string(value: str) -> str:
    """Escape a tag key or tag value (spaces, equals signs and commas)."""
    return value.replace(" ", "\\ ").replace("=", "\\=").replace(",", "\\,")


def _tag_value(value: TagValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


# ── Fields and timestamps ─────────────────────────────────────────────────────


def int_field(name: str, value: int) -> str:
    return f"{name}={value}i"


def float_field(name: str, value: float) -> str:
    # repr gives the shortest string that round-trips to the same float.
    return f"{name}={float(value)!r}"


def percentile_field_name(rank: float) -> str:
    return f"p{float(rank)!r}"


def timestamp(instant: Instant, precision: str) -> str:
    """Render *instant* as an integer timestamp in the given precision."""
    if precision == "s":
        return str(instant.seconds)
    if precision == "ms":
        return str(instant.to_epoch_millis())
    if precision in ("u", "µ"):
        return str(instant.seconds * 1_000_000 + instant.nanos // 1_000)
    if precision == "ns":
        return str(instant.seconds * 1_000_000_000 + instant.nanos)
    raise ValueError(f"Unsupported timestamp precision: {precision!r}")


# ── Records ───────────────────────────────────────────────────────────────────


def _name_and_tags(name: str, tags: Mapping[str, TagValue], settings: Settings) -> str:
    merged = dict(tags)
    merged.update(settings.additional_tags)

    parts = [escape_name(name)]
    for key in sorted(merged):
        if settings.tag_filter.accept(key):
            parts.append(f",{escape_string(key)}={escape_string(_tag_value(merged[key]))}")
        else:
            logger.debug("Filtered tag %s", key)
    return "".join(parts)


def _record(
    name: str,
    tags: Mapping[str, TagValue],
    fields: list[str],
    ts: str,
    settings: Settings,
) -> str:
    return f"{_name_and_tags(name, tags, settings)} {','.join(fields)} {ts}\n"


def _write_counter(
    metric: MetricSnapshot[int], settings: Settings, ts: str, out: list[str]
) -> None:
    for instrument in metric.instruments:
        fields = [int_field("count", instrument.value)]
        out.append(_record(metric.name, instrument.tags, fields, ts, settings))


def _write_gauge(
    metric: MetricSnapshot[float], settings: Settings, ts: str, out: list[str]
) -> None:
    for instrument in metric.instruments:
        fields = [float_field("value", instrument.value)]
        out.append(_record(metric.name, instrument.tags, fields, ts, settings))


def _distribution_fields(value: Distribution, percentiles: tuple[float, ...]) -> list[str]:
    fields = [
        int_field("count", value.count),
        int_field("sum", value.sum),
        int_field("min", value.min),
    ]
    fields.extend(
        float_field(percentile_field_name(p), value.percentile(p)) for p in percentiles
    )
    fields.append(int_field("max", value.max))
    return fields


def _write_distribution(
    metric: MetricSnapshot[Distribution], settings: Settings, ts: str, out: list[str]
) -> None:
    for instrument in metric.instruments:
        if instrument.value.count == 0 and not settings.post_empty_distributions:
            continue
        fields = _distribution_fields(instrument.value, settings.percentiles)
        out.append(_record(metric.name, instrument.tags, fields, ts, settings))


Writer = Callable[[MetricSnapshot, Settings, str, list[str]], None]


def encode(snapshot: PeriodSnapshot, settings: Settings) -> str:
    """Translate *snapshot* into a line-protocol payload.

    Records are written counters first, then gauges, histograms, range
    samplers and timers, each kind in the order the snapshot lists them.
    All records share the timestamp of the end of the period.
    """
    ts = timestamp(snapshot.end, settings.precision)
    groups: list[tuple[list[MetricSnapshot], Writer]] = [
        (snapshot.counters, _write_counter),
        (snapshot.gauges, _write_gauge),
        (snapshot.histograms, _write_distribution),
        (snapshot.range_samplers, _write_distribution),
        (snapshot.timers, _write_distribution),
    ]

    out: list[str] = []
    for metrics, write in groups:
        for metric in metrics:
            write(metric, settings, ts, out)
    return "".join(out)
