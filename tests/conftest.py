"""Shared pytest fixtures and helpers.

InfluxDB itself is replaced by an ``httpx.MockTransport`` that records every
request, so tests run without any live services.  The environment identity
is fixed so environment tags are predictable.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from typing import Any

import httpx
import pytest

from influxdb_reporter.config import ReporterConfig, Settings
from influxdb_reporter.deps import get_config
from influxdb_reporter.environment import Environment
from influxdb_reporter.filters import Filter
from influxdb_reporter.models import Instant

# ── Constants ─────────────────────────────────────────────────────────────────

WRITE_URL = "http://localhost:8086/write?precision=s&db=mydb"
PERIOD_END = Instant(seconds=1000)
PERIOD_START = Instant(seconds=940)

# ── Helpers ───────────────────────────────────────────────────────────────────


def make_settings(**overrides: Any) -> Settings:
    """Build Settings directly, bypassing configuration resolution."""
    values: dict[str, Any] = {
        "url": WRITE_URL,
        "percentiles": (50.0, 95.0),
        "tag_filter": Filter.accept_all(),
        "additional_tags": {},
        "precision": "s",
    }
    values.update(overrides)
    return Settings(**values)


def make_config(**overrides: Any) -> ReporterConfig:
    """Build a ReporterConfig pointing at localhost with no environment tags."""
    values: dict[str, Any] = {
        "hostname": "localhost",
        "environment_tags": {
            "include_service": False,
            "include_host": False,
            "include_instance": False,
            "exclude": ["region"],
        },
    }
    values.update(overrides)
    return ReporterConfig(**values)


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request and answers with *status*."""

    def __init__(self, status: int = 204, text: str = "") -> None:
        self.requests: list[httpx.Request] = []
        self.status = status
        self.text = text
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status, text=self.text)

    @property
    def bodies(self) -> list[str]:
        return [r.content.decode() for r in self.requests]


# ── Fixtures ──────────────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep INFLUXDB_* variables of the developer's shell out of the tests."""
    for key in list(os.environ):
        if key.startswith("INFLUXDB_"):
            monkeypatch.delenv(key)
    get_config.cache_clear()
    yield
    get_config.cache_clear()


@pytest.fixture()
def environment() -> Environment:
    return Environment(
        service="checkout",
        host="a1",
        instance="checkout@a1",
        tags={"region": "eu-west"},
    )


@pytest.fixture()
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture()
def failing_transport() -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    return httpx.MockTransport(handler)
