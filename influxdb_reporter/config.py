"""Reporter configuration loaded from environment variables.

``ReporterConfig`` is the raw, user-facing configuration; ``resolve_settings``
validates it and turns it into the immutable ``Settings`` value the encoder
and the delivery client work from.
"""

from __future__ import annotations

import base64
import re
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Literal, get_args

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from influxdb_reporter.environment import Environment, environment_tags
from influxdb_reporter.filters import Filter
from influxdb_reporter.models import TagValue

# Accepted by the InfluxDB 1.x /write endpoint, see
# https://docs.influxdata.com/influxdb/v1.7/tools/api/#query-string-parameters-1
Precision = Literal["ns", "u", "µ", "ms", "s"]
PRECISIONS = frozenset(get_args(Precision))
PROTOCOLS = frozenset({"http", "https"})


class ConfigurationError(Exception):
    """Raised when the reporter configuration cannot be turned into Settings."""


# ── Raw configuration ─────────────────────────────────────────────────────────


class Authentication(BaseModel):
    user: str
    password: str


class TagFilterConfig(BaseModel):
    includes: list[str] = Field(default_factory=lambda: ["**"])
    excludes: list[str] = Field(default_factory=list)


class EnvironmentTagsConfig(BaseModel):
    include_service: bool = True
    include_host: bool = True
    include_instance: bool = True
    exclude: list[str] = Field(default_factory=list)


class ReporterConfig(BaseSettings):
    """All settings are read from ``INFLUXDB_*`` environment variables.

    Nested values use a double underscore, e.g.
    ``INFLUXDB_AUTHENTICATION__USER`` or ``INFLUXDB_TAG_FILTER__EXCLUDES``.
    """

    model_config = SettingsConfigDict(
        env_prefix="INFLUXDB_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    # ── Destination ───────────────────────────────────────────────────────────
    hostname: str = "127.0.0.1"
    port: int = 8086
    database: str = "mydb"
    protocol: str = "http"
    authentication: Authentication | None = None

    # ── Encoding ──────────────────────────────────────────────────────────────
    percentiles: list[float] = Field(
        default_factory=lambda: [50.0, 70.0, 90.0, 95.0, 99.0, 99.9]
    )
    # One of ns, u (or µ), ms, s.
    precision: str = "s"
    # Histograms, range samplers and timers without samples are skipped unless set.
    post_empty_distributions: bool = False

    # ── Tags ──────────────────────────────────────────────────────────────────
    tag_filter: TagFilterConfig = Field(default_factory=TagFilterConfig)
    environment_tags: EnvironmentTagsConfig = Field(default_factory=EnvironmentTagsConfig)
    # Static tags added to every record; they win over environment tags.
    additional_tags: dict[str, str] = Field(default_factory=dict)

    # ── Transport ─────────────────────────────────────────────────────────────
    request_timeout: float = 10.0


def load_config(**overrides: Any) -> ReporterConfig:
    """Read ``ReporterConfig`` from the environment, applying *overrides* on top."""
    try:
        return ReporterConfig(**overrides)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid InfluxDB reporter configuration: {exc}") from exc


# ── Resolved settings ─────────────────────────────────────────────────────────


class Settings(BaseModel):
    """Immutable, validated settings used for one configuration generation."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    url: str
    credentials: str | None = None
    percentiles: tuple[float, ...]
    tag_filter: Filter
    additional_tags: Mapping[str, TagValue] = Field(default_factory=dict, validate_default=True)
    precision: Precision = "s"
    post_empty_distributions: bool = False
    request_timeout: float = 10.0

    @field_validator("additional_tags", mode="after")
    @classmethod
    def _read_only_tags(cls, value: Mapping[str, TagValue]) -> Mapping[str, TagValue]:
        return MappingProxyType(dict(value))


def basic_credentials(user: str, password: str) -> str:
    """Return the value of an HTTP Basic ``Authorization`` header."""
    token = base64.b64encode(f"{user}:{password}".encode()).decode("ascii")
    return f"Basic {token}"


def resolve_settings(
    config: ReporterConfig | Mapping[str, Any] | None = None,
    environment: Environment | None = None,
) -> Settings:
    """Validate *config* and build the ``Settings`` for it.

    Args:
        config:      Raw configuration.  A mapping is applied as overrides on
                     top of the environment; ``None`` reads the environment only.
        environment: Identity of the running service, used for environment
                     tags.  Detected from the local host when omitted.

    Raises:
        ConfigurationError: if any setting is invalid.
    """
    if config is None:
        config = load_config()
    elif not isinstance(config, ReporterConfig):
        config = load_config(**dict(config))
    if environment is None:
        environment = Environment.detect()

    precision = config.precision
    if precision not in PRECISIONS:
        raise ConfigurationError(
            f"Precision must be one of `[ns,u,µ,ms,s]`, got {precision!r}"
        )

    protocol = config.protocol.lower()
    if protocol not in PROTOCOLS:
        raise ConfigurationError(f"Protocol must be http or https, got {config.protocol!r}")

    percentiles = tuple(config.percentiles)
    if not percentiles:
        raise ConfigurationError("At least one percentile must be configured")
    for p in percentiles:
        if not 0.0 <= p <= 100.0:
            raise ConfigurationError(f"Percentile {p} is outside of [0, 100]")

    credentials = None
    if config.authentication is not None:
        credentials = basic_credentials(
            config.authentication.user, config.authentication.password
        )

    try:
        tag_filter = Filter.from_config(config.tag_filter)
    except re.error as exc:
        raise ConfigurationError(f"Invalid tag filter pattern: {exc}") from exc

    additional_tags = environment_tags(environment, config.environment_tags)
    additional_tags.update(config.additional_tags)

    url = (
        f"{protocol}://{config.hostname}:{config.port}"
        f"/write?precision={precision}&db={config.database}"
    )

    return Settings(
        url=url,
        credentials=credentials,
        percentiles=percentiles,
        tag_filter=tag_filter,
        additional_tags=additional_tags,
        precision=precision,
        post_empty_distributions=config.post_empty_distributions,
        request_timeout=config.request_timeout,
    )
