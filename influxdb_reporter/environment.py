"""Tags describing the process that is reporting metrics."""

from __future__ import annotations

import socket
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from influxdb_reporter.models import TagValue

if TYPE_CHECKING:
    from influxdb_reporter.config import EnvironmentTagsConfig


class Environment(BaseModel):
    """Identity of the running service, as known to the metrics host."""

    model_config = ConfigDict(frozen=True)

    service: str = "influxdb-reporter"
    host: str = "localhost"
    instance: str = "influxdb-reporter@localhost"
    tags: dict[str, TagValue] = Field(default_factory=dict)

    @classmethod
    def detect(cls, service: str = "influxdb-reporter", **tags: TagValue) -> Environment:
        host = socket.gethostname()
        return cls(service=service, host=host, instance=f"{service}@{host}", tags=tags)


def environment_tags(
    environment: Environment, config: EnvironmentTagsConfig
) -> dict[str, TagValue]:
    """Select the environment tags enabled by *config*.

    ``service``, ``host`` and ``instance`` come first, then the environment's
    own tags; keys listed in ``config.exclude`` are dropped at the end.
    """
    tags: dict[str, TagValue] = {}
    if config.include_service:
        tags["service"] = environment.service
    if config.include_host:
        tags["host"] = environment.host
    if config.include_instance:
        tags["instance"] = environment.instance
    tags.update(environment.tags)

    for key in config.exclude:
        tags.pop(key, None)
    return tags
