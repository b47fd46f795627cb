"""InfluxDB 1.x HTTP write client.

Posts line-protocol payloads to the ``/write`` endpoint via httpx.  One
request is made per reporting period; failures are logged and never retried.
"""

from __future__ import annotations

import logging

import httpx

logger = logging.getLogger(__name__)


class InfluxDBError(Exception):
    """Raised when an InfluxDB write operation fails."""


class InfluxDBClient:
    """Synchronous client for the InfluxDB line-protocol write endpoint.

    The ``Authorization`` header is attached to every request up front when
    *credentials* are given, rather than waiting for a 401 challenge.
    """

    def __init__(
        self,
        url: str,
        credentials: str | None = None,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._url = url
        headers = {"Content-Type": "text/plain; charset=utf-8"}
        if credentials:
            headers["Authorization"] = credentials
        self._client = httpx.Client(headers=headers, timeout=timeout, transport=transport)

    @property
    def url(self) -> str:
        return self._url

    def write(self, payload: str) -> bool:
        """Write a line-protocol *payload* to InfluxDB.

        Returns:
            ``True`` when InfluxDB accepted the payload, ``False`` otherwise.
            Failures are logged; no exception is raised.
        """
        try:
            self._post(payload)
        except InfluxDBError as exc:
            logger.error("%s", exc)
            return False
        except httpx.HTTPError as exc:
            logger.error("Failed to POST metrics to InfluxDB at %s: %s", self._url, exc)
            return False
        logger.debug("Successfully sent metrics to InfluxDB")
        return True

    def _post(self, payload: str) -> None:
        resp = self._client.post(self._url, content=payload.encode())
        if not resp.is_success:
            raise InfluxDBError(
                f"Metrics POST to InfluxDB failed with status code [{resp.status_code}], "
                f"response body: {resp.text}"
            )

    def close(self) -> None:
        self._client.close()
