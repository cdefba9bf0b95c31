"""Upstream HTTP fetcher.

One ``fetch`` call is exactly one outbound request, never retried. Every
failure leaves this module as an ``ExporterError`` with one of the fetch
error codes; httpx exceptions never escape.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx
import structlog
from pydantic import ValidationError

from nextcloud_exporter.errors import ErrorCode, ExporterError
from nextcloud_exporter.models.serverinfo import ServerInfoResponse
from nextcloud_exporter.models.sources import DataSource
from nextcloud_exporter.models.status import StatusResponse

if TYPE_CHECKING:
    from nextcloud_exporter.config import FetchSettings, NextcloudSettings
    from nextcloud_exporter.models.base import Payload

log = structlog.get_logger()

STATUS_PATH = "/status.php"
SERVERINFO_PATH = (
    "/ocs/v2.php/apps/serverinfo/api/v1/info?format=json&skipApps=false&skipUpdate=false"
)

_USER_AGENT = "nextcloud-exporter"


@dataclass(frozen=True)
class Endpoint:
    """A data source resolved to a concrete request and response schema."""

    url: str
    headers: dict[str, str]
    model: type[Payload]


def build_endpoints(settings: NextcloudSettings) -> dict[DataSource, Endpoint]:
    return {
        DataSource.STATUS: Endpoint(
            url=settings.url + STATUS_PATH,
            headers={"Accept": "application/json"},
            model=StatusResponse,
        ),
        DataSource.INFO: Endpoint(
            url=settings.url + SERVERINFO_PATH,
            headers={"NC-Token": settings.token, "Accept": "application/json"},
            model=ServerInfoResponse,
        ),
    }


def build_http_client(settings: FetchSettings) -> httpx.AsyncClient:
    """Shared client for all upstream calls. Redirects are followed."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.timeout),
        follow_redirects=True,
        headers={"User-Agent": _USER_AGENT},
    )


class Fetcher:
    def __init__(
        self,
        client: httpx.AsyncClient,
        endpoints: dict[DataSource, Endpoint],
        timeout: float,
    ) -> None:
        self._client = client
        self._endpoints = endpoints
        self._timeout = timeout

    async def fetch(self, source: DataSource) -> Payload:
        """Fetch and decode one source.

        Raises:
            ExporterError: NETWORK_ERROR, RATE_LIMITED, UNEXPECTED_STATUS or
                DECODE_ERROR.
        """
        endpoint = self._endpoints[source]
        try:
            # httpx timeouts apply per phase; wait_for bounds the whole attempt.
            response = await asyncio.wait_for(
                self._client.get(endpoint.url, headers=endpoint.headers),
                timeout=self._timeout,
            )
        except TimeoutError as exc:
            raise ExporterError(
                ErrorCode.NETWORK_ERROR,
                f"{source} fetch exceeded {self._timeout:g}s",
                source=source,
            ) from exc
        except httpx.HTTPError as exc:
            raise ExporterError(
                ErrorCode.NETWORK_ERROR,
                f"{source} fetch failed: {type(exc).__name__}: {exc}",
                source=source,
            ) from exc

        if response.status_code == 429:
            raise ExporterError(
                ErrorCode.RATE_LIMITED,
                f"{source} fetch rate limited (429): too many requests",
                source=source,
                status_code=429,
            )
        if response.status_code != 200:
            raise ExporterError(
                ErrorCode.UNEXPECTED_STATUS,
                f"{source} fetch returned unexpected status code {response.status_code}",
                source=source,
                status_code=response.status_code,
            )

        try:
            payload = endpoint.model.model_validate_json(response.content)
        except ValidationError as exc:
            raise ExporterError(
                ErrorCode.DECODE_ERROR,
                f"{source} response did not match schema: {exc.error_count()} error(s)",
                source=source,
            ) from exc

        log.debug("fetch_complete", source=str(source), bytes=len(response.content))
        return payload
