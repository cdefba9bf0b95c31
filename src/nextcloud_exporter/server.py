"""HTTP surface: Prometheus scrape endpoint plus a landing page.

Every ``GET /metrics`` runs one scrape through the coordinator and renders
the resulting families in the Prometheus text exposition format.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
import uvicorn
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    ProcessCollector,
    generate_latest,
)
from starlette.applications import Starlette
from starlette.responses import HTMLResponse, PlainTextResponse, Response
from starlette.routing import Route

from nextcloud_exporter.fetcher import build_http_client
from nextcloud_exporter.metrics import ScrapeCollector, scrape_metrics
from nextcloud_exporter.state import build_state

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from starlette.requests import Request

    from nextcloud_exporter.config import Settings
    from nextcloud_exporter.state import AppState

log = structlog.get_logger()

_LANDING_PAGE = """<html>
<head><title>Nextcloud Exporter</title></head>
<body>
<h1>Nextcloud Exporter</h1>
<p><a href="/metrics">Metrics</a></p>
</body>
</html>"""


async def landing(request: Request) -> HTMLResponse:
    return HTMLResponse(_LANDING_PAGE)


async def healthz(request: Request) -> PlainTextResponse:
    return PlainTextResponse("ok")


async def metrics(request: Request) -> Response:
    state: AppState = request.app.state.exporter
    result = await state.coordinator.scrape()

    registry = CollectorRegistry(auto_describe=False)
    ProcessCollector(registry=registry)
    registry.register(ScrapeCollector(scrape_metrics(result)))
    return Response(generate_latest(registry), media_type=CONTENT_TYPE_LATEST)


def create_app(settings: Settings) -> Starlette:
    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        async with build_http_client(settings.fetch) as client:
            app.state.exporter = build_state(settings, client)
            log.info(
                "exporter_ready",
                upstream=settings.nextcloud.url,
                fetch_interval=settings.fetch.interval,
                timeout=settings.fetch.timeout,
                single_flight=settings.fetch.single_flight,
            )
            yield

    return Starlette(
        routes=[
            Route("/", landing),
            Route("/healthz", healthz),
            Route("/metrics", metrics),
        ],
        lifespan=lifespan,
    )


def serve(settings: Settings) -> None:
    log.info("exporter_starting", listen=settings.server.listen, upstream=settings.nextcloud.url)
    uvicorn.run(
        create_app(settings),
        host=settings.server.host,
        port=settings.server.port,
        log_level=settings.logging.level.lower(),
        access_log=False,
    )
