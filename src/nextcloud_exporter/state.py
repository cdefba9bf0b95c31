from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from nextcloud_exporter.cache import CacheStore
from nextcloud_exporter.coordinator import ScrapeCoordinator
from nextcloud_exporter.fetcher import Fetcher, build_endpoints

if TYPE_CHECKING:
    import httpx

    from nextcloud_exporter.config import Settings


@dataclass
class AppState:
    """Everything one running exporter owns, wired once at startup."""

    settings: Settings
    http_client: httpx.AsyncClient
    cache: CacheStore
    fetcher: Fetcher
    coordinator: ScrapeCoordinator


def build_state(settings: Settings, http_client: httpx.AsyncClient) -> AppState:
    cache = CacheStore()
    fetcher = Fetcher(
        http_client,
        build_endpoints(settings.nextcloud),
        timeout=settings.fetch.timeout,
    )
    coordinator = ScrapeCoordinator(
        cache,
        fetcher,
        interval=settings.fetch.interval,
        single_flight=settings.fetch.single_flight,
    )
    return AppState(
        settings=settings,
        http_client=http_client,
        cache=cache,
        fetcher=fetcher,
        coordinator=coordinator,
    )
