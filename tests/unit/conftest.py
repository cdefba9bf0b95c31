"""Unit-specific fixtures (no network, no event-loop-spanning state)."""

from __future__ import annotations

import pytest

from nextcloud_exporter.cache import CacheStore
from nextcloud_exporter.coordinator import ScrapeCoordinator
from tests.factories import FakeClock, FakeFetcher

INTERVAL = 30.0


@pytest.fixture()
def cache() -> CacheStore:
    return CacheStore()


@pytest.fixture()
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture()
def coordinator(cache: CacheStore, fetcher: FakeFetcher, clock: FakeClock) -> ScrapeCoordinator:
    return ScrapeCoordinator(
        cache,
        fetcher,  # type: ignore[arg-type]
        interval=INTERVAL,
        clock=clock,
        monotonic=clock.monotonic,
    )
