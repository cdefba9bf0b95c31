"""Per-scrape refresh policy.

For each data source, every scrape decides between four outcomes:

* ``CACHED``: a snapshot younger than the fetch interval exists; no upstream call.
* ``FRESH``: the interval elapsed (or nothing is cached) and the fetch succeeded.
* ``STALE``: the fetch failed but an older snapshot exists; it is served as-is.
* ``FAILED``: the fetch failed and nothing is cached (``NO_DATA_AVAILABLE``).

The interval gate is the only rate limiting: at most one upstream call per
source per interval, however often the exporter is scraped. Ages come from the
monotonic clock, so wall-clock steps do not move the gate. Concurrent scrapes
that both see an expired slot each fetch unless ``single_flight`` is enabled,
in which case they await the same in-flight request.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING

import structlog

from nextcloud_exporter.errors import ErrorCode, ExporterError
from nextcloud_exporter.models.cache import Snapshot
from nextcloud_exporter.models.sources import ALL_SOURCES, DataSource

if TYPE_CHECKING:
    from collections.abc import Callable

    from nextcloud_exporter.cache import CacheStore
    from nextcloud_exporter.fetcher import Fetcher

log = structlog.get_logger()


def _now_utc() -> datetime:
    return datetime.now(UTC)


class RefreshState(StrEnum):
    FRESH = "fresh"
    CACHED = "cached"
    STALE = "stale"
    FAILED = "failed"


@dataclass(frozen=True)
class SourceOutcome:
    source: DataSource
    state: RefreshState
    snapshot: Snapshot | None = None
    error: ExporterError | None = None
    age_seconds: float | None = None

    @property
    def ok(self) -> bool:
        return self.state is not RefreshState.FAILED


@dataclass(frozen=True)
class ScrapeResult:
    outcomes: dict[DataSource, SourceOutcome]

    @property
    def success(self) -> bool:
        """Overall scrape health, tied to the info source alone."""
        return self.outcomes[DataSource.INFO].ok


class ScrapeCoordinator:
    def __init__(
        self,
        cache: CacheStore,
        fetcher: Fetcher,
        *,
        interval: float,
        single_flight: bool = False,
        clock: Callable[[], datetime] = _now_utc,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._cache = cache
        self._fetcher = fetcher
        self._interval = interval
        self._single_flight = single_flight
        self._clock = clock
        self._monotonic = monotonic
        self._inflight: dict[DataSource, asyncio.Task[Snapshot]] = {}

    async def refresh(self, source: DataSource) -> SourceOutcome:
        """Serve ``source`` from cache or upstream.

        Raises:
            ExporterError: NO_DATA_AVAILABLE when the fetch fails and nothing
                has ever been cached for ``source``.
        """
        cached = self._cache.get(source)
        if cached is not None:
            age = cached.age_seconds(self._monotonic())
            if age < self._interval:
                return SourceOutcome(source, RefreshState.CACHED, cached, age_seconds=age)

        try:
            snapshot = await self._fetch_snapshot(source)
        except ExporterError as exc:
            # Re-read: a concurrent scrape may have populated the slot meanwhile.
            cached = self._cache.get(source)
            if cached is None:
                log.warning(
                    "fetch_failed_no_data",
                    source=str(source),
                    error_code=str(exc.code),
                    error=exc.message,
                )
                raise ExporterError(
                    ErrorCode.NO_DATA_AVAILABLE,
                    f"no {source} data available: {exc.message}",
                    source=source,
                ) from exc

            age = cached.age_seconds(self._monotonic())
            log.warning(
                "serving_stale_snapshot",
                source=str(source),
                error_code=str(exc.code),
                error=exc.message,
                age_seconds=round(age, 3),
                **_rate_limit_hint(exc),
            )
            return SourceOutcome(source, RefreshState.STALE, cached, exc, age)

        return SourceOutcome(
            source,
            RefreshState.FRESH,
            snapshot,
            age_seconds=snapshot.age_seconds(self._monotonic()),
        )

    async def scrape(self) -> ScrapeResult:
        """Refresh every source concurrently; one source's failure never blocks another."""
        outcomes = await asyncio.gather(*(self._refresh_or_fail(s) for s in ALL_SOURCES))
        result = ScrapeResult({outcome.source: outcome for outcome in outcomes})
        log.debug(
            "scrape_complete",
            success=result.success,
            **{str(o.source): str(o.state) for o in outcomes},
        )
        return result

    async def _refresh_or_fail(self, source: DataSource) -> SourceOutcome:
        try:
            return await self.refresh(source)
        except ExporterError as exc:
            if exc.code is not ErrorCode.NO_DATA_AVAILABLE:
                raise
            return SourceOutcome(source, RefreshState.FAILED, error=exc)
        except Exception as exc:
            # Contained here so the other source still gets its outcome.
            log.exception("refresh_crashed", source=str(source))
            error = ExporterError(
                ErrorCode.INTERNAL_ERROR,
                f"{source} refresh failed: {exc!r}",
                recoverable=False,
                source=source,
            )
            return SourceOutcome(source, RefreshState.FAILED, error=error)

    async def _fetch_snapshot(self, source: DataSource) -> Snapshot:
        if not self._single_flight:
            return await self._fetch_and_store(source)

        task = self._inflight.get(source)
        if task is None:
            task = asyncio.ensure_future(self._fetch_and_store(source))
            self._inflight[source] = task
            task.add_done_callback(lambda t: self._forget_inflight(source, t))
        # Shielded so one cancelled scrape does not cancel the fetch for the others.
        return await asyncio.shield(task)

    def _forget_inflight(self, source: DataSource, task: asyncio.Task[Snapshot]) -> None:
        # Waiters that were all cancelled never read the result.
        if not task.cancelled():
            task.exception()
        if self._inflight.get(source) is task:
            del self._inflight[source]

    async def _fetch_and_store(self, source: DataSource) -> Snapshot:
        payload = await self._fetcher.fetch(source)
        snapshot = Snapshot(
            source=source,
            payload=payload,
            fetched_at=self._clock(),
            monotonic_at=self._monotonic(),
        )
        if self._cache.put(snapshot):
            log.info("snapshot_refreshed", source=str(source))
        return snapshot


def _rate_limit_hint(exc: ExporterError) -> dict[str, str]:
    if exc.code is ErrorCode.RATE_LIMITED:
        return {"hint": "upstream is rate limiting; consider a longer fetch.interval"}
    return {}
