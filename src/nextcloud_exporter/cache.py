"""In-memory snapshot cache, one slot per data source.

Slots hold immutable ``Snapshot`` references. Readers load the current
reference without locking; writers take a lock only to compare timestamps and
swap the reference, so a reader can never observe a half-written snapshot and
never waits on a fetch in progress.

Nothing here knows how snapshots are produced. Network I/O and decoding happen
in the caller before ``put`` is invoked.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from nextcloud_exporter.models.cache import Snapshot
    from nextcloud_exporter.models.sources import DataSource

log = structlog.get_logger()


class CacheStore:
    """Latest successful snapshot per data source."""

    def __init__(self) -> None:
        self._slots: dict[DataSource, Snapshot] = {}
        self._write_lock = threading.Lock()

    def get(self, source: DataSource) -> Snapshot | None:
        """Return the current snapshot for ``source``, or ``None`` if never populated."""
        return self._slots.get(source)

    def put(self, snapshot: Snapshot) -> bool:
        """Replace the slot for ``snapshot.source``.

        A snapshot older than the one already stored is discarded so that a
        slow fetch completing late cannot roll the slot back. Returns whether
        the slot was updated.
        """
        with self._write_lock:
            current = self._slots.get(snapshot.source)
            if current is not None and snapshot.monotonic_at < current.monotonic_at:
                log.debug(
                    "cache_put_discarded",
                    source=str(snapshot.source),
                    fetched_at=snapshot.fetched_at.isoformat(),
                    current_fetched_at=current.fetched_at.isoformat(),
                )
                return False
            self._slots[snapshot.source] = snapshot
            return True
