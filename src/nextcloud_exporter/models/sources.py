from __future__ import annotations

from enum import StrEnum


class DataSource(StrEnum):
    """Logical upstream endpoints, fetched and cached independently."""

    STATUS = "status"  # /status.php, unauthenticated
    INFO = "info"  # serverinfo OCS API, NC-Token


# Order in which sources are refreshed and emitted on every scrape.
ALL_SOURCES: tuple[DataSource, ...] = (DataSource.STATUS, DataSource.INFO)
