from __future__ import annotations

from nextcloud_exporter.models.cache import Snapshot
from nextcloud_exporter.models.serverinfo import (
    ActiveUsersData,
    NextcloudData,
    ServerData,
    ServerInfoResponse,
)
from nextcloud_exporter.models.sources import ALL_SOURCES, DataSource
from nextcloud_exporter.models.status import StatusResponse

__all__ = [
    # sources
    "DataSource",
    "ALL_SOURCES",
    # payloads
    "StatusResponse",
    "ServerInfoResponse",
    "NextcloudData",
    "ServerData",
    "ActiveUsersData",
    # cache
    "Snapshot",
]
