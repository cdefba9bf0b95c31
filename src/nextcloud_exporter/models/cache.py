from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from nextcloud_exporter.models.serverinfo import ServerInfoResponse
from nextcloud_exporter.models.sources import DataSource
from nextcloud_exporter.models.status import StatusResponse


class Snapshot(BaseModel):
    """One successful fetch: the decoded payload and when it was obtained.

    ``fetched_at`` is wall-clock time for display. Age and ordering use
    ``monotonic_at`` so that a stepped system clock cannot stretch or reverse
    the fetch interval.
    """

    model_config = ConfigDict(frozen=True)

    source: DataSource
    payload: StatusResponse | ServerInfoResponse
    fetched_at: datetime
    monotonic_at: float

    def age_seconds(self, now: float) -> float:
        """Seconds elapsed since the fetch, given the current monotonic reading."""
        return now - self.monotonic_at
