"""Error taxonomy for the exporter.

Every failure raised inside the package is an ``ExporterError`` carrying an
``ErrorCode``. Fetch-level codes are absorbed by the scrape coordinator when a
cached snapshot exists. At the scrape boundary a source is reported as failed
with ``NO_DATA_AVAILABLE``, or ``INTERNAL_ERROR`` when its refresh crashed.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from nextcloud_exporter.models.sources import DataSource


class ErrorCode(StrEnum):
    # Fetcher
    NETWORK_ERROR = "NETWORK_ERROR"
    RATE_LIMITED = "RATE_LIMITED"
    UNEXPECTED_STATUS = "UNEXPECTED_STATUS"
    DECODE_ERROR = "DECODE_ERROR"

    # Coordinator
    NO_DATA_AVAILABLE = "NO_DATA_AVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # Startup
    CONFIG_INVALID = "CONFIG_INVALID"


FETCH_ERROR_CODES = frozenset(
    {
        ErrorCode.NETWORK_ERROR,
        ErrorCode.RATE_LIMITED,
        ErrorCode.UNEXPECTED_STATUS,
        ErrorCode.DECODE_ERROR,
    }
)


class ExporterError(Exception):
    """Classified failure with a stable machine-readable code."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        *,
        recoverable: bool = True,
        source: DataSource | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.recoverable = recoverable
        self.source = source
        self.status_code = status_code

    @property
    def is_fetch_error(self) -> bool:
        return self.code in FETCH_ERROR_CODES

    def __repr__(self) -> str:
        return f"ExporterError(code={self.code!s}, message={self.message!r})"
