from __future__ import annotations

from pydantic import Field

from nextcloud_exporter.models.base import Payload


class StatusResponse(Payload):
    """Body of ``GET /status.php``."""

    installed: bool = False
    maintenance: bool = False
    needs_db_upgrade: bool = Field(default=False, alias="needsDbUpgrade")
    version: str = ""
    versionstring: str = ""
    edition: str = ""
    productname: str = ""
    extended_support: bool = Field(default=False, alias="extendedSupport")
