"""Schema of the serverinfo OCS API response.

Only the fields the exporter turns into metrics are modelled; everything else
in the envelope is ignored.
"""

from __future__ import annotations

from pydantic import Field

from nextcloud_exporter.models.base import Payload


class OcsMeta(Payload):
    status: str = ""
    statuscode: int = 0
    message: str = ""


# ---------------------------------------------------------------------------
# ocs.data.nextcloud
# ---------------------------------------------------------------------------


class AppsData(Payload):
    num_installed: int = 0
    num_updates_available: int = 0


class UpdateData(Payload):
    available: bool = False
    available_version: str = ""


class SystemData(Payload):
    version: str = ""
    freespace: int = 0
    cpuload: tuple[float, ...] = ()
    cpunum: int = 0
    mem_total: int = 0  # KiB
    mem_free: int = 0  # KiB
    swap_total: int = 0  # KiB
    swap_free: int = 0  # KiB
    apps: AppsData = AppsData()
    update: UpdateData = UpdateData()


class StorageData(Payload):
    num_users: int = 0
    num_files: int = 0
    num_storages: int = 0
    num_storages_local: int = 0
    num_storages_home: int = 0
    num_storages_other: int = 0


class SharesData(Payload):
    num_shares: int = 0
    num_shares_user: int = 0
    num_shares_groups: int = 0
    num_shares_link: int = 0
    num_shares_mail: int = 0
    num_shares_room: int = 0
    num_shares_link_no_password: int = 0
    num_fed_shares_sent: int = 0
    num_fed_shares_received: int = 0


class NextcloudData(Payload):
    system: SystemData = SystemData()
    storage: StorageData = StorageData()
    shares: SharesData = SharesData()


# ---------------------------------------------------------------------------
# ocs.data.server
# ---------------------------------------------------------------------------


class OpcacheMemoryUsage(Payload):
    used_memory: int = 0
    free_memory: int = 0
    wasted_memory: int = 0


class OpcacheStatistics(Payload):
    hits: int = 0
    misses: int = 0
    opcache_hit_rate: float = 0.0


class OpcacheData(Payload):
    opcache_enabled: bool = False
    memory_usage: OpcacheMemoryUsage = OpcacheMemoryUsage()
    opcache_statistics: OpcacheStatistics = OpcacheStatistics()


class PhpData(Payload):
    version: str = ""
    memory_limit: int = 0
    max_execution_time: int = 0
    upload_max_filesize: int = 0
    opcache: OpcacheData = OpcacheData()


class DatabaseData(Payload):
    type: str = ""
    version: str = ""
    size: int | str = ""  # reported as a string by most backends


class ServerData(Payload):
    webserver: str = ""
    php: PhpData = PhpData()
    database: DatabaseData = DatabaseData()


# ---------------------------------------------------------------------------
# ocs.data.activeUsers
# ---------------------------------------------------------------------------


class ActiveUsersData(Payload):
    last5minutes: int = 0
    last1hour: int = 0
    last24hours: int = 0
    last7days: int = 0
    last1month: int = 0
    last3months: int = 0
    last6months: int = 0
    lastyear: int = 0


# ---------------------------------------------------------------------------
# Envelope
# ---------------------------------------------------------------------------


class OcsData(Payload):
    nextcloud: NextcloudData = NextcloudData()
    server: ServerData = ServerData()
    active_users: ActiveUsersData = Field(default=ActiveUsersData(), alias="activeUsers")


class Ocs(Payload):
    meta: OcsMeta = OcsMeta()
    data: OcsData = OcsData()


class ServerInfoResponse(Payload):
    """Body of ``GET /ocs/v2.php/apps/serverinfo/api/v1/info?format=json``."""

    ocs: Ocs = Ocs()
