"""Translation of cached payloads into Prometheus metric families.

Pure functions: each call builds new families from one payload and keeps no
state between scrapes.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from prometheus_client.core import GaugeMetricFamily, Metric

from nextcloud_exporter.coordinator import RefreshState
from nextcloud_exporter.models.serverinfo import ServerInfoResponse
from nextcloud_exporter.models.status import StatusResponse

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from nextcloud_exporter.coordinator import ScrapeResult

_KIB = 1024

_INTEGER = re.compile(r"[+-]?[0-9]+")

_CPU_LOAD_INTERVALS = ("1m", "5m", "15m")


def _flag(value: bool) -> float:
    return 1.0 if value else 0.0


def _gauge(name: str, documentation: str, value: float) -> GaugeMetricFamily:
    return GaugeMetricFamily(name, documentation, value=value)


# ---------------------------------------------------------------------------
# status.php
# ---------------------------------------------------------------------------


def status_metrics(status: StatusResponse) -> list[Metric]:
    info = GaugeMetricFamily(
        "nextcloud_status_info",
        "Nextcloud status information",
        labels=["version", "versionstring", "productname", "edition"],
    )
    info.add_metric([status.version, status.versionstring, status.productname, status.edition], 1)
    return [
        info,
        _gauge(
            "nextcloud_status_installed",
            "Nextcloud installation status (1 = installed, 0 = not installed)",
            _flag(status.installed),
        ),
        _gauge(
            "nextcloud_status_maintenance",
            "Nextcloud maintenance mode (1 = enabled, 0 = disabled)",
            _flag(status.maintenance),
        ),
        _gauge(
            "nextcloud_status_needs_db_upgrade",
            "Nextcloud needs database upgrade (1 = yes, 0 = no)",
            _flag(status.needs_db_upgrade),
        ),
        _gauge(
            "nextcloud_status_extended_support",
            "Nextcloud extended support status (1 = enabled, 0 = disabled)",
            _flag(status.extended_support),
        ),
    ]


# ---------------------------------------------------------------------------
# serverinfo
# ---------------------------------------------------------------------------


def serverinfo_metrics(info: ServerInfoResponse) -> list[Metric]:
    data = info.ocs.data
    system = data.nextcloud.system
    storage = data.nextcloud.storage
    shares = data.nextcloud.shares
    php = data.server.php
    users = data.active_users

    families: list[Metric] = []

    system_info = GaugeMetricFamily(
        "nextcloud_system_info", "Nextcloud system information", labels=["version"]
    )
    system_info.add_metric([system.version], 1)
    families.append(system_info)
    families.append(
        _gauge("nextcloud_system_freespace_bytes", "Free disk space in bytes", system.freespace)
    )

    if len(system.cpuload) >= 3:
        cpu_load = GaugeMetricFamily(
            "nextcloud_system_cpuload", "CPU load average", labels=["interval"]
        )
        for interval, value in zip(_CPU_LOAD_INTERVALS, system.cpuload, strict=False):
            cpu_load.add_metric([interval], value)
        families.append(cpu_load)

    # Memory and swap are reported in KiB
    families += [
        _gauge("nextcloud_system_cpu_count", "Number of CPUs", system.cpunum),
        _gauge(
            "nextcloud_system_mem_total_bytes", "Total memory in bytes", system.mem_total * _KIB
        ),
        _gauge("nextcloud_system_mem_free_bytes", "Free memory in bytes", system.mem_free * _KIB),
        _gauge(
            "nextcloud_system_swap_total_bytes", "Total swap in bytes", system.swap_total * _KIB
        ),
        _gauge("nextcloud_system_swap_free_bytes", "Free swap in bytes", system.swap_free * _KIB),
        _gauge(
            "nextcloud_apps_installed_total", "Number of installed apps", system.apps.num_installed
        ),
        _gauge(
            "nextcloud_apps_updates_available_total",
            "Number of app updates available",
            system.apps.num_updates_available,
        ),
    ]

    update = GaugeMetricFamily(
        "nextcloud_update_available",
        "Nextcloud update available (1 = yes, 0 = no)",
        labels=["available_version"],
    )
    update.add_metric([system.update.available_version], _flag(system.update.available))
    families.append(update)

    families += [
        _gauge("nextcloud_users_total", "Total number of users", storage.num_users),
        _gauge("nextcloud_files_total", "Total number of files", storage.num_files),
        _gauge("nextcloud_storages_total", "Total number of storages", storage.num_storages),
        _gauge(
            "nextcloud_storages_local_total",
            "Number of local storages",
            storage.num_storages_local,
        ),
        _gauge(
            "nextcloud_storages_home_total", "Number of home storages", storage.num_storages_home
        ),
        _gauge(
            "nextcloud_storages_other_total",
            "Number of other storages",
            storage.num_storages_other,
        ),
    ]

    families += [
        _gauge("nextcloud_shares_total", "Total number of shares", shares.num_shares),
        _gauge("nextcloud_shares_user_total", "Number of user shares", shares.num_shares_user),
        _gauge(
            "nextcloud_shares_groups_total", "Number of group shares", shares.num_shares_groups
        ),
        _gauge("nextcloud_shares_link_total", "Number of link shares", shares.num_shares_link),
        _gauge("nextcloud_shares_mail_total", "Number of mail shares", shares.num_shares_mail),
        _gauge("nextcloud_shares_room_total", "Number of room shares", shares.num_shares_room),
        _gauge(
            "nextcloud_shares_link_no_password_total",
            "Number of link shares without password",
            shares.num_shares_link_no_password,
        ),
        _gauge(
            "nextcloud_shares_federated_sent_total",
            "Number of federated shares sent",
            shares.num_fed_shares_sent,
        ),
        _gauge(
            "nextcloud_shares_federated_received_total",
            "Number of federated shares received",
            shares.num_fed_shares_received,
        ),
    ]

    families += [
        _gauge("nextcloud_php_memory_limit_bytes", "PHP memory limit in bytes", php.memory_limit),
        _gauge(
            "nextcloud_php_upload_max_filesize_bytes",
            "PHP upload max filesize in bytes",
            php.upload_max_filesize,
        ),
        _gauge(
            "nextcloud_php_opcache_memory_used_bytes",
            "PHP OPcache used memory in bytes",
            php.opcache.memory_usage.used_memory,
        ),
        _gauge(
            "nextcloud_php_opcache_memory_free_bytes",
            "PHP OPcache free memory in bytes",
            php.opcache.memory_usage.free_memory,
        ),
        _gauge(
            "nextcloud_php_opcache_hit_rate",
            "PHP OPcache hit rate percentage",
            php.opcache.opcache_statistics.opcache_hit_rate,
        ),
    ]

    db_size = _parse_int(data.server.database.size)
    if db_size is not None:
        families.append(
            _gauge("nextcloud_database_size_bytes", "Database size in bytes", db_size)
        )

    active = GaugeMetricFamily(
        "nextcloud_active_users", "Number of active users", labels=["period"]
    )
    for period, value in (
        ("5min", users.last5minutes),
        ("1hour", users.last1hour),
        ("24hours", users.last24hours),
        ("7days", users.last7days),
        ("1month", users.last1month),
        ("3months", users.last3months),
        ("6months", users.last6months),
        ("1year", users.lastyear),
    ):
        active.add_metric([period], value)
    families.append(active)

    return families


def _parse_int(value: int | str) -> int | None:
    if isinstance(value, int):
        return value
    # Digits only: no whitespace, underscores or decimal point.
    if _INTEGER.fullmatch(value) is None:
        return None
    return int(value)


# ---------------------------------------------------------------------------
# Scrape
# ---------------------------------------------------------------------------


def scrape_metrics(result: ScrapeResult) -> list[Metric]:
    """All families for one scrape: payload metrics, health, and cache state."""
    families: list[Metric] = []

    for outcome in result.outcomes.values():
        if outcome.snapshot is None:
            continue
        payload = outcome.snapshot.payload
        if isinstance(payload, StatusResponse):
            families += status_metrics(payload)
        elif isinstance(payload, ServerInfoResponse):
            families += serverinfo_metrics(payload)

    families.append(
        _gauge(
            "nextcloud_scrape_success",
            "Whether the scrape was successful (1 = success, 0 = failure)",
            _flag(result.success),
        )
    )

    up = GaugeMetricFamily(
        "nextcloud_exporter_source_up",
        "Whether data is available for the source (1 = fresh, cached or stale, 0 = none)",
        labels=["source"],
    )
    stale = GaugeMetricFamily(
        "nextcloud_exporter_source_stale",
        "Whether the source is served from a stale snapshot after a failed fetch",
        labels=["source"],
    )
    age = GaugeMetricFamily(
        "nextcloud_exporter_snapshot_age_seconds",
        "Seconds since the served snapshot was fetched from upstream",
        labels=["source"],
    )
    for source, outcome in result.outcomes.items():
        up.add_metric([str(source)], _flag(outcome.ok))
        stale.add_metric([str(source)], _flag(outcome.state is RefreshState.STALE))
        if outcome.age_seconds is not None:
            age.add_metric([str(source)], outcome.age_seconds)
    families += [up, stale, age]

    return families


class ScrapeCollector:
    """Adapts one scrape's families to the ``collect()`` protocol of prometheus_client."""

    def __init__(self, families: Iterable[Metric]) -> None:
        self._families = list(families)

    def collect(self) -> Iterator[Metric]:
        yield from self._families

