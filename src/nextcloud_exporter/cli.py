"""Command-line entrypoint.

Flags override every other configuration source. Invalid or missing settings
stop the process before the listener starts.
"""

from __future__ import annotations

from typing import Any

import click
from pydantic import ValidationError

from nextcloud_exporter.config import Settings
from nextcloud_exporter.errors import ErrorCode, ExporterError
from nextcloud_exporter.logs import configure_logging
from nextcloud_exporter.server import serve

# Where each required setting can be supplied, for startup error messages.
_REQUIRED_HINTS = {
    "nextcloud": (
        "Set via --url and --token flags or NEXTCLOUD_URL and NC_TOKEN environment variables"
    ),
    "nextcloud.url": "Set via --url flag or NEXTCLOUD_URL environment variable",
    "nextcloud.token": "Set via --token flag or NC_TOKEN environment variable",
}


def _overrides(**flags: Any) -> dict[str, dict[str, Any]]:
    """Map CLI flag values onto the nested Settings structure, skipping unset flags."""
    layout = {
        "url": ("nextcloud", "url"),
        "token": ("nextcloud", "token"),
        "listen": ("server", "listen"),
        "fetch_interval": ("fetch", "interval"),
        "timeout": ("fetch", "timeout"),
        "single_flight": ("fetch", "single_flight"),
        "log_level": ("logging", "level"),
        "log_format": ("logging", "format"),
    }
    overrides: dict[str, dict[str, Any]] = {}
    for flag, value in flags.items():
        if value is None:
            continue
        section, key = layout[flag]
        overrides.setdefault(section, {})[key] = value
    return overrides


def format_config_error(exc: ValidationError) -> str:
    lines = ["invalid configuration:"]
    for error in exc.errors():
        loc = ".".join(str(part) for part in error["loc"])
        line = f"  {loc}: {error['msg']}"
        if error["type"] == "missing" and loc in _REQUIRED_HINTS:
            line += f" ({_REQUIRED_HINTS[loc]})"
        lines.append(line)
    return "\n".join(lines)


def load_settings(**flags: Any) -> Settings:
    try:
        return Settings(**_overrides(**flags))
    except ValidationError as exc:
        raise ExporterError(
            ErrorCode.CONFIG_INVALID, format_config_error(exc), recoverable=False
        ) from exc


@click.command("nextcloud-exporter", context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--url", help="Nextcloud base URL (e.g. https://cloud.example.com).")
@click.option("--token", help="NC-Token for the serverinfo API.")
@click.option("--listen", help="Address to listen on (default :9205).")
@click.option(
    "--fetch-interval",
    help="Minimum interval between upstream fetches, e.g. 30s or 1m (default 30s).",
)
@click.option("--timeout", help="Upper bound on one upstream fetch, e.g. 5s (default 5s).")
@click.option(
    "--single-flight/--no-single-flight",
    default=None,
    help="Share one in-flight fetch between concurrent scrapes.",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    callback=lambda ctx, param, value: value.upper() if value else None,
)
@click.option("--log-format", type=click.Choice(["json", "text"]))
def main(**flags: Any) -> None:
    """Expose Nextcloud serverinfo as Prometheus metrics."""
    try:
        settings = load_settings(**flags)
    except ExporterError as exc:
        raise click.ClickException(exc.message) from exc
    configure_logging(settings.logging)
    serve(settings)
