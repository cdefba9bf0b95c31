"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Constructor args / CLI flags
  2. Environment variables        (NEXTCLOUD_EXPORTER__FETCH__INTERVAL=30s)
  3. Legacy environment variables (NEXTCLOUD_URL, NC_TOKEN, LISTEN_ADDR,
                                   FETCH_INTERVAL, TIMEOUT)
  4. nextcloud-exporter.yaml      (searched in cwd, then the user config dir)
  5. Hardcoded defaults

``nextcloud.url`` and ``nextcloud.token`` have no default. Constructing
``Settings`` without them raises ``ValidationError``, which the entrypoint
treats as a fatal startup error.
"""

from __future__ import annotations

import math
import os
import re
from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

_CONFIG_FILENAME = "nextcloud-exporter.yaml"

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def _find_config_file() -> str | None:
    """Return the path of the first nextcloud-exporter.yaml found, or None."""
    candidates = [
        Path(_CONFIG_FILENAME),
        Path(platformdirs.user_config_dir("nextcloud-exporter")) / _CONFIG_FILENAME,
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


def parse_duration(value: Any) -> float:
    """Convert a duration to seconds.

    Accepts numbers (seconds), numeric strings, and Go-style duration strings
    such as ``"30s"``, ``"1m30s"`` or ``"500ms"``.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")
    if isinstance(value, int | float):
        return _finite(float(value), value)
    if not isinstance(value, str):
        raise ValueError(f"Invalid duration: {value!r}")

    text = value.strip()
    try:
        return _finite(float(text), value)
    except ValueError:
        pass

    pos = 0
    total = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    if pos == 0 or pos != len(text):
        raise ValueError(f"Invalid duration: {value!r}")
    return total


def _finite(seconds: float, value: Any) -> float:
    if not math.isfinite(seconds):
        raise ValueError(f"Invalid duration: {value!r}")
    return seconds


class NextcloudSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    url: str
    token: str

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("nextcloud.url must use http or https scheme")
        return v

    @field_validator("token")
    @classmethod
    def validate_token(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("nextcloud.token must not be empty")
        # Sent as an HTTP header value.
        if not all(" " <= ch <= "~" for ch in v):
            raise ValueError("nextcloud.token must contain only printable ASCII characters")
        return v


class FetchSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # Minimum seconds between upstream calls per source, whatever the scrape rate.
    interval: float = 30.0
    # Upper bound on one fetch attempt, connect through body read.
    timeout: float = 5.0
    # Join concurrent refreshes of one source onto a single in-flight fetch.
    single_flight: bool = False

    @field_validator("interval", "timeout", mode="before")
    @classmethod
    def validate_duration(cls, v: Any) -> float:
        seconds = parse_duration(v)
        if seconds <= 0:
            raise ValueError("duration must be greater than zero")
        return seconds


class ServerSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    listen: str = ":9205"

    @field_validator("listen")
    @classmethod
    def validate_listen(cls, v: str) -> str:
        host, sep, port = v.rpartition(":")
        if not sep or not port.isdigit() or not 0 < int(port) < 65536:
            raise ValueError(f"listen must be host:port, got {v!r}")
        return v

    @property
    def host(self) -> str:
        host = self.listen.rpartition(":")[0]
        return host.strip("[]") or "0.0.0.0"

    @property
    def port(self) -> int:
        return int(self.listen.rpartition(":")[2])


class LoggingSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class LegacyEnvSettingsSource(PydanticBaseSettingsSource):
    """Reads the flat variable names understood by earlier releases."""

    _MAPPING: dict[str, tuple[str, str]] = {
        "NEXTCLOUD_URL": ("nextcloud", "url"),
        "NC_TOKEN": ("nextcloud", "token"),
        "LISTEN_ADDR": ("server", "listen"),
        "FETCH_INTERVAL": ("fetch", "interval"),
        "TIMEOUT": ("fetch", "timeout"),
    }

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        # Unused: __call__ builds the nested dict directly.
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        data: dict[str, dict[str, str]] = {}
        for env_name, (section, key) in self._MAPPING.items():
            value = os.environ.get(env_name)
            if value:
                data.setdefault(section, {})[key] = value
        return data


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: NEXTCLOUD_EXPORTER__SERVER__LISTEN=:9100
        env_prefix="NEXTCLOUD_EXPORTER__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    nextcloud: NextcloudSettings
    fetch: FetchSettings = FetchSettings()
    server: ServerSettings = ServerSettings()
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Prefixed environment variables
            LegacyEnvSettingsSource(settings_cls),
            YamlConfigSettingsSource(settings_cls),  # YAML file
            # dotenv and file secrets intentionally excluded
        )
