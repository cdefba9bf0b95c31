from __future__ import annotations

import os

import pytest

from nextcloud_exporter.config import Settings
from tests.factories import BASE_URL, TOKEN, FakeClock

# Environment variables any of the config sources would pick up.
_CONFIG_ENV_VARS = ("NEXTCLOUD_URL", "NC_TOKEN", "LISTEN_ADDR", "FETCH_INTERVAL", "TIMEOUT")


@pytest.fixture(autouse=True)
def _isolate_config_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the host environment out of Settings construction."""
    for name in list(os.environ):
        if name.startswith("NEXTCLOUD_EXPORTER__") or name in _CONFIG_ENV_VARS:
            monkeypatch.delenv(name)


@pytest.fixture()
def settings() -> Settings:
    return Settings(nextcloud={"url": BASE_URL, "token": TOKEN})


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()
