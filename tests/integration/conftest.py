from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest
import respx
from starlette.testclient import TestClient

from nextcloud_exporter.config import Settings
from nextcloud_exporter.server import create_app
from tests.factories import (
    BASE_URL,
    SERVERINFO_URL,
    STATUS_URL,
    TOKEN,
    serverinfo_body,
    status_body,
)

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture()
def upstream() -> Iterator[respx.MockRouter]:
    """A mocked Nextcloud answering both endpoints with the sample payloads."""
    with respx.mock(assert_all_called=False) as router:
        router.get(STATUS_URL, name="status").mock(
            return_value=httpx.Response(200, json=status_body())
        )
        router.get(SERVERINFO_URL, name="info").mock(
            return_value=httpx.Response(200, json=serverinfo_body())
        )
        yield router


def make_client(**fetch: object) -> TestClient:
    settings = Settings(nextcloud={"url": BASE_URL, "token": TOKEN}, fetch=fetch)
    return TestClient(create_app(settings))


@pytest.fixture()
def client(upstream: respx.MockRouter) -> Iterator[TestClient]:
    with make_client() as test_client:
        yield test_client
