"""Unit tests for configuration loading and validation."""

from __future__ import annotations

from typing import TYPE_CHECKING

import platformdirs
import pytest
from pydantic import ValidationError

from nextcloud_exporter.config import (
    FetchSettings,
    NextcloudSettings,
    ServerSettings,
    Settings,
    _find_config_file,
    parse_duration,
)
from tests.factories import BASE_URL, TOKEN

if TYPE_CHECKING:
    from pathlib import Path

REQUIRED = {"nextcloud": {"url": BASE_URL, "token": TOKEN}}


class TestDefaults:
    def test_defaults(self, settings: Settings) -> None:
        assert settings.fetch.interval == 30.0
        assert settings.fetch.timeout == 5.0
        assert settings.fetch.single_flight is False
        assert settings.server.listen == ":9205"
        assert settings.logging.level == "INFO"
        assert settings.logging.format == "json"

    def test_listen_host_and_port(self) -> None:
        assert ServerSettings().host == "0.0.0.0"
        assert ServerSettings().port == 9205
        custom = ServerSettings(listen="127.0.0.1:9100")
        assert custom.host == "127.0.0.1"
        assert custom.port == 9100
        assert ServerSettings(listen="[::1]:9100").host == "::1"


class TestRequired:
    def test_missing_everything_raises(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            Settings()  # type: ignore[call-arg]
        assert exc_info.value.errors()[0]["loc"] == ("nextcloud",)

    def test_missing_token_raises(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            Settings(nextcloud={"url": BASE_URL})  # type: ignore[arg-type]
        assert exc_info.value.errors()[0]["loc"] == ("nextcloud", "token")

    def test_empty_token_rejected(self) -> None:
        with pytest.raises(ValidationError):
            NextcloudSettings(url=BASE_URL, token="   ")

    @pytest.mark.parametrize("token", ["tökén", "abc\ndef", "abc\x00", "tab\tbed"])
    def test_token_must_be_header_safe(self, token: str) -> None:
        with pytest.raises(ValidationError, match="printable ASCII"):
            NextcloudSettings(url=BASE_URL, token=token)

    def test_token_with_inner_space_accepted(self) -> None:
        assert NextcloudSettings(url=BASE_URL, token="abc def").token == "abc def"

    def test_url_scheme_required(self) -> None:
        with pytest.raises(ValidationError):
            NextcloudSettings(url="cloud.example.com", token=TOKEN)

    def test_url_trailing_slash_stripped(self) -> None:
        assert NextcloudSettings(url=BASE_URL + "/", token=TOKEN).url == BASE_URL


class TestDurations:
    @pytest.mark.parametrize(
        ("raw", "seconds"),
        [
            (30, 30.0),
            (2.5, 2.5),
            ("45", 45.0),
            ("30s", 30.0),
            ("1m", 60.0),
            ("1m30s", 90.0),
            ("500ms", 0.5),
            ("1h", 3600.0),
        ],
    )
    def test_parse(self, raw: object, seconds: float) -> None:
        assert parse_duration(raw) == seconds

    @pytest.mark.parametrize(
        "raw",
        [
            "",
            "soon",
            "10x",
            "s30",
            "1m 30s",
            True,
            None,
            "nan",
            "inf",
            "-inf",
            float("nan"),
            float("inf"),
        ],
    )
    def test_invalid(self, raw: object) -> None:
        with pytest.raises(ValueError):
            parse_duration(raw)

    def test_fetch_settings_accepts_strings(self) -> None:
        fetch = FetchSettings(interval="2m", timeout="750ms")  # type: ignore[arg-type]
        assert fetch.interval == 120.0
        assert fetch.timeout == 0.75

    @pytest.mark.parametrize("raw", [0, "0s", -5])
    def test_non_positive_rejected(self, raw: object) -> None:
        with pytest.raises(ValidationError):
            FetchSettings(interval=raw)  # type: ignore[arg-type]

    @pytest.mark.parametrize("raw", ["nan", "inf", "Infinity"])
    def test_non_finite_rejected(self, raw: str) -> None:
        with pytest.raises(ValidationError):
            FetchSettings(interval=raw, timeout=raw)  # type: ignore[arg-type]


class TestSources:
    def test_prefixed_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("NEXTCLOUD_EXPORTER__NEXTCLOUD__URL", BASE_URL)
        monkeypatch.setenv("NEXTCLOUD_EXPORTER__NEXTCLOUD__TOKEN", TOKEN)
        monkeypatch.setenv("NEXTCLOUD_EXPORTER__FETCH__INTERVAL", "1m")
        monkeypatch.setenv("NEXTCLOUD_EXPORTER__FETCH__SINGLE_FLIGHT", "true")

        settings = Settings()  # type: ignore[call-arg]

        assert settings.nextcloud.url == BASE_URL
        assert settings.fetch.interval == 60.0
        assert settings.fetch.single_flight is True

    def test_legacy_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("NEXTCLOUD_URL", BASE_URL)
        monkeypatch.setenv("NC_TOKEN", TOKEN)
        monkeypatch.setenv("LISTEN_ADDR", ":9100")
        monkeypatch.setenv("FETCH_INTERVAL", "15")
        monkeypatch.setenv("TIMEOUT", "2s")

        settings = Settings()  # type: ignore[call-arg]

        assert settings.nextcloud.token == TOKEN
        assert settings.server.port == 9100
        assert settings.fetch.interval == 15.0
        assert settings.fetch.timeout == 2.0

    def test_prefixed_env_beats_legacy(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("NEXTCLOUD_URL", "https://legacy.example.com")
        monkeypatch.setenv("NC_TOKEN", TOKEN)
        monkeypatch.setenv("NEXTCLOUD_EXPORTER__NEXTCLOUD__URL", BASE_URL)

        settings = Settings()  # type: ignore[call-arg]

        assert settings.nextcloud.url == BASE_URL
        assert settings.nextcloud.token == TOKEN

    def test_init_beats_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("NEXTCLOUD_EXPORTER__FETCH__INTERVAL", "1m")
        settings = Settings(**REQUIRED, fetch={"interval": 5})  # type: ignore[arg-type]
        assert settings.fetch.interval == 5.0

    def test_yaml_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config = tmp_path / "nextcloud-exporter.yaml"
        config.write_text(
            f"nextcloud:\n  url: {BASE_URL}\n  token: {TOKEN}\nfetch:\n  interval: 45s\n",
            encoding="utf-8",
        )
        monkeypatch.setitem(Settings.model_config, "yaml_file", str(config))

        settings = Settings()  # type: ignore[call-arg]

        assert settings.nextcloud.url == BASE_URL
        assert settings.fetch.interval == 45.0

    def test_config_file_search_prefers_cwd(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(platformdirs, "user_config_dir", lambda *_: str(tmp_path / "cfg"))
        assert _find_config_file() is None

        (tmp_path / "nextcloud-exporter.yaml").write_text("{}", encoding="utf-8")
        assert _find_config_file() == "nextcloud-exporter.yaml"


class TestValidation:
    def test_unknown_nested_field_raises(self) -> None:
        with pytest.raises(ValidationError):
            FetchSettings(intervall=10)  # type: ignore[call-arg]

    def test_unknown_top_level_field_raises(self) -> None:
        with pytest.raises(ValidationError):
            Settings(**REQUIRED, completely_unknown_field="oops")  # type: ignore[arg-type]

    @pytest.mark.parametrize("listen", ["9205", "host:", "host:http", ":70000"])
    def test_bad_listen_rejected(self, listen: str) -> None:
        with pytest.raises(ValidationError):
            ServerSettings(listen=listen)

    def test_bad_log_level_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(**REQUIRED, logging={"level": "TRACE"})  # type: ignore[arg-type]
