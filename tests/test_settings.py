"""Tests for ConfcapSettings defaults, env loading and validation."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from confcap.config.settings import ConfcapSettings, get_settings


class TestConfcapSettings:
    def test_defaults(self) -> None:
        s = ConfcapSettings()
        assert s.idle_sleep_s == 0.1
        assert s.error_backoff_s == 1.0
        assert s.debounce_ms == 200
        assert s.step_ms == 50
        assert s.rescan_ms == 1000
        assert s.force_polling is False
        assert s.dump_dir is None

    def test_env_prefix(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("CONFCAP_DEBOUNCE_MS", "500")
        monkeypatch.setenv("CONFCAP_FORCE_POLLING", "true")
        monkeypatch.setenv("CONFCAP_DUMP_DIR", str(tmp_path))
        s = get_settings()
        assert s.debounce_ms == 500
        assert s.force_polling is True
        assert s.dump_dir == tmp_path

    def test_non_positive_idle_sleep_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ConfcapSettings(idle_sleep_s=0)

    def test_debounce_shorter_than_step_rejected(self) -> None:
        with pytest.raises(ValidationError, match="debounce_ms"):
            ConfcapSettings(debounce_ms=10, step_ms=50)

    def test_dump_dir_must_be_directory(self, tmp_path: Path) -> None:
        file_path = tmp_path / "file"
        file_path.write_text("x")
        with pytest.raises(ValidationError, match="dump_dir must be a directory"):
            ConfcapSettings(dump_dir=file_path)

    def test_rescan_shorter_than_step_rejected(self) -> None:
        with pytest.raises(ValidationError, match="rescan_ms"):
            ConfcapSettings(rescan_ms=10, step_ms=50)

    def test_get_settings_reads_dotenv_from_working_directory(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        # setenv + delenv registers a teardown that removes what load_dotenv adds
        monkeypatch.setenv("CONFCAP_RESCAN_MS", "0")
        monkeypatch.delenv("CONFCAP_RESCAN_MS")
        (tmp_path / ".env").write_text("CONFCAP_RESCAN_MS=750\n", encoding="utf-8")
        monkeypatch.chdir(tmp_path)

        assert get_settings().rescan_ms == 750
