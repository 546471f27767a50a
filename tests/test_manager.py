"""Tests for ConfigManager lifecycle and the process-default surface."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from conftest import AppConfig, FlagConfig, write_properties
from structlog.testing import capture_logs

import confcap
from confcap import ConfigManager
from confcap.config.settings import ConfcapSettings
from confcap.infra.errors import DeclarationError, ManagerClosedError


class TestConfigManager:
    def test_flag_scenario_with_explicit_reload(
        self, manager: ConfigManager, tmp_path: Path
    ) -> None:
        path = write_properties(tmp_path / "flag.properties", "f=true")
        old = manager.get(FlagConfig)
        assert old.flag() is True

        write_properties(path, "f=false")
        assert manager.reload_all() == 1

        new = manager.get(FlagConfig)
        assert new.flag() is False
        assert new is not old

    def test_missing_source_uses_defaults_with_warning(self, manager: ConfigManager) -> None:
        with capture_logs() as logs:
            config = manager.get(AppConfig)
        assert (config.name(), config.port(), config.debug()) == ("demo", 8080, False)
        warnings = [entry for entry in logs if entry["log_level"] == "warning"]
        assert [entry["event"] for entry in warnings] == ["source_file_missing"]

    def test_registers_source_and_starts_watcher(
        self, manager: ConfigManager, tmp_path: Path
    ) -> None:
        manager.get(AppConfig)
        assert manager.registry.matches(tmp_path / "app.properties")
        assert manager.watcher.running

    def test_invalidate_and_entry(self, manager: ConfigManager) -> None:
        first = manager.get(AppConfig)
        entry = manager.entry(AppConfig)
        assert entry is not None and entry.instance is first and entry.watchable
        assert manager.invalidate(AppConfig)
        assert manager.get(AppConfig) is not first
        assert manager.cached_types() == [AppConfig]

    def test_rejects_non_class(self, manager: ConfigManager) -> None:
        with pytest.raises(DeclarationError):
            manager.get(["not", "a", "class"])  # type: ignore[arg-type]

    def test_shutdown_is_idempotent_and_final(
        self, fast_settings: ConfcapSettings, environ: dict[str, str]
    ) -> None:
        manager = ConfigManager(fast_settings, environ=environ)
        manager.get(AppConfig)
        manager.shutdown()
        manager.shutdown()

        assert manager.closed
        assert manager.cached_types() == []
        assert manager.registry.is_empty()
        assert not manager.watcher.running
        with pytest.raises(ManagerClosedError):
            manager.get(AppConfig)

    def test_context_manager(self, fast_settings: ConfcapSettings, environ: dict[str, str]) -> None:
        with ConfigManager(fast_settings, environ=environ) as manager:
            manager.get(FlagConfig)
        assert manager.closed


@pytest.fixture
def default_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    monkeypatch.setenv("CONFCAP_TEST_FLAG", str(tmp_path / "flag.properties"))
    monkeypatch.setenv("CONFCAP_IDLE_SLEEP_S", "0.05")
    confcap.shutdown()
    yield tmp_path
    confcap.shutdown()


class TestDefaultManager:
    def test_module_level_get_uses_one_manager(self, default_env: Path) -> None:
        write_properties(default_env / "flag.properties", "f=true")
        first = confcap.get(FlagConfig)
        assert first.flag() is True
        assert confcap.get(FlagConfig) is first
        assert confcap.default_manager().settings.idle_sleep_s == 0.05

    def test_shutdown_then_get_starts_fresh(self, default_env: Path) -> None:
        manager = confcap.default_manager()
        first = confcap.get(FlagConfig)
        confcap.shutdown()
        confcap.shutdown()

        assert manager.closed
        assert confcap.default_manager() is not manager
        assert confcap.get(FlagConfig) is not first
