"""Shared pytest fixtures for confcap tests.

Contracts used across test modules are declared here with "@VAR@" locators,
so each test points them at its own tmp_path through the manager's environ.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from pathlib import Path

import pytest

from confcap import ConfigManager, config_value, configurable
from confcap.config.settings import ConfcapSettings


@configurable(file_path="@CONFCAP_TEST_FLAG@")
class FlagConfig(ABC):
    @config_value(key="f", default="false")
    @abstractmethod
    def flag(self) -> bool: ...


@configurable(file_path="@CONFCAP_TEST_APP@")
class AppConfig(ABC):
    @config_value(key="app.name", default="demo")
    @abstractmethod
    def name(self) -> str: ...

    @config_value(key="app.port", default="8080")
    @abstractmethod
    def port(self) -> int: ...

    @config_value(key="app.debug", default="false")
    @abstractmethod
    def debug(self) -> bool: ...


def write_properties(path: Path, *lines: str) -> Path:
    """Overwrite path with the given key=value / comment lines."""
    path.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
    return path


@pytest.fixture
def fast_settings(tmp_path: Path) -> ConfcapSettings:
    """Short timings so watcher tests finish quickly."""
    return ConfcapSettings(
        idle_sleep_s=0.05, error_backoff_s=0.1, debounce_ms=100, step_ms=20, rescan_ms=200,
    )


@pytest.fixture
def environ(tmp_path: Path) -> dict[str, str]:
    return {
        "CONFCAP_TEST_FLAG": str(tmp_path / "flag.properties"),
        "CONFCAP_TEST_APP": str(tmp_path / "app.properties"),
    }


@pytest.fixture
def manager(fast_settings: ConfcapSettings, environ: dict[str, str]) -> Iterator[ConfigManager]:
    """A manager bound to tmp_path; shut down after the test."""
    m = ConfigManager(fast_settings, environ=environ)
    yield m
    m.shutdown()
