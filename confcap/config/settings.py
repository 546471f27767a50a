from __future__ import annotations

from pathlib import Path
from typing import Self

from dotenv import find_dotenv, load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfcapSettings(BaseSettings):
    """Runtime settings for the cache and watch loop. Env vars prefixed with CONFCAP_."""

    model_config = SettingsConfigDict(env_prefix="CONFCAP_")

    # Watch loop
    idle_sleep_s: float = Field(0.1, gt=0, le=10.0)  # no watchable directory yet
    error_backoff_s: float = Field(1.0, gt=0, le=60.0)  # after a failed watch iteration
    debounce_ms: int = Field(200, gt=0)  # events within this window form one batch
    step_ms: int = Field(50, gt=0)  # how often the blocking wait checks for stop
    rescan_ms: int = Field(1000, gt=0)  # recheck that registered directories still exist
    force_polling: bool = False  # network filesystems, containers without inotify

    # Module builder
    dump_dir: Path | None = None  # write every emitted module as <name>.class

    @model_validator(mode="after")
    def _validate(self) -> Self:
        if self.debounce_ms < self.step_ms:
            raise ValueError(
                f"debounce_ms ({self.debounce_ms}) must be >= step_ms ({self.step_ms})"
            )
        if self.rescan_ms < self.step_ms:
            raise ValueError(
                f"rescan_ms ({self.rescan_ms}) must be >= step_ms ({self.step_ms})"
            )
        if self.dump_dir is not None and self.dump_dir.exists() and not self.dump_dir.is_dir():
            raise ValueError(f"dump_dir must be a directory, got {self.dump_dir}")
        return self


def get_settings() -> ConfcapSettings:
    """Load .env (searched upward from the working directory), then validate settings.

    Variables from .env also feed "@NAME@" source locators. Raises
    ValidationError on invalid values.
    """
    load_dotenv(find_dotenv(usecwd=True))
    return ConfcapSettings()
