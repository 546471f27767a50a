"""Configuration source access: locator indirection and .properties file loading."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

import structlog
from jproperties import Properties, PropertyError

from confcap.constants import INDIRECTION_MARKER

logger = structlog.get_logger()


def is_indirect(locator: str) -> bool:
    """True for "@NAME@" locators that name an environment variable."""
    return (
        len(locator) > 2
        and locator.startswith(INDIRECTION_MARKER)
        and locator.endswith(INDIRECTION_MARKER)
    )


def resolve_locator(locator: str, environ: Mapping[str, str] | None = None) -> Path | None:
    """Turn a source locator into an absolute path.

    Returns None for the empty locator and for an indirection whose variable
    is undefined; the caller then builds from defaults only.
    """
    if not locator:
        return None
    if is_indirect(locator):
        variable = locator[1:-1]
        env = os.environ if environ is None else environ
        target = env.get(variable)
        if not target:
            logger.warning("source_locator_unresolved", locator=locator, variable=variable)
            return None
        locator = target
    return Path(locator).expanduser().absolute()


def load_source(path: Path) -> dict[str, str]:
    """Read a Java-style .properties file into a flat mapping.

    Follows java.util.Properties: "=", ":" or whitespace separate key and
    value, comments ("#" or "!") only start at the beginning of a line, values
    are kept verbatim after the separator, and backslash escapes and line
    continuations apply. A key with no value maps to the empty string.

    Missing, unreadable or malformed files yield an empty mapping so the
    contract builds from its defaults.
    """
    if not path.is_file():
        logger.warning("source_file_missing", path=str(path))
        return {}
    properties = Properties()
    try:
        with path.open("rb") as stream:
            properties.load(stream, encoding="utf-8")
    except (OSError, UnicodeDecodeError, PropertyError) as exc:
        logger.error("source_file_unreadable", path=str(path), error=str(exc))
        return {}
    return {key: entry.data for key, entry in properties.items()}
