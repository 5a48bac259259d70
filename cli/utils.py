"""Shared CLI utility functions for PromptVault commands.

Updates:
  v0.1.1 - 2026-09-21 - Add byte size and timestamp formatting for cache summaries.
  v0.1.0 - 2026-09-07 - Extract stdout logging, masking, and path helpers.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

from models.prompt_model import ZERO_TIMESTAMP

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from datetime import datetime
    from logging import Logger
else:  # pragma: no cover - runtime placeholders for type-only imports
    Logger = Any


def print_and_log(logger: Logger, level: int, message: str) -> None:
    """Log *message* at *level* and mirror it to stdout."""
    logger.log(level, message)
    print(message)


def mask_secret(value: str | None) -> str:
    """Return an obfuscated representation of secret configuration values."""
    if not value:
        return "not set"
    secret = value.strip()
    if len(secret) <= 6:
        return "set (****)"
    prefix = secret[:4]
    suffix = secret[-4:]
    return f"set ({prefix}...{suffix})"


def describe_path(path_value: object, *, expect_directory: bool) -> str:
    """Return a human-friendly description of *path_value* suitability."""
    try:
        path = Path(path_value) if path_value is not None else None
    except TypeError:
        path = None
    if path is None:
        return "not set"

    resolved = path.expanduser()
    if resolved.exists():
        if expect_directory and not resolved.is_dir():
            return f"{resolved} (exists but is not a directory)"
        if not expect_directory and resolved.is_dir():
            return f"{resolved} (exists but is a directory)"
        return f"{resolved} (exists)"
    return f"{resolved} (missing, created on first use)"


def format_bytes(size: int) -> str:
    """Return *size* in the largest binary unit that keeps it above one."""
    value = float(size)
    for unit in ("B", "KiB", "MiB"):
        if value < 1024:
            return f"{int(value)} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GiB"


def format_when(value: datetime) -> str:
    """Return a compact UTC timestamp, or ``never`` for the zero timestamp."""
    if value == ZERO_TIMESTAMP:
        return "never"
    return value.strftime("%Y-%m-%d %H:%M:%S %Z").strip()
