"""Runtime boot helpers for the PromptVault CLI.

Updates:
  v0.1.1 - 2026-09-21 - Add httpx/httpcore logging toggle helper.
  v0.1.0 - 2026-09-07 - Extract logging configuration helpers.
"""

from __future__ import annotations

import configparser
import logging
import logging.config
from pathlib import Path

_HTTP_LOGGERS = ("httpx", "httpcore")


def setup_logging(logging_conf_path: Path | None, *, verbose: bool = False) -> None:
    """Configure logging using *logging_conf_path* when available."""
    path = logging_conf_path or Path("config/logging.conf")
    config_error: Exception | None = None
    if path.exists():
        try:
            logging.config.fileConfig(path, disable_existing_loggers=False)
            return
        except (configparser.Error, KeyError, ValueError, OSError) as exc:
            config_error = exc
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if config_error is not None:
        logging.getLogger("prompt_vault.runtime").warning(
            "Ignoring invalid logging configuration %s: %s", path, config_error
        )


def configure_http_logging(enabled: bool) -> None:
    """Enable or silence request logs emitted by httpx and httpcore."""
    for name in _HTTP_LOGGERS:
        http_logger = logging.getLogger(name)
        http_logger.propagate = True
        if enabled:
            http_logger.disabled = False
            http_logger.setLevel(logging.NOTSET)
        else:
            http_logger.setLevel(logging.WARNING)
