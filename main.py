"""Application entry point for PromptVault.

Updates:
  v0.2.0 - 2026-10-02 - Run cache-only commands without a GitHub token.
  v0.1.1 - 2026-09-21 - Apply HTTP logging toggle from settings.
  v0.1.0 - 2026-09-07 - Wire settings, logging, and the tiered prompt store into the CLI.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cli.commands import COMMAND_SPECS
from cli.parser import parse_args
from cli.runtime import configure_http_logging, setup_logging
from cli.settings_summary import print_settings_summary
from config import SettingsError, load_settings
from core.exceptions import AuthError
from core.factory import build_gist_client, build_prompt_store

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from collections.abc import Sequence

EXIT_SETTINGS_FAILURE = 2
EXIT_INIT_FAILURE = 3


def main(argv: Sequence[str] | None = None) -> int:
    """Entrypoint that wires settings, stores, and CLI commands."""
    args = parse_args(argv)
    setup_logging(args.logging_config, verbose=args.verbose)

    logger = logging.getLogger("prompt_vault.main")
    try:
        settings = load_settings()
    except SettingsError as exc:
        logger.error("Failed to load settings: %s", exc)
        return EXIT_SETTINGS_FAILURE

    configure_http_logging(settings.http_logging_enabled)
    if args.print_settings:
        print_settings_summary(settings)
        return 0

    command = getattr(args, "command", None)
    spec = COMMAND_SPECS[command]
    if not spec.requires_store:
        return spec.handler(None, settings, args, logger)

    try:
        client = build_gist_client(settings)
    except AuthError as exc:
        logger.error("Failed to initialise GitHub client: %s", exc)
        return EXIT_INIT_FAILURE

    with client:
        store = build_prompt_store(
            settings,
            client=client,
            force_remote=True if args.force_remote else None,
        )
        return spec.handler(store, settings, args, logger)


if __name__ == "__main__":
    raise SystemExit(main())
