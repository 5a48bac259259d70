"""CLI command handlers for PromptVault.

Handlers return process exit codes: ``0`` on success (including an empty
collection), ``4`` when storage failed, and ``5`` for invalid input.

Updates:
  v0.2.0 - 2026-10-02 - Add sync and cache-info commands.
  v0.1.1 - 2026-09-21 - Report both causes when remote and cache reads fail.
  v0.1.0 - 2026-09-07 - Initial list/search/show/delete/exports handlers.
"""

from __future__ import annotations

import argparse
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from config import VaultSettings
from core.exceptions import (
    CacheFallbackError,
    EmptyCollectionError,
    NoIndexError,
    PromptVaultError,
)
from core.store import CachedStore, LocalCacheStore
from core.store.base import extract_gist_id

from .settings_summary import print_settings_summary
from .utils import format_bytes, format_when, print_and_log

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from models.prompt_model import IndexedPrompt, Prompt

CommandHandler = Callable[
    [CachedStore | None, VaultSettings, argparse.Namespace, logging.Logger],
    int,
]

EXIT_STORAGE_FAILURE = 4
EXIT_INVALID_INPUT = 5


@dataclass(frozen=True)
class CommandSpec:
    """Metadata for dispatching CLI command handlers."""

    handler: CommandHandler
    requires_store: bool = True


def _require_store(store: CachedStore | None) -> CachedStore:
    if store is None:
        raise ValueError("Prompt store is required for this command.")
    return store


def _run_guarded(logger: logging.Logger, action: Callable[[], int]) -> int:
    """Run *action*, translating storage failures into exit codes."""
    try:
        return action()
    except (NoIndexError, EmptyCollectionError) as exc:
        print_and_log(logger, logging.INFO, str(exc))
        return 0
    except CacheFallbackError as exc:
        print_and_log(logger, logging.ERROR, "GitHub is unavailable and no cached copy exists.")
        print_and_log(logger, logging.ERROR, f"  Remote error: {exc.remote_error}")
        print_and_log(logger, logging.ERROR, f"  Cache error: {exc.cache_error}")
        return EXIT_STORAGE_FAILURE
    except PromptVaultError as exc:
        print_and_log(logger, logging.ERROR, f"Operation failed: {exc}")
        return EXIT_STORAGE_FAILURE
    except ValueError as exc:
        print_and_log(logger, logging.ERROR, str(exc))
        return EXIT_INVALID_INPUT


def _print_prompts(prompts: list[Prompt]) -> None:
    for prompt in prompts:
        author = prompt.author or "-"
        print(f"{prompt.name}  (by {author})  {prompt.id}  {prompt.gist_url}")


def _print_entries(entries: list[IndexedPrompt]) -> None:
    for entry in entries:
        gist_id = extract_gist_id(entry.gist_url) or "-"
        print(f"{entry.name or entry.file_path}  {gist_id}  {entry.gist_url}")


def run_list(
    store: CachedStore | None,
    settings: VaultSettings,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    del settings, args
    active = _require_store(store)

    def _list() -> int:
        prompts = active.list()
        _print_prompts(prompts)
        logger.debug("Listed prompts", extra={"count": len(prompts)})
        return 0

    return _run_guarded(logger, _list)


def run_search(
    store: CachedStore | None,
    settings: VaultSettings,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    del settings
    active = _require_store(store)
    keyword = str(getattr(args, "keyword", "") or "")
    if not keyword.strip():
        print_and_log(logger, logging.ERROR, "Search keyword must be provided.")
        return EXIT_INVALID_INPUT

    def _search() -> int:
        matches = active.get(keyword)
        if not matches:
            print_and_log(logger, logging.INFO, f"No prompts match {keyword!r}.")
            return 0
        _print_prompts(matches)
        return 0

    return _run_guarded(logger, _search)


def run_show(
    store: CachedStore | None,
    settings: VaultSettings,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    del settings
    active = _require_store(store)
    prompt_id = str(getattr(args, "prompt_id", "") or "").strip()
    if not prompt_id:
        print_and_log(logger, logging.ERROR, "Prompt id must be provided.")
        return EXIT_INVALID_INPUT

    def _show() -> int:
        print(active.get_content(prompt_id), end="")
        return 0

    return _run_guarded(logger, _show)


def run_delete(
    store: CachedStore | None,
    settings: VaultSettings,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    del settings
    active = _require_store(store)
    keyword = str(getattr(args, "keyword", "") or "")

    def _delete() -> int:
        removed = active.delete(keyword)
        if not removed:
            print_and_log(logger, logging.INFO, f"No prompts matched {keyword!r}; nothing deleted.")
            return 0
        for entry in removed:
            print_and_log(
                logger,
                logging.INFO,
                f"Deleted {entry.name or entry.file_path} ({entry.gist_url})",
            )
        return 0

    return _run_guarded(logger, _delete)


def run_exports(
    store: CachedStore | None,
    settings: VaultSettings,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    del settings, args
    active = _require_store(store)

    def _exports() -> int:
        exports = active.get_exports()
        if not exports:
            print_and_log(logger, logging.INFO, "No exported prompts recorded.")
            return 0
        _print_entries(exports)
        return 0

    return _run_guarded(logger, _exports)


def run_sync(
    store: CachedStore | None,
    settings: VaultSettings,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    del settings, args
    active = _require_store(store)

    def _sync() -> int:
        active.sync_raw_index()
        info = active.cache_info()
        print_and_log(
            logger,
            logging.INFO,
            f"Cache synchronised: {info.total_prompts} prompt(s) in {active.cache.cache_dir}",
        )
        return 0

    return _run_guarded(logger, _sync)


def run_cache_info(
    store: CachedStore | None,
    settings: VaultSettings,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    del args, logger
    cache = store.cache if store is not None else LocalCacheStore(settings.cache_dir)
    info = cache.get_cache_info()
    print(
        "\n".join(
            [
                f"Cache directory: {cache.cache_dir}",
                f"Prompts: {info.total_prompts}",
                f"Size: {format_bytes(info.cache_size)}",
                f"Last updated: {format_when(info.last_updated)}",
            ]
        )
    )
    return 0


def run_print_settings(
    store: CachedStore | None,
    settings: VaultSettings,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    del store, args, logger
    print_settings_summary(settings)
    return 0


COMMAND_SPECS: dict[str | None, CommandSpec] = {
    None: CommandSpec(run_list),
    "list": CommandSpec(run_list),
    "search": CommandSpec(run_search),
    "show": CommandSpec(run_show),
    "delete": CommandSpec(run_delete),
    "exports": CommandSpec(run_exports),
    "sync": CommandSpec(run_sync),
    "cache-info": CommandSpec(run_cache_info, requires_store=False),
    "print-settings": CommandSpec(run_print_settings, requires_store=False),
}


__all__ = ["COMMAND_SPECS", "EXIT_INVALID_INPUT", "EXIT_STORAGE_FAILURE", "CommandSpec"]
