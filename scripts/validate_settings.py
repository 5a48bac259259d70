"""Utility script to load and print PromptVault settings for diagnostics.

Updates:
  v0.2.0 - 2026-10-02 - Optionally verify the GitHub token and its gist scope.
  v0.1.0 - 2026-09-21 - Add validation helper for environment/config debugging.
"""

from __future__ import annotations

import argparse
import traceback

from cli.utils import describe_path, mask_secret
from config.settings import SettingsError, load_settings
from core.exceptions import RemoteStoreError
from core.factory import build_gist_client


def main(argv: list[str] | None = None) -> int:
    """Load settings and report validation outcomes."""
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0] if __doc__ else None)
    parser.add_argument(
        "--check-token",
        action="store_true",
        help="Call GET /user to confirm the token is valid and carries the gist scope.",
    )
    args = parser.parse_args(argv)

    try:
        settings = load_settings()
    except SettingsError:
        traceback.print_exc()
        return 2
    print("Settings loaded successfully.")
    print(f"cache_dir={describe_path(settings.cache_dir, expect_directory=True)}")
    print(f"github_api_url={settings.github_api_url}")
    print(f"github_token={mask_secret(settings.github_token)}")
    print(f"max_retries={settings.max_retries}")

    if not args.check_token:
        return 0
    try:
        with build_gist_client(settings) as client:
            login = client.verify_credentials()
    except RemoteStoreError as exc:
        print(f"Token check failed: {exc}")
        return 3
    print(f"Token accepted for GitHub user {login or '<unknown>'}.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
