"""noxfile.py - Nox sessions for PromptVault.

Updates:
  v0.2.0 - 2026-10-02 - Share pytest arguments between sessions; add an offline smoke run.
  v0.1.1 - 2026-09-21 - Collect tests from the tests directory only.
  v0.1.0 - 2026-09-07 - Ruff/Pyright/Pytest quality gate sessions in `.venv`.

Install the project with `pip install -e .[dev]` inside `.venv` before running
these sessions. Every session reuses the tools installed there instead of
building its own virtual environment:

- lint: ruff lint and format checks
- format: apply ruff formatting and safe fixes
- typecheck: pyright in strict mode
- test: pytest with coverage for the storage engine and CLI
- smoke: `pv cache-info` against a throwaway cache directory
- all: the default sessions in sequence
"""

from __future__ import annotations

import sys
import tempfile
from pathlib import Path

import nox

nox.options.sessions = ["lint", "typecheck", "test"]

CODE_LOCATIONS: tuple[str, ...] = (
    "main.py",
    "cli",
    "config",
    "core",
    "models",
    "scripts",
    "tests",
)
PYTEST_ARGS: tuple[str, ...] = (
    "-n",
    "auto",
    "--cov=core",
    "--cov=cli",
    "--cov=models",
    "--cov-report=term-missing",
    "--cov-fail-under=80",
    "tests",
)


def _tool(session: nox.Session, command: str) -> str:
    """Return *command* from `.venv`, stopping the session when it is absent."""
    bin_dir = Path(".venv") / ("Scripts" if sys.platform == "win32" else "bin")
    suffix = ".exe" if sys.platform == "win32" else ""
    candidate = bin_dir / f"{command}{suffix}"
    if not candidate.exists():
        session.error(
            f"{candidate} not found; run `python -m venv .venv` and "
            "`pip install -e .[dev]` first."
        )
    return str(candidate)


@nox.session(venv_backend="none")
def lint(session: nox.Session) -> None:
    """Check lint rules and formatting without modifying files."""
    ruff = _tool(session, "ruff")
    session.run(ruff, "check", *CODE_LOCATIONS, external=True)
    session.run(ruff, "format", "--check", *CODE_LOCATIONS, external=True)


@nox.session(venv_backend="none")
def format(session: nox.Session) -> None:
    """Apply safe ruff fixes and formatting."""
    ruff = _tool(session, "ruff")
    session.run(ruff, "check", "--fix", *CODE_LOCATIONS, external=True)
    session.run(ruff, "format", *CODE_LOCATIONS, external=True)


@nox.session(venv_backend="none")
def typecheck(session: nox.Session) -> None:
    """Run pyright using the configuration in pyproject.toml."""
    session.run(_tool(session, "pyright"), external=True)


@nox.session(venv_backend="none")
def test(session: nox.Session) -> None:
    """Run the test suite; extra positional arguments are passed to pytest."""
    session.run(_tool(session, "pytest"), *PYTEST_ARGS, *session.posargs, external=True)


@nox.session(venv_backend="none")
def smoke(session: nox.Session) -> None:
    """Exercise the installed `pv` script without network access or a token."""
    pv = _tool(session, "pv")
    with tempfile.TemporaryDirectory(prefix="pv-smoke-") as cache_dir:
        env = {"PROMPTVAULT_CACHE_DIR": cache_dir, "GITHUB_TOKEN": "", "GH_TOKEN": ""}
        session.run(pv, "cache-info", env=env, external=True)
        session.run(pv, "--print-settings", env=env, external=True)


@nox.session(name="all", venv_backend="none")
def all_checks(session: nox.Session) -> None:
    """Run the default quality gate sessions in sequence."""
    lint(session)
    typecheck(session)
    test(session)
