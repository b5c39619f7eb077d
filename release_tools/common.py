"""
Script: release_tools/common.py
What: Shared helper functions and error types used by all `release_tools` modules.
Doing: Wraps env reads, command execution, JSON input parsing, and GitHub step output/env writes.
Why: Avoids duplicated helper code.
Goal: Keep behavior consistent across all workflow helper modules.
"""

from __future__ import annotations

import json
import os
import subprocess
from typing import Mapping, Sequence


class ReleaseToolError(RuntimeError):
    """Raised when a workflow helper script hits a known error condition."""


class ConfigError(ReleaseToolError):
    """Raised when workflow inputs are missing or malformed."""


class ArtifactNotFoundError(ReleaseToolError):
    """
    Raised when a declared artifact pattern matches no file.

    The underlying `FileNotFoundError` for the missing path is chained as
    `__cause__`.
    """


class DuplicateTagError(ReleaseToolError):
    """Raised when the release tag for this run already exists on the remote."""


class PermissionDeniedError(ReleaseToolError):
    """Raised when a user lacks the repository permission needed to run a workflow."""


TRUE_VALUES = {"true", "1", "yes"}


def require_env(name: str) -> str:
    """Return a required environment variable or raise a clear error."""
    value = os.environ.get(name)
    if value is None or value == "":
        raise ReleaseToolError(f"Missing required environment variable: {name}")
    return value


def optional_env(name: str, default: str = "") -> str:
    """Return an environment variable with a fallback default."""
    return os.environ.get(name, default)


def env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean workflow input such as `perform-release: true`."""
    value = optional_env(name).strip().lower()
    if not value:
        return default
    return value in TRUE_VALUES


def load_json_env(name: str, default: object = None) -> object:
    """
    Parse a JSON document passed through an environment variable.

    Workflows hand over package metadata and branch rules as JSON text, so a
    parse failure is reported as a config problem with the variable name.
    """
    text = optional_env(name).strip()
    if not text:
        return default
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Environment variable {name} is not valid JSON: {exc}") from exc


def run_cmd(
    args: Sequence[str],
    *,
    capture_output: bool = True,
    cwd: str | None = None,
) -> str:
    """Run a command and return stdout, raising a readable error on failure."""
    try:
        result = subprocess.run(
            list(args),
            check=True,
            text=True,
            capture_output=capture_output,
            cwd=cwd,
        )
    except subprocess.CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        stdout = (exc.stdout or "").strip()
        details = stderr or stdout or str(exc)
        raise ReleaseToolError(f"Command failed: {' '.join(args)}\n{details}") from exc

    if not capture_output:
        return ""
    return result.stdout


def _append_name_values(env_name: str, values: Mapping[str, str]) -> None:
    output_file = require_env(env_name)
    with open(output_file, "a", encoding="utf-8") as handle:
        for key, value in values.items():
            handle.write(f"{key}={value}\n")


def write_github_outputs(values: Mapping[str, str]) -> None:
    """
    Write step outputs for GitHub Actions.

    GitHub provides a file path in `GITHUB_OUTPUT`; writing `name=value` lines
    there makes that value available to later steps in the same job.
    """
    _append_name_values("GITHUB_OUTPUT", values)


def export_github_env(values: Mapping[str, str]) -> None:
    """
    Export environment variables for later steps in the same job.

    Same file format as step outputs, but GitHub reads `GITHUB_ENV` and sets
    each `name=value` line as a real environment variable.
    """
    _append_name_values("GITHUB_ENV", values)


def bool_text(value: bool) -> str:
    """Render a boolean the way workflow expressions compare it."""
    return "true" if value else "false"


def git_tag_exists_remote(tag: str, *, remote: str = "origin", cwd: str | None = None) -> bool:
    """True when `refs/tags/<tag>` is already present on the remote."""
    output = run_cmd(["git", "ls-remote", "--tags", remote, f"refs/tags/{tag}"], cwd=cwd)
    return bool(output.strip())
