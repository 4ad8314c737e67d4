"""
Host-runner collaborator for GitHub Actions.

Everything that touches the job environment goes through an
``EnvironmentSink``: exporting variables, masking values, surfacing
log lines in the job UI and latching failure.
"""

from __future__ import annotations

import os
import sys
import uuid
from pathlib import Path
from typing import Protocol

import structlog

from secretsenv.commands import error_command, issue_command
from secretsenv.core.errors import OutputWriteError, ValidationError

logger = structlog.get_logger()


class EnvironmentSink(Protocol):
    """Where injected variables, masks and job status go."""

    failed: bool

    def export_variable(self, name: str, value: str) -> None: ...

    def mask(self, value: str) -> None: ...

    def info(self, message: str) -> None: ...

    def debug(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def set_failed(self, message: str) -> None: ...


class GitHubActionsRunner:
    """GitHub Actions implementation of ``EnvironmentSink``.

    Variables are set in ``os.environ`` for this process and appended to the
    ``GITHUB_ENV`` file so later steps see them. Without ``GITHUB_ENV``
    (local runs) only the current process environment is updated.
    """

    def __init__(self, env_file: str | Path | None = None):
        self.env_file = Path(env_file) if env_file else None
        self.failed = False

    def export_variable(self, name: str, value: str) -> None:
        """Set ``name`` for this process and for later steps.

        Raises:
            ValidationError: the name or value cannot be carried by the environment
            OutputWriteError: the ``GITHUB_ENV`` file could not be appended
        """
        if "\0" in name or "\0" in value:
            raise ValidationError(
                f"Value for '{name}' contains a null byte", details={"variable": name}
            )
        delimiter = f"ghadelimiter_{uuid.uuid4()}"
        if delimiter in name or delimiter in value:
            raise ValidationError(
                f"Value for '{name}' contains the delimiter", details={"variable": name}
            )

        try:
            os.environ[name] = value
        except ValueError as e:
            raise ValidationError(
                f"Cannot set '{name}' in the environment: {e}", details={"variable": name}
            ) from e
        if self.env_file is None:
            return

        try:
            with open(self.env_file, "a", encoding="utf-8") as handle:
                handle.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")
        except OSError as e:
            raise OutputWriteError(
                f"Failed to append to GITHUB_ENV '{self.env_file}': {e.strerror or e}",
                details={"variable": name},
            ) from e

    def mask(self, value: str) -> None:
        if not value:
            return
        issue_command("add-mask", value)
        # The runner matches masks line by line.
        if "\n" in value:
            for line in value.splitlines():
                if line.strip():
                    issue_command("add-mask", line)

    def info(self, message: str) -> None:
        sys.stdout.write(f"{message}\n")
        sys.stdout.flush()

    def debug(self, message: str) -> None:
        issue_command("debug", message)

    def warning(self, message: str) -> None:
        issue_command("warning", message)

    def set_failed(self, message: str) -> None:
        """Mark the job failed without unwinding the current control flow."""
        self.failed = True
        error_command(message)
        logger.debug("run_marked_failed")


__all__ = [
    "EnvironmentSink",
    "GitHubActionsRunner",
]
