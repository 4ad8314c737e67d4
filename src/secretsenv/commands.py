"""
GitHub Actions workflow commands.

https://docs.github.com/actions/using-workflows/workflow-commands-for-github-actions
"""

from __future__ import annotations

import sys


def _escape_data(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def issue_command(command: str, message: str = "") -> None:
    """Write a workflow command to stdout."""
    sys.stdout.write(f"::{command}::{_escape_data(message)}\n")
    sys.stdout.flush()


def error_command(message: str) -> None:
    issue_command("error", message)


__all__ = ["issue_command", "error_command"]
