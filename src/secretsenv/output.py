"""
Persists the cleanup record for the step that later unsets the variables.
"""

from __future__ import annotations

from pathlib import Path

import structlog

from secretsenv.core.errors import OutputWriteError
from secretsenv.runner import EnvironmentSink

logger = structlog.get_logger()

# Shared with the cleanup step; do not rename.
CLEANUP_NAME = "SECRETS_LIST_CLEAN_UP"


def write_env_file(path: str | Path, cleanup_json: str) -> Path:
    """Overwrite ``path`` with a single ``SECRETS_LIST_CLEAN_UP=<json>`` line."""
    target = Path(path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(f"{CLEANUP_NAME}={cleanup_json}\n", encoding="utf-8")
    except OSError as e:
        raise OutputWriteError(
            f"Failed to write env file '{target}': {e.strerror or e}",
            details={"path": str(target)},
        ) from e

    logger.info("env_file_written", path=str(target))
    return target


def export_cleanup_variable(sink: EnvironmentSink, cleanup_json: str) -> None:
    sink.export_variable(CLEANUP_NAME, cleanup_json)
    logger.debug("cleanup_variable_exported", name=CLEANUP_NAME)


def write_cleanup_record(
    sink: EnvironmentSink,
    cleanup_json: str,
    export_to_env_file: bool,
    env_file_path: str | Path | None = None,
) -> None:
    """Write the cleanup list to a dotenv file or export it, never both."""
    if export_to_env_file:
        if not env_file_path:
            raise OutputWriteError("No env file path configured for export-to-env-file")
        write_env_file(env_file_path, cleanup_json)
    else:
        export_cleanup_variable(sink, cleanup_json)


__all__ = [
    "CLEANUP_NAME",
    "write_env_file",
    "export_cleanup_variable",
    "write_cleanup_record",
]
