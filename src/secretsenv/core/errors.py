"""
Unified error handling for secretsenv runs.

This module provides the exception hierarchy, exit codes, and the
top-level boundary that turns any uncaught condition into a failed run.

Exit Codes:
- 0: Success
- 10: Configuration error (bad inputs, malformed query)
- 11: Provider error (secret store failure)
- 12: Validation error (invalid alias)
- 13: Output write error
- 127: Unknown/internal error
"""

from __future__ import annotations

import functools
from enum import IntEnum
from typing import Any, Callable, TypeVar

import structlog

from secretsenv.commands import error_command

logger = structlog.get_logger()


class ExitCode(IntEnum):
    """Standardized exit codes for CLI commands."""

    SUCCESS = 0
    CONFIG_ERROR = 10
    PROVIDER_ERROR = 11
    VALIDATION_ERROR = 12
    OUTPUT_ERROR = 13
    UNKNOWN_ERROR = 127


class SecretsEnvError(Exception):
    """Base exception for secretsenv errors with exit code support."""

    exit_code: ExitCode = ExitCode.UNKNOWN_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(SecretsEnvError):
    """Raised for invalid inputs or malformed secret queries."""

    exit_code = ExitCode.CONFIG_ERROR


class ProviderError(SecretsEnvError):
    """Raised when the secret store fails."""

    exit_code = ExitCode.PROVIDER_ERROR


class ValidationError(SecretsEnvError):
    """Raised when a user-supplied name cannot be used as declared."""

    exit_code = ExitCode.VALIDATION_ERROR


class OutputWriteError(SecretsEnvError):
    """Raised when the cleanup record cannot be persisted."""

    exit_code = ExitCode.OUTPUT_ERROR


# Type variable for decorated functions
F = TypeVar("F", bound=Callable[..., int])


def main_with_error_handling(func: F) -> F:
    """
    Decorator for CLI commands that provides the top-level error boundary.

    Logs the failure, marks the Actions job failed with the error's message
    and returns the matching exit code instead of raising.

    Exit codes:
        - SecretsEnvError subclasses: Uses the error's exit_code
        - KeyboardInterrupt: Returns 130 (standard for SIGINT)
        - Other exceptions: Returns 127 (unknown error)
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> int:
        try:
            return func(*args, **kwargs)
        except SecretsEnvError as e:
            logger.error(
                "command_error",
                error_type=type(e).__name__,
                message=e.message,
                exit_code=e.exit_code,
                **e.details,
            )
            error_command(format_error_message(e))
            return e.exit_code
        except KeyboardInterrupt:
            logger.info("command_interrupted")
            return 130  # Standard exit code for SIGINT
        except Exception as e:
            logger.error(
                "unexpected_error",
                error_type=type(e).__name__,
                message=str(e),
                exit_code=ExitCode.UNKNOWN_ERROR,
                exc_info=True,
            )
            error_command(str(e) or type(e).__name__)
            return ExitCode.UNKNOWN_ERROR

    return wrapper  # type: ignore[return-value]


def format_error_message(error: SecretsEnvError) -> str:
    """Format an error message for display to users."""
    msg = error.message
    if error.details:
        detail_str = ", ".join(f"{k}={v}" for k, v in error.details.items())
        msg = f"{msg} ({detail_str})"
    return msg
