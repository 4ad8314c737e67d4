"""Core modules for secretsenv - centralized definitions and utilities."""

from secretsenv.core.errors import (
    ConfigurationError,
    ExitCode,
    OutputWriteError,
    ProviderError,
    SecretsEnvError,
    ValidationError,
    format_error_message,
    main_with_error_handling,
)

__all__ = [
    "ExitCode",
    "SecretsEnvError",
    "ConfigurationError",
    "ProviderError",
    "ValidationError",
    "OutputWriteError",
    "main_with_error_handling",
    "format_error_message",
]
