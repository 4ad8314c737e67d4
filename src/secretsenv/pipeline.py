"""
Secret resolution and injection pipeline.

Runs once per job step: normalize inputs, expand queries, then fetch and
inject each secret in order. A failure for one secret is logged and latched
and the remaining secrets are still processed. Finally the cleanup record
is written for the step that unsets the variables.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

import structlog

from secretsenv.builder import build_secrets_list
from secretsenv.core.errors import SecretsEnvError
from secretsenv.injector import CleanupRecord, NameTransformation, inject_secret, resolve_base_name
from secretsenv.output import write_cleanup_record
from secretsenv.references import normalize_inputs
from secretsenv.runner import EnvironmentSink
from secretsenv.store import SecretStore

logger = structlog.get_logger()

RENAME_NOTICE = (
    "Your secret names may be transformed in order to be valid environment variables. "
    "Enable debug logging in order to view the new environment names."
)


@dataclass
class RunResult:
    """Outcome of one pipeline run."""

    cleanup: CleanupRecord = field(default_factory=CleanupRecord)
    errors: list[str] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return bool(self.errors)


def _record_failure(
    result: RunResult,
    sink: EnvironmentSink,
    log: Any,
    stage: str,
    secret_id: str,
    error: SecretsEnvError,
) -> None:
    message = f"Failed to {stage} secret: '{secret_id}'. Error: {error.message}."
    log.error(f"secret_{stage}_failed", error_type=type(error).__name__, message=error.message)
    result.errors.append(message)
    sink.set_failed(message)


def run_pipeline(
    store: SecretStore,
    sink: EnvironmentSink,
    secret_id_lines: Iterable[str],
    parse_json: bool = False,
    export_to_env_file: bool = False,
    env_file_path: str | Path | None = None,
    transformation: NameTransformation = NameTransformation.UPPERCASE,
) -> RunResult:
    """
    Resolve, fetch and inject all configured secrets.

    Raises:
        ConfigurationError: malformed query or ambiguous alias (before any fetch)
        ProviderError: a query could not be run (before any fetch)
        OutputWriteError: the cleanup record could not be written
    """
    result = RunResult()

    references = normalize_inputs(secret_id_lines)

    sink.info("Building secrets list...")
    logger.info("building_secrets_list", references=len(references))
    secrets = build_secrets_list(store, references, sink)

    sink.info(RENAME_NOTICE)

    for secret in secrets:
        log = logger.bind(secret_id=secret.secret_id)
        try:
            response = store.get_secret_value(secret.secret_id)
        except SecretsEnvError as e:
            _record_failure(result, sink, log, "fetch", secret.secret_id, e)
            continue

        try:
            base_name = resolve_base_name(secret.as_reference(), response.name)
            inject_secret(
                base_name,
                response.secret_value,
                parse_json,
                sink,
                result.cleanup,
                transformation,
            )
        except SecretsEnvError as e:
            _record_failure(result, sink, log, "inject", secret.secret_id, e)
            continue

        log.debug("secret_processed")

    write_cleanup_record(sink, result.cleanup.to_json(), export_to_env_file, env_file_path)

    logger.info(
        "secrets_injected",
        variables=len(result.cleanup),
        failures=len(result.errors),
    )
    sink.info("Completed adding secrets.")
    return result


__all__ = ["RunResult", "run_pipeline"]
