"""
Turns fetched secrets into environment variables.

Names are derived from the alias, the canonical name (for ARN references)
or the raw id, in that order, and sanitized into valid variable names.
With JSON parsing enabled, object payloads expand into one variable per
top-level key.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Iterator

import structlog

from secretsenv.core.errors import ValidationError
from secretsenv.references import SecretReference, is_secret_arn, is_valid_env_name
from secretsenv.runner import EnvironmentSink

logger = structlog.get_logger()

INVALID_ENV_CHARS = re.compile(r"[^A-Za-z0-9_]")
JSON_KEY_SEPARATOR = "_"


class NameTransformation(StrEnum):
    """Case applied to generated variable names."""

    UPPERCASE = "uppercase"
    LOWERCASE = "lowercase"
    NONE = "none"


@dataclass(frozen=True)
class InjectedVariable:
    env_name: str
    value: str


class CleanupRecord:
    """Ordered, duplicate-free list of injected variable names."""

    def __init__(self) -> None:
        self._names: list[str] = []

    def append(self, name: str) -> None:
        if name not in self._names:
            self._names.append(name)

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def to_list(self) -> list[str]:
        return list(self._names)

    def to_json(self) -> str:
        return json.dumps(self._names)


def transform_to_env_name(
    name: str, transformation: NameTransformation = NameTransformation.UPPERCASE
) -> str:
    """Map any string to a valid environment variable name.

    Invalid characters become underscores and a leading digit gets an
    underscore prefix. Never fails; the empty string maps to ``_``.
    """
    env_name = INVALID_ENV_CHARS.sub("_", name)

    if transformation == NameTransformation.UPPERCASE:
        env_name = env_name.upper()
    elif transformation == NameTransformation.LOWERCASE:
        env_name = env_name.lower()

    if not env_name or env_name[0].isdigit():
        env_name = f"_{env_name}"
    return env_name


def resolve_base_name(reference: SecretReference, canonical_name: str) -> str:
    """Pick the alias, else the canonical name for ARNs, else the raw id."""
    if reference.alias:
        if not is_valid_env_name(reference.alias):
            raise ValidationError(
                f"Alias '{reference.alias}' is not a valid environment variable name",
                details={"secret_id": reference.raw_id},
            )
        return reference.alias
    if is_secret_arn(reference.raw_id):
        return canonical_name
    return reference.raw_id


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def _parse_json_object(secret_value: str) -> dict[str, Any] | None:
    """Return the payload as a dict if it is a JSON object, else None."""
    try:
        parsed = json.loads(secret_value)
    except ValueError:
        return None
    if isinstance(parsed, dict):
        return parsed
    return None


def expand_secret_value(
    base_name: str,
    secret_value: str,
    parse_json: bool,
    transformation: NameTransformation = NameTransformation.UPPERCASE,
) -> list[InjectedVariable]:
    """Compute the variables for one secret without side effects."""
    payload = _parse_json_object(secret_value) if parse_json else None

    if payload is None:
        return [InjectedVariable(transform_to_env_name(base_name, transformation), secret_value)]

    return [
        InjectedVariable(
            transform_to_env_name(f"{base_name}{JSON_KEY_SEPARATOR}{key}", transformation),
            _stringify(value),
        )
        for key, value in payload.items()
    ]


def inject_secret(
    base_name: str,
    secret_value: str,
    parse_json: bool,
    sink: EnvironmentSink,
    cleanup: CleanupRecord,
    transformation: NameTransformation = NameTransformation.UPPERCASE,
) -> list[InjectedVariable]:
    """Export a secret's variables through the sink and record them for cleanup.

    A later secret that maps to an existing name overwrites it.
    """
    variables = expand_secret_value(base_name, secret_value, parse_json, transformation)

    for variable in variables:
        sink.mask(variable.value)
        sink.export_variable(variable.env_name, variable.value)
        cleanup.append(variable.env_name)
        sink.debug(f"Injected secret: {variable.env_name}")
        logger.debug("secret_injected", env_name=variable.env_name)

    return variables


__all__ = [
    "NameTransformation",
    "InjectedVariable",
    "CleanupRecord",
    "transform_to_env_name",
    "resolve_base_name",
    "expand_secret_value",
    "inject_secret",
]
