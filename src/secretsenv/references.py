"""
Parsing of user-declared secret references.

Each configuration line is either ``secret-id`` or ``ALIAS,secret-id``.
The secret id may be a plain name, a full ARN, a trailing-wildcard name
prefix (``prod/*``) or a tag query (``tag:team=payments``).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Iterable

import structlog

from secretsenv.core.errors import ConfigurationError

logger = structlog.get_logger()

SECRET_ARN_PATTERN = re.compile(
    r"^arn:aws(?:-[a-z]+)*:secretsmanager:[a-z0-9-]+:\d{12}:secret:.+$"
)
ENV_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

WILDCARD = "*"
TAG_QUERY_PREFIX = "tag:"


class QueryKind(StrEnum):
    """Kinds of store-side lookups a reference can encode."""

    PREFIX = "prefix"
    TAG = "tag"


@dataclass(frozen=True)
class SecretReference:
    """One parsed configuration line."""

    raw_id: str
    alias: str | None = None


@dataclass(frozen=True)
class SecretQuery:
    """A reference that expands to zero or more secrets in the store."""

    kind: QueryKind
    value: str
    tag_value: str | None = None

    def __str__(self) -> str:
        if self.kind == QueryKind.PREFIX:
            return f"{self.value}{WILDCARD}"
        if self.tag_value is None:
            return f"{TAG_QUERY_PREFIX}{self.value}"
        return f"{TAG_QUERY_PREFIX}{self.value}={self.tag_value}"


def parse_reference(line: str) -> SecretReference:
    """Split ``ALIAS,secret-id`` on the first comma.

    An empty alias segment (``,secret-id``) means no alias.
    """
    if "," not in line:
        return SecretReference(raw_id=line.strip())

    alias, raw_id = line.split(",", 1)
    alias = alias.strip()
    return SecretReference(raw_id=raw_id.strip(), alias=alias or None)


def normalize_inputs(lines: Iterable[str]) -> list[SecretReference]:
    """Deduplicate raw configuration lines and parse them, keeping order."""
    seen: set[str] = set()
    references: list[SecretReference] = []

    for line in lines:
        line = line.strip()
        if not line or line in seen:
            continue
        seen.add(line)

        reference = parse_reference(line)
        if not reference.raw_id:
            logger.warning("empty_secret_id_skipped", line=line)
            continue
        references.append(reference)

    return references


def is_secret_arn(secret_id: str) -> bool:
    """Whether a secret id is a full Secrets Manager ARN."""
    return bool(SECRET_ARN_PATTERN.match(secret_id))


def is_valid_env_name(name: str) -> bool:
    return bool(ENV_NAME_PATTERN.match(name))


def parse_query(raw_id: str) -> SecretQuery | None:
    """Parse a raw id that encodes a store query.

    Returns None for a direct secret name or ARN.

    Raises:
        ConfigurationError: if the query syntax is invalid
    """
    if raw_id.startswith(TAG_QUERY_PREFIX):
        expression = raw_id[len(TAG_QUERY_PREFIX) :]
        key, sep, value = expression.partition("=")
        key = key.strip()
        if not key:
            raise ConfigurationError(
                f"Invalid tag query '{raw_id}': expected 'tag:KEY' or 'tag:KEY=VALUE'"
            )
        return SecretQuery(
            kind=QueryKind.TAG,
            value=key,
            tag_value=value.strip() if sep else None,
        )

    if is_secret_arn(raw_id) or WILDCARD not in raw_id:
        return None

    prefix = raw_id[:-1]
    if not raw_id.endswith(WILDCARD) or WILDCARD in prefix:
        raise ConfigurationError(
            f"Invalid wildcard '{raw_id}': '*' is only supported at the end of a name prefix"
        )
    if not prefix:
        raise ConfigurationError(
            "Invalid wildcard '*': a non-empty name prefix is required"
        )
    return SecretQuery(kind=QueryKind.PREFIX, value=prefix)
