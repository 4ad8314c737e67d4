"""
Secret store collaborator.

The pipeline only talks to the store through ``SecretStore``; the AWS
Secrets Manager implementation wraps a lazily created boto3 client.
Transport-level retries are left to botocore.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import boto3
import structlog
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from secretsenv.core.errors import ProviderError
from secretsenv.references import QueryKind, SecretQuery

logger = structlog.get_logger()

USER_AGENT_EXTRA = "github-action"


@dataclass(frozen=True)
class SecretValueResponse:
    """A fetched secret: the store's canonical name and its raw payload."""

    name: str
    secret_value: str


def _sanitize_error(exc: Exception) -> str:
    """Describe a boto error without echoing request parameters."""
    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        code = error.get("Code", "ClientError")
        message = error.get("Message")
        return f"{code}: {message}" if message else code
    return f"{type(exc).__name__}: {exc}"


class SecretStore(ABC):
    """Base class for secret stores."""

    @abstractmethod
    def list_secrets_matching(self, query: SecretQuery) -> list[str]:
        """Return the canonical names of all secrets matching a query."""
        pass

    @abstractmethod
    def get_secret_value(self, secret_id: str) -> SecretValueResponse:
        """Fetch one secret by name or ARN."""
        pass


class AWSSecretsManagerStore(SecretStore):
    """AWS Secrets Manager store."""

    def __init__(self, region: str | None = None, client: Any = None):
        self.region = region
        self._client = client

    def _get_client(self):
        if self._client is not None:
            return self._client

        self._client = boto3.client(
            "secretsmanager",
            region_name=self.region,
            config=Config(user_agent_extra=USER_AGENT_EXTRA),
        )
        return self._client

    def _filters_for(self, query: SecretQuery) -> list[dict[str, Any]]:
        if query.kind == QueryKind.PREFIX:
            return [{"Key": "name", "Values": [query.value]}]

        filters: list[dict[str, Any]] = [{"Key": "tag-key", "Values": [query.value]}]
        if query.tag_value is not None:
            filters.append({"Key": "tag-value", "Values": [query.tag_value]})
        return filters

    def _matches(self, query: SecretQuery, entry: dict[str, Any]) -> bool:
        # Server-side filters are fuzzy (name matches any word, tag filters
        # are independent), so confirm each hit.
        if query.kind == QueryKind.PREFIX:
            return entry.get("Name", "").startswith(query.value)

        for tag in entry.get("Tags", []):
            if tag.get("Key") != query.value:
                continue
            if query.tag_value is None or tag.get("Value") == query.tag_value:
                return True
        return False

    def list_secrets_matching(self, query: SecretQuery) -> list[str]:
        try:
            client = self._get_client()
            paginator = client.get_paginator("list_secrets")
            names = []
            for page in paginator.paginate(Filters=self._filters_for(query)):
                for entry in page.get("SecretList", []):
                    if self._matches(query, entry):
                        names.append(entry["Name"])
        except (BotoCoreError, ClientError) as e:
            raise ProviderError(
                f"Failed to list secrets matching '{query}': {_sanitize_error(e)}",
                details={"query": str(query)},
            ) from e

        logger.debug("listed_secrets", query=str(query), matches=len(names))
        return names

    def get_secret_value(self, secret_id: str) -> SecretValueResponse:
        try:
            response = self._get_client().get_secret_value(SecretId=secret_id)
        except (BotoCoreError, ClientError) as e:
            raise ProviderError(_sanitize_error(e), details={"secret_id": secret_id}) from e

        name = response.get("Name") or secret_id
        if response.get("SecretString") is not None:
            return SecretValueResponse(name=name, secret_value=response["SecretString"])

        binary = response.get("SecretBinary")
        if binary is not None:
            try:
                return SecretValueResponse(name=name, secret_value=bytes(binary).decode("utf-8"))
            except UnicodeDecodeError as e:
                raise ProviderError(
                    "Binary secret value is not valid UTF-8", details={"secret_id": secret_id}
                ) from e

        raise ProviderError("Invalid secret value", details={"secret_id": secret_id})


__all__ = [
    "SecretStore",
    "SecretValueResponse",
    "AWSSecretsManagerStore",
]
