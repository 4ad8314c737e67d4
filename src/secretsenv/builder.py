"""
Expands secret references into the concrete set of secrets to fetch.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import structlog

from secretsenv.core.errors import ConfigurationError
from secretsenv.references import SecretReference, parse_query
from secretsenv.runner import EnvironmentSink
from secretsenv.store import SecretStore

logger = structlog.get_logger()


@dataclass(frozen=True)
class ResolvedSecret:
    """A fetchable secret id plus the alias it was declared with."""

    secret_id: str
    alias: str | None = None

    def as_reference(self) -> SecretReference:
        return SecretReference(raw_id=self.secret_id, alias=self.alias)


def build_secrets_list(
    store: SecretStore,
    references: Iterable[SecretReference],
    sink: EnvironmentSink | None = None,
) -> list[ResolvedSecret]:
    """Resolve references to a de-duplicated, ordered list of secrets.

    Direct names and ARNs pass through. Wildcard and tag queries are
    expanded through the store; matches are identified by canonical name.

    Raises:
        ConfigurationError: malformed query, or an alias on a query that
            matched more than one secret
        ProviderError: the store could not be queried
    """
    resolved: dict[tuple[str | None, str], ResolvedSecret] = {}

    for reference in references:
        query = parse_query(reference.raw_id)
        if query is None:
            item = ResolvedSecret(secret_id=reference.raw_id, alias=reference.alias)
            resolved.setdefault((item.alias, item.secret_id), item)
            continue

        matches = store.list_secrets_matching(query)
        if not matches:
            logger.warning("query_no_matches", query=str(query))
            if sink is not None:
                sink.warning(f"No secrets matched '{query}'")
            continue

        if reference.alias and len(matches) > 1:
            raise ConfigurationError(
                f"A unique alias was requested for '{query}', but it matched "
                f"{len(matches)} secrets. Use a more specific filter or remove the alias.",
                details={"alias": reference.alias},
            )

        logger.info("query_expanded", query=str(query), matches=len(matches))
        for name in matches:
            item = ResolvedSecret(secret_id=name, alias=reference.alias)
            resolved.setdefault((item.alias, item.secret_id), item)

    return list(resolved.values())


__all__ = ["ResolvedSecret", "build_secrets_list"]
