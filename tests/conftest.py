"""Root test configuration."""

import logging

import pytest
import structlog

from secretsenv.core.errors import ProviderError
from secretsenv.references import QueryKind, SecretQuery
from secretsenv.store import SecretStore, SecretValueResponse


def pytest_configure(config):
    """Configure structlog for tests to suppress debug/info output."""
    logging.basicConfig(level=logging.WARNING, force=True)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


class RecordingSink:
    """In-memory EnvironmentSink that records every call."""

    def __init__(self):
        self.failed = False
        self.exported: list[tuple[str, str]] = []
        self.masked: list[str] = []
        self.infos: list[str] = []
        self.debugs: list[str] = []
        self.warnings: list[str] = []
        self.failures: list[str] = []

    def export_variable(self, name, value):
        self.exported.append((name, value))

    def mask(self, value):
        self.masked.append(value)

    def info(self, message):
        self.infos.append(message)

    def debug(self, message):
        self.debugs.append(message)

    def warning(self, message):
        self.warnings.append(message)

    def set_failed(self, message):
        self.failed = True
        self.failures.append(message)

    @property
    def env(self) -> dict[str, str]:
        return dict(self.exported)


class FakeStore(SecretStore):
    """Dict-backed SecretStore.

    ``secrets`` maps id -> (canonical name, value). Ids in ``failing`` raise
    ProviderError on fetch.
    """

    def __init__(self, secrets=None, failing=(), tags=None):
        self.secrets = secrets or {}
        self.failing = set(failing)
        self.tags = tags or {}
        self.fetched: list[str] = []
        self.queries: list[SecretQuery] = []

    def list_secrets_matching(self, query):
        self.queries.append(query)
        names = sorted({name for name, _ in self.secrets.values()})
        if query.kind == QueryKind.PREFIX:
            return [n for n in names if n.startswith(query.value)]
        return [
            n
            for n in names
            if query.value in self.tags.get(n, {})
            and (query.tag_value is None or self.tags[n][query.value] == query.tag_value)
        ]

    def get_secret_value(self, secret_id):
        self.fetched.append(secret_id)
        if secret_id in self.failing:
            raise ProviderError(
                "ResourceNotFoundException: Secrets Manager can't find the specified secret.",
                details={"secret_id": secret_id},
            )
        name, value = self.secrets[secret_id]
        return SecretValueResponse(name=name, secret_value=value)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def make_store():
    return FakeStore
