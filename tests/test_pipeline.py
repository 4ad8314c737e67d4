"""Tests for pipeline.py.

End-to-end tests of the resolution and injection pipeline against an
in-memory store and sink.
"""

import json
import os
from unittest.mock import patch

import pytest

from secretsenv.core.errors import ConfigurationError, OutputWriteError, ProviderError
from secretsenv.injector import NameTransformation
from secretsenv.output import CLEANUP_NAME
from secretsenv.pipeline import RunResult, run_pipeline
from secretsenv.runner import GitHubActionsRunner

ARN = "arn:aws:secretsmanager:us-east-1:123456789012:secret:bar-baz-AbCdEf"
MY_SECRET_ARN = "arn:aws:secretsmanager:us-east-1:123456789012:secret:my/secret-XyZ123"


@pytest.fixture
def store(make_store):
    return make_store(
        secrets={
            "first": ("first", "1"),
            "second": ("second", "2"),
            "third": ("third", "3"),
            "db": ("db", '{"user":"a","pass":"b"}'),
            ARN: ("bar-baz", "arn-value"),
            MY_SECRET_ARN: ("my/secret", "mine"),
            "prod/a": ("prod/a", "pa"),
            "prod/b": ("prod/b", "pb"),
        }
    )


def _cleanup(sink):
    return json.loads(sink.env[CLEANUP_NAME])


class TestRunPipeline:
    """Tests for run_pipeline."""

    def test_injects_and_exports_cleanup(self, store, sink):
        result = run_pipeline(store, sink, ["first", "second"])

        assert result.failed is False
        assert sink.env["FIRST"] == "1"
        assert sink.env["SECOND"] == "2"
        assert _cleanup(sink) == ["FIRST", "SECOND"]
        assert sink.infos[-1] == "Completed adding secrets."

    def test_alias_precedence_over_arn_name(self, store, sink):
        run_pipeline(store, sink, [f"FOO,{ARN}"])
        assert sink.env["FOO"] == "arn-value"
        assert "BAR_BAZ" not in sink.env

    def test_arn_falls_back_to_canonical_name(self, store, sink):
        run_pipeline(store, sink, [MY_SECRET_ARN])
        assert sink.env["MY_SECRET"] == "mine"

    def test_json_expansion(self, store, sink):
        run_pipeline(store, sink, ["DB,db"], parse_json=True)

        assert sink.env["DB_USER"] == "a"
        assert sink.env["DB_PASS"] == "b"
        assert "DB" not in sink.env
        assert _cleanup(sink) == ["DB_USER", "DB_PASS"]

    def test_json_disabled_keeps_raw(self, store, sink):
        run_pipeline(store, sink, ["db"])
        assert sink.env["DB"] == '{"user":"a","pass":"b"}'

    def test_partial_failure_isolated(self, make_store, sink):
        store = make_store(
            secrets={"first": ("first", "1"), "third": ("third", "3")},
            failing={"second"},
        )

        result = run_pipeline(store, sink, ["first", "second", "third"])

        assert store.fetched == ["first", "second", "third"]
        assert result.failed is True
        assert sink.failed is True
        assert result.cleanup.to_list() == ["FIRST", "THIRD"]
        assert _cleanup(sink) == ["FIRST", "THIRD"]
        assert len(result.errors) == 1
        assert "Failed to fetch secret: 'second'" in sink.failures[0]
        assert "ResourceNotFoundException" in sink.failures[0]

    def test_duplicate_lines_fetch_once(self, store, sink):
        run_pipeline(store, sink, ["first", "first"])
        assert store.fetched == ["first"]

    def test_invalid_alias_is_per_secret_failure(self, store, sink):
        result = run_pipeline(store, sink, ["BAD-ALIAS,first", "second"])

        assert result.failed is True
        assert sink.env["SECOND"] == "2"
        assert _cleanup(sink) == ["SECOND"]
        assert "BAD-ALIAS" in sink.failures[0]
        assert sink.failures[0].startswith("Failed to inject secret: 'first'")

    def test_export_failure_is_per_secret(self, make_store, tmp_path):
        """A value the environment cannot hold fails only its own secret."""
        store = make_store(
            secrets={
                "first": ("first", "1"),
                "bad": ("bad", '{"k":"a\\u0000b"}'),
                "third": ("third", "3"),
            }
        )
        env_file = tmp_path / "github_env"
        runner = GitHubActionsRunner(env_file=env_file)

        with patch.dict(os.environ):
            result = run_pipeline(store, runner, ["first", "bad", "third"], parse_json=True)

            assert os.environ["THIRD"] == "3"
            assert "BAD_K" not in os.environ

        assert store.fetched == ["first", "bad", "third"]
        assert runner.failed is True
        assert result.errors == [
            "Failed to inject secret: 'bad'. Error: Value for 'BAD_K' contains a null byte."
        ]
        assert result.cleanup.to_list() == ["FIRST", "THIRD"]
        content = env_file.read_text()
        assert "FIRST<<" in content
        assert "THIRD<<" in content
        assert "SECRETS_LIST_CLEAN_UP<<" in content

    def test_env_file_append_failure_is_per_secret(self, store, sink):
        def export(name, value):
            if name == "FIRST":
                raise OutputWriteError("Failed to append to GITHUB_ENV")
            sink.exported.append((name, value))

        sink.export_variable = export

        result = run_pipeline(store, sink, ["first", "second"])

        assert sink.env["SECOND"] == "2"
        assert _cleanup(sink) == ["SECOND"]
        assert result.errors[0].startswith("Failed to inject secret: 'first'")

    def test_wildcard_expansion(self, store, sink):
        run_pipeline(store, sink, ["prod/*"])
        assert sink.env["PROD_A"] == "pa"
        assert sink.env["PROD_B"] == "pb"
        assert _cleanup(sink) == ["PROD_A", "PROD_B"]

    def test_query_error_aborts_before_fetch(self, store, sink):
        with patch.object(store, "list_secrets_matching", side_effect=ProviderError("denied")):
            with pytest.raises(ProviderError):
                run_pipeline(store, sink, ["first", "prod/*"])

        assert store.fetched == []
        assert CLEANUP_NAME not in sink.env

    def test_malformed_query_aborts_before_fetch(self, store, sink):
        with pytest.raises(ConfigurationError):
            run_pipeline(store, sink, ["first", "pro*d"])
        assert store.fetched == []

    def test_cleanup_order_and_uniqueness(self, store, sink):
        """Every injected name appears once, in injection order."""
        run_pipeline(store, sink, ["X,first", "db", "X,second"], parse_json=True)

        assert _cleanup(sink) == ["X", "DB_USER", "DB_PASS"]
        assert sink.env["X"] == "2"

    def test_env_file_mode(self, store, sink, tmp_path):
        path = tmp_path / "cleanup.env"

        run_pipeline(store, sink, ["first"], export_to_env_file=True, env_file_path=path)

        assert path.read_text() == 'SECRETS_LIST_CLEAN_UP=["FIRST"]\n'
        assert CLEANUP_NAME not in sink.env

    def test_output_failure_is_fatal(self, store, sink, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("")

        with pytest.raises(OutputWriteError):
            run_pipeline(
                store,
                sink,
                ["first"],
                export_to_env_file=True,
                env_file_path=blocker / "cleanup.env",
            )

    def test_lowercase_transformation(self, store, sink):
        run_pipeline(store, sink, ["first"], transformation=NameTransformation.LOWERCASE)
        assert sink.env["first"] == "1"

    def test_values_masked(self, store, sink):
        run_pipeline(store, sink, ["db"], parse_json=True)
        assert sink.masked == ["a", "b"]


class TestRunResult:
    """Tests for RunResult."""

    def test_failed_follows_errors(self):
        result = RunResult()
        assert result.failed is False
        result.errors.append("boom")
        assert result.failed is True
