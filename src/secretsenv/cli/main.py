"""CLI entrypoint for secretsenv."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Sequence

from secretsenv import __version__
from secretsenv.cli.ux import error, success, warning
from secretsenv.config import load_inputs
from secretsenv.core.errors import ExitCode, main_with_error_handling
from secretsenv.injector import NameTransformation, transform_to_env_name
from secretsenv.logging import configure_logging
from secretsenv.pipeline import run_pipeline
from secretsenv.runner import GitHubActionsRunner
from secretsenv.store import AWSSecretsManagerStore


@main_with_error_handling
def run_command(config_path: str | None = None, json_logs: bool = False) -> int:
    """
    Fetch the configured secrets and inject them into the job environment.

    Exit codes: 0 = all secrets injected, 11 = at least one secret failed,
    10/13/127 = the run was aborted
    """
    debug = os.environ.get("RUNNER_DEBUG") == "1"
    configure_logging(logging.DEBUG if debug else logging.INFO, json_logs=json_logs)

    inputs = load_inputs(config_path)

    runner = GitHubActionsRunner(env_file=inputs.github_env)
    store = AWSSecretsManagerStore(region=inputs.aws_region)

    result = run_pipeline(
        store,
        runner,
        inputs.secret_id_lines,
        parse_json=inputs.parse_json_secrets,
        export_to_env_file=inputs.export_to_env_file,
        env_file_path=inputs.path_name_env_file,
        transformation=inputs.name_transformation,
    )

    if result.failed:
        error(f"{len(result.errors)} secret(s) could not be injected")
        return ExitCode.PROVIDER_ERROR

    if not len(result.cleanup):
        warning("No secrets were injected")
    else:
        success(f"Injected {len(result.cleanup)} environment variable(s)")
    return ExitCode.SUCCESS


def env_name_command(name: str, transformation: str = NameTransformation.UPPERCASE) -> int:
    """Print the environment variable name a secret name maps to."""
    print(transform_to_env_name(name, NameTransformation(transformation)))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="secretsenv",
        description="Inject AWS Secrets Manager secrets into CI job environments",
    )
    parser.add_argument("--version", action="version", version=f"secretsenv {__version__}")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser(
        "run", help="Fetch secrets and export them as environment variables (default)"
    )
    run_parser.add_argument("--config", help="YAML file with input values for local runs")
    run_parser.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")

    env_name_parser = subparsers.add_parser(
        "env-name", help="Show the environment variable name for a secret name"
    )
    env_name_parser.add_argument("name", help="Secret name, ARN-style name or alias")
    env_name_parser.add_argument(
        "--transformation",
        choices=[t.value for t in NameTransformation],
        default=NameTransformation.UPPERCASE.value,
        help="Case applied to the generated name",
    )

    return parser


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "env-name":
        sys.exit(env_name_command(args.name, transformation=args.transformation))

    # Action entrypoints invoke the package without a subcommand.
    sys.exit(
        run_command(
            config_path=getattr(args, "config", None),
            json_logs=getattr(args, "json_logs", False),
        )
    )


if __name__ == "__main__":
    main()
