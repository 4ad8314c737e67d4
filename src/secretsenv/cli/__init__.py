"""
CLI commands for secretsenv.
"""

from secretsenv.cli.main import env_name_command, run_command

__all__ = [
    "run_command",
    "env_name_command",
]
