"""
secretsenv configuration.

Provides Pydantic-based input loading from the Actions environment with an
optional YAML file for local runs.
"""

from secretsenv.config.loader import load_config_file, load_inputs
from secretsenv.config.settings import ActionInputs

__all__ = [
    "ActionInputs",
    "load_inputs",
    "load_config_file",
]
