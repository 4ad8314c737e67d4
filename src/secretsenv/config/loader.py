"""
Input loading and validation.

Inputs come from the Actions environment. For local runs a YAML file can
supply the same keys (``secret-ids``, ``parse-json-secrets``, ...);
environment values override the file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pydantic
import structlog
import yaml

from secretsenv.config.settings import ActionInputs
from secretsenv.core.errors import ConfigurationError

logger = structlog.get_logger()


def load_config_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML inputs file into ``ActionInputs`` field names."""
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(f"Config file not found: {path}")

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse YAML config at {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file at {path} must contain a mapping")

    values: dict[str, Any] = {}
    for key, value in data.items():
        field = str(key).replace("-", "_")
        if field == "secret_ids" and isinstance(value, list):
            value = "\n".join(str(item) for item in value)
        values[field] = value

    logger.debug("loaded_config", path=str(path), keys=sorted(values))
    return values


def _validate(inputs: ActionInputs) -> ActionInputs:
    if not inputs.secret_id_lines:
        raise ConfigurationError("Input required and not supplied: secret-ids")
    if inputs.export_to_env_file and not inputs.path_name_env_file.strip():
        raise ConfigurationError(
            "Input 'path-name-env-file' is required when 'export-to-env-file' is true"
        )
    return inputs


def load_inputs(config_path: str | Path | None = None) -> ActionInputs:
    """
    Load and validate run inputs.

    Args:
        config_path: Optional YAML file with input values

    Returns:
        Validated ActionInputs

    Raises:
        ConfigurationError: missing or invalid inputs
    """
    overrides = load_config_file(config_path) if config_path else {}

    try:
        inputs = ActionInputs.from_fields(**overrides)
    except pydantic.ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigurationError(f"Invalid inputs: {problems}") from e

    return _validate(inputs)


__all__ = ["load_inputs", "load_config_file"]
