"""
Action inputs using Pydantic.

GitHub Actions exposes each ``with:`` input as ``INPUT_<NAME>`` with the
name upper-cased and hyphens kept, e.g. ``INPUT_SECRET-IDS``.
"""

from typing import Any

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from secretsenv.injector import NameTransformation


def _input(name: str) -> AliasChoices:
    """Accept the Actions env var and its underscore spelling."""
    env_name = name.upper()
    return AliasChoices(f"INPUT_{env_name}", f"INPUT_{env_name.replace('-', '_')}")


class ActionInputs(BaseSettings):
    """Inputs for one run."""

    # Action inputs
    secret_ids: str = Field(default="", validation_alias=_input("secret-ids"))
    parse_json_secrets: bool = Field(default=False, validation_alias=_input("parse-json-secrets"))
    export_to_env_file: bool = Field(default=False, validation_alias=_input("export-to-env-file"))
    path_name_env_file: str = Field(default="", validation_alias=_input("path-name-env-file"))
    name_transformation: NameTransformation = Field(
        default=NameTransformation.UPPERCASE,
        validation_alias=_input("name-transformation"),
    )

    # AWS
    aws_region: str | None = Field(
        default=None,
        validation_alias=AliasChoices("AWS_REGION", "AWS_DEFAULT_REGION"),
    )

    # Runner
    github_env: str | None = Field(default=None, validation_alias=AliasChoices("GITHUB_ENV"))

    model_config = SettingsConfigDict(
        env_ignore_empty=True,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # Values from the environment win over values passed in (config file).
        return (env_settings, init_settings)

    @classmethod
    def from_fields(cls, **values: Any) -> "ActionInputs":
        """Build inputs from field names (e.g. a config file).

        Field names are only accepted here; the environment is read through
        the ``INPUT_*`` aliases alone. Unknown keys are ignored.
        """
        init: dict[str, Any] = {}
        for name, value in values.items():
            field = cls.model_fields.get(name)
            if field is None or not isinstance(field.validation_alias, AliasChoices):
                continue
            # The last alias ranks below every env spelling, so the environment wins.
            init[str(field.validation_alias.choices[-1])] = value
        return cls(**init)

    @property
    def secret_id_lines(self) -> list[str]:
        """Non-empty, stripped lines of the multiline ``secret-ids`` input."""
        return [line.strip() for line in self.secret_ids.splitlines() if line.strip()]
