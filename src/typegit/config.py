"""Runner configuration loaded from YAML files and ``TYPEGIT_*`` variables."""

from __future__ import annotations

from contextvars import ContextVar
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from typegit.constants import (
    DEFAULT_GIT_BINARY,
    PROGRESS_POLL_INTERVAL,
    TERMINATION_GRACE_PERIOD,
)
from typegit.exceptions import ConfigError
from typegit.logging import get_logger

__all__ = [
    "TypeGitConfig",
    "CredentialConfig",
    "load_config",
    "get_user_config_path",
    "get_project_config_path",
]

logger = get_logger(__name__)

PROJECT_CONFIG_FILENAME = "typegit.yaml"

# Set by load_config() to point the project source at an explicit file
_project_config_override: ContextVar[Path | None] = ContextVar(
    "typegit_project_config", default=None
)


class CredentialConfig(BaseModel):
    """Credential helper settings.

    Attributes:
        helper: Value for ``credential.helper`` (``store``, ``cache``, or the
            name of a custom ``git-credential-<name>`` binary).
        helper_path: Path of the custom helper binary; its directory is put
            first on PATH.
    """

    helper: str | None = None
    helper_path: str | None = None


class YamlConfigSource(PydanticBaseSettingsSource):
    """Custom settings source that loads from YAML files."""

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        yaml_file: Path | None = None,
    ):
        super().__init__(settings_cls)
        self.yaml_file = yaml_file
        self._config_data: dict[str, Any] = {}
        if yaml_file and yaml_file.exists():
            try:
                with open(yaml_file) as f:
                    loaded = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(
                    message=f"Invalid YAML in {yaml_file}: {e}",
                    path=yaml_file,
                ) from e
            if loaded is None:
                logger.warning("config_file_empty", path=str(yaml_file))
            elif not isinstance(loaded, dict):
                raise ConfigError(
                    message=f"Config file {yaml_file} must contain a mapping",
                    value=type(loaded).__name__,
                    path=yaml_file,
                )
            else:
                self._config_data = loaded

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> tuple[Any, str, bool]:
        """Get value for a specific field from the YAML config."""
        if field_name in self._config_data:
            return self._config_data[field_name], field_name, False
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        """Return the complete config data."""
        return self._config_data


class TypeGitConfig(BaseSettings):
    """Options for building a ``GitRunner``.

    Attributes:
        git_binary: Path or name of the git executable.
        env: Environment overrides for every invocation.
        path_prefix: Directories put in front of PATH.
        home: Replacement HOME to isolate git from the user's config.
        credential: Credential helper settings.
        lfs_progress: ``stderr`` to parse git-lfs's progress meter, ``file``
            to tail a ``GIT_LFS_PROGRESS`` file.
        termination_grace_period: Seconds between SIGTERM and SIGKILL.
        progress_poll_interval: Seconds between LFS progress file reads.
    """

    model_config = SettingsConfigDict(
        env_prefix="TYPEGIT_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    git_binary: str = DEFAULT_GIT_BINARY
    env: dict[str, str] = Field(default_factory=dict)
    path_prefix: list[str] = Field(default_factory=list)
    home: str | None = None
    credential: CredentialConfig = Field(default_factory=CredentialConfig)
    lfs_progress: Literal["stderr", "file"] = "stderr"
    termination_grace_period: float = Field(
        default=TERMINATION_GRACE_PERIOD, gt=0.0, le=60.0
    )
    progress_poll_interval: float = Field(default=PROGRESS_POLL_INTERVAL, gt=0.0, le=10.0)

    @field_validator("git_binary")
    @classmethod
    def check_git_binary(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("git_binary must not be empty")
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize the order of settings sources.

        Priority (highest to lowest):
        1. Init arguments
        2. Environment variables (TYPEGIT_*)
        3. Project YAML config (./typegit.yaml)
        4. User YAML config (~/.config/typegit/config.yaml)
        """
        return (
            init_settings,
            env_settings,
            YamlConfigSource(settings_cls, get_project_config_path()),
            YamlConfigSource(settings_cls, get_user_config_path()),
        )


def get_user_config_path() -> Path:
    """Get the path to the user configuration file.

    Returns:
        Path to ~/.config/typegit/config.yaml
    """
    return Path.home() / ".config" / "typegit" / "config.yaml"


def get_project_config_path() -> Path:
    """Get the path to the project configuration file.

    Returns:
        The file passed to ``load_config``, else ./typegit.yaml
    """
    override = _project_config_override.get()
    if override is not None:
        return override
    return Path.cwd() / PROJECT_CONFIG_FILENAME


def load_config(config_path: Path | None = None) -> TypeGitConfig:
    """Load configuration with hierarchy: defaults -> user -> project -> env.

    Args:
        config_path: Project config file. Defaults to ./typegit.yaml

    Returns:
        TypeGitConfig with merged configuration.

    Raises:
        ConfigError: If a file is not valid YAML or a value is invalid.
    """
    project_path = config_path if config_path is not None else Path.cwd() / PROJECT_CONFIG_FILENAME
    if not project_path.exists():
        logger.debug("project_config_not_found", path=str(project_path))

    token = _project_config_override.set(project_path)
    try:
        return TypeGitConfig()
    except ValidationError as e:
        first_error = e.errors()[0]
        field = ".".join(str(loc) for loc in first_error["loc"])
        raise ConfigError(
            message=f"Invalid configuration: {first_error['msg']}",
            field=field,
            value=first_error.get("input"),
        ) from e
    finally:
        _project_config_override.reset(token)
