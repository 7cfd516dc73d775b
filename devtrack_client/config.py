"""
Configuration for the devtrack CLI.

Settings are read once from a YAML file, validated with pydantic and handed
to every client constructor through the command context.
"""

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from devtrack_client.protocols import ConfigurationMissing
from devtrack_client.utils import load_config_file
from devtrack_sdk.youtrack.client import (
    DEFAULT_SUBTASK_CUSTOM_FIELDS,
    DEFAULT_SUBTASK_DESCRIPTION,
    DEFAULT_SUBTASK_LINK_TYPE,
    DEFAULT_SUBTASK_PREFIX,
    DEFAULT_SUBTASK_TYPE_FIELD_ID,
)

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "DEVTRACK_CONFIG"
TOKEN_ENV_VARS = {
    "teamcity": "DEVTRACK_TEAMCITY_TOKEN",
    "youtrack": "DEVTRACK_YOUTRACK_TOKEN",
    "gitlab": "DEVTRACK_GITLAB_TOKEN",
}


class ClientConfig(BaseModel):
    """Connection settings for one service."""

    host: str
    auth_token: str = ""
    timeout: Optional[float] = 30.0


class TeamcityConfig(BaseModel):
    client: ClientConfig
    build_types: Dict[str, str] = Field(default_factory=dict)
    """Repository name -> build type id"""


class YoutrackConfig(BaseModel):
    client: ClientConfig
    subtask_link_type: str = DEFAULT_SUBTASK_LINK_TYPE
    subtask_prefix: str = DEFAULT_SUBTASK_PREFIX
    subtask_custom_fields: List[str] = Field(default_factory=lambda: list(DEFAULT_SUBTASK_CUSTOM_FIELDS))
    subtask_type_field_id: str = DEFAULT_SUBTASK_TYPE_FIELD_ID
    subtask_description: str = DEFAULT_SUBTASK_DESCRIPTION
    subtask_tags: List[str] = Field(default_factory=list)


class GitlabConfig(BaseModel):
    client: ClientConfig


class Settings(BaseModel):
    """Top-level configuration document."""

    default_branch: str = "master"
    remote: str = "origin"
    ssh_key: Optional[str] = None
    teamcity: Optional[TeamcityConfig] = None
    youtrack: Optional[YoutrackConfig] = None
    gitlab: Optional[GitlabConfig] = None

    def require_teamcity(self) -> TeamcityConfig:
        return _require(self.teamcity, "teamcity")

    def require_youtrack(self) -> YoutrackConfig:
        return _require(self.youtrack, "youtrack")

    def require_gitlab(self) -> GitlabConfig:
        return _require(self.gitlab, "gitlab")

    def build_type_for(self, repo_name: str) -> str:
        """
        Build type configured for a repository.

        Raises:
            ConfigurationMissing: If the repository has no mapping
        """
        build_type = self.require_teamcity().build_types.get(repo_name)
        if not build_type:
            raise ConfigurationMissing(
                f"No build type configured for repository '{repo_name}' (teamcity.build_types)"
            )
        return build_type


def _require(section, name: str):
    if section is None:
        raise ConfigurationMissing(f"Missing '{name}' section in configuration")
    if not section.client.auth_token:
        raise ConfigurationMissing(
            f"Missing auth token for {name}: set {name}.client.auth_token or {TOKEN_ENV_VARS[name]}"
        )
    return section


def default_config_path() -> Path:
    """``$XDG_CONFIG_HOME/devtrack/config.yaml``, falling back to ``~/.config``."""
    base = os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config"
    return Path(base) / "devtrack" / "config.yaml"


def resolve_config_path(explicit: Optional[Union[str, Path]] = None) -> Path:
    """Pick the config file: explicit path, then $DEVTRACK_CONFIG, then the default."""
    if explicit:
        return Path(explicit).expanduser()
    from_env = os.environ.get(CONFIG_ENV_VAR)
    if from_env:
        return Path(from_env).expanduser()
    return default_config_path()


def load_settings(path: Optional[Union[str, Path]] = None) -> Settings:
    """
    Load and validate the configuration file.

    Token environment variables override the values in the file.

    Raises:
        ConfigurationMissing: If the file is missing, unreadable or invalid
    """
    config_path = resolve_config_path(path)
    logger.debug(f"Loading configuration from {config_path}")

    try:
        data = load_config_file(config_path) or {}
    except FileNotFoundError:
        raise ConfigurationMissing(f"Configuration file not found: {config_path}")
    except ValueError as e:
        raise ConfigurationMissing(str(e))

    if not isinstance(data, dict):
        raise ConfigurationMissing(f"Configuration in {config_path} must be a mapping")

    try:
        settings = Settings.model_validate(data)
    except PydanticValidationError as e:
        raise ConfigurationMissing(f"Invalid configuration in {config_path}:\n{e}")

    apply_env_overrides(settings)
    if settings.ssh_key:
        settings.ssh_key = str(Path(settings.ssh_key).expanduser())
    return settings


def apply_env_overrides(settings: Settings) -> None:
    """Replace tokens with the DEVTRACK_*_TOKEN variables where set."""
    for name, env_var in TOKEN_ENV_VARS.items():
        token = os.environ.get(env_var)
        section = getattr(settings, name)
        if token and section is not None:
            logger.debug(f"Using {env_var} for {name}")
            section.client.auth_token = token
