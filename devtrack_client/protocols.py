"""
Protocol definitions for the devtrack CLI.

This module defines the exit codes, the exception hierarchy and the context
object shared by all command handlers.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional, Protocol

if TYPE_CHECKING:
    from devtrack_client.config import Settings
    from devtrack_client.repo import Repo
    from devtrack_sdk import GitlabClient, TeamcityClient, YoutrackClient


# Exit code constants
EXIT_SUCCESS = 0  # Command succeeded
EXIT_ERROR = 1  # General error
EXIT_INVALID_ARGS = 2  # Invalid arguments
EXIT_AUTH_ERROR = 3  # Token rejected
EXIT_API_ERROR = 4  # HTTP status, transport or decode failure
EXIT_PRECONDITION_FAILED = 5  # Repository or build not in the required state
EXIT_NOT_FOUND = 6  # Nothing selected / nothing matched
EXIT_CONFIG_ERROR = 7  # Configuration missing or invalid


class Selectable(Protocol):
    """Anything the interactive picker can offer."""

    def display_text(self) -> str:
        """One-line label shown in the menu and matched against queries."""
        ...

    def preview_text(self) -> str:
        """Detailed description shown on request."""
        ...


# Exception Hierarchy


class CLIError(Exception):
    """Base class for CLI errors."""

    exit_code: int = EXIT_ERROR

    def __init__(self, message: str, exit_code: Optional[int] = None) -> None:
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ValidationError(CLIError):
    """Arguments are inconsistent."""

    exit_code: int = EXIT_INVALID_ARGS


class PreconditionFailed(CLIError):
    """The repository, branch or build is not in a state the command accepts."""

    exit_code: int = EXIT_PRECONDITION_FAILED


class NotFoundInSelection(CLIError):
    """The picker returned nothing."""

    exit_code: int = EXIT_NOT_FOUND


class ConfigurationMissing(CLIError):
    """A required configuration value is absent or invalid."""

    exit_code: int = EXIT_CONFIG_ERROR


class GitError(CLIError):
    """A git command failed."""

    def __init__(self, message: str, stderr: str = "") -> None:
        super().__init__(message)
        self.stderr = stderr


@dataclass
class CommandContext:
    """Context passed to all commands with common resources."""

    settings: "Settings"
    """Configuration loaded at start-up"""

    workdir: Optional[Path] = None
    """Directory the git repository is discovered from (default: cwd)"""

    output_format: str = "table"
    """Output format: 'table', 'json', or 'yaml'"""

    quiet: bool = False
    """Suppress non-essential output"""

    verbose: bool = False
    """Print tracebacks on failure"""

    _cache: Dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def repo(self) -> "Repo":
        """The git repository around ``workdir``, discovered on first use."""
        if "repo" not in self._cache:
            from devtrack_client.repo import Repo

            self._cache["repo"] = Repo.discover(
                self.workdir, ssh_key=self.settings.ssh_key, remote=self.settings.remote
            )
        return self._cache["repo"]

    def teamcity(self) -> "TeamcityClient":
        if "teamcity" not in self._cache:
            from devtrack_sdk import RestClient, TeamcityClient

            config = self.settings.require_teamcity()
            self._cache["teamcity"] = TeamcityClient(
                RestClient(config.client.host, config.client.auth_token, config.client.timeout)
            )
        return self._cache["teamcity"]

    def youtrack(self) -> "YoutrackClient":
        if "youtrack" not in self._cache:
            from devtrack_sdk import RestClient, YoutrackClient

            config = self.settings.require_youtrack()
            self._cache["youtrack"] = YoutrackClient(
                RestClient(config.client.host, config.client.auth_token, config.client.timeout),
                subtask_link_type=config.subtask_link_type,
                subtask_prefix=config.subtask_prefix,
                subtask_custom_fields=config.subtask_custom_fields,
                subtask_type_field_id=config.subtask_type_field_id,
                subtask_description=config.subtask_description,
            )
        return self._cache["youtrack"]

    def gitlab(self) -> "GitlabClient":
        if "gitlab" not in self._cache:
            from devtrack_sdk import GitlabClient, RestClient

            config = self.settings.require_gitlab()
            self._cache["gitlab"] = GitlabClient(
                RestClient(config.client.host, config.client.auth_token, config.client.timeout)
            )
        return self._cache["gitlab"]

    def default_build_type(self) -> str:
        """Build type mapped to the current repository in the configuration."""
        return self.settings.build_type_for(self.repo.get_name())

    def default_base_ref(self) -> str:
        """Remote-tracking ref of the default branch, e.g. ``origin/master``."""
        return f"{self.settings.remote}/{self.settings.default_branch}"
