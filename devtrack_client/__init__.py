"""
devtrack CLI Package.

This package provides the ``devtrack`` command-line interface that drives
TeamCity, YouTrack and GitLab from a git working copy.
"""

from devtrack_client.main import main
from devtrack_client.protocols import (
    EXIT_API_ERROR,
    EXIT_AUTH_ERROR,
    EXIT_CONFIG_ERROR,
    EXIT_ERROR,
    EXIT_INVALID_ARGS,
    EXIT_NOT_FOUND,
    EXIT_PRECONDITION_FAILED,
    EXIT_SUCCESS,
    CLIError,
    CommandContext,
    ConfigurationMissing,
    GitError,
    NotFoundInSelection,
    PreconditionFailed,
    ValidationError,
)

__all__ = [
    # Main entry point
    "main",
    # Context
    "CommandContext",
    # Error classes
    "CLIError",
    "ValidationError",
    "PreconditionFailed",
    "NotFoundInSelection",
    "ConfigurationMissing",
    "GitError",
    # Exit codes
    "EXIT_SUCCESS",
    "EXIT_ERROR",
    "EXIT_INVALID_ARGS",
    "EXIT_AUTH_ERROR",
    "EXIT_API_ERROR",
    "EXIT_PRECONDITION_FAILED",
    "EXIT_NOT_FOUND",
    "EXIT_CONFIG_ERROR",
]
