#!/usr/bin/env python3
"""
devtrack CLI - Main entry point.

This module provides the command-line interface that ties TeamCity, YouTrack,
GitLab and the local git repository together. It uses argparse for
command-line argument parsing and routes commands to command handlers.
"""

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple, cast

from devtrack_client.config import load_settings
from devtrack_client.logging_config import setup_logging
from devtrack_client.protocols import (
    EXIT_ERROR,
    EXIT_INVALID_ARGS,
    EXIT_SUCCESS,
    CLIError,
    CommandContext,
)
from devtrack_client.utils import handle_cli_error
from devtrack_sdk import ClientError

logger = logging.getLogger(__name__)

# command name -> (module, class) holding a handler named after the command
COMMAND_HANDLERS: Dict[str, Tuple[str, str]] = {
    "run-build": ("devtrack_client.commands.builds", "BuildCommands"),
    "list-builds": ("devtrack_client.commands.builds", "BuildCommands"),
    "run-deploy": ("devtrack_client.commands.builds", "BuildCommands"),
    "branch-name": ("devtrack_client.commands.issues", "IssueCommands"),
    "create-branch": ("devtrack_client.commands.issues", "IssueCommands"),
    "comment": ("devtrack_client.commands.issues", "IssueCommands"),
    "open-issue": ("devtrack_client.commands.issues", "IssueCommands"),
    "log-time": ("devtrack_client.commands.issues", "IssueCommands"),
    "sub-issues": ("devtrack_client.commands.issues", "IssueCommands"),
    "create-sub-issue": ("devtrack_client.commands.issues", "IssueCommands"),
    "pull-requests": ("devtrack_client.commands.pull_requests", "PullRequestCommands"),
    "create-pull-request": ("devtrack_client.commands.pull_requests", "PullRequestCommands"),
}


def setup_build_parsers(subparsers) -> None:
    """Set up TeamCity command subparsers."""
    run_build = subparsers.add_parser("run-build", help="Queue a build of the current branch")
    run_build.add_argument("-b", "--branch-name", help="Branch to build (default: current branch)")

    list_builds = subparsers.add_parser("list-builds", help="List recent builds")
    branch_group = list_builds.add_mutually_exclusive_group()
    branch_group.add_argument(
        "-a", "--any", action="store_true", help="Any branch and any build type"
    )
    branch_group.add_argument(
        "-m", "--master", action="store_true", help="Builds of the default branch"
    )
    branch_group.add_argument(
        "--branch-name", help='Branch filter, "any" to disable (default: current branch)'
    )
    list_builds.add_argument(
        "--build-type",
        help='Build type id or query; "build"/"b", "deploy"/"d" and "any" are presets '
        "(default: the build type mapped to the repository)",
    )
    author_group = list_builds.add_mutually_exclusive_group()
    author_group.add_argument("--my", action="store_true", help="Only builds triggered by me")
    author_group.add_argument("--author", help='User filter, "any" to disable')
    list_builds.add_argument("-l", "--limit", type=int, help="Number of builds (default: 5)")

    run_deploy = subparsers.add_parser("run-deploy", help="Deploy a finished build")
    build_group = run_deploy.add_mutually_exclusive_group()
    build_group.add_argument("-i", "--build-id", help="Build to deploy")
    build_group.add_argument("--branch-name", help="Deploy the last build of this branch")
    run_deploy.add_argument("-e", "--env", help="Environment query for the picker")


def setup_issue_parsers(subparsers) -> None:
    """Set up YouTrack command subparsers."""
    branch_name = subparsers.add_parser("branch-name", help="Print the branch name for an issue")
    branch_name.add_argument("issue_id", help="Issue id, e.g. PROJ-123")

    create_branch = subparsers.add_parser(
        "create-branch", help="Create and check out the branch for an issue"
    )
    create_branch.add_argument("issue_id", help="Issue id, e.g. PROJ-123")

    comment = subparsers.add_parser("comment", help="Comment on an issue")
    comment.add_argument("text", help="Comment text")
    comment.add_argument("-i", "--issue-id", help="Issue id (default: from the branch name)")

    open_issue = subparsers.add_parser("open-issue", help="Open an issue in the browser")
    open_issue.add_argument("issue_id", nargs="?", help="Issue id (default: from the branch name)")

    log_time = subparsers.add_parser("log-time", help="Log spent time on an issue")
    log_time.add_argument("issue_id", nargs="?", help="Issue id (default: from the branch name)")
    log_time.add_argument("-d", "--duration", required=True, help='Duration, e.g. "1h 30m"')
    log_time.add_argument("-m", "--message", help="Work item description")

    sub_issues = subparsers.add_parser("sub-issues", help="List the sub-tasks of an issue")
    sub_issues.add_argument("issue_id", nargs="?", help="Issue id (default: from the branch name)")

    create_sub_issue = subparsers.add_parser(
        "create-sub-issue", help="Create a sub-task of an issue assigned to me"
    )
    create_sub_issue.add_argument(
        "issue_id", nargs="?", help="Issue id (default: from the branch name)"
    )


def setup_pull_request_parsers(subparsers) -> None:
    """Set up GitLab command subparsers."""
    subparsers.add_parser("pull-requests", help="List merge requests of the current branch")
    subparsers.add_parser(
        "create-pull-request", help="Push the current branch and open a merge request"
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="devtrack",
        description="devtrack - TeamCity, YouTrack and GitLab from your working copy",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Build the current branch
  devtrack run-build

  # Last 10 builds of any branch
  devtrack list-builds --any --limit 10

  # Deploy the last build of the current branch to staging
  devtrack run-deploy -e staging

  # Start working on an issue
  devtrack create-branch PROJ-123

  # Open a merge request for the current branch
  devtrack create-pull-request

Environment Variables:
  DEVTRACK_CONFIG           Configuration file (default: ~/.config/devtrack/config.yaml)
  DEVTRACK_TEAMCITY_TOKEN   TeamCity token
  DEVTRACK_YOUTRACK_TOKEN   YouTrack token
  DEVTRACK_GITLAB_TOKEN     GitLab token
        """,
    )

    # Global arguments
    parser.add_argument(
        "--workdir", type=Path, default=None, help="Repository directory (default: cwd)"
    )
    parser.add_argument("--config", default=None, help="Configuration file")
    parser.add_argument(
        "--format",
        choices=["table", "json", "yaml"],
        default="table",
        help="Output format (default: table)",
    )
    parser.add_argument("--quiet", action="store_true", help="Suppress non-essential output")
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="More logging (-vv for debug)"
    )
    parser.add_argument("--log-file", default=None, help="Also write debug logs to this file")
    parser.add_argument(
        "--log-json", action="store_true", help="Write the log file as JSON lines"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    setup_build_parsers(subparsers)
    setup_issue_parsers(subparsers)
    setup_pull_request_parsers(subparsers)

    return parser


def route_command(ctx: CommandContext, args: argparse.Namespace) -> int:
    """
    Route command to appropriate handler.

    Args:
        ctx: Command context
        args: Parsed arguments

    Returns:
        Exit code
    """
    target = COMMAND_HANDLERS.get(args.command)
    if target is None:
        print(f"Error: Unknown command: {args.command}", file=sys.stderr)
        return EXIT_INVALID_ARGS

    # Lazy import command modules so startup only loads what runs
    module_name, class_name = target
    module = importlib.import_module(module_name)
    handler = cast(
        Callable[[CommandContext, argparse.Namespace], int],
        getattr(getattr(module, class_name), args.command.replace("-", "_")),
    )
    try:
        return handler(ctx, args)
    except (CLIError, ClientError):
        raise
    except Exception as e:
        if ctx.verbose:
            import traceback

            traceback.print_exc()
        return handle_cli_error(e)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_SUCCESS

    try:
        setup_logging(verbosity=args.verbose, log_file=args.log_file, use_json=args.log_json)
        settings = load_settings(args.config)
        ctx = CommandContext(
            settings=settings,
            workdir=args.workdir,
            output_format=args.format,
            quiet=args.quiet,
            verbose=args.verbose > 0,
        )
        return route_command(ctx, args)
    except (CLIError, ClientError) as e:
        logger.debug("Command failed", exc_info=True)
        return handle_cli_error(e)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_ERROR
    except Exception as e:
        if args.verbose:
            import traceback

            traceback.print_exc()
        return handle_cli_error(e)


if __name__ == "__main__":
    sys.exit(main())
