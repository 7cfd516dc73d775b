"""
GitLab commands: list and open merge requests for the current branch.
"""

import logging
import sys
from argparse import Namespace

from devtrack_client.output import formatter
from devtrack_client.protocols import (
    EXIT_SUCCESS,
    CommandContext,
    NotFoundInSelection,
    PreconditionFailed,
)
from devtrack_client.utils import copy_to_clipboard, select_one
from devtrack_sdk.gitlab import GitlabClient, Project, State
from devtrack_sdk.youtrack import BranchNameWithIssueId

logger = logging.getLogger(__name__)


def remote_branch_name(local_name: str) -> str:
    """Branches named after an issue are pushed as the bare issue id."""
    try:
        return BranchNameWithIssueId.parse(local_name).short_name()
    except ValueError:
        return local_name


def find_project(client: GitlabClient, repo_name: str) -> Project:
    """
    The GitLab project for a repository name.

    An exact name match is used directly; otherwise the user picks one of
    the search results.
    """
    projects = client.find_project_by_name(repo_name)
    if not projects:
        raise NotFoundInSelection(f"No GitLab project found for '{repo_name}'")

    exact = [project for project in projects if project.name == repo_name]
    if len(exact) == 1:
        return exact[0]
    return select_one(projects, repo_name, prompt="Project")


class PullRequestCommands:
    """Merge request commands."""

    @staticmethod
    def pull_requests(ctx: CommandContext, args: Namespace) -> int:
        branch = ctx.repo.normalize_branch_name()
        pull_requests = ctx.gitlab().get_pull_requests(branch, State.ALL)

        if ctx.output_format != "table":
            print(formatter.format_output(pull_requests, ctx.output_format))
            return EXIT_SUCCESS

        if not pull_requests:
            if not ctx.quiet:
                print(f"No merge requests for {branch}")
            return EXIT_SUCCESS

        for pull_request in pull_requests:
            print(f"⚫ {pull_request.title}\n  {pull_request.web_url}")
        return EXIT_SUCCESS

    @staticmethod
    def create_pull_request(ctx: CommandContext, args: Namespace) -> int:
        """
        Push the current branch and open a merge request into the default branch.

        The merge request title is the subject of the HEAD commit.

        Args:
            ctx: Command context
            args: Parsed arguments (none)

        Returns:
            Exit code
        """
        repo = ctx.repo
        meta = repo.branch_meta()
        remote_branch = remote_branch_name(meta.local_name)

        if repo.count_ahead_commits(ctx.default_base_ref()) == 0:
            raise PreconditionFailed("Commit first!")

        client = ctx.gitlab()
        project = find_project(client, repo.get_name())

        repo.set_upstream(meta.local_name, remote_branch, meta.oid)
        repo.push(meta.refname, remote_branch)

        pull_request = client.create_pull_request(
            project,
            source_branch=remote_branch,
            target_branch=ctx.settings.default_branch,
            title=meta.summary or remote_branch,
        )
        logger.info(f"Opened merge request {pull_request.web_url}")

        print(pull_request.web_url)
        if copy_to_clipboard(pull_request.web_url) and not ctx.quiet:
            print("✔ copied!", file=sys.stderr)
        return EXIT_SUCCESS
