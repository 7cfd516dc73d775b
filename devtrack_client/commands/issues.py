"""
YouTrack commands: branch names, comments, time tracking and sub-tasks.
"""

import logging
import sys
import time
from argparse import Namespace
from typing import Optional

from devtrack_client.output import formatter
from devtrack_client.protocols import (
    EXIT_SUCCESS,
    CommandContext,
    PreconditionFailed,
)
from devtrack_client.utils import copy_to_clipboard, open_in_browser, truncate_string
from devtrack_sdk.youtrack import (
    BranchNameWithIssueId,
    IssueLong,
    TimeTracking,
    WorkItemAuthor,
    WorkItemDuration,
)

logger = logging.getLogger(__name__)


def current_issue_id(ctx: CommandContext, issue_id: Optional[str]) -> str:
    """
    The given issue id, or the one the checked-out branch is named after.

    Raises:
        PreconditionFailed: If no id was given and the branch name has none
    """
    if issue_id:
        return issue_id
    local_name = ctx.repo.branch_meta().local_name
    try:
        return BranchNameWithIssueId.parse(local_name).short_name()
    except ValueError:
        raise PreconditionFailed(
            f"Branch '{local_name}' is not named after an issue; pass the issue id explicitly"
        )


class IssueCommands:
    """Issue tracker commands."""

    @staticmethod
    def branch_name(ctx: CommandContext, args: Namespace) -> int:
        """Print the local branch name for an issue."""
        issue = ctx.youtrack().get_issue(args.issue_id)
        print(issue.as_local_branch_name())
        return EXIT_SUCCESS

    @staticmethod
    def create_branch(ctx: CommandContext, args: Namespace) -> int:
        """
        Create and check out the branch for an issue.

        The branch starts at the remote-tracking default branch.

        Args:
            ctx: Command context
            args: Parsed arguments (issue_id)

        Returns:
            Exit code
        """
        issue = ctx.youtrack().get_issue(args.issue_id)
        name = issue.as_local_branch_name()
        ctx.repo.create_branch(name, ctx.default_base_ref())
        if not ctx.quiet:
            print(f"Switched to a new branch '{name}'")
        return EXIT_SUCCESS

    @staticmethod
    def comment(ctx: CommandContext, args: Namespace) -> int:
        issue_id = current_issue_id(ctx, args.issue_id)
        comment = ctx.youtrack().comment_create(issue_id, args.text)
        if not ctx.quiet:
            print(f"Comment {comment.id} added to {issue_id}")
        return EXIT_SUCCESS

    @staticmethod
    def open_issue(ctx: CommandContext, args: Namespace) -> int:
        url = ctx.youtrack().issue_url(current_issue_id(ctx, args.issue_id))
        print(url)
        open_in_browser(url)
        return EXIT_SUCCESS

    @staticmethod
    def log_time(ctx: CommandContext, args: Namespace) -> int:
        """
        Log spent time on an issue.

        The duration is passed to YouTrack as typed (e.g. ``1h 30m``).
        """
        client = ctx.youtrack()
        issue_id = current_issue_id(ctx, args.issue_id)
        me = client.me()

        work_item = TimeTracking(
            text=args.message or "",
            date=int(time.time() * 1000),
            author=WorkItemAuthor(id=me.id),
            duration=WorkItemDuration(presentation=args.duration),
        )
        created = client.create_time_tracking(issue_id, work_item)
        logger.info(f"Created work item {created.id} on {issue_id}")
        if not ctx.quiet:
            print(f"Logged {args.duration} on {issue_id}")
        return EXIT_SUCCESS

    @staticmethod
    def sub_issues(ctx: CommandContext, args: Namespace) -> int:
        client = ctx.youtrack()
        issue_id = current_issue_id(ctx, args.issue_id)
        issues = client.get_sub_issues(issue_id)

        if ctx.output_format != "table":
            print(formatter.format_output(issues, ctx.output_format))
            return EXIT_SUCCESS

        if not issues:
            if not ctx.quiet:
                print(f"{issue_id} has no sub-issues")
            return EXIT_SUCCESS

        rows = [
            {
                "id": issue.id_readable,
                "summary": truncate_string(issue.summary, 60),
                "url": client.issue_url(issue.id_readable),
            }
            for issue in issues
        ]
        print(formatter.format_table(rows, ["id", "summary", "url"]))
        return EXIT_SUCCESS

    @staticmethod
    def create_sub_issue(ctx: CommandContext, args: Namespace) -> int:
        """
        Create a sub-task of an issue, assigned to the token's owner.

        Refuses when the issue already has a sub-task carrying the configured
        prefix. Configured tags are added to the new sub-task.
        """
        client = ctx.youtrack()
        settings = ctx.settings.require_youtrack()
        issue_id = current_issue_id(ctx, args.issue_id)

        parent = client.get_issue(issue_id, IssueLong)
        for existing in client.get_sub_issues(parent.id_readable):
            if existing.is_sub_issue(client.subtask_prefix):
                raise PreconditionFailed(
                    f"{parent.id_readable} already has a sub-task: {existing.id_readable} {existing.summary}"
                )

        child = client.create_subtask(parent, client.me())
        client.link_issues(parent, child)
        logger.info(f"Created {child.id_readable} under {parent.id_readable}")

        for tag_name in settings.subtask_tags:
            tag = client.find_tag(tag_name)
            if tag is None:
                logger.warning(f"Tag '{tag_name}' not found, skipping")
                continue
            client.add_tag_to_issue(child, tag)

        url = client.issue_url(child.id_readable)
        print(url)
        if not ctx.quiet:
            print(f"Branch: {child.as_local_branch_name()}", file=sys.stderr)
        copy_to_clipboard(url)
        return EXIT_SUCCESS
