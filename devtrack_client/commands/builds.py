"""
TeamCity commands: trigger builds, list builds and deploy.
"""

import logging
import sys
from argparse import Namespace
from typing import Any, List, Optional, Union

from devtrack_client.output import colorize, formatter, status_glyph
from devtrack_client.protocols import (
    EXIT_SUCCESS,
    CommandContext,
    PreconditionFailed,
    ValidationError,
)
from devtrack_client.utils import (
    copy_to_clipboard,
    format_relative_time,
    parse_teamcity_date,
    select_one,
)
from devtrack_sdk.teamcity import (
    Build,
    BuildLocator,
    BuildNotReady,
    BuildTypeAny,
    BuildTypeBuild,
    BuildTypeCustom,
    BuildTypeDeploy,
    BuildTypeLocator,
    BuildTypeSelector,
    TeamcityClient,
    parse_build_type,
)

logger = logging.getLogger(__name__)

STATE_LABELS = {
    "queued": "queued",
    "running": "running",
    "finished": "",
}


def build_type_clause(
    client: TeamcityClient, selector: BuildTypeSelector
) -> Optional[Union[str, BuildTypeLocator]]:
    """Turn a build-type selector into the value of the ``buildType`` clause."""
    if isinstance(selector, BuildTypeBuild):
        return BuildTypeLocator.only_builds()
    if isinstance(selector, BuildTypeDeploy):
        return BuildTypeLocator.only_deploys()
    if isinstance(selector, BuildTypeAny):
        return None
    if isinstance(selector, BuildTypeCustom):
        build_type = select_one(client.build_type_list().build_type, selector.query, prompt="Build type")
        return build_type.id
    raise TypeError(f"Unknown build type selector: {selector!r}")


def author_clause(client: TeamcityClient, author: Optional[str]) -> Optional[str]:
    """Value of the ``user`` clause: ``any`` drops it, ``current`` is the token's owner."""
    if author is None or author == "any":
        return None
    if author == "current":
        return author
    user = select_one(client.user_list().user, author, prompt="Author")
    return user.username


def describe_build(build: Build, colors: bool) -> List[Any]:
    """One table row per build."""
    finished = parse_teamcity_date(build.finish_on_agent_date)
    when = format_relative_time(finished) if finished else ""
    state = STATE_LABELS.get(build.state, "?")
    url = colorize(build.web_url or "", "dim", colors)
    return [
        status_glyph(build.status, colors),
        f"{state} {when}".strip(),
        build.build_type_id,
        build.id,
        f"{url}\n{build.branch_name or 'default branch'}",
        build.triggered.describe() if build.triggered else "",
    ]


class BuildCommands:
    """Build and deployment commands."""

    @staticmethod
    def run_build(ctx: CommandContext, args: Namespace) -> int:
        """
        Enqueue a build of the repository's build type.

        Args:
            ctx: Command context
            args: Parsed arguments (branch_name)

        Returns:
            Exit code
        """
        client = ctx.teamcity()
        build_type = ctx.default_build_type()
        branch_name = ctx.repo.normalize_branch_name(args.branch_name)

        queued = client.run_build(build_type, branch_name)
        logger.info(f"Queued build #{queued.id} of {build_type} on {branch_name}")

        print(queued.web_url)
        if copy_to_clipboard(queued.web_url) and not ctx.quiet:
            print("✔ copied!", file=sys.stderr)
        return EXIT_SUCCESS

    @staticmethod
    def list_builds(ctx: CommandContext, args: Namespace) -> int:
        """
        List recent builds.

        ``--any`` lifts the branch and build type filters, ``--master`` looks
        at the default branch and ``--my`` restricts to builds triggered by
        the token's owner.
        """
        branch_name = args.branch_name
        build_type = args.build_type
        author = args.author

        if args.any:
            if build_type is not None:
                raise ValidationError("--any cannot be combined with --build-type")
            branch_name = "any"
            build_type = "any"
        elif args.master:
            branch_name = ctx.settings.default_branch
        if args.my:
            author = "current"

        client = ctx.teamcity()
        if build_type is None:
            selector: BuildTypeSelector = BuildTypeCustom(ctx.default_build_type())
        else:
            selector = parse_build_type(build_type)

        locator = (
            BuildLocator.builder()
            .default_filter(False)
            .personal(False)
            .user(author_clause(client, author))
            .build_type(build_type_clause(client, selector))
            .count(args.limit)
            .branch(ctx.repo.normalize_branch_name(branch_name))
            .build()
        )
        logger.info(f"Build locator: {locator}")

        builds = client.get_builds(locator).build
        if ctx.output_format != "table":
            print(formatter.format_output(builds, ctx.output_format))
            return EXIT_SUCCESS

        if not builds:
            if not ctx.quiet:
                print("No builds found")
            return EXIT_SUCCESS

        colors = sys.stdout.isatty()
        rows = [describe_build(build, colors) for build in builds]
        print(
            formatter.format_rows(
                rows, headers=["", "date", "build type", "build id", "url (branch)", "triggered by"]
            )
        )
        return EXIT_SUCCESS

    @staticmethod
    def run_deploy(ctx: CommandContext, args: Namespace) -> int:
        """
        Deploy a finished build.

        The build is picked by id, or else it is the latest build of the
        repository's build type on the branch. Without an explicit branch
        only builds triggered by the token's owner are considered.
        """
        client = ctx.teamcity()
        builder = BuildLocator.builder().count(1)

        if args.build_id is not None:
            try:
                builder.id(int(args.build_id))
            except ValueError:
                raise ValidationError(f"Build id must be a number, got '{args.build_id}'")
        else:
            builder.build_type(ctx.default_build_type())
            builder.branch(ctx.repo.normalize_branch_name(args.branch_name))
            if args.branch_name is None:
                builder.user("current")

        try:
            build = client.get_last_build(builder.build())
        except BuildNotReady as e:
            raise PreconditionFailed(str(e))

        deployments = client.deployment_list(build.build_type_id).build_type
        deployment = select_one(deployments, args.env, prompt="Environment")

        queued = client.run_deploy(build, deployment.id)
        print(queued.web_url)
        if copy_to_clipboard(queued.web_url) and not ctx.quiet:
            print("✔ copied!", file=sys.stderr)
        return EXIT_SUCCESS
