"""YouTrack API: issue models, branch-name helpers and the resource client."""

from devtrack_sdk.youtrack.client import YoutrackClient
from devtrack_sdk.youtrack.models import (
    BranchNameWithIssueId,
    IssueComment,
    IssueCustomField,
    IssueLong,
    IssueShort,
    Project,
    Tag,
    TimeTracking,
    User,
    WorkItem,
    WorkItemAuthor,
    WorkItemDuration,
    normalize_str_as_branch_name,
)

__all__ = [
    "YoutrackClient",
    "BranchNameWithIssueId",
    "IssueComment",
    "IssueCustomField",
    "IssueLong",
    "IssueShort",
    "Project",
    "Tag",
    "TimeTracking",
    "User",
    "WorkItem",
    "WorkItemAuthor",
    "WorkItemDuration",
    "normalize_str_as_branch_name",
]
