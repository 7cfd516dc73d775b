"""
Pydantic models for the YouTrack REST API, plus branch-name helpers that
tie issues to git branches.
"""

import re
from dataclasses import dataclass
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class YoutrackModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Project(YoutrackModel):
    id: str
    name: str
    short_name: str


class User(YoutrackModel):
    id: str
    login: str


class IssueCustomField(YoutrackModel):
    """A custom field value; ``value`` is kept raw since its shape depends on ``$type``."""

    id: str
    name: str
    type_: str = Field(alias="$type")
    value: Any = Field(None, json_schema_extra={"fields": "id,name"})


class IssueShort(YoutrackModel):
    id: str
    id_readable: str
    summary: str

    def as_local_branch_name(self) -> str:
        """``<ID>-<slug of summary>``, or just the id when the slug is empty."""
        slug = normalize_str_as_branch_name(self.summary)
        if not slug:
            return self.id_readable
        return f"{self.id_readable}-{slug}"

    def is_sub_issue(self, prefix: str) -> bool:
        return self.summary.startswith(prefix)


class IssueLong(YoutrackModel):
    id: str
    id_readable: str
    summary: str
    project: Project
    reporter: Optional[User] = None
    custom_fields: List[IssueCustomField] = Field(default_factory=list)

    def custom_field(self, name: str) -> Optional[IssueCustomField]:
        for field in self.custom_fields:
            if field.name == name:
                return field
        return None


class IssueComment(YoutrackModel):
    id: str
    text: Optional[str] = None


class Tag(YoutrackModel):
    id: str
    name: str


class WorkItemAuthor(BaseModel):
    id: str


class WorkItemDuration(BaseModel):
    presentation: str


class TimeTracking(YoutrackModel):
    """Body of a new time-tracking work item; ``date`` is epoch milliseconds."""

    uses_markdown: bool = True
    text: str
    date: int
    author: WorkItemAuthor
    duration: WorkItemDuration


class WorkItem(YoutrackModel):
    id: str


def normalize_str_as_branch_name(text: str) -> str:
    """
    Turn free text into a branch-name slug.

    Runs of characters outside ``[A-Za-z0-9]`` collapse into a single ``-``
    and leading/trailing ones are dropped:
    ``"[[TEST]  (%)Name  of SOME task!!!]"`` → ``"TEST-Name-of-SOME-task"``.
    """
    return re.sub(r"[^A-Za-z0-9]+", "-", text).strip("-")


_BRANCH_WITH_ISSUE_ID = re.compile(
    r"""
    (?P<project_id>[A-Z]+)
    -
    (?P<number>\d+)
    (?:-(?P<slug>[\w-]+))?
    $
    """,
    re.VERBOSE,
)


@dataclass(frozen=True)
class BranchNameWithIssueId:
    """A branch name of the form ``PROJ-123[-slug]``."""

    project_id: str
    number: int
    slug: Optional[str] = None

    @classmethod
    def parse(cls, branch_name: str) -> "BranchNameWithIssueId":
        """
        Parse a branch name.

        Raises:
            ValueError: If the name does not start with an issue id
        """
        match = _BRANCH_WITH_ISSUE_ID.match(branch_name)
        if match is None:
            raise ValueError(f"Branch '{branch_name}' does not start with an issue id")
        return cls(
            project_id=match.group("project_id"),
            number=int(match.group("number")),
            slug=match.group("slug"),
        )

    def short_name(self) -> str:
        return f"{self.project_id}-{self.number}"
