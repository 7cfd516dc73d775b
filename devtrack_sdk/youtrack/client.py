"""
YouTrack resource client: issues, sub-tasks, comments, tags, users and
time tracking.
"""

import logging
from string import Template
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar, Union
from urllib.parse import quote

from pydantic import BaseModel

from devtrack_sdk.client import RestClient
from devtrack_sdk.fields import fields_query
from devtrack_sdk.youtrack.models import (
    IssueComment,
    IssueLong,
    IssueShort,
    Tag,
    TimeTracking,
    User,
    WorkItem,
)

logger = logging.getLogger(__name__)

IssueT = TypeVar("IssueT", bound=BaseModel)

DEFAULT_SUBTASK_LINK_TYPE = "90-3s"
DEFAULT_SUBTASK_PREFIX = "[BE]"
DEFAULT_SUBTASK_CUSTOM_FIELDS = ("Service", "Priority", "Team", "F.Team")
DEFAULT_SUBTASK_TYPE_FIELD_ID = "94-60"
DEFAULT_SUBTASK_DESCRIPTION = """\
Sub-task of $parent_id: $parent_summary

## Definition of done
- [ ] Implementation
- [ ] Tests
- [ ] Code review
"""


class YoutrackClient:
    """Client for the YouTrack REST API."""

    def __init__(
        self,
        http_client: RestClient,
        subtask_link_type: str = DEFAULT_SUBTASK_LINK_TYPE,
        subtask_prefix: str = DEFAULT_SUBTASK_PREFIX,
        subtask_custom_fields: Sequence[str] = DEFAULT_SUBTASK_CUSTOM_FIELDS,
        subtask_type_field_id: str = DEFAULT_SUBTASK_TYPE_FIELD_ID,
        subtask_description: str = DEFAULT_SUBTASK_DESCRIPTION,
    ):
        self.http_client = http_client
        self.subtask_link_type = subtask_link_type
        self.subtask_prefix = subtask_prefix.strip()
        self.subtask_custom_fields = tuple(subtask_custom_fields)
        self.subtask_type_field_id = subtask_type_field_id
        self.subtask_description = subtask_description

    def issue_url(self, issue_id: str) -> str:
        """Browser URL of an issue."""
        return self.http_client.resolve(f"/issue/{quote(issue_id, safe='')}")

    # Issues

    def get_issue(self, issue_id: str, model: Type[IssueT] = IssueShort) -> IssueT:  # type: ignore[assignment]
        """Fetch an issue, asking only for the fields ``model`` decodes."""
        safe_id = quote(issue_id, safe="")
        return self.http_client.get(f"/api/issues/{safe_id}?fields={fields_query(model)}", model)

    def get_sub_issues(self, issue_id: str, model: Type[IssueT] = IssueShort) -> List[IssueT]:  # type: ignore[assignment]
        """Issues linked to ``issue_id`` through the sub-task link type."""
        safe_id = quote(issue_id, safe="")
        url = f"/api/issues/{safe_id}/links/{self.subtask_link_type}/issues?fields={fields_query(model)}"
        return self.http_client.get(url, List[model])  # type: ignore[valid-type]

    def create_subtask(self, parent: IssueLong, assignee: User) -> IssueShort:
        """
        Create a sub-task of ``parent`` assigned to ``assignee``.

        The sub-task lives in the parent's project, copies the configured
        custom fields from the parent and is typed ``Sub-Task``.
        """
        custom_fields: List[Dict[str, Any]] = [
            {
                "id": self.subtask_type_field_id,
                "name": "Type",
                "$type": "SingleEnumIssueCustomField",
                "value": {"name": "Sub-Task", "$type": "EnumBundleElement"},
            }
        ]
        for name in self.subtask_custom_fields:
            field = parent.custom_field(name)
            if field is None:
                logger.debug(f"Parent {parent.id_readable} has no custom field {name!r}")
                continue
            custom_fields.append(field.model_dump(by_alias=True))

        description = Template(self.subtask_description).safe_substitute(
            parent_id=parent.id_readable, parent_summary=parent.summary
        )
        body = {
            "summary": f"{self.subtask_prefix} {parent.summary}",
            "description": description,
            "project": {"id": parent.project.id},
            "assignee": {"id": assignee.id, "$type": "User"},
            "customFields": custom_fields,
        }

        return self.http_client.post(f"/api/issues?fields={fields_query(IssueShort)}", body, IssueShort)

    def link_issues(self, parent: Union[IssueShort, IssueLong], child: Union[IssueShort, IssueLong]) -> IssueShort:
        """Link ``child`` under ``parent`` with the sub-task link type."""
        url = (
            f"/api/issues/{parent.id}/links/{self.subtask_link_type}/issues"
            f"?fields={fields_query(IssueShort)}"
        )
        return self.http_client.post(url, {"id": child.id}, IssueShort)

    # Comments and tags

    def comment_create(self, issue_id: str, text: str) -> IssueComment:
        safe_id = quote(issue_id, safe="")
        return self.http_client.post(
            f"/api/issues/{safe_id}/comments?fields=id,text", {"text": text}, IssueComment
        )

    def search_tags(self, query: str) -> List[Tag]:
        return self.http_client.get(f"/api/tags?fields=id,name&query={quote(query)}", List[Tag])

    def add_tag_to_issue(self, issue: Union[IssueShort, IssueLong], tag: Tag) -> Tag:
        return self.http_client.post(f"/api/issues/{issue.id}/tags?fields=id,name", {"id": tag.id}, Tag)

    # Users and time tracking

    def get_user(self, user_id: str) -> User:
        return self.http_client.get(f"/api/users/{user_id}?fields={fields_query(User)}", User)

    def me(self) -> User:
        return self.get_user("me")

    def create_time_tracking(self, issue_id: str, work_item: TimeTracking) -> WorkItem:
        safe_id = quote(issue_id, safe="")
        return self.http_client.post(
            f"/api/issues/{safe_id}/timeTracking/workItems?fields=id", work_item, WorkItem
        )

    def find_tag(self, name: str) -> Optional[Tag]:
        """Exact-name tag lookup."""
        for tag in self.search_tags(name):
            if tag.name == name:
                return tag
        return None
