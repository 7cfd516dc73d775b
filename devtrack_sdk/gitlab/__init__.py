"""
GitLab API: projects and merge requests.
"""

import logging
from enum import Enum
from typing import List, Optional
from urllib.parse import quote

from pydantic import BaseModel

from devtrack_sdk.client import RestClient

logger = logging.getLogger(__name__)


class State(str, Enum):
    """Merge request state filter."""

    ALL = "all"
    OPENED = "opened"


class Project(BaseModel):
    id: int
    name: str
    name_with_namespace: str

    def display_text(self) -> str:
        return self.name_with_namespace

    def preview_text(self) -> str:
        return self.model_dump_json(indent=2)


class PullRequest(BaseModel):
    """A merge request."""

    title: str
    web_url: str
    state: Optional[str] = None
    source_branch: Optional[str] = None
    target_branch: Optional[str] = None
    blocking_discussions_resolved: bool = True
    user_notes_count: int = 0
    has_conflicts: bool = False


class CreatePullRequestBody(BaseModel):
    source_branch: str
    target_branch: str
    title: str
    squash: bool = True
    remove_source_branch: bool = True


class GitlabClient:
    """Client for the GitLab REST API (v4)."""

    def __init__(self, http_client: RestClient):
        self.http_client = http_client

    def get_pull_requests(self, branch: str, state: State = State.ALL) -> List[PullRequest]:
        """Merge requests whose source branch is ``branch``."""
        url = f"/api/v4/merge_requests?source_branch={quote(branch, safe='')}&state={state.value}"
        return self.http_client.get(url, List[PullRequest])

    def find_project_by_name(self, name: str) -> List[Project]:
        return self.http_client.get(f"/api/v4/projects?search={quote(name, safe='')}", List[Project])

    def create_pull_request(
        self, project: Project, source_branch: str, target_branch: str, title: str
    ) -> PullRequest:
        """Open a squashing merge request that removes its source branch on merge."""
        body = CreatePullRequestBody(
            source_branch=source_branch, target_branch=target_branch, title=title
        )
        return self.http_client.post(f"/api/v4/projects/{project.id}/merge_requests", body, PullRequest)


__all__ = [
    "GitlabClient",
    "Project",
    "PullRequest",
    "CreatePullRequestBody",
    "State",
]
