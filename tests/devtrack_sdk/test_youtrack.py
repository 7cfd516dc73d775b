"""
Tests for the YouTrack client, models and branch-name helpers.
"""

from unittest.mock import Mock

import pytest

from devtrack_sdk.youtrack import (
    BranchNameWithIssueId,
    IssueCustomField,
    IssueLong,
    IssueShort,
    Project,
    Tag,
    TimeTracking,
    User,
    WorkItemAuthor,
    WorkItemDuration,
    YoutrackClient,
    normalize_str_as_branch_name,
)
from devtrack_sdk.client import RestClient


def make_parent(**overrides):
    data = {
        "id": "2-100",
        "id_readable": "PROJ-100",
        "summary": "Parent task",
        "project": Project(id="0-1", name="Project", short_name="PROJ"),
        "custom_fields": [
            IssueCustomField(id="1", name="Service", type_="SingleEnumIssueCustomField", value={"name": "api"}),
            IssueCustomField(id="2", name="Priority", type_="SingleEnumIssueCustomField", value={"name": "Major"}),
            IssueCustomField(id="3", name="Estimation", type_="PeriodIssueCustomField", value=None),
        ],
    }
    data.update(overrides)
    return IssueLong(**data)


class TestBranchNames:
    """Tests for deriving and parsing branch names."""

    def test_slug(self):
        assert normalize_str_as_branch_name("[[TEST]  (%)Name  of SOME task!!!]") == "TEST-Name-of-SOME-task"

    def test_slug_of_punctuation_is_empty(self):
        assert normalize_str_as_branch_name("!!! ???") == ""

    def test_local_branch_name(self):
        issue = IssueShort(id="2-1", id_readable="PROJ-1", summary="Fix: the bug!")
        assert issue.as_local_branch_name() == "PROJ-1-Fix-the-bug"

    def test_local_branch_name_without_slug(self):
        issue = IssueShort(id="2-1", id_readable="PROJ-1", summary="???")
        assert issue.as_local_branch_name() == "PROJ-1"

    def test_parse_with_slug(self):
        parsed = BranchNameWithIssueId.parse("PROJ-123-fix-the-bug")
        assert parsed == BranchNameWithIssueId("PROJ", 123, "fix-the-bug")
        assert parsed.short_name() == "PROJ-123"

    def test_parse_without_slug(self):
        assert BranchNameWithIssueId.parse("PROJ-12") == BranchNameWithIssueId("PROJ", 12, None)

    @pytest.mark.parametrize("name", ["master", "feature/PROJ-1", "proj-1-lowercase", "PROJ-123abc", "PROJ-12-"])
    def test_parse_rejects_names_without_issue_id(self, name):
        with pytest.raises(ValueError):
            BranchNameWithIssueId.parse(name)

    def test_is_sub_issue(self):
        assert IssueShort(id="1", id_readable="P-1", summary="[BE] Parent").is_sub_issue("[BE]")
        assert not IssueShort(id="1", id_readable="P-1", summary="Parent").is_sub_issue("[BE]")


class TestYoutrackClient:
    """Tests for YoutrackClient request construction."""

    def setup_method(self):
        self.http = Mock()
        self.http.resolve.side_effect = lambda path: f"https://yt.example.com{path}"
        self.client = YoutrackClient(self.http)

    def test_issue_url(self):
        assert self.client.issue_url("PROJ-1") == "https://yt.example.com/issue/PROJ-1"

    def test_get_issue_asks_for_model_fields(self):
        self.client.get_issue("PROJ-1")

        path, model = self.http.get.call_args[0]
        assert path == "/api/issues/PROJ-1?fields=id,idReadable,summary"
        assert model is IssueShort

    def test_get_sub_issues_uses_link_type(self):
        client = YoutrackClient(self.http, subtask_link_type="77-1s")

        client.get_sub_issues("PROJ-1")

        path = self.http.get.call_args[0][0]
        assert path == "/api/issues/PROJ-1/links/77-1s/issues?fields=id,idReadable,summary"

    def test_create_subtask_body(self):
        parent = make_parent()
        assignee = User(id="1-5", login="dev")

        self.client.create_subtask(parent, assignee)

        path, body, _ = self.http.post.call_args[0]
        assert path == "/api/issues?fields=id,idReadable,summary"
        assert body["summary"] == "[BE] Parent task"
        assert body["project"] == {"id": "0-1"}
        assert body["assignee"] == {"id": "1-5", "$type": "User"}
        assert "PROJ-100: Parent task" in body["description"]

        field_names = [field["name"] for field in body["customFields"]]
        assert field_names == ["Type", "Service", "Priority"]
        assert body["customFields"][0]["value"] == {"name": "Sub-Task", "$type": "EnumBundleElement"}
        assert body["customFields"][1] == {
            "id": "1",
            "name": "Service",
            "$type": "SingleEnumIssueCustomField",
            "value": {"name": "api"},
        }

    def test_create_subtask_custom_prefix(self):
        client = YoutrackClient(self.http, subtask_prefix="[FE]", subtask_custom_fields=[])

        client.create_subtask(make_parent(), User(id="1", login="dev"))

        body = self.http.post.call_args[0][1]
        assert body["summary"] == "[FE] Parent task"
        assert [field["name"] for field in body["customFields"]] == ["Type"]

    def test_create_subtask_prefix_with_trailing_space(self):
        client = YoutrackClient(self.http, subtask_prefix="[BE] ", subtask_custom_fields=[])

        client.create_subtask(make_parent(), User(id="1", login="dev"))

        assert self.http.post.call_args[0][1]["summary"] == "[BE] Parent task"
        assert client.subtask_prefix == "[BE]"

    def test_link_issues(self):
        child = IssueShort(id="2-200", id_readable="PROJ-200", summary="[BE] Parent task")

        self.client.link_issues(make_parent(), child)

        path, body, _ = self.http.post.call_args[0]
        assert path.startswith("/api/issues/2-100/links/90-3s/issues")
        assert body == {"id": "2-200"}

    def test_comment_create(self):
        self.client.comment_create("PROJ-1", "Looks good")

        path, body, _ = self.http.post.call_args[0]
        assert path == "/api/issues/PROJ-1/comments?fields=id,text"
        assert body == {"text": "Looks good"}

    def test_find_tag_requires_exact_name(self):
        self.http.get.return_value = [Tag(id="6-1", name="backend-old"), Tag(id="6-2", name="backend")]

        assert self.client.find_tag("backend") == Tag(id="6-2", name="backend")

    def test_find_tag_missing(self):
        self.http.get.return_value = [Tag(id="6-1", name="backend-old")]

        assert self.client.find_tag("backend") is None

    def test_me(self):
        self.client.me()

        assert self.http.get.call_args[0][0] == "/api/users/me?fields=id,login"

    def test_create_time_tracking(self):
        work_item = TimeTracking(
            text="Reviewing",
            date=1700000000000,
            author=WorkItemAuthor(id="1-5"),
            duration=WorkItemDuration(presentation="1h 30m"),
        )

        self.client.create_time_tracking("PROJ-1", work_item)

        path, body, _ = self.http.post.call_args[0]
        assert path == "/api/issues/PROJ-1/timeTracking/workItems?fields=id"
        assert body.model_dump(by_alias=True) == {
            "usesMarkdown": True,
            "text": "Reviewing",
            "date": 1700000000000,
            "author": {"id": "1-5"},
            "duration": {"presentation": "1h 30m"},
        }


class TestYoutrackClientHttp:
    """Round trips through a local server."""

    def test_get_sub_issues_decodes_list(self, api_server):
        api_server.respond(
            "GET",
            "/api/issues/PROJ-1/links/90-3s/issues",
            [{"id": "2-2", "idReadable": "PROJ-2", "summary": "[BE] Child"}],
        )
        client = YoutrackClient(RestClient(api_server.url, "yt-token"))

        issues = client.get_sub_issues("PROJ-1")

        assert issues == [IssueShort(id="2-2", id_readable="PROJ-2", summary="[BE] Child")]
