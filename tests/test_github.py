"""Tests for schedsync.lib.github module."""

import json
import subprocess
from unittest.mock import patch, MagicMock

import pytest

from schedsync.lib.github import (
    GH_TIMEOUT_SECONDS,
    GitHubClient,
    GitHubError,
    ProjectLocator,
)


def _completed(stdout="", returncode=0, stderr=""):
    return MagicMock(returncode=returncode, stdout=stdout, stderr=stderr)


def _graphql(data, errors=None):
    payload = {"data": data}
    if errors:
        payload["errors"] = errors
    return _completed(json.dumps(payload))


def _page(nodes, has_next=False, cursor=None):
    return {"organization": {"projectV2": {"items": {
        "pageInfo": {"hasNextPage": has_next, "endCursor": cursor},
        "nodes": nodes,
    }}}}


ORG_PROJECT = ProjectLocator(owner="octo", number=5, is_org=True)


class TestConstants:
    """Test that constants are defined correctly."""

    def test_gh_timeout_is_reasonable(self):
        assert GH_TIMEOUT_SECONDS >= 10
        assert GH_TIMEOUT_SECONDS <= 120


class TestRun:
    """Tests for GitHubClient.run()."""

    @patch("subprocess.run")
    def test_returns_stdout(self, mock_run):
        mock_run.return_value = _completed("hello")
        assert GitHubClient().run(["api", "user"]) == "hello"
        args, kwargs = mock_run.call_args
        assert args[0] == ["gh", "api", "user"]
        assert kwargs["timeout"] == GH_TIMEOUT_SECONDS
        assert kwargs["env"] is None

    @patch("subprocess.run")
    def test_token_passed_as_gh_token(self, mock_run):
        mock_run.return_value = _completed("")
        GitHubClient(token="secret").run(["api", "user"])
        assert mock_run.call_args.kwargs["env"]["GH_TOKEN"] == "secret"

    @patch("subprocess.run")
    def test_non_zero_exit(self, mock_run):
        mock_run.return_value = _completed(returncode=1, stderr="HTTP 404")
        with pytest.raises(GitHubError, match="HTTP 404"):
            GitHubClient().run(["api", "nope"])

    @patch("subprocess.run")
    def test_timeout(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="gh", timeout=5)
        with pytest.raises(GitHubError, match="timed out after 5s"):
            GitHubClient(timeout=5).run(["api", "user"])

    @patch("subprocess.run")
    def test_gh_missing(self, mock_run):
        mock_run.side_effect = FileNotFoundError()
        with pytest.raises(GitHubError, match="not found"):
            GitHubClient().run(["api", "user"])


class TestGraphql:
    """Tests for GitHubClient.graphql()."""

    @patch("subprocess.run")
    def test_variables_typed_by_flag(self, mock_run):
        mock_run.return_value = _graphql({"ok": True})
        GitHubClient().graphql("query", {"owner": "octo", "number": 5, "cursor": None})
        cmd = mock_run.call_args[0][0]
        assert cmd[:5] == ["gh", "api", "graphql", "-f", "query=query"]
        assert ["-f", "owner=octo"] == cmd[5:7]
        assert ["-F", "number=5"] == cmd[7:9]
        assert not any("cursor" in arg for arg in cmd)

    @patch("subprocess.run")
    def test_partial_data_returned(self, mock_run):
        mock_run.return_value = _graphql({"ok": True}, errors=[{"message": "FORBIDDEN"}])
        mock_run.return_value.returncode = 1
        assert GitHubClient().graphql("query") == {"ok": True}

    @patch("subprocess.run")
    def test_errors_without_data(self, mock_run):
        mock_run.return_value = _completed(json.dumps({"errors": [{"message": "Bad query"}]}), returncode=1)
        with pytest.raises(GitHubError, match="Bad query"):
            GitHubClient().graphql("query")

    @patch("subprocess.run")
    def test_invalid_json(self, mock_run):
        mock_run.return_value = _completed("<html>")
        with pytest.raises(GitHubError, match="Invalid JSON"):
            GitHubClient().graphql("query")

    @patch("subprocess.run")
    def test_empty_output_with_stderr(self, mock_run):
        mock_run.return_value = _completed("", returncode=1, stderr="gh: authentication required")
        with pytest.raises(GitHubError, match="authentication required"):
            GitHubClient().graphql("query")


class TestProjects:
    """Tests for the project queries."""

    @patch("subprocess.run")
    def test_project_fields(self, mock_run):
        mock_run.return_value = _graphql({"organization": {"projectV2": {
            "id": "PVT_1",
            "fields": {"nodes": [
                {"id": "F1", "name": "Expected Start"},
                {},
                {"id": "F2", "name": "Low Estimate"},
            ]},
        }}})
        fields = GitHubClient().get_project_fields(ORG_PROJECT)
        assert fields.project_id == "PVT_1"
        assert fields.field_ids == {"Expected Start": "F1", "Low Estimate": "F2"}
        assert "organization(login: $owner)" in mock_run.call_args[0][0][4]

    @patch("subprocess.run")
    def test_user_project_query(self, mock_run):
        mock_run.return_value = _graphql({"user": {"projectV2": {"id": "PVT_2", "fields": {"nodes": []}}}})
        fields = GitHubClient().get_project_fields(ProjectLocator(owner="alice", number=1, is_org=False))
        assert fields.project_id == "PVT_2"
        assert "user(login: $owner)" in mock_run.call_args[0][0][4]

    @patch("subprocess.run")
    def test_project_not_found(self, mock_run):
        mock_run.return_value = _graphql({"organization": {"projectV2": None}})
        with pytest.raises(GitHubError, match="not found"):
            GitHubClient().get_project_fields(ORG_PROJECT)

    @patch("subprocess.run")
    def test_items_paginate(self, mock_run):
        mock_run.side_effect = [
            _graphql(_page([{"id": "A"}, None], has_next=True, cursor="C1")),
            _graphql(_page([{"id": "B"}])),
        ]
        items = GitHubClient().get_project_items(ORG_PROJECT)
        assert [i["id"] for i in items] == ["A", "B"]
        second_cmd = mock_run.call_args_list[1][0][0]
        assert "cursor=C1" in second_cmd

    @patch("subprocess.run")
    def test_repo_projects(self, mock_run):
        mock_run.return_value = _graphql({"repository": {"projectsV2": {"nodes": [
            {"number": 5, "owner": {"__typename": "Organization", "login": "octo"}},
            {"number": 2, "owner": {"__typename": "User", "login": "alice"}},
        ]}}})
        projects = GitHubClient().get_repo_projects("octo", "app")
        assert projects == [
            ProjectLocator(owner="octo", number=5, is_org=True),
            ProjectLocator(owner="alice", number=2, is_org=False),
        ]

    @patch("subprocess.run")
    def test_issue_projects_empty(self, mock_run):
        mock_run.return_value = _graphql({"repository": {"issue": {"projectItems": {"nodes": []}}}})
        assert GitHubClient().get_issue_projects("octo", "app", 3) == []

    @patch("subprocess.run")
    def test_issue_not_found(self, mock_run):
        mock_run.return_value = _graphql({"repository": {"issue": None}})
        with pytest.raises(GitHubError, match="octo/app#3"):
            GitHubClient().get_issue_projects("octo", "app", 3)


class TestMutations:
    """Tests for field writes."""

    @patch("subprocess.run")
    def test_update_date_field(self, mock_run):
        mock_run.return_value = _graphql({"updateProjectV2ItemFieldValue": {}})
        GitHubClient().update_date_field("PVT_1", "PVTI_1", "F1", "2025-03-10")
        cmd = mock_run.call_args[0][0]
        assert "updateProjectV2ItemFieldValue" in cmd[4]
        assert "date=2025-03-10" in cmd
        assert "field=F1" in cmd

    @patch("subprocess.run")
    def test_clear_field(self, mock_run):
        mock_run.return_value = _graphql({"clearProjectV2ItemFieldValue": {}})
        GitHubClient().clear_field("PVT_1", "PVTI_1", "F1")
        assert "clearProjectV2ItemFieldValue" in mock_run.call_args[0][0][4]

    @patch("subprocess.run")
    def test_rejected_update_raises(self, mock_run):
        mock_run.return_value = _completed(json.dumps({
            "data": {"updateProjectV2ItemFieldValue": None},
            "errors": [{"message": "Could not resolve to a node"}],
        }), returncode=1)
        with pytest.raises(GitHubError, match="Could not resolve to a node"):
            GitHubClient().update_date_field("PVT_1", "PVTI_1", "F1", "2025-03-10")

    @patch("subprocess.run")
    def test_rejected_clear_raises(self, mock_run):
        mock_run.return_value = _graphql({"clearProjectV2ItemFieldValue": None}, errors=[{"message": "FORBIDDEN"}])
        with pytest.raises(GitHubError, match="FORBIDDEN"):
            GitHubClient().clear_field("PVT_1", "PVTI_1", "F1")

    @patch("subprocess.run")
    def test_null_payload_raises(self, mock_run):
        mock_run.return_value = _graphql({"updateProjectV2ItemFieldValue": None})
        with pytest.raises(GitHubError, match="returned no result"):
            GitHubClient().update_date_field("PVT_1", "PVTI_1", "F1", "2025-03-10")

    @patch("subprocess.run")
    def test_queries_still_tolerate_errors(self, mock_run):
        mock_run.return_value = _graphql({"ok": True}, errors=[{"message": "FORBIDDEN"}])
        assert GitHubClient().graphql("query") == {"ok": True}
        with pytest.raises(GitHubError, match="FORBIDDEN"):
            GitHubClient().graphql("query", strict=True)


class TestComments:
    """Tests for the issue comment endpoints."""

    @patch("subprocess.run")
    def test_get_issue_comments(self, mock_run):
        mock_run.return_value = _completed('{"id": 1, "body": "hi"}\n\n{"id": 2, "body": "x"}\n')
        comments = GitHubClient().get_issue_comments("octo", "app", 3)
        assert [c["id"] for c in comments] == [1, 2]
        cmd = mock_run.call_args[0][0]
        assert "repos/octo/app/issues/3/comments" in cmd
        assert "--paginate" in cmd

    @patch("subprocess.run")
    def test_create_comment(self, mock_run):
        mock_run.return_value = _completed("{}")
        GitHubClient().create_issue_comment("octo", "app", 3, "body text")
        cmd = mock_run.call_args[0][0]
        assert cmd[:5] == ["gh", "api", "repos/octo/app/issues/3/comments", "-X", "POST"]
        assert "body=body text" in cmd

    @patch("subprocess.run")
    def test_update_comment(self, mock_run):
        mock_run.return_value = _completed("{}")
        GitHubClient().update_issue_comment("octo", "app", 77, "new")
        cmd = mock_run.call_args[0][0]
        assert cmd[:5] == ["gh", "api", "repos/octo/app/issues/comments/77", "-X", "PATCH"]

    @patch("subprocess.run")
    def test_delete_comment(self, mock_run):
        mock_run.return_value = _completed("")
        GitHubClient().delete_issue_comment("octo", "app", 77)
        cmd = mock_run.call_args[0][0]
        assert cmd == ["gh", "api", "repos/octo/app/issues/comments/77", "-X", "DELETE"]
