"""Tests for schedsync.cli module."""

from unittest.mock import patch

import pytest

from schedsync.cli import build_parser, main
from schedsync.lib.config import ConfigError
from schedsync.lib.urls import GitHubTarget


class TestParser:
    """Tests for build_parser()."""

    def test_defaults(self):
        args = build_parser().parse_args(["octo/app"])
        assert args.url == "octo/app"
        assert not args.dry_run
        assert not args.comments
        assert not args.debug

    def test_flags(self):
        args = build_parser().parse_args(["octo/app", "--dry-run", "--comments", "--debug"])
        assert args.dry_run and args.comments and args.debug

    def test_url_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestMain:
    """Tests for main()."""

    @patch("schedsync.workflow.engine.sync_flow")
    @patch("schedsync.cli.load_sync_config")
    def test_runs_flow(self, mock_config, mock_flow):
        mock_flow.return_value = 0
        assert main(["https://github.com/orgs/octo/projects/5", "--dry-run"]) == 0
        target = mock_flow.call_args.args[0]
        assert target == GitHubTarget(owner="octo", is_org=True, is_project=True, project_num=5)
        assert mock_flow.call_args.args[1] is mock_config.return_value
        assert mock_flow.call_args.kwargs == {"dry_run": True, "comments": False}

    @patch("schedsync.workflow.engine.sync_flow")
    @patch("schedsync.cli.load_sync_config")
    def test_flow_exit_code_returned(self, mock_config, mock_flow):
        mock_flow.return_value = 1
        assert main(["octo/app"]) == 1

    def test_bad_url(self, capsys):
        assert main(["not-a-url"]) == 2
        assert "could not parse GitHub URL" in capsys.readouterr().err

    @patch("schedsync.cli.load_sync_config")
    def test_config_error(self, mock_config, capsys):
        mock_config.side_effect = ConfigError("GH_TIMEOUT_SECONDS must be an integer, got 'x'")
        assert main(["octo/app"]) == 2
        assert "GH_TIMEOUT_SECONDS" in capsys.readouterr().err
