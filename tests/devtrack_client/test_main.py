"""
Tests for the CLI entry point: parsing, routing and exit codes.
"""

import argparse
import importlib
import logging
from unittest.mock import patch

import pytest
import yaml

from devtrack_client.logging_config import setup_logging
from devtrack_client.protocols import (
    EXIT_API_ERROR,
    EXIT_AUTH_ERROR,
    EXIT_CONFIG_ERROR,
    EXIT_ERROR,
    EXIT_INVALID_ARGS,
    EXIT_NOT_FOUND,
    EXIT_PRECONDITION_FAILED,
    EXIT_SUCCESS,
    NotFoundInSelection,
    PreconditionFailed,
)
from devtrack_sdk import AuthenticationError, HttpStatusError, TransportError

# The package re-exports ``main`` the function under the module's name.
cli = importlib.import_module("devtrack_client.main")


@pytest.fixture(autouse=True)
def no_logging_setup():
    with patch.object(cli, "setup_logging") as setup:
        yield setup


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "DEVTRACK_CONFIG",
        "DEVTRACK_TEAMCITY_TOKEN",
        "DEVTRACK_YOUTRACK_TOKEN",
        "DEVTRACK_GITLAB_TOKEN",
    ):
        monkeypatch.delenv(name, raising=False)


class TestParser:
    """Tests for argument parsing."""

    def test_all_commands_are_routed(self):
        parser = cli.create_parser()
        subparsers = next(
            action for action in parser._actions if isinstance(action, argparse._SubParsersAction)
        )
        assert set(subparsers.choices) == set(cli.COMMAND_HANDLERS)

    def test_list_builds_flags(self):
        args = cli.create_parser().parse_args(
            ["--format", "json", "list-builds", "--master", "--my", "--limit", "10"]
        )
        assert args.format == "json"
        assert args.master and args.my
        assert args.limit == 10

    @pytest.mark.parametrize(
        "argv",
        [
            ["list-builds", "--any", "--master"],
            ["list-builds", "--any", "--branch-name", "x"],
            ["list-builds", "--my", "--author", "bob"],
            ["run-deploy", "--build-id", "1", "--branch-name", "x"],
            ["log-time", "PROJ-1"],
            ["branch-name"],
        ],
    )
    def test_invalid_arguments(self, argv):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(argv)
        assert exc_info.value.code == EXIT_INVALID_ARGS

    def test_no_command_prints_help(self, capsys):
        assert cli.main([]) == EXIT_SUCCESS
        assert "devtrack" in capsys.readouterr().out


class TestRouting:
    """Tests for route_command."""

    def test_dispatches_by_command_name(self, settings):
        ctx = cli.CommandContext(settings=settings)
        args = argparse.Namespace(command="create-sub-issue")

        with patch(
            "devtrack_client.commands.issues.IssueCommands.create_sub_issue", return_value=EXIT_SUCCESS
        ) as handler:
            assert cli.route_command(ctx, args) == EXIT_SUCCESS

        handler.assert_called_once_with(ctx, args)

    def test_unknown_command(self, settings, capsys):
        ctx = cli.CommandContext(settings=settings)
        assert cli.route_command(ctx, argparse.Namespace(command="nope")) == EXIT_INVALID_ARGS
        assert "Unknown command" in capsys.readouterr().err


class TestExitCodes:
    """Errors raised by handlers map to exit codes."""

    def test_missing_config(self, tmp_path, capsys):
        code = cli.main(["--config", str(tmp_path / "missing.yaml"), "branch-name", "PROJ-1"])

        assert code == EXIT_CONFIG_ERROR
        assert "Configuration file not found" in capsys.readouterr().err

    def test_missing_section(self, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text(yaml.safe_dump({"default_branch": "main"}))

        assert cli.main(["--config", str(config), "branch-name", "PROJ-1"]) == EXIT_CONFIG_ERROR

    @pytest.mark.parametrize(
        "error, code",
        [
            (AuthenticationError("Unauthorized", 401), EXIT_AUTH_ERROR),
            (HttpStatusError("Server error", 500, "oops"), EXIT_API_ERROR),
            (TransportError("Connection refused"), EXIT_API_ERROR),
            (PreconditionFailed("Commit first!"), EXIT_PRECONDITION_FAILED),
            (NotFoundInSelection("Nothing selected"), EXIT_NOT_FOUND),
        ],
    )
    def test_handler_errors(self, settings, error, code, capsys):
        with patch.object(cli, "load_settings", return_value=settings), patch.object(
            cli, "route_command", side_effect=error
        ):
            assert cli.main(["create-pull-request"]) == code

        assert str(error) in capsys.readouterr().err

    def test_interrupted(self, settings, capsys):
        with patch.object(cli, "load_settings", return_value=settings), patch.object(
            cli, "route_command", side_effect=KeyboardInterrupt
        ):
            assert cli.main(["pull-requests"]) == 1

        assert "Interrupted." in capsys.readouterr().err

    def test_unwritable_log_file(self, tmp_path, capsys):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        try:
            with patch.object(cli, "setup_logging", setup_logging):
                code = cli.main(["--log-file", str(tmp_path), "branch-name", "PROJ-1"])
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers[:] = handlers
            root.setLevel(level)

        assert code == EXIT_ERROR
        assert "Unexpected error" in capsys.readouterr().err

    def test_unexpected_handler_error(self, settings, capsys):
        with patch.object(cli, "load_settings", return_value=settings), patch(
            "devtrack_client.commands.issues.IssueCommands.branch_name",
            side_effect=RuntimeError("boom"),
        ):
            assert cli.main(["branch-name", "PROJ-1"]) == EXIT_ERROR

        err = capsys.readouterr().err
        assert "Unexpected error: boom" in err
        assert "Traceback" not in err

    def test_unexpected_handler_error_verbose(self, settings, capsys):
        with patch.object(cli, "load_settings", return_value=settings), patch(
            "devtrack_client.commands.issues.IssueCommands.branch_name",
            side_effect=RuntimeError("boom"),
        ):
            assert cli.main(["-v", "branch-name", "PROJ-1"]) == EXIT_ERROR

        err = capsys.readouterr().err
        assert "Traceback" in err
        assert "RuntimeError: boom" in err


class TestLogOptions:
    """Tests for the logging options."""

    def test_defaults(self, settings, no_logging_setup):
        with patch.object(cli, "load_settings", return_value=settings), patch.object(
            cli, "route_command", return_value=EXIT_SUCCESS
        ):
            cli.main(["pull-requests"])

        no_logging_setup.assert_called_once_with(verbosity=0, log_file=None, use_json=False)

    def test_json_log_file(self, settings, no_logging_setup, tmp_path):
        log_file = str(tmp_path / "devtrack.log")
        with patch.object(cli, "load_settings", return_value=settings), patch.object(
            cli, "route_command", return_value=EXIT_SUCCESS
        ):
            cli.main(["-vv", "--log-file", log_file, "--log-json", "pull-requests"])

        no_logging_setup.assert_called_once_with(verbosity=2, log_file=log_file, use_json=True)


class TestEndToEnd:
    """Runs commands against a stub YouTrack server."""

    @pytest.fixture
    def config(self, tmp_path, api_server):
        path = tmp_path / "config.yaml"
        path.write_text(
            yaml.safe_dump(
                {"youtrack": {"client": {"host": api_server.url, "auth_token": "yt-token"}}}
            )
        )
        return path

    def test_branch_name(self, config, api_server, capsys):
        api_server.respond(
            "GET",
            "/api/issues/PROJ-12",
            {"id": "2-12", "idReadable": "PROJ-12", "summary": "Payment fails on checkout"},
        )

        assert cli.main(["--config", str(config), "branch-name", "PROJ-12"]) == EXIT_SUCCESS

        assert capsys.readouterr().out.strip() == "PROJ-12-Payment-fails-on-checkout"
        request = api_server.requests[0]
        assert request["headers"]["Authorization"] == "Bearer yt-token"

    def test_token_from_environment(self, config, api_server, monkeypatch):
        monkeypatch.setenv("DEVTRACK_YOUTRACK_TOKEN", "env-token")
        api_server.respond("GET", "/api/issues/PROJ-1", {"id": "2-1", "idReadable": "PROJ-1", "summary": "x"})

        cli.main(["--config", str(config), "branch-name", "PROJ-1"])

        assert api_server.requests[0]["headers"]["Authorization"] == "Bearer env-token"

    def test_unauthorized(self, config, api_server):
        api_server.respond("GET", "/api/issues/PROJ-1", {"error": "Unauthorized"}, status=401)

        assert cli.main(["--config", str(config), "branch-name", "PROJ-1"]) == EXIT_AUTH_ERROR

    def test_not_found(self, config, api_server):
        assert cli.main(["--config", str(config), "branch-name", "PROJ-404"]) == EXIT_API_ERROR
