"""
Tests for the operator CLI.
"""

import json

import pytest

from app import cli
from app.application.accounts.authenticate import AuthenticateUserUseCase


def _last_line(text: str) -> str:
    return [line for line in text.splitlines() if line.strip()][-1]


@pytest.fixture
def cli_engine(engine, monkeypatch):
    monkeypatch.setattr("app.infrastructure.database.get_engine", lambda: engine)
    monkeypatch.setattr("app.main.get_engine", lambda: engine)
    return engine


class TestParser:
    def test_issue_token_arguments(self):
        args = cli.build_parser().parse_args(
            ["issue-token", "owner@example.com", "--role", "admin", "--name", "Owner"]
        )
        assert args.email == "owner@example.com"
        assert args.role == "admin"
        assert args.func is cli.cmd_issue_token

    def test_market_close_is_a_task(self):
        args = cli.build_parser().parse_args(["run-task", "market_close"])
        assert args.task == "market_close"

    def test_unknown_task_rejected(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["run-task", "rebuild_everything"])

    def test_command_required(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args([])


class TestIssueToken:
    def test_prints_a_working_token(self, cli_engine, user_repo, capsys):
        assert cli.main(["issue-token", "owner@example.com", "--role", "admin"]) == 0

        token = _last_line(capsys.readouterr().out)
        user = AuthenticateUserUseCase(user_repo).execute(token)
        assert user.email == "owner@example.com"
        assert user.is_admin

    def test_invalid_email(self, cli_engine, capsys):
        assert cli.main(["issue-token", "not-an-email"]) == 2


class TestRunTask:
    def test_expire_subscriptions(self, cli_engine, capsys):
        assert cli.main(["run-task", "expire_subscriptions"]) == 0

        summary = json.loads(_last_line(capsys.readouterr().out))
        assert summary["task"] == "expire_subscriptions"
        assert summary["succeeded"] is True
        assert summary["error"] is None
