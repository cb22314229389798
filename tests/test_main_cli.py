from __future__ import annotations

from pathlib import Path

import allure
import click
import neo4j
import prompt_toolkit
import pytest
from click.testing import CliRunner
from conftest import FakeConnector, FakeTerminal

from neo4j_client import __version__
from neo4j_client.config import Settings
from neo4j_client.main import SHELL_CONTROLLER, neo4j_client
from neo4j_client.shell.controllers import ShellCommand

pytestmark = [
    allure.epic("Command Line"),
    allure.feature("Argument Processing"),
]


@pytest.fixture()
def connector(monkeypatch, settings: Settings) -> FakeConnector:
    fake = FakeConnector()
    monkeypatch.setattr(SHELL_CONTROLLER, "terminal_opener", lambda: None)
    monkeypatch.setattr(SHELL_CONTROLLER, "connector", fake)
    monkeypatch.setattr(SHELL_CONTROLLER, "settings_loader", lambda: settings)
    return fake


def test_help_exits_zero_without_connecting(connector: FakeConnector) -> None:
    result = CliRunner().invoke(neo4j_client, ["-h", "localhost"])

    assert result.exit_code == 0
    assert "--pipeline-max" in result.output
    assert "--source-max-depth" in result.output
    assert connector.calls == []


def test_version_lists_client_and_libraries(connector: FakeConnector) -> None:
    result = CliRunner().invoke(neo4j_client, ["--version", "localhost"])

    assert result.exit_code == 0
    assert f"neo4j-client: {__version__}" in result.output
    assert f"neo4j-driver: {neo4j.__version__}" in result.output
    assert f"prompt-toolkit: {prompt_toolkit.__version__}" in result.output
    assert connector.calls == []


def test_batch_run_through_cli(connector: FakeConnector) -> None:
    result = CliRunner().invoke(neo4j_client, ["-p", "pw", "localhost"], input="RETURN 1;\n")

    assert result.exit_code == 0
    assert "query\nRETURN 1\n" in result.output
    assert connector.calls[0]["password"] == "pw"
    assert connector.calls[0]["config"].password is None


def test_invalid_pipeline_max_exits_non_zero(connector: FakeConnector) -> None:
    result = CliRunner().invoke(neo4j_client, ["--pipeline-max", "x", "localhost"])

    assert result.exit_code == 2
    assert "--pipeline-max" in result.output
    assert connector.calls == []


@pytest.mark.parametrize("option", ["--pipeline-max", "--source-max-depth"])
def test_zero_limits_are_usage_errors(connector: FakeConnector, option: str) -> None:
    result = CliRunner().invoke(neo4j_client, [option, "0", "localhost"], input="")

    assert result.exit_code == 2
    assert option in result.output
    assert connector.calls == []


def test_too_many_file_requests_exit_before_connecting(connector: FakeConnector) -> None:
    args = [arg for index in range(129) for arg in ("-i", f"{index}.cypher")]

    result = CliRunner().invoke(neo4j_client, [*args, "localhost"])

    assert result.exit_code == 1
    assert "Too many --source and/or --output args" in result.output
    assert connector.calls == []


def test_output_without_source_is_rejected(connector: FakeConnector, tmp_path: Path) -> None:
    result = CliRunner().invoke(neo4j_client, ["-o", str(tmp_path / "out.csv")])

    assert result.exit_code == 1
    assert "--output/-o must be followed by --source/-i" in result.output


def test_more_than_one_address_is_a_usage_error(connector: FakeConnector) -> None:
    result = CliRunner().invoke(neo4j_client, ["host-a", "host-b"])

    assert result.exit_code == 2
    assert connector.calls == []


def test_options_reach_the_controller_in_command_line_order(monkeypatch) -> None:
    captured: list[ShellCommand] = []

    def _run(command: ShellCommand) -> int:
        captured.append(command)
        return 0

    monkeypatch.setattr(SHELL_CONTROLLER, "run", _run)

    result = CliRunner().invoke(
        neo4j_client,
        [
            "-o",
            "a.csv",
            "--source",
            "x.cypher",
            "--pipeline-max",
            "3",
            "-o",
            "b.csv",
            "-i",
            "y.cypher",
            "--colourise",
            "-vv",
            "graph:7688",
        ],
    )

    assert result.exit_code == 0
    assert captured[0].address == "graph:7688"
    assert captured[0].options == (
        ("output", "a.csv"),
        ("source", "x.cypher"),
        ("pipeline_max", 3),
        ("output", "b.csv"),
        ("source", "y.cypher"),
        ("colorize", True),
        ("verbose", True),
        ("verbose", True),
    )


def test_prompt_after_non_interactive_fails(monkeypatch, connector: FakeConnector) -> None:
    monkeypatch.setattr(SHELL_CONTROLLER, "terminal_opener", FakeTerminal)

    result = CliRunner().invoke(neo4j_client, ["--non-interactive", "-P", "localhost"])

    assert result.exit_code == 1
    assert "Cannot prompt for a password without a tty" in result.output
    assert connector.calls == []


def test_prompt_before_non_interactive_succeeds(monkeypatch, connector: FakeConnector) -> None:
    monkeypatch.setattr(SHELL_CONTROLLER, "terminal_opener", FakeTerminal)

    result = CliRunner().invoke(neo4j_client, ["-P", "--non-interactive", "localhost"], input="")

    assert result.exit_code == 0
    assert len(connector.calls) == 1


def test_password_is_removed_from_parsed_params(monkeypatch) -> None:
    seen: list[tuple[dict[str, object], ShellCommand]] = []

    def _run(command: ShellCommand) -> int:
        seen.append((dict(click.get_current_context().params), command))
        return 0

    monkeypatch.setattr(SHELL_CONTROLLER, "run", _run)

    result = CliRunner().invoke(neo4j_client, ["-u", "neo4j", "-p", "secret", "localhost"])

    assert result.exit_code == 0
    params, command = seen[0]
    assert params["password"] == ()
    assert params["username"] == ("neo4j",)
    assert ("password", "secret") in command.options
