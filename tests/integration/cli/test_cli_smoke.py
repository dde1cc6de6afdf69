"""Smoke tests for the Typer app"""

import pytest
from typer.testing import CliRunner

from chandiff.cli.cli import app


runner = CliRunner()


def test_cli_help():
    """--help lists every command."""
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for name in ("decompose", "diff", "init", "save", "revisions", "compare"):
        assert name in result.output


@pytest.mark.parametrize("command", ["decompose", "diff", "save", "revisions", "compare"])
def test_cli_command_help(command):
    result = runner.invoke(app, [command, "--help"])
    assert result.exit_code == 0
