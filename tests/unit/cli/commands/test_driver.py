"""
Unit tests for the 'driver' command.
"""

from synres.cli.main import main


def test_unresolvable_driver(runner, project):
    result = runner.invoke(main, ["driver", "mi-connector-db", "MYSQL", "-p", str(project)])

    assert result.exit_code == 1
    assert "Could not resolve driver" in result.output
