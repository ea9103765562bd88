import pytest

from knowit import cli


@pytest.fixture(autouse=True)
def reset_metadata(monkeypatch):
    """Ensure metadata.version is controllable during tests."""

    def fake_version(name: str) -> str:
        assert name == "knowit"
        return "0.0-test"

    monkeypatch.setattr(cli.metadata, "version", fake_version)
    yield


def test_version_command_handles_missing_package(monkeypatch, capsys):
    monkeypatch.setattr(
        cli.metadata,
        "version",
        lambda name: (_ for _ in ()).throw(cli.metadata.PackageNotFoundError()),
    )
    code = cli.main(["version"])
    captured = capsys.readouterr()
    assert code == 0
    assert captured.out.strip() == "unknown"


@pytest.mark.parametrize("flag", ["version", "--version", "-V"])
def test_version_aliases(flag, capsys):
    assert cli.main([flag]) == 0
    assert capsys.readouterr().out.strip() == "0.0-test"


def test_no_args_prints_usage_and_returns_error(capsys):
    code = cli.main([])
    captured = capsys.readouterr()
    assert code == 2
    assert "Usage: knowit" in captured.out
    assert "Available commands:" in captured.out


def test_help_flag_shows_usage(capsys):
    assert cli.main(["--help"]) == 0
    assert "Usage: knowit" in capsys.readouterr().out


def test_list_outputs_command_table(capsys):
    assert cli.main(["list"]) == 0
    output = capsys.readouterr().out
    for name in ("init", "play", "review", "serve"):
        assert name in output
    assert "(TUI)" in output


def test_help_for_known_command(capsys):
    assert cli.main(["help", "play"]) == 0
    output = capsys.readouterr().out
    assert "play: Play a quiz session" in output
    assert "knowit play --help" in output


def test_help_for_unknown_command(capsys):
    assert cli.main(["help", "bogus"]) == 2
    assert "Unknown command 'bogus'." in capsys.readouterr().err


def test_unknown_command_returns_error(capsys):
    assert cli.main(["bogus"]) == 2
    captured = capsys.readouterr()
    assert "Unknown command 'bogus'." in captured.err
    assert "Available commands:" in captured.err


def test_dispatch_passes_argv_and_restores_sys_argv(monkeypatch):
    import sys

    from knowit.quiz import cli as quiz_cli

    seen = {}

    def fake_main(argv):
        seen["argv"] = list(argv)
        seen["sys_argv"] = list(sys.argv)
        return 3

    monkeypatch.setattr(quiz_cli, "main", fake_main)
    before = list(sys.argv)

    assert cli.main(["play", "--count", "2"]) == 3
    assert seen == {
        "argv": ["--count", "2"],
        "sys_argv": ["knowit play", "--count", "2"],
    }
    assert sys.argv == before


def test_subcommand_system_exit_is_normalized(capsys):
    assert cli.main(["init", "--help"]) == 0
    assert "knowit init" in capsys.readouterr().out
    assert cli.main(["play", "--count", "many"]) == 2


def test_system_exit_message_becomes_status_one(capsys):
    def exits():
        raise SystemExit("fatal: nope")

    assert cli._invoke_main(exits, "knowit x", []) == 1
    assert "fatal: nope" in capsys.readouterr().err


def test_command_table_is_sorted_by_name(monkeypatch):
    monkeypatch.setattr(
        cli,
        "_COMMAND_SPECS",
        (
            cli.CommandSpec(name="zeta", summary="Last."),
            cli.CommandSpec(name="alpha", summary="First."),
        ),
    )

    lines = cli.format_command_table().splitlines()[1:]

    assert [line.split()[0] for line in lines] == ["alpha", "zeta"]
