"""
Tests for the command-line entry point: flags, exit codes and the
guarantee that a bad configuration never touches the file or the network.
"""

import pytest

import app
from llm.router import LLMRouter


@pytest.fixture
def no_network(monkeypatch):
    """Fail the test if anything tries to build a completion client."""

    def _forbidden(*args, **kwargs):
        raise AssertionError("completion client constructed")

    monkeypatch.setattr(LLMRouter, "__init__", _forbidden)


@pytest.mark.parametrize(
    "argv, flag",
    [
        (["-f", "a.txt", "-a", "k"], "--testToRun"),
        (["-t", "exit 1", "-a", "k"], "--fileToFix"),
        (["-t", "exit 1", "-f", "a.txt"], "--apiKey"),
        ([], "--testToRun"),
    ],
)
def test_missing_flag_exits_non_zero(argv, flag, tmp_path, monkeypatch, capsys, no_network):
    monkeypatch.chdir(tmp_path)
    target = tmp_path / "a.txt"
    target.write_text("foo", encoding="utf-8")

    assert app.main(argv) == 1
    assert f"{flag} is required" in capsys.readouterr().err
    assert target.read_text(encoding="utf-8") == "foo"


def test_missing_file_exits_non_zero(tmp_path, monkeypatch, capsys, no_network):
    monkeypatch.chdir(tmp_path)
    marker = tmp_path / "ran"

    code = app.main(["-t", f"touch {marker}", "-f", "missing.py", "-a", "k"])

    assert code == 1
    assert "File to fix does not exist" in capsys.readouterr().err
    assert not marker.exists()


def test_passing_tests_exit_zero(tmp_path, monkeypatch, no_network):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "a.txt").write_text("foo", encoding="utf-8")

    assert app.main(["-t", "exit 0", "-f", "a.txt", "-a", "k"]) == 0


def test_command_not_found_exits_non_zero(tmp_path, monkeypatch, capsys, no_network):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "a.txt").write_text("foo", encoding="utf-8")

    code = app.main(["-t", "gptdd_definitely_missing_binary", "-f", "a.txt", "-a", "k"])

    assert code == 1
    assert "Could not run test command" in capsys.readouterr().err


def test_unmatched_watch_glob_exits_non_zero(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "a.txt").write_text("foo", encoding="utf-8")

    code = app.main(["-t", "exit 0", "-f", "a.txt", "-a", "k", "-w", "src/**/*.nope"])

    assert code == 1
    assert "matched no files" in capsys.readouterr().err


def test_long_and_short_flags_parse_alike():
    parser = app.build_parser()
    short = parser.parse_args(["-t", "pytest", "-f", "m.py", "-a", "k", "-w", "*.py"])
    long = parser.parse_args(["--testToRun", "pytest", "--fileToFix", "m.py", "--apiKey", "k", "--watchFiles", "*.py"])
    assert vars(short) == vars(long)
