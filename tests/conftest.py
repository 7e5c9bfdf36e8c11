"""
Shared fixtures: a scripted prompter, a silent reporter and a fake test runner.
"""

import io

import pytest
from rich.console import Console

from agent.config import RunConfiguration
from framework.console import ConsoleReporter
from sandbox.command_runner import CommandResult


class ScriptedPrompter:
    """Answers confirmation questions from a fixed list, recording each question."""

    def __init__(self, answers):
        self.answers = list(answers)
        self.questions = []

    async def confirm(self, question, token, default=False):
        token.raise_if_cancelled()
        self.questions.append(question)
        return self.answers.pop(0) if self.answers else default


class FakeRunner:
    """Returns queued CommandResults without spawning processes."""

    def __init__(self, *results):
        self.results = list(results)
        self.commands = []

    async def __call__(self, command):
        self.commands.append(command)
        return self.results.pop(0) if len(self.results) > 1 else self.results[0]


def failing(stderr="AssertionError: expected bar\n", returncode=1, command="run-tests"):
    return CommandResult(command=command, returncode=returncode, stdout="", stderr=stderr)


def passing(command="run-tests"):
    return CommandResult(command=command, returncode=0, stdout="ok\n", stderr="")


@pytest.fixture
def reporter():
    buffer = io.StringIO()
    console = Console(file=buffer, force_terminal=False, width=120)
    reporter = ConsoleReporter(console=console, err_console=console)
    reporter.buffer = buffer
    return reporter


@pytest.fixture
def target(tmp_path):
    path = tmp_path / "a.txt"
    path.write_text("foo", encoding="utf-8")
    return path


@pytest.fixture
def config(target):
    return RunConfiguration(
        test_to_run="run-tests",
        file_to_fix=target.name,
        api_key="sk-test",
    )
