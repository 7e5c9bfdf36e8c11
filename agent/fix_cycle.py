"""
The fix cycle: run the tests, ask the model for a fix, let the user apply it.

One call to FixCycle.run() performs:
  validate config → read target → run test command
       ↓ (exit 0) ─────────────────────────────→ done (passed)
       ↓ (failed)
  request fix → show diff → confirm apply → confirm re-run
       ↓ (re-run) → back to the top, same token
       ↓ (no)     → done (proposed)

Every suspension point (subprocess, completion request, prompts) goes
through the cycle's CancellationToken, so a newer cycle started by the
change trigger aborts this one wherever it is waiting.

Collaborators are injected to allow testing without a terminal, a network
or a real test suite.
"""

import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Protocol

from agent.cancellation import CancellationToken
from agent.config import RunConfiguration
from agent.diff import diff_chars
from agent.events import (
    CycleEvent,
    step_event,
    file_preview_event,
    tests_passed_event,
    test_failure_event,
    proposal_event,
    changes_applied_event,
    changes_declined_event,
    watching_event,
)
from agent.state import CycleOutcome, FixProposal, PASSED, PROPOSED
from llm.router import LLMRouter
from sandbox.command_runner import CommandResult, check_runnable, run_command

logger = logging.getLogger(__name__)

CommandRunner = Callable[[str], Awaitable[CommandResult]]


class TargetFileNotFoundError(FileNotFoundError):
    """The file named by --fileToFix does not exist."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"File to fix does not exist: {path}")
        self.path = path


class Prompter(Protocol):
    async def confirm(self, question: str, token: CancellationToken, default: bool = False) -> bool:
        ...


class Reporter(Protocol):
    def emit(self, event: dict[str, Any]) -> None:
        ...

    def status(self, text: str):
        ...


class FixCycle:
    """Drives test → propose → apply attempts for one run configuration."""

    def __init__(
        self,
        config: RunConfiguration,
        router: LLMRouter | None = None,
        prompter: Prompter | None = None,
        reporter: Reporter | None = None,
        runner: CommandRunner = run_command,
        cwd: Path | None = None,
    ) -> None:
        self.config = config
        self._router = router
        self._runner = runner
        self._cwd = cwd
        if prompter is None or reporter is None:
            from framework.console import ConsolePrompter, ConsoleReporter
            prompter = prompter or ConsolePrompter()
            reporter = reporter or ConsoleReporter()
        self._prompter = prompter
        self._reporter = reporter
        # Every event emitted by this instance, across all runs
        self.events: list[dict[str, Any]] = []

    @property
    def router(self) -> LLMRouter:
        # Built lazily so a bad configuration never constructs a client
        if self._router is None:
            self._router = LLMRouter(api_key=self.config.api_key)
        return self._router

    def emit(self, event: CycleEvent) -> None:
        data = event.to_dict()
        self.events.append(data)
        self._reporter.emit(data)

    async def run(self, token: CancellationToken) -> CycleOutcome:
        """
        Run attempts until the tests pass or the user declines a re-run.

        Raises:
            ConfigurationError: a required flag is missing
            TargetFileNotFoundError: --fileToFix does not exist
            CommandNotRunnableError: the test command itself is broken
            CompletionTransportError / CompletionResponseError: the fix request failed
            CycleCancelled: `token` was cancelled by a newer cycle
        """
        attempt = 0
        while True:
            attempt += 1
            outcome, rerun = await self._attempt(token, attempt)
            if not rerun:
                break
            self.emit(step_event("Running the tests again...", attempt=attempt))

        if self.config.watch_enabled:
            self.emit(watching_event(self.config.watch_files))
        return outcome

    async def _attempt(self, token: CancellationToken, attempt: int) -> tuple[CycleOutcome, bool]:
        self.config.validate()
        token.raise_if_cancelled()

        path = self.config.target_path(self._cwd)
        if not path.is_file():
            raise TargetFileNotFoundError(path)
        original = path.read_text(encoding="utf-8")
        self.emit(file_preview_event(str(path), original, attempt=attempt))

        with self._reporter.status(f"Running command: {self.config.test_to_run}"):
            result = await token.guard(self._runner(self.config.test_to_run))

        if result.passed:
            self.emit(tests_passed_event(self.config.test_to_run, attempt=attempt))
            return CycleOutcome(status=PASSED, attempts=attempt), False

        check_runnable(result)
        failure_text = result.failure_text
        self.emit(test_failure_event(failure_text, result.returncode, attempt=attempt))

        with self._reporter.status("Getting suggested response..."):
            proposal: FixProposal = await token.guard(
                self.router.request_fix(failure_text, original)
            )
        logger.info(
            "Proposal received: %d chars from %s/%s",
            len(proposal.text),
            proposal.provider,
            proposal.model,
        )

        segments = diff_chars(original, proposal.text)
        self.emit(proposal_event([s.to_dict() for s in segments], attempt=attempt))

        applied = False
        if await self._prompter.confirm("Apply the suggested changes?", token):
            # A stale proposal must never reach the disk
            token.raise_if_cancelled()
            path.write_text(proposal.text, encoding="utf-8", newline="")
            applied = True
            self.emit(changes_applied_event(str(path), attempt=attempt))
        else:
            self.emit(changes_declined_event(attempt=attempt))

        rerun = await self._prompter.confirm("Run the tests again?", token)
        return CycleOutcome(status=PROPOSED, applied=applied, attempts=attempt), rerun
