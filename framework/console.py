"""
Terminal I/O for the fix cycle: event reporting, spinners and y/n prompts.

The reporter is the only place that writes to the terminal; the prompter is
the only place that reads from it. Both are injectable so the fix cycle can
be driven without a TTY.
"""

import asyncio
import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator

from rich.console import Console

from agent.cancellation import CancellationToken
from framework.streaming import format_event_for_timeline, render_event

logger = logging.getLogger(__name__)


class ConsoleReporter:
    """Renders cycle events on stdout (diffs on stderr)."""

    def __init__(
        self,
        console: Console | None = None,
        err_console: Console | None = None,
    ) -> None:
        self.console = console or Console()
        self.err_console = err_console or (Console(stderr=True) if console is None else console)

    def emit(self, event: dict[str, Any]) -> None:
        logger.debug("event: %s", format_event_for_timeline(event))
        render_event(event, self.console, self.err_console)

    @contextmanager
    def status(self, text: str) -> Iterator[None]:
        """Spinner shown while the cycle waits on the command or the model."""
        with self.console.status(f"[blue]{text}[/blue]", spinner="dots"):
            yield


class ConsolePrompter:
    """
    Asks yes/no questions on the terminal.

    Reads happen on a daemon thread so the event loop keeps running (and a
    newer cycle can cancel the waiting one). At most one read is outstanding:
    if a cancelled cycle left a read pending, the next question adopts it,
    so the line the user types is delivered once, to the live cycle.
    """

    def __init__(
        self,
        console: Console | None = None,
        reader: Callable[[], str] | None = None,
    ) -> None:
        self._console = console or Console()
        self._reader = reader or self._console.input
        self._pending: asyncio.Future | None = None

    async def confirm(self, question: str, token: CancellationToken, default: bool = False) -> bool:
        hint = "Y/n" if default else "y/N"
        while True:
            self._console.print(f"[bold blue]?[/bold blue] [blue]{question}[/blue] [dim]({hint})[/dim] ", end="")
            answer = (await self._next_line(token)).strip().lower()
            if not answer:
                return default
            if answer in ("y", "yes"):
                return True
            if answer in ("n", "no"):
                return False
            self._console.print("[red]Please answer y or n.[/red]")

    async def _next_line(self, token: CancellationToken) -> str:
        if self._pending is None or self._pending.done():
            self._pending = self._start_read()
        pending = self._pending
        line = await token.guard(asyncio.shield(pending))
        if self._pending is pending:
            self._pending = None
        return line

    def _start_read(self) -> asyncio.Future:
        loop = asyncio.get_running_loop()
        future = loop.create_future()

        def _deliver(result: str | None, exc: BaseException | None) -> None:
            if future.done():
                return
            if exc is not None:
                future.set_exception(exc)
            else:
                future.set_result(result)

        def _worker() -> None:
            result, error = None, None
            try:
                result = self._reader()
            except EOFError:
                # stdin closed: every question gets its default
                result = ""
            except Exception as exc:
                error = exc
            try:
                loop.call_soon_threadsafe(_deliver, result, error)
            except RuntimeError:
                # event loop already closed; nobody is waiting
                pass

        threading.Thread(target=_worker, name="gptdd-prompt", daemon=True).start()
        return future
