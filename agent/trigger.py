"""
Change trigger: restarts the fix cycle whenever a watched file changes.

Policy is "latest wins": each change batch cancels the live cycle's token and
starts a fresh cycle with a new token. Changes are never queued; the only
coalescing is what watchfiles does natively (it batches a burst of
filesystem events into one yield).

The live token, the live task and the stop signal are fields of the
trigger, so several triggers can coexist (e.g. in tests).
"""

import asyncio
import glob
import logging
from contextlib import aclosing
from pathlib import Path
from typing import Any, AsyncGenerator, Callable

from watchfiles import Change, DefaultFilter, awatch

from agent.cancellation import CancellationToken, CycleCancelled
from agent.config import ConfigurationError
from agent.events import file_changed_event, watching_event
from agent.fix_cycle import FixCycle

logger = logging.getLogger(__name__)

Watcher = Callable[..., AsyncGenerator[set[tuple[Change, str]], None]]


def resolve_glob(pattern: str, root: Path | None = None) -> list[Path]:
    """Expand `pattern` (with ** support) relative to `root`, as absolute paths."""
    root = root or Path.cwd()
    matches = glob.glob(pattern, root_dir=root, recursive=True)
    return sorted({(root / match).resolve() for match in matches})


def watch_roots(paths: list[Path]) -> list[Path]:
    """Directories to subscribe to: matched directories and matched files' parents."""
    roots = {p if p.is_dir() else p.parent for p in paths}
    return sorted(roots)


class GlobFilter(DefaultFilter):
    """
    Accept changes to paths that currently match the watch pattern.

    The pattern is re-expanded per batch so files created after startup
    (editors that save via rename, new test files) are picked up.
    """

    def __init__(self, pattern: str, root: Path | None = None) -> None:
        super().__init__()
        self._pattern = pattern
        self._root = root or Path.cwd()

    def __call__(self, change: Change, path: str) -> bool:
        if change == Change.deleted or not super().__call__(change, path):
            return False
        return Path(path).resolve() in set(resolve_glob(self._pattern, self._root))


class ChangeTrigger:
    """Watches the configured glob and keeps at most one fix cycle alive."""

    def __init__(
        self,
        cycle: FixCycle,
        watcher: Watcher = awatch,
        cwd: Path | None = None,
    ) -> None:
        self.cycle = cycle
        self._watcher = watcher
        self._cwd = cwd
        self._token: CancellationToken | None = None
        self._tasks: set[asyncio.Task] = set()
        self._stop_event: asyncio.Event | None = None
        self._failure: BaseException | None = None

    @property
    def token(self) -> CancellationToken | None:
        """The live cycle's token."""
        return self._token

    async def run(self) -> None:
        """
        Start the first cycle, then restart on every change until stopped.

        Raises:
            ConfigurationError: the pattern matches no files
            Exception: whatever a (non-superseded) cycle raised
        """
        pattern = self.cycle.config.watch_files
        matched = resolve_glob(pattern, self._cwd)
        if not matched:
            raise ConfigurationError(
                f"--watchFiles pattern {pattern!r} matched no files. "
                "If your shell expanded the glob, wrap it in quotes."
            )
        logger.info("Watching %d paths for %r", len(matched), pattern)

        self._stop_event = asyncio.Event()
        self._failure = None
        self.cycle.emit(watching_event(pattern))
        self._restart()

        stream = self._watcher(
            *watch_roots(matched),
            watch_filter=GlobFilter(pattern, self._cwd),
            stop_event=self._stop_event,
        )
        try:
            async with aclosing(stream):
                async for changes in stream:
                    if self._stop_event.is_set():
                        break
                    paths = sorted({path for _, path in changes})
                    logger.debug("Change batch: %s", paths)
                    self.cycle.emit(file_changed_event(paths))
                    self._restart()
        finally:
            await self._shutdown()

        if self._failure is not None:
            raise self._failure

    def stop(self) -> None:
        """Cancel the live cycle and end the watch subscription."""
        if self._token is not None:
            self._token.cancel()
        if self._stop_event is not None:
            self._stop_event.set()

    def _restart(self) -> None:
        if self._token is not None:
            self._token.cancel()
        token = CancellationToken()
        self._token = token
        task = asyncio.create_task(self._run_cycle(token), name=f"fix-cycle-{token.id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_cycle(self, token: CancellationToken) -> Any:
        try:
            return await self.cycle.run(token)
        except CycleCancelled:
            logger.debug("Cycle %r superseded", token)
        except Exception as exc:
            if token.cancelled:
                logger.debug("Superseded cycle %r ended with %s", token, exc)
                return None
            logger.debug("Cycle %r failed", token, exc_info=True)
            self._failure = exc
            self.stop()

    async def _shutdown(self) -> None:
        self.stop()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
