"""
Cancellation tokens for fix cycles.

Each fix cycle is bound to exactly one token. The change trigger owns the
live token: a new file-change event cancels it and hands a fresh one to the
next cycle. Work inside a cycle that can suspend (the test subprocess, the
completion request, the confirmation prompts) runs through guard(), which
aborts it as soon as the token is cancelled.
"""

import asyncio
import itertools
import logging
from typing import Any, Awaitable

logger = logging.getLogger(__name__)

_ids = itertools.count(1)


class CycleCancelled(Exception):
    """The cycle was superseded by a newer one. Never shown to the user."""


class CancellationToken:
    """Handle for one in-flight fix cycle."""

    def __init__(self) -> None:
        self.id = next(_ids)
        self._event = asyncio.Event()

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "live"
        return f"<CancellationToken #{self.id} {state}>"

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        if not self._event.is_set():
            logger.debug("Cancelling token #%d", self.id)
            self._event.set()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise CycleCancelled(f"token #{self.id} cancelled")

    async def guard(self, awaitable: Awaitable[Any]) -> Any:
        """
        Await `awaitable` unless this token is cancelled first.

        On cancellation the underlying task is cancelled (and awaited, so
        cleanup such as killing a subprocess runs) and CycleCancelled is
        raised. A result that arrives after cancellation is dropped.
        """
        if self.cancelled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            self.raise_if_cancelled()

        work = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not work.done():
                work.cancel()
                await asyncio.gather(work, return_exceptions=True)

        self.raise_if_cancelled()
        return work.result()
