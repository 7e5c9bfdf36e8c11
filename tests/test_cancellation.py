"""
Tests for cancellation tokens.
"""

import asyncio

import pytest
from agent.cancellation import CancellationToken, CycleCancelled


@pytest.mark.asyncio
async def test_guard_returns_result_when_live():
    token = CancellationToken()

    async def work():
        return 42

    assert await token.guard(work()) == 42


@pytest.mark.asyncio
async def test_guard_propagates_work_errors():
    token = CancellationToken()

    async def work():
        raise ValueError("boom")

    with pytest.raises(ValueError):
        await token.guard(work())


@pytest.mark.asyncio
async def test_guard_aborts_pending_work_on_cancel():
    token = CancellationToken()
    cancelled = asyncio.Event()

    async def work():
        try:
            await asyncio.sleep(30)
        except asyncio.CancelledError:
            cancelled.set()
            raise

    guarded = asyncio.create_task(token.guard(work()))
    await asyncio.sleep(0.01)
    token.cancel()

    with pytest.raises(CycleCancelled):
        await guarded
    assert cancelled.is_set()


@pytest.mark.asyncio
async def test_guard_drops_result_resolving_after_cancel():
    token = CancellationToken()
    loop = asyncio.get_running_loop()
    late = loop.create_future()

    guarded = asyncio.create_task(token.guard(asyncio.shield(late)))
    await asyncio.sleep(0.01)
    token.cancel()
    late.set_result("stale proposal")

    with pytest.raises(CycleCancelled):
        await guarded


@pytest.mark.asyncio
async def test_guard_on_cancelled_token_never_starts_work():
    token = CancellationToken()
    token.cancel()
    started = False

    async def work():
        nonlocal started
        started = True

    with pytest.raises(CycleCancelled):
        await token.guard(work())
    assert started is False


def test_cancel_is_idempotent():
    token = CancellationToken()
    assert not token.cancelled
    token.cancel()
    token.cancel()
    assert token.cancelled
    with pytest.raises(CycleCancelled):
        token.raise_if_cancelled()


def test_tokens_are_distinct():
    first, second = CancellationToken(), CancellationToken()
    first.cancel()
    assert first.id != second.id
    assert not second.cancelled
