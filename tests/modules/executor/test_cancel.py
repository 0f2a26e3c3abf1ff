import asyncio
import time

import pytest

from afkbot.modules.executor.cancel import CancelToken, OperationCancelled


@pytest.mark.asyncio
async def test_sleep_returns_after_delay():
    ct = CancelToken()
    started = time.monotonic()
    await ct.sleep(0.05)
    assert time.monotonic() - started >= 0.04


@pytest.mark.asyncio
async def test_cancel_interrupts_sleep_promptly():
    ct = CancelToken()

    async def _cancel_soon():
        await asyncio.sleep(0.02)
        ct.cancel()

    asyncio.create_task(_cancel_soon())
    started = time.monotonic()
    with pytest.raises(OperationCancelled):
        await ct.sleep(5)
    assert time.monotonic() - started < 1


@pytest.mark.asyncio
async def test_sleep_on_cancelled_token_raises_immediately():
    ct = CancelToken()
    ct.cancel()
    ct.cancel()
    assert ct.cancelled is True
    with pytest.raises(OperationCancelled):
        await ct.sleep(0)
