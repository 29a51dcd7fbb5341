"""Tests for the cancellable next-block wait."""

import asyncio

import pytest

from rps_client.errors import FinalityCancelledError, ReadError
from rps_client.service import CancellationToken, FinalityWaiter, wait_for_next_block


class BlockGateway:
    """Returns block numbers from a script; None entries raise ReadError."""

    def __init__(self, blocks):
        self.blocks = list(blocks)
        self.calls = 0

    async def get_block_number(self):
        self.calls += 1
        value = self.blocks.pop(0) if len(self.blocks) > 1 else self.blocks[0]
        if value is None:
            raise ReadError("getBlockNumber", "timeout")
        return value


@pytest.mark.asyncio
async def test_returns_first_higher_block():
    gateway = BlockGateway([10, 10, 10, 11])
    assert await wait_for_next_block(gateway, interval=0) == 11
    assert gateway.calls == 4


@pytest.mark.asyncio
async def test_poll_errors_are_retried():
    gateway = BlockGateway([10, None, None, 12])
    assert await wait_for_next_block(gateway, interval=0) == 12


@pytest.mark.asyncio
async def test_initial_read_error_propagates():
    gateway = BlockGateway([None])
    with pytest.raises(ReadError):
        await wait_for_next_block(gateway, interval=0)


@pytest.mark.asyncio
async def test_cancelled_token_stops_wait():
    gateway = BlockGateway([10])
    token = CancellationToken()
    task = asyncio.create_task(wait_for_next_block(gateway, interval=5, token=token))
    await asyncio.sleep(0.01)

    token.cancel()

    with pytest.raises(FinalityCancelledError):
        await task


@pytest.mark.asyncio
async def test_waiter_close_cancels_pending_waits():
    waiter = FinalityWaiter(BlockGateway([10]), interval=5)
    task = asyncio.create_task(waiter.wait())
    await asyncio.sleep(0.01)
    assert waiter.pending == 1

    waiter.close()

    with pytest.raises(FinalityCancelledError):
        await task
    assert waiter.pending == 0


@pytest.mark.asyncio
async def test_closed_waiter_refuses_new_waits():
    waiter = FinalityWaiter(BlockGateway([10, 11]), interval=0)
    waiter.close()
    with pytest.raises(FinalityCancelledError):
        await waiter.wait()
