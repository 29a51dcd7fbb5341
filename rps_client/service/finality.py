"""
Finality Wait - Block until the chain has produced at least one new block

Used before submitting a move so the transaction is not sent against a block
that a reorg or mempool race could still invalidate. It is a liveness wait
with no retry bound; it ends when a new block shows up or its token is
cancelled.
"""
import asyncio
import logging
from typing import Optional, Set

from rps_client.config import GAME_CONFIG
from rps_client.errors import FinalityCancelledError, ReadError

logger = logging.getLogger(__name__)


class CancellationToken:
    """One-shot cancellation flag that also wakes sleepers immediately"""

    def __init__(self):
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self):
        self._event.set()

    async def sleep(self, seconds: float) -> bool:
        """Sleep up to `seconds`; returns True if cancelled meanwhile."""
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
            return True
        except asyncio.TimeoutError:
            return False


async def wait_for_next_block(
    gateway,
    interval: Optional[float] = None,
    token: Optional[CancellationToken] = None,
) -> int:
    """
    Wait until the block height is strictly greater than at call time.

    Returns:
        The new block number

    Raises:
        ReadError: the starting height could not be read
        FinalityCancelledError: the token was cancelled
    """
    interval = GAME_CONFIG["block_poll_interval"] if interval is None else interval
    token = token or CancellationToken()

    current_block = await gateway.get_block_number()
    logger.info("[Finality] Current block: %d, waiting for 1 block before sending transaction...", current_block)

    while True:
        if token.cancelled:
            raise FinalityCancelledError("Finality wait cancelled")
        try:
            new_block = await gateway.get_block_number()
        except ReadError as e:
            logger.warning("[Finality] Block number poll failed, retrying: %s", e)
        else:
            if new_block > current_block:
                logger.info("[Finality] New block mined: %d", new_block)
                return new_block
        if await token.sleep(interval):
            raise FinalityCancelledError("Finality wait cancelled")


class FinalityWaiter:
    """
    Owns the finality waits started by one component.

    close() cancels every pending wait so no poll outlives its owner.
    """

    def __init__(self, gateway, interval: Optional[float] = None):
        self.gateway = gateway
        self.interval = interval
        self._tokens: Set[CancellationToken] = set()
        self.closed = False

    @property
    def pending(self) -> int:
        return len(self._tokens)

    async def wait(self) -> int:
        if self.closed:
            raise FinalityCancelledError("Finality waiter is closed")
        token = CancellationToken()
        self._tokens.add(token)
        try:
            return await wait_for_next_block(self.gateway, self.interval, token)
        finally:
            self._tokens.discard(token)

    def cancel_all(self):
        for token in list(self._tokens):
            token.cancel()

    def close(self):
        self.closed = True
        self.cancel_all()
