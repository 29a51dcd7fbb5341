"""
Event Reconciliation Bus - Ledger events trigger targeted re-reads

Each event kind maps to a fixed set of refreshes. Events are hints only: the
payload is logged and the post-event state always comes from a fresh read,
so delivery order across kinds does not matter.
"""
import asyncio
import logging
from typing import Dict, FrozenSet, Optional

from rps_client.config import LEDGER_CONFIG
from rps_client.model import GameState, LedgerEvent, LedgerEventKind

logger = logging.getLogger(__name__)

# Refresh target for the tracked game's detail read
DETAIL = "detail"

REFRESH_TABLE: Dict[LedgerEventKind, FrozenSet] = {
    LedgerEventKind.GAME_CREATED: frozenset({
        GameState.WAITING_FOR_PLAYERS,
    }),
    LedgerEventKind.PLAYER_JOINED: frozenset({
        GameState.WAITING_FOR_PLAYERS,
        GameState.WAITING_FOR_MOVES,
    }),
    LedgerEventKind.MOVE_SUBMITTED: frozenset({
        GameState.WAITING_FOR_MOVES,
        GameState.WAITING_FOR_REVEAL,
        GameState.FINISHED,
        DETAIL,
    }),
    LedgerEventKind.GAME_FINISHED: frozenset({
        GameState.FINISHED,
        GameState.WAITING_FOR_MOVES,
        GameState.WAITING_FOR_REVEAL,
    }),
    LedgerEventKind.GAME_DRAWN: frozenset({
        GameState.FINISHED,
        GameState.WAITING_FOR_MOVES,
        GameState.WAITING_FOR_REVEAL,
    }),
    LedgerEventKind.GAME_WAITING_FOR_DECRYPTION: frozenset({
        GameState.WAITING_FOR_MOVES,
        GameState.WAITING_FOR_REVEAL,
    }),
}


class ReconciliationBus:
    """Consumes the ledger subscription and refreshes the directory"""

    def __init__(self, directory, table: Optional[Dict[LedgerEventKind, FrozenSet]] = None):
        self.directory = directory
        self.table = table or REFRESH_TABLE
        self.dispatched = 0
        self._task: Optional[asyncio.Task] = None

    async def dispatch(self, event: LedgerEvent):
        targets = self.table.get(event.kind, frozenset())
        logger.info("[Bus] %r -> refresh %s", event, sorted(str(getattr(t, "value", t)) for t in targets))
        self.dispatched += 1

        partitions = [t for t in targets if isinstance(t, GameState)]
        if partitions:
            await self.directory.refresh_many(partitions)
        if DETAIL in targets:
            await self.directory.refresh_detail()

    async def _dispatch_logged(self, event: LedgerEvent):
        try:
            await self.dispatch(event)
        except Exception:
            logger.exception("[Bus] Refresh after %r failed", event)

    async def run(self, gateway):
        """
        Dispatch every event from the gateway until the subscription ends or
        the task is cancelled. A failing subscription is re-opened after
        `events_retry_delay`.
        """
        while True:
            try:
                async for event in gateway.subscribe():
                    await self._dispatch_logged(event)
                return
            except Exception:
                logger.exception("[Bus] Event subscription failed, resubscribing")
                await asyncio.sleep(LEDGER_CONFIG["events_retry_delay"])

    def start(self, gateway) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run(gateway))
        return self._task

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
