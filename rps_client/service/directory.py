"""
Game Directory - Four independently refreshable views of games by state

The directory is the single source of truth for which games exist and in
which state. Each partition is eventually consistent with the ledger on its
own; there is no ordering between partition refreshes. A failed read keeps
the previous data and marks the partition stale.
"""
import asyncio
import logging
from typing import Callable, Dict, Iterable, List, Optional, Set

from rps_client.errors import ReadError
from rps_client.model import Game, GameDetail, GameState

logger = logging.getLogger(__name__)


def _decode(operation: str, build: Callable):
    """Run a ledger-record conversion; malformed records surface as ReadError."""
    try:
        return build()
    except (KeyError, ValueError, TypeError) as e:
        raise ReadError(operation, f"malformed record: {e!r}") from e


class Partition:
    """Games of one lifecycle state, as of the last successful read"""

    def __init__(self, state: GameState):
        self.state = state
        self.games: List[Game] = []
        self.loaded = False
        self.stale = False
        self.last_error: Optional[ReadError] = None
        # Sequence numbers guard against an older read landing after a newer one
        self.requested_seq = 0
        self.applied_seq = 0

    def ids(self) -> Set[int]:
        return {g.game_id for g in self.games}


class DirectorySnapshot:
    """Read-only copy of all partitions at one point in time"""

    def __init__(self, partitions: Dict[GameState, List[Game]]):
        self._partitions = {state: list(games) for state, games in partitions.items()}

    def games(self, state: GameState) -> List[Game]:
        return list(self._partitions.get(state, []))

    def find(self, game_id: int, state: GameState) -> Optional[Game]:
        for game in self._partitions.get(state, []):
            if game.game_id == game_id:
                return game
        return None


class GameDirectory:
    """Partitioned game lists plus the detail read of the tracked game"""

    def __init__(self, gateway):
        self.gateway = gateway
        self.partitions: Dict[GameState, Partition] = {state: Partition(state) for state in GameState}
        self.tracked_game_id: Optional[int] = None
        self.detail: Optional[GameDetail] = None
        self._tracked_membership: Set[GameState] = set()
        self._detail_seq = 0
        self._listeners: List[Callable[["GameDirectory"], None]] = []

    # ========================================================================
    # Listeners
    # ========================================================================

    def add_listener(self, listener: Callable[["GameDirectory"], None]):
        """Register a callback invoked after every directory mutation."""
        self._listeners.append(listener)

    def _notify(self):
        for listener in self._listeners:
            listener(self)

    # ========================================================================
    # Partitions
    # ========================================================================

    def games(self, state: GameState) -> List[Game]:
        return list(self.partitions[state].games)

    def snapshot(self) -> DirectorySnapshot:
        return DirectorySnapshot({state: p.games for state, p in self.partitions.items()})

    async def fetch(self, state: GameState) -> List[Game]:
        """
        Read one partition from the ledger.

        Returns the fresh games, or the retained previous games when the read
        fails or was overtaken by a newer read of the same partition.
        """
        partition = self.partitions[state]
        partition.requested_seq += 1
        seq = partition.requested_seq

        try:
            records = await self.gateway.get_games_by_state(state.code)
            games = _decode("getGamesByState", lambda: [Game.from_ledger(r, state) for r in records])
        except ReadError as e:
            logger.warning("[Directory] %s refresh failed, keeping %d cached games: %s",
                           state.value, len(partition.games), e)
            partition.stale = True
            partition.last_error = e
            return list(partition.games)

        if seq < partition.applied_seq:
            logger.debug("[Directory] Dropping out-of-order %s read (seq %d < %d)",
                         state.value, seq, partition.applied_seq)
            return list(partition.games)

        partition.games = games
        partition.applied_seq = seq
        partition.loaded = True
        partition.stale = False
        partition.last_error = None
        logger.debug("[Directory] %s: %d games", state.value, len(partition.games))

        await self._check_tracked_membership()
        self._notify()
        return list(partition.games)

    async def refresh(self, state: GameState) -> List[Game]:
        return await self.fetch(state)

    async def refresh_many(self, states: Iterable[GameState]):
        """Refresh several partitions concurrently."""
        await asyncio.gather(*(self.fetch(state) for state in states))

    async def refresh_all(self):
        await self.refresh_many(list(GameState))

    # ========================================================================
    # Tracked game detail
    # ========================================================================

    def _membership(self, game_id: int) -> Set[GameState]:
        return {state for state, p in self.partitions.items() if game_id in p.ids()}

    async def _check_tracked_membership(self):
        if self.tracked_game_id is None:
            return
        membership = self._membership(self.tracked_game_id)
        if membership != self._tracked_membership:
            self._tracked_membership = membership
            await self.refresh_detail()

    def track(self, game_id: Optional[int]):
        """Set (or clear) the game whose detail is kept fresh."""
        if game_id == self.tracked_game_id:
            return
        self.tracked_game_id = game_id
        self.detail = None
        self._tracked_membership = self._membership(game_id) if game_id is not None else set()

    async def get_game(self, game_id: int) -> GameDetail:
        """
        Read one game's detail. Never served from cache.

        Raises:
            ReadError: the ledger read failed or returned a malformed record
        """
        self._detail_seq += 1
        seq = self._detail_seq
        record = await self.gateway.get_game(game_id)
        detail = _decode("getGame", lambda: Game.from_ledger(record))
        if game_id == self.tracked_game_id and seq == self._detail_seq:
            self.detail = detail
        return detail

    async def refresh_detail(self) -> Optional[GameDetail]:
        """Re-read the tracked game's detail; failures keep the previous detail."""
        if self.tracked_game_id is None:
            return None
        try:
            return await self.get_game(self.tracked_game_id)
        except ReadError as e:
            logger.warning("[Directory] Detail refresh for #%s failed: %s", self.tracked_game_id, e)
            return self.detail
