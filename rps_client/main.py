"""
Game Client - Wires the session, directory, resolver, bus and move protocol
Every collaborator failure is caught here and turned into a notification.
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional, Set, Union

from rps_client.config import GAME_CONFIG
from rps_client.errors import (
    AuthorizationError,
    EncryptError,
    FinalityCancelledError,
    GameNotFoundError,
    InitError,
    MoveInProgressError,
    PermitError,
    ReadError,
    StaleSessionError,
    WriteError,
)
from rps_client.model import (
    ActiveGameContext,
    Choice,
    Game,
    GameState,
    ResolverPhase,
    ResolverView,
)
from rps_client.notifications import Notifier
from rps_client.service import (
    ActiveGameResolver,
    FinalityWaiter,
    GameDirectory,
    MoveProtocol,
    ReconciliationBus,
)
from rps_client.service.fhe_session import SessionManager

logger = logging.getLogger(__name__)


class GameClient:
    """Client-side state for one connected wallet"""

    def __init__(
        self,
        gateway,
        backend,
        notifier: Optional[Notifier] = None,
        game_logger=None,
        poll_interval: Optional[float] = None,
        block_poll_interval: Optional[float] = None,
    ):
        self.gateway = gateway
        self.notifier = notifier or Notifier()
        self.poll_interval = poll_interval or GAME_CONFIG["directory_poll_interval"]

        # Managers
        self.session = SessionManager(backend, self.notifier)
        self.directory = GameDirectory(gateway)
        self.resolver = ActiveGameResolver(game_logger=game_logger)
        self.finality = FinalityWaiter(gateway, block_poll_interval)
        self.moves = MoveProtocol(gateway, self.session, self.directory, self.finality, game_logger)
        self.bus = ReconciliationBus(self.directory)

        self.chain_id: Optional[int] = None
        self.identity: Optional[str] = None
        self._poll_task: Optional[asyncio.Task] = None
        self._background: Set[asyncio.Task] = set()

        self.directory.add_listener(self._on_directory_change)

    # ========================================================================
    # Wiring
    # ========================================================================

    def _on_directory_change(self, directory: GameDirectory):
        view = self.resolver.update(directory.snapshot())
        self._sync_tracking(view)

    def _sync_tracking(self, view: ResolverView):
        """Keep the detail read pointed at the in-game game."""
        game_id = view.game_id if view.phase == ResolverPhase.IN_GAME else None
        if game_id == self.directory.tracked_game_id:
            return
        self.directory.track(game_id)
        if game_id is not None:
            task = asyncio.ensure_future(self.directory.refresh_detail())
            self._background.add(task)
            task.add_done_callback(self._background.discard)

    # ========================================================================
    # Connection lifecycle
    # ========================================================================

    async def connect(self, chain_id: int, account: str) -> bool:
        """
        Bind the client to a (chain, wallet) pair and load the directory.

        Returns:
            True when the FHE session is usable
        """
        account = account.lower()
        if (chain_id, account) != (self.chain_id, self.identity):
            self.finality.cancel_all()
            self.chain_id = chain_id
            self.identity = account
            self.resolver.set_identity(account)
            self._sync_tracking(self.resolver.view)
            if hasattr(self.gateway, "account"):
                self.gateway.account = account

        ready = True
        try:
            await self.session.initialize(chain_id, account)
        except (InitError, StaleSessionError) as e:
            logger.error("[Client] FHE session unavailable: %s", e)
            ready = False

        await self.directory.refresh_all()
        return ready

    def disconnect(self):
        self.finality.cancel_all()
        self.session.reset()
        self.chain_id = None
        self.identity = None
        self.resolver.set_identity(None)
        self._sync_tracking(self.resolver.view)

    async def _poll_loop(self):
        while True:
            await asyncio.sleep(self.poll_interval)
            try:
                await self.directory.refresh_all()
            except Exception:
                logger.exception("[Client] Directory poll failed, retrying next interval")

    def start(self):
        """Start the event subscription and the periodic directory reads."""
        self.bus.start(self.gateway)
        if self._poll_task is None or self._poll_task.done():
            self._poll_task = asyncio.create_task(self._poll_loop())

    async def close(self):
        """Tear down: cancels pending finality waits, polling and the bus."""
        self.finality.close()
        await self.bus.stop()
        tasks = list(self._background)
        if self._poll_task is not None:
            tasks.append(self._poll_task)
            self._poll_task = None
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        if hasattr(self.gateway, "close"):
            await self.gateway.close()

    # ========================================================================
    # Views
    # ========================================================================

    @property
    def view(self) -> ResolverView:
        return self.resolver.view

    @property
    def context(self) -> Optional[ActiveGameContext]:
        return self.resolver.context

    def games(self, state: GameState) -> List[Game]:
        return self.directory.games(state)

    def freshest(self, game_id: int) -> Optional[Game]:
        """Most recently read copy of a game across partitions and the detail read."""
        candidates = [g for p in self.directory.partitions.values() for g in p.games if g.game_id == game_id]
        detail = self.directory.detail
        if detail is not None and detail.game_id == game_id:
            candidates.append(detail)
        if not candidates:
            return None
        return max(candidates, key=lambda g: g.fetched_at)

    def opponent_submitted(self) -> bool:
        context = self.context
        if context is None:
            return False
        game = self.freshest(context.game.game_id) or context.game
        return game.opponent_submitted(self.identity)

    def can_reveal(self, game_id: Optional[int] = None) -> bool:
        """Reveal control is enabled for participants of a game waiting for reveal."""
        game = self._reveal_target(game_id)
        return (
            game is not None
            and game.state == GameState.WAITING_FOR_REVEAL
            and game.has_player(self.identity)
        )

    # ========================================================================
    # Navigation
    # ========================================================================

    def open_game_by_id(self, game_id: int, state: GameState) -> Optional[ResolverView]:
        try:
            view = self.resolver.open_game_by_id(game_id, state, self.directory.snapshot())
        except AuthorizationError as e:
            self.notifier.info(str(e))
            return None
        except GameNotFoundError as e:
            self.notifier.error(str(e))
            return None
        self._sync_tracking(view)
        return view

    def return_to_list(self) -> ResolverView:
        view = self.resolver.dismiss()
        self._sync_tracking(view)
        return view

    # ========================================================================
    # Writes
    # ========================================================================

    async def create_game(self, bet: Union[str, int]) -> Optional[Dict[str, Any]]:
        try:
            receipt = await self.moves.create_game(bet)
        except ValueError as e:
            self.notifier.error(str(e))
            return None
        except WriteError as e:
            logger.error("[Client] Error creating game: %s", e)
            self.notifier.error("Error creating game")
            return None
        self.notifier.success("Game created")
        return receipt

    async def join_game(self, game_id: int) -> Optional[Dict[str, Any]]:
        game = self.directory.snapshot().find(game_id, GameState.WAITING_FOR_PLAYERS)
        if game is None:
            self.notifier.error(str(GameNotFoundError(game_id, GameState.WAITING_FOR_PLAYERS.value)))
            return None
        try:
            receipt = await self.moves.join_game(game, self.identity)
        except AuthorizationError as e:
            self.notifier.info(str(e))
            return None
        except WriteError as e:
            logger.error("[Client] Error joining game: %s", e)
            self.notifier.error("Error joining game")
            return None
        self.notifier.success(f"Joined game #{game_id}")
        return receipt

    async def submit_move(self, choice: Choice) -> bool:
        context = self.context
        if context is None:
            self.notifier.error("No active game")
            return False
        if not self.session.is_ready:
            self.notifier.error("FHE session is not ready")
            return False

        try:
            await self.moves.submit_move(context, choice)
        except ValueError as e:
            self.notifier.error(str(e))
            return False
        except MoveInProgressError as e:
            self.notifier.info(str(e))
            return False
        except EncryptError as e:
            self.notifier.error(f"Failed to encrypt choice: {e}")
            return False
        except FinalityCancelledError:
            self.notifier.info("Move submission cancelled")
            return False
        except (ReadError, WriteError) as e:
            logger.error("[Client] Error submitting encrypted move: %s", e)
            self.notifier.error("Error submitting move")
            return False

        self.notifier.success("Move submitted successfully! Your choice is encrypted and private.")
        return True

    def _reveal_target(self, game_id: Optional[int]) -> Optional[Game]:
        if game_id is None:
            game_id = self.view.game_id
        if game_id is None:
            return None
        return self.freshest(game_id)

    async def reveal_winner(self, game_id: Optional[int] = None) -> bool:
        game = self._reveal_target(game_id)
        if game is None:
            self.notifier.error("No game to reveal")
            return False
        try:
            await self.moves.reveal_winner(game, self.identity)
        except AuthorizationError as e:
            self.notifier.info(str(e))
            return False
        except WriteError as e:
            logger.error("[Client] Error revealing game result: %s", e)
            self.notifier.error("Error revealing game result")
            return False
        self.notifier.success("Game result revealed and prizes distributed!")
        return True

    # ========================================================================
    # Permits
    # ========================================================================

    async def create_permit(self, options: Optional[Dict[str, Any]] = None):
        try:
            return await self.session.create_permit(options)
        except PermitError as e:
            logger.error("[Client] Permit creation failed: %s", e)
            self.notifier.error(str(e))
            return None

    def remove_permit(self, permit_hash: str):
        return self.session.remove_permit(permit_hash)

    def set_active_permit(self, permit_hash: str):
        try:
            return self.session.set_active_permit(permit_hash)
        except PermitError as e:
            self.notifier.error(str(e))
            return None
