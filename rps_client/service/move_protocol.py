"""
Move Submission Protocol - Encrypt, wait for finality, submit

submit_move is atomic from the caller's point of view: a failure in any step
stops before the next one, so a failed encrypt or a cancelled wait never
reaches the ledger, and a rejected write leaves `submitted` False for retry.
Also hosts the other game writes (create, join, reveal).
"""
import logging
from typing import Any, Dict, Optional, Set, Union

from rps_client.config import FHE_CONFIG
from rps_client.errors import AuthorizationError, MoveInProgressError, WriteError
from rps_client.model import ActiveGameContext, Choice, Game, GameState, parse_ether

from .finality import FinalityWaiter

logger = logging.getLogger(__name__)


class MoveProtocol:
    """Ledger writes for one local session"""

    def __init__(self, gateway, session, directory, finality: FinalityWaiter, game_logger=None):
        self.gateway = gateway
        self.session = session
        self.directory = directory
        self.finality = finality
        self.game_logger = game_logger
        # Games with a move currently between encrypt and submit
        self._in_flight: Set[int] = set()

    def is_in_flight(self, game_id: int) -> bool:
        return game_id in self._in_flight

    async def submit_move(self, context: ActiveGameContext, choice: Choice) -> Dict[str, Any]:
        """
        Commit an encrypted choice for the context's game.

        Steps:
        1. Encrypt the choice with the FHE session
        2. Wait for one new block
        3. Send submitMove(game_id, ciphertext)

        Raises:
            ValueError: no choice selected
            MoveInProgressError: a move for this game is encrypting or was submitted
            EncryptError: encryption failed, nothing was written
            FinalityCancelledError: the wait was cancelled, nothing was written
            WriteError: the ledger rejected the move
        """
        if choice is None or Choice(choice) == Choice.NONE:
            raise ValueError("Please select a choice")
        choice = Choice(choice)

        game_id = context.game.game_id
        if context.busy or game_id in self._in_flight:
            raise MoveInProgressError(game_id)

        self._in_flight.add(game_id)
        context.encrypting = True
        context.local_choice = choice
        try:
            logger.info("[Move] Encrypting choice for game #%d", game_id)
            ciphertext = await self.session.encrypt(int(choice), FHE_CONFIG["choice_type"])

            await self.finality.wait()

            logger.info("[Move] Submitting encrypted move for game #%d", game_id)
            receipt = await self.gateway.submit_move(game_id, ciphertext)
            context.submitted = True
        finally:
            context.encrypting = False
            self._in_flight.discard(game_id)

        if self.game_logger is not None:
            self.game_logger.log_submission(game_id, choice)

        await self.directory.refresh_many([
            GameState.WAITING_FOR_MOVES,
            GameState.WAITING_FOR_REVEAL,
            GameState.FINISHED,
        ])
        await self.directory.refresh_detail()
        return receipt

    async def reveal_winner(self, game: Game, identity: Optional[str]) -> Dict[str, Any]:
        """
        Ask the ledger to decrypt and settle a game waiting for reveal.

        Raises:
            AuthorizationError: the local identity is not a player
            WriteError: the game is not waiting for reveal, or the ledger rejected the call
        """
        if not game.has_player(identity):
            raise AuthorizationError(game.game_id, identity)
        if game.state != GameState.WAITING_FOR_REVEAL:
            raise WriteError("safelyRevealWinner", f"game #{game.game_id} is {game.state.value}")

        logger.info("[Move] Revealing result of game #%d", game.game_id)
        receipt = await self.gateway.safely_reveal_winner(game.game_id)

        await self.directory.refresh_many([
            GameState.FINISHED,
            GameState.WAITING_FOR_MOVES,
            GameState.WAITING_FOR_REVEAL,
        ])
        await self.directory.refresh_detail()
        return receipt

    async def create_game(self, bet: Union[str, int]) -> Dict[str, Any]:
        """
        Open a new game with the given bet (ether string or wei).

        Raises:
            ValueError: bet is missing or not positive
            WriteError: the ledger rejected the call
        """
        try:
            value = parse_ether(bet) if isinstance(bet, str) else int(bet)
        except ValueError:
            value = 0
        if value <= 0:
            raise ValueError("Please enter a valid bet amount")

        logger.info("[Move] Creating game with bet %d wei", value)
        receipt = await self.gateway.create_game(value)
        await self.directory.refresh(GameState.WAITING_FOR_PLAYERS)
        return receipt

    async def join_game(self, game: Game, identity: Optional[str]) -> Dict[str, Any]:
        """
        Join an open game, matching its bet.

        Raises:
            AuthorizationError: the creator tried to join their own game
            WriteError: the game is no longer open, or the ledger rejected the call
        """
        if game.is_player1(identity):
            raise AuthorizationError(game.game_id, identity, "You cannot join your own game")
        if game.state != GameState.WAITING_FOR_PLAYERS:
            raise WriteError("joinGame", f"game #{game.game_id} is {game.state.value}")

        logger.info("[Move] Joining game #%d", game.game_id)
        receipt = await self.gateway.join_game(game.game_id, game.bet_amount)
        await self.directory.refresh_many([
            GameState.WAITING_FOR_PLAYERS,
            GameState.WAITING_FOR_MOVES,
        ])
        return receipt
