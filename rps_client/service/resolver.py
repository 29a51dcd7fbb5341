"""
Active-Game Resolver - Which game (if any) the local identity is playing

States: Idle, InGame(game), ShowingResult(result).

`recompute` is a pure function of the previous view, the current directory
snapshot and the local identity. It is re-run after every directory mutation
and does not assume the snapshot is fresher than the last one, so reordered
refresh completions converge on the same view.
"""
import logging
from typing import Callable, List, Optional

from rps_client.errors import AuthorizationError, GameNotFoundError
from rps_client.model import (
    ActiveGameContext,
    Game,
    GameResult,
    GameState,
    ResolverPhase,
    ResolverView,
)

from .directory import DirectorySnapshot

logger = logging.getLogger(__name__)

# Partitions that put a player "in game", in precedence order
ACTIVE_PARTITIONS = (GameState.WAITING_FOR_MOVES, GameState.WAITING_FOR_REVEAL)


def find_my_game(snapshot: DirectorySnapshot, state: GameState, identity: Optional[str]) -> Optional[Game]:
    if not identity:
        return None
    for game in snapshot.games(state):
        if game.has_player(identity):
            return game
    return None


def recompute(view: ResolverView, snapshot: DirectorySnapshot, identity: Optional[str]) -> ResolverView:
    """
    Derive the next resolver view.

    - ShowingResult is sticky; only dismissal leaves it.
    - InGame(g) -> ShowingResult once g shows up in Finished.
    - Otherwise the first game of ours in WaitingForMoves, then
      WaitingForReveal, becomes InGame.
    - An InGame game missing from every partition is between two
      partition reads (left Reveal, Finished not re-read yet) and stays InGame.
    - No match -> Idle.
    """
    if view.phase == ResolverPhase.SHOWING_RESULT:
        return view

    if view.phase == ResolverPhase.IN_GAME:
        finished = snapshot.find(view.game_id, GameState.FINISHED)
        if finished is not None:
            return ResolverView.showing_result(GameResult.for_identity(finished, identity))

    for state in ACTIVE_PARTITIONS:
        game = find_my_game(snapshot, state, identity)
        if game is not None:
            return ResolverView.in_game(game)

    if view.phase == ResolverPhase.IN_GAME and not any(
        snapshot.find(view.game_id, state) is not None for state in GameState
    ):
        return view

    return ResolverView.idle()


class ActiveGameResolver:
    """Holds the resolver view and the local context of the tracked game"""

    def __init__(self, identity: Optional[str] = None, game_logger=None):
        self.identity = identity.lower() if identity else None
        self.game_logger = game_logger
        self.view = ResolverView.idle()
        self.context: Optional[ActiveGameContext] = None
        self._listeners: List[Callable[[ResolverView], None]] = []

    def add_listener(self, listener: Callable[[ResolverView], None]):
        self._listeners.append(listener)

    @property
    def phase(self) -> ResolverPhase:
        return self.view.phase

    @property
    def result(self) -> Optional[GameResult]:
        return self.view.result

    def set_identity(self, identity: Optional[str]):
        """A different local identity starts from Idle."""
        identity = identity.lower() if identity else None
        if identity == self.identity:
            return
        self.identity = identity
        self._apply(ResolverView.idle())

    def update(self, snapshot: DirectorySnapshot) -> ResolverView:
        return self._apply(recompute(self.view, snapshot, self.identity))

    def _apply(self, new_view: ResolverView) -> ResolverView:
        old_view = self.view
        self.view = new_view

        if new_view.phase == ResolverPhase.IN_GAME:
            if self.context is None or self.context.game.game_id != new_view.game_id:
                self.context = ActiveGameContext(new_view.game)
            else:
                self.context.game = new_view.game
        else:
            self.context = None

        if new_view != old_view:
            logger.info("[Resolver] %r -> %r", old_view, new_view)
            if new_view.phase == ResolverPhase.SHOWING_RESULT and self.game_logger is not None:
                self.game_logger.log_result(new_view.result, self.identity)
            for listener in self._listeners:
                listener(new_view)
        return new_view

    def open_game_by_id(self, game_id: int, state: GameState, snapshot: DirectorySnapshot) -> ResolverView:
        """
        Open a specific game from one partition.

        Raises:
            GameNotFoundError: the game is not in that partition
            AuthorizationError: the local identity is not one of its players;
                the resolver view is left unchanged
        """
        game = snapshot.find(game_id, state)
        if game is None:
            raise GameNotFoundError(game_id, state.value)
        if not game.has_player(self.identity):
            raise AuthorizationError(game_id, self.identity, "You can only view games you're playing in!")

        if state == GameState.FINISHED:
            return self._apply(ResolverView.showing_result(GameResult.for_identity(game, self.identity)))

        # Re-opening always starts with fresh submission flags
        self.context = None
        return self._apply(ResolverView.in_game(game))

    def dismiss(self) -> ResolverView:
        """Return to the games list."""
        return self._apply(ResolverView.idle())
