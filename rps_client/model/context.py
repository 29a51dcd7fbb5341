"""
Active Game Context

Ephemeral, client-only state about the game the local identity is playing.
Never persisted; rebuilt from the Game Directory on load.
"""
from enum import Enum
from typing import Optional

from .game import Choice, Game, NO_WINNER, same_address


class ActiveGameContext:
    """Local progress of the move for the tracked game"""

    def __init__(self, game: Game):
        self.game = game
        self.local_choice: Optional[Choice] = None
        self.submitted = False
        self.encrypting = False

    @property
    def busy(self) -> bool:
        return self.encrypting or self.submitted

    def __repr__(self) -> str:
        return (
            f"ActiveGameContext(game=#{self.game.game_id}, choice={self.local_choice}, "
            f"submitted={self.submitted}, encrypting={self.encrypting})"
        )


class GameResult:
    """Outcome of a finished game from the local identity's point of view"""

    def __init__(self, game: Game, is_winner: bool, is_draw: bool):
        self.game = game
        self.is_winner = is_winner
        self.is_draw = is_draw

    @classmethod
    def for_identity(cls, game: Game, identity: Optional[str]) -> "GameResult":
        is_draw = game.winner in (None, NO_WINNER)
        is_winner = not is_draw and same_address(game.winner, identity)
        return cls(game, is_winner=is_winner, is_draw=is_draw)

    def __repr__(self) -> str:
        return f"GameResult(#{self.game.game_id}, winner={self.is_winner}, draw={self.is_draw})"


class ResolverPhase(str, Enum):
    IDLE = "Idle"
    IN_GAME = "InGame"
    SHOWING_RESULT = "ShowingResult"


class ResolverView:
    """
    Immutable resolver state: Idle, InGame(game) or ShowingResult(result).
    """

    def __init__(
        self,
        phase: ResolverPhase = ResolverPhase.IDLE,
        game: Optional[Game] = None,
        result: Optional[GameResult] = None,
    ):
        self.phase = phase
        self.game = game
        self.result = result

    @classmethod
    def idle(cls) -> "ResolverView":
        return cls(ResolverPhase.IDLE)

    @classmethod
    def in_game(cls, game: Game) -> "ResolverView":
        return cls(ResolverPhase.IN_GAME, game=game)

    @classmethod
    def showing_result(cls, result: GameResult) -> "ResolverView":
        return cls(ResolverPhase.SHOWING_RESULT, game=result.game, result=result)

    @property
    def game_id(self) -> Optional[int]:
        return self.game.game_id if self.game is not None else None

    def __eq__(self, other) -> bool:
        if not isinstance(other, ResolverView):
            return NotImplemented
        return (
            self.phase == other.phase
            and self.game_id == other.game_id
            and (self.game.state if self.game else None) == (other.game.state if other.game else None)
        )

    def __repr__(self) -> str:
        if self.phase == ResolverPhase.IDLE:
            return "ResolverView(Idle)"
        return f"ResolverView({self.phase.value}, #{self.game_id})"
