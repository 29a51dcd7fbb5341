"""
Game Model

Represents a single contest instance as read from the ledger.
The plaintext of a submitted move is never part of this model; only the
"choice ready" flags are visible to the client.
"""
import time
from decimal import Decimal, InvalidOperation
from enum import Enum, IntEnum
from typing import Any, Dict, Optional

from rps_client.config import GAME_CONFIG


ZERO_ADDRESS = "0x" + "0" * 40

# Winner value of a finished game that ended in a draw
NO_WINNER = ZERO_ADDRESS


class GameState(str, Enum):
    """Lifecycle state of a game; the value is the ledger's label."""
    WAITING_FOR_PLAYERS = "WaitingForPlayers"
    WAITING_FOR_MOVES = "WaitingForMoves"
    WAITING_FOR_REVEAL = "WaitingForReveal"
    FINISHED = "Finished"

    @property
    def code(self) -> int:
        """Integer code the ledger uses for this state."""
        return GAME_CONFIG["state_codes"][self.value]

    @classmethod
    def from_code(cls, code: int) -> "GameState":
        for label, value in GAME_CONFIG["state_codes"].items():
            if value == int(code):
                return cls(label)
        raise ValueError(f"Unknown game state code: {code}")


class Choice(IntEnum):
    NONE = 0
    ROCK = 1
    PAPER = 2
    SCISSORS = 3


CHOICE_LABELS = {
    Choice.ROCK: "Rock",
    Choice.PAPER: "Paper",
    Choice.SCISSORS: "Scissors",
}


def normalize_address(address: Optional[str]) -> Optional[str]:
    """Lowercase an address; the zero address and empty values become None."""
    if not address:
        return None
    address = address.lower()
    if address == ZERO_ADDRESS:
        return None
    return address


def same_address(a: Optional[str], b: Optional[str]) -> bool:
    if not a or not b:
        return False
    return a.lower() == b.lower()


def parse_ether(amount: str) -> int:
    """Convert a decimal ether string ("1.0") to integer wei."""
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation:
        raise ValueError(f"Invalid ether amount: {amount!r}")
    if not value.is_finite():
        raise ValueError(f"Invalid ether amount: {amount!r}")
    return int(value.scaleb(GAME_CONFIG["ether_decimals"]))


def format_ether(wei: int, places: Optional[int] = None) -> str:
    """Format integer wei as a fixed-point ether string."""
    if places is None:
        places = GAME_CONFIG["display_places"]
    value = Decimal(int(wei)).scaleb(-GAME_CONFIG["ether_decimals"])
    return f"{value:.{places}f}"


class Game:
    """
    A game as reported by one ledger read.

    `state` is the partition (or detail read) the game came from, and
    `fetched_at` labels how old that read is. A cached Game is allowed to be
    stale; callers compare `fetched_at` instead of assuming it is current.
    """

    def __init__(
        self,
        game_id: int,
        player1: str,
        player2: Optional[str],
        bet_amount: int,
        state: GameState,
        winner: Optional[str] = None,
        player1_choice_ready: bool = False,
        player2_choice_ready: bool = False,
        fetched_at: Optional[float] = None,
    ):
        if bet_amount < 0:
            raise ValueError("bet_amount must be non-negative")
        self.game_id = int(game_id)
        self.player1 = normalize_address(player1)
        self.player2 = normalize_address(player2)
        self.bet_amount = int(bet_amount)
        self.state = state
        # Draws are reported with the zero address as winner
        self.winner = winner.lower() if winner else None
        self.player1_choice_ready = bool(player1_choice_ready)
        self.player2_choice_ready = bool(player2_choice_ready)
        self.fetched_at = time.monotonic() if fetched_at is None else fetched_at

    @classmethod
    def from_ledger(cls, data: Dict[str, Any], state: Optional[GameState] = None) -> "Game":
        """
        Build a Game from a ledger record.

        Args:
            data: Record with the contract's field names
            state: Partition the record was fetched from. When omitted the
                record's own state code is used (detail reads).
        """
        if state is None:
            state = GameState.from_code(data["state"])
        return cls(
            game_id=data["gameId"],
            player1=data.get("player1"),
            player2=data.get("player2"),
            bet_amount=int(data.get("betAmount", 0)),
            state=state,
            winner=data.get("winner"),
            player1_choice_ready=data.get("player1ChoiceReady", False),
            player2_choice_ready=data.get("player2ChoiceReady", False),
        )

    def with_state(self, state: GameState) -> "Game":
        """Copy of this game labeled with another state."""
        return Game(
            self.game_id, self.player1, self.player2, self.bet_amount, state,
            self.winner, self.player1_choice_ready, self.player2_choice_ready,
            self.fetched_at,
        )

    def has_player(self, address: Optional[str]) -> bool:
        return same_address(self.player1, address) or same_address(self.player2, address)

    def is_player1(self, address: Optional[str]) -> bool:
        return same_address(self.player1, address)

    def opponent_submitted(self, address: Optional[str]) -> bool:
        """Whether the other player has already recorded an encrypted move."""
        if self.is_player1(address):
            return self.player2_choice_ready
        if same_address(self.player2, address):
            return self.player1_choice_ready
        return False

    @property
    def prize_amount(self) -> int:
        return self.bet_amount * 2

    def __repr__(self) -> str:
        return f"Game(#{self.game_id}, {self.state.value}, bet={format_ether(self.bet_amount)})"


# A detail read has the same shape as a partition entry
GameDetail = Game
