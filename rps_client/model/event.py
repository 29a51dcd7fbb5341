"""
Ledger Event Model

Events are hints that something changed; their payload is logged and never
applied to local state.
"""
from enum import Enum
from typing import Any, Dict, Optional


class LedgerEventKind(str, Enum):
    GAME_CREATED = "GameCreated"
    PLAYER_JOINED = "PlayerJoined"
    MOVE_SUBMITTED = "MoveSubmitted"
    GAME_FINISHED = "GameFinished"
    GAME_DRAWN = "GameDrawn"
    GAME_WAITING_FOR_DECRYPTION = "GameWaitingForDecryption"


class LedgerEvent:
    """Single event log delivered by the ledger subscription"""

    def __init__(
        self,
        kind: LedgerEventKind,
        args: Optional[Dict[str, Any]] = None,
        block_number: Optional[int] = None,
    ):
        self.kind = kind
        self.args = args or {}
        self.block_number = block_number

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LedgerEvent":
        return cls(
            kind=LedgerEventKind(data["eventName"]),
            args=data.get("args", {}),
            block_number=data.get("blockNumber"),
        )

    @property
    def game_id(self) -> Optional[int]:
        game_id = self.args.get("gameId")
        return int(game_id) if game_id is not None else None

    def __repr__(self) -> str:
        return f"LedgerEvent({self.kind.value}, game={self.game_id}, block={self.block_number})"
