"""
Client Models Package

Provides the game, context and event models shared by the services.
"""

from .game import (
    Game,
    GameDetail,
    GameState,
    Choice,
    CHOICE_LABELS,
    NO_WINNER,
    ZERO_ADDRESS,
    parse_ether,
    format_ether,
    same_address,
)
from .context import ActiveGameContext, GameResult, ResolverPhase, ResolverView
from .event import LedgerEvent, LedgerEventKind

__all__ = [
    "Game",
    "GameDetail",
    "GameState",
    "Choice",
    "CHOICE_LABELS",
    "NO_WINNER",
    "ZERO_ADDRESS",
    "parse_ether",
    "format_ether",
    "same_address",
    "ActiveGameContext",
    "GameResult",
    "ResolverPhase",
    "ResolverView",
    "LedgerEvent",
    "LedgerEventKind",
]
