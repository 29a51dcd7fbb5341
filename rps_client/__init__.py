"""
FHE Rock Paper Scissors client

Client-side game-state reconciliation for an encrypted, bet-based
rock/paper/scissors game played on an external ledger.
"""

from .main import GameClient
from .network import HttpLedgerGateway, LedgerGateway
from .notifications import Notifier

__all__ = ["GameClient", "HttpLedgerGateway", "LedgerGateway", "Notifier"]
