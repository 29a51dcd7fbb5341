"""
Client Services

Structure:
- fhe_session/: Encryption session and permit lifecycle
- directory.py: GameDirectory (four partitions + tracked detail)
- resolver.py: ActiveGameResolver (Idle / InGame / ShowingResult)
- move_protocol.py: MoveProtocol (encrypt -> finality -> submit, reveal, create, join)
- finality.py: cancellable wait for the next block
- reconciliation.py: ReconciliationBus (event -> refresh table)
"""

from .directory import DirectorySnapshot, GameDirectory, Partition
from .finality import CancellationToken, FinalityWaiter, wait_for_next_block
from .move_protocol import MoveProtocol
from .reconciliation import DETAIL, REFRESH_TABLE, ReconciliationBus
from .resolver import ActiveGameResolver, recompute

__all__ = [
    'DirectorySnapshot',
    'GameDirectory',
    'Partition',
    'CancellationToken',
    'FinalityWaiter',
    'wait_for_next_block',
    'MoveProtocol',
    'DETAIL',
    'REFRESH_TABLE',
    'ReconciliationBus',
    'ActiveGameResolver',
    'recompute',
]
