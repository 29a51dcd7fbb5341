"""
FHE Session Service - Encryption session and permit lifecycle

Structure:
- session.py: SessionManager (initialize / encrypt / permits)
- permits.py: Permit + PermitStore cache
- environments.py: chain -> MAINNET/TESTNET/MOCK
- backend.py: FheBackend boundary
- openfhe_backend.py: local MOCK backend (needs the `fhe` extra, import it directly)
"""

from .backend import BackendState, FheBackend
from .environments import (
    MAINNET,
    TESTNET,
    MOCK,
    environment_for_chain,
    is_chain_supported,
)
from .permits import Permit, PermitStore, compute_permit_hash
from .session import NOT_READY, SessionManager, SessionStatus

__all__ = [
    'BackendState',
    'FheBackend',
    'MAINNET',
    'TESTNET',
    'MOCK',
    'environment_for_chain',
    'is_chain_supported',
    'Permit',
    'PermitStore',
    'compute_permit_hash',
    'NOT_READY',
    'SessionManager',
    'SessionStatus',
]
