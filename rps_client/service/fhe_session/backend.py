"""
FHE Backend Boundary - What the session manager needs from the FHE SDK
"""
from typing import Any, Dict, Optional, Protocol

from .permits import Permit


class BackendState:
    """Initialization flags reported by the SDK"""

    def __init__(
        self,
        provider_initialized: bool = False,
        signer_initialized: bool = False,
        fhe_keys_initialized: bool = False,
    ):
        self.provider_initialized = provider_initialized
        self.signer_initialized = signer_initialized
        self.fhe_keys_initialized = fhe_keys_initialized

    @classmethod
    def ready(cls) -> "BackendState":
        return cls(True, True, True)


class FheBackend(Protocol):
    """
    Encryption SDK collaborator.

    initialize() receives the session config built by SessionManager:
    chain_id, account, environment, generate_permit and, for MOCK only,
    mock_config {decrypt_delay, zkv_signer}.
    """

    async def initialize(self, config: Dict[str, Any]) -> BackendState: ...

    async def encrypt(self, value: int, utype: str) -> Any: ...

    async def create_permit(
        self, chain_id: int, account: str, options: Optional[Dict[str, Any]] = None
    ) -> Permit: ...
