"""
OpenFHE Backend - Local FHE backend for the MOCK (hardhat) environment

Encrypts moves with a locally generated BFV keypair so the full move flow can
run against a development chain without the hosted FHE network. Requires the
`fhe` extra (openfhe).
"""
import asyncio
import hashlib
import logging
import time
from typing import Any, Dict, Optional

from rps_client.errors import EncryptError, InitError

from .backend import BackendState
from .context import create_openfhe_context, decrypt_value, encrypt_value
from .environments import MOCK
from .permits import Permit, compute_permit_hash
from .serialization import deserialize_ciphertext, serialize_ciphertext

logger = logging.getLogger(__name__)

UINT8_MAX = 255

# Default permit lifetime (seconds)
PERMIT_LIFETIME = 7 * 24 * 60 * 60


class OpenFheBackend:
    """FheBackend implementation backed by a local OpenFHE context"""

    def __init__(self):
        self.cc = None
        self.keypair = None
        self.decrypt_delay = 0.0
        self.zkv_signer: Optional[str] = None

    async def initialize(self, config: Dict[str, Any]) -> BackendState:
        if config.get("environment") != MOCK:
            raise InitError(
                f"OpenFHE backend only supports the {MOCK} environment",
                chain_id=config.get("chain_id"),
            )

        mock_config = config.get("mock_config") or {}
        self.decrypt_delay = float(mock_config.get("decrypt_delay", 0.0))
        self.zkv_signer = mock_config.get("zkv_signer")

        def _keygen():
            cc = create_openfhe_context()
            return cc, cc.KeyGen()

        self.cc, self.keypair = await asyncio.to_thread(_keygen)
        logger.info("[OpenFHE] Local BFV keys generated")
        return BackendState.ready()

    async def encrypt(self, value: int, utype: str) -> Dict[str, Any]:
        if self.cc is None:
            raise EncryptError("OpenFHE backend is not initialized")
        if utype != "uint8":
            raise EncryptError(f"Unsupported encrypted type: {utype}")
        if not 0 <= int(value) <= UINT8_MAX:
            raise EncryptError(f"Value {value} does not fit in {utype}")

        def _encrypt() -> str:
            ciphertext = encrypt_value(self.cc, self.keypair.publicKey, value)
            return serialize_ciphertext(ciphertext)

        data = await asyncio.to_thread(_encrypt)
        # The designated signer vouches for mock inputs only
        signature = hashlib.sha256(f"{self.zkv_signer}:{data}".encode("utf-8")).hexdigest()
        return {"data": data, "utype": utype, "securityZone": 0, "signature": "0x" + signature}

    async def decrypt(self, encrypted: Dict[str, Any]) -> int:
        """Mock decryption, delayed like the hosted decryption network."""
        if self.cc is None:
            raise EncryptError("OpenFHE backend is not initialized")
        await asyncio.sleep(self.decrypt_delay)
        ciphertext = deserialize_ciphertext(encrypted["data"])
        return decrypt_value(self.cc, self.keypair.secretKey, ciphertext)

    async def create_permit(
        self, chain_id: int, account: str, options: Optional[Dict[str, Any]] = None
    ) -> Permit:
        options = options or {}
        name = options.get("name", "default")
        expiration = int(options.get("expiration", time.time() + PERMIT_LIFETIME))
        permit_hash = compute_permit_hash(account, chain_id, expiration, name)
        return Permit(
            hash=permit_hash,
            issuer=account,
            chain_id=chain_id,
            expiration=expiration,
            name=name,
        )
