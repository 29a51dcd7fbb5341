"""
Encryption Session Manager - FHE session and permit lifecycle

One session object is owned by the GameClient and passed to every consumer.
A session is tied to one (chain_id, account) pair; switching either identity
is an explicit reset() that bumps the generation counter, so any encrypt or
permit call still in flight against the old pair is discarded when it
completes.
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

from rps_client.config import FHE_CONFIG
from rps_client.errors import EncryptError, InitError, PermitError, StaleSessionError
from rps_client.notifications import Notifier

from .backend import BackendState, FheBackend
from .environments import MOCK, environment_for_chain, is_chain_supported
from .permits import Permit, PermitStore

logger = logging.getLogger(__name__)


class _NotReady:
    """Result of a permit operation when no initialized (chain, account) pair exists"""

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_READY"


NOT_READY = _NotReady()


class SessionStatus:
    def __init__(self, chain_id: Optional[int], account: Optional[str], initialized: bool):
        self.chain_id = chain_id
        self.account = account
        self.initialized = initialized

    def __repr__(self) -> str:
        return f"SessionStatus(chain={self.chain_id}, account={self.account}, initialized={self.initialized})"


class SessionManager:
    """Owns the FHE session for the connected (chain, account) pair"""

    def __init__(self, backend: FheBackend, notifier: Optional[Notifier] = None):
        self.backend = backend
        self.notifier = notifier or Notifier()
        self.permits = PermitStore()
        self.generation = 0
        self.chain_id: Optional[int] = None
        self.account: Optional[str] = None
        self.environment: Optional[str] = None
        self.provider_initialized = False
        self.signer_initialized = False
        self.fhe_keys_initialized = False
        self._init_lock = asyncio.Lock()

    # ========================================================================
    # Lifecycle
    # ========================================================================

    @property
    def is_ready(self) -> bool:
        return self.provider_initialized and self.signer_initialized and self.fhe_keys_initialized

    def status(self) -> SessionStatus:
        return SessionStatus(self.chain_id, self.account, self.is_ready)

    def reset(self):
        """Discard the current session; in-flight calls become stale."""
        self.generation += 1
        logger.info("[Session] Reset (generation %d)", self.generation)
        self.chain_id = None
        self.account = None
        self.environment = None
        self.provider_initialized = False
        self.signer_initialized = False
        self.fhe_keys_initialized = False

    def _build_config(self, chain_id: int, account: str, environment: str) -> Dict[str, Any]:
        config: Dict[str, Any] = {
            "chain_id": chain_id,
            "account": account,
            "environment": environment,
            # Permits are generated on demand, never on initialization
            "generate_permit": False,
        }
        if environment == MOCK:
            config["mock_config"] = {
                "decrypt_delay": FHE_CONFIG["mock_decrypt_delay"],
                "zkv_signer": FHE_CONFIG["mock_signer_key"],
            }
        return config

    async def initialize(self, chain_id: int, account: str) -> SessionStatus:
        """
        Initialize the session for (chain_id, account).

        No-op when the pair is unchanged and already initialized. A changed
        pair resets the previous session before the SDK is touched.

        Raises:
            InitError: unsupported chain or SDK initialization failure
        """
        account = account.lower()
        # The previous pair's session must not outlive a switch, even a rejected one
        if (self.chain_id, self.account) != (chain_id, account) and (
            self.chain_id is not None or self.account is not None
        ):
            self.reset()

        if not is_chain_supported(chain_id):
            raise InitError(f"Chain {chain_id} is not supported", chain_id=chain_id)

        async with self._init_lock:
            if (self.chain_id, self.account) == (chain_id, account) and self.is_ready:
                return self.status()

            if self.chain_id is not None or self.account is not None:
                self.reset()

            environment = environment_for_chain(chain_id)
            generation = self.generation
            logger.info("[Session] Initializing for chain %s, account %s (%s)", chain_id, account, environment)

            try:
                state: BackendState = await self.backend.initialize(
                    self._build_config(chain_id, account, environment)
                )
            except InitError as e:
                self.notifier.error(f"fhe initialization error: {e}")
                raise
            except Exception as e:
                logger.exception("[Session] Failed to initialize fhe")
                self.notifier.error(f"fhe initialization error: {e}")
                raise InitError(str(e), chain_id=chain_id) from e

            if generation != self.generation:
                raise StaleSessionError(generation, self.generation)

            self.chain_id = chain_id
            self.account = account
            self.environment = environment
            self.provider_initialized = state.provider_initialized
            self.signer_initialized = state.signer_initialized
            self.fhe_keys_initialized = state.fhe_keys_initialized

            if not self.is_ready:
                self.notifier.error("fhe initialization error: session incomplete")
                raise InitError("FHE session did not finish initializing", chain_id=chain_id)

            self.notifier.success("FHE initialized successfully")
            return self.status()

    # ========================================================================
    # Encryption
    # ========================================================================

    async def encrypt(self, value: int, utype: Optional[str] = None) -> Any:
        """
        Encrypt a small plaintext value.

        Raises:
            EncryptError: session not ready or SDK failure
            StaleSessionError: the session switched while encrypting
        """
        if not self.is_ready:
            raise EncryptError("FHE session is not initialized")

        utype = utype or FHE_CONFIG["choice_type"]
        generation = self.generation
        try:
            ciphertext = await self.backend.encrypt(value, utype)
        except EncryptError:
            raise
        except Exception as e:
            raise EncryptError(f"Failed to encrypt value: {e}") from e

        if generation != self.generation:
            logger.warning("[Session] Discarding ciphertext from a previous session")
            raise StaleSessionError(generation, self.generation)
        return ciphertext

    # ========================================================================
    # Permits
    # ========================================================================

    def _pair(self) -> Optional[Tuple[int, str]]:
        if not self.is_ready or self.chain_id is None or not self.account:
            return None
        return self.chain_id, self.account

    async def create_permit(self, options: Optional[Dict[str, Any]] = None):
        pair = self._pair()
        if pair is None:
            return NOT_READY
        chain_id, account = pair
        generation = self.generation

        try:
            permit = await self.backend.create_permit(chain_id, account, options)
        except PermitError:
            raise
        except Exception as e:
            raise PermitError(f"Failed to create permit: {e}") from e

        if generation != self.generation:
            raise StaleSessionError(generation, self.generation)

        self.permits.set_permit(chain_id, account, permit)
        self.permits.set_active_hash(chain_id, account, permit.hash)
        self.notifier.success("Permit created")
        return permit

    def get_permit(self, permit_hash: Optional[str] = None):
        """Permit by hash, or the active permit when no hash is given."""
        pair = self._pair()
        if pair is None:
            return NOT_READY
        if permit_hash is None:
            permit_hash = self.permits.active_hash(*pair)
            if permit_hash is None:
                return None
        return self.permits.get_permit(*pair, permit_hash)

    def remove_permit(self, permit_hash: str):
        pair = self._pair()
        if pair is None:
            return NOT_READY
        removed = self.permits.remove_permit(*pair, permit_hash)
        if removed:
            self.notifier.success("Permit removed")
        return removed

    def set_active_permit(self, permit_hash: str):
        pair = self._pair()
        if pair is None:
            return NOT_READY
        if self.permits.get_permit(*pair, permit_hash) is None:
            raise PermitError(f"Unknown permit {permit_hash}")
        self.permits.set_active_hash(*pair, permit_hash)
        self.notifier.success("Active permit updated")
        return True

    def active_permit_hash(self) -> Optional[str]:
        pair = self._pair()
        if pair is None:
            return None
        return self.permits.active_hash(*pair)

    def all_permit_hashes(self) -> List[str]:
        pair = self._pair()
        if pair is None:
            return []
        return self.permits.hashes(*pair)

    def all_permits(self) -> List[Permit]:
        return [self.get_permit(h) for h in self.all_permit_hashes()]

    def is_active_permit_valid(self) -> bool:
        permit = self.get_permit()
        if not permit:
            return False
        return permit.is_valid()

    def permit_issuer(self) -> Optional[str]:
        permit = self.get_permit()
        if not permit:
            return None
        return permit.issuer
