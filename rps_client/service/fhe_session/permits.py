"""
Permit Cache - Capability credentials scoped to (chain_id, account)

Layout: (chain_id, account) -> {hash -> Permit}, plus at most one active hash
per (chain_id, account).
"""
import hashlib
import json
import time
from typing import Dict, List, Optional, Tuple

PairKey = Tuple[int, str]


def compute_permit_hash(issuer: str, chain_id: int, expiration: int, name: str) -> str:
    """Content hash identifying a permit."""
    content = json.dumps(
        {"issuer": issuer.lower(), "chainId": int(chain_id), "expiration": int(expiration), "name": name},
        sort_keys=True,
    )
    return "0x" + hashlib.sha256(content.encode("utf-8")).hexdigest()


class Permit:
    """A permit issued for one account on one chain"""

    def __init__(
        self,
        hash: str,
        issuer: str,
        chain_id: int,
        expiration: int,
        name: str = "default",
        signature: Optional[str] = None,
    ):
        self.hash = hash
        self.issuer = issuer.lower()
        self.chain_id = int(chain_id)
        self.expiration = int(expiration)
        self.name = name
        self.signature = signature

    @property
    def account(self) -> str:
        return self.issuer

    def is_valid(self, now: Optional[float] = None) -> bool:
        """Structurally complete and not expired."""
        if now is None:
            now = time.time()
        if not self.hash or not self.issuer:
            return False
        return self.expiration > now

    def __repr__(self) -> str:
        return f"Permit({self.name}, {self.hash[:10]}.., issuer={self.issuer})"


class PermitStore:
    """In-memory permit cache; never persisted"""

    def __init__(self):
        self._permits: Dict[PairKey, Dict[str, Permit]] = {}
        self._active: Dict[PairKey, str] = {}

    @staticmethod
    def _key(chain_id: int, account: str) -> PairKey:
        return int(chain_id), account.lower()

    def set_permit(self, chain_id: int, account: str, permit: Permit):
        self._permits.setdefault(self._key(chain_id, account), {})[permit.hash] = permit

    def get_permit(self, chain_id: int, account: str, permit_hash: str) -> Optional[Permit]:
        return self._permits.get(self._key(chain_id, account), {}).get(permit_hash)

    def remove_permit(self, chain_id: int, account: str, permit_hash: str) -> bool:
        key = self._key(chain_id, account)
        removed = self._permits.get(key, {}).pop(permit_hash, None) is not None
        if self._active.get(key) == permit_hash:
            del self._active[key]
        return removed

    def set_active_hash(self, chain_id: int, account: str, permit_hash: str):
        self._active[self._key(chain_id, account)] = permit_hash

    def active_hash(self, chain_id: int, account: str) -> Optional[str]:
        return self._active.get(self._key(chain_id, account))

    def hashes(self, chain_id: int, account: str) -> List[str]:
        return list(self._permits.get(self._key(chain_id, account), {}).keys())
