"""
Client Errors - Exception hierarchy for collaborator-boundary failures

Every failure here is recoverable by user retry; the GameClient facade turns
them into notifications instead of letting them escape.
"""
from typing import Optional


class RpsClientError(Exception):
    """Base exception for all client errors."""


class ReadError(RpsClientError):
    """A partition or detail read failed; the previous data stays in place."""

    def __init__(self, operation: str, detail: str = ""):
        self.operation = operation
        self.detail = detail
        message = f"Read '{operation}' failed"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class WriteError(RpsClientError):
    """A create/join/submit/reveal transaction was rejected."""

    def __init__(self, operation: str, detail: str = ""):
        self.operation = operation
        self.detail = detail
        message = f"Write '{operation}' failed"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class EncryptError(RpsClientError):
    """Encryption failed before any ledger interaction."""


class PermitError(RpsClientError):
    """A permit operation failed."""


class StaleSessionError(EncryptError, PermitError):
    """An encrypt/permit call finished after the session switched identity."""

    def __init__(self, started_generation: int, current_generation: int):
        self.started_generation = started_generation
        self.current_generation = current_generation
        super().__init__(
            f"Session changed while call was in flight "
            f"(generation {started_generation} -> {current_generation})"
        )


class InitError(RpsClientError):
    """The FHE session could not be initialized."""

    def __init__(self, message: str, chain_id: Optional[int] = None):
        self.chain_id = chain_id
        super().__init__(message)


class AuthorizationError(RpsClientError):
    """The local identity is not allowed to act on this game."""

    def __init__(self, game_id: int, identity: Optional[str], reason: str = ""):
        self.game_id = game_id
        self.identity = identity
        super().__init__(reason or f"{identity} is not a player in game #{game_id}")


class GameNotFoundError(RpsClientError):
    """The requested game is not present in the expected partition."""

    def __init__(self, game_id: int, partition: str):
        self.game_id = game_id
        self.partition = partition
        super().__init__(f"Game #{game_id} not found in {partition}")


class MoveInProgressError(RpsClientError):
    """A move for this game is already being encrypted or was submitted."""

    def __init__(self, game_id: int):
        self.game_id = game_id
        super().__init__(f"A move for game #{game_id} is already in progress")


class FinalityCancelledError(RpsClientError):
    """The wait for the next block was cancelled before any write."""
