"""
Network Communication Module - Ledger gateway reads, writes and events

The gateway is the only component that talks to the chain. It is reached
through a JSON relay that fronts the node and the game contract:

    POST /read          {"contract", "functionName", "args"}           -> {"result": ...}
    POST /write         {"contract", "functionName", "args", "value",
                         "account"}                                   -> receipt
    GET  /block_number                                                -> {"blockNumber": n}
    GET  /events?cursor=..&timeout=..                                 -> {"events": [...], "cursor": ..}
"""
import asyncio
import logging
from typing import Any, AsyncIterator, Dict, List, Optional, Protocol

import httpx

from rps_client.config import LEDGER_CONFIG
from rps_client.errors import ReadError, WriteError
from rps_client.model import LedgerEvent

logger = logging.getLogger(__name__)


class LedgerGateway(Protocol):
    """Boundary of the external ledger used by every other component"""

    async def get_games_by_state(self, code: int) -> List[Dict[str, Any]]: ...

    async def get_game(self, game_id: int) -> Dict[str, Any]: ...

    async def create_game(self, value: int) -> Dict[str, Any]: ...

    async def join_game(self, game_id: int, value: int) -> Dict[str, Any]: ...

    async def submit_move(self, game_id: int, ciphertext: Any) -> Dict[str, Any]: ...

    async def safely_reveal_winner(self, game_id: int) -> Dict[str, Any]: ...

    async def get_block_number(self) -> int: ...

    def subscribe(self) -> AsyncIterator[LedgerEvent]: ...


class HttpLedgerGateway:
    """Ledger gateway over the JSON relay, using one shared httpx client"""

    def __init__(
        self,
        account: str,
        rpc_url: Optional[str] = None,
        contract_name: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.account = account
        self.rpc_url = (rpc_url or LEDGER_CONFIG["rpc_url"]).rstrip("/")
        self.contract_name = contract_name or LEDGER_CONFIG["contract_name"]
        self.timeout = timeout or LEDGER_CONFIG["connection_timeout"]
        self._client = httpx.AsyncClient(
            base_url=self.rpc_url,
            timeout=self.timeout,
            transport=transport,
        )

    async def close(self):
        await self._client.aclose()

    async def __aenter__(self) -> "HttpLedgerGateway":
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    # ========================================================================
    # Reads
    # ========================================================================

    async def _read(self, function_name: str, args: List[Any]) -> Any:
        try:
            response = await self._client.post(
                "/read",
                json={
                    "contract": self.contract_name,
                    "functionName": function_name,
                    "args": args,
                },
            )
            response.raise_for_status()
            return response.json()["result"]
        except (httpx.HTTPError, KeyError, ValueError) as e:
            logger.warning("[Ledger] Read %s%s failed: %s", function_name, args, e)
            raise ReadError(function_name, str(e)) from e

    async def get_games_by_state(self, code: int) -> List[Dict[str, Any]]:
        return await self._read("getGamesByState", [code])

    async def get_game(self, game_id: int) -> Dict[str, Any]:
        return await self._read("getGame", [game_id])

    async def get_block_number(self) -> int:
        try:
            response = await self._client.get("/block_number")
            response.raise_for_status()
            return int(response.json()["blockNumber"])
        except (httpx.HTTPError, KeyError, ValueError) as e:
            raise ReadError("getBlockNumber", str(e)) from e

    # ========================================================================
    # Writes
    # ========================================================================

    async def _write(self, function_name: str, args: List[Any], value: int = 0) -> Dict[str, Any]:
        logger.info("[Ledger] Sending %s args=%s value=%s", function_name, args, value)
        try:
            response = await self._client.post(
                "/write",
                json={
                    "contract": self.contract_name,
                    "functionName": function_name,
                    "args": args,
                    # wei does not fit in a JSON double
                    "value": str(value),
                    "account": self.account,
                },
            )
            response.raise_for_status()
            receipt = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("[Ledger] Write %s failed: %s", function_name, e)
            raise WriteError(function_name, str(e)) from e

        if receipt.get("status") != "success":
            detail = receipt.get("error") or f"status={receipt.get('status')}"
            logger.error("[Ledger] Write %s reverted: %s", function_name, detail)
            raise WriteError(function_name, detail)
        return receipt

    async def create_game(self, value: int) -> Dict[str, Any]:
        return await self._write("createGame", [], value=value)

    async def join_game(self, game_id: int, value: int) -> Dict[str, Any]:
        return await self._write("joinGame", [game_id], value=value)

    async def submit_move(self, game_id: int, ciphertext: Any) -> Dict[str, Any]:
        return await self._write("submitMove", [game_id, ciphertext])

    async def safely_reveal_winner(self, game_id: int) -> Dict[str, Any]:
        return await self._write("safelyRevealWinner", [game_id])

    # ========================================================================
    # Events
    # ========================================================================

    async def subscribe(self) -> AsyncIterator[LedgerEvent]:
        """
        Long-poll the relay for contract events.

        Transport errors are logged and retried after a delay; the iterator
        only ends when the consuming task is cancelled.
        """
        cursor: Optional[str] = None
        poll_timeout = LEDGER_CONFIG["events_long_poll_timeout"]
        while True:
            params: Dict[str, Any] = {"contract": self.contract_name, "timeout": poll_timeout}
            if cursor is not None:
                params["cursor"] = cursor
            try:
                response = await self._client.get(
                    "/events", params=params, timeout=poll_timeout + self.timeout
                )
                response.raise_for_status()
                data = response.json()
            except (httpx.HTTPError, ValueError) as e:
                logger.warning("[Ledger] Event poll failed, retrying: %s", e)
                await asyncio.sleep(LEDGER_CONFIG["events_retry_delay"])
                continue

            cursor = data.get("cursor", cursor)
            for raw in data.get("events", []):
                try:
                    event = LedgerEvent.from_dict(raw)
                except (KeyError, ValueError) as e:
                    logger.warning("[Ledger] Skipping unknown event %r: %s", raw, e)
                    continue
                yield event
