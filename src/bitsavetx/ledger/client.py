"""
bitsavetx/ledger/client.py

Stacks API client for reading transaction status.

Provides:
- LedgerTxStatus: closed set of ledger verdicts, decoded once at the boundary
- StatusReader: interface the TransactionTracker polls
- HiroClient: aiohttp implementation against the Hiro Stacks API
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

import aiohttp

from ..config import NetworkConfig, EXPLORER_URL
from ..errors import ContractError, LedgerReadError, describe_result, extract_error_code

logger = logging.getLogger("bitsavetx.ledger.client")

POST_CONDITION_MESSAGE = "Post-condition check failed"


# ============================================================================
# DATA STRUCTURES
# ============================================================================

class LedgerTxStatus(Enum):
    """Ledger verdict for a submitted transaction."""
    SUCCESS = "success"
    ABORT_BY_RESPONSE = "abort_by_response"
    ABORT_BY_POST_CONDITION = "abort_by_post_condition"
    PENDING = "pending"
    UNKNOWN = "unknown"

    @classmethod
    def from_string(cls, value: Optional[str]) -> "LedgerTxStatus":
        """Decode a raw tx_status string; unrecognised values are UNKNOWN."""
        if not value:
            return cls.UNKNOWN
        normalized = value.lower().strip()
        for status in cls:
            if status.value == normalized:
                return status
        return cls.UNKNOWN

    @property
    def is_rejected(self) -> bool:
        return self in (LedgerTxStatus.ABORT_BY_RESPONSE, LedgerTxStatus.ABORT_BY_POST_CONDITION)

    @property
    def is_final(self) -> bool:
        return self is LedgerTxStatus.SUCCESS or self.is_rejected


@dataclass(frozen=True)
class StatusReading:
    """One read of a transaction's status."""
    status: LedgerTxStatus
    detail: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False)

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "detail": self.detail,
        }


class StatusReader(ABC):
    """Anything the tracker can ask for a transaction's status."""

    @abstractmethod
    async def get_transaction_status(self, tx_id: str) -> StatusReading:
        """Read the current status of a transaction."""


def parse_transaction_status(data: Dict[str, Any]) -> StatusReading:
    """
    Decode a /extended/v1/tx response body.

    The failure detail comes from tx_result.repr; contract error codes in
    the repr are translated through the error table. A post-condition abort
    usually carries the function's ok value, so without an error code it
    gets a fixed message.
    """
    status = LedgerTxStatus.from_string(data.get("tx_status"))
    detail = None
    if status.is_rejected:
        tx_result = data.get("tx_result") or {}
        repr_value = tx_result.get("repr") if isinstance(tx_result, dict) else None
        if status is LedgerTxStatus.ABORT_BY_POST_CONDITION and extract_error_code(repr_value) is None:
            detail = POST_CONDITION_MESSAGE
        else:
            detail = describe_result(repr_value)
    elif status is LedgerTxStatus.UNKNOWN:
        logger.warning(f"Unrecognised tx_status: {data.get('tx_status')!r}")
    return StatusReading(status=status, detail=detail, raw=data)


# Clarity serialization type prefixes
CLARITY_INT = 0x00
CLARITY_UINT = 0x01
CLARITY_RESPONSE_OK = 0x07
CLARITY_RESPONSE_ERR = 0x08


def _decode_integer(data: bytes) -> int:
    if len(data) != 17 or data[0] not in (CLARITY_INT, CLARITY_UINT):
        raise LedgerReadError(f"Unsupported Clarity value: 0x{data.hex()}")
    return int.from_bytes(data[1:], "big", signed=data[0] == CLARITY_INT)


def decode_clarity_uint(hex_value: str) -> int:
    """
    Decode a serialized Clarity integer, optionally wrapped in a response.

    "(ok u10)" decodes to 10; "(err u106)" raises ContractError(106).
    """
    try:
        data = bytes.fromhex(hex_value[2:] if hex_value.startswith("0x") else hex_value)
    except ValueError:
        raise LedgerReadError(f"Invalid Clarity hex: {hex_value!r}")
    if not data:
        raise LedgerReadError("Empty Clarity value")

    if data[0] == CLARITY_RESPONSE_OK:
        return _decode_integer(data[1:])
    if data[0] == CLARITY_RESPONSE_ERR:
        raise ContractError(_decode_integer(data[1:]))
    return _decode_integer(data)


# ============================================================================
# HIRO API CLIENT
# ============================================================================

class HiroClient(StatusReader):
    """
    Async client for the Hiro Stacks API.

    Example:
        async with HiroClient() as client:
            reading = await client.get_transaction_status("0xabc...")
            height = await client.get_block_height()
    """

    def __init__(
        self,
        config: Optional[NetworkConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Args:
            config: Network settings. Uses testnet defaults if None.
            session: Shared aiohttp session. Created lazily if None and
                closed by close() only when owned by this client.
        """
        self.config = config or NetworkConfig()
        self._session = session
        self._owns_session = session is None

    @property
    def api_url(self) -> str:
        return self.config.api_url.rstrip("/")

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self.config.request_timeout)
            self._session = aiohttp.ClientSession(
                timeout=timeout,
                headers={"Accept": "application/json"},
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    async def _get_json(
        self,
        path: str,
        allow_missing: bool = False,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Fetch a JSON document from the API.

        Sends a GET, or a POST with a JSON body when payload is given.

        Returns:
            Parsed body, or None for a 404 when allow_missing is set

        Raises:
            LedgerReadError: On network, HTTP or decoding failure
        """
        url = f"{self.api_url}{path}"
        session = self._get_session()
        if payload is None:
            request = session.get(url)
        else:
            request = session.post(url, json=payload)
        try:
            async with request as response:
                if response.status == 404 and allow_missing:
                    return None
                if response.status != 200:
                    raise LedgerReadError(f"API error: {response.status}")
                data = await response.json()
        except LedgerReadError:
            raise
        except asyncio.TimeoutError:
            logger.error(f"Timeout reading {url}")
            raise LedgerReadError(f"Request timeout: {url}")
        except (aiohttp.ClientError, ValueError) as e:
            logger.error(f"Failed to read {url}: {e}")
            raise LedgerReadError(f"Request failed: {e}")

        if not isinstance(data, dict):
            raise LedgerReadError(f"Unexpected response from {path}")
        return data

    # ========================================================================
    # PUBLIC API
    # ========================================================================

    async def get_transaction_status(self, tx_id: str) -> StatusReading:
        """
        Read a transaction's status.

        A transaction the API has not indexed yet (404) reads as PENDING.
        """
        data = await self._get_json(f"/extended/v1/tx/{tx_id}", allow_missing=True)
        if data is None:
            logger.debug(f"Transaction {tx_id} not indexed yet")
            return StatusReading(status=LedgerTxStatus.PENDING)
        return parse_transaction_status(data)

    async def get_block_height(self) -> int:
        """Current Stacks chain tip height."""
        data = await self._get_json("/v2/info")
        try:
            return int(data["stacks_tip_height"])
        except (KeyError, TypeError, ValueError):
            raise LedgerReadError("Missing stacks_tip_height in /v2/info")

    async def get_stx_balance(self, address: str) -> int:
        """STX balance of an address in micro-STX."""
        data = await self._get_json(f"/extended/v1/address/{address}/stx")
        try:
            return int(data.get("balance", 0))
        except (TypeError, ValueError):
            raise LedgerReadError(f"Invalid balance for {address}")

    async def call_read_only(self, function_name: str, sender: Optional[str] = None) -> int:
        """
        Call a no-argument read-only contract function returning a uint.

        Raises:
            ContractError: If the contract answers with (err uN)
            LedgerReadError: If the call fails or the result is not a uint
        """
        address = self.config.contract_address
        path = f"/v2/contracts/call-read/{address}/{self.config.contract_name}/{function_name}"
        data = await self._get_json(path, payload={"sender": sender or address, "arguments": []})
        if not data.get("okay") or not data.get("result"):
            raise LedgerReadError(f"{function_name} failed: {data.get('cause', 'no result')}")
        return decode_clarity_uint(data["result"])

    async def get_reward_rate(self) -> int:
        """Current reward rate of the savings contract, in percent."""
        return await self.call_read_only("get-reward-rate")

    def explorer_url(self, tx_id: str) -> str:
        """Block explorer link for a transaction."""
        return f"{EXPLORER_URL}/txid/{tx_id}?chain={self.config.network}"

    # ========================================================================
    # CONTEXT MANAGER
    # ========================================================================

    async def __aenter__(self) -> "HiroClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
