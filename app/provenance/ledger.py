"""
Lightweight ledger record reader over Ethereum JSON-RPC.
Does not require a full web3 stack - issues eth_call directly with httpx
and ABI-encodes/decodes with eth-abi.

The provenance contract exposes:
    function getRecord(uint256) view returns
        (tuple(bytes32 contentHash, string metadataURI, bool revoked))
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Union

import httpx
from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_utils import function_signature_to_4byte_selector, is_address

from app.core.config import (
    LEDGER_RECORD_FUNCTION,
    LEDGER_RECORD_TYPES,
    RPC_TIMEOUT_SECONDS,
)

from .digest import to_hex
from .exceptions import LedgerLookupError

log = logging.getLogger(__name__)

UINT256_MAX = 2**256 - 1

GET_RECORD_SELECTOR: bytes = function_signature_to_4byte_selector(LEDGER_RECORD_FUNCTION)


@dataclass(frozen=True)
class ProvenanceRecord:
    """Immutable on-chain provenance entry."""
    content_hash: bytes   # 32-byte digest committed at mint time
    metadata_uri: str     # Where the off-chain metadata lives
    revoked: bool         # Monotonic: false -> true only

    @property
    def content_hash_hex(self) -> str:
        return to_hex(self.content_hash)


def parse_token_id(value: Union[str, int]) -> int:
    """Parse a token id as a uint256.

    Raises:
        ValueError: If value is not a non-negative integer within uint256.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid token id: {value!r}")
    if isinstance(value, int):
        token_id = value
    else:
        text = str(value).strip()
        try:
            token_id = int(text, 16) if text.lower().startswith("0x") else int(text, 10)
        except ValueError:
            raise ValueError(f"Invalid token id: {value!r}")
    if token_id < 0 or token_id > UINT256_MAX:
        raise ValueError(f"Token id out of uint256 range: {value!r}")
    return token_id


def encode_get_record_call(token_id: int) -> str:
    """Build eth_call data for getRecord(token_id)."""
    return "0x" + (GET_RECORD_SELECTOR + encode(["uint256"], [token_id])).hex()


def decode_get_record_result(result: Any) -> ProvenanceRecord:
    """Decode the ABI-encoded return value of getRecord.

    Raises:
        LedgerLookupError: If the result is empty or malformed.
    """
    if not isinstance(result, str) or not result.startswith("0x"):
        raise LedgerLookupError(f"Malformed eth_call result: {str(result)[:40]!r}")

    try:
        raw = bytes.fromhex(result[2:])
    except ValueError as e:
        raise LedgerLookupError(f"eth_call result is not hex: {e}")

    if not raw:
        # Contract absent at address or function missing
        raise LedgerLookupError("Empty eth_call result (no contract or no record)")

    try:
        (record,) = decode(list(LEDGER_RECORD_TYPES), raw)
    except (DecodingError, ValueError, TypeError) as e:
        raise LedgerLookupError(f"Could not decode getRecord result: {e}")

    content_hash, metadata_uri, revoked = record
    return ProvenanceRecord(
        content_hash=bytes(content_hash),
        metadata_uri=metadata_uri,
        revoked=bool(revoked),
    )


class JsonRpcLedgerReader:
    """Reads provenance records from a contract via JSON-RPC eth_call.

    Fails closed: every error raises LedgerLookupError, a default record is
    never returned. No retries.
    """

    def __init__(
        self,
        rpc_url: str,
        contract: str,
        timeout: float = RPC_TIMEOUT_SECONDS,
        block: str = "latest",
    ):
        if not rpc_url:
            raise ValueError("RPC URL is required")
        if not is_address(contract):
            raise ValueError(f"Invalid contract address: {contract!r}")
        self.rpc_url = rpc_url
        self.contract = contract
        self.timeout = timeout
        self.block = block

    def _build_request(self, token_id: int) -> Dict[str, Any]:
        return {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "eth_call",
            "params": [
                {"to": self.contract, "data": encode_get_record_call(token_id)},
                self.block,
            ],
        }

    async def get_record(self, token_id: int) -> ProvenanceRecord:
        """Fetch the provenance record for token_id.

        Raises:
            LedgerLookupError: On RPC, transport or decoding failures.
        """
        log.info(f"get_record: contract={self.contract} token={token_id}")
        payload = self._build_request(token_id)

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.rpc_url, json=payload)
                response.raise_for_status()
                body = response.json()
        except httpx.TimeoutException:
            raise LedgerLookupError(f"RPC timeout after {self.timeout}s")
        except httpx.HTTPStatusError as e:
            raise LedgerLookupError(f"RPC HTTP {e.response.status_code}")
        except httpx.RequestError as e:
            raise LedgerLookupError(f"RPC request failed: {e}")
        except ValueError as e:
            raise LedgerLookupError(f"RPC response is not JSON: {e}")

        if not isinstance(body, dict):
            raise LedgerLookupError("RPC response is not a JSON object")

        if body.get("error"):
            error = body["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise LedgerLookupError(f"RPC error: {message}")

        if "result" not in body:
            raise LedgerLookupError("RPC response has no result")

        record = decode_get_record_result(body["result"])
        log.info(
            f"  record: hash={record.content_hash_hex[:18]}... revoked={record.revoked}"
        )
        return record
