"""In-memory ledger and fetcher used in place of JSON-RPC and HTTP."""

import json
from typing import Any, Dict, List, Optional

from app.provenance.exceptions import FetchError, LedgerLookupError
from app.provenance.fetch import ResourceFetcher
from app.provenance.ledger import ProvenanceRecord

from .builders import CONTRACT


class StubLedger:
    """Serves records from a dict and counts lookups."""

    def __init__(self, records: Optional[Dict[int, ProvenanceRecord]] = None, contract: str = CONTRACT):
        self.records = records or {}
        self.contract = contract
        self.calls: List[int] = []

    async def get_record(self, token_id: int) -> ProvenanceRecord:
        self.calls.append(token_id)
        if token_id not in self.records:
            raise LedgerLookupError(f"RPC error: execution reverted (token {token_id})")
        return self.records[token_id]


class StubFetcher(ResourceFetcher):
    """Serves documents from a dict keyed by resolved URL.

    Scheme checks still run through ResourceFetcher.resolve_uri, and every
    requested URI is recorded in calls (before resolution).
    """

    def __init__(self, documents: Optional[Dict[str, Any]] = None, ipfs_gateway: str = ""):
        super().__init__(ipfs_gateway=ipfs_gateway)
        self.documents = documents or {}
        self.calls: List[str] = []

    async def fetch_bytes(self, uri: str) -> bytes:
        self.calls.append(uri)
        url = self.resolve_uri(uri)
        if url not in self.documents:
            raise FetchError(f"Fetch {url} -> HTTP 404: Not Found")
        document = self.documents[url]
        if isinstance(document, (dict, list)):
            return json.dumps(document).encode("utf-8")
        if isinstance(document, str):
            return document.encode("utf-8")
        return document
