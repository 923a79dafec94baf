"""HTTP(S) resource fetch with constraints.

Resolves metadata, credential, status-list and schema URIs with:
- Explicit scheme check before any network I/O
- Optional ipfs:// rewrite through a configured gateway
- Configurable timeout, response size limit and redirect limit
"""

import json
import logging
from typing import Any, Optional
from urllib.parse import urlparse

import httpx

from app.core.config import (
    FETCH_MAX_REDIRECTS,
    FETCH_MAX_SIZE_BYTES,
    FETCH_TIMEOUT_SECONDS,
    IPFS_GATEWAY_URL,
)

from .exceptions import FetchError, UnsupportedURISchemeError

log = logging.getLogger(__name__)

FETCHABLE_SCHEMES = frozenset({"http", "https"})


class ResourceFetcher:
    """Fetches remote documents over HTTP(S).

    Never retries; a failed fetch raises FetchError and the caller decides
    whether to start over.
    """

    def __init__(
        self,
        timeout: float = FETCH_TIMEOUT_SECONDS,
        max_size_bytes: int = FETCH_MAX_SIZE_BYTES,
        max_redirects: int = FETCH_MAX_REDIRECTS,
        ipfs_gateway: Optional[str] = None,
    ):
        self.timeout = timeout
        self.max_size_bytes = max_size_bytes
        self.max_redirects = max_redirects
        gateway = IPFS_GATEWAY_URL if ipfs_gateway is None else ipfs_gateway
        self.ipfs_gateway = gateway.rstrip("/")

    def resolve_uri(self, uri: str) -> str:
        """Map a URI to a directly fetchable http(s) URL.

        Raises:
            UnsupportedURISchemeError: For ipfs:// without a gateway and for
                any scheme other than http/https.
        """
        parsed = urlparse(uri.strip())
        scheme = parsed.scheme.lower()

        if scheme in FETCHABLE_SCHEMES and parsed.netloc:
            return uri.strip()

        if scheme == "ipfs" and self.ipfs_gateway:
            # ipfs://<cid>/<path> -> <gateway>/ipfs/<cid>/<path>
            cid_and_path = (parsed.netloc + parsed.path).lstrip("/")
            if cid_and_path:
                return f"{self.ipfs_gateway}/ipfs/{cid_and_path}"

        raise UnsupportedURISchemeError(uri, scheme)

    async def fetch_bytes(self, uri: str) -> bytes:
        """Fetch raw bytes from uri.

        Raises:
            UnsupportedURISchemeError: Scheme not fetchable (no I/O attempted).
            FetchError: On network/timeout/status/size errors.
        """
        url = self.resolve_uri(uri)
        log.info(f"fetch: {url[:80]}")
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                max_redirects=self.max_redirects,
                follow_redirects=True,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()

                content = response.content
                if len(content) > self.max_size_bytes:
                    raise FetchError(
                        f"Response size {len(content)} bytes exceeds limit "
                        f"of {self.max_size_bytes} bytes fetching {url}"
                    )
                return content

        except FetchError:
            raise
        except httpx.TimeoutException:
            raise FetchError(f"Timeout after {self.timeout}s fetching {url}")
        except httpx.TooManyRedirects:
            raise FetchError(f"Exceeded {self.max_redirects} redirects fetching {url}")
        except httpx.HTTPStatusError as e:
            raise FetchError(
                f"Fetch {url} -> HTTP {e.response.status_code}: {e.response.reason_phrase}"
            )
        except httpx.RequestError as e:
            raise FetchError(f"Request failed for {url}: {e}")

    async def fetch_text(self, uri: str) -> str:
        content = await self.fetch_bytes(uri)
        try:
            return content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise FetchError(f"Response from {uri} is not UTF-8: {e}")

    async def fetch_json(self, uri: str) -> Any:
        """Fetch and parse a JSON document."""
        text = await self.fetch_text(uri)
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise FetchError(f"Response from {uri} is not valid JSON: {e}")

    async def fetch_json_object(self, uri: str) -> dict:
        """Fetch a JSON document whose root must be an object."""
        data = await self.fetch_json(uri)
        if not isinstance(data, dict):
            raise FetchError(
                f"Expected JSON object from {uri}, got {type(data).__name__}"
            )
        return data
