"""BLAKE3-256 content digest and hex comparison helpers."""

import blake3

from app.core.config import DIGEST_SIZE_BYTES


def content_digest(content: bytes) -> bytes:
    """Return the 32-byte BLAKE3 digest of content."""
    return blake3.blake3(content).digest(length=DIGEST_SIZE_BYTES)


def to_hex(digest: bytes) -> str:
    """Render a digest as 0x-prefixed lowercase hex (ledger bytes32 form)."""
    return "0x" + digest.hex()


def normalize_hex(value: str) -> str:
    """Lowercase a hex string and strip an optional 0x prefix."""
    value = value.strip().lower()
    if value.startswith("0x"):
        value = value[2:]
    return value


def digests_match(computed: str, onchain: str) -> bool:
    """Case-insensitive comparison of two hex digests, with or without 0x."""
    return normalize_hex(computed) == normalize_hex(onchain)
