"""Key, metadata, credential and status-list builders.

Everything here produces real cryptographic material (pysodium Ed25519,
BLAKE3 digests, gzip bitstrings) so tests exercise the actual verifiers.
"""

import base64
import gzip
import json
from typing import Any, Dict, Iterable, Optional, Tuple

import base58
import blake3
import pysodium

CONTRACT = "0x" + "ab" * 20
RPC_URL = "https://rpc.test"


def keypair(seed: Optional[bytes] = None) -> Tuple[bytes, bytes]:
    """Return (public_key, secret_key); deterministic when seed is given."""
    if seed is not None:
        return pysodium.crypto_sign_seed_keypair(seed.ljust(32, b"\0")[:32])
    return pysodium.crypto_sign_keypair()


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def digest_hex(content: bytes) -> str:
    return "0x" + blake3.blake3(content).digest(length=32).hex()


def did_key_for(public_key: bytes) -> str:
    return "did:key:z" + base58.b58encode(b"\xed\x01" + public_key).decode("ascii")


def signed_metadata(
    content: bytes,
    secret_key: bytes,
    public_key: Optional[bytes] = None,
    created_at: str = "2024-05-01T12:00:00Z",
    **extra: Any,
) -> Dict[str, Any]:
    """Metadata whose first signature covers contentHash||createdAt.

    The public key is embedded unless public_key is None.
    """
    content_hash = digest_hex(content)
    payload = f"{content_hash}||{created_at}".encode("utf-8")
    entry = {"sig": b64(pysodium.crypto_sign_detached(payload, secret_key))}
    if public_key is not None:
        entry["pub"] = b64(public_key)
    metadata = {
        "contentHash": content_hash,
        "createdAt": created_at,
        "signatures": [entry],
    }
    metadata.update(extra)
    return metadata


def make_vc_jwt(
    secret_key: bytes,
    issuer: str,
    kid: Optional[str] = None,
    credential_status: Optional[Dict[str, Any]] = None,
    subject: Optional[Dict[str, Any]] = None,
    alg: str = "EdDSA",
    **claims: Any,
) -> str:
    """Build a compact EdDSA JWT Verifiable Credential."""
    header = {"alg": alg, "typ": "JWT"}
    if kid:
        header["kid"] = kid
    vc: Dict[str, Any] = {
        "@context": ["https://www.w3.org/2018/credentials/v1"],
        "type": ["VerifiableCredential"],
        "issuer": issuer,
        "credentialSubject": subject or {"id": "did:example:author"},
    }
    if credential_status is not None:
        vc["credentialStatus"] = credential_status
    payload = {"iss": issuer, "vc": vc}
    payload.update(claims)

    signing_input = (
        b64url(json.dumps(header).encode()) + "." + b64url(json.dumps(payload).encode())
    )
    signature = pysodium.crypto_sign_detached(signing_input.encode("ascii"), secret_key)
    return signing_input + "." + b64url(signature)


def make_status_list(set_indices: Iterable[int], size_bits: int = 131072) -> str:
    """Encode a StatusList2021 bitstring (MSB first, gzip, base64url)."""
    bits = bytearray(size_bits // 8)
    for index in set_indices:
        bits[index // 8] |= 0x80 >> (index % 8)
    return b64url(gzip.compress(bytes(bits)))
