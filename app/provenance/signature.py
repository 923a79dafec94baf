"""Ed25519 detached signature verification for provenance metadata.

The author signs contentHash||createdAt with an Ed25519 key. When the
metadata embeds the public key the signature is checked directly. When only
an authorDID is given there is no DID-based signature check yet, and the
outcome is reported as UNVERIFIED instead of being treated as proof.

Note: pysodium is imported lazily inside functions to:
1. Avoid import errors when libsodium is not available at module load time
2. Enable testing of code paths that don't require signature verification
"""

import base64
import binascii
from dataclasses import dataclass
from typing import Optional

from .api_models import AuthorSignatureStatus, FailureReason
from .metadata import Metadata

ED25519_PUBLIC_KEY_BYTES = 32
ED25519_SIGNATURE_BYTES = 64


def decode_base64(value: str) -> bytes:
    """Decode standard or URL-safe base64, with or without padding.

    Raises:
        ValueError: If value is not base64.
    """
    text = value.strip().replace("-", "+").replace("_", "/")
    text += "=" * (-len(text) % 4)
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"invalid base64: {e}")


def verify_ed25519(signature: bytes, message: bytes, public_key: bytes) -> bool:
    """Verify an Ed25519 detached signature.

    Returns False for wrong key/signature lengths or a bad signature.
    """
    if len(public_key) != ED25519_PUBLIC_KEY_BYTES or len(signature) != ED25519_SIGNATURE_BYTES:
        return False

    import pysodium
    try:
        # pysodium.crypto_sign_verify_detached raises ValueError if invalid
        pysodium.crypto_sign_verify_detached(signature, message, public_key)
    except ValueError:
        return False
    return True


@dataclass(frozen=True)
class AuthorCheck:
    """Outcome of the author signature step."""
    status: Optional[AuthorSignatureStatus] = None
    failure: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


def check_author_signature(
    metadata: Metadata,
    require_verified: bool = False,
) -> AuthorCheck:
    """Check the first metadata signature against the signed payload.

    Args:
        metadata: Parsed metadata.
        require_verified: Fail DID-only authors instead of reporting UNVERIFIED.

    Returns:
        AuthorCheck with either a status (success) or a failure reason.
    """
    if not metadata.signatures:
        return AuthorCheck(failure=FailureReason.MISSING_AUTHOR_SIGNATURE)

    entry = metadata.signatures[0]
    if not entry.pub and not metadata.author_did:
        return AuthorCheck(failure=FailureReason.NO_DID_OR_PUBKEY)

    if not entry.sig.strip():
        return AuthorCheck(failure=FailureReason.AUTHOR_SIGNATURE_INVALID)

    if entry.pub:
        try:
            signature = decode_base64(entry.sig)
            public_key = decode_base64(entry.pub)
        except ValueError:
            return AuthorCheck(failure=FailureReason.AUTHOR_SIGNATURE_INVALID)

        if not verify_ed25519(signature, metadata.signed_payload(), public_key):
            return AuthorCheck(failure=FailureReason.AUTHOR_SIGNATURE_INVALID)
        return AuthorCheck(status=AuthorSignatureStatus.VERIFIED)

    # Only a DID: no resolver-backed signature check is available
    if require_verified:
        return AuthorCheck(failure=FailureReason.AUTHOR_SIGNATURE_UNVERIFIED)
    return AuthorCheck(status=AuthorSignatureStatus.UNVERIFIED)
