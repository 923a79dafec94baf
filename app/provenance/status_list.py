"""
Credential revocation via W3C StatusList2021.

A status list credential carries a GZIP-compressed, base64url-encoded
bitstring in credentialSubject.encodedList. The bit at a credential's
statusListIndex (most significant bit first) is set when the credential
is revoked or suspended.

The signed credentialStatus entry is authoritative: its statusListIndex
is used when present, and the status list URI must name its
statusListCredential. A numeric URI fragment (".../status/1#94567") is
only used when the credential carries no index, and must agree with the
signed index otherwise.
"""

import base64
import binascii
import json
import logging
import zlib
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from app.core.config import STATUS_LIST_MAX_BYTES

from .credential import CredentialVerifier, VerifiedCredential
from .exceptions import StatusListError
from .fetch import ResourceFetcher

log = logging.getLogger(__name__)

REVOKING_PURPOSES = frozenset({"revocation", "suspension"})

# wbits for zlib: expect a gzip header and trailer
GZIP_WBITS = 16 + zlib.MAX_WBITS


class RevocationChecker(ABC):
    """Capability: decide whether a verified credential has been revoked."""

    @abstractmethod
    async def is_revoked(self, credential: VerifiedCredential, status_list_uri: str) -> bool:
        ...


def _gunzip(compressed: bytes, max_bytes: int) -> bytes:
    decompressor = zlib.decompressobj(GZIP_WBITS)
    bitstring = decompressor.decompress(compressed, max_bytes + 1)
    if len(bitstring) > max_bytes:
        raise StatusListError(f"encodedList expands beyond {max_bytes} bytes")
    if not decompressor.eof:
        raise StatusListError("could not decode encodedList: truncated gzip stream")
    return bitstring


def decode_encoded_list(encoded: str, max_bytes: int = STATUS_LIST_MAX_BYTES) -> bytes:
    """Decode a StatusList2021 encodedList into the raw bitstring bytes.

    Raises:
        StatusListError: Not base64url/gzip, or larger than max_bytes once
            decompressed.
    """
    if not isinstance(encoded, str) or not encoded:
        raise StatusListError("status list has no encodedList")
    # Bitstring Status List allows a multibase base64url 'u' prefix
    if encoded.startswith("u"):
        encoded = encoded[1:]
    try:
        compressed = base64.urlsafe_b64decode(encoded + "=" * (-len(encoded) % 4))
        return _gunzip(compressed, max_bytes)
    except (binascii.Error, ValueError, zlib.error) as e:
        raise StatusListError(f"could not decode encodedList: {e}")


def bit_is_set(bitstring: bytes, index: int) -> bool:
    """Return the bit at index, most significant bit of each byte first."""
    if index < 0 or index >= len(bitstring) * 8:
        raise StatusListError(
            f"status index {index} out of range for list of {len(bitstring) * 8} entries"
        )
    return bool(bitstring[index // 8] & (0x80 >> (index % 8)))


def parse_status_index(value: Any) -> int:
    if isinstance(value, bool):
        raise StatusListError(f"invalid statusListIndex: {value!r}")
    try:
        index = int(value)
    except (TypeError, ValueError):
        raise StatusListError(f"invalid statusListIndex: {value!r}")
    if index < 0:
        raise StatusListError(f"invalid statusListIndex: {value!r}")
    return index


def split_status_uri(uri: str) -> tuple:
    """Split a status list URI into (document URI, fragment or None)."""
    base, _, fragment = uri.partition("#")
    return base, (fragment or None)


class StatusList2021Checker(RevocationChecker):
    """Fetches StatusList2021 credentials and tests the credential's bit.

    JWT-encoded status list credentials are signature-checked with the
    credential verifier before their bitstring is trusted.
    """

    def __init__(
        self,
        fetcher: Optional[ResourceFetcher] = None,
        credential_verifier: Optional[CredentialVerifier] = None,
        max_list_bytes: int = STATUS_LIST_MAX_BYTES,
    ):
        self.fetcher = fetcher or ResourceFetcher()
        self.credential_verifier = credential_verifier or CredentialVerifier()
        self.max_list_bytes = max_list_bytes

    def resolve_index(
        self,
        credential: VerifiedCredential,
        base_uri: str,
        fragment: Optional[str],
    ) -> int:
        """Pick the status index, preferring the credential's signed entry.

        Raises:
            StatusListError: No index anywhere, the fragment disagrees with the
                signed index, or the URI is not the credential's status list.
        """
        status = credential.credential_status or {}

        list_credential = status.get("statusListCredential")
        if list_credential is not None and list_credential != base_uri:
            raise StatusListError(
                f"status list {base_uri[:60]} is not the credential's statusListCredential "
                f"{str(list_credential)[:60]}"
            )

        fragment_index = int(fragment) if fragment and fragment.isdigit() else None
        if "statusListIndex" not in status:
            if fragment_index is None:
                raise StatusListError("credential has no statusListIndex")
            return fragment_index

        index = parse_status_index(status["statusListIndex"])
        if fragment_index is not None and fragment_index != index:
            raise StatusListError(
                f"status list fragment #{fragment_index} does not match statusListIndex {index}"
            )
        return index

    async def _load_subject(self, document: str) -> Dict[str, Any]:
        """Return the status list credentialSubject from a fetched document."""
        text = document.strip()
        parsed: Any = None
        if text.startswith("{"):
            try:
                parsed = json.loads(text)
            except json.JSONDecodeError as e:
                raise StatusListError(f"status list JSON parse failed: {e}")

        if isinstance(parsed, dict) and isinstance(parsed.get("credentialSubject"), dict):
            if not (isinstance(parsed.get("proof"), dict) and "jwt" in parsed["proof"]):
                return parsed["credentialSubject"]

        # JWT-encoded status list credential: verify before use
        verified = await self.credential_verifier.verify(text)
        vc = verified.claims.get("vc")
        if not isinstance(vc, dict) or not isinstance(vc.get("credentialSubject"), dict):
            raise StatusListError("status list credential has no credentialSubject")
        return vc["credentialSubject"]

    async def is_revoked(self, credential: VerifiedCredential, status_list_uri: str) -> bool:
        """Check the credential's bit in the status list.

        Raises:
            FetchError: Status list document could not be fetched.
            StatusListError / CredentialError: Status list unusable.
        """
        base_uri, fragment = split_status_uri(status_list_uri)
        index = self.resolve_index(credential, base_uri, fragment)

        document = await self.fetcher.fetch_text(base_uri)
        subject = await self._load_subject(document)

        purpose = subject.get("statusPurpose", "revocation")
        if purpose not in REVOKING_PURPOSES:
            raise StatusListError(f"unsupported statusPurpose: {purpose}")

        bitstring = decode_encoded_list(subject.get("encodedList"), self.max_list_bytes)
        revoked = bit_is_set(bitstring, index)
        log.info(f"status list {base_uri[:60]} index={index} purpose={purpose} set={revoked}")
        return revoked
