"""DID resolution for credential issuers.

Supported methods:
- did:key (Ed25519, multicodec 0xed01) - resolved offline from the DID string
- did:web - DID document fetched from the issuer's HTTPS host

Only Ed25519 verification methods are extracted; other key types are kept
in the document but carry no usable key.
"""

import base64
import binascii
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import unquote

import base58

from .exceptions import DIDResolutionError, FetchError
from .fetch import ResourceFetcher

log = logging.getLogger(__name__)

# Multicodec varint prefix for an Ed25519 public key
ED25519_MULTICODEC_PREFIX = b"\xed\x01"
ED25519_KEY_LENGTH = 32


@dataclass(frozen=True)
class VerificationMethod:
    """A verification method from a DID document."""
    id: str
    type: str
    controller: str
    public_key: Optional[bytes] = None   # Raw Ed25519 key when extractable


@dataclass(frozen=True)
class DIDDocument:
    """Resolved DID document (only the parts needed for verification)."""
    id: str
    verification_methods: List[VerificationMethod] = field(default_factory=list)

    def ed25519_keys(self, key_id: Optional[str] = None) -> List[bytes]:
        """Return Ed25519 keys, restricted to key_id when given.

        key_id may be absolute ("did:web:a#key-1") or relative ("#key-1").
        """
        keys = []
        for vm in self.verification_methods:
            if vm.public_key is None:
                continue
            if key_id and not _method_matches(vm.id, key_id, self.id):
                continue
            keys.append(vm.public_key)
        return keys


def _method_matches(method_id: str, key_id: str, did: str) -> bool:
    absolute = method_id if not method_id.startswith("#") else f"{did}{method_id}"
    wanted = key_id if not key_id.startswith("#") else f"{did}{key_id}"
    return absolute == wanted


def did_method(did: str) -> str:
    """Return the method name of a DID ("key", "web", ...)."""
    parts = did.split(":")
    if len(parts) < 3 or parts[0] != "did" or not parts[1] or not parts[2]:
        raise DIDResolutionError(f"Malformed DID: {did[:60]}")
    return parts[1]


def _decode_multibase_key(value: str) -> bytes:
    """Decode a base58btc multibase Ed25519 key (with or without multicodec)."""
    if not value.startswith("z"):
        raise ValueError(f"unsupported multibase prefix: {value[:1]!r}")
    raw = base58.b58decode(value[1:])
    if raw.startswith(ED25519_MULTICODEC_PREFIX) and len(raw) == ED25519_KEY_LENGTH + 2:
        return raw[2:]
    if len(raw) == ED25519_KEY_LENGTH:
        return raw
    raise ValueError(f"multibase value is not an Ed25519 key ({len(raw)} bytes)")


def _decode_jwk_key(jwk: Dict[str, Any]) -> bytes:
    if jwk.get("kty") != "OKP" or jwk.get("crv") != "Ed25519":
        raise ValueError(f"unsupported JWK kty={jwk.get('kty')} crv={jwk.get('crv')}")
    x = jwk.get("x")
    if not isinstance(x, str):
        raise ValueError(f"JWK x must be a string, got {type(x).__name__}")
    try:
        raw = base64.urlsafe_b64decode(x + "=" * (-len(x) % 4))
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"invalid JWK x: {e}")
    if len(raw) != ED25519_KEY_LENGTH:
        raise ValueError(f"JWK x is not an Ed25519 key ({len(raw)} bytes)")
    return raw


def _extract_public_key(vm: Dict[str, Any]) -> Optional[bytes]:
    """Extract a raw Ed25519 key from a verification method, if it has one."""
    try:
        if isinstance(vm.get("publicKeyMultibase"), str):
            return _decode_multibase_key(vm["publicKeyMultibase"])
        if isinstance(vm.get("publicKeyBase58"), str):
            raw = base58.b58decode(vm["publicKeyBase58"])
            return raw if len(raw) == ED25519_KEY_LENGTH else None
        if isinstance(vm.get("publicKeyJwk"), dict):
            return _decode_jwk_key(vm["publicKeyJwk"])
    except (ValueError, TypeError) as e:
        log.info(f"  skipping verification method {vm.get('id')}: {e}")
    return None


def parse_did_document(data: Any, expected_did: str) -> DIDDocument:
    """Parse a DID document JSON object.

    Raises:
        DIDResolutionError: If the document is malformed or names another DID.
    """
    if not isinstance(data, dict):
        raise DIDResolutionError(f"DID document for {expected_did} is not a JSON object")
    doc_id = data.get("id")
    if doc_id != expected_did:
        raise DIDResolutionError(
            f"DID document id {str(doc_id)[:60]} does not match {expected_did[:60]}"
        )

    raw_methods = data.get("verificationMethod")
    if raw_methods is None:
        raw_methods = []
    if not isinstance(raw_methods, list):
        raise DIDResolutionError(
            f"DID document for {expected_did[:60]} has a non-list verificationMethod"
        )

    methods = []
    for vm in raw_methods:
        if not isinstance(vm, dict) or not isinstance(vm.get("id"), str):
            continue
        methods.append(VerificationMethod(
            id=vm["id"],
            type=str(vm.get("type", "")),
            controller=str(vm.get("controller", doc_id)),
            public_key=_extract_public_key(vm),
        ))
    return DIDDocument(id=doc_id, verification_methods=methods)


def resolve_did_key(did: str) -> DIDDocument:
    """Derive the DID document for an Ed25519 did:key."""
    fingerprint = did.split(":", 2)[2]
    try:
        public_key = _decode_multibase_key(fingerprint)
    except ValueError as e:
        raise DIDResolutionError(f"Unsupported did:key {did[:40]}...: {e}")
    return DIDDocument(
        id=did,
        verification_methods=[VerificationMethod(
            id=f"{did}#{fingerprint}",
            type="Ed25519VerificationKey2020",
            controller=did,
            public_key=public_key,
        )],
    )


def did_web_to_url(did: str) -> str:
    """Map did:web:host[:path...] to its did.json URL."""
    segments = did.split(":")[2:]
    host = unquote(segments[0])
    if not host:
        raise DIDResolutionError(f"did:web has no host: {did}")
    path = "/".join(unquote(s) for s in segments[1:])
    if path:
        return f"https://{host}/{path}/did.json"
    return f"https://{host}/.well-known/did.json"


class DIDResolver:
    """Resolves issuer DIDs to DID documents."""

    SUPPORTED_METHODS = ("key", "web")

    def __init__(self, fetcher: Optional[ResourceFetcher] = None):
        self.fetcher = fetcher or ResourceFetcher()

    async def resolve(self, did: str) -> DIDDocument:
        """Resolve did (fragment ignored) to a DID document.

        Raises:
            DIDResolutionError: Unsupported method, fetch failure or bad document.
        """
        did = did.split("#", 1)[0]
        method = did_method(did)
        log.info(f"resolve_did: method={method} did={did[:40]}...")

        if method == "key":
            return resolve_did_key(did)

        if method == "web":
            url = did_web_to_url(did)
            try:
                data = await self.fetcher.fetch_json(url)
            except FetchError as e:
                raise DIDResolutionError(f"Could not fetch DID document for {did}: {e.message}")
            return parse_did_document(data, expected_did=did)

        raise DIDResolutionError(
            f"Unsupported DID method '{method}' (supported: {', '.join(self.SUPPORTED_METHODS)})"
        )
