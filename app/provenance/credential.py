"""
Verifiable Credential verification (JWT-encoded VCs).

Accepted document forms:
- a compact JWT (header.payload.signature)
- a JSON string holding a compact JWT
- a JSON credential whose proof carries the JWT ({"proof": {"jwt": "..."}})

Verification:
1. Decode the JWT and require an allowed algorithm (EdDSA)
2. Resolve the issuer DID (iss) and collect its Ed25519 keys
3. Verify the signature over header.payload with at least one key
4. Check nbf/exp with a clock skew tolerance
"""

import base64
import binascii
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from app.core.config import ALLOWED_VC_ALGORITHMS, VC_CLOCK_SKEW_SECONDS

from .did import DIDResolver
from .exceptions import CredentialError
from .signature import verify_ed25519

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CredentialJWT:
    """Decoded (unverified) JWT credential."""
    header: Dict[str, Any]
    payload: Dict[str, Any]
    signature: bytes
    raw_header: str
    raw_payload: str

    @property
    def signing_input(self) -> bytes:
        return f"{self.raw_header}.{self.raw_payload}".encode("ascii")


@dataclass(frozen=True)
class VerifiedCredential:
    """A credential whose signature and validity window have been checked."""
    issuer: str
    subject: Optional[str]
    credential_id: Optional[str]
    credential_status: Optional[Dict[str, Any]] = None
    claims: Dict[str, Any] = field(default_factory=dict, repr=False)


def _b64url_decode(encoded: str, part_name: str) -> bytes:
    try:
        padded = encoded + "=" * (-len(encoded) % 4)
        return base64.urlsafe_b64decode(padded)
    except (binascii.Error, ValueError) as e:
        raise CredentialError(f"{part_name} base64url decode failed: {e}")


def _decode_json_part(encoded: str, part_name: str) -> Dict[str, Any]:
    decoded = _b64url_decode(encoded, part_name)
    try:
        parsed = json.loads(decoded)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise CredentialError(f"{part_name} JSON parse failed: {e}")
    if not isinstance(parsed, dict):
        raise CredentialError(f"{part_name} JSON root must be an object")
    return parsed


def extract_jwt(document: str) -> str:
    """Find the compact JWT inside a fetched credential document."""
    text = document.strip()
    if not text:
        raise CredentialError("credential document is empty")

    if text[0] in "{\"":
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as e:
            raise CredentialError(f"credential JSON parse failed: {e}")
        if isinstance(parsed, str):
            return parsed.strip()
        if isinstance(parsed, dict):
            proof = parsed.get("proof")
            if isinstance(proof, dict) and isinstance(proof.get("jwt"), str):
                return proof["jwt"].strip()
        raise CredentialError("unsupported credential format: no JWT proof found")

    return text


def decode_credential_jwt(token: str) -> CredentialJWT:
    """Split and decode a compact JWT without verifying it."""
    parts = token.split(".")
    if len(parts) != 3:
        raise CredentialError(
            f"JWT must have 3 parts (header.payload.signature), got {len(parts)}"
        )
    raw_header, raw_payload, raw_signature = parts
    return CredentialJWT(
        header=_decode_json_part(raw_header, "header"),
        payload=_decode_json_part(raw_payload, "payload"),
        signature=_b64url_decode(raw_signature, "signature"),
        raw_header=raw_header,
        raw_payload=raw_payload,
    )


def _issuer_of(jwt: CredentialJWT) -> str:
    iss = jwt.payload.get("iss")
    vc = jwt.payload.get("vc") if isinstance(jwt.payload.get("vc"), dict) else {}
    vc_issuer = vc.get("issuer")
    if isinstance(vc_issuer, dict):
        vc_issuer = vc_issuer.get("id")

    if not isinstance(iss, str) or not iss:
        if isinstance(vc_issuer, str) and vc_issuer:
            return vc_issuer
        raise CredentialError("credential has no issuer (iss)")
    if isinstance(vc_issuer, str) and vc_issuer and vc_issuer != iss:
        raise CredentialError(f"issuer mismatch: iss={iss[:40]} vc.issuer={vc_issuer[:40]}")
    return iss


def _numeric_claim(payload: Dict[str, Any], name: str) -> Optional[int]:
    value = payload.get(name)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise CredentialError(f"{name} must be a number")
    return int(value)


class CredentialVerifier:
    """Verifies JWT Verifiable Credentials through DID resolution."""

    def __init__(
        self,
        resolver: Optional[DIDResolver] = None,
        clock_skew: int = VC_CLOCK_SKEW_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.resolver = resolver or DIDResolver()
        self.clock_skew = clock_skew
        self.clock = clock

    async def verify(self, document: str) -> VerifiedCredential:
        """Verify a fetched credential document.

        Raises:
            CredentialError: Malformed, unsigned, wrongly signed or expired
                credential, or issuer DID not resolvable (DIDResolutionError).
        """
        jwt = decode_credential_jwt(extract_jwt(document))

        alg = jwt.header.get("alg")
        if alg not in ALLOWED_VC_ALGORITHMS:
            raise CredentialError(f"unsupported credential algorithm: {alg}")

        issuer = _issuer_of(jwt)
        did_document = await self.resolver.resolve(issuer)

        kid = jwt.header.get("kid") if isinstance(jwt.header.get("kid"), str) else None
        keys = did_document.ed25519_keys(kid)
        if not keys:
            raise CredentialError(
                f"no Ed25519 verification method for {issuer[:40]}"
                + (f" matching kid {kid[:60]}" if kid else "")
            )

        if not any(verify_ed25519(jwt.signature, jwt.signing_input, key) for key in keys):
            raise CredentialError(f"signature verification failed for issuer {issuer[:40]}")

        self._check_validity_window(jwt.payload)

        vc = jwt.payload.get("vc") if isinstance(jwt.payload.get("vc"), dict) else {}
        status = vc.get("credentialStatus")
        subject = jwt.payload.get("sub")
        if subject is None and isinstance(vc.get("credentialSubject"), dict):
            subject = vc["credentialSubject"].get("id")

        log.info(f"credential verified: issuer={issuer[:40]} status_entry={status is not None}")
        return VerifiedCredential(
            issuer=issuer,
            subject=subject if isinstance(subject, str) else None,
            credential_id=jwt.payload.get("jti") or vc.get("id"),
            credential_status=status if isinstance(status, dict) else None,
            claims=jwt.payload,
        )

    def _check_validity_window(self, payload: Dict[str, Any]) -> None:
        now = self.clock()
        exp = _numeric_claim(payload, "exp")
        if exp is not None and now > exp + self.clock_skew:
            raise CredentialError(f"credential expired at {exp}")
        nbf = _numeric_claim(payload, "nbf")
        if nbf is not None and now < nbf - self.clock_skew:
            raise CredentialError(f"credential not valid before {nbf}")
