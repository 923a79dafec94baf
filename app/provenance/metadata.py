"""
Off-chain provenance metadata.

Parsing is tolerant: the pipeline reports missing signatures or keys as
verification failures, and structural rules belong to the JSON Schema.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from app.core.config import SIGNED_PAYLOAD_SEPARATOR


@dataclass(frozen=True)
class SignatureEntry:
    """One detached signature over the signed payload."""
    sig: str                    # base64 signature
    pub: Optional[str] = None   # base64 Ed25519 public key


@dataclass(frozen=True)
class CredentialReference:
    """Pointer to a Verifiable Credential backing the author."""
    uri: str
    status_list: Optional[str] = None


@dataclass(frozen=True)
class Metadata:
    """Parsed provenance metadata document."""
    content_hash: str
    created_at: str
    signatures: List[SignatureEntry] = field(default_factory=list)
    author_did: Optional[str] = None
    verifiable_credential: Optional[CredentialReference] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def signed_payload(self) -> bytes:
        """Payload covered by the author signature: contentHash||createdAt."""
        return f"{self.content_hash}{SIGNED_PAYLOAD_SEPARATOR}{self.created_at}".encode("utf-8")


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    # JSON numbers render as in JavaScript: 1.0 -> "1"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _optional_string(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _parse_signatures(value: Any) -> List[SignatureEntry]:
    """Parse signature entries, keeping their positions.

    Unusable entries are kept with an empty sig so the author check still
    sees them as the first signature.
    """
    if not isinstance(value, list):
        return []
    entries = []
    for item in value:
        if not isinstance(item, dict):
            entries.append(SignatureEntry(sig=""))
            continue
        sig = item.get("sig")
        entries.append(SignatureEntry(
            sig=sig if isinstance(sig, str) else "",
            pub=_optional_string(item.get("pub")),
        ))
    return entries


def _parse_credential(value: Any) -> Optional[CredentialReference]:
    if not isinstance(value, dict):
        return None
    uri = _optional_string(value.get("uri"))
    if uri is None:
        return None
    return CredentialReference(
        uri=uri,
        status_list=_optional_string(value.get("statusList")),
    )


def parse_metadata(data: Dict[str, Any]) -> Metadata:
    """Build a Metadata from a fetched JSON object."""
    return Metadata(
        content_hash=_as_text(data.get("contentHash")),
        created_at=_as_text(data.get("createdAt")),
        signatures=_parse_signatures(data.get("signatures")),
        author_did=_optional_string(data.get("authorDID")),
        verifiable_credential=_parse_credential(data.get("verifiableCredential")),
        raw=data,
    )
