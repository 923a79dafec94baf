"""Pydantic models for the provenance test vector format."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class CredentialSpec(BaseModel):
    """Verifiable Credential referenced from the metadata."""

    issuer_seed: str
    signer_seed: Optional[str] = None  # Sign with another key to forge
    status_index: Optional[int] = None
    revoked_indices: List[int] = []


class MetadataSpec(BaseModel):
    """How the off-chain metadata is built and then altered."""

    embed_public_key: bool = True
    created_at: str = "2024-05-01T12:00:00Z"
    author_did: Optional[str] = None
    credential: Optional[CredentialSpec] = None
    drop: List[str] = []  # Keys removed after signing
    overrides: Dict[str, Any] = {}  # Keys replaced after signing


class RecordSpec(BaseModel):
    """On-chain record served by the mocked JSON-RPC endpoint."""

    content: Optional[str] = None  # Content minted on-chain (default: input content)
    metadata_uri: str = "https://meta.test/token.json"
    revoked: bool = False
    exists: bool = True


class VectorInput(BaseModel):
    content: str
    token_id: int = 1
    author_seed: str = "author"
    record: RecordSpec = RecordSpec()
    metadata: MetadataSpec = MetadataSpec()


class VerificationContext(BaseModel):
    validate_schema: bool = True
    allowed_issuer_seeds: List[str] = []
    require_verified_author: bool = False


class ExpectedResult(BaseModel):
    """Expected verdict, or the error code when no verdict is possible."""

    ok: Optional[bool] = None
    reason: Optional[str] = None
    reason_prefix: Optional[str] = None
    author_signature: Optional[str] = None
    issuer_restriction: Optional[str] = None
    credential_verified: Optional[bool] = None
    schema_error_paths: Optional[List[str]] = None
    warnings_contain: List[str] = []
    error_code: Optional[str] = None
    fetched: Optional[List[str]] = None  # Exact URLs fetched, in order


class VectorCase(BaseModel):
    """Complete test vector."""

    id: str
    name: str
    description: str
    skip_reason: Optional[str] = None
    input: VectorInput
    verification_context: VerificationContext = VerificationContext()
    expected: ExpectedResult
