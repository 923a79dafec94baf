"""Content provenance verification.

Binds file content to an on-chain record (BLAKE3 digest), then checks the
off-chain metadata, the author's Ed25519 signature and an optional
Verifiable Credential.
"""

from .api_models import (
    AuthorSignatureStatus,
    ErrorCode,
    FailureReason,
    IssuerRestriction,
    SchemaViolation,
    VerificationResult,
)
from .exceptions import (
    ProvenanceError,
    LedgerLookupError,
    FetchError,
    UnsupportedURISchemeError,
    ConfigurationError,
    CredentialError,
    DIDResolutionError,
    StatusListError,
)
from .fetch import ResourceFetcher
from .ledger import JsonRpcLedgerReader, ProvenanceRecord, parse_token_id
from .policy import IssuerPolicy, get_issuer_policy, load_issuer_policy
from .schema import get_metadata_schema, load_metadata_schema, validate_metadata
from .status_list import RevocationChecker, StatusList2021Checker
from .verify import VerificationPipeline, verify_content

__all__ = [
    # Results
    "AuthorSignatureStatus",
    "ErrorCode",
    "FailureReason",
    "IssuerRestriction",
    "SchemaViolation",
    "VerificationResult",
    # Exceptions
    "ProvenanceError",
    "LedgerLookupError",
    "FetchError",
    "UnsupportedURISchemeError",
    "ConfigurationError",
    "CredentialError",
    "DIDResolutionError",
    "StatusListError",
    # Collaborators
    "ResourceFetcher",
    "JsonRpcLedgerReader",
    "ProvenanceRecord",
    "parse_token_id",
    "IssuerPolicy",
    "get_issuer_policy",
    "load_issuer_policy",
    "get_metadata_schema",
    "load_metadata_schema",
    "validate_metadata",
    "RevocationChecker",
    "StatusList2021Checker",
    # Pipeline
    "VerificationPipeline",
    "verify_content",
]
